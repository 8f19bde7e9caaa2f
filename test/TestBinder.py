import ast
import sys
import unittest

from BinderTestBase import BinderTestBase
from PyBinder.ModuleManager import ModuleManager
from PyBinder.Semantics.Declaration import DeclarationType
from PyBinder.Semantics.FileInfo import DiagnosticRuleSet


class TestDeclarations(BinderTestBase):
    def testDeclarationTypes(self):
        m = self.bindSource("""
            import os
            x = 1
            def f(p):
                pass
            class C:
                def m(self):
                    pass
        """)
        self.assertEqual(m.scope.lookUpSymbol("os").getDeclarations()[0].type, DeclarationType.ALIAS)
        self.assertEqual(m.scope.lookUpSymbol("x").getDeclarations()[0].type, DeclarationType.VARIABLE)
        self.assertEqual(m.scope.lookUpSymbol("C").getDeclarations()[0].type, DeclarationType.CLASS)

        functionDecl = m.scope.lookUpSymbol("f").getDeclarations()[0]
        self.assertEqual(functionDecl.type, DeclarationType.FUNCTION)
        self.assertFalse(functionDecl.isMethod)
        methodDecl = m.nodeInfo.getDeclaration(self.findNode(m, ast.FunctionDef, name="m"))
        self.assertTrue(methodDecl.isMethod)

    def testRedeclaration(self):
        m = self.bindSource("""
            x = 1
            x = 2
            def g():
                pass
            def g():
                pass
        """)
        self.assertEqual(len(m.scope.lookUpSymbol("x").getDeclarations()), 2)
        self.assertEqual(len(m.scope.lookUpSymbol("g").getDeclarations()), 2)

    def testAnnotations(self):
        m = self.bindSource("""
            from typing import Final, TypeAlias
            import typing as t

            LIMIT: Final = 10
            count: Final[int] = 0
            other: t.Final[str] = ""
            Alias: TypeAlias = "int | str"
            plain: int
        """)
        limit = m.scope.lookUpSymbol("LIMIT").getDeclarations()[-1]
        self.assertTrue(limit.isFinal)
        self.assertTrue(limit.isConstant)
        self.assertIsNone(limit.typeAnnotationNode)

        count = m.scope.lookUpSymbol("count").getDeclarations()[-1]
        self.assertTrue(count.isFinal)
        self.assertEqual(ast.unparse(count.typeAnnotationNode), "int")
        self.assertTrue(m.scope.lookUpSymbol("other").getDeclarations()[-1].isFinal)

        alias = m.scope.lookUpSymbol("Alias").getDeclarations()[-1]
        self.assertIsNotNone(alias.typeAliasName)
        self.assertIsNone(alias.typeAnnotationNode)

        plain = m.scope.lookUpSymbol("plain").getDeclarations()[0]
        self.assertEqual(ast.unparse(plain.typeAnnotationNode), "int")
        self.assertFalse(plain.isFinal)
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testAnnotationErrors(self):
        m = self.bindSource("""
            from typing import TypeAlias
            def f():
                Local: TypeAlias = int
            obj.attr: int
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["annotationNotSupported", "typeAliasNotInModule"])

    def testPossibleTypeAlias(self):
        m = self.bindSource("""
            IntList = list[int]
            Twice = int
            Twice = str
            for _ in range(1):
                InLoop = int
            def f():
                Local = int
        """)
        self.assertIsNotNone(m.scope.lookUpSymbol("IntList").getDeclarations()[0].typeAliasName)
        # declared twice, so not an alias
        self.assertTrue(all(decl.typeAliasName is None for decl in m.scope.lookUpSymbol("Twice").getDeclarations()))
        self.assertIsNone(m.scope.lookUpSymbol("InLoop").getDeclarations()[0].typeAliasName)
        localScope = self.getScopeOf(m, ast.FunctionDef, name="f")
        self.assertIsNone(localScope.lookUpSymbol("Local").getDeclarations()[0].typeAliasName)

    @unittest.skipIf(sys.version_info < (3, 12), "type statement needs Python 3.12")
    def testTypeAliasStatement(self):
        m = self.bindSource("""
            type Pair = tuple[int, int]
            first: Pair
        """)
        decl = m.scope.lookUpSymbol("Pair").getDeclarations()[0]
        self.assertEqual(decl.type, DeclarationType.VARIABLE)
        self.assertIsNotNone(decl.typeAliasName)
        self.assertEqual(ast.unparse(decl.inferredTypeSource), "tuple[int, int]")
        alias = self.findNode(m, ast.TypeAlias)
        self.assertIsNotNone(m.nodeInfo.getFlowNode(alias.name))
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testSymbolFlags(self):
        source = """
            class C:
                def __init__(self):
                    self._y = 1
                    self.z = 2
        """
        m = self.bindSource(source)
        self.assertTrue(m.scope.lookUpSymbol("__name__").isIgnoredForProtocolMatch())
        self.assertFalse(m.scope.lookUpSymbol("C").isIgnoredForProtocolMatch())
        classScope = self.getScopeOf(m, ast.ClassDef, name="C")
        self.assertFalse(classScope.lookUpSymbol("_y").isPrivateMember())

        m = self.bindSource(source, moduleManager=ModuleManager(diagnosticRuleSet=DiagnosticRuleSet(reportPrivateUsage=True)))
        classScope = self.getScopeOf(m, ast.ClassDef, name="C")
        self.assertTrue(classScope.lookUpSymbol("_y").isPrivateMember())
        self.assertFalse(classScope.lookUpSymbol("z").isPrivateMember())

    def testDocString(self):
        m = self.bindSource('''
            """Module documentation."""
            x = 1
        ''')
        self.assertEqual(m.results.moduleDocString, "Module documentation.")

    def testTypingStub(self):
        m = self.bindSource("""
            Tuple: _SpecialForm = ...
            Optional = ...
            List = list
        """, moduleName="typing", isStub=True)
        self.assertEqual(m.scope.lookUpSymbol("Tuple").getDeclarations()[0].type, DeclarationType.SPECIAL_BUILTIN_CLASS)
        self.assertEqual(m.scope.lookUpSymbol("Optional").getDeclarations()[0].type, DeclarationType.SPECIAL_BUILTIN_CLASS)
        self.assertEqual(m.scope.lookUpSymbol("List").getDeclarations()[0].type, DeclarationType.VARIABLE)


class TestGenerators(BinderTestBase):
    def testYield(self):
        m = self.bindSource("""
            def gen():
                yield 1
                yield from other()
            def outer():
                def inner():
                    yield 2
                return inner
        """)
        gen = m.nodeInfo.getDeclaration(self.findNode(m, ast.FunctionDef, name="gen"))
        self.assertTrue(gen.isGenerator)
        self.assertEqual(len(gen.yieldStatements), 2)
        outer = m.nodeInfo.getDeclaration(self.findNode(m, ast.FunctionDef, name="outer"))
        self.assertFalse(outer.isGenerator)
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testYieldErrors(self):
        m = self.bindSource("""
            yield 1
            async def agen():
                yield from other()
            def f():
                return [(yield x) for x in range(3)]
            g = lambda: (yield)
        """)
        self.assertEqual(self.getDiagnosticKeys(m),
                         ["yieldFromOutsideAsync", "yieldOutsideFunction", "yieldWithinComprehension"])

    def testAwait(self):
        m = self.bindSource("""
            async def f():
                await g()
            def h():
                await g()
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["awaitNotInAsync"])


class TestDunderAll(BinderTestBase):
    def testOperations(self):
        m = self.bindSource("""
            __all__ = ["a", "b"]
            __all__ += ["c"]
            __all__.append("d")
            __all__.extend(["e"])
            __all__.remove("b")
            a = b = c = d = e = 1
        """)
        self.assertEqual(m.results.dunderAllNames, ["a", "c", "d", "e"])
        self.assertEqual(m.nodeInfo.getDunderAllNames(m.tree), ["a", "c", "d", "e"])
        self.assertTrue(m.scope.lookUpSymbol("a").isInDunderAll())
        self.assertFalse(m.scope.lookUpSymbol("b").isInDunderAll())
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testUnsupportedOperations(self):
        source = """
            name = "x"
            __all__ = [name]
            __all__.append(name)
            __all__ += compute()
        """
        m = self.bindSource(source)
        self.assertEqual(m.results.dunderAllNames, [])
        self.assertEqual(self.getDiagnosticKeys(m), ["unsupportedDunderAllOperation"] * 3)

        moduleManager = ModuleManager(diagnosticRuleSet=DiagnosticRuleSet(reportUnsupportedDunderAll=False))
        m = self.bindSource(source, moduleManager=moduleManager)
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testWithoutDunderAll(self):
        m = self.bindSource("""
            x = 1
        """)
        self.assertIsNone(m.results.dunderAllNames)

    def testFromSubmodule(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("helper", '__all__ = ["x"]\nx = 1\n')
        m = self.bindSource("""
            import helper
            __all__ = ["own"]
            __all__ += helper.__all__
            __all__.extend(helper.__all__)
            own = 1
        """, moduleManager=moduleManager)
        self.assertEqual(m.results.dunderAllNames, ["own", "x", "x"])
        self.assertEqual(self.getDiagnosticKeys(m), [])


if __name__ == "__main__":
    unittest.main()
