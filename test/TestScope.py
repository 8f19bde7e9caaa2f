import ast
import unittest

from BinderTestBase import BinderTestBase
from PyBinder.Semantics.Declaration import DeclarationType
from PyBinder.Semantics.Scope import ScopeType


class TestScope(BinderTestBase):
    def testModuleScope(self):
        m = self.bindSource("""
            x = 1
            def f():
                pass
            class C:
                pass
        """)
        self.assertEqual(m.scope.type, ScopeType.MODULE)
        self.assertEqual(m.scope.parent.type, ScopeType.BUILTIN)
        self.assertEqual(self.getSymbolNames(m.scope), ["C", "f", "x"])
        self.assertEqual(m.scope.lookUpSymbol("__name__").getDeclarations()[0].type, DeclarationType.INTRINSIC)
        self.assertIsNotNone(m.scope.lookUpSymbolRecursive("len"))

    def testFunctionScope(self):
        m = self.bindSource("""
            def f(a, /, b, *args, c, **kwargs):
                local = a
        """)
        scope = self.getScopeOf(m, ast.FunctionDef, name="f")
        self.assertEqual(scope.type, ScopeType.FUNCTION)
        self.assertIs(scope.parent, m.scope)
        self.assertEqual(self.getSymbolNames(scope), ["a", "args", "b", "c", "kwargs", "local"])
        self.assertEqual(scope.lookUpSymbol("a").getDeclarations()[0].type, DeclarationType.PARAMETER)
        self.assertIsNone(m.scope.lookUpSymbol("local"))

    def testClassBodyInvisibleToMethods(self):
        m = self.bindSource("""
            class C:
                y = 1
                def m(self):
                    return y
        """)
        classScope = self.getScopeOf(m, ast.ClassDef, name="C")
        methodScope = self.getScopeOf(m, ast.FunctionDef, name="m")
        self.assertEqual(classScope.type, ScopeType.CLASS)
        self.assertIs(methodScope.parent, m.scope)
        self.assertIsNotNone(classScope.lookUpSymbol("y"))
        self.assertIsNone(methodScope.lookUpSymbolRecursive("y"))
        self.assertIsNotNone(methodScope.lookUpSymbol("__class__"))

    def testGlobal(self):
        m = self.bindSource("""
            x = 0
            def f():
                global x
                x = 1
        """)
        scope = self.getScopeOf(m, ast.FunctionDef, name="f")
        self.assertIsNone(scope.lookUpSymbol("x"))
        self.assertEqual(len(m.scope.lookUpSymbol("x").getDeclarations()), 2)
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testGlobalCreatesModuleSymbol(self):
        m = self.bindSource("""
            def f():
                global created
                created = 1
        """)
        self.assertIsNotNone(m.scope.lookUpSymbol("created"))

    def testNonlocal(self):
        m = self.bindSource("""
            def outer():
                x = 1
                def inner():
                    nonlocal x
                    x = 2
        """)
        outerScope = self.getScopeOf(m, ast.FunctionDef, name="outer")
        innerScope = self.getScopeOf(m, ast.FunctionDef, name="inner")
        self.assertIs(innerScope.parent, outerScope)
        self.assertIsNone(innerScope.lookUpSymbol("x"))
        self.assertEqual(len(outerScope.lookUpSymbol("x").getDeclarations()), 2)
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testNonlocalErrors(self):
        m = self.bindSource("""
            nonlocal a
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["nonLocalInModule"])

        m = self.bindSource("""
            x = 1
            def f():
                nonlocal x
            def g():
                nonlocal undefined
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["nonLocalNoBinding", "nonLocalNoBinding"])

    def testReassignmentBeforeDeclaration(self):
        m = self.bindSource("""
            def f():
                x = 1
                global x
            def g():
                y = 1
                def h():
                    y = 2
                    nonlocal y
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["globalReassignment", "nonLocalReassignment"])

    def testConflictingRedirection(self):
        m = self.bindSource("""
            def outer():
                x = 1
                def inner():
                    global x
                    nonlocal x
        """)
        # x now resolves to the module, which nonlocal can't bind to
        self.assertEqual(self.getDiagnosticKeys(m), ["globalRedefinition", "nonLocalNoBinding"])

    def testComprehensionScope(self):
        m = self.bindSource("""
            squares = [i * i for i in range(3) if i]
        """)
        scope = self.getScopeOf(m, ast.ListComp)
        self.assertEqual(scope.type, ScopeType.COMPREHENSION)
        self.assertIs(scope.parent, m.scope)
        self.assertEqual(self.getSymbolNames(scope), ["i"])
        self.assertIsNone(m.scope.lookUpSymbol("i"))

    def testAssignmentExpressionInComprehension(self):
        m = self.bindSource("""
            values = [(last := i) for i in range(3)]
        """)
        self.assertIsNotNone(m.scope.lookUpSymbol("last"))
        self.assertIsNone(self.getScopeOf(m, ast.ListComp).lookUpSymbol("last"))
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testAssignmentExpressionErrors(self):
        m = self.bindSource("""
            values = [(i := 0) for i in range(3)]
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["assignmentExprComprehension"])

        m = self.bindSource("""
            class C:
                values = [(z := 1) for _ in range(2)]
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["assignmentExprContext"])

    def testAssignmentExpressionInClassBody(self):
        m = self.bindSource("""
            class C:
                if (flag := True):
                    pass
        """)
        self.assertIsNotNone(self.getScopeOf(m, ast.ClassDef, name="C").lookUpSymbol("flag"))
        self.assertIsNone(m.scope.lookUpSymbol("flag"))

    def testLambdaScope(self):
        m = self.bindSource("""
            f = lambda a, b=1: a + b
        """)
        scope = self.getScopeOf(m, ast.Lambda)
        self.assertEqual(scope.type, ScopeType.FUNCTION)
        self.assertEqual(self.getSymbolNames(scope), ["a", "b"])

    def testMemberAccess(self):
        m = self.bindSource("""
            class C:
                def __init__(self):
                    self.x = 1
                    self._y: int = 2

                @classmethod
                def make(cls):
                    cls.registry = []

                @staticmethod
                def helper(other):
                    other.z = 1
        """)
        classScope = self.getScopeOf(m, ast.ClassDef, name="C")
        x = classScope.lookUpSymbol("x")
        self.assertTrue(x.isInstanceMember())
        self.assertTrue(x.getDeclarations()[0].isDefinedByMemberAccess)
        self.assertTrue(classScope.lookUpSymbol("_y").isInstanceMember())
        registry = classScope.lookUpSymbol("registry")
        self.assertTrue(registry.isClassMember())
        self.assertFalse(registry.isInstanceMember())
        self.assertIsNone(classScope.lookUpSymbol("z"))

        # only assigned through self, so not a bare name in the class body
        self.assertIsNone(classScope.lookUpSymbolRecursive("x"))

    def testClassVar(self):
        m = self.bindSource("""
            from typing import ClassVar
            class C:
                count: ClassVar[int] = 0
                name: str
        """)
        classScope = self.getScopeOf(m, ast.ClassDef, name="C")
        self.assertTrue(classScope.lookUpSymbol("count").isClassVar())
        self.assertTrue(classScope.lookUpSymbol("name").isInstanceMember())

    def testExternallyHidden(self):
        m = self.bindSource("""
            __secret = 1
            _protected = 2
            public = 3
        """)
        self.assertTrue(m.scope.lookUpSymbol("__secret").isExternallyHidden())
        self.assertFalse(m.scope.lookUpSymbol("_protected").isExternallyHidden())
        self.assertFalse(m.scope.lookUpSymbol("public").isExternallyHidden())

        m = self.bindSource("""
            import os as os
            import sys
            _protected: int
        """, moduleName="stubmod", isStub=True)
        self.assertTrue(m.scope.lookUpSymbol("_protected").isExternallyHidden())
        # "import os as os" re-exports
        self.assertFalse(m.scope.lookUpSymbol("os").isExternallyHidden())
        self.assertTrue(m.scope.lookUpSymbol("sys").isExternallyHidden())

    def testPyTypedPrivateNames(self):
        m = self.bindSource("""
            __all__ = ["_exported"]
            _exported = 1
            _internal = 2
        """, moduleName="typedpkg", isPyTyped=True)
        self.assertFalse(m.scope.lookUpSymbol("_exported").isExternallyHidden())
        self.assertTrue(m.scope.lookUpSymbol("_internal").isExternallyHidden())
        self.assertTrue(m.scope.lookUpSymbol("_exported").isInDunderAll())

    def testSymbolIdsAreUnique(self):
        m = self.bindSource("""
            a = 1
            def f(a):
                b = a
            class C:
                a = 2
        """)
        ids = [symbol.id for node in m.nodeInfo.iterScopedNodes()
               for symbol in m.nodeInfo.getScope(node).symbolTable.values()]
        self.assertEqual(len(ids), len(set(ids)))


if __name__ == "__main__":
    unittest.main()
