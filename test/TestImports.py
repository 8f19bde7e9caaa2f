import ast
import os
import tempfile
import unittest
from unittest import mock

from BinderTestBase import BinderTestBase
from PyBinder.Binding.Binder import Binder
from PyBinder.ModuleManager import BOUND, FAILED, ModuleManager, ModuleNotRegistered
from PyBinder.Semantics.CodeFlow import FlowWildcardImport
from PyBinder.Semantics.Declaration import UNRESOLVED_MODULE_PATH, DeclarationType
from PyBinder.Semantics.FileInfo import DiagnosticRuleSet
from PyBinder.Semantics.ImportResult import ImportType


def packageManager() -> ModuleManager:
    moduleManager = ModuleManager()
    moduleManager.addModule("pkg", "", isPackage=True)
    moduleManager.addModule("pkg.sub", "value = 1\n")
    moduleManager.addModule("pkg.other", "other = 1\n")
    return moduleManager


class TestImports(BinderTestBase):
    def testMultipartImport(self):
        m = self.bindSource("""
            import pkg.sub
            import pkg.other
        """, moduleManager=packageManager())
        decls = m.scope.lookUpSymbol("pkg").getDeclarations()
        # both imports share the declaration of "pkg"
        self.assertEqual(len(decls), 1)
        decl = decls[0]
        self.assertEqual(decl.type, DeclarationType.ALIAS)
        self.assertEqual(decl.firstNamePart, "pkg")
        self.assertEqual(decl.path, "")
        self.assertEqual(sorted(decl.implicitImports), ["other", "sub"])
        self.assertEqual(decl.implicitImports["sub"].path, "pkg/sub.py")
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testImportAs(self):
        m = self.bindSource("""
            import pkg.sub as s
        """, moduleManager=packageManager())
        decl = m.scope.lookUpSymbol("s").getDeclarations()[0]
        self.assertTrue(decl.usesLocalName)
        self.assertEqual(decl.path, "pkg/sub.py")
        self.assertIsNone(m.scope.lookUpSymbol("pkg"))

    def testFromImportSubmodule(self):
        m = self.bindSource("""
            from pkg import sub as s
        """, moduleManager=packageManager())
        decl = m.scope.lookUpSymbol("s").getDeclarations()[0]
        self.assertEqual(decl.symbolName, "sub")
        self.assertEqual(decl.path, "pkg/__init__.py")
        self.assertEqual(decl.submoduleFallback.path, "pkg/sub.py")
        self.assertFalse(decl.isUnresolved)

    def testUnresolvedImport(self):
        m = self.bindSource("""
            import no_such_module_for_binding
            from no_such_module_for_binding import thing
        """)
        self.assertEqual(self.getDiagnosticKeys(m), ["importResolveFailure", "importResolveFailure"])
        moduleDecl = m.scope.lookUpSymbol("no_such_module_for_binding").getDeclarations()[0]
        self.assertTrue(moduleDecl.isUnresolved)
        self.assertEqual(moduleDecl.path, UNRESOLVED_MODULE_PATH)
        self.assertTrue(m.scope.lookUpSymbol("thing").getDeclarations()[0].isUnresolved)

        moduleManager = ModuleManager(diagnosticRuleSet=DiagnosticRuleSet(reportMissingImports=False))
        m = self.bindSource("""
            import no_such_module_for_binding
        """, moduleManager=moduleManager)
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testRelativeImportInPackageInit(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("pkg", "from . import sub\n", isPackage=True)
        moduleManager.addModule("pkg.sub", "value = 1\n")
        m = moduleManager.bindModule("pkg")
        decl = m.scope.lookUpSymbol("sub").getDeclarations()[0]
        # resolved through the submodule, not the package itself
        self.assertEqual(decl.path, "")
        self.assertEqual(decl.submoduleFallback.path, "pkg/sub.py")
        self.assertEqual(self.getDiagnosticKeys(m), [])

    def testWildcardImportInPackageInit(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("pkg", "from .sub import *\n", isPackage=True)
        moduleManager.addModule("pkg.sub", '__all__ = ["value"]\nvalue = 1\n_hidden = 2\n')
        m = moduleManager.bindModule("pkg")
        self.assertEqual(self.getSymbolNames(m.scope), ["sub", "value"])
        self.assertEqual(m.scope.lookUpSymbol("sub").getDeclarations()[0].path, "pkg/sub.py")
        self.assertEqual(m.scope.lookUpSymbol("value").getDeclarations()[0].symbolName, "value")

        flowNode = m.nodeInfo.getFlowNode(self.findNode(m, ast.ImportFrom))
        self.assertIsInstance(flowNode, FlowWildcardImport)
        self.assertEqual(flowNode.names, ["value"])

    def testWildcardImportWithoutDunderAll(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("helper", "a = 1\n_b = 2\n__c = 3\n")
        m = self.bindSource("""
            from helper import *
        """, moduleManager=moduleManager)
        names = self.getSymbolNames(m.scope)
        self.assertIn("a", names)
        self.assertIn("_b", names)
        self.assertNotIn("__c", names)

    def testWildcardImportInFunction(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("helper", "a = 1\n")
        m = self.bindSource("""
            def f():
                from helper import *
        """, moduleManager=moduleManager)
        self.assertEqual(self.getDiagnosticKeys(m), ["wildcardInFunction"])

    def testCircularWildcardImport(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("first", "from second import *\nfirstValue = 1\n")
        moduleManager.addModule("second", "from first import *\nsecondValue = 1\n")
        m = moduleManager.bindModule("first")
        self.assertIsNotNone(m.scope.lookUpSymbol("secondValue"))
        # "first" was still being bound when "second" looked it up
        second = moduleManager.getModule("second")
        self.assertIsNone(second.scope.lookUpSymbol("firstValue"))

    def testStubDiagnostics(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("stubonly", "x: int\n", isStub=True, importType=ImportType.THIRD_PARTY)
        moduleManager.addModule("paired", "x: int\n", isStub=True, importType=ImportType.THIRD_PARTY)
        moduleManager.addModule("paired", "x = 1\n", importType=ImportType.THIRD_PARTY)
        m = self.bindSource("""
            import stubonly
            import paired
        """, moduleManager=moduleManager)
        self.assertEqual(self.getDiagnosticKeys(m), ["importSourceResolveFailure"])

    def testMissingTypeStubs(self):
        moduleManager = ModuleManager(diagnosticRuleSet=DiagnosticRuleSet(reportMissingTypeStubs=True))
        moduleManager.addModule("untyped", "x = 1\n", importType=ImportType.THIRD_PARTY)
        moduleManager.addModule("typed", "x = 1\n", importType=ImportType.THIRD_PARTY, isPyTyped=True)
        m = self.bindSource("""
            import untyped
            import typed
        """, moduleManager=moduleManager)
        self.assertEqual(self.getDiagnosticKeys(m), ["stubFileMissing"])
        diagnostic = m.fileInfo.diagnosticSink.diagnostics[0]
        self.assertEqual(len(diagnostic.actions), 1)


class TestModuleManager(BinderTestBase):
    def testRegistration(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("a.b.c", "x = 1\n")
        self.assertTrue(moduleManager.getModule("a").isNamespace)
        self.assertTrue(moduleManager.getModule("a.b").isPackage())
        self.assertEqual(moduleManager.getModule("a.b.c").__file__, "a/b/c.py")
        with self.assertRaises(ValueError):
            moduleManager.addModule("a.b.c", "y = 1\n")
        with self.assertRaises(ModuleNotRegistered):
            moduleManager.getModule("missing")

        namespace = moduleManager.bindModule("a")
        self.assertIsNone(namespace.scope)
        self.assertIsNone(moduleManager.importLookup("not/registered.py"))

    def testStubReplacesSource(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("lib", "x = 1\n")
        m = moduleManager.addModule("lib", "x: int\n", isStub=True)
        self.assertIs(moduleManager.getModule("lib"), m)
        self.assertTrue(m.isStub)
        self.assertEqual(m.__file__, "lib.pyi")
        self.assertEqual(m.sourceFile, "lib.py")
        self.assertIsNone(moduleManager.getModuleByPath("lib.py"))

    def testBindOnce(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("main", "x = 1\n")
        first = moduleManager.bindModule("main")
        self.assertIs(moduleManager.bindModule("main").scope, first.scope)
        lookup = moduleManager.importLookup("main.py")
        self.assertIn("x", lookup.symbolTable)
        self.assertIsNone(lookup.dunderAllNames)

    def testSyntaxError(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("broken", "def f(:\n")
        with self.assertRaises(SyntaxError):
            moduleManager.bindModule("broken")
        moduleManager.addModule("main", "from broken import *\n")
        # the wildcard finds nothing to import
        m = moduleManager.bindModule("main")
        self.assertEqual(self.getSymbolNames(m.scope), [])

    def testFailedBind(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("main", "x = 1\n")
        with mock.patch.object(Binder, "bindModule", side_effect=RuntimeError("bind failed")):
            with self.assertRaises(RuntimeError):
                moduleManager.bindModule("main")
        m = moduleManager.getModule("main")
        self.assertEqual(m.state, FAILED)
        self.assertIsNone(m.scope)
        self.assertIsNone(m.results)
        # a failed module is not bound again
        self.assertIs(moduleManager.bindModule("main"), m)
        self.assertIsNone(moduleManager.importLookup("main.py"))

    def testBindAll(self):
        moduleManager = packageManager()
        modules = moduleManager.bindAll()
        self.assertEqual(len(modules), len(moduleManager.modules))
        self.assertTrue(all(m.state == BOUND for m in modules))
        self.assertIn("value", moduleManager.getModule("pkg.sub").scope.symbolTable)
        self.assertIn("other", moduleManager.getModule("pkg.other").scope.symbolTable)

    def testEntryFromDisk(self):
        with tempfile.TemporaryDirectory() as root:
            os.makedirs(os.path.join(root, "pkg"))
            files = {
                "main.py": "import pkg\nfrom pkg import mod\nfrom pkg.mod import value\n",
                os.path.join("pkg", "__init__.py"): "",
                os.path.join("pkg", "mod.py"): "value = 1\n",
            }
            for name, text in files.items():
                with open(os.path.join(root, name), "w") as f:
                    f.write(text)

            moduleManager = ModuleManager(root)
            moduleManager.addEntry(file="main.py")
            [m] = moduleManager.bindEntrys()
            self.assertEqual(self.getDiagnosticKeys(m), [])
            self.assertEqual(self.getSymbolNames(m.scope), ["mod", "pkg", "value"])

            modDecl = m.scope.lookUpSymbol("mod").getDeclarations()[0]
            self.assertEqual(os.path.normcase(modDecl.submoduleFallback.path),
                             os.path.normcase(os.path.join(root, "pkg", "mod.py")))

            with self.assertRaises(ValueError):
                moduleManager.addEntry(file="1bad.py")
            with self.assertRaises(ImportError):
                moduleManager.addEntry(module="no_such_module_for_binding")


if __name__ == "__main__":
    unittest.main()
