import json
import unittest

from BinderTestBase import BinderTestBase
from PyBinder.Export import to_json
from PyBinder.ModuleManager import ModuleManager


class TestExport(BinderTestBase):
    def testModuleExport(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("pkg", "", isPackage=True)
        moduleManager.addModule("pkg.sub", "value = 1\n")
        m = self.bindSource('''
            """Exported."""
            import pkg.sub
            from typing import Final
            __all__ = ["LIMIT"]
            LIMIT: Final = 3
            def f(x):
                if x is None:
                    return
                yield x
            nonlocal y
        ''', moduleManager=moduleManager)
        [exported] = json.loads(to_json([m]))

        self.assertEqual(exported["module"], "main")
        self.assertEqual(exported["docString"], "Exported.")
        self.assertEqual(exported["dunderAll"], ["LIMIT"])
        self.assertEqual([d["messageKey"] for d in exported["diagnostics"]], ["nonLocalInModule"])

        moduleScope, functionScope = exported["scopes"]
        self.assertEqual(sorted(functionScope["symbols"]), ["x"])
        pkgDecl = moduleScope["symbols"]["pkg"]["declarations"][0]
        self.assertEqual(pkgDecl["implicitImports"], ["sub"])
        limitDecl = moduleScope["symbols"]["LIMIT"]["declarations"][0]
        self.assertTrue(limitDecl["isFinal"])
        functionDecl = moduleScope["symbols"]["f"]["declarations"][0]
        self.assertTrue(functionDecl["isGenerator"])

        expressions = [flowNode.get("expression") for flowNode in exported["flowGraph"].values()]
        self.assertIn("x is None", expressions)

    def testUnboundModule(self):
        moduleManager = ModuleManager()
        moduleManager.addModule("lazy", "x = 1\n")
        [exported] = json.loads(to_json([moduleManager.getModule("lazy")]))
        self.assertEqual(exported, {"module": "lazy", "path": "lazy.py", "bound": False})


if __name__ == "__main__":
    unittest.main()
