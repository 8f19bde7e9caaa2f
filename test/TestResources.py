"""Binds each project under resources/<group>/<case>/ from main.py and
compares module symbols, diagnostics and __all__ with expected.json."""

import json
import os
import unittest

from BinderTestBase import BinderTestBase
from PyBinder.ModuleManager import ModuleManager


class ResourceTestBase(BinderTestBase):

    def _test(self, path: str):
        moduleManager = ModuleManager(path)
        moduleManager.addEntry(file="main.py")
        moduleManager.bindEntrys()

        expectedPath = os.path.join(path, "expected.json")
        with open(expectedPath, "r") as f:
            expected = json.load(f)

        for fqname, names in expected.get("symbols", {}).items():
            m = moduleManager.bindModule(fqname)
            self.assertEqual(self.getSymbolNames(m.scope), sorted(names), fqname)

        for fqname, keys in expected.get("diagnostics", {}).items():
            m = moduleManager.bindModule(fqname)
            self.assertEqual(self.getDiagnosticKeys(m), sorted(keys), fqname)

        for fqname, names in expected.get("dunderAll", {}).items():
            m = moduleManager.bindModule(fqname)
            self.assertEqual(m.results.dunderAllNames, names, fqname)

        # modules without expected diagnostics must have none
        for fqname in expected.get("symbols", {}):
            if(fqname not in expected.get("diagnostics", {})):
                self.assertEqual(self.getDiagnosticKeys(moduleManager.getModule(fqname)), [], fqname)


def getResourceTest(path):
    return lambda self: self._test(path)


resourcePath = os.path.join(os.path.dirname(__file__), "resources")
for item in sorted(os.listdir(resourcePath)):
    itemPath = os.path.join(resourcePath, item)
    if(not os.path.isdir(itemPath)):
        continue
    clsName = "Test" + "".join([s.capitalize() for s in item.split("_")])
    attrs = {}
    for subitem in sorted(os.listdir(itemPath)):
        subitemPath = os.path.join(itemPath, subitem)
        if(not os.path.isfile(os.path.join(subitemPath, "expected.json"))):
            continue
        attrName = "test" + "".join([s.capitalize() for s in subitem.split("_")])
        attrs[attrName] = getResourceTest(subitemPath)
    if(attrs):
        globals()[clsName] = type(clsName, (ResourceTestBase, ), attrs)


if __name__ == "__main__":
    unittest.main(verbosity=2)
