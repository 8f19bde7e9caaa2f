import ast
import textwrap
import unittest
from typing import List

from PyBinder.Binding.Binder import MODULE_INTRINSICS
from PyBinder.ModuleManager import Module, ModuleManager
from PyBinder.Semantics.CodeFlow import FlowNode


class BinderTestBase(unittest.TestCase):
    def setUp(self) -> None:
        self.maxDiff = None

    def bindSource(self, source: str, moduleName: str="main", moduleManager: ModuleManager=None, **kwargs) -> Module:
        moduleManager = moduleManager or ModuleManager()
        moduleManager.addModule(moduleName, textwrap.dedent(source), **kwargs)
        return moduleManager.bindModule(moduleName)

    def findNodes(self, m: Module, nodeType, **attrs) -> List[ast.AST]:
        return [node for node in m.nodeInfo.nodes
                if isinstance(node, nodeType) and all(getattr(node, k, None) == v for k, v in attrs.items())]

    def findNode(self, m: Module, nodeType, index: int=0, **attrs) -> ast.AST:
        nodes = self.findNodes(m, nodeType, **attrs)
        self.assertTrue(len(nodes) > index, f"no {nodeType.__name__} matching {attrs}")
        return nodes[index]

    def getScopeOf(self, m: Module, nodeType, **attrs):
        scope = m.nodeInfo.getScope(self.findNode(m, nodeType, **attrs))
        self.assertIsNotNone(scope)
        return scope

    def getSymbolNames(self, scope) -> List[str]:
        intrinsics = {name for name, _ in MODULE_INTRINSICS}
        return sorted(name for name in scope.symbolTable if name not in intrinsics)

    def getDiagnosticKeys(self, m: Module) -> List[str]:
        return sorted(m.fileInfo.diagnosticSink.getMessageKeys())

    def iterFlowGraph(self, *flowNodes: FlowNode):
        """Every flow node reachable backwards from the given ones."""
        seen = set()
        pending = list(flowNodes)
        while(pending):
            flowNode = pending.pop()
            if(flowNode is None or flowNode.id in seen):
                continue
            seen.add(flowNode.id)
            yield flowNode
            pending.extend(flowNode.getAntecedents())

    def assertReachable(self, m: Module, node: ast.AST):
        self.assertFalse(m.nodeInfo.isCodeUnreachable(node), ast.dump(node))

    def assertUnreachable(self, m: Module, node: ast.AST):
        self.assertTrue(m.nodeInfo.isCodeUnreachable(node), ast.dump(node))
