import ast
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Set

from .CodeFlow import FlowNode

if TYPE_CHECKING:
    from .Declaration import Declaration
    from .FileInfo import FileInfo
    from .ImportResult import ImportResult
    from .Scope import Scope


# the parser shares one instance of each of these across the whole tree
_SHARED_NODE_TYPES = (ast.expr_context, ast.boolop, ast.operator, ast.unaryop, ast.cmpop)


class NodeInfo:
    """Side table for one parsed module.

    Every node gets an arena index from a single pre-order walk done at
    construction time; everything the binder learns about a node is stored
    against that index, so the tree itself is never touched. Import records
    are written by the import resolver before binding and survive
    cleanNodeAnalysisInfo(); everything else is binder output.
    """

    tree: ast.Module
    nodes: List[ast.AST]                        # index -> node
    _indices: Dict[int, int]                    # id(node) -> index
    _parents: Dict[int, ast.AST]                # index -> parent node
    fileInfo: Optional['FileInfo']

    def __init__(self, tree: ast.Module):
        self.tree = tree
        self.nodes = []
        self._indices = {}
        self._parents = {}

        pending = [(tree, None)]
        while(pending):
            node, parent = pending.pop()
            index = len(self.nodes)
            self.nodes.append(node)
            self._indices[id(node)] = index
            if(parent is not None):
                self._parents[index] = parent
            # reversed so that children are numbered in source order
            children = [child for child in ast.iter_child_nodes(node) if not isinstance(child, _SHARED_NODE_TYPES)]
            for child in reversed(children):
                pending.append((child, node))

        self.fileInfo = None
        self._importInfo = {}
        self._resetAnalysisInfo()

    def _resetAnalysisInfo(self):
        self._scopes: Dict[int, 'Scope'] = {}
        self._declarations: Dict[int, 'Declaration'] = {}
        self._flowNodes: Dict[int, FlowNode] = {}
        self._afterFlowNodes: Dict[int, FlowNode] = {}
        self._afterBodyFlowNodes: Dict[int, FlowNode] = {}
        self._codeFlowExpressions: Dict[int, Set[str]] = {}
        self._dunderAllNames: Dict[int, Optional[List[str]]] = {}

    def cleanNodeAnalysisInfo(self):
        self.fileInfo = None
        self._resetAnalysisInfo()

    def getNodeIndex(self, node: ast.AST) -> int:
        index = self._indices.get(id(node))
        assert(index is not None and self.nodes[index] is node), "node does not belong to this tree"
        return index

    def getParent(self, node: ast.AST) -> Optional[ast.AST]:
        return self._parents.get(self.getNodeIndex(node))

    def iterParents(self, node: ast.AST) -> Iterator[ast.AST]:
        parent = self.getParent(node)
        while(parent is not None):
            yield parent
            parent = self.getParent(parent)

    def getImportInfo(self, node: ast.AST) -> Optional['ImportResult']:
        return self._importInfo.get(self.getNodeIndex(node))

    def setImportInfo(self, node: ast.AST, importResult: 'ImportResult'):
        self._importInfo[self.getNodeIndex(node)] = importResult

    def getScope(self, node: ast.AST) -> Optional['Scope']:
        return self._scopes.get(self.getNodeIndex(node))

    def setScope(self, node: ast.AST, scope: 'Scope'):
        self._scopes[self.getNodeIndex(node)] = scope

    def getDeclaration(self, node: ast.AST) -> Optional['Declaration']:
        return self._declarations.get(self.getNodeIndex(node))

    def setDeclaration(self, node: ast.AST, declaration: 'Declaration'):
        self._declarations[self.getNodeIndex(node)] = declaration

    def getFlowNode(self, node: ast.AST) -> Optional[FlowNode]:
        return self._flowNodes.get(self.getNodeIndex(node))

    def setFlowNode(self, node: ast.AST, flowNode: FlowNode):
        self._flowNodes[self.getNodeIndex(node)] = flowNode

    def getAfterFlowNode(self, node: ast.AST) -> Optional[FlowNode]:
        return self._afterFlowNodes.get(self.getNodeIndex(node))

    def setAfterFlowNode(self, node: ast.AST, flowNode: FlowNode):
        self._afterFlowNodes[self.getNodeIndex(node)] = flowNode

    # flow at the end of a function body, before returns are joined in
    def getAfterBodyFlowNode(self, node: ast.AST) -> Optional[FlowNode]:
        return self._afterBodyFlowNodes.get(self.getNodeIndex(node))

    def setAfterBodyFlowNode(self, node: ast.AST, flowNode: FlowNode):
        self._afterBodyFlowNodes[self.getNodeIndex(node)] = flowNode

    def getCodeFlowExpressions(self, node: ast.AST) -> Optional[Set[str]]:
        return self._codeFlowExpressions.get(self.getNodeIndex(node))

    def setCodeFlowExpressions(self, node: ast.AST, expressions: Set[str]):
        self._codeFlowExpressions[self.getNodeIndex(node)] = expressions

    def getDunderAllNames(self, node: ast.AST) -> Optional[List[str]]:
        return self._dunderAllNames.get(self.getNodeIndex(node))

    def setDunderAllNames(self, node: ast.AST, names: Optional[List[str]]):
        self._dunderAllNames[self.getNodeIndex(node)] = names

    def isCodeUnreachable(self, node: ast.AST) -> bool:
        # the nearest stamped ancestor decides
        curNode = node
        while(curNode is not None):
            flowNode = self.getFlowNode(curNode)
            if(flowNode is not None):
                return flowNode.isUnreachable()
            curNode = self.getParent(curNode)
        return False

    def iterScopedNodes(self) -> Iterator[ast.AST]:
        for index in sorted(self._scopes):
            yield self.nodes[index]

    def iterFlowNodes(self) -> Iterator[FlowNode]:
        yield from self._flowNodes.values()
        yield from self._afterFlowNodes.values()
        yield from self._afterBodyFlowNodes.values()
