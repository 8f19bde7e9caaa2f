import ast
from enum import IntFlag
from typing import List, Optional, Set


class FlowFlags(IntFlag):
    UNREACHABLE = 1 << 0                        # code that can't execute
    START = 1 << 1                              # entry of an execution scope
    BRANCH_LABEL = 1 << 2                       # join point for forward control flow
    LOOP_LABEL = 1 << 3                         # join point for backward control flow
    ASSIGNMENT = 1 << 4
    UNBIND = 1 << 5                             # with ASSIGNMENT, the target is deleted
    WILDCARD_IMPORT = 1 << 6
    TRUE_CONDITION = 1 << 7
    FALSE_CONDITION = 1 << 8
    CALL = 1 << 9
    PRE_FINALLY_GATE = 1 << 10                  # links the pre-finally label with return/raise paths
    POST_FINALLY = 1 << 11
    ASSIGNMENT_ALIAS = 1 << 12                  # a symbol aliased to the same name in an outer scope
    VARIABLE_ANNOTATION = 1 << 13
    POST_CONTEXT_MANAGER = 1 << 14              # with BRANCH_LABEL, exceptions swallowed by __exit__
    TRUE_NEVER_CONDITION = 1 << 15
    FALSE_NEVER_CONDITION = 1 << 16


class FlowNode:
    flags: FlowFlags
    id: int

    def __init__(self, flags: FlowFlags, id: int):
        self.flags = flags
        self.id = id

    def isUnreachable(self) -> bool:
        return bool(self.flags & FlowFlags.UNREACHABLE)

    def getAntecedents(self) -> List['FlowNode']:
        antecedent = getattr(self, "antecedent", None)
        return [antecedent] if antecedent is not None else []

    def __repr__(self):
        return f"{self.__class__.__name__}#{self.id}"


# shared by every binder run, so reachability checks can compare by identity
UNREACHABLE_FLOW_NODE = FlowNode(FlowFlags.UNREACHABLE, 0)


class FlowLabel(FlowNode):
    antecedents: List[FlowNode]
    _antecedentIds: Set[int]

    def __init__(self, flags: FlowFlags, id: int):
        super().__init__(flags, id)
        self.antecedents = []
        self._antecedentIds = set()

    def addAntecedent(self, antecedent: FlowNode) -> bool:
        if(antecedent.id in self._antecedentIds):
            return False
        self._antecedentIds.add(antecedent.id)
        self.antecedents.append(antecedent)
        return True

    def getAntecedents(self) -> List[FlowNode]:
        return list(self.antecedents)


class FlowPostContextManagerLabel(FlowLabel):
    expressions: List[ast.expr]                 # the context manager expressions of the "with"
    isAsync: bool

    def __init__(self, id: int, expressions: List[ast.expr], isAsync: bool):
        super().__init__(FlowFlags.POST_CONTEXT_MANAGER | FlowFlags.BRANCH_LABEL, id)
        self.expressions = expressions
        self.isAsync = isAsync


class FlowAssignment(FlowNode):
    node: ast.AST                               # Name, Attribute, Subscript or a name-bearing statement
    referenceKey: str
    antecedent: FlowNode
    targetSymbolId: Optional[int]               # None when the target is not a bare name

    def __init__(self, id: int, node: ast.AST, referenceKey: str, antecedent: FlowNode, targetSymbolId: Optional[int], unbound: bool=False):
        flags = FlowFlags.ASSIGNMENT | FlowFlags.UNBIND if unbound else FlowFlags.ASSIGNMENT
        super().__init__(flags, id)
        self.node = node
        self.referenceKey = referenceKey
        self.antecedent = antecedent
        self.targetSymbolId = targetSymbolId

    def isUnbind(self) -> bool:
        return bool(self.flags & FlowFlags.UNBIND)


class FlowAssignmentAlias(FlowNode):
    antecedent: FlowNode
    targetSymbolId: int
    aliasSymbolId: int

    def __init__(self, id: int, antecedent: FlowNode, targetSymbolId: int, aliasSymbolId: int):
        super().__init__(FlowFlags.ASSIGNMENT_ALIAS, id)
        self.antecedent = antecedent
        self.targetSymbolId = targetSymbolId
        self.aliasSymbolId = aliasSymbolId


class FlowVariableAnnotation(FlowNode):
    antecedent: FlowNode

    def __init__(self, id: int, antecedent: FlowNode):
        super().__init__(FlowFlags.VARIABLE_ANNOTATION, id)
        self.antecedent = antecedent


class FlowWildcardImport(FlowNode):
    node: ast.ImportFrom
    names: List[str]
    antecedent: FlowNode

    def __init__(self, id: int, node: ast.ImportFrom, names: List[str], antecedent: FlowNode):
        super().__init__(FlowFlags.WILDCARD_IMPORT, id)
        self.node = node
        self.names = names
        self.antecedent = antecedent


class FlowCondition(FlowNode):
    expression: ast.expr
    reference: Optional[ast.Name]               # first bare name narrowed by the expression
    antecedent: FlowNode

    def __init__(self, flags: FlowFlags, id: int, expression: ast.expr, reference: Optional[ast.Name], antecedent: FlowNode):
        super().__init__(flags, id)
        self.expression = expression
        self.reference = reference
        self.antecedent = antecedent


class FlowCall(FlowNode):
    node: ast.Call
    antecedent: FlowNode

    def __init__(self, id: int, node: ast.Call, antecedent: FlowNode):
        super().__init__(FlowFlags.CALL, id)
        self.node = node
        self.antecedent = antecedent


class FlowPreFinallyGate(FlowNode):
    antecedent: FlowNode
    isGateClosed: bool                          # closed while evaluating the normal path through finally

    def __init__(self, id: int, antecedent: FlowNode, isGateClosed: bool=False):
        super().__init__(FlowFlags.PRE_FINALLY_GATE, id)
        self.antecedent = antecedent
        self.isGateClosed = isGateClosed


class FlowPostFinally(FlowNode):
    antecedent: FlowNode
    finallyNode: ast.AST                        # the try statement owning the finally block
    preFinallyGate: FlowPreFinallyGate

    def __init__(self, id: int, antecedent: FlowNode, finallyNode: ast.AST, preFinallyGate: FlowPreFinallyGate):
        super().__init__(FlowFlags.POST_FINALLY, id)
        self.antecedent = antecedent
        self.finallyNode = finallyNode
        self.preFinallyGate = preFinallyGate

    def getAntecedents(self) -> List[FlowNode]:
        return [self.antecedent, self.preFinallyGate]


def isFlowNodeReachable(flowNode: FlowNode, sourceFlowNode: FlowNode=None) -> bool:
    """Walk antecedents back from flowNode. Without sourceFlowNode, answers
    whether a start node can be reached; otherwise whether sourceFlowNode lies
    on some path into flowNode."""
    visited = set()
    pending = [flowNode]
    while(pending):
        curNode = pending.pop()
        if(curNode.id in visited):
            continue
        visited.add(curNode.id)

        if(curNode.isUnreachable()):
            continue
        if(sourceFlowNode is not None):
            if(curNode is sourceFlowNode):
                return True
        elif(curNode.flags & FlowFlags.START):
            return True

        # PostFinally's gate only matters to the type evaluator
        if(isinstance(curNode, FlowPostFinally)):
            pending.append(curNode.antecedent)
        else:
            pending.extend(curNode.getAntecedents())
    return False
