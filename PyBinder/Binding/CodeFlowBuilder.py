import ast
import logging
from typing import TYPE_CHECKING, List, Optional, Set

from ..Semantics.CodeFlow import (UNREACHABLE_FLOW_NODE, FlowAssignment, FlowAssignmentAlias, FlowCall,
                                  FlowCondition, FlowFlags, FlowLabel, FlowNode, FlowPostContextManagerLabel,
                                  FlowVariableAnnotation, FlowWildcardImport)
from ..Semantics.Diagnostic import Diagnostic, Localizer
from ..Semantics.IdGenerator import IdGenerator
from ..Semantics.TextRange import convertNodeToRange
from . import StaticExpressions
from .Narrowing import (DEFAULT_NARROWING_POLICY, NarrowingPolicy, classify, createKeyForReference,
                        isCodeFlowSupportedForReference)
from .YieldScanner import YieldScanner

if TYPE_CHECKING:
    from ..Semantics.Declaration import FunctionDeclaration
    from ..Semantics.FileInfo import FileInfo
    from ..Semantics.NodeInfo import NodeInfo
    from ..Semantics.Scope import Scope

logger = logging.getLogger(__name__)


def isLogicalExpression(node: ast.AST) -> bool:
    return isinstance(node, ast.BoolOp) or (isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.Not))


# The first pass over a module: walks statements and expressions once, in
# evaluation order, and threads currentFlowNode through them. Subclasses add
# scopes, loops, exceptions and declarations on top of these primitives.
class CodeFlowBuilder(ast.NodeVisitor):
    fileInfo: 'FileInfo'
    nodeInfo: 'NodeInfo'
    idGenerator: IdGenerator
    narrowingPolicy: NarrowingPolicy

    currentScope: 'Scope'
    currentFlowNode: Optional[FlowNode]
    currentReferenceMap: Optional[Set[str]]     # reference keys of the current execution scope
    targetFunctionDeclaration: Optional['FunctionDeclaration']

    currentTrueTarget: Optional[FlowLabel]      # only set while binding a condition
    currentFalseTarget: Optional[FlowLabel]
    currentExceptTargets: Optional[List[FlowLabel]]
    finallyTargets: List[FlowLabel]
    currentReturnTarget: Optional[FlowLabel]
    currentBreakTarget: Optional[FlowLabel]
    currentContinueTarget: Optional[FlowLabel]

    typingImportAliases: List[str]              # local names of typing / typing_extensions
    sysImportAliases: List[str]

    def __init__(self, fileInfo: 'FileInfo', nodeInfo: 'NodeInfo', idGenerator: IdGenerator=None,
                 narrowingPolicy: NarrowingPolicy=None):
        self.fileInfo = fileInfo
        self.nodeInfo = nodeInfo
        self.idGenerator = idGenerator or IdGenerator()
        self.narrowingPolicy = narrowingPolicy or DEFAULT_NARROWING_POLICY

        self.currentScope = None
        self.currentFlowNode = None
        self.currentReferenceMap = None
        self.targetFunctionDeclaration = None

        self.currentTrueTarget = None
        self.currentFalseTarget = None
        self.currentExceptTargets = None
        self.finallyTargets = []
        self.currentReturnTarget = None
        self.currentBreakTarget = None
        self.currentContinueTarget = None

        self.typingImportAliases = []
        self.sysImportAliases = []

    def visit(self, node: ast.AST):
        # true/false targets belong to the condition being bound, not to its sub-expressions
        if(isLogicalExpression(node)):
            return super().visit(node)

        savedTrueTarget = self.currentTrueTarget
        savedFalseTarget = self.currentFalseTarget
        self.currentTrueTarget = None
        self.currentFalseTarget = None
        try:
            return super().visit(node)
        finally:
            self.currentTrueTarget = savedTrueTarget
            self.currentFalseTarget = savedFalseTarget

    def walkMultiple(self, nodes):
        for node in nodes:
            if(node is not None):
                self.visit(node)

    def walkStatements(self, statements: List[ast.stmt]):
        foundUnreachableStatement = False
        for statement in statements:
            self.nodeInfo.setFlowNode(statement, self.currentFlowNode)

            if(not foundUnreachableStatement):
                foundUnreachableStatement = self.isCodeUnreachable()

            if(not foundUnreachableStatement):
                self.visit(statement)
            elif(self.targetFunctionDeclaration and not self.targetFunctionDeclaration.isGenerator):
                # a yield makes a generator even where it can't run
                if(YieldScanner().checkContainsYield(statement)):
                    self.targetFunctionDeclaration.isGenerator = True

    # diagnostics

    def addError(self, messageKey: str, node: ast.AST, **kwargs) -> Diagnostic:
        diagnostic = Diagnostic(messageKey, Localizer.format(messageKey, **kwargs), convertNodeToRange(node))
        return self.fileInfo.diagnosticSink.addDiagnostic(diagnostic)

    def addDiagnostic(self, rule: str, messageKey: str, node: ast.AST, **kwargs) -> Optional[Diagnostic]:
        if(not self.fileInfo.diagnosticRuleSet.isEnabled(rule)):
            return None
        diagnostic = Diagnostic(messageKey, Localizer.format(messageKey, **kwargs), convertNodeToRange(node), rule)
        return self.fileInfo.diagnosticSink.addDiagnostic(diagnostic)

    # flow nodes

    def nextFlowNodeId(self) -> int:
        return self.idGenerator.next()

    def isCodeUnreachable(self) -> bool:
        return self.currentFlowNode.isUnreachable()

    def createStartFlowNode(self) -> FlowNode:
        return FlowNode(FlowFlags.START, self.nextFlowNodeId())

    def createBranchLabel(self) -> FlowLabel:
        return FlowLabel(FlowFlags.BRANCH_LABEL, self.nextFlowNodeId())

    def createLoopLabel(self) -> FlowLabel:
        return FlowLabel(FlowFlags.LOOP_LABEL, self.nextFlowNodeId())

    def createContextManagerLabel(self, expressions: List[ast.expr], isAsync: bool) -> FlowPostContextManagerLabel:
        return FlowPostContextManagerLabel(self.nextFlowNodeId(), expressions, isAsync)

    def finishFlowLabel(self, label: FlowLabel) -> FlowNode:
        if(len(label.antecedents) == 0):
            return UNREACHABLE_FLOW_NODE

        # loop labels must stay, they get back edges later
        if(len(label.antecedents) == 1 and label.flags == FlowFlags.BRANCH_LABEL):
            return label.antecedents[0]

        return label

    def addAntecedent(self, label: FlowLabel, antecedent: FlowNode):
        if(not self.isCodeUnreachable()):
            label.addAntecedent(antecedent)

    def addExceptTargets(self, flowNode: FlowNode):
        if(self.currentExceptTargets):
            for label in self.currentExceptTargets:
                self.addAntecedent(label, flowNode)

    def createCallFlowNode(self, node: ast.Call):
        if(not self.isCodeUnreachable()):
            self.currentFlowNode = FlowCall(self.nextFlowNodeId(), node, self.currentFlowNode)

        self.nodeInfo.setFlowNode(node, self.currentFlowNode)

        if(not self.isCodeUnreachable()):
            self.addExceptTargets(self.currentFlowNode)

    def createAssignmentAliasFlowNode(self, targetSymbolId: int, aliasSymbolId: int):
        if(not self.isCodeUnreachable()):
            self.currentFlowNode = FlowAssignmentAlias(self.nextFlowNodeId(), self.currentFlowNode, targetSymbolId, aliasSymbolId)

    def createVariableAnnotationFlowNode(self):
        if(not self.isCodeUnreachable()):
            self.currentFlowNode = FlowVariableAnnotation(self.nextFlowNodeId(), self.currentFlowNode)

    def createFlowWildcardImport(self, node: ast.ImportFrom, names: List[str]):
        if(not self.isCodeUnreachable()):
            flowNode = FlowWildcardImport(self.nextFlowNodeId(), node, names, self.currentFlowNode)
            self.addExceptTargets(flowNode)
            self.currentFlowNode = flowNode

        self.nodeInfo.setFlowNode(node, self.currentFlowNode)

    def createFlowAssignment(self, node: ast.AST, unbound: bool=False, name: str=None):
        """Assignment (or deletion) of a reference. Statements that bind a name
        without a Name node, like "def f" or "except E as e", pass that name."""
        targetSymbolId = None
        if(name is None and isinstance(node, ast.Name)):
            name = node.id
        if(name is not None):
            symbolWithScope = self.currentScope.lookUpSymbolRecursive(name)
            assert(symbolWithScope is not None), f"no symbol for assignment target '{name}'"
            targetSymbolId = symbolWithScope.symbol.id

        prevFlowNode = self.currentFlowNode
        isSupported = name is not None or isCodeFlowSupportedForReference(node)
        if(not self.isCodeUnreachable() and isSupported):
            referenceKey = name if name is not None else createKeyForReference(node)
            flowNode = FlowAssignment(self.nextFlowNodeId(), node, referenceKey, self.currentFlowNode, targetSymbolId, unbound)
            self.currentReferenceMap.add(referenceKey)

            # setting an attribute can raise
            if(isinstance(node, ast.Attribute)):
                self.addExceptTargets(flowNode)
            self.currentFlowNode = flowNode

        # a statement keeps the flow node live before it
        if(isinstance(node, ast.stmt)):
            return
        if(not unbound or self.nodeInfo.getFlowNode(node) is None):
            self.nodeInfo.setFlowNode(node, prevFlowNode if unbound else self.currentFlowNode)

    def createAssignmentTargetFlowNodes(self, target: ast.AST, walkTargets: bool, unbound: bool):
        if(isinstance(target, (ast.Name, ast.Attribute, ast.Subscript))):
            self.createFlowAssignment(target, unbound)
            if(walkTargets):
                self.visit(target)
        elif(isinstance(target, (ast.Tuple, ast.List))):
            for expr in target.elts:
                self.createAssignmentTargetFlowNodes(expr, walkTargets, unbound)
        elif(isinstance(target, ast.Starred)):
            self.createAssignmentTargetFlowNodes(target.value, False, unbound)
            if(walkTargets):
                self.visit(target)
        elif(walkTargets):
            self.visit(target)

    # conditions

    def evaluateStaticCondition(self, node: ast.expr) -> Optional[bool]:
        return StaticExpressions.evaluateStaticBoolLikeExpression(node, self.fileInfo.executionEnvironment,
            self.typingImportAliases, self.sysImportAliases)

    def bindConditional(self, node: ast.expr, trueTarget: FlowLabel, falseTarget: FlowLabel):
        savedTrueTarget = self.currentTrueTarget
        savedFalseTarget = self.currentFalseTarget
        self.currentTrueTarget = trueTarget
        self.currentFalseTarget = falseTarget
        self.visit(node)
        self.currentTrueTarget = savedTrueTarget
        self.currentFalseTarget = savedFalseTarget

        # and/or/not have already fed both targets
        if(not isLogicalExpression(node)):
            self.addAntecedent(trueTarget, self.createFlowConditional(FlowFlags.TRUE_CONDITION, self.currentFlowNode, node))
            self.addAntecedent(falseTarget, self.createFlowConditional(FlowFlags.FALSE_CONDITION, self.currentFlowNode, node))

    def createFlowConditional(self, flags: FlowFlags, antecedent: FlowNode, expression: ast.expr) -> FlowNode:
        if(antecedent.isUnreachable()):
            return antecedent

        staticValue = self.evaluateStaticCondition(expression)
        if((staticValue is True and flags & FlowFlags.FALSE_CONDITION) or
                (staticValue is False and flags & FlowFlags.TRUE_CONDITION)):
            return UNREACHABLE_FLOW_NODE

        result = classify(expression, policy=self.narrowingPolicy)
        if(not result.isNarrowing):
            return antecedent

        for reference in result.references:
            self.currentReferenceMap.add(createKeyForReference(reference))

        names = result.getNameReferences()
        conditionalFlowNode = FlowCondition(flags, self.nextFlowNodeId(), expression, names[0] if names else None, antecedent)
        self.addExceptTargets(conditionalFlowNode)
        return conditionalFlowNode

    def bindNeverCondition(self, node: ast.expr, target: FlowLabel, isPositiveTest: bool):
        """Adds the edge taken when an "if" without "else" falls through, marked
        so the type evaluator can prove the fall through impossible."""
        if(isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.Not)):
            self.bindNeverCondition(node.operand, target, not isPositiveTest)
        elif(isinstance(node, ast.BoolOp)):
            self._bindNeverConditionOperands(node.op, node.values, target, isPositiveTest)
        else:
            result = classify(node, neverNarrowing=True, policy=self.narrowingPolicy)
            if(result.isNarrowing and result.getNameReferences()):
                flags = FlowFlags.TRUE_NEVER_CONDITION if isPositiveTest else FlowFlags.FALSE_NEVER_CONDITION
                self.currentFlowNode = self.createFlowConditional(flags, self.currentFlowNode, node)
            self.addAntecedent(target, self.currentFlowNode)

    def _bindNeverConditionOperands(self, op: ast.boolop, values: List[ast.expr], target: FlowLabel, isPositiveTest: bool):
        left = values[0]
        if(len(values) == 1):
            self.bindNeverCondition(left, target, isPositiveTest)
            return

        if(isinstance(op, ast.And)):
            savedCurrentFlowNode = self.currentFlowNode
            self.bindNeverCondition(left, target, isPositiveTest)
            self.currentFlowNode = savedCurrentFlowNode
            self._bindNeverConditionOperands(op, values[1:], target, isPositiveTest)
        else:
            initialCurrentFlowNode = self.currentFlowNode
            afterLabel = self.createBranchLabel()
            self.bindNeverCondition(left, afterLabel, isPositiveTest)
            if(initialCurrentFlowNode is not self.currentFlowNode):
                self.currentFlowNode = self.finishFlowLabel(afterLabel)
                prevCurrentNode = self.currentFlowNode
                self._bindNeverConditionOperands(op, values[1:], target, isPositiveTest)
                if(prevCurrentNode is self.currentFlowNode):
                    self.currentFlowNode = initialCurrentFlowNode

    # expressions

    def visit_Name(self, node: ast.Name):
        self.nodeInfo.setFlowNode(node, self.currentFlowNode)

    def visit_Attribute(self, node: ast.Attribute):
        self.nodeInfo.setFlowNode(node, self.currentFlowNode)
        self.visit(node.value)

    def visit_Subscript(self, node: ast.Subscript):
        self.nodeInfo.setFlowNode(node, self.currentFlowNode)
        self.visit(node.value)
        self.visit(node.slice)

    def visit_BoolOp(self, node: ast.BoolOp):
        trueTarget = self.currentTrueTarget
        falseTarget = self.currentFalseTarget
        postRightLabel = None
        if(not trueTarget or not falseTarget):
            postRightLabel = self.createBranchLabel()
            trueTarget = falseTarget = postRightLabel

        # "a and b and c" short-circuits left to right
        for value in node.values[:-1]:
            preRightLabel = self.createBranchLabel()
            if(isinstance(node.op, ast.And)):
                self.bindConditional(value, preRightLabel, falseTarget)
            else:
                self.bindConditional(value, trueTarget, preRightLabel)
            self.currentFlowNode = self.finishFlowLabel(preRightLabel)

        self.bindConditional(node.values[-1], trueTarget, falseTarget)
        if(postRightLabel):
            self.currentFlowNode = self.finishFlowLabel(postRightLabel)

    def visit_UnaryOp(self, node: ast.UnaryOp):
        if(isinstance(node.op, ast.Not) and self.currentTrueTarget and self.currentFalseTarget):
            self.bindConditional(node.operand, self.currentFalseTarget, self.currentTrueTarget)
        else:
            savedTrueTarget = self.currentTrueTarget
            savedFalseTarget = self.currentFalseTarget
            self.currentTrueTarget = None
            self.currentFalseTarget = None
            self.visit(node.operand)
            self.currentTrueTarget = savedTrueTarget
            self.currentFalseTarget = savedFalseTarget

    def visit_IfExp(self, node: ast.IfExp):
        trueLabel = self.createBranchLabel()
        falseLabel = self.createBranchLabel()
        postExpressionLabel = self.createBranchLabel()

        self.bindConditional(node.test, trueLabel, falseLabel)

        self.currentFlowNode = self.finishFlowLabel(trueLabel)
        self.visit(node.body)
        self.addAntecedent(postExpressionLabel, self.currentFlowNode)

        self.currentFlowNode = self.finishFlowLabel(falseLabel)
        self.visit(node.orelse)
        self.addAntecedent(postExpressionLabel, self.currentFlowNode)

        self.currentFlowNode = self.finishFlowLabel(postExpressionLabel)

    # statements

    def visit_If(self, node: ast.If):
        # an elif chain is walked in a loop and all branches join one label
        postIfLabel = self.createBranchLabel()
        while(True):
            thenLabel = self.createBranchLabel()
            elseLabel = self.createBranchLabel()

            constExprValue = self.evaluateStaticCondition(node.test)

            self.bindConditional(node.test, thenLabel, elseLabel)

            # a condition fixed by the execution environment cuts off one branch
            self.currentFlowNode = UNREACHABLE_FLOW_NODE if constExprValue is False else self.finishFlowLabel(thenLabel)
            self.walkStatements(node.body)
            self.addAntecedent(postIfLabel, self.currentFlowNode)

            self.currentFlowNode = UNREACHABLE_FLOW_NODE if constExprValue is True else self.finishFlowLabel(elseLabel)
            orelse = node.orelse
            if(len(orelse) == 1 and isinstance(orelse[0], ast.If) and not self.isCodeUnreachable()):
                node = orelse[0]
                self.nodeInfo.setFlowNode(node, self.currentFlowNode)
                continue

            if(orelse):
                self.walkStatements(orelse)
            else:
                self.bindNeverCondition(node.test, postIfLabel, False)
            self.addAntecedent(postIfLabel, self.currentFlowNode)
            break

        self.currentFlowNode = self.finishFlowLabel(postIfLabel)

    def visit_Assert(self, node: ast.Assert):
        assertTrueLabel = self.createBranchLabel()
        assertFalseLabel = self.createBranchLabel()

        self.bindConditional(node.test, assertTrueLabel, assertFalseLabel)

        if(node.msg):
            self.currentFlowNode = self.finishFlowLabel(assertFalseLabel)
            self.visit(node.msg)

        self.currentFlowNode = self.finishFlowLabel(assertTrueLabel)
