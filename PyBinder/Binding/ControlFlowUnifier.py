import ast
from contextlib import contextmanager
from typing import List

from ..Semantics.CodeFlow import UNREACHABLE_FLOW_NODE, FlowLabel, FlowPostFinally, FlowPreFinallyGate
from ..Semantics.Declaration import VariableDeclaration
from ..Semantics.SymbolNameUtils import isConstantName
from ..Semantics.TextRange import convertNodeToRange
from .ScopeResolver import ScopeResolver


class ControlFlowUnifier(ScopeResolver):
    """Loops, try/except/finally and with statements.

    Flow nodes that can raise inside a try body feed every active except
    target; return and raise also feed the finally targets so the finally
    block sees both the normal and the abnormal way in.
    """

    nestedExceptDepth: int = 0

    @contextmanager
    def useExceptTargets(self, targets: List[FlowLabel]):
        prevExceptTargets = self.currentExceptTargets
        self.currentExceptTargets = targets
        try:
            yield
        finally:
            self.currentExceptTargets = prevExceptTargets

    @contextmanager
    def bindLoopStatement(self, preLoopLabel: FlowLabel, postLoopLabel: FlowLabel):
        savedContinueTarget = self.currentContinueTarget
        savedBreakTarget = self.currentBreakTarget
        self.currentContinueTarget = preLoopLabel
        self.currentBreakTarget = postLoopLabel
        try:
            yield
        finally:
            self.currentContinueTarget = savedContinueTarget
            self.currentBreakTarget = savedBreakTarget

    # loops

    def visit_For(self, node: ast.For):
        self.bindPossibleTupleNamedTarget(node.target)
        self.addInferredTypeAssignmentForVariable(node.target, node)

        self.visit(node.iter)

        preForLabel = self.createLoopLabel()
        preElseLabel = self.createBranchLabel()
        postForLabel = self.createBranchLabel()

        self.addAntecedent(preForLabel, self.currentFlowNode)
        self.currentFlowNode = preForLabel
        self.addAntecedent(preElseLabel, self.currentFlowNode)

        self.createAssignmentTargetFlowNodes(node.target, True, False)

        with self.bindLoopStatement(preForLabel, postForLabel):
            self.walkStatements(node.body)
            self.addAntecedent(preForLabel, self.currentFlowNode)

        self.currentFlowNode = self.finishFlowLabel(preElseLabel)
        if(node.orelse):
            self.walkStatements(node.orelse)
        self.addAntecedent(postForLabel, self.currentFlowNode)

        self.currentFlowNode = self.finishFlowLabel(postForLabel)
        self.nodeInfo.setAfterFlowNode(node, self.currentFlowNode)

    visit_AsyncFor = visit_For

    def visit_While(self, node: ast.While):
        thenLabel = self.createBranchLabel()
        elseLabel = self.createBranchLabel()
        postWhileLabel = self.createBranchLabel()

        constExprValue = self.evaluateStaticCondition(node.test)

        preLoopLabel = self.createLoopLabel()
        self.addAntecedent(preLoopLabel, self.currentFlowNode)
        self.currentFlowNode = preLoopLabel

        self.bindConditional(node.test, thenLabel, elseLabel)

        # "while True:" only leaves through break
        self.currentFlowNode = UNREACHABLE_FLOW_NODE if constExprValue is False else self.finishFlowLabel(thenLabel)
        with self.bindLoopStatement(preLoopLabel, postWhileLabel):
            self.walkStatements(node.body)
        self.addAntecedent(preLoopLabel, self.currentFlowNode)

        self.currentFlowNode = UNREACHABLE_FLOW_NODE if constExprValue is True else self.finishFlowLabel(elseLabel)
        if(node.orelse):
            self.walkStatements(node.orelse)
        self.addAntecedent(postWhileLabel, self.currentFlowNode)

        self.currentFlowNode = self.finishFlowLabel(postWhileLabel)
        self.nodeInfo.setAfterFlowNode(node, self.currentFlowNode)

    def visit_Continue(self, node: ast.Continue):
        if(self.currentContinueTarget):
            self.addAntecedent(self.currentContinueTarget, self.currentFlowNode)
        self.currentFlowNode = UNREACHABLE_FLOW_NODE

    def visit_Break(self, node: ast.Break):
        if(self.currentBreakTarget):
            self.addAntecedent(self.currentBreakTarget, self.currentFlowNode)
        self.currentFlowNode = UNREACHABLE_FLOW_NODE

    # return / raise

    def visit_Return(self, node: ast.Return):
        if(self.targetFunctionDeclaration):
            self.targetFunctionDeclaration.returnStatements.append(node)

        if(node.value):
            self.visit(node.value)

        self.nodeInfo.setFlowNode(node, self.currentFlowNode)
        if(self.currentReturnTarget):
            self.addAntecedent(self.currentReturnTarget, self.currentFlowNode)
        for target in self.finallyTargets:
            self.addAntecedent(target, self.currentFlowNode)
        self.currentFlowNode = UNREACHABLE_FLOW_NODE

    def visit_Raise(self, node: ast.Raise):
        if(self.targetFunctionDeclaration):
            self.targetFunctionDeclaration.raiseStatements.append(node)

        if(node.exc is None and self.nestedExceptDepth == 0):
            self.addError("raiseParams", node)

        if(node.exc):
            self.visit(node.exc)
        if(node.cause):
            self.visit(node.cause)

        for target in self.finallyTargets:
            self.addAntecedent(target, self.currentFlowNode)
        self.currentFlowNode = UNREACHABLE_FLOW_NODE

    # try

    def visit_Try(self, node: ast.Try):
        # one label per except clause; without a bare "except:" an uncaught
        # exception goes straight to finally
        curExceptTargets = [self.createBranchLabel() for _ in node.handlers]
        preFinallyLabel = self.createBranchLabel()
        preFinallyReturnOrRaiseLabel = self.createBranchLabel()
        isAfterElseAndExceptsReachable = False

        preFinallyGate = None
        if(node.finalbody):
            preFinallyGate = FlowPreFinallyGate(self.nextFlowNodeId(), preFinallyReturnOrRaiseLabel)
            self.addAntecedent(preFinallyLabel, preFinallyGate)

        hasBareExceptClause = any(handler.type is None for handler in node.handlers)
        if(not hasBareExceptClause):
            curExceptTargets.append(preFinallyReturnOrRaiseLabel)

        # an exception may be raised before the first statement of the body
        for exceptLabel in curExceptTargets:
            self.addAntecedent(exceptLabel, self.currentFlowNode)

        if(node.finalbody):
            self.finallyTargets.append(preFinallyReturnOrRaiseLabel)

        with self.useExceptTargets(curExceptTargets):
            self.walkStatements(node.body)

        if(node.orelse):
            self.walkStatements(node.orelse)
        self.addAntecedent(preFinallyLabel, self.currentFlowNode)
        if(not self.isCodeUnreachable()):
            isAfterElseAndExceptsReachable = True

        self.nestedExceptDepth += 1
        for handler, exceptLabel in zip(node.handlers, curExceptTargets):
            self.currentFlowNode = self.finishFlowLabel(exceptLabel)
            self.visit(handler)
            self.addAntecedent(preFinallyLabel, self.currentFlowNode)
            if(not self.isCodeUnreachable()):
                isAfterElseAndExceptsReachable = True
        self.nestedExceptDepth -= 1

        if(node.finalbody):
            self.finallyTargets.pop()

        self.currentFlowNode = self.finishFlowLabel(preFinallyLabel)
        if(node.finalbody):
            self.walkStatements(node.finalbody)
            postFinallyNode = FlowPostFinally(self.nextFlowNodeId(), self.currentFlowNode, node, preFinallyGate)
            self.currentFlowNode = postFinallyNode if isAfterElseAndExceptsReachable else UNREACHABLE_FLOW_NODE

    visit_TryStar = visit_Try

    def visit_ExceptHandler(self, node: ast.ExceptHandler):
        if(node.type):
            self.visit(node.type)

        if(node.name):
            symbol = self.bindNameToScope(self.currentScope, node.name)
            self.createFlowAssignment(node, name=node.name)
            if(symbol):
                declaration = VariableDeclaration(node, self.fileInfo.filePath, convertNodeToRange(node), self.fileInfo.moduleName,
                    isConstant=isConstantName(node.name), inferredTypeSource=node)
                symbol.addDeclaration(declaration)

        self.walkStatements(node.body)

        # "except E as e" deletes e when the clause ends
        if(node.name):
            self.createFlowAssignment(node, unbound=True, name=node.name)

    # with

    def visit_With(self, node: ast.With):
        for item in node.items:
            self.visit(item.context_expr)
            if(item.optional_vars):
                self.bindPossibleTupleNamedTarget(item.optional_vars)
                self.addInferredTypeAssignmentForVariable(item.optional_vars, item)
                self.createAssignmentTargetFlowNodes(item.optional_vars, True, False)

        contextManagerExceptionTarget = self.createContextManagerLabel(
            [item.context_expr for item in node.items], isinstance(node, ast.AsyncWith))
        self.addAntecedent(contextManagerExceptionTarget, self.currentFlowNode)

        postContextManagerLabel = self.createBranchLabel()
        self.addAntecedent(postContextManagerLabel, contextManagerExceptionTarget)

        with self.useExceptTargets([contextManagerExceptionTarget]):
            self.walkStatements(node.body)

        self.addAntecedent(postContextManagerLabel, self.currentFlowNode)
        self.currentFlowNode = self.finishFlowLabel(postContextManagerLabel)

    visit_AsyncWith = visit_With
