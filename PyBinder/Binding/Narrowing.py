"""Decides which expressions can narrow the type of a reference.

A reference is a bare name, an attribute of a reference, or a reference
subscripted with a non-negative int literal. Everything here is pure: it
looks only at the expression it is given.
"""

import ast
from typing import List, Union

ReferenceExpression = Union[ast.Name, ast.Attribute, ast.Subscript]


class NarrowingPolicy:
    narrowCallArguments: bool                   # any call with arguments narrows its first one (user type guards)
    neverNarrowBuiltinChecks: bool              # isinstance/issubclass/callable take part in never-narrowing

    def __init__(self, narrowCallArguments: bool=True, neverNarrowBuiltinChecks: bool=True):
        self.narrowCallArguments = narrowCallArguments
        self.neverNarrowBuiltinChecks = neverNarrowBuiltinChecks


DEFAULT_NARROWING_POLICY = NarrowingPolicy()


class NarrowingResult:
    isNarrowing: bool
    references: List[ReferenceExpression]

    def __init__(self, isNarrowing: bool, references: List[ReferenceExpression]):
        self.isNarrowing = isNarrowing
        self.references = references

    def getNameReferences(self) -> List[ast.Name]:
        return [ref for ref in self.references if isinstance(ref, ast.Name)]


def _isIntLiteral(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and type(node.value) is int


def isCodeFlowSupportedForReference(reference: ast.AST) -> bool:
    if(isinstance(reference, ast.Name)):
        return True
    if(isinstance(reference, ast.Attribute)):
        return isCodeFlowSupportedForReference(reference.value)
    if(isinstance(reference, ast.Subscript)):
        # a[-1] parses as a unary minus, so only non-negative literals pass
        if(not _isIntLiteral(reference.slice)):
            return False
        return isCodeFlowSupportedForReference(reference.value)
    return False


def createKeyForReference(reference: ReferenceExpression) -> str:
    if(isinstance(reference, ast.Name)):
        return reference.id
    if(isinstance(reference, ast.Attribute)):
        return f"{createKeyForReference(reference.value)}.{reference.attr}"
    assert(isinstance(reference, ast.Subscript) and _isIntLiteral(reference.slice))
    return f"{createKeyForReference(reference.value)}[{reference.slice.value}]"


def _isSimpleCall(node: ast.AST, funcName: str, argCount: int) -> bool:
    return (isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == funcName
            and len(node.args) == argCount and not node.keywords
            and not any(isinstance(arg, ast.Starred) for arg in node.args))


def _isNoneConstant(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _isNarrowingExpression(expression: ast.AST, references: List[ReferenceExpression],
                           neverNarrowing: bool, isComplexExpression: bool, policy: NarrowingPolicy) -> bool:
    if(isinstance(expression, (ast.Name, ast.Attribute, ast.Subscript))):
        if(neverNarrowing):
            # "if x:" alone never proves anything impossible
            if(not isinstance(expression, ast.Name) or not isComplexExpression):
                return False
        if(isCodeFlowSupportedForReference(expression)):
            references.append(expression)
            return True
        return False

    if(isinstance(expression, ast.NamedExpr)):
        references.append(expression.target)
        return True

    if(isinstance(expression, ast.Compare)):
        # chained comparisons don't narrow
        if(len(expression.ops) != 1):
            return False
        operator = expression.ops[0]
        left = expression.left
        right = expression.comparators[0]
        isOrIsNot = isinstance(operator, (ast.Is, ast.IsNot))
        equalsOrNotEquals = isinstance(operator, (ast.Eq, ast.NotEq))

        if(isOrIsNot or equalsOrNotEquals):
            if(_isNoneConstant(right)):
                return _isNarrowingExpression(left, references, neverNarrowing, True, policy)

            # type(x) is C
            if(isOrIsNot and _isSimpleCall(left, "type", 1)):
                return _isNarrowingExpression(left.args[0], references, neverNarrowing, True, policy)

            isLeftNarrowing = _isNarrowingExpression(left, references, neverNarrowing, True, policy)
            if(isOrIsNot):
                return isLeftNarrowing

            isRightNarrowing = _isNarrowingExpression(right, references, neverNarrowing, True, policy)
            return isLeftNarrowing or isRightNarrowing

        if(isinstance(operator, (ast.In, ast.NotIn))):
            if(_isNarrowingExpression(right, references, neverNarrowing, True, policy)):
                return True

        if(isinstance(operator, ast.In)):
            return _isNarrowingExpression(left, references, neverNarrowing, True, policy)

        return False

    if(isinstance(expression, ast.UnaryOp)):
        return (isinstance(expression.op, ast.Not)
                and _isNarrowingExpression(expression.operand, references, neverNarrowing, False, policy))

    if(isinstance(expression, ast.AugAssign)):
        return _isNarrowingExpression(expression.value, references, neverNarrowing, True, policy)

    if(isinstance(expression, ast.Call)):
        isBuiltinCheck = _isSimpleCall(expression, "isinstance", 2) or _isSimpleCall(expression, "issubclass", 2) \
            or _isSimpleCall(expression, "callable", 1)
        if(isBuiltinCheck):
            if(neverNarrowing and not policy.neverNarrowBuiltinChecks):
                return False
            return _isNarrowingExpression(expression.args[0], references, neverNarrowing, True, policy)

        if(len(expression.args) >= 1):
            if(neverNarrowing or not policy.narrowCallArguments):
                return False
            if(isinstance(expression.args[0], ast.Starred)):
                return False
            return _isNarrowingExpression(expression.args[0], references, neverNarrowing, True, policy)

    return False


def classify(expression: ast.AST, neverNarrowing: bool=False, policy: NarrowingPolicy=DEFAULT_NARROWING_POLICY) -> NarrowingResult:
    references = []
    isNarrowing = _isNarrowingExpression(expression, references, neverNarrowing, False, policy)
    if(not isNarrowing):
        references = []
    return NarrowingResult(isNarrowing, references)
