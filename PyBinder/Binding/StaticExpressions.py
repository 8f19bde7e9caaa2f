import ast
import operator
from typing import Optional, Sequence

from ..Semantics.FileInfo import ExecutionEnvironment, PythonPlatform

_comparisons = {
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
}

_platformNames = {
    PythonPlatform.DARWIN: "darwin",
    PythonPlatform.WINDOWS: "win32",
    PythonPlatform.LINUX: "linux",
}

_osNames = {
    PythonPlatform.DARWIN: "posix",
    PythonPlatform.WINDOWS: "nt",
    PythonPlatform.LINUX: "posix",
}


def _isIntConstant(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and type(node.value) is int


def _isStrConstant(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and isinstance(node.value, str)


def _isModuleAttribute(node: ast.AST, attrName: str, moduleAliases: Sequence[str]) -> bool:
    return (isinstance(node, ast.Attribute) and node.attr == attrName
            and isinstance(node.value, ast.Name) and node.value.id in moduleAliases)


def _convertTupleToVersion(node: ast.Tuple) -> Optional[tuple]:
    # only major and minor take part, like the execution environment
    elts = node.elts[:2]
    if(not elts or not all(_isIntConstant(elt) for elt in elts)):
        return None
    return tuple(elt.value for elt in elts)


def _evaluateComparison(op: ast.cmpop, leftValue, rightValue, stringsOnly: bool=False) -> Optional[bool]:
    if(leftValue is None or rightValue is None):
        return None
    if(stringsOnly and not isinstance(op, (ast.Eq, ast.NotEq))):
        return None
    compare = _comparisons.get(type(op))
    if(compare is None):
        return None
    return compare(leftValue, rightValue)


def _evaluateCompare(node: ast.Compare, execEnv: ExecutionEnvironment, sysImportAliases: Sequence[str]) -> Optional[bool]:
    if(len(node.ops) != 1):
        return None
    op = node.ops[0]
    left = node.left
    right = node.comparators[0]

    # sys.version_info >= (3, 8)
    if(_isModuleAttribute(left, "version_info", sysImportAliases) and isinstance(right, ast.Tuple)):
        comparisonVersion = _convertTupleToVersion(right)
        if(comparisonVersion is None):
            return None
        return _evaluateComparison(op, tuple(execEnv.pythonVersion), comparisonVersion)

    # sys.version_info[0] >= 3
    if(isinstance(left, ast.Subscript) and _isModuleAttribute(left.value, "version_info", sysImportAliases)
            and _isIntConstant(left.slice) and left.slice.value == 0 and _isIntConstant(right)):
        return _evaluateComparison(op, execEnv.pythonVersion[0], right.value)

    if(_isModuleAttribute(left, "platform", sysImportAliases) and _isStrConstant(right)):
        expectedPlatformName = _platformNames.get(execEnv.pythonPlatform)
        return _evaluateComparison(op, expectedPlatformName, right.value, stringsOnly=True)

    if(_isModuleAttribute(left, "name", ["os"]) and _isStrConstant(right)):
        expectedOsName = _osNames.get(execEnv.pythonPlatform)
        return _evaluateComparison(op, expectedOsName, right.value, stringsOnly=True)

    return None


def evaluateStaticBoolExpression(node: ast.AST, execEnv: ExecutionEnvironment,
                                 typingImportAliases: Sequence[str]=(), sysImportAliases: Sequence[str]=()) -> Optional[bool]:
    """Returns True or False when the condition is fixed for the execution
    environment, None when it has to be decided at runtime."""
    if(isinstance(node, ast.UnaryOp)):
        if(isinstance(node.op, ast.Not)):
            value = evaluateStaticBoolLikeExpression(node.operand, execEnv, typingImportAliases, sysImportAliases)
            if(value is not None):
                return not value
        return None

    if(isinstance(node, ast.BoolOp)):
        values = [evaluateStaticBoolExpression(value, execEnv, typingImportAliases, sysImportAliases) for value in node.values]
        if(any(value is None for value in values)):
            return None
        if(isinstance(node.op, ast.Or)):
            return any(values)
        return all(values)

    if(isinstance(node, ast.Compare)):
        return _evaluateCompare(node, execEnv, sysImportAliases)

    if(isinstance(node, ast.Constant)):
        if(node.value is True):
            return True
        if(node.value is False):
            return False
        return None

    if(isinstance(node, ast.Name)):
        if(node.id == "TYPE_CHECKING"):
            return True
        return None

    if(_isModuleAttribute(node, "TYPE_CHECKING", typingImportAliases)):
        return True

    return None


def evaluateStaticBoolLikeExpression(node: ast.AST, execEnv: ExecutionEnvironment,
                                     typingImportAliases: Sequence[str]=(), sysImportAliases: Sequence[str]=()) -> Optional[bool]:
    # None is falsy too
    if(isinstance(node, ast.Constant) and node.value is None):
        return False
    return evaluateStaticBoolExpression(node, execEnv, typingImportAliases, sysImportAliases)
