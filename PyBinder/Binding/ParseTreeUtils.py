import ast
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..Semantics.NodeInfo import NodeInfo

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

FUNCTION_TYPES = (ast.FunctionDef, ast.AsyncFunctionDef)
COMPREHENSION_TYPES = (ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)
LOOP_TYPES = (ast.For, ast.AsyncFor, ast.While)


def _isInBody(parent: ast.AST, child: ast.AST) -> bool:
    # decorators, defaults, annotations and bases are evaluated outside
    if(isinstance(parent, ast.Lambda)):
        return parent.body is child
    return any(stmt is child for stmt in getattr(parent, "body", ()))


def getEnclosingFunction(nodeInfo: 'NodeInfo', node: ast.AST) -> Optional[FunctionNode]:
    prevNode = node
    for curNode in nodeInfo.iterParents(node):
        if(isinstance(curNode, FUNCTION_TYPES) and _isInBody(curNode, prevNode)):
            return curNode
        if(isinstance(curNode, ast.ClassDef) and _isInBody(curNode, prevNode)):
            return None
        prevNode = curNode
    return None


def getEnclosingLambda(nodeInfo: 'NodeInfo', node: ast.AST) -> Optional[ast.Lambda]:
    prevNode = node
    for curNode in nodeInfo.iterParents(node):
        if(isinstance(curNode, ast.Lambda) and _isInBody(curNode, prevNode)):
            return curNode
        if(isinstance(curNode, FUNCTION_TYPES + (ast.ClassDef,)) and _isInBody(curNode, prevNode)):
            return None
        prevNode = curNode
    return None


def getEnclosingClass(nodeInfo: 'NodeInfo', node: ast.AST, stopAtFunction: bool=False) -> Optional[ast.ClassDef]:
    prevNode = node
    for curNode in nodeInfo.iterParents(node):
        if(isinstance(curNode, ast.ClassDef) and _isInBody(curNode, prevNode)):
            return curNode
        if(isinstance(curNode, FUNCTION_TYPES) and _isInBody(curNode, prevNode) and stopAtFunction):
            return None
        prevNode = curNode
    return None


# the node whose scope receives the target of "name := value"
def getEvaluationNodeForAssignmentExpression(nodeInfo: 'NodeInfo', node: ast.NamedExpr) -> Optional[ast.AST]:
    prevNode = node
    isInComprehension = False
    for curNode in nodeInfo.iterParents(node):
        if(isinstance(curNode, COMPREHENSION_TYPES)):
            isInComprehension = True
        elif(isinstance(curNode, FUNCTION_TYPES + (ast.Lambda,)) and _isInBody(curNode, prevNode)):
            return curNode
        elif(isinstance(curNode, ast.ClassDef) and _isInBody(curNode, prevNode)):
            return None if isInComprehension else curNode
        elif(isinstance(curNode, ast.Module)):
            return curNode
        prevNode = curNode
    return None


def isWithinLoop(nodeInfo: 'NodeInfo', node: ast.AST) -> bool:
    for curNode in nodeInfo.iterParents(node):
        if(isinstance(curNode, LOOP_TYPES)):
            return True
        if(isinstance(curNode, FUNCTION_TYPES + (ast.Lambda, ast.ClassDef, ast.Module))):
            break
    return False


def isInComprehension(nodeInfo: 'NodeInfo', node: ast.AST) -> bool:
    for curNode in nodeInfo.iterParents(node):
        if(isinstance(curNode, COMPREHENSION_TYPES)):
            return True
        if(isinstance(curNode, FUNCTION_TYPES + (ast.Lambda, ast.ClassDef))):
            break
    return False


def getDocString(node: ast.AST) -> Optional[str]:
    return ast.get_docstring(node, clean=False)


def getFirstParameterName(node: Union[FunctionNode, ast.Lambda]) -> Optional[str]:
    params = node.args.posonlyargs + node.args.args
    if(params):
        return params[0].arg
    return None


def getParameters(args: ast.arguments):
    params = args.posonlyargs + args.args
    if(args.vararg):
        params.append(args.vararg)
    params += args.kwonlyargs
    if(args.kwarg):
        params.append(args.kwarg)
    return params
