import ast
import json
from enum import Enum
from typing import TYPE_CHECKING, Dict, List

from .Semantics.CodeFlow import FlowAssignment, FlowCall, FlowCondition, FlowNode, FlowWildcardImport
from .Semantics.Declaration import Declaration, DeclarationType
from .Semantics.Diagnostic import Diagnostic
from .Semantics.TextRange import Range, convertNodeToRange

if TYPE_CHECKING:
    from .ModuleManager import Module
    from .Semantics.NodeInfo import NodeInfo
    from .Semantics.Scope import Scope
    from .Semantics.Symbol import Symbol


def default(o):
    if(isinstance(o, set)):
        return sorted(o)
    elif(isinstance(o, Enum)):
        return o.value
    elif(isinstance(o, Range)):
        return str(o)
    else:
        raise TypeError(f"Type {type(o).__name__} not supported.")


def _flagNames(flags) -> List[str]:
    return [flag.name for flag in type(flags) if flag and flags & flag]


def describeNode(node: ast.AST) -> str:
    return f"{type(node).__name__}@{convertNodeToRange(node).start}"


def exportDeclaration(declaration: Declaration) -> Dict:
    res = {"type": declaration.type, "range": declaration.range, "node": describeNode(declaration.node)}
    if(declaration.type == DeclarationType.ALIAS):
        res["path"] = declaration.path
        if(declaration.symbolName):
            res["symbolName"] = declaration.symbolName
        if(declaration.submoduleFallback):
            res["submoduleFallback"] = declaration.submoduleFallback.path
        if(declaration.implicitImports):
            res["implicitImports"] = sorted(declaration.implicitImports)
        if(declaration.isUnresolved):
            res["isUnresolved"] = True
    elif(declaration.type == DeclarationType.INTRINSIC):
        res["intrinsicType"] = declaration.intrinsicType
    elif(declaration.type == DeclarationType.FUNCTION):
        res["isMethod"] = declaration.isMethod
        res["isGenerator"] = declaration.isGenerator
    elif(declaration.type == DeclarationType.VARIABLE):
        if(declaration.typeAnnotationNode is not None):
            res["typeAnnotation"] = ast.unparse(declaration.typeAnnotationNode)
        if(declaration.isFinal):
            res["isFinal"] = True
        if(declaration.typeAliasName is not None):
            res["isPossibleTypeAlias"] = True
    return res


def exportSymbol(symbol: 'Symbol') -> Dict:
    return {
        "id": symbol.id,
        "flags": _flagNames(symbol.flags),
        "declarations": [exportDeclaration(decl) for decl in symbol.getDeclarations()],
    }


def exportScope(node: ast.AST, scope: 'Scope') -> Dict:
    return {
        "node": describeNode(node),
        "type": scope.type,
        "symbols": {name: exportSymbol(symbol) for name, symbol in scope.symbolTable.items()},
    }


def exportDiagnostic(diagnostic: Diagnostic) -> Dict:
    res = {"messageKey": diagnostic.messageKey, "message": diagnostic.message, "range": diagnostic.range}
    if(diagnostic.rule):
        res["rule"] = diagnostic.rule
    if(diagnostic.actions):
        res["actions"] = [action.action for action in diagnostic.actions]
    return res


def exportFlowNode(flowNode: FlowNode) -> Dict:
    res = {
        "flags": _flagNames(flowNode.flags),
        "antecedents": [antecedent.id for antecedent in flowNode.getAntecedents()],
    }
    if(isinstance(flowNode, FlowAssignment)):
        res["reference"] = flowNode.referenceKey
    elif(isinstance(flowNode, FlowCondition)):
        res["expression"] = ast.unparse(flowNode.expression)
    elif(isinstance(flowNode, FlowCall)):
        res["call"] = ast.unparse(flowNode.node.func)
    elif(isinstance(flowNode, FlowWildcardImport)):
        res["names"] = flowNode.names
    return res


def exportFlowGraph(nodeInfo: 'NodeInfo') -> Dict[int, Dict]:
    """Every flow node reachable backwards from a stamped node, keyed by id."""
    flowNodes = {}
    pending = list(nodeInfo.iterFlowNodes())
    while(pending):
        flowNode = pending.pop()
        if(flowNode.id in flowNodes):
            continue
        flowNodes[flowNode.id] = exportFlowNode(flowNode)
        pending.extend(flowNode.getAntecedents())
    return dict(sorted(flowNodes.items()))


def exportModule(m: 'Module') -> Dict:
    nodeInfo = m.nodeInfo
    if(nodeInfo is None):
        return {"module": m.__name__, "path": m.__file__, "bound": False}

    return {
        "module": m.__name__,
        "path": m.__file__,
        "docString": m.results.moduleDocString,
        "dunderAll": m.results.dunderAllNames,
        "scopes": [exportScope(node, nodeInfo.getScope(node)) for node in nodeInfo.iterScopedNodes()],
        "diagnostics": [exportDiagnostic(diagnostic) for diagnostic in m.fileInfo.diagnosticSink.diagnostics],
        "flowGraph": exportFlowGraph(nodeInfo),
    }


def to_json(modules: List['Module']) -> str:
    return json.dumps([exportModule(m) for m in modules], default=default, indent=4)
