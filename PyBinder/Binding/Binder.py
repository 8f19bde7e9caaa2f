import ast
import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from ..Semantics.Declaration import (UNRESOLVED_MODULE_PATH, AliasDeclaration, ClassDeclaration, DeclarationType,
                                     FunctionDeclaration, ModuleLoaderActions, ParameterDeclaration,
                                     SpecialBuiltInClassDeclaration, VariableDeclaration)
from ..Semantics.Diagnostic import CreateTypeStubFileAction, DiagnosticRule
from ..Semantics.IdGenerator import IdGenerator
from ..Semantics.ImportResult import ImportResult, ImportType
from ..Semantics.Scope import ScopeType
from ..Semantics.Symbol import Symbol
from ..Semantics.SymbolNameUtils import isConstantName
from ..Semantics.TextRange import convertNodeToRange, getEmptyRange
from .ControlFlowUnifier import ControlFlowUnifier
from .DeferredScheduler import DeferredBindingTask, DeferredScheduler
from .Narrowing import createKeyForReference, isCodeFlowSupportedForReference
from .ParseTreeUtils import (getDocString, getEnclosingClass, getEnclosingFunction, getEnclosingLambda,
                             getEvaluationNodeForAssignmentExpression, getParameters, isInComprehension, isWithinLoop)

if TYPE_CHECKING:
    from ..Semantics.FileInfo import FileInfo, ImportLookupResult
    from ..Semantics.NodeInfo import NodeInfo
    from .Narrowing import NarrowingPolicy

logger = logging.getLogger(__name__)

MODULE_INTRINSICS = [
    ("__doc__", "str"),
    ("__name__", "str"),
    ("__loader__", "Any"),
    ("__package__", "str"),
    ("__spec__", "Any"),
    ("__path__", "List[str]"),
    ("__file__", "str"),
    ("__cached__", "str"),
    ("__dict__", "Dict[str, Any]"),
]

TYPING_SYMBOLS_OF_INTEREST = ("Final", "TypeAlias", "ClassVar", "Required", "NotRequired")

# special forms declared in typing.pyi that the evaluator builds itself
TYPING_SPECIAL_TYPES = {
    "Tuple", "Generic", "Protocol", "Callable", "Type", "ClassVar", "Final", "Literal", "TypedDict",
    "Union", "Optional", "Annotated", "TypeAlias", "OrderedDict", "Concatenate", "TypeGuard", "Unpack",
}


class BinderResults:
    moduleDocString: Optional[str]
    dunderAllNames: Optional[List[str]]         # None unless __all__ is assigned

    def __init__(self, moduleDocString: Optional[str], dunderAllNames: Optional[List[str]]):
        self.moduleDocString = moduleDocString
        self.dunderAllNames = dunderAllNames


def _getStringLiteral(node: ast.AST) -> Optional[str]:
    if(isinstance(node, ast.Constant) and isinstance(node.value, str)):
        return node.value
    return None


class Binder(ControlFlowUnifier):
    """Binds one module: scopes, symbols, declarations and the code flow graph.

    Use one Binder per bindModule() call. Function and lambda bodies are
    queued while their enclosing scope is walked and bound once the module
    body is done, so every sibling name already exists by then.
    """

    deferredScheduler: DeferredScheduler
    dunderAllNames: Optional[List[str]]

    def __init__(self, fileInfo: 'FileInfo', nodeInfo: 'NodeInfo', idGenerator: IdGenerator=None,
                 narrowingPolicy: 'NarrowingPolicy'=None, symbolIdGenerator: IdGenerator=None):
        super().__init__(fileInfo, nodeInfo, idGenerator, narrowingPolicy, symbolIdGenerator)
        self.deferredScheduler = DeferredScheduler()
        self.dunderAllNames = None

    def bindModule(self, node: ast.Module) -> BinderResults:
        assert(node is self.nodeInfo.tree), "the module must be the tree the node info was built from"
        logger.debug("binding module %s", self.fileInfo.moduleName)
        self.nodeInfo.fileInfo = self.fileInfo

        # the builtins module is bound without a builtins scope and becomes it
        isBuiltInModule = self.fileInfo.builtinsScope is None
        scopeType = ScopeType.BUILTIN if isBuiltInModule else ScopeType.MODULE
        with self.newScope(scopeType, self.fileInfo.builtinsScope) as moduleScope:
            self.nodeInfo.setScope(node, moduleScope)
            for name, intrinsicType in MODULE_INTRINSICS:
                self.addBuiltInSymbolToCurrentScope(name, node, intrinsicType)

            self.currentFlowNode = self.createStartFlowNode()
            self.nodeInfo.setFlowNode(node, self.currentFlowNode)
            self.walkStatements(node.body)
            self.nodeInfo.setCodeFlowExpressions(node, self.currentReferenceMap)
            self.nodeInfo.setAfterFlowNode(node, self.currentFlowNode)

        self.bindDeferred()

        for name, symbol in self.potentialPrivateSymbols.items():
            if(self.dunderAllNames is None or name not in self.dunderAllNames):
                symbol.setIsExternallyHidden()

        self.nodeInfo.setDunderAllNames(node, self.dunderAllNames)
        if(self.dunderAllNames is not None):
            for name in self.dunderAllNames:
                symbol = moduleScope.lookUpSymbol(name)
                if(symbol):
                    symbol.setIsInDunderAll()

        logger.debug("bound module %s: %d symbols", self.fileInfo.moduleName, len(moduleScope.symbolTable))
        return BinderResults(getDocString(node), self.dunderAllNames)

    def visit_Module(self, node: ast.Module):
        assert(False), "modules are bound through bindModule"

    # deferred bodies

    def bindDeferred(self):
        self.deferredScheduler.drain(self.replayDeferredTask)

    def replayDeferredTask(self, task: DeferredBindingTask):
        self.currentScope = task.scope
        self.currentReferenceMap = task.referenceMap
        self.nestedExceptDepth = 0
        self.targetFunctionDeclaration = None
        self.currentReturnTarget = None
        self.currentBreakTarget = None
        self.currentContinueTarget = None
        self.currentExceptTargets = None
        self.finallyTargets = []
        self.currentTrueTarget = None
        self.currentFalseTarget = None

        if(isinstance(task.node, ast.Lambda)):
            self.bindLambdaBody(task.node)
        else:
            self.bindFunctionBody(task.node)

    def bindParameters(self, args: ast.arguments):
        for param in getParameters(args):
            symbol = self.bindNameToScope(self.currentScope, param.arg)
            if(symbol):
                paramDeclaration = ParameterDeclaration(param, self.fileInfo.filePath, convertNodeToRange(param), self.fileInfo.moduleName)
                symbol.addDeclaration(paramDeclaration)
                self.nodeInfo.setDeclaration(param, paramDeclaration)
            self.createFlowAssignment(param, name=param.arg)

    def bindFunctionBody(self, node: Union[ast.FunctionDef, ast.AsyncFunctionDef]):
        self.currentFlowNode = self.createStartFlowNode()
        self.bindParameters(node.args)

        self.targetFunctionDeclaration = self.nodeInfo.getDeclaration(node)
        self.currentReturnTarget = self.createBranchLabel()

        self.walkStatements(node.body)
        self.nodeInfo.setAfterBodyFlowNode(node, self.currentFlowNode)

        # falling off the end is an implicit return
        self.addAntecedent(self.currentReturnTarget, self.currentFlowNode)
        self.nodeInfo.setAfterFlowNode(node, self.finishFlowLabel(self.currentReturnTarget))

    def bindLambdaBody(self, node: ast.Lambda):
        self.currentFlowNode = self.createStartFlowNode()
        self.bindParameters(node.args)
        self.visit(node.body)
        self.nodeInfo.setAfterFlowNode(node, self.currentFlowNode)

    # definitions

    # names in a class body are not visible to nested scopes
    def getNonClassParentScope(self):
        parentScope = self.currentScope
        while(parentScope.type == ScopeType.CLASS):
            parentScope = parentScope.parent
        return parentScope

    def visit_FunctionDef(self, node: Union[ast.FunctionDef, ast.AsyncFunctionDef]):
        symbol = self.bindNameToScope(self.currentScope, node.name)
        containingClassNode = getEnclosingClass(self.nodeInfo, node, stopAtFunction=True)
        functionDeclaration = FunctionDeclaration(node, containingClassNode is not None, self.fileInfo.filePath,
                                                  convertNodeToRange(node), self.fileInfo.moduleName)
        if(symbol):
            symbol.addDeclaration(functionDeclaration)
        self.nodeInfo.setDeclaration(node, functionDeclaration)

        # evaluated in the enclosing scope when "def" runs
        self.walkMultiple(node.decorator_list)
        self.walkMultiple(node.args.defaults)
        self.walkMultiple(node.args.kw_defaults)
        for param in getParameters(node.args):
            if(param.annotation):
                self.visit(param.annotation)
        if(node.returns):
            self.visit(node.returns)

        with self.newScope(ScopeType.FUNCTION, self.getNonClassParentScope()) as functionScope:
            self.nodeInfo.setScope(node, functionScope)
            if(getEnclosingClass(self.nodeInfo, node)):
                self.addBuiltInSymbolToCurrentScope("__class__", node, "class")
            self.deferredScheduler.defer(functionScope, self.currentReferenceMap, node)
            self.nodeInfo.setCodeFlowExpressions(node, self.currentReferenceMap)

        self.createFlowAssignment(node, name=node.name)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda):
        self.walkMultiple(node.args.defaults)
        self.walkMultiple(node.args.kw_defaults)

        with self.newScope(ScopeType.FUNCTION, self.getNonClassParentScope()) as lambdaScope:
            self.nodeInfo.setScope(node, lambdaScope)
            self.deferredScheduler.defer(lambdaScope, self.currentReferenceMap, node)
            self.nodeInfo.setCodeFlowExpressions(node, self.currentReferenceMap)

    def visit_ClassDef(self, node: ast.ClassDef):
        self.walkMultiple(node.decorator_list)

        classDeclaration = ClassDeclaration(node, self.fileInfo.filePath, convertNodeToRange(node), self.fileInfo.moduleName)
        symbol = self.bindNameToScope(self.currentScope, node.name)
        if(symbol):
            symbol.addDeclaration(classDeclaration)
        self.nodeInfo.setDeclaration(node, classDeclaration)

        self.walkMultiple(node.bases)
        for keyword in node.keywords:
            self.visit(keyword.value)

        with self.newScope(ScopeType.CLASS, self.getNonClassParentScope()) as classScope:
            self.nodeInfo.setScope(node, classScope)
            self.walkStatements(node.body)

        self.bindNameToScope(self.currentScope, node.name)
        self.createFlowAssignment(node, name=node.name)

    # calls and __all__

    def visit_Call(self, node: ast.Call):
        self.visit(node.func)
        self.walkMultiple(node.args)
        for keyword in node.keywords:
            self.visit(keyword.value)
        self.createCallFlowNode(node)

        func = node.func
        if(self.currentScope.type == ScopeType.MODULE and isinstance(func, ast.Attribute)
                and isinstance(func.value, ast.Name) and func.value.id == "__all__"):
            if(not self.handleDunderAllCall(func.attr, node.args)):
                self.addDiagnostic(DiagnosticRule.reportUnsupportedDunderAll, "unsupportedDunderAllOperation", node)

    def handleDunderAllCall(self, methodName: str, args: List[ast.expr]) -> bool:
        if(len(args) != 1):
            return False
        argExpr = args[0]

        if(methodName == "extend"):
            if(isinstance(argExpr, ast.List)):
                handled = False
                for entry in argExpr.elts:
                    name = _getStringLiteral(entry)
                    if(name is not None):
                        self.addDunderAllName(name)
                        handled = True
                return handled
            namesToAdd = self.getDunderAllNamesFromExpression(argExpr)
            if(namesToAdd):
                for name in namesToAdd:
                    self.addDunderAllName(name)
                return True
            return False

        if(methodName == "remove"):
            name = _getStringLiteral(argExpr)
            if(name is not None and self.dunderAllNames is not None):
                self.dunderAllNames = [existing for existing in self.dunderAllNames if existing != name]
                return True
            return False

        if(methodName == "append"):
            name = _getStringLiteral(argExpr)
            if(name is not None):
                self.addDunderAllName(name)
                return True
            return False

        return False

    # mutations before "__all__ = [...]" have nothing to apply to
    def addDunderAllName(self, name: str):
        if(self.dunderAllNames is not None):
            self.dunderAllNames.append(name)

    def getDunderAllNamesFromExpression(self, node: ast.expr) -> Optional[List[str]]:
        # "mod.__all__"
        if(isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name) and node.attr == "__all__"):
            return self.getDunderAllNamesFromImport(node.value.id)
        return None

    def getDunderAllNamesFromImport(self, varName: str) -> Optional[List[str]]:
        varSymbol = self.currentScope.lookUpSymbol(varName)
        if(varSymbol is None):
            return None

        aliasDecl = next((decl for decl in varSymbol.getDeclarations() if decl.type == DeclarationType.ALIAS), None)
        if(aliasDecl is None):
            return None
        resolvedPath = aliasDecl.path
        if(not resolvedPath and aliasDecl.submoduleFallback):
            resolvedPath = aliasDecl.submoduleFallback.path
        if(not resolvedPath or resolvedPath == UNRESOLVED_MODULE_PATH):
            return None

        lookupInfo = self.fileInfo.importLookup(resolvedPath)
        if(lookupInfo is None):
            return None
        return lookupInfo.dunderAllNames

    def setDunderAllFromAssignment(self, node: ast.stmt, value: ast.expr):
        self.dunderAllNames = []
        emitDunderAllWarning = False
        if(isinstance(value, (ast.List, ast.Tuple))):
            for entry in value.elts:
                name = _getStringLiteral(entry)
                if(name is not None):
                    self.dunderAllNames.append(name)
                else:
                    emitDunderAllWarning = True
        else:
            emitDunderAllWarning = True

        if(emitDunderAllWarning):
            self.addDiagnostic(DiagnosticRule.reportUnsupportedDunderAll, "unsupportedDunderAllOperation", node)

    # assignments

    def isPossibleTypeAlias(self, node: ast.stmt, value: ast.expr) -> bool:
        if(getEnclosingFunction(self.nodeInfo, node)):
            return False
        if(isinstance(value, ast.Call) and self.fileInfo.isTypingStubFile):
            return False
        if(isWithinLoop(self.nodeInfo, node)):
            return False
        return True

    def visit_Assign(self, node: ast.Assign):
        if(len(node.targets) == 1 and self.handleTypingStubAssignmentOrAnnotation(node, node.targets[0])):
            return

        for target in node.targets:
            self.bindPossibleTupleNamedTarget(target)

        self.visit(node.value)

        isPossibleTypeAlias = self.isPossibleTypeAlias(node, node.value)
        for target in node.targets:
            self.addInferredTypeAssignmentForVariable(target, node.value, isPossibleTypeAlias)
            self.createAssignmentTargetFlowNodes(target, True, False)

        if(self.currentScope.type == ScopeType.MODULE):
            if(any(isinstance(target, ast.Name) and target.id == "__all__" for target in node.targets)):
                self.setDunderAllFromAssignment(node, node.value)

    def visit_AnnAssign(self, node: ast.AnnAssign):
        if(self.handleTypingStubAssignmentOrAnnotation(node, node.target)):
            return

        self.bindPossibleTupleNamedTarget(node.target)

        if(node.value is not None):
            self.visit(node.value)
            isPossibleTypeAlias = self.isPossibleTypeAlias(node, node.value)
            self.addInferredTypeAssignmentForVariable(node.target, node.value, isPossibleTypeAlias)
            self.createAssignmentTargetFlowNodes(node.target, False, False)

        self.visit(node.annotation)
        self.createVariableAnnotationFlowNode()
        self.addTypeDeclarationForVariable(node.target, node.annotation)

        # a declared reference is tracked even before it is assigned
        if(isCodeFlowSupportedForReference(node.target)):
            self.currentReferenceMap.add(createKeyForReference(node.target))

        self.visit(node.target)

        if(self.currentScope.type == ScopeType.MODULE and node.value is not None):
            if(isinstance(node.target, ast.Name) and node.target.id == "__all__"):
                self.setDunderAllFromAssignment(node, node.value)

    def visit_TypeAlias(self, node):
        # type parameters are walked in the enclosing scope
        self.bindPossibleTupleNamedTarget(node.name)
        for typeParam in getattr(node, "type_params", []):
            self.visit(typeParam)
        self.visit(node.value)

        self.addInferredTypeAssignmentForVariable(node.name, node.value, True)
        self.createAssignmentTargetFlowNodes(node.name, True, False)

    def visit_AugAssign(self, node: ast.AugAssign):
        self.visit(node.target)
        self.visit(node.value)

        self.bindPossibleTupleNamedTarget(node.target)
        self.addInferredTypeAssignmentForVariable(node.target, node.value)
        self.createAssignmentTargetFlowNodes(node.target, False, False)

        if(isinstance(node.op, ast.Add) and self.currentScope.type == ScopeType.MODULE
                and isinstance(node.target, ast.Name) and node.target.id == "__all__"):
            emitDunderAllWarning = True
            if(isinstance(node.value, ast.List)):
                for entry in node.value.elts:
                    name = _getStringLiteral(entry)
                    if(name is not None):
                        self.addDunderAllName(name)
                emitDunderAllWarning = False
            else:
                namesToAdd = self.getDunderAllNamesFromExpression(node.value)
                if(namesToAdd is not None):
                    for name in namesToAdd:
                        self.addDunderAllName(name)
                    emitDunderAllWarning = False

            if(emitDunderAllWarning):
                self.addDiagnostic(DiagnosticRule.reportUnsupportedDunderAll, "unsupportedDunderAllOperation", node)

    def visit_NamedExpr(self, node: ast.NamedExpr):
        self.visit(node.value)

        evaluationNode = getEvaluationNodeForAssignmentExpression(self.nodeInfo, node)
        if(evaluationNode is None):
            self.addError("assignmentExprContext", node)
            self.visit(node.target)
            return

        containerScope = self.nodeInfo.getScope(evaluationNode)
        assert(containerScope is not None), "assignment expression container has no scope"

        name = node.target.id
        curScope = self.currentScope
        while(curScope and curScope is not containerScope):
            if(curScope.lookUpSymbol(name)):
                self.addError("assignmentExprComprehension", node.target, name=name)
                break
            curScope = curScope.parent

        self.bindNameToScope(containerScope, name)
        self.addInferredTypeAssignmentForVariable(node.target, node.value)
        self.createAssignmentTargetFlowNodes(node.target, True, False)

    def visit_Delete(self, node: ast.Delete):
        for target in node.targets:
            self.bindPossibleTupleNamedTarget(target)
            self.visit(target)
            self.createAssignmentTargetFlowNodes(target, False, True)

    def handleTypingStubAssignmentOrAnnotation(self, node: Union[ast.Assign, ast.AnnAssign], target: ast.expr) -> bool:
        if(not self.fileInfo.isTypingStubFile):
            return False
        if(not isinstance(target, ast.Name) or target.id not in TYPING_SPECIAL_TYPES):
            return False

        symbol = self.bindNameToScope(self.currentScope, target.id)
        if(symbol):
            symbol.addDeclaration(SpecialBuiltInClassDeclaration(node, self.fileInfo.filePath,
                                                                 convertNodeToRange(node), self.fileInfo.moduleName))
        return True

    # generators and coroutines

    def visit_Yield(self, node: Union[ast.Yield, ast.YieldFrom]):
        if(isInComprehension(self.nodeInfo, node)):
            self.addError("yieldWithinComprehension", node)

        functionNode = getEnclosingFunction(self.nodeInfo, node)
        if(functionNode is None):
            if(getEnclosingLambda(self.nodeInfo, node) is None):
                self.addError("yieldOutsideFunction", node)
        elif(isinstance(functionNode, ast.AsyncFunctionDef) and isinstance(node, ast.YieldFrom)):
            self.addError("yieldFromOutsideAsync", node)

        if(self.targetFunctionDeclaration and functionNode is self.targetFunctionDeclaration.node):
            self.targetFunctionDeclaration.yieldStatements.append(node)
            self.targetFunctionDeclaration.isGenerator = True

        if(node.value):
            self.visit(node.value)
        self.nodeInfo.setFlowNode(node, self.currentFlowNode)

    visit_YieldFrom = visit_Yield

    def visit_Await(self, node: ast.Await):
        enclosingFunction = getEnclosingFunction(self.nodeInfo, node)
        if(enclosingFunction is None or not isinstance(enclosingFunction, ast.AsyncFunctionDef)):
            self.addError("awaitNotInAsync", node)
        self.visit(node.value)

    # imports

    def reportImportDiagnostics(self, node: ast.AST, importResult: Optional[ImportResult]):
        if(importResult is None or importResult.isNativeLib):
            return

        if(not importResult.isImportFound):
            self.addDiagnostic(DiagnosticRule.reportMissingImports, "importResolveFailure", node,
                               importName=importResult.importName)
            return

        if(not importResult.isStubFile and importResult.importType == ImportType.THIRD_PARTY and not importResult.isPyTyped):
            diagnostic = self.addDiagnostic(DiagnosticRule.reportMissingTypeStubs, "stubFileMissing", node,
                                            importName=importResult.importName)
            if(diagnostic):
                diagnostic.addAction(CreateTypeStubFileAction(importResult.importName))

        if(importResult.isStubFile and importResult.importType != ImportType.BUILT_IN
                and importResult.nonStubImportResult and not importResult.nonStubImportResult.isImportFound):
            if(not self.fileInfo.isStubFile):
                self.addDiagnostic(DiagnosticRule.reportMissingModuleSource, "importSourceResolveFailure", node,
                                   importName=importResult.importName)

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            self.bindImportAlias(alias)

    def bindImportAlias(self, alias: ast.alias):
        nameParts = alias.name.split(".")
        firstNamePartValue = nameParts[0]
        symbolName = alias.asname or firstNamePartValue

        symbol = self.bindNameToScope(self.currentScope, symbolName)
        # "import a as a" re-exports
        if(symbol and (not alias.asname or len(nameParts) != 1 or nameParts[0] != alias.asname)):
            if(self.fileInfo.isStubFile):
                symbol.setIsExternallyHidden()
            elif(self.fileInfo.isInPyTypedPackage and self.currentScope.type == ScopeType.MODULE):
                self.potentialPrivateSymbols[symbolName] = symbol

        importInfo = self.nodeInfo.getImportInfo(alias)
        if(importInfo is None):
            logger.debug("no import record for %s", alias.name)
        self.reportImportDiagnostics(alias, importInfo)

        if(symbol):
            self.createAliasDeclarationForMultipartImportName(alias, alias.asname, importInfo, symbol, nameParts)

        self.createFlowAssignment(alias, name=symbolName)

        if(len(nameParts) == 1):
            if(firstNamePartValue in ("typing", "typing_extensions")):
                self.typingImportAliases.append(symbolName)
            elif(firstNamePartValue == "sys"):
                self.sysImportAliases.append(symbolName)

    def createAliasDeclarationForMultipartImportName(self, node: ast.AST, importAlias: Optional[str],
                                                     importInfo: Optional[ImportResult], symbol: Symbol, nameParts: List[str]):
        firstNamePartValue = nameParts[0]

        if(importInfo and importInfo.isImportFound and not importInfo.isNativeLib and importInfo.resolvedPaths):
            # "import a.b" and "import a.c" share one declaration for "a"
            existingDecl = next((decl for decl in symbol.getDeclarations()
                                 if decl.type == DeclarationType.ALIAS and decl.firstNamePart == firstNamePartValue), None)
            if(existingDecl):
                newDecl = existingDecl
            else:
                newDecl = AliasDeclaration(node, "", getEmptyRange(), importInfo.importName,
                                           usesLocalName=importAlias is not None, firstNamePart=firstNamePartValue)

            if(importAlias or len(nameParts) == 1):
                newDecl.path = importInfo.resolvedPaths[-1]
                self.addImplicitImportsToLoaderActions(importInfo, newDecl)
            else:
                curLoaderActions: ModuleLoaderActions = newDecl
                for i in range(1, len(nameParts)):
                    if(i >= len(importInfo.resolvedPaths)):
                        break

                    namePartValue = nameParts[i]
                    loaderActions = curLoaderActions.implicitImports.get(namePartValue)
                    if(loaderActions is None):
                        loaderActions = ModuleLoaderActions()
                        curLoaderActions.implicitImports[namePartValue] = loaderActions

                    if(i == len(nameParts) - 1):
                        loaderActions.path = importInfo.resolvedPaths[i]
                        self.addImplicitImportsToLoaderActions(importInfo, loaderActions)

                    curLoaderActions = loaderActions

            if(not existingDecl):
                symbol.addDeclaration(newDecl)
        else:
            newDecl = AliasDeclaration(node, UNRESOLVED_MODULE_PATH, getEmptyRange(), "",
                                       usesLocalName=importAlias is not None, isUnresolved=True)
            symbol.addDeclaration(newDecl)

    def addImplicitImportsToLoaderActions(self, importResult: ImportResult, loaderActions: ModuleLoaderActions):
        for implicitImport in importResult.filteredImplicitImports:
            existingLoaderAction = loaderActions.implicitImports.get(implicitImport.name)
            if(existingLoaderAction):
                existingLoaderAction.path = implicitImport.path
            else:
                loaderActions.implicitImports[implicitImport.name] = ModuleLoaderActions(implicitImport.path)

    def addImplicitFromImport(self, node: ast.ImportFrom, importInfo: Optional[ImportResult], nameParts: List[str]):
        symbolName = nameParts[0]
        symbol = self.bindNameToScope(self.currentScope, symbolName)
        if(symbol):
            self.createAliasDeclarationForMultipartImportName(node, None, importInfo, symbol, nameParts)
        self.createFlowAssignment(node, name=symbolName)

    def getWildcardImportNames(self, lookupInfo: 'ImportLookupResult') -> List[str]:
        if(lookupInfo.dunderAllNames is not None):
            return list(lookupInfo.dunderAllNames)
        return [name for name, symbol in lookupInfo.symbolTable.items() if not symbol.isExternallyHidden()]

    def visit_ImportFrom(self, node: ast.ImportFrom):
        importInfo = self.nodeInfo.getImportInfo(node)
        if(importInfo is None):
            logger.debug("no import record for %s%s", "." * node.level, node.module or "")
        self.reportImportDiagnostics(node, importInfo)

        resolvedPath = importInfo.getResolvedPath() if importInfo else ""
        isUnresolved = importInfo is None or not importInfo.isImportFound
        nameParts = node.module.split(".") if node.module else []

        fileName = self.fileInfo.getFileStem()
        isModuleInitFile = fileName == "__init__" and node.level == 1 and len(nameParts) > 0
        isTypingImport = len(nameParts) == 1 and nameParts[0] in ("typing", "typing_extensions")

        if(len(node.names) == 1 and node.names[0].name == "*"):
            self.bindWildcardImport(node, importInfo, resolvedPath, nameParts, isModuleInitFile)
            if(isTypingImport and importInfo):
                for name in TYPING_SYMBOLS_OF_INTEREST:
                    self.typingSymbolAliases[name] = name
            return

        if(isModuleInitFile):
            self.addImplicitFromImport(node, importInfo, nameParts)

        for alias in node.names:
            importedName = alias.name
            localName = alias.asname or alias.name
            symbol = self.bindNameToScope(self.currentScope, localName)
            if(symbol is None):
                continue

            # "from a import b as b" re-exports
            if(nameParts and (not alias.asname or alias.asname != alias.name)):
                if(self.fileInfo.isStubFile):
                    symbol.setIsExternallyHidden()
                elif(self.fileInfo.isInPyTypedPackage and self.currentScope.type == ScopeType.MODULE):
                    self.potentialPrivateSymbols[localName] = symbol

            implicitImport = None
            if(importInfo):
                implicitImport = next((imp for imp in importInfo.filteredImplicitImports if imp.name == importedName), None)

            aliasPath = resolvedPath
            submoduleFallback = None
            if(implicitImport):
                submoduleFallback = AliasDeclaration(alias, implicitImport.path, getEmptyRange(), self.fileInfo.moduleName)
                # "from . import x" in a package's __init__ means the submodule
                if(fileName == "__init__" and node.level == 1 and not nameParts):
                    aliasPath = ""

            aliasDecl = AliasDeclaration(alias, aliasPath, getEmptyRange(), self.fileInfo.moduleName,
                usesLocalName=alias.asname is not None, symbolName=importedName,
                submoduleFallback=submoduleFallback, isUnresolved=isUnresolved and submoduleFallback is None)
            symbol.addDeclaration(aliasDecl)
            self.createFlowAssignment(alias, name=localName)

            if(isTypingImport and importedName in TYPING_SYMBOLS_OF_INTEREST):
                self.typingSymbolAliases[localName] = importedName

    def bindWildcardImport(self, node: ast.ImportFrom, importInfo: Optional[ImportResult], resolvedPath: str,
                           nameParts: List[str], isModuleInitFile: bool):
        if(getEnclosingClass(self.nodeInfo, node) or getEnclosingFunction(self.nodeInfo, node)):
            self.addError("wildcardInFunction", node)

        names = []
        lookupInfo = self.fileInfo.importLookup(resolvedPath) if importInfo else None
        if(lookupInfo is None):
            logger.debug("wildcard import from %s%s binds nothing", "." * node.level, node.module or "")
        else:
            wildcardNames = self.getWildcardImportNames(lookupInfo)

            # the package's own submodule, unless the wildcard replaces it
            if(isModuleInitFile and nameParts[0] not in wildcardNames):
                self.addImplicitFromImport(node, importInfo, nameParts)

            for name in wildcardNames:
                localSymbol = self.bindNameToScope(self.currentScope, name)
                if(localSymbol is None):
                    continue

                if(name in lookupInfo.symbolTable):
                    aliasDecl = AliasDeclaration(node, resolvedPath, getEmptyRange(), self.fileInfo.moduleName,
                                                 symbolName=name)
                    localSymbol.addDeclaration(aliasDecl)
                    names.append(name)
                else:
                    # listed in __all__ but only present as a submodule
                    implicitImport = next((imp for imp in importInfo.filteredImplicitImports if imp.name == name), None)
                    if(implicitImport):
                        submoduleFallback = AliasDeclaration(node, implicitImport.path, getEmptyRange(), self.fileInfo.moduleName)
                        aliasDecl = AliasDeclaration(node, resolvedPath, getEmptyRange(), self.fileInfo.moduleName,
                                                     symbolName=name, submoduleFallback=submoduleFallback)
                        localSymbol.addDeclaration(aliasDecl)

        if(importInfo):
            self.createFlowWildcardImport(node, names)

    # comprehensions

    def bindComprehension(self, node: ast.AST, elements: List[ast.expr]):
        generators = node.generators

        # the first iterable runs in the enclosing scope
        self.visit(generators[0].iter)

        with self.newScope(ScopeType.COMPREHENSION, self.currentScope) as comprehensionScope:
            self.nodeInfo.setScope(node, comprehensionScope)

            falseLabel = self.createBranchLabel()

            boundSymbols: List[Dict[str, Symbol]] = []
            for generator in generators:
                addedSymbols = {}
                self.bindPossibleTupleNamedTarget(generator.target, addedSymbols)
                self.addInferredTypeAssignmentForVariable(generator.target, generator)
                boundSymbols.append(addedSymbols)

            for index, generator in enumerate(generators):
                for name, addedSymbol in boundSymbols[index].items():
                    aliasSymbol = comprehensionScope.parent.lookUpSymbol(name)
                    if(aliasSymbol):
                        self.createAssignmentAliasFlowNode(addedSymbol.id, aliasSymbol.id)

                if(index > 0):
                    self.visit(generator.iter)
                self.createAssignmentTargetFlowNodes(generator.target, True, False)

                for condition in generator.ifs:
                    trueLabel = self.createBranchLabel()
                    self.bindConditional(condition, trueLabel, falseLabel)
                    self.currentFlowNode = self.finishFlowLabel(trueLabel)

            self.walkMultiple(elements)

            self.addAntecedent(falseLabel, self.currentFlowNode)
            self.currentFlowNode = self.finishFlowLabel(falseLabel)

    def visit_ListComp(self, node: ast.ListComp):
        self.bindComprehension(node, [node.elt])

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp):
        self.bindComprehension(node, [node.key, node.value])

    # match

    def visit_Match(self, node: ast.Match):
        self.visit(node.subject)

        postMatchLabel = self.createBranchLabel()
        for case in node.cases:
            postCaseLabel = self.createBranchLabel()
            preGuardLabel = self.createBranchLabel()
            preSuiteLabel = self.createBranchLabel()

            self.addAntecedent(preGuardLabel, self.currentFlowNode)

            # "case _:" always matches, so no path skips it
            isWildcardPattern = (isinstance(case.pattern, ast.MatchAs)
                                 and case.pattern.pattern is None and case.pattern.name is None)
            if(not isWildcardPattern):
                self.addAntecedent(postCaseLabel, self.currentFlowNode)

            self.currentFlowNode = self.finishFlowLabel(preGuardLabel)
            self.visit(case.pattern)

            if(case.guard):
                self.bindConditional(case.guard, preSuiteLabel, postCaseLabel)
            else:
                self.addAntecedent(preSuiteLabel, self.currentFlowNode)

            self.currentFlowNode = self.finishFlowLabel(preSuiteLabel)
            self.walkStatements(case.body)
            self.addAntecedent(postMatchLabel, self.currentFlowNode)

            self.currentFlowNode = self.finishFlowLabel(postCaseLabel)

        self.addAntecedent(postMatchLabel, self.currentFlowNode)
        self.currentFlowNode = self.finishFlowLabel(postMatchLabel)

    def visit_MatchOr(self, node: ast.MatchOr):
        postOrLabel = self.createBranchLabel()
        for pattern in node.patterns:
            self.visit(pattern)
            self.addAntecedent(postOrLabel, self.currentFlowNode)
        self.currentFlowNode = self.finishFlowLabel(postOrLabel)

    def visit_MatchAs(self, node: ast.MatchAs):
        if(node.pattern):
            self.visit(node.pattern)
        if(node.name):
            self.addPatternCaptureTarget(node, node.name)

    def visit_MatchStar(self, node: ast.MatchStar):
        if(node.name):
            self.addPatternCaptureTarget(node, node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping):
        self.walkMultiple(node.keys)
        self.walkMultiple(node.patterns)
        if(node.rest and node.rest != "_"):
            self.addPatternCaptureTarget(node, node.rest)

    def addPatternCaptureTarget(self, node: ast.pattern, name: str):
        symbol = self.bindNameToScope(self.currentScope, name)
        self.createFlowAssignment(node, name=name)
        if(symbol):
            declaration = VariableDeclaration(node, self.fileInfo.filePath, convertNodeToRange(node), self.fileInfo.moduleName,
                isConstant=isConstantName(name), inferredTypeSource=node)
            symbol.addDeclaration(declaration)
