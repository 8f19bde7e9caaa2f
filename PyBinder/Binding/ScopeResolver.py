import ast
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..Semantics.Declaration import DeclarationType, IntrinsicDeclaration, VariableDeclaration
from ..Semantics.IdGenerator import IdGenerator
from ..Semantics.Scope import NameBindingType, Scope, ScopeType
from ..Semantics.Symbol import Symbol, SymbolFlags
from ..Semantics.SymbolNameUtils import isConstantName, isPrivateName, isPrivateOrProtectedName
from ..Semantics.TextRange import convertMemberNameToRange, convertNodeToRange, getEmptyRange
from .CodeFlowBuilder import CodeFlowBuilder
from .ParseTreeUtils import getEnclosingClass, getEnclosingFunction, getFirstParameterName

if TYPE_CHECKING:
    from ..Semantics.FileInfo import FileInfo
    from ..Semantics.NodeInfo import NodeInfo
    from .Narrowing import NarrowingPolicy

logger = logging.getLogger(__name__)

EXECUTION_SCOPE_TYPES = (ScopeType.BUILTIN, ScopeType.MODULE, ScopeType.FUNCTION)


class MemberAccessInfo:
    classNode: ast.ClassDef
    methodNode: ast.AST
    classScope: Scope
    isInstanceMember: bool                      # "self.x" rather than "cls.x" or "C.x"

    def __init__(self, classNode: ast.ClassDef, methodNode: ast.AST, classScope: Scope, isInstanceMember: bool):
        self.classNode = classNode
        self.methodNode = methodNode
        self.classScope = classScope
        self.isInstanceMember = isInstanceMember


class ScopeResolver(CodeFlowBuilder):
    """Scope chain and symbol tables on top of the flow builder. Every binding
    occurrence goes through bindNameToScope, which honors global and nonlocal
    redirections of the current scope."""

    symbolIdGenerator: IdGenerator
    potentialPrivateSymbols: Dict[str, Symbol]  # hidden at the end unless listed in __all__
    typingSymbolAliases: Dict[str, str]         # local name -> typing symbol, e.g. "Fin" -> "Final"

    def __init__(self, fileInfo: 'FileInfo', nodeInfo: 'NodeInfo', idGenerator: IdGenerator=None,
                 narrowingPolicy: 'NarrowingPolicy'=None, symbolIdGenerator: IdGenerator=None):
        super().__init__(fileInfo, nodeInfo, idGenerator, narrowingPolicy)
        self.symbolIdGenerator = symbolIdGenerator or IdGenerator()
        self.potentialPrivateSymbols = {}
        self.typingSymbolAliases = {}

    @contextmanager
    def newScope(self, scopeType: ScopeType, parentScope: Optional[Scope]):
        prevScope = self.currentScope
        prevReferenceMap = self.currentReferenceMap

        scope = Scope(scopeType, parentScope)
        self.currentScope = scope
        if(scopeType in EXECUTION_SCOPE_TYPES):
            self.currentReferenceMap = set()
        try:
            yield scope
        finally:
            self.currentReferenceMap = prevReferenceMap
            self.currentScope = prevScope

    def bindNameToScope(self, scope: Scope, name: str, addedSymbols: Dict[str, Symbol]=None) -> Optional[Symbol]:
        bindingType = self.currentScope.getBindingType(name)
        if(bindingType is not None):
            if(bindingType == NameBindingType.NONLOCAL):
                scopeToUse = self.currentScope.parent
            else:
                scopeToUse = self.currentScope.getGlobalScope()
            symbolWithScope = scopeToUse.lookUpSymbolRecursive(name)
            if(symbolWithScope):
                return symbolWithScope.symbol
            return None

        symbol = scope.lookUpSymbol(name)
        if(symbol is None):
            symbol = scope.addSymbol(name, SymbolFlags.INITIALLY_UNBOUND | SymbolFlags.CLASS_MEMBER, self.symbolIdGenerator.next())

            # the class body may read the outer value before assigning its own
            if(scope.type == ScopeType.CLASS):
                aliasSymbol = scope.parent.lookUpSymbol(name)
                if(aliasSymbol):
                    self.createAssignmentAliasFlowNode(symbol.id, aliasSymbol.id)

            if(isPrivateOrProtectedName(name)):
                if(self.fileInfo.isStubFile or isPrivateName(name)):
                    symbol.setIsExternallyHidden()
                elif(self.fileInfo.isInPyTypedPackage and self.currentScope.type == ScopeType.MODULE):
                    self.potentialPrivateSymbols[name] = symbol

            if(addedSymbols is not None):
                addedSymbols[name] = symbol

        return symbol

    def bindPossibleTupleNamedTarget(self, target: ast.expr, addedSymbols: Dict[str, Symbol]=None):
        if(isinstance(target, ast.Name)):
            self.bindNameToScope(self.currentScope, target.id, addedSymbols)
        elif(isinstance(target, (ast.Tuple, ast.List))):
            for expr in target.elts:
                self.bindPossibleTupleNamedTarget(expr, addedSymbols)
        elif(isinstance(target, ast.Starred)):
            self.bindPossibleTupleNamedTarget(target.value, addedSymbols)

    def addSymbolToCurrentScope(self, name: str, isInitiallyUnbound: bool) -> Symbol:
        symbol = self.currentScope.lookUpSymbol(name)
        if(symbol is None):
            flags = SymbolFlags.NONE
            if(isInitiallyUnbound):
                flags |= SymbolFlags.INITIALLY_UNBOUND
            if(self.currentScope.type == ScopeType.CLASS):
                flags |= SymbolFlags.CLASS_MEMBER
            if(self.fileInfo.isStubFile and isPrivateOrProtectedName(name)):
                flags |= SymbolFlags.EXTERNALLY_HIDDEN
            symbol = self.currentScope.addSymbol(name, flags, self.symbolIdGenerator.next())
        return symbol

    def addBuiltInSymbolToCurrentScope(self, name: str, node: ast.AST, intrinsicType: str):
        symbol = self.addSymbolToCurrentScope(name, isInitiallyUnbound=False)
        symbol.addDeclaration(IntrinsicDeclaration(node, intrinsicType, self.fileInfo.filePath,
                                                   getEmptyRange(), self.fileInfo.moduleName))
        symbol.setIsIgnoredForProtocolMatch()

    # global / nonlocal

    def visit_Global(self, node: ast.Global):
        globalScope = self.currentScope.getGlobalScope()
        for name in node.names:
            if(self.currentScope.getBindingType(name) == NameBindingType.NONLOCAL):
                self.addError("nonLocalRedefinition", node, name=name)

            valueWithScope = self.currentScope.lookUpSymbolRecursive(name)
            if(valueWithScope and valueWithScope.scope is self.currentScope):
                self.addError("globalReassignment", node, name=name)

            self.bindNameToScope(globalScope, name)
            if(self.currentScope is not globalScope):
                self.currentScope.setBindingType(name, NameBindingType.GLOBAL)

    def visit_Nonlocal(self, node: ast.Nonlocal):
        globalScope = self.currentScope.getGlobalScope()
        if(self.currentScope is globalScope):
            self.addError("nonLocalInModule", node)
            return

        for name in node.names:
            if(self.currentScope.getBindingType(name) == NameBindingType.GLOBAL):
                self.addError("globalRedefinition", node, name=name)

            valueWithScope = self.currentScope.lookUpSymbolRecursive(name)
            if(valueWithScope and valueWithScope.scope is self.currentScope):
                self.addError("nonLocalReassignment", node, name=name)
            elif(not valueWithScope or valueWithScope.scope.type in (ScopeType.MODULE, ScopeType.BUILTIN)):
                self.addError("nonLocalNoBinding", node, name=name)

            if(valueWithScope):
                self.currentScope.setBindingType(name, NameBindingType.NONLOCAL)

    # declarations

    def addInferredTypeAssignmentForVariable(self, target: ast.AST, source: ast.AST, isPossibleTypeAlias: bool=False):
        if(isinstance(target, ast.Name)):
            symbolWithScope = self.currentScope.lookUpSymbolRecursive(target.id)
            if(symbolWithScope):
                declaration = VariableDeclaration(target, self.fileInfo.filePath, convertNodeToRange(target), self.fileInfo.moduleName,
                    isConstant=isConstantName(target.id), inferredTypeSource=source,
                    typeAliasName=target if isPossibleTypeAlias else None)
                symbolWithScope.symbol.addDeclaration(declaration)

        elif(isinstance(target, ast.Attribute)):
            memberAccessInfo = self.getMemberAccessInfo(target)
            if(memberAccessInfo):
                symbol = self._getMemberSymbol(memberAccessInfo, target.attr)
                if(memberAccessInfo.isInstanceMember):
                    # methods assigned through self stay class members
                    if(not symbol.isClassMember() or not any(decl.type == DeclarationType.FUNCTION and decl.isMethod
                                                             for decl in symbol.getDeclarations())):
                        symbol.setIsInstanceMember()
                else:
                    symbol.setIsClassMember()

                declaration = VariableDeclaration(target, self.fileInfo.filePath, convertMemberNameToRange(target), self.fileInfo.moduleName,
                    isConstant=isConstantName(target.attr), inferredTypeSource=source, isDefinedByMemberAccess=True)
                symbol.addDeclaration(declaration)

        elif(isinstance(target, (ast.Tuple, ast.List))):
            for expr in target.elts:
                self.addInferredTypeAssignmentForVariable(expr, source)

        elif(isinstance(target, ast.Starred)):
            self.addInferredTypeAssignmentForVariable(target.value, source)

    def addTypeDeclarationForVariable(self, target: ast.AST, typeAnnotation: ast.expr):
        declarationHandled = False

        if(isinstance(target, ast.Name)):
            symbolWithScope = self.currentScope.lookUpSymbolRecursive(target.id)
            if(symbolWithScope):
                isFinal, finalTypeNode = self.isAnnotationFinal(typeAnnotation)
                isExplicitTypeAlias = self.isAnnotationTypeAlias(typeAnnotation)

                typeAnnotationNode = typeAnnotation
                if(isExplicitTypeAlias):
                    typeAnnotationNode = None
                    if(self.currentScope.type != ScopeType.MODULE):
                        self.addError("typeAliasNotInModule", typeAnnotation)
                elif(isFinal):
                    typeAnnotationNode = finalTypeNode

                declaration = VariableDeclaration(target, self.fileInfo.filePath, convertNodeToRange(target), self.fileInfo.moduleName,
                    isConstant=isConstantName(target.id), typeAnnotationNode=typeAnnotationNode, isFinal=isFinal,
                    isRequired=self.isRequiredAnnotation(typeAnnotationNode),
                    isNotRequired=self.isNotRequiredAnnotation(typeAnnotationNode),
                    typeAliasAnnotation=typeAnnotation if isExplicitTypeAlias else None,
                    typeAliasName=target if isExplicitTypeAlias else None)
                symbolWithScope.symbol.addDeclaration(declaration)

                if(isinstance(typeAnnotation, ast.Subscript) and self.isTypingAnnotation(typeAnnotation.value, "ClassVar")):
                    symbolWithScope.symbol.setIsClassVar()
                else:
                    symbolWithScope.symbol.setIsInstanceMember()
            declarationHandled = True

        elif(isinstance(target, ast.Attribute)):
            memberAccessInfo = self.getMemberAccessInfo(target)
            if(memberAccessInfo):
                symbol = self._getMemberSymbol(memberAccessInfo, target.attr)
                if(memberAccessInfo.isInstanceMember):
                    symbol.setIsInstanceMember()
                else:
                    symbol.setIsClassMember()

                isFinal, finalTypeNode = self.isAnnotationFinal(typeAnnotation)
                declaration = VariableDeclaration(target, self.fileInfo.filePath, convertMemberNameToRange(target), self.fileInfo.moduleName,
                    isConstant=isConstantName(target.attr), isDefinedByMemberAccess=True, isFinal=isFinal,
                    typeAnnotationNode=finalTypeNode if isFinal else typeAnnotation)
                symbol.addDeclaration(declaration)
                declarationHandled = True

        if(not declarationHandled):
            self.addError("annotationNotSupported", typeAnnotation)

    def _getMemberSymbol(self, memberAccessInfo: MemberAccessInfo, name: str) -> Symbol:
        symbol = memberAccessInfo.classScope.lookUpSymbol(name)
        if(symbol is None):
            symbol = memberAccessInfo.classScope.addSymbol(name, SymbolFlags.INITIALLY_UNBOUND, self.symbolIdGenerator.next())
            if(isPrivateOrProtectedName(name) and self.fileInfo.diagnosticRuleSet.reportPrivateUsage):
                symbol.setIsPrivateMember()
        return symbol

    def getMemberAccessInfo(self, node: ast.Attribute) -> Optional[MemberAccessInfo]:
        if(not isinstance(node.value, ast.Name)):
            return None
        leftSymbolName = node.value.id

        methodNode = getEnclosingFunction(self.nodeInfo, node)
        if(methodNode is None):
            return None
        classNode = getEnclosingClass(self.nodeInfo, methodNode)
        if(classNode is None):
            return None

        firstParamName = getFirstParameterName(methodNode)
        if(firstParamName is None):
            return None

        if(leftSymbolName == classNode.name):
            isInstanceMember = False
        else:
            if(leftSymbolName != firstParamName):
                return None

            if(methodNode.name == "__new__"):
                isInstanceMember = False
            else:
                isInstanceMember = True
                for decorator in methodNode.decorator_list:
                    if(isinstance(decorator, ast.Name)):
                        if(decorator.id == "staticmethod"):
                            return None
                        if(decorator.id == "classmethod"):
                            isInstanceMember = False
                            break

        classScope = self.nodeInfo.getScope(classNode)
        assert(classScope is not None), f"class {classNode.name} has no scope"
        return MemberAccessInfo(classNode, methodNode, classScope, isInstanceMember)

    # typing annotations

    def isTypingAnnotation(self, typeAnnotation: ast.expr, name: str) -> bool:
        if(isinstance(typeAnnotation, ast.Name)):
            return self.typingSymbolAliases.get(typeAnnotation.id) == name
        if(isinstance(typeAnnotation, ast.Attribute)):
            if(isinstance(typeAnnotation.value, ast.Name) and typeAnnotation.attr == name):
                return typeAnnotation.value.id in self.typingImportAliases
        return False

    def isAnnotationFinal(self, typeAnnotation: Optional[ast.expr]) -> Tuple[bool, Optional[ast.expr]]:
        if(typeAnnotation is None):
            return False, None
        if(self.isTypingAnnotation(typeAnnotation, "Final")):
            return True, None
        # Final[int], but not Final[int, str]
        if(isinstance(typeAnnotation, ast.Subscript) and not isinstance(typeAnnotation.slice, (ast.Tuple, ast.Slice))):
            isFinal, _ = self.isAnnotationFinal(typeAnnotation.value)
            if(isFinal):
                return True, typeAnnotation.slice
        return False, None

    def _isSubscriptOfTypingSymbol(self, typeAnnotation: Optional[ast.expr], name: str) -> bool:
        return (isinstance(typeAnnotation, ast.Subscript) and not isinstance(typeAnnotation.slice, ast.Tuple)
                and self.isTypingAnnotation(typeAnnotation.value, name))

    def isRequiredAnnotation(self, typeAnnotation: Optional[ast.expr]) -> bool:
        return self._isSubscriptOfTypingSymbol(typeAnnotation, "Required")

    def isNotRequiredAnnotation(self, typeAnnotation: Optional[ast.expr]) -> bool:
        return self._isSubscriptOfTypingSymbol(typeAnnotation, "NotRequired")

    def isAnnotationTypeAlias(self, typeAnnotation: Optional[ast.expr]) -> bool:
        if(typeAnnotation is None):
            return False
        return self.isTypingAnnotation(typeAnnotation, "TypeAlias")
