from enum import Enum
from typing import Dict, Optional

from .Declaration import DeclarationType
from .Symbol import Symbol, SymbolFlags


class ScopeType(Enum):
    COMPREHENSION = "comprehension"             # list/set/dict comprehensions and generator expressions
    FUNCTION = "function"                       # functions and lambdas
    CLASS = "class"
    MODULE = "module"
    BUILTIN = "builtin"                         # the outermost scope, shared by every module


class NameBindingType(Enum):
    NONLOCAL = "nonlocal"
    GLOBAL = "global"


class SymbolWithScope:
    symbol: Symbol
    scope: 'Scope'
    isOutsideCallerModule: bool                 # found in the builtins scope rather than the caller's module
    isBeyondExecutionScope: bool                # found outside the execution scope the lookup started in

    def __init__(self, symbol: Symbol, scope: 'Scope', isOutsideCallerModule: bool, isBeyondExecutionScope: bool):
        self.symbol = symbol
        self.scope = scope
        self.isOutsideCallerModule = isOutsideCallerModule
        self.isBeyondExecutionScope = isBeyondExecutionScope


class Scope:
    type: ScopeType
    parent: Optional['Scope']                   # none only for the builtins scope
    symbolTable: Dict[str, Symbol]
    notLocalBindings: Dict[str, NameBindingType]

    def __init__(self, type: ScopeType, parent: 'Scope'=None):
        self.type = type
        self.parent = parent
        self.symbolTable = {}
        self.notLocalBindings = {}

    def getGlobalScope(self) -> 'Scope':
        curScope = self
        while(curScope):
            if(curScope.type in (ScopeType.MODULE, ScopeType.BUILTIN)):
                return curScope
            curScope = curScope.parent

        assert(False), "every scope chain ends in a module or builtins scope"

    # functions and modules run their own code; classes and comprehensions run inline
    def isIndependentlyExecutable(self) -> bool:
        return self.type == ScopeType.MODULE or self.type == ScopeType.FUNCTION

    def lookUpSymbol(self, name: str) -> Optional[Symbol]:
        return self.symbolTable.get(name)

    def lookUpSymbolRecursive(self, name: str, isOutsideCallerModule: bool=False, isBeyondExecutionScope: bool=False) -> Optional[SymbolWithScope]:
        symbol = self.symbolTable.get(name)

        if(symbol):
            if(isOutsideCallerModule and symbol.isExternallyHidden()):
                return None

            # names only assigned through "self.x" are not visible as bare names
            decls = symbol.getDeclarations()
            if(len(decls) == 0 or any(decl.type != DeclarationType.VARIABLE or not decl.isDefinedByMemberAccess for decl in decls)):
                return SymbolWithScope(symbol, self, isOutsideCallerModule, isBeyondExecutionScope)

        if(self.notLocalBindings.get(name) == NameBindingType.GLOBAL):
            parentScope = self.getGlobalScope()
        else:
            parentScope = self.parent

        if(parentScope):
            return parentScope.lookUpSymbolRecursive(name,
                isOutsideCallerModule or self.type == ScopeType.MODULE,
                isBeyondExecutionScope or self.isIndependentlyExecutable())

        return None

    def addSymbol(self, name: str, flags: SymbolFlags, symbolId: int) -> Symbol:
        symbol = Symbol(flags, symbolId)
        self.symbolTable[name] = symbol
        return symbol

    def getBindingType(self, name: str) -> Optional[NameBindingType]:
        return self.notLocalBindings.get(name)

    # a name keeps the first redirection it was given
    def setBindingType(self, name: str, bindingType: NameBindingType) -> bool:
        existing = self.notLocalBindings.get(name)
        if(existing is not None and existing != bindingType):
            return False
        self.notLocalBindings[name] = bindingType
        return True

    def __repr__(self):
        return f"Scope({self.type.value}, {sorted(self.symbolTable)})"
