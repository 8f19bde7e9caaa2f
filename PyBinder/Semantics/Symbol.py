from enum import IntFlag
from typing import List

from .Declaration import Declaration, DeclarationType, areDeclarationsSame


class SymbolFlags(IntFlag):
    NONE = 0
    INITIALLY_UNBOUND = 1 << 0                  # unbound at the start of its execution scope
    EXTERNALLY_HIDDEN = 1 << 1                  # not visible to importers
    CLASS_MEMBER = 1 << 2
    INSTANCE_MEMBER = 1 << 3
    PRIVATE_MEMBER = 1 << 4                     # private or protected member assigned through self/cls
    IGNORED_FOR_PROTOCOL_MATCH = 1 << 5
    CLASS_VAR = 1 << 6                          # annotated with ClassVar
    IN_DUNDER_ALL = 1 << 7


class Symbol:
    id: int
    flags: SymbolFlags
    declarations: List[Declaration]

    def __init__(self, flags: SymbolFlags, symbolId: int):
        self.id = symbolId
        self.flags = flags
        self.declarations = []

    def isInitiallyUnbound(self) -> bool:
        return bool(self.flags & SymbolFlags.INITIALLY_UNBOUND)

    def setIsExternallyHidden(self):
        self.flags |= SymbolFlags.EXTERNALLY_HIDDEN

    def isExternallyHidden(self) -> bool:
        return bool(self.flags & SymbolFlags.EXTERNALLY_HIDDEN)

    def setIsIgnoredForProtocolMatch(self):
        self.flags |= SymbolFlags.IGNORED_FOR_PROTOCOL_MATCH

    def isIgnoredForProtocolMatch(self) -> bool:
        return bool(self.flags & SymbolFlags.IGNORED_FOR_PROTOCOL_MATCH)

    def setIsClassMember(self):
        self.flags |= SymbolFlags.CLASS_MEMBER

    def isClassMember(self) -> bool:
        return bool(self.flags & SymbolFlags.CLASS_MEMBER)

    def setIsInstanceMember(self):
        self.flags |= SymbolFlags.INSTANCE_MEMBER

    def isInstanceMember(self) -> bool:
        return bool(self.flags & SymbolFlags.INSTANCE_MEMBER)

    def setIsClassVar(self):
        self.flags |= SymbolFlags.CLASS_VAR

    def isClassVar(self) -> bool:
        return bool(self.flags & SymbolFlags.CLASS_VAR)

    def setIsInDunderAll(self):
        self.flags |= SymbolFlags.IN_DUNDER_ALL

    def isInDunderAll(self) -> bool:
        return bool(self.flags & SymbolFlags.IN_DUNDER_ALL)

    def setIsPrivateMember(self):
        self.flags |= SymbolFlags.PRIVATE_MEMBER

    def isPrivateMember(self) -> bool:
        return bool(self.flags & SymbolFlags.PRIVATE_MEMBER)

    def addDeclaration(self, declaration: Declaration):
        for curDecl in self.declarations:
            if(areDeclarationsSame(curDecl, declaration)):
                if(curDecl.type == DeclarationType.VARIABLE):
                    curDecl.mergeFrom(declaration)
                return

        self.declarations.append(declaration)
        if(len(self.declarations) > 1):
            # a name declared more than once can't be a type alias
            for decl in self.declarations:
                if(decl.type == DeclarationType.VARIABLE):
                    decl.typeAliasName = None

    def getDeclarations(self) -> List[Declaration]:
        return self.declarations

    def __repr__(self):
        return f"Symbol({self.id}, {self.flags!r}, {len(self.declarations)} declarations)"
