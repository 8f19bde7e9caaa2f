import ast
from enum import Enum
from typing import Dict, List, Optional

from .TextRange import Range


class DeclarationType(Enum):
    INTRINSIC = "intrinsic"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    FUNCTION = "function"
    CLASS = "class"
    SPECIAL_BUILTIN_CLASS = "specialBuiltInClass"
    ALIAS = "alias"


class Declaration:
    type: DeclarationType
    node: ast.AST                               # node that introduced the name
    path: str                                   # file the declaration lives in, or the resolved import path for aliases
    range: Range
    moduleName: str

    def __init__(self, node: ast.AST, path: str, range: Range, moduleName: str):
        self.node = node
        self.path = path
        self.range = range
        self.moduleName = moduleName

    def __repr__(self):
        return f"{self.__class__.__name__}({self.moduleName}@{self.range})"


class IntrinsicDeclaration(Declaration):
    type = DeclarationType.INTRINSIC
    intrinsicType: str                          # "Any", "str", "List[str]", "Dict[str, Any]" or "class"

    def __init__(self, node: ast.AST, intrinsicType: str, path: str, range: Range, moduleName: str):
        super().__init__(node, path, range, moduleName)
        self.intrinsicType = intrinsicType


class ClassDeclaration(Declaration):
    type = DeclarationType.CLASS


class SpecialBuiltInClassDeclaration(Declaration):
    type = DeclarationType.SPECIAL_BUILTIN_CLASS


class FunctionDeclaration(Declaration):
    type = DeclarationType.FUNCTION
    isMethod: bool
    isGenerator: bool
    returnStatements: List[ast.Return]
    yieldStatements: List[ast.expr]             # ast.Yield or ast.YieldFrom
    raiseStatements: List[ast.Raise]

    def __init__(self, node: ast.AST, isMethod: bool, path: str, range: Range, moduleName: str):
        super().__init__(node, path, range, moduleName)
        self.isMethod = isMethod
        self.isGenerator = False
        self.returnStatements = []
        self.yieldStatements = []
        self.raiseStatements = []


class ParameterDeclaration(Declaration):
    type = DeclarationType.PARAMETER


class VariableDeclaration(Declaration):
    type = DeclarationType.VARIABLE
    typeAnnotationNode: Optional[ast.expr]
    inferredTypeSource: Optional[ast.AST]
    isConstant: bool
    isFinal: bool
    isRequired: bool
    isNotRequired: bool
    typeAliasAnnotation: Optional[ast.expr]
    typeAliasName: Optional[ast.Name]           # set while the assignment may still be a type alias
    isDefinedByMemberAccess: bool

    def __init__(self, node: ast.AST, path: str, range: Range, moduleName: str,
                 isConstant: bool=False, inferredTypeSource: ast.AST=None, typeAnnotationNode: ast.expr=None,
                 isFinal: bool=False, isRequired: bool=False, isNotRequired: bool=False,
                 typeAliasAnnotation: ast.expr=None, typeAliasName: ast.Name=None,
                 isDefinedByMemberAccess: bool=False):
        super().__init__(node, path, range, moduleName)
        self.isConstant = isConstant
        self.inferredTypeSource = inferredTypeSource
        self.typeAnnotationNode = typeAnnotationNode
        self.isFinal = isFinal
        self.isRequired = isRequired
        self.isNotRequired = isNotRequired
        self.typeAliasAnnotation = typeAliasAnnotation
        self.typeAliasName = typeAliasName
        self.isDefinedByMemberAccess = isDefinedByMemberAccess

    # the same target seen again, e.g. the annotation and the value of "x: int = 1"
    def mergeFrom(self, other: 'VariableDeclaration'):
        if(other.typeAnnotationNode is not None):
            self.typeAnnotationNode = other.typeAnnotationNode
        if(other.isFinal):
            self.isFinal = True
        if(other.isRequired):
            self.isRequired = True
        if(other.isNotRequired):
            self.isNotRequired = True
        if(other.typeAliasAnnotation is not None):
            self.typeAliasAnnotation = other.typeAliasAnnotation
            self.typeAliasName = other.typeAliasName
        if(self.inferredTypeSource is None):
            self.inferredTypeSource = other.inferredTypeSource


class ModuleLoaderActions:
    path: str
    loadSymbolsFromPath: bool
    implicitImports: Dict[str, 'ModuleLoaderActions']

    def __init__(self, path: str="", loadSymbolsFromPath: bool=True):
        self.path = path
        self.loadSymbolsFromPath = loadSymbolsFromPath
        self.implicitImports = {}


class AliasDeclaration(Declaration, ModuleLoaderActions):
    type = DeclarationType.ALIAS
    usesLocalName: bool                         # "import a as b" or "from a import b as c"
    symbolName: Optional[str]                   # the imported name for "from ... import"
    submoduleFallback: Optional['AliasDeclaration']
    firstNamePart: Optional[str]                # "a" for "import a.b.c"
    isUnresolved: bool

    def __init__(self, node: ast.AST, path: str, range: Range, moduleName: str,
                 usesLocalName: bool=False, symbolName: str=None, submoduleFallback: 'AliasDeclaration'=None,
                 firstNamePart: str=None, loadSymbolsFromPath: bool=True, isUnresolved: bool=False):
        Declaration.__init__(self, node, path, range, moduleName)
        self.loadSymbolsFromPath = loadSymbolsFromPath
        self.implicitImports = {}
        self.usesLocalName = usesLocalName
        self.symbolName = symbolName
        self.submoduleFallback = submoduleFallback
        self.firstNamePart = firstNamePart
        self.isUnresolved = isUnresolved


UNRESOLVED_MODULE_PATH = "*** unresolved ***"


def areDeclarationsSame(decl1: Declaration, decl2: Declaration) -> bool:
    if(decl1.type != decl2.type):
        return False
    if(decl1.path != decl2.path):
        return False
    if(decl1.range.start != decl2.range.start):
        return False

    # one import statement may declare several names
    if(decl1.type == DeclarationType.ALIAS):
        if(decl1.symbolName != decl2.symbolName or decl1.usesLocalName != decl2.usesLocalName):
            return False
        if(decl1.node is not decl2.node):
            return False
    return True
