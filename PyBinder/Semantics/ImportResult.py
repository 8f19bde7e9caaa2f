from enum import Enum
from typing import List, Optional


class ImportType(Enum):
    BUILT_IN = "builtIn"                        # stdlib or typeshed stdlib stubs
    THIRD_PARTY = "thirdParty"
    LOCAL = "local"


class ImplicitImport:
    name: str                                   # submodule name within the imported package
    path: str
    isStubFile: bool
    isNativeLib: bool

    def __init__(self, name: str, path: str, isStubFile: bool=False, isNativeLib: bool=False):
        self.name = name
        self.path = path
        self.isStubFile = isStubFile
        self.isNativeLib = isNativeLib

    def __repr__(self):
        return f"ImplicitImport({self.name!r}, {self.path!r})"


class ImportResult:
    importName: str
    isRelative: bool
    isImportFound: bool
    isPartlyResolved: bool                      # some leading name parts were found
    isNamespacePackage: bool
    isStubPackage: bool
    isStubFile: bool
    isNativeLib: bool
    importType: ImportType
    resolvedPaths: List[str]                    # one per name part, "" for namespace packages
    implicitImports: List[ImplicitImport]
    filteredImplicitImports: List[ImplicitImport]
    nonStubImportResult: Optional['ImportResult']
    isPyTyped: bool

    def __init__(self, importName: str, /, isRelative: bool=False, isImportFound: bool=False,
                 isPartlyResolved: bool=False, isNamespacePackage: bool=False, isStubPackage: bool=False,
                 isStubFile: bool=False, isNativeLib: bool=False, importType: ImportType=ImportType.LOCAL,
                 resolvedPaths: List[str]=None, implicitImports: List[ImplicitImport]=None,
                 filteredImplicitImports: List[ImplicitImport]=None,
                 nonStubImportResult: 'ImportResult'=None, isPyTyped: bool=False):
        self.importName = importName
        self.isRelative = isRelative
        self.isImportFound = isImportFound
        self.isPartlyResolved = isPartlyResolved
        self.isNamespacePackage = isNamespacePackage
        self.isStubPackage = isStubPackage
        self.isStubFile = isStubFile
        self.isNativeLib = isNativeLib
        self.importType = importType
        self.resolvedPaths = resolvedPaths or []
        self.implicitImports = implicitImports or []
        self.filteredImplicitImports = filteredImplicitImports if filteredImplicitImports is not None else list(self.implicitImports)
        self.nonStubImportResult = nonStubImportResult
        self.isPyTyped = isPyTyped

    def getResolvedPath(self) -> str:
        # "" also covers namespace packages
        if(not self.isImportFound or self.isNativeLib or not self.resolvedPaths):
            return ""
        return self.resolvedPaths[-1]

    def __repr__(self):
        state = "found" if self.isImportFound else "unresolved"
        return f"ImportResult({self.importName!r}, {state})"
