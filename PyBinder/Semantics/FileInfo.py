import os
import platform
import sys
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from .Diagnostic import DiagnosticSink

if TYPE_CHECKING:
    from .Scope import Scope
    from .Symbol import Symbol


class PythonPlatform(Enum):
    DARWIN = "Darwin"
    WINDOWS = "Windows"
    LINUX = "Linux"


def getHostPlatform() -> Optional[PythonPlatform]:
    try:
        return PythonPlatform(platform.system())
    except ValueError:
        return None


class ExecutionEnvironment:
    pythonVersion: Tuple[int, int]
    pythonPlatform: Optional[PythonPlatform]    # None leaves platform checks undecided

    def __init__(self, pythonVersion: Tuple[int, int]=None, pythonPlatform: Optional[PythonPlatform]=None, useHostPlatform: bool=True):
        self.pythonVersion = tuple(pythonVersion) if pythonVersion else tuple(sys.version_info[:2])
        if(pythonPlatform is None and useHostPlatform):
            pythonPlatform = getHostPlatform()
        self.pythonPlatform = pythonPlatform


class DiagnosticRuleSet:
    reportMissingImports: bool
    reportMissingTypeStubs: bool
    reportMissingModuleSource: bool
    reportUnsupportedDunderAll: bool
    reportPrivateUsage: bool

    def __init__(self, reportMissingImports: bool=True, reportMissingTypeStubs: bool=False,
                 reportMissingModuleSource: bool=True, reportUnsupportedDunderAll: bool=True,
                 reportPrivateUsage: bool=False):
        self.reportMissingImports = reportMissingImports
        self.reportMissingTypeStubs = reportMissingTypeStubs
        self.reportMissingModuleSource = reportMissingModuleSource
        self.reportUnsupportedDunderAll = reportUnsupportedDunderAll
        self.reportPrivateUsage = reportPrivateUsage

    def isEnabled(self, rule: str) -> bool:
        return bool(getattr(self, rule, False))


class ImportLookupResult:
    symbolTable: Dict[str, 'Symbol']
    dunderAllNames: Optional[List[str]]
    docString: Optional[str]

    def __init__(self, symbolTable: Dict[str, 'Symbol'], dunderAllNames: Optional[List[str]]=None, docString: Optional[str]=None):
        self.symbolTable = symbolTable
        self.dunderAllNames = dunderAllNames
        self.docString = docString


ImportLookup = Callable[[str], Optional[ImportLookupResult]]


def noImportLookup(path: str) -> Optional[ImportLookupResult]:
    return None


class FileInfo:
    filePath: str
    moduleName: str
    isStubFile: bool
    isTypingStubFile: bool
    isTypingExtensionsStubFile: bool
    isBuiltInStubFile: bool
    isInPyTypedPackage: bool
    diagnosticRuleSet: DiagnosticRuleSet
    executionEnvironment: ExecutionEnvironment
    importLookup: ImportLookup
    builtinsScope: Optional['Scope']            # None when this file is the builtins module itself
    diagnosticSink: DiagnosticSink

    def __init__(self, filePath: str, moduleName: str, /, isStubFile: bool=False, isInPyTypedPackage: bool=False,
                 diagnosticRuleSet: DiagnosticRuleSet=None, executionEnvironment: ExecutionEnvironment=None,
                 importLookup: ImportLookup=None, builtinsScope: 'Scope'=None, diagnosticSink: DiagnosticSink=None):
        self.filePath = filePath
        self.moduleName = moduleName
        self.isStubFile = isStubFile
        self.isTypingStubFile = isStubFile and moduleName == "typing"
        self.isTypingExtensionsStubFile = isStubFile and moduleName == "typing_extensions"
        self.isBuiltInStubFile = isStubFile and moduleName in ("builtins", "__builtins__")
        self.isInPyTypedPackage = isInPyTypedPackage
        self.diagnosticRuleSet = diagnosticRuleSet or DiagnosticRuleSet()
        self.executionEnvironment = executionEnvironment or ExecutionEnvironment()
        self.importLookup = importLookup or noImportLookup
        self.builtinsScope = builtinsScope
        self.diagnosticSink = diagnosticSink if diagnosticSink is not None else DiagnosticSink()

    def getFileStem(self) -> str:
        return os.path.splitext(os.path.basename(self.filePath))[0]
