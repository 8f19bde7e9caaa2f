"""Module registry, import resolution and lazy binding.
The file system search is based on python3.9/modulefinder.py"""

import ast
import builtins
import importlib.machinery
import inspect
import io
import keyword
import logging
import os
import sys
import sysconfig
from typing import Dict, List, Optional

from .Binding.Binder import Binder, BinderResults
from .Binding.Narrowing import NarrowingPolicy
from .Semantics.FileInfo import DiagnosticRuleSet, ExecutionEnvironment, FileInfo, ImportLookupResult
from .Semantics.IdGenerator import IdGenerator
from .Semantics.ImportResult import ImplicitImport, ImportResult, ImportType
from .Semantics.NodeInfo import NodeInfo
from .Semantics.Scope import Scope

logger = logging.getLogger(__name__)

# Old imp constants:

_SEARCH_ERROR = 0
_PY_SOURCE = 1
_PY_COMPILED = 2
_C_EXTENSION = 3
_PKG_DIRECTORY = 5
_C_BUILTIN = 6
_PY_FROZEN = 7
_NAMESPACE_PACKAGE = 8

_STDLIB_PATHS = [sysconfig.get_paths()["stdlib"], os.path.join(sysconfig.get_paths()["stdlib"], "lib-dynload")]

BUILTINS_MODULE_NAME = "builtins"

# binding states
UNBOUND = "unbound"
BINDING = "binding"
BOUND = "bound"
FAILED = "failed"


def _find_module(name, path=None):
    """An importlib reimplementation of imp.find_module (for our purposes)."""

    # It's necessary to clear the caches for our Finder first, in case any
    # modules are being added/deleted/modified at runtime.
    importlib.machinery.PathFinder.invalidate_caches()

    spec = importlib.machinery.PathFinder.find_spec(name, path)

    if spec is None:
        raise ImportError("No module named {name!r}".format(name=name), name=name)

    # namespace packages have search locations but no file
    if spec.loader is None or spec.origin is None:
        if spec.submodule_search_locations:
            return list(spec.submodule_search_locations), _NAMESPACE_PACKAGE
        raise ImportError("No module named {name!r}".format(name=name), name=name)

    # Some special cases:

    if spec.loader is importlib.machinery.BuiltinImporter:
        return None, _C_BUILTIN

    if spec.loader is importlib.machinery.FrozenImporter:
        return None, _PY_FROZEN

    file_path = spec.origin

    if spec.loader.is_package(name):
        return os.path.dirname(file_path), _PKG_DIRECTORY

    if isinstance(spec.loader, importlib.machinery.SourceFileLoader):
        kind = _PY_SOURCE

    elif isinstance(spec.loader, importlib.machinery.ExtensionFileLoader):
        kind = _C_EXTENSION

    elif isinstance(spec.loader, importlib.machinery.SourcelessFileLoader):
        kind = _PY_COMPILED

    else:  # Should never happen.
        kind = _SEARCH_ERROR

    return file_path, kind


def synthesizeBuiltinsSource() -> str:
    """Stub text for the running interpreter's builtins namespace: classes,
    callables as catch-all functions, and everything else as a variable."""
    lines = []
    for name, value in sorted(vars(builtins).items()):
        if(not name.isidentifier() or keyword.iskeyword(name) or name == "__debug__"):
            continue
        if(inspect.isclass(value)):
            lines.append(f"class {name}: ...")
        elif(callable(value)):
            lines.append(f"def {name}(*args, **kwargs): ...")
        else:
            lines.append(f"{name} = ...")
    return "\n".join(lines) + "\n"


class ModuleNotRegistered(Exception):
    pass


class Module:

    def __init__(self, name, file=None, path=None):
        self.__name__ = name
        self.__file__ = file                    # None for namespace packages and native modules
        self.__path__ = path                    # search locations, only for packages
        self.source = None                      # in-memory text; read from __file__ otherwise
        self.isStub = False
        self.isNative = False
        self.isNamespace = False
        self.isPyTyped = False
        self.loadedFromDisk = False
        self.importType = ImportType.LOCAL
        self.sourceFile = None                  # the .py behind a stub, if any

        self.state = UNBOUND
        self.tree: Optional[ast.Module] = None
        self.nodeInfo: Optional[NodeInfo] = None
        self.fileInfo: Optional[FileInfo] = None
        self.scope: Optional[Scope] = None
        self.results: Optional[BinderResults] = None

    def isPackage(self) -> bool:
        return self.__path__ is not None

    def getResolvedPath(self) -> str:
        return "" if self.isNamespace or self.__file__ is None else self.__file__

    def __repr__(self):
        s = "Module(%r" % (self.__name__,)
        if self.__file__ is not None:
            s = s + ", %r" % (self.__file__,)
        if self.__path__ is not None:
            s = s + ", %r" % (self.__path__,)
        s = s + ")"
        return s


class ModuleManager:
    """Holds every module of one analysis run.

    Modules are registered from source text with addModule() or found on
    disk under cwd (and the optional search paths) with addEntry(). Imports
    are resolved against the registered modules, falling back to the file
    system, and modules are bound the first time they are asked for.
    """

    def __init__(self, cwd=None, /, searchPaths=None, verbose=False, executionEnvironment: ExecutionEnvironment=None,
                 diagnosticRuleSet: DiagnosticRuleSet=None, narrowingPolicy: NarrowingPolicy=None):
        self.cwd = cwd
        self.externalPath = list(searchPaths or [])
        self.modules: Dict[str, Module] = {}
        self.paths: Dict[str, Module] = {}
        self.badmodules = {}
        self.verbose = verbose
        self.entrys: List[Module] = []

        self.executionEnvironment = executionEnvironment or ExecutionEnvironment()
        self.diagnosticRuleSet = diagnosticRuleSet or DiagnosticRuleSet()
        self.narrowingPolicy = narrowingPolicy
        self.idGenerator = IdGenerator()
        self.symbolIdGenerator = IdGenerator()

        self.builtinsModule = self.addModule(BUILTINS_MODULE_NAME, synthesizeBuiltinsSource(), isStub=True,
                                             importType=ImportType.BUILT_IN)

    # registration

    def addModule(self, fqname: str, source: str, /, isPackage: bool=False, isStub: bool=False, filePath: str=None,
                  importType: ImportType=ImportType.LOCAL, isPyTyped: bool=False) -> Module:
        if(filePath is None):
            filePath = fqname.replace(".", "/") + ("/__init__" if isPackage else "") + (".pyi" if isStub else ".py")

        existing = self.modules.get(fqname)
        if(existing and not existing.isNamespace):
            # a stub and its source share one module name
            if(existing.isStub and not isStub):
                existing.sourceFile = filePath
                return existing
            if(not existing.isStub and isStub):
                sourceFile = existing.__file__
                self.paths.pop(sourceFile, None)
                del self.modules[fqname]
                m = self.addModule(fqname, source, isPackage=isPackage, isStub=True, filePath=filePath,
                                   importType=importType, isPyTyped=isPyTyped)
                m.sourceFile = sourceFile
                return m
            raise ValueError(f"Module {fqname} is already registered.")

        self._add_parent_packages(fqname, importType)

        m = self.add_module(fqname)
        m.isNamespace = False
        m.source = source
        m.isStub = isStub
        m.importType = importType
        m.isPyTyped = isPyTyped
        m.__path__ = [os.path.dirname(filePath)] if isPackage else None
        self._set_module_file(m, filePath)
        return m

    def _add_parent_packages(self, fqname, importType):
        parts = fqname.split(".")
        for i in range(1, len(parts)):
            pname = ".".join(parts[:i])
            if(pname not in self.modules):
                m = self.add_module(pname)
                m.isNamespace = True
                m.importType = importType
                m.__path__ = [pname.replace(".", "/")]

    def addEntry(self, /, file=None, module=None) -> Module:
        """Adds a file under cwd, or a module importable from cwd, as an entry point."""
        if(file):
            relpath = os.path.relpath(os.path.join(self.cwd or os.getcwd(), file), self.cwd or os.getcwd())
            parts = os.path.splitext(relpath)[0].split(os.sep)
            if(parts[-1] == "__init__"):
                parts.pop()
            if(not parts or not all(part.isidentifier() for part in parts)):
                raise ValueError(f"{file} is not an importable module path.")
            module = ".".join(parts)

        m = self._import_hook(module)
        if(m is None):
            raise ImportError(f"Can't import {module}. Please check if this module exists.")
        self.entrys.append(m)
        return m

    def getEntrys(self) -> List[Module]:
        return list(self.entrys)

    def getModule(self, fqname: str) -> Module:
        m = self.modules.get(fqname)
        if(m is None):
            raise ModuleNotRegistered(f"Module {fqname} is not registered.")
        return m

    def getModuleByPath(self, path: str) -> Optional[Module]:
        return self.paths.get(path)

    # binding

    def getBuiltinsScope(self) -> Scope:
        return self.bindModule(BUILTINS_MODULE_NAME).scope

    def bindModule(self, fqname: str) -> Module:
        m = self.getModule(fqname)
        if(m.state != UNBOUND):
            return m

        # namespace packages and native modules have nothing to bind
        if(m.isNamespace or m.isNative or m.__file__ is None):
            m.state = BOUND
            return m

        if(self.verbose):
            logger.info("Binding %s", fqname)

        m.state = BINDING
        try:
            source = m.source
            if(source is None):
                with io.open_code(m.__file__) as fp:
                    source = fp.read()
            m.tree = ast.parse(source, filename=m.__file__)

            m.nodeInfo = NodeInfo(m.tree)
            self.resolveImports(m)

            isBuiltins = m is self.builtinsModule
            m.fileInfo = FileInfo(m.__file__, fqname, isStubFile=m.isStub, isInPyTypedPackage=self.isInPyTypedPackage(m),
                                  diagnosticRuleSet=self.diagnosticRuleSet, executionEnvironment=self.executionEnvironment,
                                  importLookup=self.importLookup, builtinsScope=None if isBuiltins else self.getBuiltinsScope())

            binder = Binder(m.fileInfo, m.nodeInfo, self.idGenerator, self.narrowingPolicy, self.symbolIdGenerator)
            m.results = binder.bindModule(m.tree)
        except Exception:
            # a partly bound module is never handed out
            m.state = FAILED
            m.scope = None
            m.results = None
            raise

        m.scope = m.nodeInfo.getScope(m.tree)
        m.state = BOUND
        return m

    def bindEntrys(self) -> List[Module]:
        return [self.bindModule(m.__name__) for m in self.entrys]

    def bindAll(self) -> List[Module]:
        return [self.bindModule(fqname) for fqname in list(self.modules)]

    def importLookup(self, path: str) -> Optional[ImportLookupResult]:
        m = self.paths.get(path)
        if(m is None):
            return None

        if(m.state == BINDING):
            logger.debug("%s is still being bound, import lookup skipped", m.__name__)
            return None
        if(m.state == UNBOUND):
            try:
                self.bindModule(m.__name__)
            except (OSError, SyntaxError) as e:
                logger.warning("Can't bind %s: %s", m.__name__, e)
                return None

        if(m.scope is None):
            return None
        return ImportLookupResult(m.scope.symbolTable, m.results.dunderAllNames, m.results.moduleDocString)

    def isInPyTypedPackage(self, m: Module) -> bool:
        head = m.__name__.split(".")[0]
        topModule = self.modules.get(head)
        return bool(topModule and topModule.isPyTyped)

    # import resolution

    def resolveImports(self, m: Module):
        for node in ast.walk(m.tree):
            if(isinstance(node, ast.Import)):
                for alias in node.names:
                    m.nodeInfo.setImportInfo(alias, self.resolveImport(m, alias.name))
            elif(isinstance(node, ast.ImportFrom)):
                fromlist = [alias.name for alias in node.names]
                m.nodeInfo.setImportInfo(node, self.resolveImport(m, node.module or "", node.level, fromlist))

    def resolveImport(self, caller: Module, name: str, level: int=0, fromlist: List[str]=None) -> ImportResult:
        """fromlist is None for "import a.b"; the imported names for "from a.b import ..."."""
        importName = "." * level + name
        try:
            parent = self.determine_parent(caller, level)
        except ImportError as e:
            logger.debug("%s in %s: %s", importName, caller.__name__, e)
            return ImportResult(importName, isRelative=level > 0)

        nameParts = name.split(".") if name else []
        found = []
        if(parent and not nameParts):
            found.append(parent)
        for part in nameParts:
            prev = found[-1] if found else parent
            fqname = f"{prev.__name__}.{part}" if prev else part
            m = self.import_module(caller, part, fqname, prev)
            if(m is None):
                self._add_badmodule(fqname, caller)
                break
            found.append(m)

        if(not found):
            return ImportResult(importName, isRelative=level > 0)

        isImportFound = len(found) == max(len(nameParts), 1)
        last = found[-1]

        implicitImports = self.getImplicitImports(last, caller) if isImportFound else []
        if(fromlist is None):
            filteredImplicitImports = []
        elif("*" in fromlist):
            filteredImplicitImports = implicitImports
        else:
            filteredImplicitImports = [imp for imp in implicitImports if imp.name in fromlist]

        nonStubImportResult = None
        if(isImportFound and last.isStub):
            nonStubImportResult = ImportResult(importName, isRelative=level > 0, isImportFound=last.sourceFile is not None,
                                               resolvedPaths=[last.sourceFile] if last.sourceFile else [])

        return ImportResult(importName,
            isRelative=level > 0,
            isImportFound=isImportFound,
            isPartlyResolved=not isImportFound,
            isNamespacePackage=last.isNamespace,
            isStubFile=last.isStub,
            isNativeLib=last.isNative,
            importType=last.importType,
            resolvedPaths=[m.getResolvedPath() for m in found],
            implicitImports=implicitImports,
            filteredImplicitImports=filteredImplicitImports,
            nonStubImportResult=nonStubImportResult,
            isPyTyped=self.isInPyTypedPackage(last))

    def getImplicitImports(self, m: Module, caller: Module=None) -> List[ImplicitImport]:
        if(not m.isPackage()):
            return []

        if(m.loadedFromDisk):
            for sub in self.find_all_submodules(m):
                subname = "%s.%s" % (m.__name__, sub)
                if(subname not in self.modules and subname not in self.badmodules):
                    if(self.import_module(caller, sub, subname, m) is None):
                        self._add_badmodule(subname, caller)

        prefix = m.__name__ + "."
        implicitImports = []
        for fqname, sub in self.modules.items():
            if(fqname.startswith(prefix) and "." not in fqname[len(prefix):]):
                implicitImports.append(ImplicitImport(fqname[len(prefix):], sub.getResolvedPath(),
                                                      isStubFile=sub.isStub, isNativeLib=sub.isNative))
        return implicitImports

    def _import_hook(self, name, caller=None, level=0) -> Optional[Module]:
        parent = self.determine_parent(caller, level=level)
        m = parent
        for part in name.split("."):
            fqname = f"{m.__name__}.{part}" if m else part
            m = self.import_module(caller, part, fqname, m)
            if(m is None):
                return None
        return m

    # used when relative import, return an added module
    def determine_parent(self, caller, level=0):

        if not caller or level == 0:
            return None
        # pname: parent's name
        pname = caller.__name__
        if caller.__path__:
            # caller is a package
            level -= 1
        if level == 0:
            # when caller is a package, and module is inside the package
            parent = self.modules[pname]
            assert parent is caller
            return parent
        if pname.count(".") < level:
            raise ImportError("relative importpath too deep")
        pname = ".".join(pname.split(".")[:-level])
        return self.modules[pname]

    # used when m is a package, return all submodules' name
    def find_all_submodules(self, m):
        modules = {}
        suffixes = []
        suffixes += importlib.machinery.EXTENSION_SUFFIXES[:]
        suffixes += importlib.machinery.SOURCE_SUFFIXES[:]
        for dir in m.__path__:
            try:
                names = os.listdir(dir)
            except OSError:
                continue
            for name in names:
                mod = None
                for suff in suffixes:
                    n = len(suff)
                    if name[-n:] == suff:
                        mod = name[:-n]
                        break
                if mod is None and os.path.isfile(os.path.join(dir, name, "__init__.py")):
                    mod = name
                if mod and mod != "__init__" and mod.isidentifier():
                    modules[mod] = mod
        return sorted(modules)

    # import = find + load, import specific module
    def import_module(self, caller, partname, fqname, parent) -> Optional[Module]:
        m = self.modules.get(fqname)
        if m is not None:
            return m

        if fqname in self.badmodules:
            return None

        if parent and (parent.__path__ is None or not parent.loadedFromDisk):
            return None

        try:
            pathname, kind, importType = self.find_module(partname, parent and parent.__path__, parent)
        except ImportError:
            return None

        return self.load_module(fqname, pathname, kind, importType)

    # load = register a module found on disk, its source is read when it is bound
    def load_module(self, fqname, pathname, kind, importType) -> Optional[Module]:
        if(self.verbose):
            logger.info("Loading %s", fqname)

        if kind == _PKG_DIRECTORY:
            return self.load_package(fqname, pathname, importType)

        if kind == _SEARCH_ERROR:
            return None

        m = self.add_module(fqname)
        m.importType = importType
        m.loadedFromDisk = True
        if kind == _NAMESPACE_PACKAGE:
            m.isNamespace = True
            m.__path__ = pathname
        elif kind == _PY_SOURCE:
            self._set_module_file(m, pathname)
        else:
            m.isNative = True
            if pathname:
                self._set_module_file(m, pathname)
        return m

    def load_package(self, fqname, pathname, importType):
        m = self.add_module(fqname)
        m.__path__ = [pathname]
        m.importType = importType
        m.loadedFromDisk = True
        m.isPyTyped = importType == ImportType.THIRD_PARTY and os.path.isfile(os.path.join(pathname, "py.typed"))

        # the __init__ is treated as this package itself
        initPath, kind = _find_module("__init__", m.__path__)
        if kind == _PY_SOURCE:
            self._set_module_file(m, initPath)
        else:
            m.isNative = True
        return m

    def _add_badmodule(self, name, caller):
        if name not in self.badmodules:
            self.badmodules[name] = {}
        if caller:
            self.badmodules[name][caller.__name__] = 1
        else:
            self.badmodules[name]["-"] = 1

    # add to self.modules: full qualified name -> Module
    def add_module(self, fqname):
        if fqname in self.modules:
            return self.modules[fqname]
        self.modules[fqname] = m = Module(fqname)
        return m

    def _set_module_file(self, m, pathname):
        m.__file__ = pathname
        self.paths[pathname] = m

    # parent is used when relative import
    # return module path, kind, and the import type
    def find_module(self, name, path, parent=None):
        if path is not None:
            pathname, kind = _find_module(name, path)
            return pathname, kind, parent.importType if parent is not None else ImportType.LOCAL

        if name in sys.builtin_module_names:
            return None, _C_BUILTIN, ImportType.BUILT_IN

        # local modules shadow the standard library, which shadows third party code
        searchOrder = []
        if self.cwd:
            searchOrder.append(([self.cwd], ImportType.LOCAL))
        searchOrder.append((_STDLIB_PATHS, ImportType.BUILT_IN))
        if self.externalPath:
            searchOrder.append((self.externalPath, ImportType.THIRD_PARTY))

        for searchPath, importType in searchOrder:
            try:
                pathname, kind = _find_module(name, searchPath)
            except ImportError:
                continue
            return pathname, kind, importType
        raise ImportError("No module named " + name)
