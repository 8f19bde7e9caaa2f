import argparse
import logging
import os
import sys

from PyBinder.Export import to_json
from PyBinder.ModuleManager import ModuleManager, ModuleNotRegistered
from PyBinder.Semantics.FileInfo import ExecutionEnvironment, PythonPlatform


def parseVersion(text: str):
    try:
        major, minor = text.split(".")
        return int(major), int(minor)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text} is not a version like 3.10")


if __name__ == "__main__":
    argparser = argparse.ArgumentParser(prog="PyBinder",
        description="Bind Python modules: scopes, symbols, declarations and code flow graphs."
    )
    argparser.add_argument("path",
        help="A .py/.pyi file, or a directory whose .py files are all bound."
    )
    argparser.add_argument("--python-version",
        type=parseVersion,
        help="Python version assumed by static conditions such as \"sys.version_info >= (3, 8)\". Defaults to the running interpreter."
    )
    argparser.add_argument("--platform",
        choices=[p.value for p in PythonPlatform],
        help="Platform assumed by \"sys.platform\" checks. Defaults to the host platform."
    )
    argparser.add_argument("--stub",
        action="store_true",
        default=False,
        help="Treat the given file as a stub file."
    )
    argparser.add_argument("--py-typed",
        action="store_true",
        default=False,
        help="Treat the bound modules as part of a py.typed package."
    )
    argparser.add_argument("-m", "--modules",
        nargs="+",
        help="Module names under PATH to bind, instead of every file."
    )
    argparser.add_argument("-v", "--verbose",
        action="store_true",
        default=False,
        help="Log module loading and binding."
    )
    argparser.add_argument("-o", "--output",
        help="The file path where the JSON export is written. Without it, a summary is printed."
    )

    args = argparser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    path = os.path.abspath(args.path)
    cwd = path if os.path.isdir(path) else os.path.dirname(path)
    executionEnvironment = ExecutionEnvironment(args.python_version,
        PythonPlatform(args.platform) if args.platform else None)
    mm = ModuleManager(cwd, verbose=args.verbose, executionEnvironment=executionEnvironment)

    try:
        if(os.path.isfile(path)):
            name = os.path.basename(path)
            if(args.stub or name.endswith(".pyi")):
                with open(path, encoding="utf-8") as fp:
                    entry = mm.addModule(os.path.splitext(name)[0], fp.read(), isStub=True, filePath=path)
                mm.entrys.append(entry)
            else:
                mm.addEntry(file=name)
        elif(args.modules):
            for module in args.modules:
                mm.addEntry(module=module)
        else:
            for root, dirs, files in os.walk(path):
                dirs[:] = sorted(d for d in dirs if d.isidentifier())
                for file in sorted(files):
                    # the directory itself is not a package here
                    if(root == path and file == "__init__.py"):
                        continue
                    if(file.endswith(".py") and file[:-3].isidentifier()):
                        mm.addEntry(file=os.path.relpath(os.path.join(root, file), path))
        if(args.py_typed):
            for m in mm.getEntrys():
                mm.getModule(m.__name__.split(".")[0]).isPyTyped = True
        modules = mm.bindEntrys()
    except (ImportError, ValueError, ModuleNotRegistered) as e:
        print(f"Error: {e}")
        sys.exit(1)
    except SyntaxError as e:
        print(f"Error: {e.filename}:{e.lineno}: {e.msg}")
        sys.exit(1)

    if(args.output):
        with open(args.output, "w") as fp:
            fp.write(to_json(modules))
    else:
        for m in modules:
            diagnostics = m.fileInfo.diagnosticSink.diagnostics if m.fileInfo else []
            symbolCount = len(m.scope.symbolTable) if m.scope else 0
            print(f"{m.__name__}: {symbolCount} module symbols, {len(diagnostics)} diagnostics")
            for diagnostic in diagnostics:
                print(f"    {diagnostic}")
