import logging
from typing import Dict, List, Optional

from .TextRange import Range

logger = logging.getLogger(__name__)


class DiagnosticRule:
    reportMissingImports = "reportMissingImports"
    reportMissingTypeStubs = "reportMissingTypeStubs"
    reportMissingModuleSource = "reportMissingModuleSource"
    reportUnsupportedDunderAll = "reportUnsupportedDunderAll"
    reportPrivateUsage = "reportPrivateUsage"


class Localizer:
    messages: Dict[str, str] = {
        "annotationNotSupported": "Type annotation not supported for this type of expression",
        "assignmentExprComprehension": "Assignment expression target \"{name}\" cannot use same name as comprehension for target",
        "assignmentExprContext": "Assignment expression must be within module, function or lambda",
        "awaitNotInAsync": "\"await\" allowed only within async function",
        "globalReassignment": "\"{name}\" is assigned before global declaration",
        "globalRedefinition": "\"{name}\" was already declared global",
        "importResolveFailure": "Import \"{importName}\" could not be resolved",
        "importSourceResolveFailure": "Import \"{importName}\" could not be resolved from source",
        "nonLocalInModule": "Nonlocal declaration not allowed at module level",
        "nonLocalNoBinding": "No binding for nonlocal \"{name}\" found",
        "nonLocalReassignment": "\"{name}\" is assigned before nonlocal declaration",
        "nonLocalRedefinition": "\"{name}\" was already declared nonlocal",
        "raiseParams": "\"raise\" requires one or more parameters outside of an except clause",
        "stubFileMissing": "Stub file not found for \"{importName}\"",
        "typeAliasNotInModule": "A TypeAlias can be defined only within a module scope",
        "unsupportedDunderAllOperation": "Operation on \"__all__\" is not supported, so exported symbol list may be incorrect",
        "wildcardInFunction": "Wildcard import not allowed within a class or function",
        "yieldFromOutsideAsync": "\"yield from\" not allowed in an async function",
        "yieldOutsideFunction": "\"yield\" not allowed outside of a function or lambda",
        "yieldWithinComprehension": "\"yield\" not allowed inside a comprehension",
    }

    @classmethod
    def format(cls, messageKey: str, **kwargs) -> str:
        return cls.messages[messageKey].format(**kwargs)


class DiagnosticAction:
    action: str

    def __init__(self, action: str):
        self.action = action


class CreateTypeStubFileAction(DiagnosticAction):
    moduleName: str

    def __init__(self, moduleName: str):
        super().__init__("createTypeStub")
        self.moduleName = moduleName


class Diagnostic:
    messageKey: str
    message: str
    range: Range
    rule: Optional[str]                         # None for errors that no rule can switch off
    actions: List[DiagnosticAction]

    def __init__(self, messageKey: str, message: str, range: Range, rule: str=None):
        self.messageKey = messageKey
        self.message = message
        self.range = range
        self.rule = rule
        self.actions = []

    def addAction(self, action: DiagnosticAction):
        self.actions.append(action)

    def __repr__(self):
        rule = f" [{self.rule}]" if self.rule else ""
        return f"{self.range}: {self.message}{rule}"


class DiagnosticSink:
    diagnostics: List[Diagnostic]

    def __init__(self):
        self.diagnostics = []

    def addDiagnostic(self, diagnostic: Diagnostic) -> Diagnostic:
        logger.debug("diagnostic %r", diagnostic)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def getMessageKeys(self) -> List[str]:
        return [diag.messageKey for diag in self.diagnostics]
