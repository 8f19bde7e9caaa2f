import re

_constantRegEx = re.compile(r"^[A-Z0-9_]+$")
_underscoreOnlyRegEx = re.compile(r"^[_]+$")
_typeAliasRegEx = re.compile(r"^_{0,2}[A-Z][A-Za-z0-9_]+$")


# "__x" but not "__x__"; these are name-mangled inside classes
def isPrivateName(name: str) -> bool:
    return len(name) > 2 and name.startswith("__") and not name.endswith("__")


def isProtectedName(name: str) -> bool:
    return len(name) > 1 and name.startswith("_") and not name.startswith("__")


def isPrivateOrProtectedName(name: str) -> bool:
    return isPrivateName(name) or isProtectedName(name)


def isDunderName(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def isConstantName(name: str) -> bool:
    return bool(_constantRegEx.match(name)) and not _underscoreOnlyRegEx.match(name)


def isTypeAliasName(name: str) -> bool:
    return bool(_typeAliasRegEx.match(name))
