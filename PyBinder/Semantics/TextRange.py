import ast


class Position:
    line: int                                   # zero-based
    character: int                              # zero-based column offset

    def __init__(self, line: int=0, character: int=0):
        self.line = line
        self.character = character

    def __eq__(self, other):
        return isinstance(other, Position) and self.line == other.line and self.character == other.character

    def __hash__(self):
        return hash((self.line, self.character))

    def __repr__(self):
        return f"{self.line + 1}:{self.character + 1}"


class Range:
    start: Position
    end: Position

    def __init__(self, start: Position, end: Position):
        self.start = start
        self.end = end

    def isEmpty(self) -> bool:
        return self.start == self.end

    def __eq__(self, other):
        return isinstance(other, Range) and self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash((self.start, self.end))

    def __repr__(self):
        return f"{self.start}-{self.end}"


def getEmptyRange() -> Range:
    return Range(Position(), Position())


# ast positions are 1-based lines and 0-based columns
def convertNodeToRange(node: ast.AST) -> Range:
    lineno = getattr(node, "lineno", None)
    if(lineno is None):
        return getEmptyRange()
    start = Position(lineno - 1, node.col_offset)
    endLineno = getattr(node, "end_lineno", None)
    if(endLineno is None):
        return Range(start, start)
    return Range(start, Position(endLineno - 1, node.end_col_offset))


# just the "x" of "self.x"
def convertMemberNameToRange(node: ast.Attribute) -> Range:
    endLineno = getattr(node, "end_lineno", None)
    if(endLineno is None):
        return convertNodeToRange(node)
    end = Position(endLineno - 1, node.end_col_offset)
    return Range(Position(end.line, max(end.character - len(node.attr), 0)), end)
