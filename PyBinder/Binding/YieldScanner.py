import ast


class YieldScanner(ast.NodeVisitor):
    containsYield: bool
    # nodes under function, lambda, class are not considered
    def __init__(self):
        self.containsYield = False

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        pass
    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        pass
    def visit_Lambda(self, node: ast.Lambda) -> None:
        pass
    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        pass

    def visit_Yield(self, node: ast.Yield) -> None:
        self.containsYield = True

    def visit_YieldFrom(self, node: ast.YieldFrom) -> None:
        self.containsYield = True

    def checkContainsYield(self, stmt: ast.stmt) -> bool:
        self.visit(stmt)
        return self.containsYield
