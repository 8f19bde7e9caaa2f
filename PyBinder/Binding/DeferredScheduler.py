import ast
import logging
from collections import deque
from typing import TYPE_CHECKING, Callable, Deque, Set

if TYPE_CHECKING:
    from ..Semantics.Scope import Scope

logger = logging.getLogger(__name__)


class DeferredBindingTask:
    scope: 'Scope'                              # the function or lambda scope the body binds into
    referenceMap: Set[str]                      # reference keys of that execution scope
    node: ast.AST                               # FunctionDef, AsyncFunctionDef or Lambda

    def __init__(self, scope: 'Scope', referenceMap: Set[str], node: ast.AST):
        self.scope = scope
        self.referenceMap = referenceMap
        self.node = node

    def __repr__(self):
        return f"DeferredBindingTask({type(self.node).__name__}@{getattr(self.node, 'lineno', '?')})"


class DeferredScheduler:
    """FIFO of function and lambda bodies waiting to be bound.

    Bodies are bound only after the enclosing scope has seen all of its
    siblings. Tasks queued while draining (nested functions) run after
    everything already queued.
    """

    _tasks: Deque[DeferredBindingTask]

    def __init__(self):
        self._tasks = deque()

    def defer(self, scope: 'Scope', referenceMap: Set[str], node: ast.AST):
        self._tasks.append(DeferredBindingTask(scope, referenceMap, node))

    def drain(self, replay: Callable[[DeferredBindingTask], None]) -> int:
        count = 0
        while(self._tasks):
            task = self._tasks.popleft()
            replay(task)
            count += 1
        logger.debug("bound %d deferred bodies", count)
        return count

    def __len__(self):
        return len(self._tasks)
