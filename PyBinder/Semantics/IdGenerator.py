import itertools


class IdGenerator:
    # 0 is taken by the unreachable flow node
    def __init__(self, start: int=1):
        self._counter = itertools.count(start)

    def next(self) -> int:
        return next(self._counter)
