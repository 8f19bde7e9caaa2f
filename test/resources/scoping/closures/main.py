counter = 0


def outer():
    total = 0

    def inner(step):
        nonlocal total
        global counter
        total += step
        counter += 1
    return inner


class Registry:
    entries = []

    def add(self, item):
        self.entries.append(item)
        self.last = item


def broken():
    nonlocal counter
