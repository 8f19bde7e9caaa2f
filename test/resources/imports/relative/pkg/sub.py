__all__ = ["value"]

value = 1
_hidden = 2
