__all__ = ["shared"]

shared = 1
