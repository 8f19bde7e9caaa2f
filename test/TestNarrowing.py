import ast
import unittest

from PyBinder.Binding.Narrowing import (NarrowingPolicy, classify, createKeyForReference,
                                        isCodeFlowSupportedForReference)


def parseExpression(text: str) -> ast.expr:
    return ast.parse(text, mode="eval").body


class TestNarrowing(unittest.TestCase):
    def setUp(self) -> None:
        self.maxDiff = None

    def assertNarrows(self, text: str, keys, **kwargs):
        result = classify(parseExpression(text), **kwargs)
        self.assertTrue(result.isNarrowing, text)
        self.assertEqual([createKeyForReference(ref) for ref in result.references], keys)

    def assertNotNarrows(self, text: str, **kwargs):
        result = classify(parseExpression(text), **kwargs)
        self.assertFalse(result.isNarrowing, text)
        self.assertEqual(result.references, [])

    def testReferences(self):
        self.assertTrue(isCodeFlowSupportedForReference(parseExpression("a")))
        self.assertTrue(isCodeFlowSupportedForReference(parseExpression("a.b.c")))
        self.assertTrue(isCodeFlowSupportedForReference(parseExpression("a.b[0]")))
        self.assertFalse(isCodeFlowSupportedForReference(parseExpression("a[-1]")))
        self.assertFalse(isCodeFlowSupportedForReference(parseExpression("a[i]")))
        self.assertFalse(isCodeFlowSupportedForReference(parseExpression("f().x")))
        self.assertEqual(createKeyForReference(parseExpression("a.b[2].c")), "a.b[2].c")

    def testTruthiness(self):
        self.assertNarrows("x", ["x"])
        self.assertNarrows("self.value", ["self.value"])
        self.assertNarrows("not x", ["x"])
        self.assertNotNarrows("f()")
        self.assertNotNarrows("1")

    def testComparisons(self):
        self.assertNarrows("x is None", ["x"])
        self.assertNarrows("x is not None", ["x"])
        self.assertNarrows("x == None", ["x"])
        self.assertNarrows("type(x) is int", ["x"])
        self.assertNarrows("x == y", ["x", "y"])
        self.assertNarrows("x is y", ["x"])
        self.assertNarrows("x in items", ["items"])
        self.assertNarrows("x in (1, 2)", ["x"])
        self.assertNotNarrows("x not in (1, 2)")
        self.assertNotNarrows("x < 3")
        # chained comparisons never narrow
        self.assertNotNarrows("0 < x < 3")

    def testAssignmentExpression(self):
        self.assertNarrows("(m := match())", ["m"])
        self.assertNarrows("(m := match()) is None", ["m"])

    def testCalls(self):
        self.assertNarrows("isinstance(x, int)", ["x"])
        self.assertNarrows("issubclass(cls, Base)", ["cls"])
        self.assertNarrows("callable(x)", ["x"])
        self.assertNarrows("is_str_list(x)", ["x"])
        self.assertNotNarrows("isinstance(*args)")
        self.assertNotNarrows("is_str_list(*args)")
        self.assertNotNarrows("f()")

    def testPolicy(self):
        policy = NarrowingPolicy(narrowCallArguments=False)
        self.assertNotNarrows("is_str_list(x)", policy=policy)
        self.assertNarrows("isinstance(x, int)", ["x"], policy=policy)

    def testNeverNarrowing(self):
        # a bare truthiness check can't prove the other branch impossible
        self.assertNotNarrows("x", neverNarrowing=True)
        self.assertNotNarrows("x.y", neverNarrowing=True)
        self.assertNotNarrows("is_str_list(x)", neverNarrowing=True)
        self.assertNarrows("x is None", ["x"], neverNarrowing=True)
        self.assertNarrows("isinstance(x, int)", ["x"], neverNarrowing=True)
        self.assertNotNarrows("isinstance(x, int)", neverNarrowing=True,
                              policy=NarrowingPolicy(neverNarrowBuiltinChecks=False))


if __name__ == "__main__":
    unittest.main()
