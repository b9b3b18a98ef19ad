# python
"""
Utils module behavioral tests (Unset sentinel, coalesce, rename, mirror).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from unittest import TestCase

from flagship.utils import Unset, UnsetType, coalesce, mirror, rename


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFalsyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionSupport(self):
        self.assertIsInstance("x", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(None, str | Unset)

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})


class TestHelpers(TestCase):
    """Behavioral tests for coalesce, rename and mirror."""

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRename(self):
        def function():
            pass

        self.assertEqual(rename(function, "renamed").__name__, "renamed")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__qualname__, "decorated")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorFreezesContainers(self):
        class Holder:
            items = mirror("items")
            name = mirror("name")

            def __init__(self):
                self._items = ["a", "b"]
                self._name = "holder"

        holder = Holder()
        self.assertEqual(holder.items, ("a", "b"))
        self.assertEqual(holder.name, "holder")
        holder._items.append("c")
        self.assertEqual(holder.items, ("a", "b", "c"))
        self.assertIsInstance(holder.items, tuple)
        with self.assertRaises(AttributeError):
            holder.name = "other"


if __name__ == "__main__":
    unittest.main()
