"""
Validator behavioral tests (checks on their own, schema pairing, binding).

Scope
- Validate numeric bounds, forbidden values, patterns, emptiness and path existence.
- Validate that a check which does not fit the argument's values is rejected
  when the schema is resolved, while plain callables are always accepted.
- Validate that the binder reports rejected values as InvalidValueError, once
  per element for collections, and keeps them out of the destination.

Conventions
- Test method names follow CamelCase per project convention.
- Path checks run against an in-memory file system.
"""
import pathlib
import unittest
from unittest import TestCase

from argbind import (
    INTEGER,
    PATH,
    STRING,
    ArgumentDefinition,
    Arity,
    Context,
    FaultCode,
    InvalidArgumentSet,
    InvalidValueError,
    Named,
    Positional,
    TypeConversionError,
    at_least,
    at_most,
    bind,
    exists,
    greater_than,
    less_than,
    lookup,
    matches,
    not_empty,
    not_equal,
    not_exists,
    not_matches,
    resolve_schema,
)


class MemoryFileSystem:
    def __init__(self, files=(), directories=()):
        self.files = set(files)
        self.directories = set(directories)

    def resolve(self, path):
        return path

    def read(self, path):
        raise FileNotFoundError(2, "No such file or directory", path)

    def entries(self, directory):
        return iter(())

    def kind(self, path):
        if path in self.directories:
            return "directory"
        if path in self.files:
            return "file"
        return None


class Build:
    jobs = Named(type=int, validators=(at_least(1), at_most(8)))
    target = Named(type=str, validators=(not_empty(), not_matches(r"\s")))
    ports = Named(type=list[int], arity=Arity.MULTIPLE, validators=(less_than(65536),))
    output = Named(type=pathlib.Path, validators=(not_exists("directory"),))
    sources = Positional(0, type=list[pathlib.Path], arity=Arity.REST_OF_LINE, validators=(exists("file"),))


def kinds(outcome):
    return [type(fault) for fault in outcome.faults]


class TestChecks(TestCase):
    """Behavioral tests for the built-in checks on their own."""

    def testBounds(self):
        at_least(1)(1)
        at_most(8)(8)
        with self.assertRaises(ValueError):
            at_least(1)(0)
        with self.assertRaises(ValueError):
            greater_than(1)(1)
        with self.assertRaises(ValueError):
            less_than(2.5)(3)

    def testForbiddenValue(self):
        not_equal(0)(1)
        with self.assertRaisesRegex(ValueError, "must not be 0"):
            not_equal(0)(0)

    def testPatterns(self):
        matches(r"^v\d+$")("v12")
        not_matches(r"\s")("compact")
        with self.assertRaisesRegex(ValueError, "must match"):
            matches(r"^v\d+$")("12")
        with self.assertRaisesRegex(ValueError, "must not match"):
            not_matches(r"\s")("two words")

    def testPatternsReadPathText(self):
        matches(r"\.txt$")(pathlib.PurePath("notes.txt"))

    def testNotEmpty(self):
        not_empty()("x")
        with self.assertRaises(ValueError):
            not_empty()("")

    def testExistence(self):
        context = Context(MemoryFileSystem(files={"a.txt"}, directories={"out"}))
        exists()("a.txt", context)
        exists("directory")("out", context)
        not_exists("file")("out", context)
        with self.assertRaisesRegex(ValueError, "file does not exist"):
            exists("file")("out", context)
        with self.assertRaisesRegex(ValueError, "path already exists"):
            not_exists()("a.txt", context)

    def testBadConstruction(self):
        with self.assertRaises(TypeError):
            at_least("1")
        with self.assertRaises(ValueError):
            exists("socket")


class TestPairing(TestCase):
    """Behavioral tests for checks attached to argument definitions."""

    def testMismatchedCheckRejected(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, validators=(matches("x"),))
        with self.assertRaises(ValueError):
            ArgumentDefinition("name", STRING, validators=(at_least(1),))
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, validators=(exists(),))

    def testCollectionElementShapeIsUsed(self):
        definition = ArgumentDefinition("paths", lookup(list[pathlib.Path]), validators=(exists(),))
        self.assertEqual(len(definition.validators), 1)

    def testPlainCallablesAccepted(self):
        definition = ArgumentDefinition("path", PATH, validators=[lambda value, context: None])
        self.assertEqual(len(definition.validators), 1)

    def testValidatorsMustBeCallables(self):
        with self.assertRaises(TypeError):
            ArgumentDefinition("name", STRING, validators=("x",))
        with self.assertRaises(TypeError):
            ArgumentDefinition("name", STRING, validators=not_empty())

    def testSchemaReportsMismatch(self):
        class Broken:
            count = Named(type=int, validators=(not_empty(),))

        with self.assertRaises(InvalidArgumentSet):
            resolve_schema(Broken)


class TestBinding(TestCase):
    """Behavioral tests for checks run by the binder."""

    def setUp(self):
        self.context = Context(MemoryFileSystem(files={"a.c", "b.c"}, directories={"build"}))

    def testAcceptedValues(self):
        outcome = bind(Build, ["/Jobs=4", "/Target=all", "/Ports=80", "/Ports=443", "a.c", "b.c"], context=self.context)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.destination.jobs, 4)
        self.assertEqual(outcome.destination.ports, [80, 443])
        self.assertEqual(outcome.destination.sources, [pathlib.Path("a.c"), pathlib.Path("b.c")])

    def testRejectedValueIsReported(self):
        outcome = bind(Build, ["/Jobs=9"], context=self.context)
        self.assertEqual(kinds(outcome), [InvalidValueError])
        self.assertFalse(outcome.success)
        fault = outcome.faults[0]
        self.assertIsInstance(fault, TypeConversionError)
        self.assertEqual(fault.code, FaultCode.INVALID_VALUE)
        self.assertIn("must be at most 8", str(fault))
        self.assertEqual(outcome.destination.jobs, 0)

    def testEveryCheckRuns(self):
        self.assertEqual(kinds(bind(Build, ["/Target=two words"], context=self.context)), [InvalidValueError])
        self.assertEqual(kinds(bind(Build, ["/Output=build"], context=self.context)), [InvalidValueError])
        self.assertTrue(bind(Build, ["/Output=dist"], context=self.context).success)

    def testEachElementIsChecked(self):
        outcome = bind(Build, ["/Ports=80", "/Ports=70000", "a.c", "missing.c"], context=self.context)
        self.assertEqual(kinds(outcome), [InvalidValueError, InvalidValueError])
        self.assertEqual(outcome.destination.ports, [80])
        self.assertEqual(outcome.destination.sources, [pathlib.Path("a.c")])

    def testPlainCallableCheck(self):
        def even(value, context):
            if value % 2:
                raise ValueError("must be even")

        class Pairs:
            size = Named(type=int, validators=(even,))

        self.assertTrue(bind(Pairs, ["/Size=2"]).success)
        self.assertEqual(kinds(bind(Pairs, ["/Size=3"])), [InvalidValueError])


if __name__ == "__main__":
    unittest.main()
