"""
Arguments module behavioral tests (arity, naming, definitions, syntax).

Scope
- Validate Arity flags and their composites.
- Validate NameStyle long-name generation.
- Validate ArgumentDefinition sanitization (names, arity, defaults, conflicts, verbs).
- Validate effective defaults, help syntax fragments and destination access.

Conventions
- Test method names follow CamelCase per project convention.
- Definitions are built directly; schema-level rules live in the schemas tests.
"""
import enum
import unittest
from types import SimpleNamespace
from unittest import TestCase

from argbind import (
    BOOLEAN,
    INTEGER,
    PATH,
    STRING,
    ArgumentDefinition,
    Arity,
    NameStyle,
    Named,
    Positional,
    Unset,
    descriptor,
    lookup,
)


class Color(enum.Enum):
    Red = 1
    Green = 2


class TestArity(TestCase):
    """Behavioral tests for Arity flags."""

    def testComposites(self):
        self.assertEqual(Arity.AT_LEAST_ONCE, Arity.REQUIRED | Arity.MULTIPLE)
        self.assertEqual(Arity.MULTIPLE_UNIQUE, Arity.MULTIPLE | Arity.UNIQUE)

    def testAtMostOnceIsEmpty(self):
        self.assertNotIn(Arity.REQUIRED, Arity.AT_MOST_ONCE)
        self.assertNotIn(Arity.MULTIPLE, Arity.AT_MOST_ONCE)


class TestNameStyle(TestCase):
    """Behavioral tests for generated long names."""

    def testPascal(self):
        self.assertEqual(NameStyle.PASCAL.generate("output_path"), "OutputPath")
        self.assertEqual(NameStyle.PASCAL.generate("bar"), "Bar")

    def testHyphenated(self):
        self.assertEqual(NameStyle.HYPHENATED.generate("output_path"), "output-path")

    def testOriginal(self):
        self.assertEqual(NameStyle.ORIGINAL.generate("_output_path"), "output_path")


class TestSpecs(TestCase):
    """Behavioral tests for the raw Named/Positional specs."""

    def testNamedKeepsRawValues(self):
        spec = Named("Out", "o", type=int, default=3)
        self.assertEqual(spec.long_name, "Out")
        self.assertEqual(spec.short_name, "o")
        self.assertIs(spec.type, int)
        self.assertEqual(spec.default, 3)

    def testPositionalKeepsPosition(self):
        spec = Positional(2, type=str)
        self.assertEqual(spec.position, 2)
        self.assertIs(spec.long_name, Unset)

    def testSpecsAreSealed(self):
        with self.assertRaises(TypeError):
            type("Option", (Named,), {})

    def testDescriptorResolution(self):
        self.assertIs(descriptor(Named(type=int)), INTEGER)
        self.assertIs(descriptor(Named(), bool), BOOLEAN)
        self.assertIs(descriptor(Named()), STRING)


class TestArgumentDefinition(TestCase):
    """Behavioral tests for ArgumentDefinition sanitization."""

    def testLongNameDefaultsToMember(self):
        argument = ArgumentDefinition("count", INTEGER)
        self.assertEqual(argument.long_name, "count")
        self.assertTrue(argument.named)

    def testEmptyLongNameRejected(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, long_name="")
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, long_name="  ")

    def testMalformedLongNameRejected(self):
        for name in ("1st", "two words", "/slash", '"quoted'):
            with self.assertRaises(ValueError, msg=name):
                ArgumentDefinition("count", INTEGER, long_name=name)

    def testLongNameAllowsPunctuation(self):
        argument = ArgumentDefinition("count", INTEGER, long_name="max-count.v2")
        self.assertEqual(argument.long_name, "max-count.v2")

    def testShortNameMustBeOneLetter(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, short_name="ab")
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, short_name="1")

    def testPositionalHasNoShortName(self):
        argument = ArgumentDefinition("file", PATH, position=0, short_name="f")
        self.assertIsNone(argument.short_name)
        self.assertFalse(argument.named)

    def testNegativePositionRejected(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("file", PATH, position=-1)

    def testDescriptorRequired(self):
        with self.assertRaises(TypeError):
            ArgumentDefinition("count", int)

    def testUniqueRequiresMultiple(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("tags", lookup(list[str]), arity=Arity.UNIQUE)

    def testMultipleRequiresCollection(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, arity=Arity.MULTIPLE)

    def testRestOfLineRequiresPositional(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("rest", STRING, arity=Arity.REST_OF_LINE)

    def testArityTypeChecked(self):
        with self.assertRaises(TypeError):
            ArgumentDefinition("count", INTEGER, arity="?")

    def testDefaultTypeChecked(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, default="three")
        with self.assertRaises(ValueError):
            ArgumentDefinition("tags", lookup(list[int]), arity=Arity.MULTIPLE, default=["a"])

    def testNoneDefaultAccepted(self):
        self.assertIsNone(ArgumentDefinition("count", INTEGER, default=None).default)

    def testConflictsNormalized(self):
        argument = ArgumentDefinition("verbose", BOOLEAN, conflicts=["quiet", "quiet"])
        self.assertEqual(argument.conflicts, frozenset({"quiet"}))

    def testConflictsMustBeStrings(self):
        with self.assertRaises(TypeError):
            ArgumentDefinition("verbose", BOOLEAN, conflicts="quiet")
        with self.assertRaises(TypeError):
            ArgumentDefinition("verbose", BOOLEAN, conflicts=[1])

    def testEmptyDescriptionRejected(self):
        with self.assertRaises(ValueError):
            ArgumentDefinition("count", INTEGER, descr=" ")

    def testVerbsMustBeMapping(self):
        with self.assertRaises(TypeError):
            ArgumentDefinition("command", lookup(Color), verbs=[Color.Red])

    def testDefinitionsAreSealed(self):
        with self.assertRaises(TypeError):
            type("Derived", (ArgumentDefinition,), {})


class TestEffectiveDefault(TestCase):
    """Behavioral tests for effective default resolution."""

    def testExplicitDefaultWins(self):
        self.assertEqual(ArgumentDefinition("count", INTEGER, default=5).effective_default, 5)

    def testZeroValueWhenOptional(self):
        self.assertEqual(ArgumentDefinition("count", INTEGER).effective_default, 0)
        self.assertIs(ArgumentDefinition("verbose", BOOLEAN).effective_default, False)
        self.assertEqual(ArgumentDefinition("tags", lookup(list[str]), arity=Arity.MULTIPLE).effective_default, [])

    def testRequiredHasNoDefault(self):
        self.assertIs(ArgumentDefinition("count", INTEGER, arity=Arity.REQUIRED).effective_default, Unset)

    def testRequiredWithExplicitDefault(self):
        argument = ArgumentDefinition("count", INTEGER, arity=Arity.REQUIRED, default=1)
        self.assertEqual(argument.effective_default, 1)


class TestSyntax(TestCase):
    """Behavioral tests for help syntax fragments."""

    def testOptionalNamed(self):
        self.assertEqual(ArgumentDefinition("Count", INTEGER).syntax(), "[/Count=<int>]")

    def testRequiredNamed(self):
        argument = ArgumentDefinition("Count", INTEGER, arity=Arity.REQUIRED)
        self.assertEqual(argument.syntax(), "/Count=<int>")

    def testImplicitValue(self):
        self.assertEqual(ArgumentDefinition("Verbose", BOOLEAN).syntax(), "[/Verbose[=<bool>]]")

    def testRepeatable(self):
        argument = ArgumentDefinition("Tag", lookup(list[str]), arity=Arity.MULTIPLE)
        self.assertEqual(argument.syntax(), "[/Tag=<string>]...")

    def testCustomPrefixAndSeparator(self):
        self.assertEqual(ArgumentDefinition("count", INTEGER).syntax("--", ":"), "[--count:<int>]")

    def testPositionals(self):
        self.assertEqual(ArgumentDefinition("file", PATH, position=0, arity=Arity.REQUIRED).syntax(), "<path>")
        self.assertEqual(ArgumentDefinition("file", PATH, position=0).syntax(), "[<path>]")

    def testRestOfLine(self):
        argument = ArgumentDefinition("rest", lookup(list[str]), position=0, arity=Arity.REST_OF_LINE)
        self.assertEqual(argument.syntax(), "[<string>...]")

    def testEnumSyntax(self):
        self.assertEqual(ArgumentDefinition("Color", lookup(Color)).syntax(), "[/Color={Red | Green}]")

    def testLabel(self):
        self.assertEqual(ArgumentDefinition("Count", INTEGER).label(), "/Count")
        self.assertEqual(ArgumentDefinition("file", PATH, position=0).label(), "<file>")


class TestDestinationAccess(TestCase):
    """Behavioral tests for assign()/fetch()."""

    def testAttributeDestination(self):
        argument = ArgumentDefinition("count", INTEGER)
        destination = SimpleNamespace()
        argument.assign(destination, 3)
        self.assertEqual(destination.count, 3)
        self.assertEqual(argument.fetch(destination), 3)

    def testMappingDestination(self):
        argument = ArgumentDefinition("count", INTEGER)
        destination = {}
        argument.assign(destination, 3)
        self.assertEqual(destination, {"count": 3})

    def testFetchMissing(self):
        self.assertIs(ArgumentDefinition("count", INTEGER).fetch({}), Unset)

    def testContextCarriesPolicies(self):
        context = ArgumentDefinition("count", INTEGER, empty=True, hexadecimal=True).context()
        self.assertTrue(context.empty)
        self.assertTrue(context.hexadecimal)


if __name__ == "__main__":
    unittest.main()
