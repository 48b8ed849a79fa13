"""
Descriptor behavioral tests (parse, format, complete, registry).

Scope
- Validate scalar literals: booleans, bounded integers, hexadecimal policy, floats, UUIDs, URIs.
- Validate enum and flags-enum names, markers, zero values and formatting order.
- Validate tuple, collection and key-value composition, quoting and completion.
- Validate custom descriptors and the closed descriptor family.
- Validate parse(format(value)) == value for every built-in descriptor, bounds included.
- Validate registry lookups for types and typing aliases.

Conventions
- Test method names follow CamelCase per project convention.
- Completions are materialized with list() since descriptors return iterators.
"""
import enum
import math
import os
import pathlib
import unittest
import uuid
from unittest import TestCase

from argbind import (
    BOOLEAN,
    FLOAT,
    INT8,
    INT16,
    INT32,
    INT64,
    INTEGER,
    PATH,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    URI,
    UUID,
    Collection,
    Context,
    Custom,
    Descriptor,
    Enum,
    EnumValue,
    FlagsEnum,
    InternalInvariantError,
    KeyValue,
    Registry,
    Tuple,
    Unset,
    lookup,
)


class Color(enum.Enum):
    Red = 1
    Green = 2
    Blue = 3


class Mode(enum.Enum):
    Off = 0
    Fast = 1
    Slow = 2


class Options(enum.Flag):
    SomeFlag = 1
    SomeOtherFlag = 2
    SomeThirdFlag = 4
    All = 7


class Permissions(enum.Flag):
    None_ = 0
    Read = 1
    Write = 2


class FakeFileSystem:
    def __init__(self, entries):
        self.listing = entries

    def resolve(self, path):
        return path

    def read(self, path):
        raise FileNotFoundError(2, "No such file or directory", path)

    def entries(self, directory):
        return iter(self.listing.get(directory, ()))


class TestScalar(TestCase):
    """Behavioral tests for scalar descriptors."""

    def testBooleanLiterals(self):
        self.assertIs(BOOLEAN.parse("TRUE"), True)
        self.assertIs(BOOLEAN.parse("false"), False)
        self.assertIs(BOOLEAN.try_parse("yes"), Unset)

    def testBooleanImplicitAndZero(self):
        self.assertIs(BOOLEAN.implicit, True)
        self.assertIs(BOOLEAN.zero, False)

    def testBooleanCompletion(self):
        self.assertEqual(list(BOOLEAN.complete("")), ["false", "true"])
        self.assertEqual(list(BOOLEAN.complete("T")), ["true"])

    def testCompletionIsRestartable(self):
        self.assertEqual(list(BOOLEAN.complete("")), list(BOOLEAN.complete("")))

    def testIntegerLiterals(self):
        self.assertEqual(INTEGER.parse("42"), 42)
        self.assertEqual(INTEGER.parse("-7"), -7)
        self.assertEqual(INTEGER.parse("+7"), 7)

    def testIntegerRejectsSeparators(self):
        self.assertIs(INTEGER.try_parse("1_000"), Unset)
        self.assertIs(INTEGER.try_parse("1,000"), Unset)
        self.assertIs(INTEGER.try_parse(" 1"), Unset)

    def testHexadecimalNeedsPolicy(self):
        self.assertIs(INTEGER.try_parse("0x10"), Unset)
        self.assertEqual(INTEGER.parse("0x10", Context(hexadecimal=True)), 16)

    def testBoundedIntegers(self):
        self.assertEqual(INT8.parse("-128"), -128)
        self.assertIs(INT8.try_parse("128"), Unset)
        self.assertEqual(UINT8.parse("255"), 255)
        self.assertIs(UINT8.try_parse("-1"), Unset)

    def testOutOfRangeIsOverflow(self):
        with self.assertRaises(OverflowError):
            INT8.parse("1000")

    def testIntegerFormatRejectsBool(self):
        with self.assertRaises(TypeError):
            INTEGER.format(True)

    def testIntegerDisplay(self):
        self.assertEqual(INT8.syntax, "<int8>")
        self.assertEqual(UINT8.display_name, "uint8")

    def testFloat(self):
        self.assertEqual(FLOAT.parse("1.5"), 1.5)
        self.assertEqual(FLOAT.parse("-2e3"), -2000.0)
        self.assertEqual(FLOAT.format(1.5), "1.5")
        self.assertIs(FLOAT.try_parse("1.5.2"), Unset)

    def testString(self):
        self.assertEqual(STRING.parse("anything goes"), "anything goes")
        with self.assertRaises(TypeError):
            STRING.format(3)

    def testUuid(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        self.assertEqual(UUID.parse(str(value)), value)
        self.assertEqual(UUID.format(value), str(value))
        self.assertIs(UUID.try_parse("not-a-uuid"), Unset)

    def testUri(self):
        value = URI.parse("https://example.com/path?q=1")
        self.assertEqual(value.netloc, "example.com")
        self.assertEqual(URI.format(value), "https://example.com/path?q=1")
        self.assertIs(URI.try_parse("no scheme"), Unset)

    def testPath(self):
        self.assertEqual(PATH.parse("a/b.txt"), pathlib.Path("a/b.txt"))
        self.assertEqual(PATH.format(pathlib.Path("a")), "a")

    def testPathCompletionUsesFileSystem(self):
        context = Context(FakeFileSystem({"": [("src", True), ("setup.cfg", False), ("README", False)]}))
        self.assertEqual(list(PATH.complete("s", context)), ["setup.cfg", "src" + os.sep])

    def testTryParseRejectsNonString(self):
        with self.assertRaises(TypeError):
            INTEGER.try_parse(3)


class TestEnum(TestCase):
    """Behavioral tests for Enum descriptors."""

    def testCaseInsensitiveNames(self):
        descriptor = Enum(Color)
        self.assertIs(descriptor.parse("red"), Color.Red)
        self.assertIs(descriptor.parse("GREEN"), Color.Green)

    def testIntegerLiteralOfMember(self):
        self.assertIs(Enum(Color).parse("3"), Color.Blue)
        self.assertIs(Enum(Color).try_parse("9"), Unset)

    def testIntegerLiteralsDisabled(self):
        descriptor = Enum(Color, numeric=False)
        self.assertIs(descriptor.try_parse("3"), Unset)
        self.assertIs(descriptor.parse("blue"), Color.Blue)

    def testCaseSensitiveContext(self):
        self.assertIs(Enum(Color).try_parse("red", Context(case_sensitive=True)), Unset)
        self.assertIs(Enum(Color).parse("Red", Context(case_sensitive=True)), Color.Red)

    def testDisallowedMember(self):
        descriptor = Enum(Color, {Color.Blue: EnumValue(disallowed=True)})
        self.assertIs(descriptor.try_parse("Blue"), Unset)
        self.assertIs(descriptor.try_parse("3"), Unset)
        self.assertEqual(descriptor.syntax, "{Red | Green}")

    def testHiddenMemberParsesButIsNotAdvertised(self):
        descriptor = Enum(Color, {Color.Green: EnumValue(hidden=True)})
        self.assertIs(descriptor.parse("green"), Color.Green)
        self.assertEqual(list(descriptor.complete("")), ["Blue", "Red"])
        self.assertEqual(descriptor.members(hidden=True), [Color.Red, Color.Green, Color.Blue])

    def testLongAndShortNames(self):
        descriptor = Enum(Color, {Color.Red: EnumValue("Crimson", "c")})
        self.assertIs(descriptor.parse("crimson"), Color.Red)
        self.assertIs(descriptor.parse("C"), Color.Red)
        self.assertIs(descriptor.try_parse("Red"), Unset)
        self.assertEqual(descriptor.format(Color.Red), "Crimson")

    def testShortNameCollision(self):
        with self.assertRaises(ValueError):
            Enum(Color, {Color.Red: EnumValue(short_name="green")})

    def testZeroMember(self):
        self.assertIs(Enum(Mode).zero, Mode.Off)
        self.assertIsNone(Enum(Color).zero)

    def testSyntaxAndDisplayName(self):
        self.assertEqual(Enum(Color).syntax, "{Red | Green | Blue}")
        self.assertEqual(Enum(Color).display_name, "color")

    def testRequiresEnumType(self):
        with self.assertRaises(TypeError):
            Enum(int)


class TestFlagsEnum(TestCase):
    """Behavioral tests for FlagsEnum descriptors."""

    def testComposedParseYieldsNamedComposite(self):
        descriptor = FlagsEnum(Options)
        self.assertIs(descriptor.parse("SomeFlag|SomeOtherFlag|SomeThirdFlag"), Options.All)

    def testCompositeFormatsInBitOrder(self):
        descriptor = FlagsEnum(Options)
        self.assertEqual(descriptor.format(Options.All), "SomeFlag|SomeOtherFlag|SomeThirdFlag")
        self.assertEqual(descriptor.format(Options.SomeThirdFlag | Options.SomeFlag), "SomeFlag|SomeThirdFlag")

    def testEmptyTextFails(self):
        self.assertIs(FlagsEnum(Options).try_parse(""), Unset)

    def testExplicitZeroName(self):
        descriptor = FlagsEnum(Permissions)
        self.assertEqual(descriptor.parse("None_"), Permissions(0))
        self.assertEqual(descriptor.format(Permissions(0)), "None_")

    def testZeroWithoutNameFails(self):
        with self.assertRaises(ValueError):
            FlagsEnum(Options).format(Options(0))

    def testUnknownPieceFails(self):
        self.assertIs(FlagsEnum(Options).try_parse("SomeFlag|Bogus"), Unset)

    def testCompletionKeepsTypedPrefix(self):
        self.assertEqual(
            list(FlagsEnum(Permissions).complete("Read|w")),
            ["Read|Write"]
        )

    def testRequiresFlagType(self):
        with self.assertRaises(TypeError):
            FlagsEnum(Color)


class TestComposites(TestCase):
    """Behavioral tests for Tuple, Collection and KeyValue descriptors."""

    def testTupleParse(self):
        self.assertEqual(lookup(tuple[int, str]).parse("3,abc"), (3, "abc"))

    def testTupleArityMismatch(self):
        self.assertIs(lookup(tuple[int, str]).try_parse("3"), Unset)
        self.assertIs(lookup(tuple[int, str]).try_parse("3,a,b"), Unset)

    def testTupleQuotesElementsContainingSeparator(self):
        descriptor = Tuple(INTEGER, STRING)
        self.assertEqual(descriptor.format((1, "a,b")), '1,"a,b"')
        self.assertEqual(descriptor.parse('1,"a,b"'), (1, "a,b"))

    def testTupleSyntax(self):
        self.assertEqual(Tuple(INTEGER, BOOLEAN).syntax, "<int>,<bool>")

    def testTupleCompletionNeedsParsedHead(self):
        descriptor = Tuple(INTEGER, BOOLEAN)
        self.assertEqual(list(descriptor.complete("3,t")), ["3,true"])
        self.assertEqual(list(descriptor.complete("x,t")), [])
        self.assertEqual(list(descriptor.complete("3,true,")), [])

    def testCollectionParsesOneElementPerOccurrence(self):
        descriptor = lookup(list[int])
        self.assertEqual(descriptor.parse("3"), [3])
        self.assertEqual(descriptor.aggregate([[1], [2], [1]]), [1, 2, 1])
        self.assertEqual(descriptor.zero, [])

    def testCollectionSeparator(self):
        descriptor = Collection(INTEGER, separator=",")
        self.assertEqual(descriptor.parse("1,2,3"), [1, 2, 3])
        self.assertEqual(descriptor.format([1, 2]), "1,2")

    def testCollectionContainers(self):
        self.assertEqual(lookup(set[str]).aggregate([["a"], ["a"]]), {"a"})
        self.assertEqual(lookup(tuple[int, ...]).aggregate([[1], [2]]), (1, 2))
        self.assertEqual(lookup(dict[str, int]).aggregate([[("a", 1)], [("b", 2)]]), {"a": 1, "b": 2})

    def testCollectionOfCollectionsRejected(self):
        with self.assertRaises(TypeError):
            Collection(lookup(list[int]))

    def testKeyValueSplitsAtFirstSeparator(self):
        descriptor = KeyValue(STRING, STRING)
        self.assertEqual(descriptor.parse("a=b=c"), ("a", "b=c"))
        self.assertIs(descriptor.try_parse("abc"), Unset)

    def testKeyValueFormat(self):
        self.assertEqual(KeyValue(STRING, INTEGER).format(("retries", 3)), "retries=3")
        self.assertEqual(KeyValue(STRING, INTEGER).syntax, "<string>=<int>")

    def testKeyValueCompletesValue(self):
        descriptor = KeyValue(STRING, BOOLEAN)
        self.assertEqual(list(descriptor.complete("debug=f")), ["debug=false"])


class TestRoundTrip(TestCase):
    """Formatting then parsing gives the value back, for every built-in descriptor."""

    table = [
        (BOOLEAN, [True, False]),
        (INTEGER, [0, -1, 10 ** 30, -(10 ** 30)]),
        (INT8, [-128, 127]),
        (INT16, [-32768, 32767]),
        (INT32, [-2 ** 31, 2 ** 31 - 1]),
        (INT64, [-2 ** 63, 2 ** 63 - 1]),
        (UINT8, [0, 255]),
        (UINT16, [0, 65535]),
        (UINT32, [0, 2 ** 32 - 1]),
        (UINT64, [0, 2 ** 64 - 1]),
        (FLOAT, [0.0, -2.5, 1e100, 5e-324, math.inf, -math.inf]),
        (STRING, ["", "a b", '"quoted"', "/Name=value"]),
        (UUID, [uuid.UUID("12345678-1234-5678-1234-567812345678")]),
        (URI, [URI.parse("https://example.com/a/b?q=1#top"), URI.parse("file:///tmp/x")]),
        (PATH, [pathlib.Path("a") / "b", pathlib.Path("/")]),
        (Enum(Color), list(Color)),
        (Enum(Color, {Color.Red: EnumValue("Crimson", "c")}), [Color.Red, Color.Blue]),
        (FlagsEnum(Options), [Options.SomeFlag, Options.SomeFlag | Options.SomeThirdFlag, Options.All]),
        (FlagsEnum(Permissions), [Permissions.None_, Permissions.Read | Permissions.Write]),
        (Tuple(INTEGER, STRING), [(1, "a,b"), (2, '"x"'), (3, "")]),
        (Tuple(STRING, STRING, separator=";"), [("a;b", "c")]),
        (Collection(STRING, separator=","), [["a,b", '"q"', "c"], [""]]),
        (Collection(INTEGER), [[7]]),
        (KeyValue(STRING, INTEGER), [("retries", -3)]),
        (KeyValue(STRING, STRING), [("a", "b=c"), ("", "")]),
    ]

    def testRoundTrip(self):
        for descriptor, values in self.table:
            for value in values:
                with self.subTest(descriptor=descriptor.display_name, value=value):
                    self.assertEqual(descriptor.parse(descriptor.format(value)), value)

    def testParsedValuesFormat(self):
        for descriptor, values in self.table:
            for value in values:
                text = descriptor.format(value)
                with self.subTest(descriptor=descriptor.display_name, text=text):
                    self.assertEqual(descriptor.format(descriptor.parse(text)), text)

    def testNotANumberFormatsBack(self):
        self.assertTrue(math.isnan(FLOAT.parse(FLOAT.format(math.nan))))

    def testKeyContainingSeparatorIsRefused(self):
        with self.assertRaises(ValueError):
            KeyValue(STRING, STRING).format(("a=b", "c"))


class TestCustom(TestCase):
    """Behavioral tests for Custom descriptors and the closed family."""

    def testCustomCapabilities(self):
        descriptor = Custom(
            "hex",
            lambda text: int(text, 16),
            lambda value: format(value, "x"),
            lambda partial: [candidate for candidate in ("ff", "fe") if candidate.startswith(partial)]
        )
        self.assertEqual(descriptor.parse("ff"), 255)
        self.assertIs(descriptor.try_parse("zz"), Unset)
        self.assertEqual(descriptor.format(254), "fe")
        self.assertEqual(list(descriptor.complete("f")), ["ff", "fe"])
        self.assertEqual(descriptor.syntax, "<hex>")

    def testCustomWithoutCompleter(self):
        self.assertEqual(list(Custom("any", str).complete("x")), [])

    def testDescriptorFamilyIsClosed(self):
        with self.assertRaises(TypeError):
            class Extra(Descriptor):
                pass

    def testVariantsAreSealed(self):
        with self.assertRaises(TypeError):
            type("Extra", (Custom,), {})


class TestRegistry(TestCase):
    """Behavioral tests for Registry and lookup()."""

    def testBuiltinTypes(self):
        self.assertIs(lookup(int), INTEGER)
        self.assertIs(lookup(bool), BOOLEAN)
        self.assertIs(lookup(str), STRING)

    def testPathSubclass(self):
        self.assertIs(lookup(pathlib.Path), PATH)

    def testOptionalUnwraps(self):
        self.assertIs(lookup(int | None), INTEGER)

    def testEnumTypes(self):
        self.assertIsInstance(lookup(Color), Enum)
        self.assertIsInstance(lookup(Options), FlagsEnum)

    def testDescriptorPassesThrough(self):
        self.assertIs(lookup(INT8), INT8)

    def testDictIsKeyValueCollection(self):
        descriptor = lookup(dict[str, int])
        self.assertIsInstance(descriptor, Collection)
        self.assertIsInstance(descriptor.element, KeyValue)
        self.assertIs(descriptor.container, dict)

    def testUnsupportedShape(self):
        with self.assertRaises(TypeError):
            lookup(object)
        with self.assertRaises(TypeError):
            lookup(int | str)

    def testDoubleRegistrationIsInvariantViolation(self):
        registry = Registry()
        registry.register(int, INTEGER)
        with self.assertRaises(InternalInvariantError):
            registry.register(int, INT8)

    def testRegisterSameDescriptorTwice(self):
        registry = Registry()
        registry.register(int, INTEGER)
        self.assertIs(registry.register(int, INTEGER), INTEGER)
        self.assertIn(int, registry)


if __name__ == "__main__":
    unittest.main()
