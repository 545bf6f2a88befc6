"""
Flag set behavioral tests (declaration, parsing, explicit set, defaults).

Scope
- Validate declaration rules for Flag and Option (names, duplicates, converters).
- Validate the token grammar: inline and spaced values, booleans, terminators.
- Validate that "explicitly set" means present on the command line.
- Validate the defaults block used by usage text.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import FlagSet, Flag, Option
from helmsman.faults import (
    FlagParseError,
    MalformedFlagError,
    UnknownFlagError,
    MissingFlagValueError,
    InvalidFlagValueError,
    FaultCode,
)


class TestDeclaration(TestCase):
    """Behavioral tests for flag declarations."""

    def testFlagReturnsSpec(self):
        flagset = FlagSet("tool")
        verbose = flagset.flag("verbose", descr="chatty output")
        self.assertIsInstance(verbose, Flag)
        self.assertEqual(verbose.name, "verbose")
        self.assertEqual(verbose.descr, "chatty output")
        self.assertFalse(verbose.value)
        self.assertIn("verbose", flagset)

    def testOptionDefaultsToNone(self):
        flagset = FlagSet()
        env = flagset.option("env")
        self.assertIsInstance(env, Option)
        self.assertIsNone(env.default)
        self.assertIsNone(env.value)
        self.assertEqual(env.metavar, "string")

    def testOptionMetavarFollowsConverter(self):
        flagset = FlagSet()
        self.assertEqual(flagset.option("count", int).metavar, "int")
        self.assertEqual(flagset.option("ratio", float).metavar, "float")
        self.assertEqual(flagset.option("when", lambda raw: raw).metavar, "value")
        self.assertEqual(flagset.option("path", metavar="PATH").metavar, "PATH")

    def testDuplicateNameRejected(self):
        flagset = FlagSet("tool")
        flagset.flag("v")
        with self.assertRaises(ValueError):
            flagset.option("v")

    def testBadNamesRejected(self):
        flagset = FlagSet()
        for name in ("", "-v", "a=b", "two words"):
            with self.subTest(name=name), self.assertRaises(ValueError):
                flagset.flag(name)
        with self.assertRaises(TypeError):
            flagset.flag(1)

    def testNonCallableConverterRejected(self):
        with self.assertRaises(TypeError):
            FlagSet().option("count", type=3)

    def testFlagDefaultMustBeBoolean(self):
        with self.assertRaises(TypeError):
            FlagSet().flag("v", default="yes")

    def testIterationIsSortedByName(self):
        flagset = FlagSet()
        flagset.flag("zeta")
        flagset.option("alpha")
        flagset.flag("mid")
        self.assertEqual([spec.name for spec in flagset], ["alpha", "mid", "zeta"])
        self.assertEqual(len(flagset), 3)


class TestParsing(TestCase):
    """Behavioral tests for FlagSet.parse()."""

    def setUp(self):
        self.flagset = FlagSet("ship")
        self.env = self.flagset.option("env", descr="target environment")
        self.retries = self.flagset.option("retries", int, 3)
        self.verbose = self.flagset.flag("v")

    def testInlineAndSpacedValues(self):
        leftover = self.flagset.parse(["-env=prod", "-retries", "5", "app"])
        self.assertEqual(leftover, ["app"])
        self.assertEqual(self.env.value, "prod")
        self.assertEqual(self.retries.value, 5)
        self.assertEqual(self.flagset["retries"], 5)

    def testDoubleDashSpelling(self):
        self.flagset.parse(["--env", "staging", "--v"])
        self.assertEqual(self.env.value, "staging")
        self.assertTrue(self.verbose.value)

    def testStopsAtFirstPositional(self):
        leftover = self.flagset.parse(["-v", "first", "-env=prod"])
        self.assertEqual(leftover, ["first", "-env=prod"])
        self.assertIsNone(self.env.value)
        self.assertEqual(self.flagset.args, ("first", "-env=prod"))

    def testTerminatorIsConsumed(self):
        leftover = self.flagset.parse(["-v", "--", "-env=prod"])
        self.assertEqual(leftover, ["-env=prod"])

    def testSingleDashIsPositional(self):
        self.assertEqual(self.flagset.parse(["-", "x"]), ["-", "x"])

    def testBooleanInlineValues(self):
        self.flagset.parse(["-v=false"])
        self.assertFalse(self.verbose.value)
        self.assertIn("v", self.flagset.explicit)
        self.flagset.parse(["-v=T"])
        self.assertTrue(self.verbose.value)

    def testFlagDoesNotConsumeNextToken(self):
        self.assertEqual(self.flagset.parse(["-v", "false"]), ["false"])
        self.assertTrue(self.verbose.value)

    def testRepeatedFlagLastWins(self):
        self.flagset.parse(["-env=a", "-env=b"])
        self.assertEqual(self.env.value, "b")

    def testExplicitCountsDefaultValues(self):
        self.flagset.parse(["-retries=3"])
        self.assertEqual(self.flagset.explicit, frozenset({"retries"}))
        self.assertEqual([spec.name for spec in self.flagset.visit()], ["retries"])

    def testUntouchedFlagsAreNotExplicit(self):
        self.flagset.parse([])
        self.assertEqual(self.flagset.explicit, frozenset())
        self.assertEqual(self.retries.value, 3)

    def testParseResetsPreviousState(self):
        self.flagset.parse(["-env=prod", "-v"])
        self.flagset.parse(["x"])
        self.assertIsNone(self.env.value)
        self.assertFalse(self.verbose.value)
        self.assertEqual(self.flagset.explicit, frozenset())

    def testEmptyInlineValueIsAValue(self):
        self.flagset.parse(["-env="])
        self.assertEqual(self.env.value, "")
        self.assertIn("env", self.flagset.explicit)

    def testUnknownFlagRaises(self):
        with self.assertRaises(UnknownFlagError) as context:
            self.flagset.parse(["-evn=prod"])
        self.assertEqual(context.exception.input, "evn")
        self.assertEqual(context.exception.code, FaultCode.UNKNOWN_FLAG)
        self.assertEqual(str(context.exception), "flag provided but not defined: -evn")
        self.assertIn("env", context.exception.options["suggestions"])

    def testMalformedFlagRaises(self):
        for token in ("---env", "-=x"):
            with self.subTest(token=token), self.assertRaises(MalformedFlagError):
                self.flagset.parse([token])

    def testMissingValueRaises(self):
        with self.assertRaises(MissingFlagValueError) as context:
            self.flagset.parse(["-env"])
        self.assertEqual(str(context.exception), "flag needs an argument: -env")

    def testInvalidValueRaises(self):
        with self.assertRaises(InvalidFlagValueError) as context:
            self.flagset.parse(["-retries=many"])
        self.assertIsInstance(context.exception, FlagParseError)
        self.assertEqual(context.exception.input, "retries")

    def testInvalidBooleanRaises(self):
        with self.assertRaises(InvalidFlagValueError):
            self.flagset.parse(["-v=maybe"])

    def testFailedParseLeavesNothingExplicit(self):
        with self.assertRaises(UnknownFlagError):
            self.flagset.parse(["-v", "-nope"])
        self.assertEqual(self.flagset.explicit, frozenset())

    def testStringArgumentRejected(self):
        with self.assertRaises(TypeError):
            self.flagset.parse("-v")


class TestDefaults(TestCase):
    """Behavioral tests for FlagSet.defaults()."""

    def testLayout(self):
        flagset = FlagSet("ship")
        flagset.option("env", descr="target environment")
        flagset.flag("dry-run", descr="print only")
        flagset.option("retries", int, 3, "attempts")
        flagset.flag("h", hidden=True)
        self.assertEqual(flagset.defaults().plain, "\n".join((
            "  -dry-run",
            "        print only",
            "  -env string",
            "        target environment",
            "  -retries int",
            "        attempts (default 3)",
        )))

    def testNonZeroDefaultsShown(self):
        flagset = FlagSet()
        flagset.flag("color", True)
        flagset.option("name", default="bob")
        self.assertEqual(flagset.defaults().plain, "\n".join((
            "  -color",
            "        (default true)",
            "  -name string",
            '        (default "bob")',
        )))

    def testStringDefaultsAreEscaped(self):
        flagset = FlagSet()
        flagset.option("greeting", default='say "hi"', descr="greeting")
        self.assertEqual(flagset.defaults().plain, "\n".join((
            "  -greeting string",
            '        greeting (default "say \\"hi\\"")',
        )))

    def testEmptySetRendersNothing(self):
        flagset = FlagSet()
        flagset.flag("h", hidden=True)
        self.assertEqual(flagset.defaults().plain, "")


if __name__ == "__main__":
    unittest.main()
