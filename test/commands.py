# python
"""
Commands module behavioral tests (registration, dispatch, sub-commands).

Scope
- Validate add_argument rules (invalid names, duplicates, short-name collisions).
- Validate the dispatch loop: short options vs. flag clusters, long options,
  the "--" terminator, unbound tokens and the remaining command line.
- Validate reset-before-reparse and the no-rollback failure policy.
- Validate sub-command capture and nested bookkeeping.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Parser, Command, declarations, Report).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from flagship import (
    Parser,
    Command,
    Flag,
    StringOption,
    IntegerOption,
    ChoiceOption,
    RepeatedOption,
    CommandLine,
    Report,
    NotConvertibleError,
    InvalidFlagsError,
    UnknownOptionError,
    RepeatedFlagWarning,
)


class TestRegistration(TestCase):
    """Behavioral tests for Parser.add_argument."""

    def testNameWithEqualsRejected(self):
        parser = Parser()
        self.assertFalse(parser.add_argument(Flag("a=b")))
        self.assertEqual(str(parser.report), "Error: The argument name 'a=b' cannot contain '='.\n")
        self.assertNotIn("a=b", parser)

    def testSameArgumentTwiceIsWarning(self):
        parser = Parser()
        foo = Flag("foo")
        self.assertTrue(parser.add_argument(foo))
        self.assertTrue(parser.add_argument(foo))
        self.assertEqual(str(parser.report), "Warning: The argument with name 'foo' has already been added to the parser.\n")
        self.assertTrue(parser.report.ok)
        self.assertEqual(len(parser), 1)

    def testDifferentArgumentSameNameRejected(self):
        parser = Parser()
        foo = Flag("foo")
        self.assertTrue(parser.add_argument(foo))
        self.assertFalse(parser.add_argument(StringOption("foo")))
        self.assertEqual(str(parser.report), "Error: An argument with name 'foo' has already been added to the parser.\n")
        self.assertIs(parser["foo"], foo)

    def testCollidingShortNamesRejected(self):
        parser = Parser()
        self.assertTrue(parser.add_argument(Flag("alpha", "a")))
        self.assertFalse(parser.add_argument(Flag("all", "al")))
        self.assertFalse(parser.add_argument(StringOption("also", "a")))
        self.assertTrue(parser.add_argument(Flag("beta", "b")))
        self.assertEqual(len(parser.report.errors), 2)
        self.assertEqual([argument.name for argument in parser], ["alpha", "beta"])

    def testExplicitReport(self):
        parser = Parser()
        report = Report()
        foo = Flag("foo")
        parser.add_argument(foo, report)
        parser.add_argument(foo, report)
        self.assertEqual(len(report), 1)
        self.assertEqual(len(parser.report), 0)

    def testOnlyDeclarationsAccepted(self):
        with self.assertRaises(TypeError):
            Parser().add_argument("foo")

    def testLookup(self):
        parser = Parser()
        parser.add_argument(foo := Flag("foo"))
        parser.add_argument(bar := StringOption("bar"))
        self.assertIs(parser["bar"], bar)
        self.assertIs(parser.get("foo"), foo)
        self.assertIsNone(parser.get("baz"))
        self.assertIn("foo", parser)
        self.assertEqual(list(parser), [foo, bar])
        self.assertEqual(parser.arguments, (foo, bar))
        with self.assertRaises(KeyError):
            parser["baz"]


class TestParsing(TestCase):
    """Behavioral tests for the dispatch loop."""

    def setUp(self):
        self.parser = Parser()
        self.foo = Flag("foo", "f")
        self.bar = StringOption("bar")
        self.parser.add_argument(self.foo)
        self.parser.add_argument(self.bar)

    def testEndToEnd(self):
        self.assertTrue(self.parser.parse(CommandLine(["-f", "--bar", "baz", "unbound"])))
        self.assertTrue(self.foo.is_set)
        self.assertEqual(self.bar.value, "baz")
        self.assertEqual(self.parser.remaining, ["unbound"])
        self.assertEqual(self.parser.argc, 4)
        self.assertEqual(self.parser.argv(0), "-f")
        self.assertEqual(self.parser.remaining_argc, 1)
        self.assertEqual(self.parser.remaining_argv(0), "unbound")
        self.assertIsNone(self.parser.remaining_argv(1))
        self.assertEqual(len(self.parser.report), 0)

    def testSingleStringAndSequenceInputs(self):
        self.assertTrue(self.parser.parse('-f --bar "a b" rest'))
        self.assertEqual(self.bar.value, "a b")
        self.assertEqual(self.parser.remaining, ["rest"])
        self.assertTrue(self.parser.parse(["--bar=x"]))
        self.assertEqual(self.bar.value, "x")

    def testReparseIsIdempotent(self):
        tokens = ["-f", "--bar", "baz", "unbound"]
        self.assertTrue(self.parser.parse(tokens))
        first = (self.foo.is_set, self.bar.is_set, self.bar.value, list(self.parser.remaining))
        self.assertTrue(self.parser.parse(tokens))
        second = (self.foo.is_set, self.bar.is_set, self.bar.value, list(self.parser.remaining))
        self.assertEqual(first, second)

    def testReparseResetsIsSet(self):
        self.assertTrue(self.parser.parse(["-f", "--bar", "baz"]))
        self.assertTrue(self.parser.parse([]))
        self.assertFalse(self.foo.is_set)
        self.assertFalse(self.bar.is_set)
        self.assertEqual(self.parser.remaining, [])

    def testUnboundTokensKeptInOrder(self):
        self.assertTrue(self.parser.parse(["x", "--bar", "y", "z", "-f"]))
        self.assertEqual(self.parser.remaining, ["x", "z"])

    def testTerminator(self):
        self.assertTrue(self.parser.parse(["-f", "--", "--bar", "x"]))
        self.assertTrue(self.foo.is_set)
        self.assertFalse(self.bar.is_set)
        self.assertEqual(self.parser.remaining, ["--bar", "x"])

    def testSingleDashIsUnbound(self):
        self.assertTrue(self.parser.parse(["-"]))
        self.assertEqual(self.parser.remaining, ["-"])

    def testUnknownLongOption(self):
        self.assertFalse(self.parser.parse(["--nope"]))
        self.assertEqual(str(self.parser.report), "Error: 'nope' is not a valid option.\n")
        self.assertIsInstance(self.parser.report.errors[0], UnknownOptionError)

    def testUnknownLongOptionSuggestion(self):
        self.assertFalse(self.parser.parse(["--baz=1"]))
        self.assertEqual(self.parser.report.errors[0].options["hint"], "did you mean '--bar'?")

    def testMissingValue(self):
        self.assertFalse(self.parser.parse(["--bar"]))
        self.assertEqual(str(self.parser.report), "Error: Insufficient arguments for string option 'bar'.\n")

    def testNoRollbackOnFailure(self):
        self.parser.add_argument(number := IntegerOption("number"))
        self.assertFalse(self.parser.parse(["--bar", "x", "--number", "abc", "-f"]))
        self.assertTrue(self.bar.is_set)
        self.assertEqual(self.bar.value, "x")
        self.assertFalse(number.is_set)
        self.assertFalse(self.foo.is_set)
        self.assertEqual(self.parser.remaining, ["--number", "abc", "-f"])

    def testFreshReportPerParse(self):
        self.assertFalse(self.parser.parse(["--nope"]))
        self.assertTrue(self.parser.parse(["-f"]))
        self.assertEqual(len(self.parser.report), 0)

    def testExplicitReportAccumulates(self):
        report = Report()
        self.assertFalse(self.parser.parse(["--nope"], report))
        self.assertFalse(self.parser.parse(["--nada"], report))
        self.assertEqual(len(report.errors), 2)


class TestShortTokens(TestCase):
    """Behavioral tests for short options and flag clusters."""

    def setUp(self):
        self.parser = Parser()
        self.a, self.b, self.c = Flag("alpha", "a"), Flag("bravo", "b"), Flag("charlie", "c")
        self.output = StringOption("output", "o")
        for argument in (self.a, self.b, self.c, self.output):
            self.parser.add_argument(argument)

    def testClusterSetsExactlyItsFlags(self):
        self.assertTrue(self.parser.parse(["-ab", "rest"]))
        self.assertTrue(self.a.is_set and self.b.is_set)
        self.assertFalse(self.c.is_set)
        self.assertEqual(self.parser.remaining, ["rest"])

    def testClusterWithInvalidCharacter(self):
        self.assertFalse(self.parser.parse(["-axc"]))
        self.assertEqual(str(self.parser.report), "Error: The command line contains invalid flags 'x'.\n")
        self.assertIsInstance(self.parser.report.errors[0], InvalidFlagsError)

    def testInvalidCharactersAccumulate(self):
        self.assertFalse(self.parser.parse(["-xayz"]))
        self.assertEqual(str(self.parser.report), "Error: The command line contains invalid flags 'xyz'.\n")

    def testRepeatedFlagWarns(self):
        self.assertTrue(self.parser.parse(["-aa", "-a"]))
        self.assertTrue(self.parser.report.ok)
        self.assertEqual(str(self.parser.report), (
            "Warning: The flag with name 'alpha' was set more than once.\n"
            "Warning: The flag with name 'alpha' was set more than once.\n"
        ))
        self.assertIsInstance(self.parser.report.warnings[0], RepeatedFlagWarning)

    def testShortOptionForms(self):
        self.assertTrue(self.parser.parse(["-ofile"]))
        self.assertEqual(self.output.value, "file")
        self.assertTrue(self.parser.parse(["-o", "file2", "-b"]))
        self.assertEqual(self.output.value, "file2")
        self.assertTrue(self.b.is_set)

    def testShortOptionsTriedBeforeClusters(self):
        self.assertTrue(self.parser.parse(["-oab"]))
        self.assertEqual(self.output.value, "ab")
        self.assertFalse(self.a.is_set or self.b.is_set)

    def testOptionLetterInsideClusterIsInvalid(self):
        self.assertFalse(self.parser.parse(["-ao"]))
        self.assertEqual(str(self.parser.report), "Error: The command line contains invalid flags 'o'.\n")

    def testFirstRegisteredShortOptionWins(self):
        parser = Parser()
        parser.add_argument(first := StringOption("first", "x"))
        parser.add_argument(second := RepeatedOption(StringOption, "second", "y"))
        self.assertTrue(parser.parse(["-xy", "-yx"]))
        self.assertEqual(first.value, "y")
        self.assertEqual(second.values(), ["x"])

    def testMultiCharacterShortFlag(self):
        parser = Parser()
        parser.add_argument(debug := Flag("debug", "dd"))
        parser.add_argument(quiet := Flag("quiet", "q"))
        self.assertTrue(parser.parse(["-qdd"]))
        self.assertTrue(debug.is_set and quiet.is_set)


class TestRepeatedParsing(TestCase):
    """Behavioral tests for repeated options inside a parser."""

    def testRepeatedIntegers(self):
        parser = Parser()
        parser.add_argument(foo := RepeatedOption(IntegerOption, "foo", "f"))
        self.assertTrue(parser.parse(["--foo", "1", "--foo=2", "-f3", "-f", "4"]))
        self.assertEqual(foo.values(), [1, 2, 3, 4])
        self.assertTrue(all(instance.is_set for instance in foo))

    def testReparseClearsRepetitions(self):
        parser = Parser()
        parser.add_argument(foo := RepeatedOption(IntegerOption, "foo"))
        self.assertTrue(parser.parse(["--foo", "1", "--foo", "2"]))
        self.assertTrue(parser.parse(["--foo", "1", "--foo", "2"]))
        self.assertEqual(foo.values(), [1, 2])
        self.assertTrue(parser.parse([]))
        self.assertEqual(len(foo), 0)
        self.assertFalse(foo.is_set)


class TestCommand(TestCase):
    """Behavioral tests for sub-commands."""

    def setUp(self):
        self.parser = Parser()
        self.verbose = Flag("verbose", "v")
        self.deploy = Command("deploy", descr="deploy the thing")
        self.target = ChoiceOption("target", "t", choices=["dev", "prod"], default="dev")
        self.force = Flag("force", "f")
        self.deploy.add_argument(self.target)
        self.deploy.add_argument(self.force)
        self.parser.add_argument(self.verbose)
        self.parser.add_argument(self.deploy)

    def testCommandCapturesRest(self):
        self.assertTrue(self.parser.parse(["-v", "deploy", "--target=prod", "-f", "extra"]))
        self.assertTrue(self.verbose.is_set)
        self.assertTrue(self.deploy.is_set)
        self.assertTrue(self.deploy.value_boolean())
        self.assertEqual(self.target.value, "prod")
        self.assertTrue(self.force.is_set)
        self.assertEqual(self.parser.remaining, [])
        self.assertEqual(self.deploy.argc, 4)
        self.assertEqual(self.deploy.argv(0), "deploy")
        self.assertEqual(self.deploy.remaining, ["deploy", "extra"])
        self.assertEqual(self.deploy.remaining_argc, 2)
        self.assertIsNone(self.deploy.remaining_argv(2))

    def testCommandBookkeeping(self):
        self.assertTrue(self.parser.parse(["deploy", "--force"]))
        self.assertEqual(self.deploy.argc, 2)
        self.assertEqual(self.deploy.remaining_argc, 1)
        self.assertEqual(self.parser.remaining_argc, 0)

    def testUnboundTokensBeforeCommand(self):
        self.assertTrue(self.parser.parse(["x", "deploy", "y"]))
        self.assertEqual(self.parser.remaining, ["x"])
        self.assertEqual(self.deploy.remaining, ["deploy", "y"])

    def testOuterOptionsAfterCommandBelongToCommand(self):
        self.assertFalse(self.parser.parse(["deploy", "-v"]))
        self.assertEqual(str(self.parser.report), "Error: The command line contains invalid flags 'v'.\n")
        self.assertFalse(self.verbose.is_set)
        self.assertFalse(self.deploy.is_set)

    def testNestedFailurePropagates(self):
        self.assertFalse(self.parser.parse(["deploy", "--target", "staging"]))
        self.assertEqual(str(self.parser.report), "Error: Invalid argument for choice option 'target': 'staging'.\n")
        self.assertFalse(self.deploy.is_set)

    def testCommandNameWithDashesIsNotACommand(self):
        self.assertFalse(self.parser.parse(["--deploy"]))
        self.assertEqual(str(self.parser.report), "Error: 'deploy' is not a valid option.\n")

    def testOnlyOneCommandCaptured(self):
        self.parser.add_argument(status := Command("status"))
        self.assertTrue(self.parser.parse(["deploy", "status"]))
        self.assertTrue(self.deploy.is_set)
        self.assertFalse(status.is_set)
        self.assertEqual(self.deploy.remaining, ["deploy", "status"])

    def testReparseResetsNestedDeclarations(self):
        self.assertTrue(self.parser.parse(["deploy", "-f"]))
        self.assertTrue(self.parser.parse(["-v"]))
        self.assertFalse(self.deploy.is_set)
        self.assertFalse(self.force.is_set)

    def testReparseResetsNestedBookkeeping(self):
        self.assertTrue(self.parser.parse(["deploy", "--force", "x"]))
        self.assertTrue(self.parser.parse(["other"]))
        self.assertFalse(self.deploy.is_set)
        self.assertEqual(self.deploy.command_line, [])
        self.assertEqual(self.deploy.remaining, [])
        self.assertEqual(self.deploy.argc, 0)
        self.assertEqual(self.deploy.remaining_argc, 0)
        self.assertEqual(self.parser.remaining, ["other"])

    def testNestedLookup(self):
        self.assertIs(self.deploy["target"], self.target)
        self.assertIn("force", self.deploy)
        self.assertEqual(list(self.deploy), [self.target, self.force])
        self.assertEqual(self.deploy.descr, "deploy the thing")

    def testCommandCapabilities(self):
        self.assertTrue(self.deploy.is_command and self.deploy.is_boolean)
        self.assertFalse(self.deploy.is_flag)
        with self.assertRaises(NotConvertibleError):
            self.deploy.value_integer()
        with self.assertRaises(NotConvertibleError):
            self.deploy.value_string()

    def testNestedCommands(self):
        cloud = Command("cloud")
        cloud.add_argument(self.deploy)
        parser = Parser()
        parser.add_argument(cloud)
        self.assertTrue(parser.parse(["cloud", "deploy", "-t", "prod"]))
        self.assertTrue(cloud.is_set and self.deploy.is_set)
        self.assertEqual(self.target.value, "prod")
        self.assertEqual(cloud.remaining, ["cloud"])
        self.assertEqual(self.deploy.remaining, ["deploy"])


if __name__ == "__main__":
    unittest.main()
