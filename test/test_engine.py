"""
Engine behavioral tests (end-to-end parsing, commands, validation).

Scope
- Validate option syntaxes: spaced, "=", grouped, inline, negation.
- Validate positional precedence, "--" args-only mode and rest accumulation.
- Validate command selection (name, alias, multi-word) and action ordering.
- Validate typed faults and their fields.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Parser, Option, parse and the fault types).
"""

from __future__ import annotations

import io
import logging
import unittest
from contextlib import redirect_stdout
from unittest import TestCase

from rich.logging import RichHandler

from arglet import (
    HelpRequested,
    InvalidArgValueError,
    InvalidCommandArgValueError,
    InvalidCommandOptionValueError,
    InvalidOptionError,
    InvalidOptionValueError,
    MissingArgError,
    MissingCommandArgError,
    MissingCommandError,
    MissingCommandOptionError,
    MissingOptionError,
    Option,
    Parser,
    UnexpectedArgError,
    handler,
    parse,
    verbose,
)
from arglet.coercion import Boolean


class TestOptionSyntax(TestCase):
    """Behavioral tests for the accepted option spellings."""

    def testFlagPresence(self):
        parser = Parser().option("-a")
        parser.parse(["-a"])
        self.assertTrue(parser.options[0].value)

    def testFlagExplicitLiteral(self):
        parser = Parser().option("-s", into=Boolean(True))
        parser.parse(["-s", "no"])
        self.assertFalse(parser.options[0].value)

    def testFlagDoesNotConsumeNonLiteral(self):
        parser = Parser().option("-a").argument("X")
        parser.parse(["-a", "file"])
        self.assertTrue(parser.options[0].value)
        self.assertEqual(parser.arguments[0].value, "file")

    def testEqualsAndSpaceAreEquivalent(self):
        for argv in (["-s=1"], ["-s", "1"]):
            with self.subTest(argv=argv):
                parser = Parser().option("-s")
                parser.parse(argv)
                self.assertIs(parser.options[0].value, True)
        for argv in (["--long=str"], ["--long", "str"]):
            with self.subTest(argv=argv):
                parser = Parser().option("--long", into=str)
                parser.parse(argv)
                self.assertEqual(parser.options[0].value, "str")

    def testNegation(self):
        parser = Parser().option("--color")
        parser.options[0].into.set("true")
        parser.parse(["--no-color"])
        self.assertFalse(parser.options[0].value)

    def testNegationOfValueOptionRejected(self):
        parser = Parser().option("--color", into=str)
        with self.assertRaises(InvalidOptionError) as context:
            parser.parse(["--no-color"])
        self.assertEqual(context.exception.option, "--no-color")

    def testGroupedFlags(self):
        parser = Parser().option("-r").option("-f")
        parser.parse(["-rf"])
        self.assertEqual([option.value for option in parser.options], [True, True])

    def testShortInlineValue(self):
        parser = Parser().option("-r", into=str).option("-f")
        parser.parse(["-rf"])
        self.assertEqual(parser.options[0].value, "f")
        self.assertFalse(parser.options[1].value)

    def testContainerAccumulates(self):
        parser = Parser().option("-v", into=list[int])
        parser.parse(["-v", "0", "-v", "1", "-v", "2"])
        self.assertEqual(parser.options[0].value, [0, 1, 2])

    def testKeyValueDestination(self):
        parser = Parser().option("-v", into=dict[str, str])
        parser.parse(["-v", "a=A", "-v", "b=B"])
        self.assertEqual(parser.options[0].value, {"a": "A", "b": "B"})

    def testKeyValueWithoutEqualsRejected(self):
        parser = Parser().option("-v", into=dict[str, str])
        with self.assertRaises(InvalidOptionValueError) as context:
            parser.parse(["-v", "a"])
        self.assertEqual(context.exception.value, "a")

    def testUnconventionalNames(self):
        parser = Parser().option("-frtti").option("+fb", into=int)
        parser.parse(["-frtti", "+fb=3"])
        self.assertTrue(parser.options[0].value)
        self.assertEqual(parser.options[1].value, 3)

    def testOrderIndependence(self):
        states = []
        for argv in (["-a", "-b", "--cc"], ["--cc", "-b", "-a"]):
            parser = Parser().option("-a").option("-b").option("--cc")
            parser.parse(argv)
            states.append([option.value for option in parser.options])
        self.assertEqual(states[0], states[1])

    def testHandlerReceivesValues(self):
        received = []
        parser = Parser().option("-l", into=handler(int)(received.append))
        parser.parse(["-l", "1", "-l=2"])
        self.assertEqual(received, [1, 2])

    def testHandlerSkipsEmptyAssignment(self):
        received = []
        parser = Parser().option("-n", into=handler(int)(received.append))
        parser.parse(["-n=", "-n=4"])
        self.assertEqual(received, [4])

    def testStringArgv(self):
        parser = Parser().option("--name", into=str)
        parser.parse("--name 'two words'")
        self.assertEqual(parser.options[0].value, "two words")

    def testNonStringArgvRejected(self):
        with self.assertRaises(TypeError):
            Parser().parse(["-a", 1])


class TestOptionFaults(TestCase):
    """Behavioral tests for option-level faults."""

    def testUnknownOption(self):
        with self.assertRaises(InvalidOptionError) as context:
            Parser().option("-a").parse(["-b"])
        self.assertEqual(context.exception.option, "-b")

    def testBadBooleanLiteralInline(self):
        with self.assertRaises(InvalidOptionValueError) as context:
            Parser().option("-s").parse(["-s=maybe"])
        self.assertEqual(context.exception.input, "-s")
        self.assertEqual(context.exception.value, "maybe")
        self.assertIn('"yes", "no"', context.exception.reason)

    def testMissingValueIsEmpty(self):
        with self.assertRaises(InvalidOptionValueError) as context:
            Parser().option("-o", "--output", into=str).option("-a").parse(["--output", "-a"])
        self.assertEqual(context.exception.option, "-o, --output")
        self.assertEqual(context.exception.value, "")
        self.assertEqual(context.exception.reason, "value is empty")

    def testUnparsableValue(self):
        with self.assertRaises(InvalidOptionValueError) as context:
            Parser().option("-n", into=int).parse(["-n", "x"])
        self.assertEqual(context.exception.reason, "can't parse value 'x' as int")

    def testEarlierBindingsSurvive(self):
        parser = Parser().option("-a").option("-n", into=int)
        with self.assertRaises(InvalidOptionValueError):
            parser.parse(["-a", "-n", "x"])
        self.assertTrue(parser.options[0].value)


class TestPositionals(TestCase):
    """Behavioral tests for arguments, rest and the separator."""

    def testEndToEndScenario(self):
        parser = Parser().option("-a", required=True).argument("arg1", required=True).rest("rest")
        parser.parse(["x", "-a"])
        self.assertEqual(parser.arguments[0].value, "x")
        self.assertTrue(parser.options[0].value)
        self.assertEqual(parser.remainder.value, [])

    def testEndToEndMissingOption(self):
        parser = Parser().option("-a", required=True).argument("arg1", required=True).rest("rest")
        with self.assertRaises(MissingOptionError) as context:
            parser.parse(["x"])
        self.assertEqual(context.exception.option, "-a")

    def testSeparatorSwitchesToArgsOnly(self):
        parser = Parser().option("--long", into=str).argument("first").rest("rest")
        parser.parse(["arg1", "--", "--long=1", "x", "y"])
        self.assertEqual(parser.arguments[0].value, "arg1")
        self.assertEqual(parser.remainder.value, ["--long=1", "x", "y"])
        self.assertIsNone(parser.options[0].value)
        self.assertFalse(parser.options[0].exists)

    def testOnlyFirstSeparatorIsConsumed(self):
        parser = Parser().rest()
        parser.parse(["--", "a", "--", "b"])
        self.assertEqual(parser.remainder.value, ["a", "--", "b"])

    def testHelpIsPositionalAfterSeparator(self):
        parser = Parser().rest()
        parser.parse(["--", "--help"])
        self.assertEqual(parser.remainder.value, ["--help"])

    def testUnexpectedArgument(self):
        with self.assertRaises(UnexpectedArgError) as context:
            Parser().argument("X").parse(["a", "b"])
        self.assertEqual(context.exception.value, "b")

    def testInvalidArgumentValue(self):
        with self.assertRaises(InvalidArgValueError) as context:
            Parser().argument("COUNT", into=int).parse(["many"])
        self.assertEqual(context.exception.arg, "COUNT")
        self.assertEqual(context.exception.value, "many")

    def testMissingArgument(self):
        with self.assertRaises(MissingArgError) as context:
            Parser().argument("FILE", required=True).parse([])
        self.assertEqual(context.exception.arg, "FILE")

    def testMissingAnonymousRest(self):
        with self.assertRaises(MissingArgError) as context:
            Parser().rest(required=True).parse([])
        self.assertEqual(context.exception.arg, "REST")

    def testExistsResetBetweenParses(self):
        parser = Parser().option("-a", required=True)
        parser.parse(["-a"])
        with self.assertRaises(MissingOptionError):
            parser.parse([])


class TestCommands(TestCase):
    """Behavioral tests for command selection and validation."""

    def _listing(self):
        parser = Parser("tool")
        calls = []
        listing = parser.command("l", alias="list", action=lambda: calls.append(listing.options[0].value))
        listing.option("--long")
        return parser, listing, calls

    def testNameAndAliasSelectSameCommand(self):
        for argv in (["l", "--long"], ["list", "--long"]):
            with self.subTest(argv=argv):
                parser, listing, calls = self._listing()
                self.assertIs(parser.parse(argv), listing)
                self.assertTrue(listing.value)
                self.assertEqual(calls, [True])

    def testNoCommandReturnsNone(self):
        parser, listing, calls = self._listing()
        self.assertIsNone(parser.parse([]))
        self.assertFalse(listing.value)
        self.assertEqual(calls, [])

    def testMultiWordCommand(self):
        parser = Parser()
        multi = parser.command("multi word cmd")
        self.assertIs(parser.parse(["multi", "word", "cmd"]), multi)

    def testMultiWordPrefixIsPositional(self):
        parser = Parser().rest()
        parser.command("multi word cmd")
        self.assertIsNone(parser.parse(["multi", "word"]))
        self.assertEqual(parser.remainder.value, ["multi", "word"])

    def testCommandAfterSeparatorIsPositional(self):
        parser = Parser().rest()
        parser.command("run")
        self.assertIsNone(parser.parse(["--", "run"]))
        self.assertEqual(parser.remainder.value, ["run"])

    def testOnlyFirstCommandIsSelected(self):
        parser = Parser()
        run = parser.command("run").rest()
        parser.command("stop")
        self.assertIs(parser.parse(["run", "stop"]), run)
        self.assertEqual(run.remainder.value, ["stop"])

    def testPositionalPrecedence(self):
        parser = Parser().argument("G").rest("GR")
        run = parser.command("run").argument("C")
        parser.parse(["g", "run", "c", "x", "y"])
        self.assertEqual(parser.arguments[0].value, "g")
        self.assertEqual(run.arguments[0].value, "c")
        self.assertEqual(parser.remainder.value, ["x", "y"])

    def testCommandRestBeforeGlobalArgs(self):
        parser = Parser().argument("G")
        run = parser.command("run").rest("CR")
        parser.parse(["run", "a", "b"])
        self.assertEqual(run.remainder.value, ["a", "b"])

    def testCommandSelectedBeforeLaterFault(self):
        parser = Parser()
        run = parser.command("run")
        with self.assertRaises(InvalidOptionError):
            parser.parse(["run", "--bogus"])
        self.assertIs(run.value, True)

    def testMissingRequiredCommandRest(self):
        parser = Parser()
        parser.command("run").rest("FILES", required=True)
        with self.assertRaises(MissingCommandArgError) as context:
            parser.parse(["run"])
        self.assertEqual(context.exception.arg, "FILES")
        self.assertEqual(context.exception.command, "run")

    def testCommandSpellingBeatsUnconventionalPrefix(self):
        parser = Parser().option("+r")
        run = parser.command("+run")
        self.assertIs(parser.parse(["+run", "+r"]), run)
        self.assertTrue(parser.options[0].value)

    def testUnconventionalPrefixWithoutCommandIsInvalid(self):
        parser = Parser().option("+r")
        parser.command("+run")
        with self.assertRaises(InvalidOptionError):
            parser.parse(["+rx"])
        self.assertIsNone(parser.arguments[0].value)

    def testLocalOptionShadowsGlobal(self):
        parser = Parser().option("--long", into=str)
        run = parser.command("run").option("--long", into=int)
        parser.parse(["--long", "g", "run", "--long", "3"])
        self.assertEqual(parser.options[0].value, "g")
        self.assertEqual(run.options[0].value, 3)

    def testCommandOptionValueFault(self):
        parser = Parser()
        parser.command("l", alias="list").option("-n", into=int)
        with self.assertRaises(InvalidCommandOptionValueError) as context:
            parser.parse(["list", "-n", "x"])
        self.assertEqual(context.exception.command, "l, list")
        self.assertEqual(context.exception.option, "-n")
        self.assertIsInstance(context.exception, InvalidOptionValueError)

    def testGlobalOptionInsideCommandUsesGlobalFault(self):
        parser = Parser().option("-n", into=int)
        parser.command("run")
        with self.assertRaises(InvalidOptionValueError) as context:
            parser.parse(["run", "-n", "x"])
        self.assertNotIsInstance(context.exception, InvalidCommandOptionValueError)

    def testCommandArgValueFault(self):
        parser = Parser()
        parser.command("run").argument("COUNT", into=int)
        with self.assertRaises(InvalidCommandArgValueError) as context:
            parser.parse(["run", "x"])
        self.assertEqual((context.exception.command, context.exception.arg), ("run", "COUNT"))

    def testMissingCommand(self):
        parser = Parser(command_required=True).option("-a", required=True)
        parser.command("run")
        with self.assertRaises(MissingCommandError):
            parser.parse([])

    def testMissingCommandOption(self):
        parser = Parser()
        parser.command("run").option("-o", "--out", into=str, required=True)
        with self.assertRaises(MissingCommandOptionError) as context:
            parser.parse(["run"])
        self.assertEqual((context.exception.command, context.exception.option), ("run", "-o, --out"))
        self.assertIsInstance(context.exception, MissingOptionError)

    def testActionRunsBeforeCommandArgumentCheck(self):
        calls = []
        parser = Parser()
        run = parser.command("run").argument("X", required=True)
        run.action(lambda: calls.append("run"))
        with self.assertRaises(MissingCommandArgError) as context:
            parser.parse(["run"])
        self.assertEqual(calls, ["run"])
        self.assertEqual(context.exception.arg, "X")

    def testActionSkippedWhenCommandOptionMissing(self):
        calls = []
        parser = Parser()
        run = parser.command("run").option("-o", required=True)
        run.action(lambda: calls.append("run"))
        with self.assertRaises(MissingCommandOptionError):
            parser.parse(["run"])
        self.assertEqual(calls, [])

    def testGlobalRequirementsCheckedBeforeCommand(self):
        parser = Parser().option("-g", required=True)
        parser.command("run").option("-o", required=True)
        with self.assertRaises(MissingOptionError) as context:
            parser.parse(["run"])
        self.assertNotIsInstance(context.exception, MissingCommandOptionError)


class TestHelp(TestCase):
    """Behavioral tests for the '--help' token."""

    def testHelpRequestedCarriesText(self):
        parser = Parser("tool").option("-a", descr="all")
        with self.assertRaises(HelpRequested) as context:
            parser.parse(["--help"])
        self.assertIsNone(context.exception.command)
        self.assertEqual(context.exception.text, parser.format_help())

    def testHelpRequestedForCommand(self):
        parser = Parser("tool")
        run = parser.command("run")
        with self.assertRaises(HelpRequested) as context:
            parser.parse(["run", "--help"])
        self.assertIs(context.exception.command, run)
        self.assertEqual(context.exception.text, parser.format_command_help("run"))

    def testHelpCallbackStopsParsing(self):
        calls = []
        parser = Parser(help=lambda: calls.append("help")).option("-a", required=True)
        parser.parse(["--help", "--unknown"])
        self.assertEqual(calls, ["help"])

    def testShellHelpPrintsAndExits(self):
        parser = Parser("tool", shell=True).option("-a", descr="all")
        stream = io.StringIO()
        with redirect_stdout(stream), self.assertRaises(SystemExit) as context:
            parser.parse(["--help"])
        self.assertEqual(context.exception.code, 0)
        self.assertIn("USAGE", stream.getvalue())


class TestOneShotParse(TestCase):
    """Behavioral tests for the module-level parse()."""

    def testBindsOptions(self):
        verbose, level = Option("-v", "--verbose"), Option("-l", into=int)
        parse(["-v", "-l", "3"], verbose, level)
        self.assertTrue(verbose.value)
        self.assertEqual(level.value, 3)

    def testRejectsNonOptions(self):
        with self.assertRaises(TypeError):
            parse([], "-v")


class TestLogging(TestCase):
    """Behavioral tests for the engine log records and verbose()."""

    def testEngineLogsCommandSelection(self):
        parser = Parser("tool")
        parser.command("run")
        with self.assertLogs("arglet.engine", logging.DEBUG) as context:
            parser.parse(["run"])
        self.assertTrue(any("selected command 'run'" in line for line in context.output))

    def testVerboseInstallsOneHandler(self):
        logger = logging.getLogger("arglet")
        handlers, level = list(logger.handlers), logger.level

        def restore():
            logger.handlers[:] = handlers
            logger.setLevel(level)
        self.addCleanup(restore)

        verbose(logging.WARNING)
        verbose(logging.INFO)
        installed = [each for each in logger.handlers if isinstance(each, RichHandler)]
        self.assertEqual(len(installed), 1)
        self.assertEqual(installed[0].level, logging.INFO)
        self.assertEqual(logger.level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
