"""
Parser behavioral tests (token scan, value stores, help, faults).

Scope
- Validate the token classification order: glued form, help alias, exact name.
- Validate scalar, boolean and list consumption, including delimiters.
- Validate fatal faults and the partial-commit rule (earlier tokens stay,
  the failing token commits nothing).
- Validate help outcomes and the HELP_REQUESTED notice.

Conventions
- Test method names follow CamelCase per project convention.
- Help output is captured through a rich Console writing to a StringIO.
"""

from __future__ import annotations

import errno
import io
import threading
import unittest
from unittest import TestCase

from rich.console import Console

from argvault import (
    Parser,
    Outcome,
    ArgType,
    FaultCode,
    SyntaxFault,
    TypeFault,
    RangeFault,
    RequiredFault,
    InternalFault,
    ConfigFault,
    UnknownArgumentFault,
    last_error,
    last_error_category,
    last_error_code,
    last_error_message,
    last_error_argument,
    error_occurred,
    error_is_fatal,
    clear_error,
)


def capture():
    return Console(file=io.StringIO(), width=100)


def average(console=None):
    parser = Parser("Calculate average of a list of integers.", console=console or capture())
    parser.add_argument("-a", "--average", ArgType.BOOL, "Display the average")
    parser.add_list_argument("-n", "--numbers", ArgType.INT_LIST, "List of integers", True)
    return parser


class TestScalarParsing(TestCase):
    """Behavioral tests for scalar and boolean arguments."""

    def setUp(self):
        clear_error()
        self.parser = Parser(console=capture())
        self.parser.add_argument("-r", "--round", ArgType.INT, "Decimal places", default=2, suffix="=")
        self.parser.add_argument("-x", "--scale", ArgType.DOUBLE, "Scale factor")
        self.parser.add_argument("-o", "--output", ArgType.STRING, "Output file")
        self.parser.add_argument("-v", "--verbose", ArgType.BOOL, "Detailed output", suffix="=")

    def testDefaultsWhenNothingSupplied(self):
        self.assertIs(self.parser.parse(["prog", "-v"]), Outcome.PARSED)
        self.assertEqual(self.parser.get_int("-r"), 2)
        self.assertEqual(self.parser.get_double("--scale"), 0.0)
        self.assertIsNone(self.parser.get_string("-o"))
        self.assertFalse(self.parser.is_set("-r"))

    def testValuesAreConvertedAndMarked(self):
        self.parser.parse(["prog", "-r", "5", "--scale", "2.5e1", "-o", "out.txt"])
        self.assertEqual(self.parser.get_int("--round"), 5)
        self.assertEqual(self.parser.get_double("-x"), 25.0)
        self.assertEqual(self.parser.get_string("--output"), "out.txt")
        self.assertTrue(self.parser.is_set("-r"))
        self.assertFalse(self.parser.get_bool("-v"))

    def testBooleanPresenceMeansTrue(self):
        self.parser.parse(["prog", "--verbose"])
        self.assertTrue(self.parser.get_bool("-v"))
        self.assertTrue(self.parser.is_set("--verbose"))

    def testLastWriteWins(self):
        self.parser.parse(["prog", "-r", "1", "-r", "4"])
        self.assertEqual(self.parser.get_int("-r"), 4)

    def testNegativeNumberIsAValue(self):
        self.parser.parse(["prog", "-r", "-3"])
        self.assertEqual(self.parser.get_int("-r"), -3)

    def testGluedLongForm(self):
        self.parser.parse(["prog", "--round=7"])
        self.assertEqual(self.parser.get_int("-r"), 7)

    def testGluedShortForm(self):
        self.parser.parse(["prog", "-r=0"])
        self.assertEqual(self.parser.get_int("-r"), 0)
        self.assertTrue(self.parser.is_set("-r"))

    def testGluedBooleanText(self):
        self.parser.parse(["prog", "--verbose=no"])
        self.assertFalse(self.parser.get_bool("-v"))
        self.assertTrue(self.parser.is_set("-v"))

    def testGluedBooleanEmptyMeansTrue(self):
        self.parser.parse(["prog", "--verbose="])
        self.assertTrue(self.parser.get_bool("-v"))

    def testGluedBooleanRejectsGarbage(self):
        with self.assertRaises(TypeFault):
            self.parser.parse(["prog", "--verbose=maybe"])

    def testGluedFormRequiresSuffix(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "--scale=2"])
        self.assertEqual(last_error_argument(), "--scale=2")

    def testArgvMayBeAShellString(self):
        self.parser.parse("prog -o 'my file.txt' -r 3")
        self.assertEqual(self.parser.get_string("-o"), "my file.txt")
        self.assertEqual(self.parser.get_int("-r"), 3)


class TestListParsing(TestCase):
    """Behavioral tests for list arguments."""

    def setUp(self):
        clear_error()
        self.parser = Parser(console=capture())
        self.parser.add_list_argument("-n", "--numbers", ArgType.INT_LIST, "Integers", delimiter=",", suffix="=")
        self.parser.add_list_argument("-f", "--files", ArgType.STRING_LIST, "Files", suffix="=")
        self.parser.add_list_argument("-w", "--weights", ArgType.DOUBLE_LIST, "Weights")
        self.parser.add_argument("-a", "--average", ArgType.BOOL, "Average")

    def testGreedyUntilNextRegisteredName(self):
        self.parser.parse(["prog", "-n", "10", "20", "30", "-a"])
        self.assertEqual(self.parser.get_int_list("-n"), [10, 20, 30])
        self.assertEqual(self.parser.get_list_count("--numbers"), 3)
        self.assertTrue(self.parser.get_bool("-a"))

    def testDelimitedTokenSkipsEmptyFields(self):
        self.parser.parse(["prog", "-n", "1,2,,3", "4"])
        self.assertEqual(self.parser.get_int_list("-n"), [1, 2, 3, 4])

    def testGluedListUsesDelimiter(self):
        self.parser.parse(["prog", "--numbers=4,5"])
        self.assertEqual(self.parser.get_int_list("-n"), [4, 5])

    def testGluedListWithoutDelimiterSplitsOnSpace(self):
        self.parser.parse(["prog", "--files=a.txt b.txt"])
        self.assertEqual(self.parser.get_string_list("-f"), ["a.txt", "b.txt"])

    def testOccurrencesAccumulate(self):
        self.parser.parse(["prog", "-n", "1", "-a", "-n", "2", "3"])
        self.assertEqual(self.parser.get_int_list("-n"), [1, 2, 3])

    def testNegativeElements(self):
        self.parser.parse(["prog", "-w", "-1.5", "2"])
        self.assertEqual(self.parser.get_double_list("-w"), [-1.5, 2.0])

    def testEmptyListRaises(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "-n", "-a"])
        self.assertEqual(
            last_error_message(),
            "[SYNTAX_ERROR] Argument '-n': List argument requires at least one value."
        )

    def testEmptyListAtEndRaises(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "-f"])
        self.assertEqual(last_error_argument(), "-f")

    def testFailingTokenCommitsNothing(self):
        with self.assertRaises(TypeFault):
            self.parser.parse(["prog", "-a", "-n", "1", "x"])
        self.assertEqual(last_error_message(), "[TYPE_ERROR] Argument '-n': Invalid list value.")
        self.assertTrue(self.parser.get_bool("-a"))
        self.assertEqual(self.parser.get_int_list("-n"), [])
        self.assertFalse(self.parser.is_set("-n"))

    def testOverlongDelimitedFieldIsRangeFault(self):
        with self.assertRaises(RangeFault):
            self.parser.parse(["prog", "-n", "1," + "0" * 40])

    def testListCopiesAreCallerOwned(self):
        self.parser.parse(["prog", "-n", "1", "2"])
        numbers = self.parser.get_int_list("-n")
        numbers.append(99)
        self.assertEqual(self.parser.get_int_list("-n"), [1, 2])


class TestParseFaults(TestCase):
    """Behavioral tests for fatal parse outcomes and the error context."""

    def setUp(self):
        clear_error()
        self.parser = average()
        self.parser.add_argument("-r", "--round", ArgType.INT, "Decimal places", default=2)

    def testUnexpectedValue(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "-n", "1", "-r", "2", "stray"])
        self.assertEqual(
            last_error_message(),
            "[SYNTAX_ERROR] Argument 'stray': Unexpected value (did you forget an option?)."
        )
        self.assertEqual(last_error_argument(), "stray")
        self.assertEqual(last_error_code(), errno.EINVAL)

    def testOptionRequiresAValue(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "-r", "-a"])
        self.assertEqual(last_error_message(), "[SYNTAX_ERROR] Argument '-r': Option requires a value.")

    def testOptionValueMissingAtEnd(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "-n", "1", "-r"])
        self.assertEqual(
            last_error_message(),
            "[SYNTAX_ERROR] Argument '-r': Option requires a value but none provided."
        )

    def testRequiredArgumentMissing(self):
        with self.assertRaises(RequiredFault):
            self.parser.parse(["prog", "-a"])
        self.assertEqual(last_error_category(), FaultCode.REQUIRED)
        self.assertEqual(last_error_argument(), "-n")
        self.assertTrue(error_is_fatal())

    def testInvalidInteger(self):
        with self.assertRaises(TypeFault):
            self.parser.parse(["prog", "-n", "1", "-r", "abc"])
        self.assertEqual(last_error_message(), "[TYPE_ERROR] Argument '-r': Invalid integer value.")

    def testIntegerOutOfRange(self):
        with self.assertRaises(RangeFault):
            self.parser.parse(["prog", "-n", "1", "-r", "99999999999"])
        self.assertEqual(last_error_category(), FaultCode.RANGE)
        self.assertEqual(last_error_code(), errno.ERANGE)
        self.assertEqual(self.parser.get_int("-r"), 2)
        self.assertFalse(self.parser.is_set("-r"))

    def testIntegerOutOfRangeKeepsPriorValue(self):
        with self.assertRaises(RangeFault):
            self.parser.parse(["prog", "-n", "1", "-r", "3", "-r", "99999999999"])
        self.assertEqual(self.parser.get_int("-r"), 3)
        self.assertTrue(self.parser.is_set("-r"))

    def testHugeIntegerIsRangeFault(self):
        with self.assertRaises(RangeFault):
            self.parser.parse(["prog", "-n", "1", "-r", "9" * 5000])
        self.assertEqual(last_error_message(), "[RANGE_ERROR] Argument '-r': Integer value out of range.")
        self.assertEqual(self.parser.get_int("-r"), 2)

    def testHugeListElementIsRangeFault(self):
        with self.assertRaises(RangeFault):
            self.parser.parse(["prog", "-n", "4", "1" * 5000])
        self.assertEqual(last_error_argument(), "-n")
        self.assertEqual(self.parser.get_int_list("-n"), [])

    def testEarlierTokensStayCommitted(self):
        with self.assertRaises(TypeFault):
            self.parser.parse(["prog", "-n", "4", "5", "-r", "x"])
        self.assertEqual(self.parser.get_int_list("-n"), [4, 5])
        self.assertEqual(self.parser.get_int("-r"), 2)

    def testEmptyArgvIsInternalFault(self):
        with self.assertRaises(InternalFault):
            self.parser.parse([])

    def testNonStringTokenIsInternalFault(self):
        with self.assertRaises(InternalFault):
            self.parser.parse(["prog", 5])

    def testFaultLocationIsRecorded(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "stray"])
        function, line = last_error().location
        self.assertIsInstance(function, str)
        self.assertGreater(line, 0)

    def testSuccessfulOperationClearsContext(self):
        with self.assertRaises(SyntaxFault):
            self.parser.parse(["prog", "stray"])
        self.assertTrue(error_occurred())
        self.assertIs(self.parser.parse(["prog", "-n", "1"]), Outcome.PARSED)
        self.assertFalse(error_occurred())
        self.assertEqual(last_error_category(), FaultCode.SUCCESS)
        self.assertEqual(last_error_message(), "")

    def testShellModeExitsWithStatusOne(self):
        parser = Parser(shell=True, colorful=False, console=capture())
        parser.add_argument("-r", "--round", ArgType.INT)
        with self.assertRaises(SystemExit) as context:
            parser.parse(["prog", "stray"])
        self.assertEqual(context.exception.code, 1)
        self.assertEqual(last_error_category(), FaultCode.SYNTAX)


class TestGetters(TestCase):
    """Behavioral tests for typed accessors."""

    def setUp(self):
        clear_error()
        self.parser = average()
        self.parser.parse(["prog", "-n", "10", "20", "30", "-a"])

    def testAverageScenario(self):
        numbers = self.parser.get_int_list("-n")
        self.assertEqual(numbers, [10, 20, 30])
        self.assertEqual(sum(numbers) / len(numbers), 20.0)
        self.assertTrue(self.parser.get_bool("--average"))
        self.assertFalse(error_occurred())

    def testUnknownNameRaises(self):
        with self.assertRaises(UnknownArgumentFault):
            self.parser.get_int("--nope")
        self.assertEqual(last_error_category(), FaultCode.UNKNOWN_ARG)
        self.assertEqual(last_error_argument(), "--nope")

    def testWrongTypeRaises(self):
        with self.assertRaises(InternalFault):
            self.parser.get_int("-a")
        with self.assertRaises(InternalFault):
            self.parser.get_double_list("-n")

    def testListCountRejectsScalars(self):
        with self.assertRaises(InternalFault):
            self.parser.get_list_count("-a")

    def testGenericGet(self):
        self.assertEqual(self.parser.get("--numbers"), [10, 20, 30])
        self.assertTrue(self.parser.get("-a"))


class TestHelp(TestCase):
    """Behavioral tests for help rendering and help outcomes."""

    def setUp(self):
        clear_error()
        self.console = capture()
        self.parser = average(self.console)

    def output(self):
        return self.console.file.getvalue()

    def testHelpRequested(self):
        self.assertIs(self.parser.parse(["prog", "--help"]), Outcome.HELP_REQUESTED)
        self.assertIn("usage: prog [OPTIONS]", self.output())
        self.assertIn("Calculate average of a list of integers.", self.output())
        self.assertIn("--numbers VALUE1 VALUE2 ...", self.output())
        self.assertIn("[required]", self.output())
        self.assertEqual(last_error_category(), FaultCode.HELP_REQUESTED)
        self.assertEqual(last_error_message(), "[HELP_REQUESTED] Help requested by user.")
        self.assertEqual(last_error_code(), 0)
        self.assertTrue(error_occurred())
        self.assertFalse(error_is_fatal())

    def testHelpNoticeRecordsWhereTheScanStopped(self):
        self.parser.parse(["prog", "-h"])
        function, line = last_error().location
        self.assertEqual(function, "_parseargs")
        self.assertGreater(line, 0)

    def testHelpAliasesStopTheScan(self):
        for alias in ("-h", "-H", "--HELP", "/?", "/help"):
            with self.subTest(alias=alias):
                self.assertIs(self.parser.parse(["prog", alias, "stray"]), Outcome.HELP_REQUESTED)

    def testHelpSkipsRequiredCheck(self):
        self.assertIs(self.parser.parse(["prog", "-a", "-h"]), Outcome.HELP_REQUESTED)
        self.assertTrue(self.parser.get_bool("-a"))

    def testNoArguments(self):
        self.assertIs(self.parser.parse(["prog"]), Outcome.NO_ARGUMENTS)
        self.assertIn("usage: prog", self.output())
        self.assertEqual(last_error_message(), "[HELP_REQUESTED] No arguments provided, showing help.")

    def testBuiltinHelpIsListedFirst(self):
        self.assertEqual(self.parser.describe()[0][:2], ("-h", "--help"))

    def testHelpAliasRegistrationIsSkipped(self):
        self.assertIsNone(self.parser.add_argument("-h", "--host", ArgType.STRING))
        self.assertNotIn("--host", self.parser)
        self.assertFalse(error_occurred())

    def testWithoutBuiltinHelp(self):
        parser = Parser(add_help=False, console=self.console)
        self.assertIsNotNone(parser.add_argument("-h", "--host", ArgType.STRING))
        parser.parse(["prog", "-h", "localhost"])
        self.assertEqual(parser.get_string("--host"), "localhost")
        with self.assertRaises(SyntaxFault):
            parser.parse(["prog", "--help"])

    def testFormatHelpIsPlainText(self):
        self.parser.parse(["prog", "-n", "1"])
        text = self.parser.format_help()
        self.assertTrue(text.startswith("usage: prog [OPTIONS]"))
        self.assertIn("-a, --average", text)
        self.assertNotIn("\x1b[", text)

    def testPrintHelpRejectsNonConsole(self):
        with self.assertRaises(ConfigFault):
            self.parser.print_help(io.StringIO())


class TestConfiguration(TestCase):
    """Behavioral tests for parser options."""

    def testDescriptionMustBeText(self):
        with self.assertRaises(ConfigFault):
            Parser(42)

    def testConsoleMustBeRich(self):
        with self.assertRaises(ConfigFault):
            Parser(console=io.StringIO())

    def testOptionsAreReadOnly(self):
        parser = Parser("demo", shell=False)
        self.assertEqual(parser.description, "demo")
        self.assertTrue(parser.add_help)
        with self.assertRaises(AttributeError):
            parser.shell = True


class TestThreadIsolation(TestCase):
    """The error context is per thread."""

    def testFaultInOtherThreadIsInvisible(self):
        clear_error()
        seen = []

        def worker():
            parser = average()
            try:
                parser.parse(["prog", "stray"])
            except SyntaxFault:
                seen.append(last_error_category())

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        self.assertEqual(seen, [FaultCode.SYNTAX])
        self.assertFalse(error_occurred())
        self.assertEqual(last_error_category(), FaultCode.SUCCESS)


if __name__ == "__main__":
    unittest.main()
