"""
Registry module behavioral tests (construction, parsing, faults, outcomes).

Scope
- Validate construction: spec kinds, tuple shorthand, duplicate rejection.
- Validate token classification: long, short, grouped, unrecognized.
- Validate value attachment, accumulation, defaults and required params.
- Validate both fault strategies (exit and raise) and every fault kind.
- Validate Outcome accessors and the parse() convenience runner.

Conventions
- Test method names follow CamelCase per project convention.
- Faults are exercised with exit=False and an in-memory stream unless the
  exit strategy itself is under test.
"""

from __future__ import annotations

import io
import sys
import unittest
from unittest import TestCase
from unittest.mock import patch

from optable import (
    Registry,
    Outcome,
    Param,
    Flag,
    parse,
    FaultCode,
    OptionsError,
    UngroupableParamError,
    UnknownGroupedFlagError,
    MissingParamValueError,
    MissingRequiredOptionError,
)


def sample(**options):
    options.setdefault("exit", False)
    options.setdefault("stream", io.StringIO())
    return Registry(
        params=[
            Param("port", "p", "80", "The port to connect to."),
            Param("host", "h", "localhost", "The host to connect to."),
        ],
        flags=[
            Flag("secure", "s", "Use SSL for encryption."),
            Flag("quit", "q", "Quit after connecting."),
            Flag("verbose", "v", "Talk more."),
        ],
        **options,
    )


class TestRegistryConstruction(TestCase):
    """Behavioral tests for Registry declarations."""

    def testEmptyRegistry(self):
        registry = Registry()
        self.assertEqual(registry.params, ())
        self.assertEqual(registry.flags, ())
        self.assertTrue(registry.exit)
        self.assertFalse(registry.colorful)

    def testTupleShorthand(self):
        registry = Registry(params=[("port", "p", None, "desc")], flags=[("quit", "q", "desc")])
        self.assertIsInstance(registry.params[0], Param)
        self.assertIsInstance(registry.flags[0], Flag)
        self.assertTrue(registry.params[0].required)

    def testDeclarationOrderPreserved(self):
        registry = sample()
        self.assertEqual([p.long for p in registry.params], ["port", "host"])
        self.assertEqual([f.long for f in registry.flags], ["secure", "quit", "verbose"])

    def testSwitchesListEverySpelling(self):
        registry = sample()
        self.assertIs(registry.switches["--port"], registry.params[0])
        self.assertIs(registry.switches["-q"], registry.flags[1])
        self.assertEqual(len(registry.switches), 10)

    def testDuplicateLongRejected(self):
        with self.assertRaises(ValueError):
            Registry(params=[Param("port", "p")], flags=[Flag("port", "q")])

    def testDuplicateShortRejected(self):
        with self.assertRaises(ValueError):
            Registry(flags=[Flag("quit", "q"), Flag("quiet", "q")])

    def testFlagInParamsRejected(self):
        with self.assertRaises(TypeError):
            Registry(params=[Flag("quit", "q")])

    def testParamInFlagsRejected(self):
        with self.assertRaises(TypeError):
            Registry(flags=[Param("port", "p")])

    def testStringSpecRejected(self):
        with self.assertRaises(TypeError):
            Registry(params=["port"])

    def testProgMustBeString(self):
        with self.assertRaises(TypeError):
            Registry(prog=1)


class TestParsing(TestCase):
    """Behavioral tests for token classification and value attachment."""

    def testDocumentedExample(self):
        registry = Registry(
            params=[("host", "h", "localhost", "desc")],
            flags=[("quit", "q", "desc")],
            exit=False,
        )
        outcome = registry.parse(["-q", "extra", "--host", "example.com"])
        self.assertEqual(dict(outcome), {"quit": True, "host": "example.com"})
        self.assertEqual(outcome.leftovers, ["extra"])

    def testLongAndShortForms(self):
        outcome = sample().parse(["--port", "8080", "-h", "example.com", "--secure", "-q"])
        self.assertEqual(outcome["port"], "8080")
        self.assertEqual(outcome["host"], "example.com")
        self.assertIs(outcome["secure"], True)
        self.assertIs(outcome["quit"], True)

    def testAbsentFlagIsAbsent(self):
        outcome = sample().parse([])
        self.assertNotIn("secure", outcome)
        self.assertNotIn("quit", outcome)

    def testRepeatedFlagStaysTrue(self):
        outcome = sample().parse(["-q", "--quit", "-q"])
        self.assertIs(outcome["quit"], True)

    def testDefaultsFilled(self):
        outcome = sample().parse([])
        self.assertEqual(dict(outcome), {"port": "80", "host": "localhost"})

    def testEmptyDefaultFilled(self):
        registry = Registry(params=[Param("name", "n", "")], exit=False)
        self.assertEqual(registry.parse([])["name"], "")

    def testRepeatedParamAccumulates(self):
        outcome = sample().parse(["--host", "a", "-h", "b", "--host", "c"])
        self.assertEqual(outcome["host"], ["a", "b", "c"])

    def testTwiceGivenParamBecomesList(self):
        outcome = sample().parse(["-p", "1", "-p", "2"])
        self.assertEqual(outcome["port"], ["1", "2"])

    def testEmptyStringIsAValue(self):
        outcome = sample().parse(["--host", ""])
        self.assertEqual(outcome["host"], "")

    def testUnknownSwitchesAreLeftovers(self):
        outcome = sample().parse(["--nope", "-x", "file.txt", "-q"])
        self.assertEqual(outcome.leftovers, ["--nope", "-x", "file.txt"])
        self.assertIs(outcome["quit"], True)

    def testLoneDashesAreLeftovers(self):
        outcome = sample().parse(["-", "--"])
        self.assertEqual(outcome.leftovers, ["-", "--"])

    def testLongLookupIsExact(self):
        outcome = sample().parse(["--hos", "x"])
        self.assertEqual(outcome.leftovers, ["--hos", "x"])
        self.assertEqual(outcome["host"], "localhost")

    def testGroupedFlags(self):
        outcome = sample().parse(["-qs"])
        self.assertIs(outcome["quit"], True)
        self.assertIs(outcome["secure"], True)
        self.assertEqual(outcome.leftovers, [])

    def testGroupedFlagsProcessedBeforeFollowingTokens(self):
        outcome = sample().parse(["-qv", "--port", "1", "rest"])
        self.assertEqual(dict(outcome), {"quit": True, "verbose": True, "port": "1", "host": "localhost"})
        self.assertEqual(outcome.leftovers, ["rest"])

    def testGroupConsumesNoValue(self):
        outcome = sample().parse(["-qs", "value"])
        self.assertEqual(outcome.leftovers, ["value"])

    def testShellStringIsSplit(self):
        outcome = sample().parse("--host 'my host' -q")
        self.assertEqual(outcome["host"], "my host")
        self.assertIs(outcome["quit"], True)

    def testDefaultSourceIsArgv(self):
        with patch.object(sys, "argv", ["prog", "-q", "left"]):
            outcome = sample().parse()
            self.assertEqual(sys.argv, ["prog", "-q", "left"])
        self.assertIs(outcome["quit"], True)
        self.assertEqual(outcome.leftovers, ["left"])
        self.assertEqual(outcome.args, ["-q", "left"])

    def testNonStringTokenRejected(self):
        with self.assertRaises(TypeError):
            sample().parse(["-p", 80])

    def testNonIterableRejected(self):
        with self.assertRaises(TypeError):
            sample().parse(80)

    def testInputListNotMutated(self):
        tokens = ["-qs", "--host", "x"]
        sample().parse(tokens)
        self.assertEqual(tokens, ["-qs", "--host", "x"])

    def testIdempotentReparse(self):
        registry = sample()
        tokens = ["-qs", "a", "--host", "x", "--host", "y", "--what"]
        first = registry.parse(tokens)
        second = registry.parse(tokens)
        self.assertEqual(first, second)
        self.assertEqual(first.leftovers, second.leftovers)

    def testDebugLogging(self):
        with self.assertLogs("optable.registry", level="DEBUG") as logs:
            sample().parse(["stray"])
        self.assertTrue(any("stray" in line for line in logs.output))

    def testParseConvenience(self):
        outcome = parse(["-q"], flags=[("quit", "q", "desc")], exit=False)
        self.assertEqual(dict(outcome), {"quit": True})


class TestFaults(TestCase):
    """Behavioral tests for parse faults and the exit/raise strategies."""

    def testUngroupableParam(self):
        registry = Registry(
            params=[Param("count", "c", "1")],
            flags=[Flag("all", "a"), Flag("brief", "b")],
            exit=False,
            stream=io.StringIO(),
        )
        with self.assertRaises(UngroupableParamError) as caught:
            registry.parse(["-abc"])
        self.assertEqual(caught.exception.message, "Parameter 'count' found in grouped flags '-abc'.")
        self.assertEqual(caught.exception.options["name"], "count")
        self.assertIs(caught.exception.code, FaultCode.UNGROUPABLE_PARAM)

    def testUnknownGroupedFlag(self):
        registry = Registry(flags=[Flag("one", "o")], exit=False, stream=io.StringIO())
        with self.assertRaises(UnknownGroupedFlagError) as caught:
            registry.parse(["-xo", "value"])
        self.assertEqual(caught.exception.message, "'x' is not a supported flag.")
        self.assertEqual(caught.exception.options["char"], "x")

    def testMissingParamValueAtEnd(self):
        registry = Registry(params=[["port", "p", None, "desc"]], exit=False, stream=io.StringIO())
        with self.assertRaises(MissingParamValueError) as caught:
            registry.parse(["-p"])
        self.assertEqual(caught.exception.message, "Missing argument for 'port' parameter.")
        self.assertEqual(caught.exception.options["name"], "port")

    def testMissingParamValueBeforeSwitch(self):
        with self.assertRaises(MissingParamValueError):
            sample().parse(["--host", "-q"])

    def testMissingParamValueBeforeDoubleDash(self):
        with self.assertRaises(MissingParamValueError):
            sample().parse(["--host", "--other"])

    def testMissingRequiredOption(self):
        registry = Registry(params=[Param("port", "p"), Param("user", "u")], exit=False, stream=io.StringIO())
        with self.assertRaises(MissingRequiredOptionError) as caught:
            registry.parse(["--user", "me"])
        self.assertEqual(caught.exception.message, "Missing required option 'port'")
        self.assertIs(caught.exception.code, FaultCode.MISSING_REQUIRED_OPTION)

    def testFirstMissingRequiredReportedFirst(self):
        registry = Registry(params=[Param("port", "p"), Param("user", "u")], exit=False, stream=io.StringIO())
        with self.assertRaises(MissingRequiredOptionError) as caught:
            registry.parse([])
        self.assertEqual(caught.exception.options["name"], "port")

    def testRequiredSatisfied(self):
        registry = Registry(params=[Param("port", "p")], exit=False)
        self.assertEqual(registry.parse(["-p", "22"])["port"], "22")

    def testFaultsShareBase(self):
        for kind in (UngroupableParamError, UnknownGroupedFlagError, MissingParamValueError, MissingRequiredOptionError):
            self.assertTrue(issubclass(kind, OptionsError))

    def testRaisedFaultCarriesRuntimeOptions(self):
        registry = sample()
        with self.assertRaises(MissingParamValueError) as caught:
            registry.parse(["--port"])
        self.assertFalse(caught.exception.options["exit"])
        self.assertIs(caught.exception.options["registry"], registry)

    def testFaultRendersUsageWithReason(self):
        stream = io.StringIO()
        registry = Registry(params=[Param("port", "p", help="desc")], exit=False, stream=stream, prog="tool")
        with self.assertRaises(MissingRequiredOptionError):
            registry.parse([])
        lines = stream.getvalue().splitlines()
        self.assertEqual(lines[0], "Missing required option 'port'")
        self.assertEqual(lines[1], "")
        self.assertEqual(lines[2], "Usage: tool [options]")

    def testExitStrategyTerminates(self):
        stream = io.StringIO()
        registry = Registry(params=[Param("port", "p")], stream=stream)
        with self.assertRaises(SystemExit) as caught:
            registry.parse([])
        self.assertEqual(caught.exception.code, 1)
        self.assertIn("Missing required option 'port'", stream.getvalue())

    def testNoFaultForUngroupedUnknowns(self):
        outcome = sample().parse(["-z", "--zzz"])
        self.assertEqual(outcome.leftovers, ["-z", "--zzz"])


class TestOutcome(TestCase):
    """Behavioral tests for Outcome accessors."""

    def setUp(self):
        self.outcome = Outcome(
            {"host": ["a", "b", "c"], "port": "80", "quit": True},
            ["extra"],
            ["--host", "a"],
        )

    def testMappingView(self):
        self.assertEqual(set(self.outcome), {"host", "port", "quit"})
        self.assertEqual(len(self.outcome), 3)
        self.assertEqual(self.outcome["host"], ["a", "b", "c"])

    def testGetOneScalar(self):
        self.assertEqual(self.outcome.get_one("port"), "80")
        self.assertIs(self.outcome.get_one("quit"), True)

    def testGetOneListTakesLast(self):
        self.assertEqual(self.outcome.get_one("host"), "c")

    def testGetOneAbsent(self):
        self.assertIsNone(self.outcome.get_one("missing"))
        self.assertEqual(self.outcome.get_one("missing", "fallback"), "fallback")

    def testGetAllAlwaysSequence(self):
        self.assertEqual(self.outcome.get_all("port"), ["80"])
        self.assertEqual(self.outcome.get_all("quit"), [True])
        self.assertEqual(self.outcome.get_all("host"), ["a", "b", "c"])
        self.assertEqual(self.outcome.get_all("missing"), [])

    def testResultsCannotBeMutatedThroughAccessors(self):
        self.outcome["host"].append("d")
        self.outcome.get_all("host").append("e")
        self.outcome.leftovers.append("more")
        self.assertEqual(self.outcome["host"], ["a", "b", "c"])
        self.assertEqual(self.outcome.leftovers, ["extra"])

    def testArgsExposed(self):
        self.assertEqual(self.outcome.args, ["--host", "a"])

    def testRepr(self):
        self.assertEqual(repr(Outcome({"quit": True}, ["x"])), "outcome({'quit': True}, leftovers=['x'])")



class TestPackageMetadata(TestCase):
    """Package-level metadata."""

    def testMetadata(self):
        import optable
        self.assertEqual(optable.__title__, "optable")
        self.assertEqual(optable.__author__, "Phil Christensen")
        self.assertEqual(optable.__version__, "%d.%d.%d" % optable.version_info[:3])


if __name__ == "__main__":
    unittest.main()
