"""
Optable registry layer: declare switches, parse tokens, render usage.

What this module provides
- Registry: holds the declared params and flags and parses token streams
  against them:
  • long (--name), short (-n) and grouped short (-qs) switches.
  • value attachment for params, with repeated params accumulating into lists.
  • unrecognized tokens preserved, in order, as leftovers.
  • defaults filled in and required params enforced after the scan.
  • a plain, aligned usage table (Rich-backed, optionally colorful).

- Outcome: the read-only result of one parse (long name → value) together with
  the leftovers and the original tokens of that invocation.

- parse(tokens, params=..., flags=...): one-shot convenience runner.

Quick start
    from optable import Registry, Param, Flag

    registry = Registry(
        params=[
            Param("port", "p", help="The port to connect to."),
            Param("host", "h", "localhost", help="The host to connect to."),
        ],
        flags=[
            Flag("secure", "s", help="Use SSL for encryption."),
            Flag("quit", "q", help="Quit after connecting."),
        ],
    )

    outcome = registry.parse()          # reads sys.argv[1:]
    sys.argv[1:] = outcome.leftovers    # hand unrecognized tokens to the next stage
    print(outcome["port"], outcome.get_one("host"))

Design notes
- The registry keeps no per-invocation state: everything an invocation
  produces lives in its Outcome, which can be passed back to usage().
- Faults render the usage table with the reason as header and then exit the
  process (exit=True, the default) or raise the fault (exit=False).
- Unknown switches outside a group are leftovers, not faults; unknown
  characters inside a group are faults.
"""
import logging
import os.path
import shlex
import sys
from collections import defaultdict, deque
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .arguments import Param, Flag
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


def _resolve_param(x):
    """
    accept a Param, or the (long, short, default, help) shorthand.
    """
    if hasattr(x, "__param__") and callable(x.__param__):
        return x.__param__()
    if isinstance(x, Flag):
        raise TypeError("registry 'params' cannot contain flags (got %r)" % x)
    if isinstance(x, Sequence) and not isinstance(x, str):
        return Param(*x)
    raise TypeError("registry 'params' must contain params or (long, short, default, help) sequences")


def _resolve_flag(x):
    """
    accept a Flag, or the (long, short, help) shorthand.
    """
    if hasattr(x, "__flag__") and callable(x.__flag__):
        return x.__flag__()
    if isinstance(x, Param):
        raise TypeError("registry 'flags' cannot contain params (got %r)" % x)
    if isinstance(x, Sequence) and not isinstance(x, str):
        return Flag(*x)
    raise TypeError("registry 'flags' must contain flags or (long, short, help) sequences")


def _sanitized(tokens):
    """
    normalize a parse() argument into a fresh list of tokens.

    - Unset: a copy of sys.argv[1:].
    - str: shell-like string split via shlex.split.
    - Iterable[str]: copied verbatim (tokens are never trimmed: "" is a valid value).
    """
    if tokens is Unset:
        return sys.argv[1:]
    if isinstance(tokens, str):
        return shlex.split(tokens)
    if not isinstance(tokens, Iterable):
        raise TypeError("parse() argument must be a string or an iterable of strings")
    tokens = list(tokens)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("parse() argument must be a string or an iterable of strings")
    return tokens


class Outcome(Mapping):
    """
    Result of a single parse.

    Mapping view
    - keys are long names; values are True (flag), str (param given once) or
      list[str] (param given more than once, in order).
    - flags that were not given are absent, never False.

    Extras
    - leftovers: unrecognized tokens in their original order.
    - args: the tokens this outcome was parsed from (used for the program name
      by Registry.usage()).
    - get_one()/get_all(): scalar and sequence accessors.
    """

    def __init__(self, results=(), /, leftovers=(), args=()):
        self._results = dict(results)
        self._leftovers = list(leftovers)
        self._args = list(args)

    leftovers = mirror("leftovers")
    args = mirror("args")

    def __getitem__(self, name):
        value = self._results[name]
        return list(value) if isinstance(value, list) else value

    def __iter__(self):
        return iter(self._results)

    def __len__(self):
        return len(self._results)

    def get_one(self, name, default=None, /):
        """
        Return a single value for `name`.

        - absent → `default`
        - list (param given several times) → its last value
        - anything else → the stored value
        """
        match self._results.get(name, Unset):
            case UnsetType():
                return default
            case list() as values:
                return values[-1]
            case value:
                return value

    def get_all(self, name, /):
        """
        Return every value for `name` as a new list.

        - absent → []
        - list → a copy of it
        - anything else → a one-element list
        """
        match self._results.get(name, Unset):
            case UnsetType():
                return []
            case list() as values:
                return list(values)
            case value:
                return [value]

    def __repr__(self):
        return "outcome(%r, leftovers=%r)" % (self._results, self._leftovers)

    def __rich_repr__(self):
        yield self._results
        yield "leftovers", self._leftovers


class Registry:
    """
    Declared switches plus the parser and usage renderer built on them.

    Construction
    - params: Iterable[Param | (long, short, default, help)]
    - flags: Iterable[Flag | (long, short, help)]
    - exit: bool (keyword-only, default True)
      True terminates the process with status 1 on a parse fault; False
      raises the fault to the caller instead. Usage is rendered either way.
    - stream: Unset | TextIO (keyword-only)
      where usage goes; Unset means sys.stderr at render time.
    - prog: Unset | str (keyword-only)
      fixed program name for the usage header.
    - colorful: bool (keyword-only, default False)
      style the usage table; palette overridable via __styles__ in __main__.

    Raises
    - TypeError: wrong spec kinds or option types.
    - ValueError: a long name or a short character declared twice.
    """

    def __init__(self, params=(), flags=(), *, exit=True, stream=Unset, prog=Unset, colorful=False):
        self._params = tuple(map(_resolve_param, params))
        self._flags = tuple(map(_resolve_flag, flags))

        longs = {}
        shorts = {}
        for spec in self._params + self._flags:
            if spec.long in longs:
                raise ValueError("registry cannot declare long name %r twice" % spec.long)
            if spec.short in shorts:
                raise ValueError("registry cannot declare short name %r twice (%r and %r)" % (
                    spec.short, shorts[spec.short].long, spec.long
                ))
            longs[spec.long] = spec
            shorts[spec.short] = spec
        self._longs = longs
        self._shorts = shorts

        if not isinstance(prog, str | Unset):
            raise TypeError("registry 'prog' must be a string")

        self._exit = bool(exit)
        self._stream = stream
        self._prog = prog
        self._colorful = bool(colorful)

    exit = mirror("exit")
    colorful = mirror("colorful")

    @property
    def params(self):
        return self._params

    @property
    def flags(self):
        return self._flags

    @property
    def switches(self):
        """
        every accepted spelling ("--long" and "-s") mapped to its spec.
        """
        switches = {}
        for spec in self._params + self._flags:
            switches["--" + spec.long] = spec
            switches["-" + spec.short] = spec
        return MappingProxyType(switches)

    def __repr__(self):
        return "registry(params=%r, flags=%r, exit=%r)" % (self._params, self._flags, self._exit)

    def trigger(self, fault, args, /):
        """
        render usage with the fault as header, then exit or raise.
        """
        logger.debug("parse fault %s: %s", fault.code.name, fault.message)
        self._render(fault, args)
        trigger(fault, exit=self._exit, colorful=self._colorful, registry=self)

    def _expand(self, token, args):
        """
        split a grouped short token ("-qs") into synthetic single switches.

        every character must name a flag; the whole group is checked before
        anything is returned, so a bad group commits nothing.
        """
        expanded = []
        for char in token[1:]:
            spec = self._shorts.get(char)
            if spec is None:
                self.trigger(UnknownGroupedFlagError(
                    "'%s' is not a supported flag." % char,
                    title="unknown grouped flag",
                    code=FaultCode.UNKNOWN_GROUPED_FLAG,
                    char=char,
                    token=token,
                ), args)
            if isinstance(spec, Param):
                self.trigger(UngroupableParamError(
                    "Parameter '%s' found in grouped flags '%s'." % (spec.long, token),
                    title="param in grouped flags",
                    code=FaultCode.UNGROUPABLE_PARAM,
                    name=spec.long,
                    char=char,
                    token=token,
                ), args)
            expanded.append("-" + char)
        logger.debug("expanded grouped flags %r into %s", token, expanded)
        return expanded

    def parse(self, tokens=Unset, /):
        """
        Parse tokens against the declared switches and return an Outcome.

        Parameters
        - tokens:
          • Unset: read sys.argv[1:] (sys.argv itself is left untouched; use
            outcome.leftovers to hand unrecognized tokens on).
          • str: shell-like string, split via shlex.split.
          • Iterable[str]: pre-tokenized sequence, used verbatim.

        Phases
        - scan: classify each token (long, short, grouped, other), attach
          values to params, mark flags, collect leftovers. Grouped flags are
          re-queued as single switches ahead of the remaining tokens.
        - resolve: for every param in declaration order, fill the default when
          absent, then fail when it is required and still absent.

        Raises
        - TypeError: when tokens is not Unset/str/Iterable[str].
        - OptionsError subclasses (exit=False) or SystemExit (exit=True) on faults.
        """
        args = _sanitized(tokens)
        logger.debug("parsing tokens: %s", args)

        results = {}
        leftovers = []

        tokens = deque(args)
        while tokens:
            token = tokens.popleft()

            if token.startswith("--"):
                spec = self._longs.get(token[2:])
            elif token.startswith("-") and len(token) == 2:
                spec = self._shorts.get(token[1])
            elif token.startswith("-") and len(token) > 2:
                tokens.extendleft(reversed(self._expand(token, args)))
                continue
            else:
                spec = None

            if spec is None:
                logger.debug("leftover token %r", token)
                leftovers.append(token)
            elif isinstance(spec, Flag):
                results[spec.long] = True
            else:
                if not tokens or tokens[0].startswith("-"):
                    self.trigger(MissingParamValueError(
                        "Missing argument for '%s' parameter." % spec.long,
                        title="missing param value",
                        code=FaultCode.MISSING_PARAM_VALUE,
                        name=spec.long,
                        token=token,
                    ), args)
                value = tokens.popleft()
                match results.get(spec.long, Unset):
                    case UnsetType():
                        results[spec.long] = value
                    case list() as values:
                        values.append(value)
                    case current:
                        results[spec.long] = [current, value]

        for param in self._params:
            if param.long not in results and param.default is not None:
                logger.debug("default for %r: %r", param.long, param.default)
                results[param.long] = param.default
            if param.default is None and param.long not in results:
                self.trigger(MissingRequiredOptionError(
                    "Missing required option '%s'" % param.long,
                    title="missing required option",
                    code=FaultCode.MISSING_REQUIRED_OPTION,
                    name=param.long,
                ), args)

        return Outcome(results, leftovers, args)

    def usage(self, reason=Unset, /, *, outcome=Unset, stream=Unset):
        """
        Render the usage table.

        Parameters
        - reason: Unset | str | Text | OptionsError
          printed first, followed by an empty line (e.g., to explain an exit).
        - outcome: Unset | Outcome (keyword-only)
          the invocation whose first token names the program; when Unset or
          empty, the basename of sys.argv[0] is used. A registry 'prog' wins.
        - stream: Unset | TextIO (keyword-only)
          overrides the registry stream for this call.
        """
        if not isinstance(outcome, Outcome | Unset):
            raise TypeError("usage() 'outcome' must be an outcome")
        self._render(reason, outcome.args if outcome is not Unset else [], stream)

    def _render(self, reason, args, stream=Unset):
        """
        Render usage to the resolved stream.

        Palette keys
        - reason, usage-label, program-name, options-label
        - flag-name, param-name, help, default, required

        Layout
        - "Usage: <prog> [options]" and "Options:" header lines.
        - one row per flag, then per param, in declaration order; the left
          column ("  -s, --long") is padded to the widest one plus two spaces.
        """
        console = Console(
            file=coalesce(stream, coalesce(self._stream, sys.stderr)),
            highlight=False,
            markup=False,
            emoji=False,
        )
        styles = defaultdict(str, {
            "reason": "bold #FF4DA6",  # friendly pinky reason
            "usage-label": "bold #00E6FF",  # cyan label
            "program-name": "bold #FF4D94",  # magenta-pink program name
            "options-label": "bold #FFFFFF",  # white section label

            "flag-name": "bold #22C55E",  # green flags
            "param-name": "bold #00E6FF",  # cyan params
            "help": "#9CA3AF",  # muted gray descriptions
            "default": "#FFD600",  # amber defaults
            "required": "bold #EF4444",  # red required marker
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        def text(fragment, style=""):
            # Normalize to Rich Text; without colors, drop any caller styling too.
            if not fragment:
                return Text("")
            if not self._colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = coalesce(self._prog, args[0] if args else os.path.basename(sys.argv[0]))

        if reason is not Unset:
            if isinstance(reason, OptionsError):
                reason = reason.message
            console.print(text(reason, styler("reason")), soft_wrap=True)
            console.print()

        console.print(Text.assemble(
            text("Usage", styler("usage-label")), ": ", text(prog, styler("program-name")), " [options]"
        ), soft_wrap=True)
        console.print(Text.assemble(text("Options", styler("options-label")), ":"), soft_wrap=True)

        rows = []
        for spec in self._flags + self._params:
            style = "param-name" if isinstance(spec, Param) else "flag-name"
            names = Text.assemble(
                "  ", text("-" + spec.short, styler(style)), ", ", text("--" + spec.long, styler(style))
            )
            if isinstance(spec, Param):
                default = "[default: %s]" % spec.default if spec.default else ""
                required = "[required]" if spec.required else ""
                descr = Text.assemble(
                    text(spec.help, styler("help")), " ",
                    text(default, styler("default")), "   ",
                    text(required, styler("required")),
                )
            else:
                descr = text(spec.help, styler("help"))
            rows.append((names, descr))

        width = max((len(names) for names, _ in rows), default=0)
        for names, descr in rows:
            row = Text.assemble(names, " " * (width + 2 - len(names)), descr)
            row.rstrip()
            console.print(row, soft_wrap=True)


def parse(tokens=Unset, /, *, params=(), flags=(), **options):
    """
    Convenience runner: build a Registry and parse in one call.

    Parameters
    - tokens: as Registry.parse() (Unset reads sys.argv[1:]).
    - params, flags: as Registry().
    - **options: forwarded to Registry (exit, stream, prog, colorful).

    Returns
    - Outcome
    """
    return Registry(params, flags, **options).parse(tokens)


__all__ = (
    # Public API surface for consumers of optable.registry.
    # These names are re-exported from the package __init__.
    "Registry",
    "Outcome",
    "parse",
)
