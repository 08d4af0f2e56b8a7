r"""
Optable option specifications.

Overview
- Specs
  • Param: named, value-bearing switch with a long and a short spelling
    (e.g., -p/--port). A default of None makes it required.
  • Flag: named, presence-only switch (no payload), e.g., -q/--quit.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes
    the fields listed in __introspectable__ via read-only properties.

Metadata (sanitized on construction)
- Shared (all specs)
  • long: str, the name used for --long spellings and as the result key.
  • short: str of exactly one character, used for -s spellings and groups.
  • help: Unset | str | Text (short help), kept verbatim.
- Param only
  • default: None | str. None marks the param as required; "" is an optional
    param with an empty default.

Validation highlights
- Long names must match r"[^\W_]+([-_][^\W_]+)*" (no leading dashes).
- Short names must be one character, neither '-' nor whitespace.
- Defaults are never coerced: anything other than None or a string is rejected.
- help strings are kept verbatim; "" renders as an empty help column.

Quick example:
    >>> from optable.arguments import Param, Flag
    >>> port = Param("port", "p", help="The port to connect to.")
    >>> host = Param("host", "h", "localhost", help="The host to connect to.")
    >>> quit = Flag("quit", "q", help="Quit after connecting.")
    >>> port.required, host.required
    (True, False)

Public API
- Classes: Param, Flag
"""
import functools
import operator
import re

from rich.text import Text

from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into immutable, introspectable records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printers.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Example
            - param(long='port', short='p', default=None, help='The port.')
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by Param and Flag.

    - long: required string; trimmed, then matched against the long-name grammar.
    - short: required string of exactly one character (not '-', not whitespace).
    - help: optional; Unset becomes None, strings are kept verbatim ("" included).

    Raises
    - TypeError: when a field has the wrong type.
    - ValueError: when a field has the right type but an unusable value.

    Notes
    - This function mutates the provided metadata dict in place.
    """
    if not isinstance(long := metadata["long"], str):
        raise TypeError(f"{cls.__typename__} 'long' must be a string")
    elif not (long := long.strip()):
        raise ValueError(f"{cls.__typename__} 'long' cannot be empty")
    elif not re.fullmatch(r"[^\W_]+([-_][^\W_]+)*", long):
        raise ValueError(f"{cls.__typename__} 'long' must be a valid option name without leading dashes (got {long!r})")
    metadata["long"] = long

    if not isinstance(short := metadata["short"], str):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif len(short) != 1:
        raise ValueError(f"{cls.__typename__} 'short' must be exactly one character (got {short!r})")
    elif short == "-" or short.isspace():
        raise ValueError(f"{cls.__typename__} 'short' cannot be a dash or a whitespace")

    if not isinstance(help := metadata["help"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")

    metadata["help"] = coalesce(help)


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate the value-bearing part of a Param.

    - default: None (required param) or a string, kept verbatim (no trimming,
      "" is a legitimate optional default).
    """
    if not isinstance(metadata["default"], str | None):
        raise TypeError(f"{cls.__typename__} 'default' must be a string or None")


class Param(metaclass=ArgumentType):
    """
    Named, value-bearing option specification.

    A Param consumes the token that follows its switch (e.g., "--port 80" or
    "-p 80"). Given more than once, its values accumulate into a list in the
    order they appeared.

    Highlights
    - default=None (the default) marks the param as required: parsing fails
      when it never receives a value.
    - default="" keeps the param optional and fills in an empty string.
    - A Param can never appear inside a grouped short token such as "-qp".

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "long",
        "short",
        "default",
        "help",
    )

    def __new__(cls, long, short, /, default=None, help=Unset):
        """
        Construct a Param spec.

        Parameters
        - long: str
          Long spelling without dashes ("port" for --port); also the result key.
        - short: str
          Single character for the short spelling ("p" for -p).
        - default: None | str
          None makes the param required; a string is filled in when absent.
        - help: Unset | str | Text
          Short description shown in the usage table.
        """
        metadata = {
            "long": long,
            "short": short,
            "default": default,
            "help": help,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'Param' is not an acceptable base type")

    @property
    def required(self):
        """
        True when the param has no default and must be supplied.
        """
        return self._default is None

    def __param__(self):
        """
        Introspection hook: identify this spec as a Param.
        """
        return self


class Flag(metaclass=ArgumentType):
    """
    Named, presence-only option specification.

    Unlike Param, a Flag carries no value: its presence sets True in the
    results. Flags can be bundled in grouped short tokens ("-qs"). An absent
    flag is simply absent from the results; there is no default.
    """

    __introspectable__ = (
        "long",
        "short",
        "help",
    )

    def __new__(cls, long, short, /, help=Unset):
        metadata = {
            "long": long,
            "short": short,
            "help": help,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'Flag' is not an acceptable base type")

    def __flag__(self):
        """
        Introspection hook: identify this spec as a Flag.
        """
        return self


__all__ = (
    # Classes (specifications)
    "Param",
    "Flag",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
