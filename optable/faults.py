"""
Optable faults (parse errors) and their surfacing.

Scope
- FaultCode: canonical, stable numeric identifiers for every parse error.
  Codes are grouped by domain to keep copy consistent and searches predictable.
- OptionsError: base type that carries message + options and knows how to
  surface itself (exit or raise); the registry renders its message.
- trigger(): central entry point to surface any fault with runtime options.

Integration
- The registry renders its usage table with the fault as header, then calls
  trigger(fault, exit=...).
- With exit=True the process terminates with status 1; otherwise the fault is
  raised to the caller.
- Declaration mistakes (bad names, duplicates) are not faults: they are raised
  immediately as TypeError/ValueError by the spec and registry constructors.
"""
import sys
from enum import IntEnum
from types import MappingProxyType

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - grouping (1110x)
      • UNGROUPABLE_PARAM, UNKNOWN_GROUPED_FLAG
    - values (1111x)
      • MISSING_PARAM_VALUE
    - requirements (1112x)
      • MISSING_REQUIRED_OPTION
    """
    # --- grouped short switches ---
    UNGROUPABLE_PARAM       = 11101
    UNKNOWN_GROUPED_FLAG    = 11102

    # --- value attachment ---
    MISSING_PARAM_VALUE     = 11111

    # --- post-scan resolution ---
    MISSING_REQUIRED_OPTION = 11121


class OptionsError(Exception):
    """
    base class of every parse fault.

    attributes
    - message: the one-line, user-facing reason (also the usage header).
    - options: read-only mapping with the fault context (code, title, name,
      token, char, ...) and runtime options merged in by trigger().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return str(self.message)

    def __trigger__(self) -> None:
        if not self.options.get("exit", True):
            raise self from None
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UngroupableParamError(OptionsError): ...
class UnknownGroupedFlagError(OptionsError): ...
class MissingParamValueError(OptionsError): ...
class MissingRequiredOptionError(OptionsError): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see OptionsError).
    - options are merged into the fault via __replace__(**options) before triggering.
    - with exit=True (the default) the process exits with status 1; with
      exit=False the merged fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "OptionsError",
    "UngroupableParamError",
    "UnknownGroupedFlagError",
    "MissingParamValueError",
    "MissingRequiredOptionError",
    "FaultCode",
    "trigger",
)
