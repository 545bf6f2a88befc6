"""
Helmsman faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue raised by
  the dispatch layer. Codes are grouped by domain so logs and searches stay
  predictable.
- DispatchException / DispatchWarning: base types carrying a message plus
  options (entry, code, title, hint, ...) and knowing how to render themselves.
- trigger(): central entry point to surface a fault, raising it or printing it
  depending on the "shell" option.

Taxonomy
- UsageError: no command given, or nothing registered.
- NoSuchCommandError: the first argument matched no registered command.
- FlagParseError: the flag set rejected a token. Specialized as
  MalformedFlagError, UnknownFlagError, MissingFlagValueError and
  InvalidFlagValueError.
- MissingRequiredFlagsError: required flags were not present on the command line.
- DuplicateCommandWarning: a command name was registered twice (last one wins).

Errors raised by a command's own run() are never wrapped by this module.

Integration
- The registry raises faults tagged with the resolved entry (or entry=None).
- helmsman.cli catches them, prints them on the stderr console and exits.
"""
import copy
import inspect
import sys
import warnings
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the dispatch layer (stable identifiers).

    grouping
    - routing (1110x)
      • MISSING_COMMAND, UNKNOWN_COMMAND
    - flags (1111x)
      • MALFORMED_FLAG, UNKNOWN_FLAG, MISSING_FLAG_VALUE, INVALID_FLAG_VALUE
    - validation (1112x)
      • MISSING_REQUIRED_FLAGS
    - warnings (12xxx)
      • DUPLICATE_COMMAND
    """
    # --- routing errors (11xxx) ---
    MISSING_COMMAND             = 11100
    UNKNOWN_COMMAND             = 11101

    # --- flag errors (11xxx) ---
    MALFORMED_FLAG              = 11111
    UNKNOWN_FLAG                = 11112
    MISSING_FLAG_VALUE          = 11117
    INVALID_FLAG_VALUE          = 11118

    # --- validation errors (11xxx) ---
    MISSING_REQUIRED_FLAGS      = 11125

    # --- warnings (12xxx) ---
    DUPLICATE_COMMAND           = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, message):
    """
    Build the plain renderable shared by exceptions and warnings.

    Layout
    - header: [ <program> - <code> | <title> ]
    - message
    - hint (omitted when the fault has none)
    """
    program = fault.options.get("program") or getattr(__import__("__main__"), "__prog__", "helmsman")
    header = Text.assemble("[ ", str(program))
    if code := fault.options.get("code"):
        header.append(" - ").append(code.normalize())
    if title := fault.options.get("title"):
        header.append(" | ").append(title.title())
    header.append(" ]")

    renders = [header, Text(str(message))]
    if hint := fault.options.get("hint"):
        renders.append(Text.assemble(" -> ", str(hint)))
    return Group(*renders)


class DispatchException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def entry(self):
        """The resolved command entry, or None when routing failed."""
        return self.options.get("entry")

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return coalesce(self.message, "")

    def __rich__(self):
        return _render(self, str(self))

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(self.options.get("status", 1))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UsageError(DispatchException): ...
class NoSuchCommandError(DispatchException): ...


class FlagParseError(DispatchException):
    @property
    def input(self):
        """The flag name (or raw token) the flag set rejected."""
        return self.options.get("input")


class MalformedFlagError(FlagParseError): ...
class UnknownFlagError(FlagParseError): ...
class MissingFlagValueError(FlagParseError): ...
class InvalidFlagValueError(FlagParseError): ...


class MissingRequiredFlagsError(DispatchException):
    @property
    def missing(self):
        """Sorted names of the required flags absent from the command line."""
        return tuple(self.options.get("missing", ()))


class DispatchWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return coalesce(self.message, "")

    def __rich__(self):
        return _render(self, str(self))

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateCommandWarning(DispatchWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options).
    - shell=False (default): exceptions are raised, warnings go to warnings.warn.
    - shell=True: the fault is printed on the stderr console; exceptions then
      terminate the process with options["status"] (1 by default).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "DispatchException",
    "UsageError",
    "NoSuchCommandError",
    "FlagParseError",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingFlagValueError",
    "InvalidFlagValueError",
    "MissingRequiredFlagsError",
    "DispatchWarning",
    "DuplicateCommandWarning",
    "FaultCode",
    "trigger",
)
