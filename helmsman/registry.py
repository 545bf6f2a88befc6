"""
Helmsman registry: bind names to commands and dispatch argument vectors.

What this module provides
- Entry: immutable binding of a name, a description, the required flag names, a
  command and the flag set scoped to that command.
- Match: outcome of the parse phase (entry, leftover positional args, help flag).
- Registry: registration (on/command), lookup, listing and dispatch.

Dispatch algorithm (Registry.parse / Registry.dispatch)
1. Nothing registered, or no arguments at all → UsageError (entry=None).
2. The first argument names no entry → NoSuchCommandError (entry=None).
3. The remaining arguments are parsed with the entry's flag set; a rejected token
   is re-raised as the same FlagParseError tagged with the entry.
4. Required flags absent from the command line → MissingRequiredFlagsError
   carrying the sorted missing names, tagged with the entry.
5. dispatch() then calls command.run(leftover); whatever it raises propagates as-is.

Nothing here prints or exits the process; see helmsman.cli for that.

Notes
- Registering an existing name replaces the previous entry (last write wins) and
  emits a DuplicateCommandWarning.
- Every entry reserves the hidden boolean flag "h" for subcommand help.
"""
import copy
import difflib
import inspect
import re
from collections.abc import Iterable

from .commands import resolve
from .faults import *
from .flags import FlagSet
from .utils import *

# Reserved per-entry flag asking for subcommand usage.
HELP = "h"


def _validate_name(name):
    if not isinstance(name, str):
        raise TypeError("registry command name must be a string")
    if not re.fullmatch(r"[^\s-]\S*", name):
        raise ValueError(f"registry command name {name!r} must be non-empty, cannot start with '-' nor contain spaces")
    return name


class Entry:
    """
    Registered command: name, description, required flags, command and flag set.

    Entries are created by Registry.on() and never mutated afterwards. The flag set
    is declared once, at registration, and re-used by every parse.
    """
    name = mirror("name")
    descr = mirror("descr")
    required = mirror("required")
    command = mirror("command")
    flagset = mirror("flagset")

    def __init__(self, name, descr, command, required, flagset):
        self._name = name
        self._descr = descr
        self._command = command
        self._required = required
        self._flagset = flagset

    def __rich_repr__(self):
        yield "name", self.name
        yield "descr", self.descr
        yield "required", self.required
        yield "command", self.command

    def __repr__(self):
        return f"entry({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


class Match:
    """
    Result of a successful parse: the entry to run and what to run it with.

    - entry: the resolved Entry.
    - args: positional arguments left after flag parsing (tuple, original order).
    - help: True when the reserved -h flag was on the command line.
    """
    entry = mirror("entry")
    args = mirror("args")
    help = mirror("help")

    def __init__(self, entry, args, help=False):
        self._entry = entry
        self._args = tuple(args)
        self._help = help

    def run(self):
        """Invoke the entry's command with the leftover arguments."""
        return self._entry.command.run(list(self._args))

    def __repr__(self):
        return f"match(entry={self.entry.name!r}, args={self.args!r}, help={self.help!r})"


class Registry:
    """
    Mapping of command names to entries, plus the program-level flag set.

    Lifecycle
    - Register every command first, then dispatch. The registry is not guarded
      against registration running concurrently with dispatch.

    Global flags
    - `flags` is a FlagSet for program-level flags (parsed before the command name
      by helmsman.cli.Runner). dispatch() itself expects the command name first.
    """

    def __init__(self, name=Unset, /):
        self._entries = {}
        self._flags = FlagSet(coalesce(name, ""))

    @property
    def flags(self):
        return self._flags

    @property
    def entries(self):
        """Registered entries sorted by name."""
        return tuple(self._entries[name] for name in sorted(self._entries))

    def on(self, name, descr, command, required=(), /):
        """
        Register `command` under `name` and return the new Entry.

        Parameters
        - name: dispatch key (e.g. the `status` in `git status`).
        - descr: one-line description shown in usage text.
        - command: object with flags()/run(), or a plain `func(args)` callable.
        - required: names of flags that must be present on the command line.

        Raises
        - TypeError/ValueError: bad name, description, command or required names,
          a required flag the command never declares, or a command declaring the
          reserved "h" flag.

        Required flags are checked against the declared ones here, at registration,
        rather than reported as missing on every dispatch: a required name the
        command never declares could never be satisfied.
        """
        name = _validate_name(name)
        if not isinstance(descr, str):
            raise TypeError("registry command description must be a string")
        command = resolve(command)

        if isinstance(required, str) or not isinstance(required, Iterable):
            raise TypeError("registry required flags must be an iterable of strings")
        required = tuple(dict.fromkeys(required))
        if not all(isinstance(flag, str) for flag in required):
            raise TypeError("registry required flags must be an iterable of strings")

        flagset = FlagSet(name)
        command.flags(flagset)
        if HELP in flagset:
            raise ValueError(f"registry command {name!r} cannot declare the reserved flag {HELP!r}")
        flagset.flag(HELP, hidden=True)

        if undeclared := [flag for flag in required if flag not in flagset or flag == HELP]:
            raise ValueError(f"registry command {name!r} requires undeclared flags: {", ".join(undeclared)}")

        if name in self._entries:
            trigger(DuplicateCommandWarning(
                "command %r was registered again; the previous registration is replaced" % name,
                title="duplicate command",
                code=FaultCode.DUPLICATE_COMMAND,
                input=name,
                hint="register each command name once",
            ))

        self._entries[name] = entry = Entry(name, descr.strip(), command, required, flagset)
        return entry

    def command(self, name=Unset, /, descr=Unset, required=()):
        """
        Decorator registering a plain `func(args)` function.

        - name defaults to the function name with underscores turned into hyphens.
        - descr defaults to the first line of the function's docstring.

        The decorated function is returned unchanged.
        """
        @rename("command")
        def wrapper(func, /):
            if not callable(func):
                raise TypeError("@command() must be applied to a callable")
            doc = inspect.getdoc(func) or ""
            self.on(
                coalesce(name, re.sub(r"_+", "-", func.__name__.strip("_"))),
                coalesce(descr, doc.splitlines()[0] if doc else ""),
                func,
                required,
            )
            return func

        if callable(name):
            func, name = name, Unset
            return wrapper(func)
        return wrapper

    def lookup(self, name, /):
        """Return the entry registered under `name`, or None."""
        return self._entries.get(name)

    def __getitem__(self, name):
        return self._entries[name]

    def __contains__(self, name):
        return name in self._entries

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self._entries)

    def parse(self, args, /):
        """
        Resolve and validate an argument vector without running anything.

        `args[0]` is the command name, the rest are its flags and positionals.
        Returns a Match; raises UsageError, NoSuchCommandError, FlagParseError or
        MissingRequiredFlagsError (see module docstring).
        """
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")
        args = list(args)

        if not self._entries or not args:
            raise UsageError(
                "no commands are registered" if not self._entries else "no command given",
                title="missing command",
                code=FaultCode.MISSING_COMMAND,
                entry=None,
                hint="run one of the listed commands",
            )

        name, *tokens = args
        if (entry := self._entries.get(name)) is None:
            suggestions = difflib.get_close_matches(name, self._entries.keys(), 5)
            hint = "did you mean %r?" % suggestions[0] if suggestions else "run one of the listed commands"
            raise NoSuchCommandError(
                "no such command: %r" % name,
                title="unknown command",
                code=FaultCode.UNKNOWN_COMMAND,
                entry=None,
                input=name,
                suggestions=suggestions,
                hint=hint,
            )

        flagset = entry.flagset
        try:
            leftover = flagset.parse(tokens)
        except FlagParseError as fault:
            raise copy.replace(fault, entry=entry) from None

        if missing := sorted(set(entry.required) - flagset.explicit):
            raise MissingRequiredFlagsError(
                "missing required flags: %s" % ", ".join("-" + flag for flag in missing),
                title="missing required flags",
                code=FaultCode.MISSING_REQUIRED_FLAGS,
                entry=entry,
                missing=tuple(missing),
                hint="pass %s" % " ".join("-%s=<value>" % flag if flagset.lookup(flag).metavar else "-" + flag for flag in missing),
            )

        return Match(entry, leftover, flagset[HELP])

    def dispatch(self, args, /):
        """
        Parse `args`, then run the matched command with its leftover arguments.

        Returns the matched Entry. Faults are those of parse(); exceptions raised by
        the command's run() propagate unmodified and do not carry the entry. Callers
        that need the entry alongside a run error use parse() then Match.run():

            match = registry.parse(args)
            try:
                match.run()
            except Exception as error:
                report(match.entry, error)
        """
        match = self.parse(args)
        match.run()
        return match.entry

    def __repr__(self):
        return f"registry(entries={list(self._entries)!r})"


__all__ = (
    "Entry",
    "Match",
    "Registry",
)
