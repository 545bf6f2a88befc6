"""
Helmsman process wrapper: the only layer that prints and exits.

What this module provides
- Runner: wraps a Registry for a real process.
  • parse(argv): global flags first, then the subcommand and its flags. On any
    fault, prints the relevant usage and the fault on stderr, then exits.
  • run(): runs the last match (printing subcommand usage first when -h was given).
  • parse_and_run(argv), usage().
- A process-wide default registry with module-level shortcuts, for programs that
  prefer a "register, then parse and run" style:

    from helmsman import cli

    @cli.command
    def hello(args):
        '''say hello'''
        print("hello", *args)

    if __name__ == "__main__":
        cli.parse_and_run()

Exit statuses
- 0: help requested at the program level (-h / -help).
- 1: no command, unknown command, missing required flags.
- 2: a flag could not be parsed (program level or subcommand level).

Program name
- __prog__ defined in __main__, else the basename of sys.argv[0].
"""
import os.path
import shlex
import sys

from rich.console import Console

from .faults import *
from .registry import Registry
from .usage import render_usage, render_subcommand_usage
from .utils import *

console = Console(stderr=True)

# Undeclared program-level flags treated as a request for top-level usage.
_HELPS = ("h", "help")


class Runner:
    """
    Parse-now, run-later driver around a Registry.

    State
    - match: the Match of the last successful parse(), or None.
    """

    def __init__(self, registry, /, program=Unset):
        if not isinstance(registry, Registry):
            raise TypeError("runner registry must be a registry")
        if program is not Unset and not isinstance(program, str):
            raise TypeError("runner 'program' must be a string")
        self._registry = registry
        self._program = program
        self._match = None

    registry = mirror("registry")
    match = mirror("match")

    @property
    def program(self):
        fallback = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "helmsman"
        return coalesce(self._program, getattr(__import__("__main__"), "__prog__", fallback))

    def _fail(self, usage, fault, status):
        console.print(usage, soft_wrap=True)
        trigger(fault, shell=True, program=self.program, status=status)

    def parse(self, argv=Unset, /):
        """
        Parse `argv` and remember the match.

        `argv` is sys.argv[1:] by default; a string is split shell-style.
        Returns the Match, or None when nothing is registered (only global flags
        are parsed then). Exits the process on any dispatch fault.
        """
        if argv is Unset:
            tokens = sys.argv[1:]
        elif isinstance(argv, str):
            tokens = shlex.split(argv)
        else:
            tokens = list(argv)
        self._match = None

        try:
            args = self._registry.flags.parse(tokens)
        except FlagParseError as fault:
            if isinstance(fault, UnknownFlagError) and fault.input in _HELPS:
                console.print(render_usage(self._registry, self.program), soft_wrap=True)
                sys.exit(0)
            self._fail(render_usage(self._registry, self.program), fault, 2)

        if not len(self._registry):
            return None

        try:
            self._match = self._registry.parse(args)
        except UsageError:
            console.print(render_usage(self._registry, self.program), soft_wrap=True)
            sys.exit(1)
        except NoSuchCommandError as fault:
            self._fail(render_usage(self._registry, self.program), fault, 1)
        except FlagParseError as fault:
            self._fail(render_subcommand_usage(fault.entry, self.program), fault, 2)
        except MissingRequiredFlagsError as fault:
            self._fail(render_subcommand_usage(fault.entry, self.program), fault, 1)

        return self._match

    def run(self):
        """
        Run the command matched by the last parse().

        Returns whatever the command's run() returns, or None without a match.
        Exceptions raised by the command propagate.
        """
        if self._match is None:
            return None
        if self._match.help:
            console.print(render_subcommand_usage(self._match.entry, self.program), soft_wrap=True)
        return self._match.run()

    def parse_and_run(self, argv=Unset, /):
        self.parse(argv)
        return self.run()

    def usage(self):
        """Print the top-level usage on stderr."""
        console.print(render_usage(self._registry, self.program), soft_wrap=True)

    def __repr__(self):
        return f"runner(program={self.program!r}, registry={self._registry!r})"


default = Registry()
_runner = Runner(default)

# Program-level flags of the default registry.
flags = default.flags


def on(name, descr, command, required=(), /):
    """Register a command on the default registry (see Registry.on)."""
    return default.on(name, descr, command, required)


def command(name=Unset, /, descr=Unset, required=()):
    """Decorator registering a function on the default registry."""
    return default.command(name, descr, required)


def parse(argv=Unset, /):
    return _runner.parse(argv)


def run():
    return _runner.run()


def parse_and_run(argv=Unset, /):
    """Parse `argv` (sys.argv[1:] by default) with the default registry and run the match."""
    return _runner.parse_and_run(argv)


def usage():
    _runner.usage()


__all__ = (
    "Runner",
    "default",
    "flags",
    "on",
    "command",
    "parse",
    "run",
    "parse_and_run",
    "usage",
)
