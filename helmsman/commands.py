"""
Helmsman command contract.

What this module provides
- Command: the abstract contract of a subcommand. Two operations:
  • flags(flagset): declare the command's flags on the flag set handed over at
    registration time (keep the returned specs to read their values later).
  • run(args): do the work with the leftover positional arguments. Raise to
    report a failure; the exception reaches the caller unmodified.

- CommandFunc: adapter turning a plain `func(args)` callable into a Command
  that declares no flags.

- resolve(object): accept any object honouring the contract (duck-typed, it does
  not need to inherit Command) or wrap a plain callable into a CommandFunc.

Quick start
    from helmsman import Command, Registry

    class Ship(Command):
        def flags(self, flagset):
            self.env = flagset.option("env", descr="target environment")

        def run(self, args):
            print("shipping", args, "to", self.env.value)

    registry = Registry()
    registry.on("ship", "ship artifacts", Ship(), ["env"])
    registry.dispatch(["ship", "-env=prod", "app.tar"])
"""
import functools
from abc import ABC, abstractmethod


class Command(ABC):
    """
    Abstract subcommand: a flag declaration hook plus a run operation.
    """

    @abstractmethod
    def flags(self, flagset, /):
        """Declare this command's flags on `flagset`."""

    @abstractmethod
    def run(self, args, /):
        """Run with the positional arguments left after flag parsing."""


class CommandFunc(Command):
    """
    Flag-less command forwarding every positional argument to a function.

    Example
    - CommandFunc(lambda args: print(*args))
    """

    def __init__(self, func, /):
        if not callable(func):
            raise TypeError("command-func argument must be callable")
        self._func = func
        functools.update_wrapper(self, func, updated=())

    @property
    def func(self):
        return self._func

    def flags(self, flagset, /):
        pass

    def run(self, args, /):
        return self._func(args)

    def __call__(self, args, /):
        return self._func(args)

    def __repr__(self):
        return f"command-func({getattr(self._func, '__qualname__', self._func)!r})"


def _implements(object):
    return all(callable(getattr(object, name, None)) for name in ("flags", "run"))


def resolve(object, /):
    """
    Return a Command-compatible object for `object`.

    Rules
    - Objects exposing callable flags() and run() are returned as-is.
    - Other callables are wrapped in CommandFunc.
    - Classes and anything else raise TypeError.
    """
    if isinstance(object, type):
        raise TypeError(f"command must be an instance, not the class {object.__name__!r}")
    if _implements(object):
        return object
    if callable(object):
        return CommandFunc(object)
    raise TypeError("command must implement flags() and run() or be a callable")


__all__ = (
    "Command",
    "CommandFunc",
    "resolve",
)
