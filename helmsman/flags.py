r"""
Helmsman flag sets: declare, parse and describe command flags.

Overview
- Specs
  • Flag: named, boolean switch (-v, -v=false).
  • Option: named, value-bearing flag converted through a `type` callable (-env prod, -env=prod).
  Both hold the value of the last parse in `.value`; commands keep the spec returned at
  declaration time and read it from run().

- FlagSet
  • flag(...) / option(...): declare specs under a unique name.
  • parse(tokens): consume leading flag tokens, return the leftover positional tokens.
  • explicit / visit(): the flags present on the command line during the last parse,
    whatever their value (a flag given with its default value still counts as set).
  • defaults(): describe the visible flags for usage text.

Token grammar
- "-name" and "--name" are equivalent; "=value" may be attached inline.
- Parsing stops at the first token that is not a flag ("-" alone is positional) and right
  after a "--" terminator, which is consumed.
- Non-boolean flags take the next token as value when none is attached inline.
- A repeated flag is accepted; the last occurrence wins.

Quick example:
    >>> flagset = FlagSet("ship")
    >>> env = flagset.option("env", descr="target environment")
    >>> dry = flagset.flag("dry-run")
    >>> flagset.parse(["-env=prod", "--dry-run", "app"])
    ['app']
    >>> env.value, dry.value, flagset.explicit
    ('prod', True, frozenset({'env', 'dry-run'}))
"""
import difflib
import json
import re
from collections import deque
from collections.abc import Iterable

from rich.text import Text

from .faults import *
from .utils import *

# Accepted spellings for boolean values, both inline (-v=false) and as defaults in help.
_TRUTHS = frozenset(("1", "t", "T", "TRUE", "true", "True"))
_FALSEHOODS = frozenset(("0", "f", "F", "FALSE", "false", "False"))

# Help label for values by converter when no metavar is given.
_METAVARS = {
    str: "string",
    int: "int",
    float: "float",
}


def _validate_name(typename, name):
    if not isinstance(name, str):
        raise TypeError(f"{typename} name must be a string")
    if not re.fullmatch(r"[^\s=-][^\s=]*", name):
        raise ValueError(f"{typename} name {name!r} must be non-empty, cannot start with '-' nor contain '=' or spaces")
    return name


def _validate_descr(typename, descr):
    if descr is Unset:
        return None
    if not isinstance(descr, str):
        raise TypeError(f"{typename} 'descr' must be a string")
    return descr.strip()


def _is_zero(value):
    return value is None or value is False or value == "" or (isinstance(value, int | float) and value == 0)


def _quote(value):
    # Strings are shown double-quoted with escapes, anything else as its repr.
    return json.dumps(value, ensure_ascii=False) if isinstance(value, str) else repr(value)


class Flag:
    """
    Boolean flag specification.

    Presence sets the value to True; an inline value (-name=false) is parsed with the
    usual boolean spellings (1/0, t/f, true/false in any of their common casings).
    """
    name = mirror("name")
    descr = mirror("descr")
    default = mirror("default")
    hidden = mirror("hidden")
    value = mirror("value")

    def __init__(self, name, /, default=False, descr=Unset, *, hidden=False):
        self._name = _validate_name("flag", name)
        if not isinstance(default, bool):
            raise TypeError("flag 'default' must be a boolean")
        self._default = default
        self._descr = _validate_descr("flag", descr)
        self._hidden = bool(hidden)
        self._value = default

    @property
    def metavar(self):
        return None

    def convert(self, raw, /):
        if raw in _TRUTHS:
            return True
        if raw in _FALSEHOODS:
            return False
        raise ValueError("parse error")

    def __repr__(self):
        return f"flag(name={self.name!r}, default={self.default!r}, value={self.value!r})"


class Option:
    """
    Value-bearing flag specification.

    Parameters
    - name: flag name without dashes.
    - type: converter applied to the raw token (str by default). ValueError or
      TypeError raised by it are reported as InvalidFlagValueError.
    - default: value before parsing (None when omitted). Not converted.
    - descr: short help text.
    - metavar: label shown in usage; derived from the converter when omitted.
    - hidden: keep the option out of usage text.
    """
    name = mirror("name")
    descr = mirror("descr")
    default = mirror("default")
    hidden = mirror("hidden")
    value = mirror("value")

    def __init__(self, name, /, type=str, default=Unset, descr=Unset, *, metavar=Unset, hidden=False):
        self._name = _validate_name("option", name)
        if not callable(type):
            raise TypeError("option 'type' must be callable")
        self._type = type
        self._default = coalesce(default)
        self._descr = _validate_descr("option", descr)
        if metavar is not Unset and (not isinstance(metavar, str) or not metavar.strip()):
            raise ValueError("option 'metavar' must be a non-empty string")
        self._metavar = coalesce(metavar, _METAVARS.get(type, "value"))
        self._hidden = bool(hidden)
        self._value = self._default

    type = mirror("type")
    metavar = mirror("metavar")

    def convert(self, raw, /):
        return self._type(raw)

    def __repr__(self):
        return f"option(name={self.name!r}, metavar={self.metavar!r}, default={self.default!r}, value={self.value!r})"


class FlagSet:
    """
    Named collection of flag specifications and the state of its last parse.

    Lifecycle
    - Declare every flag first (flag()/option()), then call parse() any number of
      times. Each parse resets values to their defaults and forgets the flags
      explicitly set by the previous one.
    """
    name = mirror("name")
    explicit = mirror("explicit")
    args = mirror("args")

    def __init__(self, name=Unset, /):
        if name is not Unset and not isinstance(name, str):
            raise TypeError("flag-set name must be a string")
        self._name = coalesce(name, "")
        self._specs = {}
        self._explicit = frozenset()
        self._args = ()

    def _declare(self, spec):
        if self._specs.setdefault(spec.name, spec) is not spec:
            raise ValueError(f"flag-set {self.name!r} flag name {spec.name!r} is already in use")
        return spec

    def flag(self, name, /, default=False, descr=Unset, *, hidden=False):
        """Declare a boolean flag and return its spec."""
        return self._declare(Flag(name, default, descr, hidden=hidden))

    def option(self, name, /, type=str, default=Unset, descr=Unset, *, metavar=Unset, hidden=False):
        """Declare a value-bearing flag and return its spec."""
        return self._declare(Option(name, type, default, descr, metavar=metavar, hidden=hidden))

    def lookup(self, name, /):
        return self._specs.get(name)

    def __contains__(self, name):
        return name in self._specs

    def __iter__(self):
        return iter(sorted(self._specs.values(), key=lambda spec: spec.name))

    def __len__(self):
        return len(self._specs)

    def __getitem__(self, name):
        return self._specs[name].value

    def visit(self):
        """Yield the specs explicitly set during the last parse, sorted by name."""
        for spec in self:
            if spec.name in self._explicit:
                yield spec

    def _fail(self, exception, message, /, **options):
        suffix = " %s" % self.name if self.name else ""
        raise exception(message, hint=options.pop("hint", "run with -h to see the flags of%s" % (suffix or " this program")), **options)

    def parse(self, tokens, /):
        """
        Parse leading flag tokens and return the remaining positional tokens.

        Raises
        - MalformedFlagError: bad spelling such as '---x' or '-=x'.
        - UnknownFlagError: the name is not declared in this set.
        - MissingFlagValueError: a non-boolean flag ended the token stream.
        - InvalidFlagValueError: the converter rejected the value.
        """
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")
        tokens = deque(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() argument must be an iterable of strings")

        for spec in self._specs.values():
            spec._value = spec.default
        self._explicit = frozenset()
        self._args = ()
        explicit = set()

        while tokens:
            token = tokens[0]
            if len(token) < 2 or not token.startswith("-"):
                break
            if token == "--":
                tokens.popleft()
                break
            tokens.popleft()

            body = token[2:] if token.startswith("--") else token[1:]
            if not body or body[0] in "-=":
                self._fail(
                    MalformedFlagError,
                    "bad flag syntax: %s" % token,
                    title="malformed flag",
                    code=FaultCode.MALFORMED_FLAG,
                    input=token,
                    token=token,
                    hint="spell flags as -name, -name=value or -name value",
                )

            name, equals, value = body.partition("=")
            if (spec := self._specs.get(name)) is None:
                suggestions = difflib.get_close_matches(name, self._specs.keys(), 5)
                options = {"hint": "did you mean '-%s'?" % suggestions[0]} if suggestions else {}
                self._fail(
                    UnknownFlagError,
                    "flag provided but not defined: -%s" % name,
                    title="unknown flag",
                    code=FaultCode.UNKNOWN_FLAG,
                    input=name,
                    token=token,
                    suggestions=suggestions,
                    **options,
                )

            if not equals:
                if isinstance(spec, Flag):
                    value = "true"
                elif tokens:
                    value = tokens.popleft()
                else:
                    self._fail(
                        MissingFlagValueError,
                        "flag needs an argument: -%s" % name,
                        title="missing flag value",
                        code=FaultCode.MISSING_FLAG_VALUE,
                        input=name,
                        token=token,
                        hint="pass a value as -%s=<%s> or -%s <%s>" % (name, spec.metavar, name, spec.metavar),
                    )

            try:
                spec._value = spec.convert(value)
            except (ValueError, TypeError) as exception:
                self._fail(
                    InvalidFlagValueError,
                    "invalid value %r for flag -%s: %s" % (value, name, exception),
                    title="invalid flag value",
                    code=FaultCode.INVALID_FLAG_VALUE,
                    input=name,
                    token=token,
                    value=value,
                )
            explicit.add(name)

        self._explicit = frozenset(explicit)
        self._args = tuple(tokens)
        return list(tokens)

    def defaults(self):
        """
        Describe the visible flags, one block per flag sorted by name.

        Layout
          -name <metavar>
                description (default <value>)
        """
        blocks = []
        for spec in self:
            if spec.hidden:
                continue
            block = Text("  -" + spec.name)
            if spec.metavar:
                block.append(" " + spec.metavar)

            body = spec.descr or ""
            if not _is_zero(spec.default):
                default = "true" if spec.default is True else _quote(spec.default)
                body = ("%s (default %s)" % (body, default)).strip()
            if body:
                block.append("\n" + " " * 8 + body)
            blocks.append(block)
        return Text("\n").join(blocks)

    def __repr__(self):
        return f"flag-set(name={self.name!r}, flags={[spec.name for spec in self]!r})"


__all__ = (
    "Flag",
    "Option",
    "FlagSet",
)
