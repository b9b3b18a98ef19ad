r"""
Flagship argument declarations.

Overview
- Declarations
  • Flag: presence-only switch, `--name` or one member of a short cluster `-abc`.
  • StringOption / BooleanOption / IntegerOption: value-bearing options accepting
    `--name value`, `--name=value`, `-svalue` and `-s value`.
  • ChoiceOption: string option constrained to an enumerated, duplicate-free set.
  • RangeOption: integer option constrained to inclusive bounds and/or a value set.
  • RepeatedOption: wraps any option type; every match appends a fresh, isolated instance.
  • Command lives in flagship.commands (it embeds a whole Parser).

- Recognition
  • match(tokens) is pure: None when the leading token is not this declaration,
    a Match(count, value, text) otherwise. A token clearly meant for this
    declaration but malformed raises the matching syntax fault.
  • parse(tokens, report) applies match(): returns the consumed token count,
    0 (not this argument) or -1 (failure, the fault is appended to the report).
  • _assign()/_reset() are the only state mutators; only the dispatcher calls them.

- Accessors
  • value_boolean(), value_integer(), value_string(), value_array(index) and the
    generic `value` property. An accessor the declaration cannot serve raises
    NotConvertibleError: it is a programmer error, not bad user input.

Value grammars
- boolean: "true", "True", "TRUE", "1" / "false", "False", "FALSE", "0".
- integer: C integer literal with base detection, optional leading blanks and sign:
  "0x1A"/"0X1A" hexadecimal, "017" octal, "17" decimal. Leftover characters are
  "invalid characters", nothing consumed is "failed to parse", and values outside
  the signed 64-bit range are "out of range".

Quick example:
    >>> verbose = Flag("verbose", "v")
    >>> jobs = IntegerOption("jobs", "j", default=1)
    >>> jobs.match(["--jobs=-0x1A"])
    Match(count=1, value=-26, text='-0x1A')

Public API
- Classes: Argument, Flag, Option, StringOption, BooleanOption, IntegerOption,
  ChoiceOption, RangeOption, RepeatedOption
- Types: Capability, Match
- Constants: INT64_MIN, INT64_MAX
"""
import enum
import functools
import operator
import re
from collections.abc import Iterable
from typing import NamedTuple

from rich.text import Text

from .faults import *
from .utils import *


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_TRUE = frozenset({"true", "True", "TRUE", "1"})
_FALSE = frozenset({"false", "False", "FALSE", "0"})

_INTEGER = re.compile(r"[ \t\n\v\f\r]*(?P<sign>[+-]?)(?:0[xX](?P<hex>[0-9a-fA-F]+)|(?P<oct>0[0-7]*)|(?P<dec>[1-9][0-9]*))")


class Capability(enum.Enum):
    """
    closed set of declaration kinds the dispatcher distinguishes.
    """
    FLAG = "flag"
    COMMAND = "command"
    BOOLEAN = "boolean-option"
    INTEGER = "integer-option"
    STRING = "string-option"
    CHOICE = "choice-option"
    RANGE = "range-option"
    REPEATED = "repeated-option"


class Match(NamedTuple):
    """
    outcome of a successful match(): tokens consumed, converted value, raw value text.
    """
    count: int
    value: object
    text: str | None


_BOOLEAN = frozenset({Capability.FLAG, Capability.COMMAND, Capability.BOOLEAN})
_INTEGRAL = frozenset({Capability.INTEGER, Capability.RANGE})
_TEXTUAL = frozenset({Capability.BOOLEAN, Capability.INTEGER, Capability.STRING, Capability.CHOICE, Capability.RANGE})


class ArgumentType(type):
    """
    Metaclass giving every declaration class a typename, read-only metadata and a stable repr.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in fault messages ("integer-option" -> "integer option").
    - names listed in __introspectable__ become read-only properties (see mirror()).
    - __displayable__ (if set) narrows which properties __repr__/__rich_repr__ show;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - integer-option(name='jobs', short_name='j', is_set=False, value=1)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, name, short_name, descr, /):
    """
    Internal: validate the shared declaration metadata.

    - name: required non-empty string ("=" is rejected at registration time, where
      it is reported as a configuration fault rather than raised).
    - short_name: string, may be empty.
    - descr: Unset | str | Text, non-empty after trimming when provided.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    if not name:
        raise ValueError(f"{cls.__typename__} name cannot be empty")
    if not isinstance(short_name, str):
        raise TypeError(f"{cls.__typename__} short name must be a string")
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_choices(cls, choices, kind, /):
    if not isinstance(choices, Iterable) or isinstance(choices, str | bytes):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of {kind}")
    sanitized = []
    for choice in choices:
        if not isinstance(choice, kind) or isinstance(choice, bool):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of {kind}")
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    if not sanitized:
        raise ValueError(f"{cls.__typename__} 'choices' cannot be empty")
    return tuple(sanitized)


class Argument(metaclass=ArgumentType):
    """
    Base declaration: name, short name, description and the parse-time `is_set` state.

    Subclasses declare __capability__ and implement match(); the predicates and
    accessors below derive from the capability so that an accessor on the wrong
    kind of declaration fails loudly.
    """
    __capability__ = Unset
    __introspectable__ = ("name", "short_name", "descr", "is_set")
    __displayable__ = ("name", "short_name", "is_set")

    def __init__(self, name, short_name="", /, *, descr=Unset):
        self._descr = _sanitize_names(type(self), name, short_name, descr)
        self._name = name
        self._short_name = short_name
        self._is_set = False

    @property
    def capability(self):
        return type(self).__capability__

    @property
    def is_flag(self):
        return self.capability is Capability.FLAG

    @property
    def is_command(self):
        return self.capability is Capability.COMMAND

    @property
    def is_boolean(self):
        return self.capability in _BOOLEAN

    @property
    def is_integer(self):
        return self.capability in _INTEGRAL

    @property
    def is_string(self):
        return self.capability in _TEXTUAL

    @property
    def is_array(self):
        return self.capability is Capability.REPEATED

    def _mismatch(self, kind, /):
        return NotConvertibleError(f"{self.__typename__.replace('-', ' ')} {self._name!r} is not convertible to {kind}")

    def value_boolean(self):
        raise self._mismatch("a boolean")

    def value_integer(self):
        raise self._mismatch("an integer")

    def value_string(self):
        raise self._mismatch("a string")

    def value_array(self, index, /):
        raise self._mismatch("an array")

    @property
    def value(self):
        raise self._mismatch("a value")

    def match(self, tokens, /):
        raise NotImplementedError

    def parse(self, tokens, report, /):
        """
        match the leading tokens and record the value.

        returns the number of consumed tokens, 0 when the tokens are not for this
        declaration, or -1 when they are but are malformed (the fault is appended
        to the report and the declaration state is left untouched).
        """
        try:
            match = self.match(tokens)
        except CommandException as fault:
            report.append(fault)
            return -1
        if match is None:
            return 0
        self._assign(match)
        return match.count

    def _assign(self, match, /):
        self._is_set = True

    def _reset(self):
        self._is_set = False


class Flag(Argument):
    """
    Presence-only switch.

    Matches `--name` (one token) or, inside a short cluster, its short name at the
    front of the cluster (see match_cluster()). `value_boolean()` is `is_set`.
    """
    __capability__ = Capability.FLAG

    def match(self, tokens, /):
        if tokens and tokens[0] == "--" + self._name:
            return Match(1, True, None)
        return None

    def match_cluster(self, cluster, /):
        """
        return how many characters of the cluster (leading dash removed) this flag consumes.
        """
        if self._short_name and cluster.startswith(self._short_name):
            return len(self._short_name)
        return 0

    def value_boolean(self):
        return self._is_set

    @property
    def value(self):
        return self._is_set


class Option(Argument):
    """
    Base for value-bearing options.

    Token forms
    - `--name value` (2 tokens), `--name=value` (1 token)
    - `-svalue` (1 token), `-s value` (2 tokens) when a short name is declared

    Values are taken verbatim, so a separated value may start with a dash
    (`--offset -0x1A`). A long or short name with no following token fails
    with "insufficient arguments".
    """
    __introspectable__ = ("name", "short_name", "descr", "is_set", "default")
    __displayable__ = ("name", "short_name", "is_set", "value")

    def __init__(self, name, short_name="", /, *, default, descr=Unset):
        super().__init__(name, short_name, descr=descr)
        self._default = default
        self._value = default
        self._text = self._format(default)

    @property
    def label(self):
        return self.__typename__.replace("-", " ")

    def _format(self, value, /):
        return str(value)

    def _split(self, tokens, /):
        if not tokens:
            return None
        token = tokens[0]
        if token == "--" + self._name:
            if len(tokens) < 2:
                raise InsufficientArgumentsError(
                    f"Insufficient arguments for {self.label} '{self._name}'.",
                    code=FaultCode.INSUFFICIENT_ARGUMENTS,
                    argument=self,
                    token=token,
                )
            return 2, tokens[1]
        if token.startswith("--" + self._name + "="):
            return 1, token[len(self._name) + 3:]
        if self._short_name and not token.startswith("--"):
            if token == "-" + self._short_name:
                if len(tokens) < 2:
                    raise InsufficientArgumentsError(
                        f"Insufficient arguments for {self.label} '{self._name}'.",
                        code=FaultCode.INSUFFICIENT_ARGUMENTS,
                        argument=self,
                        token=token,
                    )
                return 2, tokens[1]
            if token.startswith("-" + self._short_name):
                return 1, token[len(self._short_name) + 1:]
        return None

    def convert(self, text, /):
        """
        turn the raw value text into the stored value, raising a syntax fault when invalid.
        """
        return text

    def match(self, tokens, /):
        if (split := self._split(tokens)) is None:
            return None
        count, text = split
        return Match(count, self.convert(text), text)

    def _assign(self, match, /):
        self._value = match.value
        self._text = match.text
        self._is_set = True

    def value_string(self):
        return self._text

    @property
    def value(self):
        return self._value


class StringOption(Option):
    """
    Option holding a free-form string.
    """
    __capability__ = Capability.STRING

    def __init__(self, name, short_name="", /, *, default="", descr=Unset):
        if not isinstance(default, str):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string")
        super().__init__(name, short_name, default=default, descr=descr)


class BooleanOption(Option):
    """
    Option holding a boolean spelled as one of the accepted literals.
    """
    __capability__ = Capability.BOOLEAN

    def __init__(self, name, short_name="", /, *, default=False, descr=Unset):
        if not isinstance(default, bool):
            raise TypeError(f"{type(self).__typename__} 'default' must be a boolean")
        super().__init__(name, short_name, default=default, descr=descr)

    def _format(self, value, /):
        return "true" if value else "false"

    def convert(self, text, /):
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise InvalidValueError(
            f"Invalid argument for {self.label} '{self._name}': '{text}'.",
            code=FaultCode.INVALID_VALUE,
            hint="expected one of true, True, TRUE, 1, false, False, FALSE, 0",
            argument=self,
            token=text,
        )

    def value_boolean(self):
        return self._value


class IntegerOption(Option):
    """
    Option holding a signed 64-bit integer written as a C integer literal.
    """
    __capability__ = Capability.INTEGER

    def __init__(self, name, short_name="", /, *, default=0, descr=Unset):
        if not isinstance(default, int) or isinstance(default, bool):
            raise TypeError(f"{type(self).__typename__} 'default' must be an integer")
        if not INT64_MIN <= default <= INT64_MAX:
            raise ValueError(f"{type(self).__typename__} 'default' must fit in a signed 64-bit integer")
        super().__init__(name, short_name, default=default, descr=descr)

    def convert(self, text, /):
        if (match := _INTEGER.match(text)) is None:
            raise UnparsableValueError(
                f"Failed to parse argument for {self.label} '{self._name}': '{text}'.",
                code=FaultCode.UNPARSABLE_VALUE,
                argument=self,
                token=text,
            )
        if leftover := text[match.end():]:
            raise InvalidCharactersError(
                f"Argument for {self.label} '{self._name}' contains invalid characters: '{leftover}'.",
                code=FaultCode.INVALID_CHARACTERS,
                argument=self,
                token=text,
            )
        if match["hex"] is not None:
            value = int(match["hex"], 16)
        elif match["oct"] is not None:
            value = int(match["oct"], 8)
        else:
            value = int(match["dec"], 10)
        if match["sign"] == "-":
            value = -value
        if not INT64_MIN <= value <= INT64_MAX:
            raise OutOfRangeError(
                f"Argument for {self.label} '{self._name}' is out of range: '{text}'.",
                code=FaultCode.OUT_OF_RANGE,
                argument=self,
                token=text,
            )
        return value

    def value_integer(self):
        return self._value

    def __int__(self):
        return self._value


class ChoiceOption(StringOption):
    """
    String option restricted to a fixed, non-empty, duplicate-free set of strings.
    """
    __capability__ = Capability.CHOICE
    __introspectable__ = ("name", "short_name", "descr", "is_set", "default", "choices")

    def __init__(self, name, short_name="", /, *, choices, default, descr=Unset):
        choices = _sanitize_choices(type(self), choices, str)
        if default not in choices:
            raise ValueError(f"{type(self).__typename__} 'default' must be one of its choices")
        super().__init__(name, short_name, default=default, descr=descr)
        self._choices = choices

    def convert(self, text, /):
        if text not in self._choices:
            raise InvalidChoiceError(
                f"Invalid argument for {self.label} '{self._name}': '{text}'.",
                code=FaultCode.INVALID_CHOICE,
                hint="expected one of " + ", ".join(self._choices),
                argument=self,
                token=text,
            )
        return text


class RangeOption(IntegerOption):
    """
    Integer option restricted to inclusive bounds and, optionally, an explicit value set.

    Both constraints are enforced independently; with only `choices` given, the
    bounds default to the full signed 64-bit range.
    """
    __capability__ = Capability.RANGE
    __introspectable__ = ("name", "short_name", "descr", "is_set", "default", "choices", "minimum", "maximum")

    def __init__(self, name, short_name="", /, *, choices=Unset, minimum=INT64_MIN, maximum=INT64_MAX, default, descr=Unset):
        for bound in (minimum, maximum):
            if not isinstance(bound, int) or isinstance(bound, bool):
                raise TypeError(f"{type(self).__typename__} bounds must be integers")
        if minimum > maximum:
            raise ValueError(f"{type(self).__typename__} 'minimum' cannot exceed 'maximum'")
        super().__init__(name, short_name, default=default, descr=descr)
        if not minimum <= default <= maximum:
            raise ValueError(f"{type(self).__typename__} 'default' must lie within its bounds")
        if choices is not Unset:
            choices = _sanitize_choices(type(self), choices, int)
            if default not in choices:
                raise ValueError(f"{type(self).__typename__} 'default' must be one of its choices")
        self._choices = coalesce(choices)
        self._minimum = minimum
        self._maximum = maximum

    def convert(self, text, /):
        value = super().convert(text)
        if not self._minimum <= value <= self._maximum:
            raise OutOfRangeError(
                f"Invalid argument for {self.label} '{self._name}': '{text}'.",
                code=FaultCode.OUT_OF_RANGE,
                hint=f"expected a value in [{self._minimum}, {self._maximum}]",
                argument=self,
                token=text,
            )
        if self._choices is not None and value not in self._choices:
            raise InvalidChoiceError(
                f"Invalid argument for {self.label} '{self._name}': '{text}'.",
                code=FaultCode.INVALID_CHOICE,
                hint="expected one of " + ", ".join(map(str, self._choices)),
                argument=self,
                token=text,
            )
        return value


class RepeatedOption(Argument):
    """
    Growable sequence of independently parsed instances of one option type.

    Every successful match builds a fresh instance of the wrapped type, lets it
    match on its own and appends it; instances already appended are never touched
    again. Scalar accessors answer for an unparsed prototype (its default).
    """
    __capability__ = Capability.REPEATED
    __displayable__ = ("name", "short_name", "is_set", "value")

    def __init__(self, type, name, short_name="", /, **options):
        if not isinstance(type, ArgumentType) or not issubclass(type, Option):
            raise TypeError(f"{self.__typename__} can only wrap option types")
        self._type = type
        self._options = options
        self._prototype = type(name, short_name, **options)
        super().__init__(name, short_name, descr=options.get("descr", Unset))
        self._instances = []

    def _spawn(self):
        return self._type(self._name, self._short_name, **self._options)

    @property
    def type(self):
        return self._type

    @property
    def is_boolean(self):
        return self._prototype.is_boolean

    @property
    def is_integer(self):
        return self._prototype.is_integer

    @property
    def is_string(self):
        return self._prototype.is_string

    def match(self, tokens, /):
        instance = self._spawn()
        if (match := instance.match(tokens)) is None:
            return None
        instance._assign(match)
        return Match(match.count, instance, match.text)

    def _assign(self, match, /):
        self._instances.append(match.value)
        self._is_set = True

    def _reset(self):
        self._instances.clear()
        self._is_set = False

    def value_boolean(self):
        return self._prototype.value_boolean()

    def value_integer(self):
        return self._prototype.value_integer()

    def value_string(self):
        return self._prototype.value_string()

    def __int__(self):
        return int(self._prototype)

    def value_array(self, index, /):
        return self._instances[index]

    def values(self):
        return [instance.value for instance in self._instances]

    @property
    def value(self):
        return tuple(self.values())

    def __len__(self):
        return len(self._instances)

    def __getitem__(self, index):
        return self._instances[index]

    def __iter__(self):
        return iter(self._instances)


__all__ = (
    # Constants
    "INT64_MIN",
    "INT64_MAX",

    # Types
    "Capability",
    "Match",

    # Declarations
    "Argument",
    "Flag",
    "Option",
    "StringOption",
    "BooleanOption",
    "IntegerOption",
    "ChoiceOption",
    "RangeOption",
    "RepeatedOption",
)
