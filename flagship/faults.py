"""
Flagship faults (errors and warnings), the accumulated report, and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain (configuration, syntax, warnings) so logs and
  searches stay predictable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves (plain "Error: ..." text, or rich panels).
- Report: the single growable error report a registration or a parse writes to.
- CommandExit: groups the errors of a report when it is surfaced as an exception.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).

Report text
- str(report) is the newline-separated list of messages, each prefixed by
  "Error:" (fatal) or "Warning:" (non-fatal), e.g.

    Error: 'bogus' is not a valid option.
    Warning: The flag with name 'verbose' was set more than once.

Integration
- Registries append faults while registering/parsing; nothing is printed then.
- Callers inspect the report, print it with rich, or call report.trigger(...):
  in non-shell mode errors are raised (CommandExit) and warnings go through
  warnings.warn; in shell mode everything is rendered to stderr and the
  process exits with status 1 when errors are present.

Host configuration (looked up on __main__)
- __styles__: rich style overrides for the renderers below.
- __codes__: mapping FaultCode -> label, see FaultCode.normalize().
- __prog__: program name shown in fault headers.
"""
import inspect
import os.path
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - configuration (101xx), raised while registering declarations
      • INVALID_NAME, DUPLICATED_NAME, COLLIDING_SHORT_NAME
    - syntax (111xx), raised while parsing a command line
      • UNKNOWN_OPTION, INVALID_FLAGS, INSUFFICIENT_ARGUMENTS, UNPARSABLE_VALUE,
        INVALID_CHARACTERS, INVALID_VALUE, INVALID_CHOICE, OUT_OF_RANGE
    - warnings (121xx), never fatal
      • DUPLICATED_ARGUMENT, REPEATED_FLAG
    """
    # --- configuration errors (101xx) ---
    INVALID_NAME           = 10111
    DUPLICATED_NAME        = 10112
    COLLIDING_SHORT_NAME   = 10113

    # --- syntax errors (111xx) ---
    UNKNOWN_OPTION         = 11111
    INVALID_FLAGS          = 11112
    INSUFFICIENT_ARGUMENTS = 11113
    UNPARSABLE_VALUE       = 11114
    INVALID_CHARACTERS     = 11115
    INVALID_VALUE          = 11116
    INVALID_CHOICE         = 11117
    OUT_OF_RANGE           = 11118

    # --- warnings (121xx) ---
    DUPLICATED_ARGUMENT    = 12111
    REPEATED_FLAG          = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _prog(options):
    main = __import__("__main__")
    if (prog := options.get("prog")) is not None:
        return prog
    return getattr(main, "__prog__", os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "flagship")


def _render(fault, kind, palette):
    """
    shared rich renderer for errors and warnings.

    - non-fancy: "[ prog — code | title ]" header, the message, and an optional hint line.
    - fancy: the same content inside a panel titled with the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    code = options.get("code")
    title = options.get("title") or fault.prefix.lower()
    header = Text.assemble(
        "[ ",
        text(_prog(options), styler("prog-name")),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else kind, styler("code")),
        " | ",
        text(title.title(), styler(f"{kind}-title")),
        " ]"
    )
    message = text("%s: %s" % (fault.prefix, fault.message), styler(f"{kind}-message"))
    renders = [message]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if fancy:
        return Panel(Group(*renders), title=header, title_align="left")
    return Group(header, *renders)


class CommandException(Exception):
    """
    base type of every fatal fault (configuration and syntax errors).

    options (all optional, read-only)
    - code: FaultCode, title: str, hint: str
    - argument: the declaration involved, token: the offending command-line token
    - runtime flags merged by trigger(): shell, fancy, colorful, deferred, prog
    """
    prefix = "Error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, "error", {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        if self.options.get("deferred"):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(CommandException): ...
class InvalidNameError(ConfigurationError): ...
class DuplicatedNameError(ConfigurationError): ...
class CollidingShortNameError(ConfigurationError): ...


class CommandSyntaxError(CommandException): ...
class UnknownOptionError(CommandSyntaxError): ...
class InvalidFlagsError(CommandSyntaxError): ...
class InsufficientArgumentsError(CommandSyntaxError): ...
class UnparsableValueError(CommandSyntaxError): ...
class InvalidCharactersError(CommandSyntaxError): ...
class InvalidValueError(CommandSyntaxError): ...
class InvalidChoiceError(CommandSyntaxError): ...
class OutOfRangeError(CommandSyntaxError): ...


class CommandWarning(ABC, Warning):
    """
    base type of every non-fatal fault.
    """
    prefix = "Warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, "warning", {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicatedArgumentWarning(CommandWarning): ...
class RepeatedFlagWarning(CommandWarning): ...


class CommandExit(ExceptionGroup):
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def derive(self, exceptions, /):
        return type(self)(exceptions, **self.options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title (Bad Exit)
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble("[ ", text(_prog(self.options), "prog-name"), " — ", text(self.message.title(), "title"), " ]")
        renders = [exception.__replace__(**self.options) for exception in self.exceptions]

        if self.options.get("fancy"):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        if self.options.get("deferred"):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


class NotConvertibleError(TypeError):
    """
    raised when a value accessor is called on a declaration lacking that capability.

    this is a contract violation by the calling code, never a user-input fault,
    so it is raised immediately and is never recorded in a Report.
    """


class CommandLineError(ValueError):
    """
    base type for failures while normalizing a raw command line.
    """


class EncodingError(CommandLineError):
    """
    raised when raw arguments cannot be re-encoded to UTF-8 (unknown locale,
    undecodable bytes, unpaired surrogates). no replacement characters are guessed.
    """


class Report:
    """
    ordered, growable collection of the faults raised by one registration or parse.

    contract
    - append() accepts CommandException and CommandWarning instances only.
    - str(report) is the newline-separated "Error: ..." / "Warning: ..." text.
    - ok is True while no error (warnings do not count) has been recorded.
    """

    def __init__(self, faults=(), /):
        self._faults = []
        self.extend(faults)

    def append(self, fault, /):
        if not isinstance(fault, CommandException | CommandWarning):
            raise TypeError("report entries must be command exceptions or warnings")
        self._faults.append(fault)

    def extend(self, faults, /):
        for fault in faults:
            self.append(fault)

    def clear(self):
        self._faults.clear()

    @property
    def faults(self):
        return tuple(self._faults)

    @property
    def errors(self):
        return tuple(fault for fault in self._faults if isinstance(fault, CommandException))

    @property
    def warnings(self):
        return tuple(fault for fault in self._faults if isinstance(fault, CommandWarning))

    @property
    def ok(self):
        return not self.errors

    def __len__(self):
        return len(self._faults)

    def __iter__(self):
        return iter(self._faults)

    def __str__(self):
        return "".join("%s: %s\n" % (fault.prefix, fault.message) for fault in self._faults)

    def __repr__(self):
        return "report(errors=%d, warnings=%d)" % (len(self.errors), len(self.warnings))

    def __rich__(self):
        return Group(*self._faults)

    def trigger(self, **options):
        """
        surface every recorded fault: warnings one by one, then all errors at once.

        in non-shell mode this raises CommandExit when errors exist; in shell mode
        it prints to stderr and exits with status 1 (unless deferred).
        """
        for warning in self.warnings:
            trigger(warning, **options)
        if errors := self.errors:
            trigger(CommandExit(errors), **options)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, exceptions
      are raised and warnings are emitted through warnings.warn.
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
    "FaultCode",
    "CommandException",
    "ConfigurationError",
    "InvalidNameError",
    "DuplicatedNameError",
    "CollidingShortNameError",
    "CommandSyntaxError",
    "UnknownOptionError",
    "InvalidFlagsError",
    "InsufficientArgumentsError",
    "UnparsableValueError",
    "InvalidCharactersError",
    "InvalidValueError",
    "InvalidChoiceError",
    "OutOfRangeError",
    "CommandWarning",
    "DuplicatedArgumentWarning",
    "RepeatedFlagWarning",
    "CommandExit",
    "NotConvertibleError",
    "CommandLineError",
    "EncodingError",
    "Report",
    "trigger",
)
