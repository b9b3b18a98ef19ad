"""
Flagship command layer: the registry/dispatcher and recursive sub-commands.

What this module provides
- Parser: owns a set of declarations (by reference), indexes them by name and
  short name, and runs the token-consumption loop over a CommandLine.
- Command: a declaration that is itself a registry; matching its bare name hands
  the rest of the command line to its own Parser.

Registration (add_argument)
- a name containing "=" is rejected (configuration error).
- the same declaration twice is a harmless no-op (warning, returns True).
- a different declaration under an existing name is rejected.
- a short name that is a prefix of, or has as a prefix, a registered short name
  is rejected (it would make short clusters ambiguous).

Dispatch (parse), token by token
1. "-x..." (single dash): every short-named non-flag declaration is tried in
   registration order; otherwise the token is a cluster of short flags, each
   character matched against the flags in registration order. Unknown
   characters are collected into one "invalid flags" error.
2. "--": removed, scanning stops.
3. "--name...": every declaration is tried in registration order; nothing
   matching is an "unknown option" error, a malformed match aborts the parse.
4. anything else: a sub-command whose name equals the token captures the rest
   of the line and stops the scan; otherwise the token stays as an unbound
   argument and the cursor moves on.

Whatever was not consumed is exposed as `remaining`. Matched values survive a
failed parse (no rollback); `is_set` of every declaration is reset before each run.

Quick start
    from flagship import Parser, Flag, StringOption

    parser = Parser()
    parser.add_argument(verbose := Flag("verbose", "v"))
    parser.add_argument(output := StringOption("output", "o", default="-"))

    if not parser.parse(["-v", "--output", "out.txt", "input.txt"]):
        parser.report.trigger(shell=True)
    print(verbose.is_set, output.value, list(parser.remaining))
"""
import difflib

from .arguments import Argument, Capability, Match
from .faults import *
from .tokens import CommandLine
from .utils import *


def _coerce(command_line, /):
    """
    accept a CommandLine, a single command-line string, or a sequence of tokens.
    """
    if isinstance(command_line, CommandLine):
        return command_line
    if isinstance(command_line, str | bytes):
        return CommandLine.from_string(command_line)
    return CommandLine(command_line, locale=None)


def _dispatch(candidates, tokens, report, /):
    # first non-zero answer wins (registration order)
    for argument in candidates:
        if count := argument.parse(tokens, report):
            return count
    return 0


class Parser:
    """
    Registry of argument declarations and the dispatcher that feeds them tokens.

    The parser only references the declarations it is given; their values are
    read back from the declarations themselves (or through parser[name]).

    Attributes
    - report: the Report used when add_argument()/parse() are called without one;
      parse() replaces it with a fresh Report on every such call.
    """

    def __init__(self):
        self._arguments = {}
        self._short_arguments = {}
        self._flags = []
        self._commands = []
        self._command_line = CommandLine()
        self._remaining = CommandLine()
        self.report = Report()

    def add_argument(self, argument, report=Unset, /):
        """
        register a declaration; returns False (with a fault in the report) when rejected.
        """
        if not isinstance(argument, Argument):
            raise TypeError("add_argument() argument must be an argument declaration")
        report = coalesce(report, self.report)
        name = argument.name

        if "=" in name:
            report.append(InvalidNameError(
                f"The argument name '{name}' cannot contain '='.",
                code=FaultCode.INVALID_NAME,
                argument=argument,
            ))
            return False

        if (registered := self._arguments.get(name)) is argument:
            report.append(DuplicatedArgumentWarning(
                f"The argument with name '{name}' has already been added to the parser.",
                code=FaultCode.DUPLICATED_ARGUMENT,
                argument=argument,
            ))
            return True
        if registered is not None:
            report.append(DuplicatedNameError(
                f"An argument with name '{name}' has already been added to the parser.",
                code=FaultCode.DUPLICATED_NAME,
                argument=argument,
            ))
            return False

        if short_name := argument.short_name:
            for other, holder in self._short_arguments.items():
                if other.startswith(short_name) or short_name.startswith(other):
                    report.append(CollidingShortNameError(
                        f"The short name '{short_name}' of argument '{name}' collides with "
                        f"the short name '{other}' of argument '{holder.name}'.",
                        code=FaultCode.COLLIDING_SHORT_NAME,
                        argument=argument,
                    ))
                    return False
            self._short_arguments[short_name] = argument

        self._arguments[name] = argument
        if argument.is_flag:
            self._flags.append(argument)
        if argument.is_command:
            self._commands.append(argument)
        return True

    def parse(self, command_line, report=Unset, /):
        """
        run the dispatch loop over a command line; returns True on success.

        faults (errors and warnings) go to `report`, or to a fresh `self.report`
        when no report is given. `command_line` and `remaining` are updated even
        when the parse fails.
        """
        command_line = _coerce(command_line)
        if report is Unset:
            report = self.report = Report()

        self._command_line = command_line
        for argument in self._arguments.values():
            argument._reset()

        tokens = list(command_line)
        try:
            return self._scan(tokens, report)
        finally:
            self._remaining = CommandLine(tokens)

    def _scan(self, tokens, report, /):
        index = 0
        while index < len(tokens):
            token = tokens[index]

            # explicit terminator
            if token == "--":
                del tokens[index]
                return True

            # long option or flag
            if token.startswith("--"):
                if (count := _dispatch(self._arguments.values(), tokens[index:], report)) < 0:
                    return False
                if not count:
                    report.append(self._unknown(token))
                    return False
                del tokens[index:index + count]
                continue

            # short option, or a cluster of short flags
            if token.startswith("-") and len(token) > 1:
                shorts = [argument for argument in self._arguments.values() if argument.short_name and not argument.is_flag]
                if (count := _dispatch(shorts, tokens[index:], report)) < 0:
                    return False
                if not count and not self._parse_cluster(token, report):
                    return False
                del tokens[index:index + max(count, 1)]
                continue

            # sub-command, captures the rest of the line
            if (count := _dispatch(self._commands, tokens[index:], report)) < 0:
                return False
            if count:
                del tokens[index:index + count]
                return True

            index += 1
        return True

    def _parse_cluster(self, token, report, /):
        cluster, invalid = token[1:], []
        while cluster:
            for flag in self._flags:
                if length := flag.match_cluster(cluster):
                    if flag.is_set:
                        report.append(RepeatedFlagWarning(
                            f"The flag with name '{flag.name}' was set more than once.",
                            code=FaultCode.REPEATED_FLAG,
                            argument=flag,
                            token=token,
                        ))
                    flag._assign(Match(1, True, None))
                    cluster = cluster[length:]
                    break
            else:
                invalid.append(cluster[0])
                cluster = cluster[1:]

        if invalid:
            invalid = "".join(invalid)
            report.append(InvalidFlagsError(
                f"The command line contains invalid flags '{invalid}'.",
                code=FaultCode.INVALID_FLAGS,
                token=token,
            ))
            return False
        return True

    def _unknown(self, token, /):
        name = token[2:]
        suggestions = difflib.get_close_matches(
            token.partition("=")[0],
            ["--" + argument.name for argument in self._arguments.values() if not argument.is_command],
            1
        )
        return UnknownOptionError(
            f"'{name}' is not a valid option.",
            code=FaultCode.UNKNOWN_OPTION,
            hint="did you mean %r?" % suggestions[0] if suggestions else Unset,
            token=token,
        )

    @property
    def arguments(self):
        return tuple(self._arguments.values())

    @property
    def command_line(self):
        return self._command_line

    @property
    def remaining(self):
        return self._remaining

    @property
    def argc(self):
        return self._command_line.argc

    def argv(self, index, /):
        return self._command_line.argv(index)

    @property
    def remaining_argc(self):
        return self._remaining.argc

    def remaining_argv(self, index, /):
        return self._remaining.argv(index)

    def get(self, name, default=None, /):
        return self._arguments.get(name, default)

    def __getitem__(self, name):
        return self._arguments[name]

    def __contains__(self, name):
        return name in self._arguments

    def __iter__(self):
        return iter(self._arguments.values())

    def __len__(self):
        return len(self._arguments)

    def __repr__(self):
        return "parser(%s)" % ", ".join(map(repr, self._arguments))

    def __rich_repr__(self):
        yield from self._arguments.values()


class Command(Argument):
    """
    Sub-command: a declaration embedding its own Parser.

    - matches when the current token is exactly its name (no dash prefix).
    - the nested parse sees the command line starting at (and including) that
      token, so `command.argv(0)` is the command name and an unrecognized name
      stays in `command.remaining`.
    - on success every token from the name onward is consumed from the outer
      line; a failed nested parse is a failure of the outer parse.
    - `value_boolean()` is `is_set`.
    """
    __capability__ = Capability.COMMAND

    def __init__(self, name, /, *, descr=Unset):
        super().__init__(name, descr=descr)
        self._parser = Parser()

    @property
    def parser(self):
        return self._parser

    @property
    def report(self):
        return self._parser.report

    def add_argument(self, argument, report=Unset, /):
        return self._parser.add_argument(argument, report)

    def match(self, tokens, /):
        if tokens and tokens[0] == self._name:
            return Match(len(tokens), True, None)
        return None

    def parse(self, tokens, report, /):
        if (match := self.match(tokens)) is None:
            return 0
        if not self._parser.parse(CommandLine(tokens), report):
            return -1
        self._assign(match)
        return match.count

    def _reset(self):
        super()._reset()
        self._parser._command_line = CommandLine()
        self._parser._remaining = CommandLine()
        for argument in self._parser:
            argument._reset()

    def value_boolean(self):
        return self._is_set

    @property
    def value(self):
        return self._is_set

    @property
    def arguments(self):
        return self._parser.arguments

    @property
    def command_line(self):
        return self._parser.command_line

    @property
    def remaining(self):
        return self._parser.remaining

    @property
    def argc(self):
        return self._parser.argc

    def argv(self, index, /):
        return self._parser.argv(index)

    @property
    def remaining_argc(self):
        return self._parser.remaining_argc

    def remaining_argv(self, index, /):
        return self._parser.remaining_argv(index)

    def get(self, name, default=None, /):
        return self._parser.get(name, default)

    def __getitem__(self, name):
        return self._parser[name]

    def __contains__(self, name):
        return name in self._parser

    def __iter__(self):
        return iter(self._parser)


__all__ = (
    "Parser",
    "Command",
)
