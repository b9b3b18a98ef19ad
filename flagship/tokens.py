r"""
Flagship command-line normalizer.

Overview
- CommandLine: canonical, immutable, ordered sequence of tokens (UTF-8 text).
  • argv(argc) is the one-past-the-end sentinel and yields None (never an IndexError).
  • argv(i) beyond argc raises IndexError.
- split(): pure shell-like splitter used for the single-string form.
- Encoding resolution: narrow (bytes) tokens are decoded through a locale, a codec,
  or a pluggable normalization callable; failures raise EncodingError.

Construction forms
- CommandLine(["a", "b"])                  pre-split wide strings
- CommandLine([b"a", b"b"], locale="cp1251") pre-split narrow strings
- CommandLine.from_string('tool "a b" c')  single string, quoting rules below

Quoting rules (single-string form only)
- tokens are delimited by runs of spaces/tabs outside quotes.
- a double quote toggles the quoted state and is not copied.
- n backslashes followed by a double quote:
  • n even: n/2 backslashes are copied and the quote toggles the quoted state.
  • n odd: (n-1)/2 backslashes and a literal double quote are copied.
- backslashes not followed by a double quote are copied literally.

Example:
    >>> split(r'"a b c" d e"')
    ['a b c', 'd', 'e']
    >>> split(r'a\\"b c" d e')
    ['a\\b c', 'd', 'e']
"""
import codecs
import locale as locales
from collections.abc import Sequence

from .faults import EncodingError
from .utils import *


_BLANKS = " \t"


def split(args, /):
    """
    split a single command-line string into tokens using the quoting rules above.
    """
    if not isinstance(args, str):
        raise TypeError("split() argument must be a string")

    tokens = []
    index, length = 0, len(args)
    while True:
        while index < length and args[index] in _BLANKS:
            index += 1
        if index >= length:
            return tokens

        token, quoted = [], False
        while index < length and (quoted or args[index] not in _BLANKS):
            if args[index] == "\\":
                start = index
                while index < length and args[index] == "\\":
                    index += 1
                count = index - start
                if index < length and args[index] == '"':
                    token.append("\\" * (count // 2))
                    if count % 2:
                        token.append('"')
                    else:
                        quoted = not quoted
                    index += 1
                else:
                    token.append("\\" * count)
            elif args[index] == '"':
                quoted = not quoted
                index += 1
            else:
                token.append(args[index])
                index += 1
        tokens.append("".join(token))


def _encoding(name, /):
    """
    resolve a codec name or a locale name ("ru_RU", "en_US.UTF-8") to a codec name.
    """
    try:
        return codecs.lookup(name).name
    except LookupError:
        pass
    normalized = locales.normalize(name)
    if "." in normalized:
        try:
            return codecs.lookup(normalized.partition(".")[2].partition("@")[0]).name
        except LookupError:
            pass
    raise EncodingError(f"unknown locale {name!r}")


def decoder(locale=Unset, /):
    """
    return a bytes -> str normalization function for the given locale.

    - Unset: the user-preferred encoding.
    - None: no re-encoding, bytes must already be UTF-8.
    - str: a codec name or a locale name.
    - callable: used as-is (pluggable normalization).
    """
    match locale:
        case UnsetType():
            encoding = _encoding(locales.getpreferredencoding(False))
        case None:
            encoding = "utf-8"
        case str():
            encoding = _encoding(locale)
        case _ if callable(locale):
            return locale
        case _:
            raise TypeError("locale must be a string, a callable, or None")

    def decode(raw, /):
        try:
            return raw.decode(encoding, "strict")
        except UnicodeDecodeError as error:
            raise EncodingError(f"cannot decode {bytes(raw)!r} using {encoding!r}") from error
    return decode


def _canonical(token, decode, /):
    if isinstance(token, bytes | bytearray | memoryview):
        token = decode(bytes(token))
    if not isinstance(token, str):
        raise TypeError("command-line tokens must be strings or bytes")
    try:
        token.encode("utf-8", "strict")
    except UnicodeEncodeError as error:
        raise EncodingError(f"token {token!r} is not representable in UTF-8") from error
    return token


class CommandLine:
    """
    Canonical command line: an immutable tuple of tokens plus the argc sentinel.

    Properties
    - argc: number of tokens.
    - argv(index): the token at index; None at index == argc.

    Equality
    - two command lines compare equal when their tokens do; a command line also
      compares equal to a plain sequence (list/tuple) of the same strings.
    """
    __slots__ = ("_argv",)

    def __init__(self, argv=(), /, locale=Unset):
        if isinstance(argv, str | bytes):
            raise TypeError("use CommandLine.from_string() for a single command-line string")
        if isinstance(argv, CommandLine):
            self._argv = argv._argv
            return
        argv = tuple(argv)
        if any(isinstance(token, bytes | bytearray | memoryview) for token in argv):
            decode = decoder(locale)
        else:
            decode = None
        self._argv = tuple(_canonical(token, decode) for token in argv)

    @classmethod
    def from_string(cls, args, /, locale=Unset):
        """
        build a command line from a single (wide or narrow) string using shell quoting.
        """
        if isinstance(args, bytes | bytearray | memoryview):
            args = decoder(locale)(bytes(args))
        return cls(split(args))

    @property
    def argc(self):
        return len(self._argv)

    def argv(self, index, /):
        if not isinstance(index, int):
            raise TypeError("command-line indices must be integers")
        if index == len(self._argv):
            return None
        if not 0 <= index < len(self._argv):
            raise IndexError(f"command-line index {index} out of range [0, {len(self._argv)}]")
        return self._argv[index]

    def encode(self):
        """
        return the tokens as UTF-8 byte strings.
        """
        return tuple(token.encode("utf-8") for token in self._argv)

    def __len__(self):
        return len(self._argv)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return type(self)(self._argv[index])
        return self._argv[index]

    def __iter__(self):
        return iter(self._argv)

    def __bool__(self):
        return bool(self._argv)

    def __eq__(self, other):
        if isinstance(other, CommandLine):
            return self._argv == other._argv
        if isinstance(other, Sequence) and not isinstance(other, str | bytes):
            return self._argv == tuple(other)
        return NotImplemented

    def __hash__(self):
        return hash(self._argv)

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __repr__(self):
        return "command-line(%s)" % ", ".join(map(repr, self._argv))

    def __rich_repr__(self):
        yield from self._argv


__all__ = (
    "CommandLine",
    "split",
    "decoder",
)
