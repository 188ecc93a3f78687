r"""
Branchline value types, tokenizer and coercion.

Overview
- ValueType: tagged value-type descriptor (kind, width, element, choices).
  • Scalars: BOOL, INT8, INT16, INT32, INT64, FLOAT32, FLOAT64, STRING, PATH.
  • Composites: enum(EnumClass) and array(element).
- Empty: reserved "explicit empty" default marker, distinct from Unset (no default).
- split(line): quote-aware tokenizer shared by prompts and array values.
- coerce(raw, type, name): one raw string → one typed value, or one CoercionError.

Tokenizer rules
- Whitespace separates tokens.
- Double quotes group a segment that may contain whitespace; the closing quote ends
  the token, so '""' yields an empty token.
- \" is a literal quote (inside or outside quotes); any other backslash is literal.
- Text glued right before an opening quote or after a closing quote is its own token.

Quick example:
    >>> split('sum "1 2" 3')
    ['sum', '1 2', '3']
    >>> coerce("4", INT32, "i")
    4
    >>> coerce(Empty, array(INT32), "values")
    []
"""
import enum as _enum
import functools
import math
import pathlib
import re
import struct
from collections import namedtuple
from typing import final

from .faults import (
    FaultCode,
    UncastableValueError,
    InvalidChoiceError,
    UnresolvablePathError,
    EmptyDefaultError,
)


@final
class EmptyType:
    """
    Sentinel type for the "explicit empty" default.

    A declared default of Empty means "empty" (an empty string or a zero-length
    array), which is different from declaring no default at all. It cannot be
    typed on a command line since it is not a string.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Empty"

    def __reduce__(self):
        return "Empty"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'EmptyType' is not an acceptable base type")


Empty = EmptyType()


class Kind(_enum.Enum):
    BOOL = "bool"
    INTEGER = "int"
    FLOAT = "float"
    STRING = "string"
    PATH = "path"
    ENUM = "enum"
    ARRAY = "array"


class ValueType(namedtuple("ValueType", ("kind", "width", "element", "choices"), defaults=(None, None, None))):
    """
    Tagged value-type descriptor.

    Fields
    - kind: Kind tag.
    - width: bit width for INTEGER (8/16/32/64) and FLOAT (32/64) kinds.
    - element: element ValueType for ARRAY kinds.
    - choices: enum.Enum subclass for ENUM kinds.
    """
    __slots__ = ()

    @property
    def takes_value(self):
        """Whether an option of this type consumes a following token."""
        return self.kind is not Kind.BOOL

    def __str__(self):
        match self.kind:
            case Kind.INTEGER | Kind.FLOAT:
                return f"{self.kind.value}{self.width}"
            case Kind.ENUM:
                return self.choices.__name__
            case Kind.ARRAY:
                return f"{self.element}[]"
            case _:
                return self.kind.value


BOOL = ValueType(Kind.BOOL)
INT8 = ValueType(Kind.INTEGER, 8)
INT16 = ValueType(Kind.INTEGER, 16)
INT32 = ValueType(Kind.INTEGER, 32)
INT64 = ValueType(Kind.INTEGER, 64)
FLOAT32 = ValueType(Kind.FLOAT, 32)
FLOAT64 = ValueType(Kind.FLOAT, 64)
STRING = ValueType(Kind.STRING)
PATH = ValueType(Kind.PATH)


def enum(choices, /):
    """Build an ENUM value type matching the member names of an enum.Enum subclass."""
    if not isinstance(choices, type) or not issubclass(choices, _enum.Enum):
        raise TypeError("enum() argument must be an enum.Enum subclass")
    if not choices.__members__:
        raise ValueError("enum() argument must declare at least one member")
    return ValueType(Kind.ENUM, choices=choices)


def array(element, /):
    """Build an ARRAY value type of the given element type (arrays do not nest)."""
    if not isinstance(element, ValueType):
        raise TypeError("array() argument must be a value type")
    if element.kind is Kind.ARRAY:
        raise ValueError("array() argument cannot be an array type")
    return ValueType(Kind.ARRAY, element=element)


def split(line, /):
    """
    Split a command line into tokens, honoring double quotes and \\" escapes.

    Raises
    - TypeError: if line is not a string.
    """
    if not isinstance(line, str):
        raise TypeError("split() argument must be a string")

    tokens = []
    buffer = []
    quoted = False
    index = 0

    def flush(force=False):
        if buffer or force:
            tokens.append("".join(buffer))
            buffer.clear()

    while index < len(line):
        char = line[index]
        if char == "\\" and line.startswith('"', index + 1):
            buffer.append('"')
            index += 2
            continue
        if char == '"':
            if quoted:
                flush(force=True)
            else:
                flush()
            quoted = not quoted
        elif char.isspace() and not quoted:
            flush()
        else:
            buffer.append(char)
        index += 1

    # an unterminated quote runs to the end of the line
    flush(force=quoted)
    return tokens


_TRUTHY = frozenset({"1", "true", "True"})
_FALSY = frozenset({"0", "false", "False"})


def _uncastable(raw, type, name, expected):
    return UncastableValueError(
        "expected %s for %s, got %r" % (expected, name, raw),
        title="uncastable value",
        code=FaultCode.UNCASTABLE_VALUE,
        input=raw,
        argument=name,
        type=type,
        hint="pass %s for %s (type %s)" % (expected, name, type),
    )


def _overflow(raw, type, name):
    return UncastableValueError(
        "value %r for %s is out of range for %s" % (raw, name, type),
        title="value out of range",
        code=FaultCode.UNCASTABLE_VALUE,
        input=raw,
        argument=name,
        type=type,
        hint="pass a smaller value for %s" % name,
    )


def _coerce_integer(raw, type, name):
    if not re.fullmatch(r"[+-]?\d+", raw, re.ASCII):
        raise _uncastable(raw, type, name, "an integer")
    # past 19 significant digits nothing fits in 64 bits
    if len(raw.lstrip("+-").lstrip("0")) > 19:
        raise _overflow(raw, type, name)
    value = int(raw)
    # widest native width first, then the declared one
    for width in (64, type.width):
        if not -(1 << width - 1) <= value < (1 << width - 1):
            raise _overflow(raw, type, name)
    return value


def _coerce_float(raw, type, name):
    if re.fullmatch(r"[+-]?(inf(inity)?|nan)", raw, re.IGNORECASE):
        return float(raw)
    if not re.fullmatch(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", raw, re.ASCII):
        raise _uncastable(raw, type, name, "a number")
    value = float(raw)
    if math.isinf(value):
        raise _overflow(raw, type, name)
    if type.width == 32:
        try:
            value, = struct.unpack("f", struct.pack("f", value))
        except OverflowError:
            raise _overflow(raw, type, name) from None
        if math.isinf(value):
            raise _overflow(raw, type, name)
    return value


def _coerce_path(raw, type, name):
    try:
        return pathlib.Path(raw).resolve()
    except (OSError, RuntimeError, ValueError) as exception:
        raise UnresolvablePathError(
            "cannot resolve path %r for %s: %s" % (raw, name, exception),
            title="unresolvable path",
            code=FaultCode.UNRESOLVABLE_PATH,
            input=raw,
            argument=name,
            type=type,
            hint="check that %r is a reachable filesystem location" % raw,
        ) from exception


def _coerce_enum(raw, type, name):
    members = type.choices.__members__
    for key, member in members.items():
        if key.casefold() == raw.casefold():
            return member
    spellings = "|".join(members)
    raise InvalidChoiceError(
        "expected one of %s for %s, got %r" % (spellings, name, raw),
        title="invalid choice",
        code=FaultCode.INVALID_CHOICE,
        input=raw,
        argument=name,
        type=type,
        choices=tuple(members),
        hint="choose one of %s (case does not matter)" % spellings,
    )


def coerce(raw, type, name, /):
    """
    Convert one raw token into a typed value for the given value type.

    Parameters
    - raw: str, or the Empty sentinel (declared defaults only).
    - type: ValueType tag.
    - name: label used in messages (parameter name, option name, or "name[i]").

    Returns
    - bool / int / float / str / pathlib.Path / enum member / list.

    Raises
    - CoercionError subclass describing the single failure; nothing else is touched.
    """
    if not isinstance(type, ValueType):
        raise TypeError("coerce() second argument must be a value type")

    if raw is Empty:
        match type.kind:
            case Kind.STRING:
                return ""
            case Kind.ARRAY:
                return []
            case _:
                raise EmptyDefaultError(
                    "type %s cannot be defaulted to empty for %s" % (type, name),
                    title="empty default",
                    code=FaultCode.EMPTY_DEFAULT,
                    argument=name,
                    type=type,
                    hint="only string and array types accept an empty default",
                )

    if not isinstance(raw, str):
        raise TypeError("coerce() first argument must be a string or Empty")

    match type.kind:
        case Kind.BOOL:
            if raw in _TRUTHY:
                return True
            if raw in _FALSY:
                return False
            raise _uncastable(raw, type, name, "true or false")
        case Kind.INTEGER:
            return _coerce_integer(raw, type, name)
        case Kind.FLOAT:
            return _coerce_float(raw, type, name)
        case Kind.STRING:
            return raw
        case Kind.PATH:
            return _coerce_path(raw, type, name)
        case Kind.ENUM:
            return _coerce_enum(raw, type, name)
        case Kind.ARRAY:
            return [
                coerce(part, type.element, "%s[%d]" % (name, index))
                for index, part in enumerate(split(raw))
            ]


__all__ = (
    # Functions
    "split",
    "coerce",
    "enum",
    "array",

    # Types
    "Kind",
    "ValueType",
    "EmptyType",

    # Constants
    "Empty",
    "BOOL",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "FLOAT32",
    "FLOAT64",
    "STRING",
    "PATH",
)
