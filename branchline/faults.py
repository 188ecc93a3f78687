"""
Branchline faults (schema, resolution and invocation errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- ResolutionFault: base type for one diagnostic; carries message + options and
  knows how to render itself in a friendly, lowercased, and actionable way.
- ResolutionError: the batch of diagnostics raised by one resolution call, with
  the usage string of the most specific command-tree location reached.
- InvocationError: shell-mode wrapper for a failure raised by a dispatched callback.
- SchemaDeclarationError: structural defect in a schema, raised once at load time.

UX goals
- Position-first messages: walker diagnostics include the ordinal position so users
  can learn by trying (“at third position”, etc.).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The walker, assembler and binder collect faults; the resolver raises them together
  as a ResolutionError.
- In non-shell mode, exceptions are raised; in shell mode, they are rendered via rich.
"""
import copy
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
    canonical fault codes used across the resolver (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_PATH, UNFINISHED_PATH
    - options (1111x)
      • UNKNOWN_OPTION, COMBINED_VALUE_OPTION, UNEXPECTED_OPTIONS, OPTION_VALUE_REQUIRED
    - positionals (1112x)
      • TOO_MANY_ARGUMENTS, MISSING_ARGUMENT
    - coercion (1113x)
      • UNCASTABLE_VALUE, INVALID_CHOICE, UNRESOLVABLE_PATH, EMPTY_DEFAULT
    - delegated errors (1114x)
      • DELEGATED_ERROR

    codes are normalized to a string via normalize() so hosts can remap them.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_PATH                = 11101
    UNFINISHED_PATH             = 11102

    # --- option errors (11xxx) ---
    UNKNOWN_OPTION              = 11112
    COMBINED_VALUE_OPTION       = 11113
    UNEXPECTED_OPTIONS          = 11114
    OPTION_VALUE_REQUIRED       = 11117

    # --- positional errors (11xxx) ---
    TOO_MANY_ARGUMENTS          = 11121
    MISSING_ARGUMENT            = 11125

    # --- coercion errors (11xxx) ---
    UNCASTABLE_VALUE            = 11131
    INVALID_CHOICE              = 11132
    UNRESOLVABLE_PATH           = 11133
    EMPTY_DEFAULT               = 11134

    # --- delegated errors (11xxx) ---
    DELEGATED_ERROR             = 11141

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _palette(overrides, /):
    return defaultdict(str, overrides | getattr(__import__("__main__"), "__styles__", {}))


def _prog(options, /):
    return getattr(__import__("__main__"), "__prog__", options.get("prog", Unset)) or "cli"


class _Renderable:
    """
    shared rich plumbing for faults: option-driven styling and text normalization.
    """

    def _styler(self, styles):
        def styler(style):
            return styles[style] if self.options.get("colorful", False) else ""
        return styler

    def _text(self, fragment, style=""):
        if not fragment:
            return Text("")
        if not self.options.get("colorful", False):
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)


class ResolutionFault(_Renderable, Exception):
    """
    one diagnostic produced while resolving a token sequence.

    options
    - code (FaultCode), title, hint: rendering metadata.
    - input, index, suggestions, ...: free-form context for hosts.
    - prog, colorful, fancy, ratio: runtime rendering flags (merged via copy.replace).
    """

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        styles = _palette({
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })
        styler = self._styler(styles)
        text = self._text
        code = self.options.get("code", "?")

        header = Text.assemble(
            "[ ",
            text(_prog(self.options), styler("prog-name")),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else code, styler("code")),
            " | ",
            text(self.options.get("title", "error").title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        if not (hint := self.options.get("hint")):
            renders = (message,)
        else:
            renders = (message, Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            try:
                width = int((console.width - 4) * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(*renders), title=header, title_align="left", width=width)

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


# routing
class UnknownPathError(ResolutionFault): ...
class UnfinishedPathError(ResolutionFault): ...

# options
class UnknownOptionError(ResolutionFault): ...
class UnexpectedOptionsError(ResolutionFault): ...
class CombinedValueOptionError(ResolutionFault): ...
class OptionValueRequiredError(ResolutionFault): ...

# positionals
class MissingArgumentError(ResolutionFault): ...
class TooManyArgumentsError(ResolutionFault): ...

# coercion
class CoercionError(ResolutionFault): ...
class UncastableValueError(CoercionError): ...
class InvalidChoiceError(CoercionError): ...
class UnresolvablePathError(CoercionError): ...
class EmptyDefaultError(CoercionError): ...

# delegated
class InvocationError(ResolutionFault): ...


class ResolutionError(_Renderable, ExceptionGroup[ResolutionFault]):
    """
    batched failure of one resolution call.

    attributes
    - exceptions: the ResolutionFault instances, in encounter order.
    - diagnostics: their messages, as a tuple of strings.
    - usage: usage string for the most specific command-tree location reached.
    """

    def __new__(cls, faults, /, usage="", **options):
        return super().__new__(cls, "invalid arguments", tuple(faults))

    def __init__(self, faults, /, usage="", **options):
        super().__init__("invalid arguments", tuple(faults))
        self.usage = usage
        self.options = MappingProxyType(options)

    @property
    def diagnostics(self):
        return tuple(str(fault) for fault in self.exceptions)

    def derive(self, faults):
        return type(self)(faults, self.usage, **self.options)

    def __str__(self):
        return "\n".join(self.diagnostics + ((self.usage,) if self.usage else ()))

    def __rich__(self):
        styles = _palette({
            # header
            "prog-name": "bold #E6E6F0",  # near-white program name
            "title": "bold #FF4DA6",  # friendly pinky group title

            # footer
            "usage": "#9CA3AF",  # muted usage block
        })
        styler = self._styler(styles)
        text = self._text

        header = Text.assemble("[ ", text(_prog(self.options), styler("prog-name")), " — ", text(self.message.title(), styler("title")), " ]")

        renders = [
            copy.replace(fault, **self.options, ratio=2/3)
            for fault in self.exceptions
        ]
        if self.usage:
            renders.append(text(self.usage, styler("usage")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, self.usage, **{**self.options, **overrides})


class SchemaDeclarationError(Exception):
    """
    structural defect in a declared schema (raised once, at load time).

    examples: conflicting option shapes, non-contiguous trailing defaults, reserved
    or malformed names, duplicate paths, a node that is both bound and branching.
    """


__all__ = (
    "ResolutionFault",
    "UnknownPathError",
    "UnfinishedPathError",
    "UnknownOptionError",
    "UnexpectedOptionsError",
    "CombinedValueOptionError",
    "OptionValueRequiredError",
    "MissingArgumentError",
    "TooManyArgumentsError",
    "CoercionError",
    "UncastableValueError",
    "InvalidChoiceError",
    "UnresolvablePathError",
    "EmptyDefaultError",
    "InvocationError",
    "ResolutionError",
    "SchemaDeclarationError",
    "FaultCode",
)
