"""
Branchline resolution and dispatch.

resolve(schema, prompt) runs one full resolution:

1. normalize the prompt into tokens (sys.argv[1:], a command line split with
   branchline.values.split, or an iterable of strings);
2. a leading 'help', '?' or '--help' switches into help mode and is dropped;
3. walk the tokens (path descent + option extraction);
4. an unbound outcome is help on the root or in help mode, otherwise a failure;
5. assemble the options object and bind the positionals, batching every fault of
   both passes into one ResolutionError with a fresh usage string.

Parser(schema, ...) wraps resolve() for hosts: run() renders help, dispatches the
selected callback with the bound arguments, and returns whether it succeeded. In
shell mode faults are rendered on stderr with rich instead of being raised.
"""
import copy
import sys
from collections import namedtuple
from collections.abc import Iterable

from rich.console import Console

from .assembler import assemble
from .binder import bind
from .faults import FaultCode, ResolutionError, UnfinishedPathError, InvocationError
from .helper import render
from .schema import Schema, HELP
from .synopsis import usage, program
from .utils import Unset
from .values import split
from .walker import walk

Resolution = namedtuple("Resolution", ("node", "command", "arguments", "options", "help"))


def _console(console, /, **options):
    return Console(**options) if console is Unset else console


def _tokenize(prompt):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("resolve() prompt must be a string or an iterable of strings")
        return tokens
    raise TypeError("resolve() prompt must be a string or an iterable of strings")


def resolve(schema, prompt=Unset, /):
    """
    Resolve a prompt against a schema.

    Returns
    - Resolution(node, command, arguments, options, help)
      • help is True when documentation should be shown instead of dispatching;
        command/arguments/options are then left as reached (Unset / ()).
      • otherwise arguments is the full, typed argument tuple for command.callback.

    Raises
    - ResolutionError: batched diagnostics plus the usage of the location reached.
    - TypeError: when the schema or prompt has the wrong type.
    """
    if not isinstance(schema, Schema):
        raise TypeError("resolve() first argument must be a schema")

    tokens = _tokenize(prompt)
    if help := bool(tokens) and tokens[0] in HELP:
        tokens = tokens[1:]

    node, pairs, positionals = walk(schema, tokens)

    if help or node is schema.root and node.command is Unset:
        return Resolution(node, node.command, (), Unset, True)

    if (command := node.command) is Unset:
        prog = program(schema)
        raise ResolutionError([UnfinishedPathError(
            "'%s' needs a sub-command, one of %s" % (
                " ".join(filter(None, (prog, node.route))), ", ".join(map(repr, node.children))
            ),
            title="unfinished command",
            code=FaultCode.UNFINISHED_PATH,
            input=node.route,
            suggestions=tuple(node.children),
            hint="run '%s --help %s' to see available commands" % (prog, node.route),
        )], usage(schema, node), prog=prog)

    faults = []
    options = assemble(command, pairs, faults)
    arguments = bind(command, positionals, options, faults)
    if faults:
        raise ResolutionError(faults, usage(schema, node), prog=program(schema))

    return Resolution(node, command, tuple(arguments), options, False)


class Parser:
    """
    Host-facing runner around resolve().

    Parameters
    - schema: the Schema to resolve against.
    - shell: render faults (rich, stderr) and return False instead of raising.
    - fancy: wrap help and faults in panels.
    - colorful: apply the palette (see __styles__ in __main__).
    """

    def __init__(self, schema, /, *, shell=False, fancy=False, colorful=False):
        if not isinstance(schema, Schema):
            raise TypeError("Parser() argument must be a schema")
        self.schema = schema
        self.shell = shell
        self.fancy = fancy
        self.colorful = colorful

    def __repr__(self):
        return "parser(schema=%r, shell=%r, fancy=%r, colorful=%r)" % (
            self.schema.name, self.shell, self.fancy, self.colorful
        )

    def resolve(self, prompt=Unset, /):
        return resolve(self.schema, prompt)

    def help(self, node=Unset, /, *, console=Unset):
        """Print the help of a node (the root by default)."""
        console = _console(console)
        console.print(render(
            self.schema,
            self.schema.root if node is Unset else node,
            colorful=self.colorful,
            fancy=self.fancy,
            width=console.width - 4 * self.fancy,
        ))

    def report(self, fault, /, *, console=Unset):
        """Print a fault (or a ResolutionError) with this parser's rendering flags."""
        console = _console(console, stderr=True)
        console.print(copy.replace(fault, prog=program(self.schema), fancy=self.fancy, colorful=self.colorful))

    def run(self, prompt=Unset, /):
        """
        Resolve the prompt and dispatch the selected command.

        Returns
        - True when help was shown or the callback completed.
        - False in shell mode when resolution or the callback failed.

        Raises
        - ResolutionError outside shell mode.
        - whatever the callback raises, unaltered, outside shell mode.
        """
        try:
            resolution = self.resolve(prompt)
        except ResolutionError as exit:
            if not self.shell:
                raise
            self.report(exit)
            return False

        if resolution.help:
            self.help(resolution.node)
            return True

        command = resolution.command
        try:
            command.callback(*resolution.arguments)
        except Exception as exception:
            if not self.shell:
                raise
            self.report(InvocationError(
                "something occurred in '%s': %s" % (command.path, exception),
                title="command failed",
                code=FaultCode.DELEGATED_ERROR,
                input=command.path,
                exception=exception,
                hint="check additional logs for more details",
            ))
            return False
        return True

    def __invoke__(self, prompt=Unset):
        return self.run(prompt)


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for parsers and schemas.

    - object implementing __invoke__(prompt): called with prompt.
    - Schema: wrapped in a shell-mode Parser, then invoked.

    Returns
    - the boolean outcome of the run.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if isinstance(object, Schema):
        return invoke(Parser(object, shell=True), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must be a schema or implement __invoke__ method") from None


__all__ = (
    "Resolution",
    "Parser",
    "resolve",
    "invoke",
)
