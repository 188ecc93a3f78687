"""
Branchline token walker.

walk(schema, tokens) makes a single pass over the input tokens, interleaving
command-path descent with option extraction:

- a token starting with '-' (before a literal '--') is option syntax and never
  advances the path;
- while the current node is unbound, any other token is the next path segment;
- once the node is bound, any other token is a positional.

Option syntax
- '--name' is looked up as-is; '-abc' expands to '-a', '-b' (presence-only) and
  '-c' (looked up normally), exactly as if written '-a -b -c'.
- A value-taking name (per the shape registry) consumes the next queued token.
- Unknown names are kept; ownership is checked later by the options assembler.

The walk state lives in locals of a single call, so concurrent walks over the
same schema never share anything mutable.
"""
import difflib
from collections import deque, namedtuple

from .faults import (
    FaultCode,
    ResolutionError,
    UnknownPathError,
    CombinedValueOptionError,
    OptionValueRequiredError,
)
from .synopsis import usage, program
from .utils import Unset, ordinal

Walk = namedtuple("Walk", ("node", "options", "positionals"))


def walk(schema, tokens, /):
    """
    Walk the tokens down the command tree of the schema.

    Returns
    - Walk(node, options, positionals): the node reached (possibly unbound), the
      ordered (name, raw value or None) pairs and the ordered positional tokens.

    Raises
    - ResolutionError: unknown path segment, combined alias that takes a value, or
      a value-taking option at the end of the input; faults are batched and carry
      the usage of the node reached.
    """
    registry = schema.registry
    tokens = deque(tokens)
    node = schema.root
    options = []
    positionals = []
    faults = []
    ended = False
    strayed = False
    index = 0

    def extract(token):
        nonlocal index

        if not token.startswith("--") and len(token) > 2:
            for char in token[1:-1]:
                if registry.takes_value(alias := "-" + char):
                    faults.append(CombinedValueOptionError(
                        "option %r inside %r at %s position takes a value and cannot be combined" % (
                            alias, token, ordinal(index)
                        ),
                        title="combined option takes a value",
                        code=FaultCode.COMBINED_VALUE_OPTION,
                        input=alias,
                        index=index,
                        hint="pass %r on its own, followed by its value" % alias,
                    ))
                    continue
                options.append((alias, None))
            token = "-" + token[-1]

        if not registry.takes_value(token):
            options.append((token, None))
            return

        if not tokens:
            faults.append(OptionValueRequiredError(
                "option %r at %s position requires a value" % (token, ordinal(index)),
                title="option value required",
                code=FaultCode.OPTION_VALUE_REQUIRED,
                input=token,
                index=index,
                hint="pass a value after %r (for example: %s <value>)" % (token, token),
            ))
            return

        options.append((token, tokens.popleft()))
        index += 1

    while tokens:
        token = tokens.popleft()
        index += 1

        if not ended and token.startswith("-"):
            if token == "--":
                ended = True
            else:
                extract(token)
        elif node.command is Unset:
            if strayed:
                continue
            try:
                node = node.children[token]
            except KeyError:
                suggestions = difflib.get_close_matches(token, node.children.keys(), 5)
                route = " ".join(filter(None, (program(schema), node.route)))
                try:
                    hint = "did you mean %r? you can also run '%s --help' to see available commands" % (
                        suggestions[0], route
                    )
                except IndexError:
                    hint = "run '%s --help' to see available commands" % route
                faults.append(UnknownPathError(
                    "unknown command %r at %s position" % (token, ordinal(index)),
                    title="unknown command",
                    code=FaultCode.UNKNOWN_PATH,
                    input=token,
                    index=index,
                    suggestions=suggestions,
                    hint=hint,
                ))
                strayed = True
        else:
            positionals.append(token)

    if faults:
        raise ResolutionError(faults, usage(schema, node), prog=program(schema))

    return Walk(node, options, positionals)


__all__ = (
    "Walk",
    "walk",
)
