"""
Branchline usage strings.

usage(schema, node) synthesizes the one-line usage attached to every resolution
failure, scoped to the most specific command-tree location reached:

- unbound node:  "usage: git lfs pull|push ...\\nuse 'git --help <command>' for help"
- bound command: "usage: git (--force) (--quiet) clone <url> [directory]"

Options are listed one by one for small groups and collapsed to "(...options)"
past three fields; required parameters render as <name>, defaulted ones as
[name], and a variadic command ends with "...".
"""
from .utils import Unset

_COLLAPSE = 3


def program(schema, /):
    """Program name: __main__.__prog__ when the host sets it, else the schema name."""
    return getattr(__import__("__main__"), "__prog__", schema.name)


def fields(group, /):
    """Distinct fields reachable from a group, in declaration order."""
    seen = []
    for field in group.options.values():
        if not any(field is other for other in seen):
            seen.append(field)
    return seen


def usage(schema, node, /):
    prog = program(schema)

    if (command := node.command) is Unset:
        parts = [prog, node.route, "|".join(node.children), "..."]
        return "usage: %s\nuse '%s --help <command>' for help" % (" ".join(filter(None, parts)), prog)

    parts = [prog]
    if command.group is not Unset:
        if len(declared := fields(command.group)) > _COLLAPSE:
            parts.append("(...options)")
        else:
            parts.extend("(%s)" % field.name for field in declared)
    parts.append(node.route)
    for parameter in command.parameters:
        parts.append(("[%s]" if parameter.defaulted else "<%s>") % parameter.name)
    if command.variadic:
        parts.append("...")
    return "usage: %s" % " ".join(filter(None, parts))


__all__ = (
    "usage",
    "program",
)
