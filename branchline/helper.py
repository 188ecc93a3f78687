"""
Branchline help rendering (rich).

render(schema, node, ...) builds the help renderable shown in help mode:

- the usage line of the node (see branchline.synopsis);
- the program documentation when rendering the root;
- a table of sub-commands for a branching node;
- parameter and option sections for a bound command, with types, placeholders
  and descriptions in aligned columns (the name column is capped at 35 cells).

Palette keys
- usage-label, usage-section, description-section
- children-title, children-table, children, children-description
- group-label, parameter-name, option-name, metavar, type, argument-description
- panel-title

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .synopsis import usage, program, fields
from .utils import Unset
from .values import Kind

_CAP = 35


def _typename(type):
    match type.kind:
        case Kind.ENUM:
            return "|".join(type.choices.__members__)
        case Kind.ARRAY if type.element.kind is Kind.ENUM:
            return "(%s)[]" % _typename(type.element)
        case _:
            return str(type)


def render(schema, node, /, *, colorful=False, fancy=False, width=80):
    """
    Build the help renderable for a node of the schema.

    Parameters
    - schema: the Schema being resolved.
    - node: CommandNode reached by the walk (bound or not).
    - colorful / fancy: palette and panel switches.
    - width: available console width (the children table takes two thirds).
    """
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # cyan signature info
        "usage-section": "bold #36C5F0",  # sky-blue, softer than cyan
        "description-section": "italic #A3A3A3",  # neutral gray

        # === Children table ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",  # slate border
        "children": "bold #36C5F0",  # sky-blue commands
        "children-description": "#9CA3AF",

        # === Parameters / options ===
        "group-label": "bold #FFFFFF",
        "parameter-name": "bold #FFD600",  # amber for parameters
        "option-name": "bold #00E6FF",  # cyan for options
        "metavar": "#FFD600",
        "type": "italic #FF4D94",  # magenta types stand out
        "argument-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), style)

    def columns(rows):
        # rows of (name column Text, description or None)
        indent = min(max((len(name) for name, _ in rows), default=0), _CAP) + 4
        section = Text()
        for name, descr in rows:
            section.append("  ").append(name)
            if descr:
                if len(name) + 2 > indent - 2:
                    section.append("\n").append(" " * indent)
                else:
                    section.append(" " * (indent - 2 - len(name)))
                section.append(text(descr, styler("argument-description")))
            section.append("\n")
        return section

    renders = []

    head, *tail = usage(schema, node).split("\n")
    line = Text()
    line.append("usage", styler("usage-label")).append(": ")
    line.append(text(head.removeprefix("usage: "), styler("usage-section")))
    for extra in tail:
        line.append("\n").append(text(extra, styler("description-section")))
    renders.append(line.append("\n"))

    if node is schema.root and schema.doc:
        renders.append(text(schema.doc, styler("description-section")).append("\n"))

    if (command := node.command) is Unset:
        table = Table(
            "name", "help",
            title=text("commands", styler("children-title")),
            width=int(width * (2 / 3)),
            box=ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        for name, child in node.children.items():
            if child.command is not Unset and child.command.descr:
                help = text(child.command.descr, styler("children-description"))
            elif child.command is Unset:
                help = text("%s ..." % "|".join(child.children), styler("children-description"))
            else:
                help = text("no description", styler("children-description"))
            table.add_row(text(name, styler("children")), help)
        renders.append(table)
    else:
        if command.descr:
            renders.append(text(command.descr, styler("description-section")).append("\n"))

        if command.parameters:
            rows = []
            for parameter in command.parameters:
                name = Text.assemble(
                    text(parameter.name, styler("parameter-name")),
                    " (", text(_typename(parameter.type), styler("type")), ")",
                    "..." if command.variadic and parameter is command.parameters[-1] else "",
                )
                rows.append((name, parameter.descr))
            renders.append(Text.assemble(text("parameters", styler("group-label")), ":\n", columns(rows)))

        if command.group is not Unset:
            rows = []
            for field in fields(command.group):
                name = Text.assemble(text(field.name, styler("option-name")))
                if field.shorthand:
                    name.append(" (").append(text(field.shorthand, styler("option-name"))).append(")")
                if field.type.takes_value:
                    name.append(" ").append(text("<%s>" % field.metavar, styler("metavar")))
                rows.append((name, field.descr))
            renders.append(Text.assemble(text("options", styler("group-label")), ":\n", columns(rows)))

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{program(schema)} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )
    return renderable


__all__ = (
    "render",
)
