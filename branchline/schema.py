r"""
Branchline schema: command tree, parameters, option groups.

Overview
- Parameter: one positional slot (name, value type, optional default, description).
- Field: one option of a group (long name, optional shorthand, value type, default).
- OptionGroup: named set of fields, composable by embedding other groups.
- Command: a bound operation (path, callback, parameters, variadic flag, option group).
- CommandNode: one segment of the command tree; either bound to a command or branching.
- Schema: the whole tree plus its option shape registry, validated once.

Metadata (sanitized on construction)
- descr: Unset | str (short help), non-empty when provided.
- type: a ValueType tag (see branchline.values).
- default: Unset | str | Empty, coerced once into `value`; a failure is a
  SchemaDeclarationError rather than a resolution-time fault.

Validation highlights
- Path segments must match r"[^\W\d_](-?[^\W_]+)*".
- Long option names must match r"--[^\W\d_](-?[^\W_]+)*", shorthands r"-[^\W_]".
- The help spellings and the ROOT sentinel are reserved everywhere.
- Defaulted parameters must be contiguous from the end of the parameter list.
- A node is either bound or branching, never both.

Quick example:
    >>> from branchline import *
    >>> flags = OptionGroup("flags", [Field("--verbose", BOOL, shorthand="-v")])
    >>> schema = Schema("tool", [
    ...     Command("print", print, [Parameter("i", INT32, default="4")], group=flags),
    ... ])
    >>> schema.root.children["print"].command.parameters[0].value
    4

Schemas are immutable once built: every container attribute is exposed as a
read-only view, and nothing in the resolver writes to them.
"""
import functools
import keyword
import operator
import re
from collections import deque

from .faults import SchemaDeclarationError, CoercionError
from .registry import ShapeRegistry
from .utils import *
from .values import ValueType, Kind, EmptyType, coerce

ROOT = "<root>"
"""Path of the command bound to the root node (the only command of such a schema)."""

HELP = frozenset({"help", "?", "--help"})
"""Spellings that switch a resolution into help mode when given first."""

RESERVED = HELP | {ROOT}


class SchemaType(type):
    """
    Metaclass giving schema objects their introspection surface.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and rich.pretty output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in declaration error messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
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
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, metadata, /):
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise SchemaDeclarationError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate the value type and description shared by parameters and fields.

    Raises
    - TypeError: if 'type' is not a ValueType or 'descr' is not a string.
    - SchemaDeclarationError: if 'descr' is empty after trimming.
    """
    if not isinstance(metadata["type"], ValueType):
        raise TypeError(f"{cls.__typename__} 'type' must be a value type")

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise SchemaDeclarationError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_default(cls, metadata, /):
    """
    Internal: coerce the declared default once, at load time.

    The coerced value is stored under 'value'; Unset stays Unset. An invalid
    default is a declaration defect, so the coercion fault is re-raised as a
    SchemaDeclarationError naming the offending declaration.
    """
    if not isinstance(default := metadata["default"], str | EmptyType | Unset):
        raise TypeError(f"{cls.__typename__} 'default' must be a string or Empty")
    if default is Unset:
        metadata["value"] = Unset
        return
    try:
        metadata["value"] = coerce(default, metadata["type"], metadata["name"])
    except CoercionError as exception:
        raise SchemaDeclarationError(
            f"{cls.__typename__} {metadata["name"]!r} has an invalid default value {default!r}: {exception}"
        ) from exception


def _check_reserved(cls, name, /):
    if name in RESERVED:
        raise SchemaDeclarationError(f"{cls.__typename__} name {name!r} is reserved")


class Parameter(metaclass=SchemaType):
    """
    One positional parameter of a command.

    Parameters
    - name: label used in usage strings and messages.
    - type: ValueType tag of the bound value.
    - default: Unset (required), a raw string, or Empty (explicit empty).
    - descr: short help text.
    """
    __introspectable__ = ("name", "type", "default", "value", "descr")

    def __init__(self, name, type, /, default=Unset, descr=Unset):
        cls = self.__class__
        metadata = {"name": name, "type": type, "default": default, "descr": descr}
        _sanitize_name(cls, metadata)
        _sanitize_metadata(cls, metadata)
        _sanitize_default(cls, metadata)
        for key, value in metadata.items():
            setattr(self, "_" + key, value)

    @property
    def defaulted(self):
        return self._default is not Unset


class Field(metaclass=SchemaType):
    """
    One option of an option group.

    Parameters
    - name: long name, e.g. "--dry-run".
    - type: ValueType tag; BOOL fields are presence-only and toggle on each occurrence.
    - shorthand: optional single-letter alias, e.g. "-n".
    - default: Unset, a raw string, or Empty.
    - descr: short help text.
    - attribute: attribute name on the assembled options object (defaults to the
      long name without dashes, hyphens turned into underscores).
    - metavar: placeholder shown in help for value-taking fields (defaults to "value").

    The declaring group is recorded when the field is handed to an OptionGroup; a
    field belongs to exactly one group.
    """
    __introspectable__ = ("name", "shorthand", "type", "default", "value", "attribute", "metavar", "descr", "group")
    __displayable__ = ("name", "shorthand", "type", "default", "attribute", "descr")

    def __init__(self, name, type, /, shorthand=Unset, default=Unset, descr=Unset, attribute=Unset, metavar=Unset):
        cls = self.__class__
        metadata = {
            "name": name,
            "type": type,
            "shorthand": shorthand,
            "default": default,
            "descr": descr,
            "attribute": attribute,
            "metavar": metavar,
        }
        _sanitize_name(cls, metadata)
        _check_reserved(cls, name := metadata["name"])
        if not re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", name):
            raise SchemaDeclarationError(f"{cls.__typename__} name {name!r} must be a valid long option name (e.g. --dry-run)")

        if not isinstance(shorthand, str | Unset):
            raise TypeError(f"{cls.__typename__} 'shorthand' must be a string")
        if isinstance(shorthand, str):
            _check_reserved(cls, shorthand)
            if not re.fullmatch(r"-[^\W_]", shorthand):
                raise SchemaDeclarationError(f"{cls.__typename__} shorthand {shorthand!r} must be a dash and one letter or digit")
        metadata["shorthand"] = coalesce(shorthand)

        if not isinstance(attribute, str | Unset):
            raise TypeError(f"{cls.__typename__} 'attribute' must be a string")
        attribute = coalesce(attribute, name[2:].replace("-", "_"))
        if not attribute.isidentifier() or keyword.iskeyword(attribute) or attribute.startswith("_"):
            raise SchemaDeclarationError(f"{cls.__typename__} attribute {attribute!r} must be a public python identifier")
        metadata["attribute"] = attribute

        if not isinstance(metavar, str | Unset):
            raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
        elif isinstance(metavar, str) and not (metavar := metavar.strip()):
            raise SchemaDeclarationError(f"{cls.__typename__} 'metavar' cannot be empty")
        metadata["metavar"] = coalesce(metavar, "value")

        _sanitize_metadata(cls, metadata)
        _sanitize_default(cls, metadata)
        if metadata["value"] is Unset:
            metadata["value"] = {Kind.BOOL: False, Kind.ARRAY: []}.get(metadata["type"].kind)

        for key, value in metadata.items():
            setattr(self, "_" + key, value)
        self._group = Unset

    @property
    def names(self):
        """Long name first, then the shorthand when declared."""
        return (self._name,) if self._shorthand is None else (self._name, self._shorthand)


class OptionGroup(metaclass=SchemaType):
    """
    Named set of option fields, composable by embedding.

    Parameters
    - name: group label (used in help and declaration errors).
    - fields: iterable of Field, each owned by this group from now on.
    - embeds: mapping of attribute name → OptionGroup; every field of an embedded
      group is reachable from this group under its own name, and its values land
      on the embedded instance exposed under that attribute.
    - descr: short help text.

    Derived
    - options: name/shorthand → Field, across the whole embedding graph.
    - graph: every distinct group reachable from this one (self first, breadth-first).
    """
    __introspectable__ = ("name", "fields", "embeds", "options", "graph", "descr")
    __displayable__ = ("name", "fields", "embeds", "descr")

    def __init__(self, name, fields=(), /, embeds=Unset, descr=Unset):
        cls = self.__class__
        metadata = {"name": name, "descr": descr}
        _sanitize_name(cls, metadata)
        if not isinstance(descr, str | Unset):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        self._name = metadata["name"]
        self._descr = coalesce(descr)

        self._fields = []
        self._options = {}
        attributes = set()
        for field in fields:
            if not isinstance(field, Field):
                raise TypeError(f"{cls.__typename__} fields must be fields")
            if field.group is not Unset:
                raise SchemaDeclarationError(
                    f"{field.__typename__} {field.name!r} is already declared in group {field.group.name!r}"
                )
            for option in field.names:
                if option in self._options:
                    raise SchemaDeclarationError(f"{cls.__typename__} {self._name!r} declares option {option!r} twice")
                self._options[option] = field
            if field.attribute in attributes:
                raise SchemaDeclarationError(f"{cls.__typename__} {self._name!r} declares attribute {field.attribute!r} twice")
            attributes.add(field.attribute)
            field._group = self
            self._fields.append(field)

        self._embeds = {}
        for attribute, group in dict(coalesce(embeds, {})).items():
            if not isinstance(group, OptionGroup):
                raise TypeError(f"{cls.__typename__} embeds must map attribute names to option groups")
            if not isinstance(attribute, str) or not attribute.isidentifier() or attribute.startswith("_"):
                raise SchemaDeclarationError(f"{cls.__typename__} embed attribute {attribute!r} must be a public python identifier")
            if attribute in attributes:
                raise SchemaDeclarationError(f"{cls.__typename__} {self._name!r} declares attribute {attribute!r} twice")
            attributes.add(attribute)
            for option, field in group.options.items():
                # the same field reached through two embedding paths is fine
                if self._options.setdefault(option, field) is not field:
                    raise SchemaDeclarationError(
                        f"{cls.__typename__} {self._name!r} reaches option {option!r} from groups "
                        f"{self._options[option].group.name!r} and {field.group.name!r}"
                    )
            self._embeds[attribute] = group

        self._graph = []
        queue = deque([self])
        while queue:
            node = queue.popleft()
            if any(group is node for group in self._graph):
                continue
            self._graph.append(node)
            queue.extend(node._embeds.values())


def _sanitize_path(cls, path, /):
    """
    Internal: normalize a command path into its segments.

    Returns () for the ROOT sentinel; otherwise the whitespace-separated segments,
    each validated against the segment grammar and the reserved names.
    """
    if not isinstance(path, str):
        raise TypeError(f"{cls.__typename__} 'path' must be a string")
    if path == ROOT:
        return ()
    if not (segments := tuple(path.split())):
        raise SchemaDeclarationError(f"{cls.__typename__} 'path' cannot be empty (use ROOT for a root command)")
    for segment in segments:
        _check_reserved(cls, segment)
        if not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", segment):
            raise SchemaDeclarationError(f"{cls.__typename__} path segment {segment!r} cannot be used as a branch name")
    return segments


class Command(metaclass=SchemaType):
    """
    A bound operation of the command tree.

    Parameters
    - path: space-separated segments ("lfs pull"), or ROOT.
    - callback: callable receiving the bound arguments on dispatch (the options
      object first, when the command has a group).
    - parameters: ordered Parameter declarations.
    - variadic: when True, the last parameter (an array type) absorbs every
      remaining positional token.
    - group: OptionGroup whose options this command accepts, or Unset.
    - descr: short help text.

    Derived
    - total / optional / required: parameter counts; optional counts the trailing
      defaulted parameters, which must be contiguous from the end.
    """
    __introspectable__ = ("path", "segments", "callback", "parameters", "variadic", "group", "descr", "total", "optional", "required")
    __displayable__ = ("path", "parameters", "variadic", "group", "descr")

    def __init__(self, path, callback, /, parameters=(), variadic=False, group=Unset, descr=Unset):
        cls = self.__class__
        self._segments = _sanitize_path(cls, path)
        self._path = " ".join(self._segments) or ROOT

        if not callable(callback):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")
        self._callback = callback

        self._parameters = []
        for parameter in parameters:
            if not isinstance(parameter, Parameter):
                raise TypeError(f"{cls.__typename__} parameters must be parameters")
            if any(parameter.name == other.name for other in self._parameters):
                raise SchemaDeclarationError(f"{cls.__typename__} {self._path!r} declares parameter {parameter.name!r} twice")
            self._parameters.append(parameter)

        self._optional = 0
        for index, parameter in enumerate(self._parameters):
            if parameter.defaulted:
                self._optional += 1
            elif self._optional:
                defaulted = self._parameters[index - 1]
                raise SchemaDeclarationError(
                    f"{cls.__typename__} {self._path!r} parameter {defaulted.name!r} has a default value "
                    f"but the later parameter {parameter.name!r} does not"
                )
        self._total = len(self._parameters)
        self._required = self._total - self._optional

        if not isinstance(variadic, bool):
            raise TypeError(f"{cls.__typename__} 'variadic' must be a boolean")
        if variadic and (not self._parameters or self._parameters[-1].type.kind is not Kind.ARRAY):
            raise SchemaDeclarationError(f"{cls.__typename__} {self._path!r} is variadic but its last parameter is not an array")
        self._variadic = variadic

        if not isinstance(group, OptionGroup | Unset):
            raise TypeError(f"{cls.__typename__} 'group' must be an option group")
        self._group = group

        if not isinstance(descr, str | Unset):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        self._descr = coalesce(descr)


class CommandNode(metaclass=SchemaType):
    """
    One segment of the command tree: bound to a command, or branching into children.
    """
    __introspectable__ = ("segment", "command", "children", "parent")
    __displayable__ = ("segment", "command", "children")

    def __init__(self, segment, parent=Unset):
        self._segment = segment
        self._parent = parent
        self._command = Unset
        self._children = {}

    @property
    def path(self):
        """Segments from the root (excluded) down to this node."""
        path = []
        node = self
        while node._parent is not Unset:
            path.append(node._segment)
            node = node._parent
        return tuple(reversed(path))

    @property
    def route(self):
        return " ".join(self.path)


class Schema(metaclass=SchemaType):
    """
    Immutable command tree plus its option shape registry.

    Parameters
    - name: program name used in usage strings and rendered faults.
    - commands: iterable of Command; their paths build the tree.
    - doc: optional program-level documentation shown in root help.

    Raises
    - SchemaDeclarationError: duplicate paths, bound nodes with sub-paths, an
      empty schema, or conflicting option shapes across groups.
    """
    __introspectable__ = ("name", "commands", "groups", "root", "doc")
    __displayable__ = ("name", "root", "doc")

    def __init__(self, name, commands, /, doc=Unset):
        cls = self.__class__
        metadata = {"name": name}
        _sanitize_name(cls, metadata)
        if not isinstance(doc, str | Unset):
            raise TypeError(f"{cls.__typename__} 'doc' must be a string")
        self._name = metadata["name"]
        self._doc = coalesce(doc)

        self._root = CommandNode(ROOT)
        self._commands = []
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError(f"{cls.__typename__} commands must be commands")
            self._attach(command)
            self._commands.append(command)

        if not self._commands:
            raise SchemaDeclarationError(f"{cls.__typename__} {self._name!r} contains no commands")

        self._groups = []
        for command in self._commands:
            if command.group is Unset:
                continue
            for group in command.group.graph:
                if not any(group is other for other in self._groups):
                    self._groups.append(group)

        self._registry = ShapeRegistry(self._groups)

    @property
    def registry(self):
        """Option shape registry built from every group reachable from a command."""
        return self._registry

    def _attach(self, command):
        cls = self.__class__
        node = self._root
        for segment in command.segments:
            if node._command is not Unset:
                raise SchemaDeclarationError(
                    f"{cls.__typename__} path {node.route or ROOT!r} has a bound command, it cannot have sub-paths"
                )
            node = node._children.setdefault(segment, CommandNode(segment, node))
        if node._command is not Unset:
            raise SchemaDeclarationError(f"{cls.__typename__} path {command.path!r} is declared twice")
        if node._children:
            raise SchemaDeclarationError(
                f"{cls.__typename__} path {command.path!r} has sub-paths, it cannot be bound to a command"
            )
        node._command = command


__all__ = (
    # Classes
    "Parameter",
    "Field",
    "OptionGroup",
    "Command",
    "CommandNode",
    "Schema",

    # Constants
    "ROOT",
    "HELP",
    "RESERVED",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del SchemaType
