"""
Branchline options assembler.

assemble(command, pairs, faults) turns the (name, raw value or None) pairs collected
by the walker into the command's options object:

- one Options namespace per distinct group of the command's embedding graph (an
  arena keyed by group identity), wired together along the embedding edges, so a
  group reached through two paths yields one shared instance;
- boolean fields toggle on each occurrence (two occurrences cancel out);
- array fields append one coerced element per occurrence, in encounter order;
- every other field is overwritten by the last occurrence.

Unknown names and coercion failures are appended to the call's fault list; the
resolver raises them together with the binder's faults.
"""
from .faults import FaultCode, CoercionError, UnknownOptionError, UnexpectedOptionsError
from .utils import Unset
from .values import Kind, coerce


class Options:
    """
    Namespace of assembled option values for one option group.

    Attributes are the group's field attributes plus one attribute per embedded
    group, holding that group's (shared) namespace.
    """

    def __init__(self, group, /):
        self.__group = group
        for field in group.fields:
            setattr(self, field.attribute, list(field.value) if field.type.kind is Kind.ARRAY else field.value)

    def __rich_repr__(self):
        for name, value in vars(self).items():
            if not name.startswith("_"):
                yield name, value

    def __repr__(self):
        return "%s(%s)" % (self.__group.name, ", ".join("%s=%r" % item for item in self.__rich_repr__()))

    def __eq__(self, other):
        if not isinstance(other, Options):
            return NotImplemented
        return self.__group is other.__group and dict(self.__rich_repr__()) == dict(other.__rich_repr__())

    __hash__ = None


def instantiate(group, /):
    """Build the arena of namespaces for a group graph; returns {group: Options}."""
    arena = {group: Options(group) for group in group.graph}
    for node, instance in arena.items():
        for attribute, embedded in node.embeds.items():
            setattr(instance, attribute, arena[embedded])
    return arena


def assemble(command, pairs, faults, /):
    """
    Assemble the options object of a command.

    Parameters
    - command: resolved Command.
    - pairs: ordered (name, raw value or None) pairs from the walker.
    - faults: the call's fault list, extended in place.

    Returns
    - the Options namespace of the command's group, or Unset when it has none.
    """
    if (group := command.group) is Unset:
        if pairs:
            names = list(dict.fromkeys(name for name, _ in pairs))
            faults.append(UnexpectedOptionsError(
                "unexpected options: %s" % ", ".join(names),
                title="unexpected options",
                code=FaultCode.UNEXPECTED_OPTIONS,
                input=names,
                hint="'%s' does not take any option" % command.path,
            ))
        return Unset

    arena = instantiate(group)
    for name, value in pairs:
        try:
            field = group.options[name]
        except KeyError:
            faults.append(UnknownOptionError(
                "unknown option %r" % name,
                title="unknown option",
                code=FaultCode.UNKNOWN_OPTION,
                input=name,
                hint="'%s' accepts %s" % (command.path, ", ".join(group.options) or "no option"),
            ))
            continue

        instance = arena[field.group]
        current = getattr(instance, field.attribute)
        try:
            match field.type.kind:
                case Kind.BOOL:
                    setattr(instance, field.attribute, not current)
                case Kind.ARRAY:
                    current.append(coerce(value, field.type.element, name))
                case _:
                    setattr(instance, field.attribute, coerce(value, field.type, name))
        except CoercionError as fault:
            faults.append(fault)

    return arena[group]


__all__ = (
    "Options",
    "assemble",
)
