"""
Branchline option shape registry.

The registry answers one question for the token walker: does this option name
consume the following token? It is computed once from every option group reachable
from a command, and is read-only afterwards; resolution calls only look it up.

Names unknown to the registry are presence-only; whether the selected command
actually owns them is decided later by the options assembler.
"""
from collections.abc import Mapping
from types import MappingProxyType

from .faults import SchemaDeclarationError


class ShapeRegistry(Mapping):
    """
    Read-only mapping of option name (long or shorthand) → takes a value.

    Raises
    - SchemaDeclarationError: when one name is declared value-taking in one group
      and presence-only in another; the message names both groups.
    """

    def __init__(self, groups, /):
        shapes = {}
        owners = {}
        for group in groups:
            for field in group.fields:
                for name in field.names:
                    takes = field.type.takes_value
                    if shapes.setdefault(name, takes) != takes:
                        raise SchemaDeclarationError(
                            "option %r is declared in groups %r and %r, only one of them taking a value"
                            % (name, owners[name].name, group.name)
                        )
                    owners.setdefault(name, group)
        self._shapes = MappingProxyType(shapes)

    def __getitem__(self, name, /):
        return self._shapes[name]

    def __iter__(self):
        return iter(self._shapes)

    def __len__(self):
        return len(self._shapes)

    def takes_value(self, name, /):
        return self._shapes.get(name, False)

    def __repr__(self):
        return f"shape-registry({dict(self._shapes)!r})"

    def __rich_repr__(self):
        yield from self._shapes.items()


__all__ = (
    "ShapeRegistry",
)
