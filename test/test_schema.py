"""
Schema declaration tests (command tree, option groups, shape registry).

Scope
- Validate load-time rejection of malformed schemas (reserved or malformed names,
  duplicate paths, bound/branching conflicts, non-contiguous defaults, invalid
  defaults, conflicting option shapes).
- Validate derived data (parameter counts, flattened options, embedding graph,
  shape registry).
- Validate that the public surface is read-only.

Conventions
- Test method names follow CamelCase per project convention.
- Every declaration error is a SchemaDeclarationError; wrong argument types are TypeError.
"""

from __future__ import annotations

import unittest
from types import MappingProxyType
from unittest import TestCase

from branchline import (
    Schema,
    Command,
    Parameter,
    Field,
    OptionGroup,
    ROOT,
    Empty,
    BOOL,
    INT32,
    STRING,
    array,
)
from branchline.faults import SchemaDeclarationError
from branchline.utils import Unset


def noop(*arguments):
    pass


class TestParameter(TestCase):
    """Positional parameter declarations."""

    def testDefaultIsCoercedOnce(self):
        parameter = Parameter("i", INT32, default="4")
        self.assertEqual(parameter.value, 4)
        self.assertEqual(parameter.default, "4")
        self.assertTrue(parameter.defaulted)

    def testNoDefaultIsUnset(self):
        parameter = Parameter("i", INT32)
        self.assertIs(parameter.value, Unset)
        self.assertFalse(parameter.defaulted)

    def testInvalidDefault(self):
        with self.assertRaises(SchemaDeclarationError) as context:
            Parameter("i", INT32, default="four")
        self.assertIn("'i'", str(context.exception))

    def testEmptyDefaultOnScalar(self):
        with self.assertRaises(SchemaDeclarationError):
            Parameter("flag", BOOL, default=Empty)

    def testEmptyDefaultOnString(self):
        self.assertEqual(Parameter("s", STRING, default=Empty).value, "")

    def testWrongTypes(self):
        with self.assertRaises(TypeError):
            Parameter("i", int)
        with self.assertRaises(TypeError):
            Parameter("i", INT32, default=4)

    def testEmptyDescription(self):
        with self.assertRaises(SchemaDeclarationError):
            Parameter("i", INT32, descr="   ")


class TestField(TestCase):
    """Option field declarations."""

    def testDerivedAttribute(self):
        field = Field("--dry-run", BOOL, shorthand="-n")
        self.assertEqual(field.attribute, "dry_run")
        self.assertEqual(field.names, ("--dry-run", "-n"))
        self.assertIs(field.value, False)

    def testImplicitDefaults(self):
        self.assertEqual(Field("--tag", array(STRING)).value, ())
        self.assertIsNone(Field("--level", INT32).value)
        self.assertEqual(Field("--level", INT32).metavar, "value")

    def testReservedNames(self):
        with self.assertRaises(SchemaDeclarationError):
            Field("--help", BOOL)

    def testMalformedNames(self):
        for name in ("-abc", "--", "---x", "--1x", "--a_b", "name"):
            with self.subTest(name=name), self.assertRaises(SchemaDeclarationError):
                Field(name, BOOL)

    def testMalformedShorthands(self):
        for shorthand in ("-ab", "--a", "a", "-_"):
            with self.subTest(shorthand=shorthand), self.assertRaises(SchemaDeclarationError):
                Field("--option", BOOL, shorthand=shorthand)

    def testPrivateAttribute(self):
        with self.assertRaises(SchemaDeclarationError):
            Field("--option", BOOL, attribute="_hidden")
        with self.assertRaises(SchemaDeclarationError):
            Field("--class", BOOL)

    def testFieldBelongsToOneGroup(self):
        field = Field("--verbose", BOOL)
        group = OptionGroup("flags", [field])
        self.assertIs(field.group, group)
        with self.assertRaises(SchemaDeclarationError):
            OptionGroup("other", [field])


class TestOptionGroup(TestCase):
    """Option groups and embedding."""

    def testDuplicateOptionInGroup(self):
        with self.assertRaises(SchemaDeclarationError):
            OptionGroup("flags", [Field("--verbose", BOOL, shorthand="-v"), Field("--version", BOOL, shorthand="-v")])

    def testDuplicateAttributeInGroup(self):
        with self.assertRaises(SchemaDeclarationError):
            OptionGroup("flags", [Field("--a", BOOL, attribute="x"), Field("--b", BOOL, attribute="x")])

    def testEmbeddedOptionsAreFlattened(self):
        sub = OptionGroup("sub", [Field("--depth", INT32, shorthand="-d")])
        top = OptionGroup("top", [Field("--verbose", BOOL)], embeds={"sub": sub})
        self.assertEqual(set(top.options), {"--verbose", "--depth", "-d"})
        self.assertIs(top.options["--depth"].group, sub)
        self.assertEqual(list(top.graph), [top, sub])

    def testDiamondIsReachedOnce(self):
        base = OptionGroup("base", [Field("--quiet", BOOL)])
        left = OptionGroup("left", [Field("--left", BOOL)], embeds={"base": base})
        right = OptionGroup("right", [Field("--right", BOOL)], embeds={"base": base})
        top = OptionGroup("top", embeds={"left": left, "right": right})
        self.assertEqual(len(top.graph), 4)
        self.assertEqual(sum(group is base for group in top.graph), 1)

    def testConflictThroughEmbedding(self):
        one = OptionGroup("one", [Field("--level", INT32)])
        two = OptionGroup("two", [Field("--level", INT32)])
        with self.assertRaises(SchemaDeclarationError) as context:
            OptionGroup("top", embeds={"one": one, "two": two})
        self.assertIn("'--level'", str(context.exception))


class TestCommand(TestCase):
    """Command declarations."""

    def testCounts(self):
        command = Command("copy", noop, [
            Parameter("source", STRING),
            Parameter("target", STRING),
            Parameter("mode", STRING, default="fast"),
        ])
        self.assertEqual((command.total, command.required, command.optional), (3, 2, 1))
        self.assertEqual(command.segments, ("copy",))

    def testNonContiguousDefaults(self):
        with self.assertRaises(SchemaDeclarationError):
            Command("x", noop, [Parameter("a", INT32, default="1"), Parameter("b", INT32)])

    def testVariadicNeedsTrailingArray(self):
        with self.assertRaises(SchemaDeclarationError):
            Command("x", noop, [Parameter("a", INT32)], variadic=True)
        with self.assertRaises(SchemaDeclarationError):
            Command("x", noop, variadic=True)

    def testReservedSegments(self):
        for path in ("help", "lfs ?", "--help"):
            with self.subTest(path=path), self.assertRaises(SchemaDeclarationError):
                Command(path, noop)

    def testMalformedSegments(self):
        for path in ("", "1st", "a_b", "-x"):
            with self.subTest(path=path), self.assertRaises(SchemaDeclarationError):
                Command(path, noop)

    def testRootPath(self):
        command = Command(ROOT, noop)
        self.assertEqual(command.segments, ())
        self.assertEqual(command.path, ROOT)

    def testDuplicateParameter(self):
        with self.assertRaises(SchemaDeclarationError):
            Command("x", noop, [Parameter("a", INT32), Parameter("a", STRING)])

    def testCallbackMustBeCallable(self):
        with self.assertRaises(TypeError):
            Command("x", "noop")


class TestSchema(TestCase):
    """Whole schema validation and derived data."""

    def testDuplicatePath(self):
        with self.assertRaises(SchemaDeclarationError):
            Schema("tool", [Command("lfs pull", noop), Command("lfs  pull", noop)])

    def testBoundNodeCannotBranch(self):
        with self.assertRaises(SchemaDeclarationError):
            Schema("tool", [Command("lfs", noop), Command("lfs pull", noop)])
        with self.assertRaises(SchemaDeclarationError):
            Schema("tool", [Command("lfs pull", noop), Command("lfs", noop)])

    def testRootCommandIsAlone(self):
        with self.assertRaises(SchemaDeclarationError):
            Schema("tool", [Command(ROOT, noop), Command("x", noop)])
        with self.assertRaises(SchemaDeclarationError):
            Schema("tool", [Command("x", noop), Command(ROOT, noop)])

    def testEmptySchema(self):
        with self.assertRaises(SchemaDeclarationError):
            Schema("tool", [])

    def testTree(self):
        pull = Command("lfs pull", noop)
        schema = Schema("tool", [pull, Command("lfs push", noop), Command("status", noop)])
        self.assertEqual(list(schema.root.children), ["lfs", "status"])
        node = schema.root.children["lfs"].children["pull"]
        self.assertIs(node.command, pull)
        self.assertEqual(node.path, ("lfs", "pull"))
        self.assertEqual(node.route, "lfs pull")
        self.assertIs(schema.root.children["lfs"].command, Unset)

    def testRegistry(self):
        group = OptionGroup("flags", [Field("--level", INT32, shorthand="-l"), Field("--quiet", BOOL, shorthand="-q")])
        schema = Schema("tool", [Command("x", noop, group=group)])
        self.assertEqual(dict(schema.registry), {"--level": True, "-l": True, "--quiet": False, "-q": False})
        self.assertTrue(schema.registry.takes_value("-l"))
        self.assertFalse(schema.registry.takes_value("--unknown"))

    def testConflictingShapesAcrossGroups(self):
        one = OptionGroup("one", [Field("--level", INT32)])
        two = OptionGroup("two", [Field("--level", BOOL)])
        with self.assertRaises(SchemaDeclarationError) as context:
            Schema("tool", [Command("a", noop, group=one), Command("b", noop, group=two)])
        self.assertIn("'one'", str(context.exception))
        self.assertIn("'two'", str(context.exception))

    def testAgreeingShapesAcrossGroups(self):
        one = OptionGroup("one", [Field("--level", INT32, shorthand="-l")])
        two = OptionGroup("two", [Field("--level", INT32)])
        schema = Schema("tool", [Command("a", noop, group=one), Command("b", noop, group=two)])
        self.assertTrue(schema.registry["--level"])

    def testUnreachableGroupsAreIgnored(self):
        OptionGroup("stray", [Field("--level", BOOL)])
        group = OptionGroup("used", [Field("--level", INT32)])
        schema = Schema("tool", [Command("a", noop, group=group)])
        self.assertEqual(list(schema.groups), [group])

    def testEmbeddedGroupsFeedTheRegistry(self):
        sub = OptionGroup("sub", [Field("--depth", INT32)])
        top = OptionGroup("top", embeds={"sub": sub})
        schema = Schema("tool", [Command("a", noop, group=top)])
        self.assertTrue(schema.registry.takes_value("--depth"))

    def testReadOnlyViews(self):
        schema = Schema("tool", [Command("a", noop, [Parameter("i", INT32)])])
        self.assertIsInstance(schema.root.children, MappingProxyType)
        self.assertIsInstance(schema.commands, tuple)
        self.assertIsInstance(schema.commands[0].parameters, tuple)
        with self.assertRaises(TypeError):
            schema.root.children["b"] = schema.root
        with self.assertRaises(AttributeError):
            schema.name = "other"
        with self.assertRaises(TypeError):
            schema.registry["--x"] = True

    def testRepr(self):
        representation = repr(Parameter("i", INT32))
        self.assertTrue(representation.startswith("parameter(name='i', type="))
        self.assertTrue(representation.endswith("default=Unset, value=Unset, descr=None)"))
        self.assertTrue(repr(OptionGroup("flags")).startswith("option-group(name='flags'"))


if __name__ == "__main__":
    unittest.main()
