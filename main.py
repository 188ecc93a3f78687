from rich.pretty import pprint

from branchline import *

__prog__ = "git"

remote = OptionGroup("remote", [
    Field("--remote", STRING, shorthand="-r", default="origin", metavar="name", descr="remote to talk to"),
])
flags = OptionGroup("flags", [
    Field("--verbose", BOOL, shorthand="-v", descr="print more details"),
    Field("--exclude", array(STRING), shorthand="-x", metavar="pattern", descr="skip matching paths"),
], embeds={"remote": remote})


def clone(options, url, directory):
    pprint((options, url, directory))


def pull(options, refs):
    pprint((options, refs))


schema = Schema("git", [
    Command("clone", clone, [
        Parameter("url", STRING, descr="repository to clone"),
        Parameter("directory", PATH, default=".", descr="where to clone it"),
    ], group=flags, descr="clone a repository"),
    Command("lfs pull", pull, [
        Parameter("refs", array(STRING), default=Empty, descr="refs to fetch"),
    ], variadic=True, group=remote, descr="fetch large files"),
], doc="a tiny git-like front end")


if __name__ == '__main__':
    pprint(schema)
    Parser(schema, shell=True, fancy=True, colorful=True).run()
