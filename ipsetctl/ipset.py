"""Wrapper around the ipset(8) utility.

Every operation builds an argument vector, runs the resolved ipset binary
once and waits for it to exit. Nothing is kept between calls except the
binary path, so a single :class:`IPSet` can be shared between threads.
Set semantics (types, timeouts, matching) belong to ipset itself; extra
option tokens are handed over verbatim and a malformed pair surfaces as
:class:`ExecutionFailed` from the tool.

See http://ipset.netfilter.org/ipset.man.html for the subcommands.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .errors import BinaryNotFound, ExecutionFailed
from .system import find_cmd, run_cmd

logger = logging.getLogger(__name__)

BINARY_NAME = "ipset"
MEMBERS_MARKER = "Members:"


@dataclass(frozen=True)
class Invocation:
    """One finished run of the ipset binary."""

    path: str
    args: Tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def argv(self) -> List[str]:
        return [self.path, *self.args]

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class Membership(Enum):
    PRESENT = "present"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class MembershipResult:
    state: Membership
    detail: str = ""

    def __bool__(self) -> bool:
        return self.state is Membership.PRESENT


def parse_members(output: str) -> List[str]:
    """Return the entries printed after the ``Members:`` header.

    Blank lines are skipped, other lines are kept as printed. Output without
    a header yields an empty list.
    """
    lines = output.split("\n")
    for index, line in enumerate(lines):
        if line.strip() == MEMBERS_MARKER:
            break
    else:
        # MarkerNotFound -> empty result
        return []
    return [line for line in lines[index + 1:] if line.strip()]


@dataclass(frozen=True)
class IPSet:
    path: str
    options: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.path:
            raise ValueError("ipset binary path must not be empty")

    @classmethod
    def new(cls, binary: str = BINARY_NAME, options: Sequence[str] = ()) -> "IPSet":
        """Resolve ``binary`` on PATH and return a ready handle.

        Raises :class:`BinaryNotFound` if the lookup fails.
        """
        path = find_cmd(binary)
        if not path:
            raise BinaryNotFound(binary)
        logger.debug("Resolved %s to %s", binary, path)
        return cls(path, tuple(options))

    @classmethod
    def from_settings(cls, settings) -> "IPSet":
        return cls.new(settings.binary, settings.options)

    def invoke(self, *args: str) -> Invocation:
        """Run the binary with ``args`` and capture both output streams.

        A non-zero exit is reported through :attr:`Invocation.returncode`,
        not raised. Failing to start the process raises
        :class:`ExecutionFailed` with an empty message.
        """
        argv = [self.path, *args]
        logger.debug("Running: %s", " ".join(argv))
        try:
            r = run_cmd(argv)
        except OSError as e:
            logger.error("Failed to start %s: %s", self.path, e)
            raise ExecutionFailed("") from e
        return Invocation(
            path=self.path,
            args=tuple(args),
            returncode=r.returncode,
            stdout=r.stdout or "",
            stderr=r.stderr or "",
        )

    def _run(self, *args: str) -> str:
        inv = self.invoke(*args)
        if not inv.ok:
            logger.warning("%s exited with %d: %s", " ".join(inv.argv), inv.returncode, inv.stderr.strip())
            raise ExecutionFailed(inv.stderr, inv.returncode, inv.stdout)
        return inv.stdout

    def create(self, name: str, typ: str, *options: str) -> None:
        """Create a set of the given type.

        Extra options go in key, value order, e.g.
        ``create("test", "hash:ip", "timeout", "300")``.
        """
        self._run("create", name, typ, *options)

    def add(self, name: str, entry: str, *options: str) -> None:
        self._run("add", name, entry, *options)

    def add_unique(self, name: str, entry: str, *options: str) -> None:
        """Add ``entry`` unless it is already in the set."""
        self._run("add", name, entry, "-exist", *options)

    def delete(self, name: str, entry: str, *options: str) -> None:
        self._run("del", name, entry, *options)

    def test(self, name: str, entry: str, *options: str) -> None:
        """Raise :class:`ExecutionFailed` unless ``entry`` is in the set.

        An absent entry and a real error both raise; absent entries come
        with empty stderr. Use :meth:`check` to tell them apart.
        """
        self._run("test", name, entry, *options)

    def check(self, name: str, entry: str, *options: str) -> MembershipResult:
        inv = self.invoke("test", name, entry, *options)
        if inv.ok:
            return MembershipResult(Membership.PRESENT)
        if not inv.stderr.strip():
            return MembershipResult(Membership.ABSENT)
        return MembershipResult(Membership.FAILED, inv.stderr)

    def destroy(self, name: str) -> None:
        self._run("destroy", name)

    def save(self, name: str, filename: str) -> None:
        self._run("save", name, "-file", filename)

    def restore(self, filename: str) -> None:
        self._run("restore", "-file", filename)

    def flush(self, name: str) -> None:
        self._run("flush", name)

    def rename(self, from_: str, to: str) -> None:
        self._run("rename", from_, to)

    def swap(self, from_: str, to: str) -> None:
        """Exchange the contents of two existing sets."""
        self._run("swap", from_, to)

    def list(self, name: str) -> List[str]:
        """Return the members of ``name`` in the order ipset prints them.

        Output is parsed even when ipset fails; the partial list is then
        attached to the raised :class:`ExecutionFailed` as ``members``.
        """
        inv = self.invoke("list", name)
        members = parse_members(inv.stdout)
        if not inv.ok:
            logger.warning("%s exited with %d: %s", " ".join(inv.argv), inv.returncode, inv.stderr.strip())
            raise ExecutionFailed(inv.stderr, inv.returncode, inv.stdout, members)
        return members
