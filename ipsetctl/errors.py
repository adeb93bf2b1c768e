"""Exceptions raised by ipsetctl."""
from typing import List, Optional


class IPSetError(Exception):
    """Base exception for all ipsetctl errors."""

    pass


class BinaryNotFound(IPSetError):
    """The ipset executable could not be located on PATH."""

    def __init__(self, binary: str):
        super().__init__(f"{binary}: executable file not found in $PATH")
        self.binary = binary


class ExecutionFailed(IPSetError):
    """The ipset process exited non-zero or could not be started.

    The message is the captured stderr text, unmodified. ``members`` is only
    set by the list operation and holds whatever could be parsed from stdout.
    """

    def __init__(
        self,
        stderr: str,
        returncode: Optional[int] = None,
        stdout: str = "",
        members: Optional[List[str]] = None,
    ):
        super().__init__(stderr)
        self.stderr = stderr
        self.returncode = returncode
        self.stdout = stdout
        self.members = members

    def __str__(self) -> str:
        return self.stderr


class ConfigError(IPSetError):
    """Configuration-related errors."""

    pass
