"""Package-specific exception types."""

from __future__ import annotations


class SliceNotFoundError(LookupError):
    """Raised when a snippet has no slice with the requested name.

    Args:
        name: Requested slice name.
        available: Slice names the snippet does define.
    """

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if not self.available:
            return f"No slice named '{self.name}' (snippet defines no slices)"
        return f"No slice named '{self.name}' (available: {', '.join(self.available)})"


class DoccError(Exception):
    """Base class for failures around the external `docc` compiler."""


class DoccNotFoundError(DoccError):
    """Raised when no `docc` executable can be located."""


class DoccInvocationError(DoccError):
    """Raised when a `docc` invocation exits with a nonzero or abnormal status.

    Args:
        returncode: Exit status of the process; negative when it was killed by
            a signal.
        action: The `docc` subcommand that was run.
    """

    def __init__(self, returncode: int, action: str):
        self.returncode = returncode
        self.action = action
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.returncode < 0:
            return f"'docc {self.action}' invocation was terminated by signal {-self.returncode}"
        return (
            f"'docc {self.action}' invocation failed with a nonzero exit code: "
            f"'{self.returncode}'"
        )
