"""
Types used by the shell completion subsystem.
"""

from dataclasses import dataclass
from enum import Enum

from probescope.core.errors import UnsupportedShellError


class ShellKind(str, Enum):
    """Shells with dynamic completion support."""
    BASH = "bash"
    ZSH = "zsh"

    @classmethod
    def parse(cls, name: str) -> "ShellKind":
        """
        Resolve a shell name (case insensitive).

        Raises:
            UnsupportedShellError: For any shell other than bash or zsh
        """
        try:
            return cls(name.lower())
        except ValueError:
            raise UnsupportedShellError(
                f"Only {' and '.join(s.value for s in cls)} are supported for "
                f"autocompletion, got '{name}'"
            ) from None


SUPPORTED_SHELLS = [shell.value for shell in ShellKind]


class CompleteKind(str, Enum):
    """What the ``complete`` command produces."""
    GenerateScript = "script"
    ChipList = "chip-list"
    ProbeList = "probe-list"


@dataclass
class CompletionRequest:
    """One invocation of ``<prog> complete <shell> <kind> <prefix>``."""
    shell: ShellKind
    kind: CompleteKind
    prefix: str = ""
    prog_name: str = "probescope"
