"""Core domain models for cmdbridge.

These models describe the command every session runs and the summary
each session reports when it ends.
"""

from __future__ import annotations

import shutil
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CommandSpec(BaseModel):
    """The program each session spawns, resolved once at startup.

    ``argv`` is passed to the child unchanged, so ``argv[0]`` is the
    name the user typed while ``path`` is what actually gets executed.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Resolved path of the executable")
    argv: tuple[str, ...] = Field(description="Argument vector, including argv[0]")

    @field_validator("argv")
    @classmethod
    def _argv_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("argv must contain at least the program name")
        return value

    @classmethod
    def resolve(cls, argv: Sequence[str]) -> CommandSpec:
        """Look up ``argv[0]`` on PATH and build a CommandSpec.

        Raises:
            ValueError: If argv is empty or the program cannot be found.
        """
        if not argv:
            raise ValueError("must specify at least one argument")
        path = shutil.which(argv[0])
        if path is None:
            raise ValueError(f"executable file not found in $PATH: {argv[0]}")
        return cls(path=path, argv=tuple(argv))

    @property
    def display(self) -> str:
        return " ".join(self.argv)


class SessionResult(BaseModel):
    """What happened during one bridged session."""

    command: str
    started: bool = Field(default=False, description="Whether the child was spawned")
    pid: int | None = None
    returncode: int | None = None
    interrupted: bool = Field(default=False, description="SIGINT was delivered")
    killed: bool = Field(default=False, description="SIGKILL was delivered")
    messages_in: int = Field(default=0, ge=0, description="Messages written to stdin")
    lines_out: int = Field(default=0, ge=0, description="Lines sent to the peer")
