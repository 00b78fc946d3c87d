"""Shared type definitions for frontbuild.

This module contains enums and dataclasses shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class BuildKind(str, Enum):
    """What the build target directory turned out to be."""

    APP = "app"
    MODULE = "module"
    NONE = "none"


class OutcomeStatus(str, Enum):
    """Classified result of one compiler run."""

    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"


class Stage(str, Enum):
    """Compilation stage."""

    VENDOR = "vendor"
    MAIN = "main"


@dataclass
class BuildOutcome:
    """Result of a single stage.

    Attributes:
        status: Success, warning or failure.
        messages: Warning messages (all of them) or the single error message.
    """

    status: OutcomeStatus
    messages: list[str] = field(default_factory=list)

    @classmethod
    def success(cls) -> "BuildOutcome":
        return cls(OutcomeStatus.SUCCESS)

    @classmethod
    def warning(cls, messages: list[str]) -> "BuildOutcome":
        return cls(OutcomeStatus.WARNING, list(messages))

    @classmethod
    def failure(cls, messages: list[str]) -> "BuildOutcome":
        return cls(OutcomeStatus.FAILURE, list(messages))

    @property
    def ok(self) -> bool:
        """True when the stage produced no errors and no warnings."""
        return self.status == OutcomeStatus.SUCCESS


@dataclass
class BuildReport:
    """Everything one invocation of the orchestrator did.

    Attributes:
        kind: Detected build target kind.
        modules: Modules selected for this run.
        vendor: Vendor stage outcome, None if the stage did not run.
        main: Main stage outcome, None if the stage did not run.
    """

    kind: BuildKind
    modules: list[str] = field(default_factory=list)
    vendor: BuildOutcome | None = None
    main: BuildOutcome | None = None

    @property
    def succeeded(self) -> bool:
        """True when the main stage ran and did not fail."""
        if self.main is None:
            return False
        return self.main.status != OutcomeStatus.FAILURE


__all__ = [
    "BuildKind",
    "BuildOutcome",
    "BuildReport",
    "OutcomeStatus",
    "Stage",
]
