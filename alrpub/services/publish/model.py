from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

MANIFEST_DIR = "alire/releases"
MANIFEST_EXT = "toml"
BRANCH_PREFIX = "publish-"


@dataclass(frozen=True, slots=True)
class Milestone:
    """The index's release key, rendered ``name=version``."""

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}={self.version}"

    @property
    def label(self) -> str:
        return f"{self.name} {self.version}"


@dataclass(frozen=True, slots=True)
class PackageDescriptor:
    name: str
    version: str
    source_path: Path

    @property
    def milestone(self) -> Milestone:
        return Milestone(name=self.name, version=self.version)

    @property
    def manifest_path(self) -> Path:
        """Where ``alr publish`` leaves the generated manifest."""
        return self.source_path / MANIFEST_DIR / f"{self.name}-{self.version}.{MANIFEST_EXT}"

    @property
    def tag(self) -> str:
        return f"v{self.version}"


@dataclass(frozen=True, slots=True)
class IndexPlacement:
    classification_root: Path
    name: str

    @property
    def destination(self) -> Path:
        return self.classification_root / self.name[:2] / self.name


class ReviewStatus(Enum):
    PENDING = "pending"
    CHECKS_PASSED = "checks_passed"
    CHECKS_FAILED = "checks_failed"


@dataclass(frozen=True, slots=True)
class ReviewRequest:
    """The PR opened by ``alr publish``.

    ``log_reference`` is the output line that mentioned the PR url; it is what
    the operator is pointed at when checks fail or never finish.
    """

    id: int
    status: ReviewStatus
    log_reference: str
    log_path: Path


class MonitorState(Enum):
    PUBLISHING = "publishing"
    AWAITING_REVIEW = "awaiting_review"
    POLLING = "polling"
    CHECKS_PASSED = "checks_passed"
    CHECKS_FAILED = "checks_failed"
    TIMED_OUT = "timed_out"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


def branch_name(milestones: Sequence[Milestone]) -> str:
    """``publish-foo=1.0.0-bar=2.1.0`` for milestones in the given order."""
    if not milestones:
        raise ValueError("at least one milestone is required")
    return BRANCH_PREFIX + "-".join(str(m) for m in milestones)


def commit_message(milestones: Sequence[Milestone]) -> str:
    """``foo 1.0.0, bar 2.1.0`` for milestones in the given order."""
    return ", ".join(m.label for m in milestones)


def milestone_list(milestones: Sequence[Milestone]) -> str:
    return ", ".join(str(m) for m in milestones)
