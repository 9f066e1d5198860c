"""Error payload for the publication workflows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PublishErrorKind = Literal[
    "invalid_input",
    "invalid_package",
    "layout_discovery_failed",
    "placement_failed",
    "manifest_not_found",
    "nothing_to_commit",
    "publish_action_failed",
    "review_request_id_not_found",
    "checks_failed",
    "timed_out",
    "review_promotion_failed",
    "remote_ambiguous",
    "tag_failed",
    "tag_push_failed",
    "git_failed",
    "collaborator_unavailable",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    """A fatal condition. ``hint`` carries the PR reference for review errors."""

    kind: PublishErrorKind
    message: str
    hint: str | None = None
