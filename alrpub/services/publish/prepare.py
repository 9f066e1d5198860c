"""Prepare several releases as one change in the community index.

Useful when the releases depend on each other: they are reviewed and merged
together instead of waiting for each dependency to land first.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from pathlib import Path

from alrpub.core.config import IndexConfig
from alrpub.core.result import Err, Ok, Result
from alrpub.output.console import ConsoleProtocol, Style
from alrpub.services.publish.alr import ensure_alr_available, generate_manifest
from alrpub.services.publish.crate import resolve_crates
from alrpub.services.publish.errors import PublishError
from alrpub.services.publish.gh import (
    create_pull_request,
    current_user,
    ensure_gh_available,
    fork_repo,
    repo_exists,
)
from alrpub.services.publish.index_repo import (
    IndexSession,
    commit_all,
    ensure_index_clone,
    start_branch,
)
from alrpub.services.publish.layout import (
    discover_classification_root,
    place_manifest,
    placement_for,
)
from alrpub.services.publish.model import (
    IndexPlacement,
    Milestone,
    PackageDescriptor,
    branch_name,
    commit_message,
    milestone_list,
)

Confirm = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class PrepareOutcome:
    branch: str
    commit_message: str
    manifests: tuple[Path, ...]
    pushed: bool = False
    pr_url: str | None = None


def never(question: str) -> bool:
    del question
    return False


def prepare_releases(
    *,
    crate_paths: Sequence[Path],
    index_root: Path,
    index: IndexConfig,
    console: ConsoleProtocol,
    confirm_push: Confirm = never,
    confirm_pr: Confirm = never,
) -> Result[PrepareOutcome, PublishError]:
    if not crate_paths:
        return Err(
            PublishError(kind="invalid_input", message="at least one crate path must be provided")
        )

    available = ensure_alr_available()
    if isinstance(available, Err):
        return available

    session_r = ensure_index_clone(index_root=index_root, index=index, console=console)
    if isinstance(session_r, Err):
        return session_r
    session = session_r.value

    crates_r = resolve_crates(list(crate_paths))
    if isinstance(crates_r, Err):
        return crates_r
    crates = crates_r.value
    for crate in crates:
        console.print(f"found crate: {crate.milestone} ({crate.source_path})", Style.DIM)

    # Every placement is resolved before the index is touched.
    root_r = discover_classification_root(session.root, sentinel=index.sentinel)
    if isinstance(root_r, Err):
        return root_r
    placements: list[IndexPlacement] = []
    for crate in crates:
        placement = placement_for(root_r.value, crate.name)
        if isinstance(placement, Err):
            return placement
        placements.append(placement.value)

    milestones = [c.milestone for c in crates]
    branch = branch_name(milestones)
    message = commit_message(milestones)

    branched = start_branch(session, branch=branch, console=console)
    if isinstance(branched, Err):
        return branched
    session = branched.value

    manifests: list[Path] = []
    for crate, placement in zip(crates, placements, strict=True):
        placed = _add_manifest(crate, placement, console=console)
        if isinstance(placed, Err):
            return placed
        manifests.append(placed.value)

    committed = commit_all(session, message=message, console=console)
    if isinstance(committed, Err):
        return committed
    console.success(f"committed {message} on {branch}")

    outcome = PrepareOutcome(branch=branch, commit_message=message, manifests=tuple(manifests))
    if not confirm_push("Push these changes to your fork on GitHub?"):
        return Ok(outcome)

    return submit_to_fork(
        session,
        outcome=outcome,
        milestones=milestones,
        index=index,
        console=console,
        confirm_pr=confirm_pr,
    )


def _add_manifest(
    crate: PackageDescriptor,
    placement: IndexPlacement,
    *,
    console: ConsoleProtocol,
) -> Result[Path, PublishError]:
    console.header(f"Publishing {crate.milestone}")
    console.print(f"alr publish --skip-build --skip-submit ({crate.source_path})", Style.DIM)
    generated = generate_manifest(crate_root=crate.source_path)
    if isinstance(generated, Err):
        return generated

    manifest = crate.manifest_path
    if not manifest.is_file():
        return Err(
            PublishError(
                kind="manifest_not_found",
                message=f"no manifest found after publishing {crate.milestone}",
                hint=str(manifest),
            )
        )

    placed = place_manifest(manifest, placement)
    if isinstance(placed, Err):
        return placed
    console.print(f"copied {manifest.name} -> {placement.destination}", Style.DIM)
    return placed


def submit_to_fork(
    session: IndexSession,
    *,
    outcome: PrepareOutcome,
    milestones: Sequence[Milestone],
    index: IndexConfig,
    console: ConsoleProtocol,
    confirm_pr: Confirm = never,
) -> Result[PrepareOutcome, PublishError]:
    """Push the prepared branch to the operator's fork, optionally opening a PR."""
    available = ensure_gh_available()
    if isinstance(available, Err):
        return available

    who = current_user(cwd=session.root)
    if isinstance(who, Err):
        return who
    login = who.value.login

    fork = f"{login}/{index.repo_name}"
    if not repo_exists(cwd=session.root, repo=fork):
        console.info(f"no fork of {index.repo_slug} found, creating {fork}")
        forked = fork_repo(cwd=session.root, upstream=index.repo_slug)
        if isinstance(forked, Err):
            return forked

    added = session.repo.add_remote(login, f"https://github.com/{fork}.git")
    if isinstance(added, Err):
        return Err(
            PublishError(
                kind="git_failed",
                message="failed to add fork remote",
                hint=added.error.message,
            )
        )

    console.print(f"git push -u {login} {outcome.branch}", Style.DIM)
    pushed = session.repo.push(login, outcome.branch, set_upstream=True)
    if isinstance(pushed, Err):
        return Err(
            PublishError(kind="git_failed", message="git push failed", hint=pushed.error.message)
        )
    outcome = replace(outcome, pushed=True)

    if not confirm_pr("Create a pull request to the community index?"):
        return Ok(outcome)

    listed = milestone_list(milestones)
    pr = create_pull_request(
        cwd=session.root,
        upstream=index.repo_slug,
        head=f"{login}:{outcome.branch}",
        title=f"Publish: {listed}",
        body=f"Adding manifests for: {listed}",
    )
    if isinstance(pr, Err):
        return pr
    console.success(f"pull request created: {pr.value}")
    return Ok(replace(outcome, pr_url=pr.value))
