from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from alrpub.core.config import IndexConfig
from alrpub.core.result import Err, Ok, Result
from alrpub.git.repository import GitError, Repository
from alrpub.output.console import ConsoleProtocol, Style
from alrpub.services.publish.errors import PublishError


@dataclass(frozen=True, slots=True)
class IndexSession:
    """The local index clone and the branch being prepared in it."""

    root: Path
    repo: Repository
    default_branch: str | None = None
    branch: str | None = None


def _git_failed(e: GitError, *, message: str) -> PublishError:
    return PublishError(kind="git_failed", message=message, hint=e.message or None)


def ensure_index_clone(
    *,
    index_root: Path,
    index: IndexConfig,
    console: ConsoleProtocol,
) -> Result[IndexSession, PublishError]:
    """Clone the index, or bring an existing clone up to date on its default branch.

    Running this twice in a row leaves the clone unchanged.
    """
    repo = Repository(index_root)
    if not repo.exists():
        console.print(f"git clone {index.clone_url} {index_root}", Style.DIM)
        cloned = Repository.clone(index.clone_url, index_root)
        if isinstance(cloned, Err):
            return Err(_git_failed(cloned.error, message="failed to clone the community index"))
        return Ok(IndexSession(root=index_root, repo=cloned.value))

    console.print(f"using existing index clone: {index_root}", Style.DIM)
    default = repo.default_branch()
    if isinstance(default, Err):
        return Err(_git_failed(default.error, message="failed to resolve index default branch"))
    branch = default.value

    console.print(f"git checkout {branch}", Style.DIM)
    checkout = repo.checkout(branch)
    if isinstance(checkout, Err):
        return Err(_git_failed(checkout.error, message=f"failed to check out {branch}"))

    console.print("git pull --ff-only", Style.DIM)
    pulled = repo.pull_ff()
    if isinstance(pulled, Err):
        return Err(_git_failed(pulled.error, message=f"failed to update {branch}"))

    return Ok(IndexSession(root=index_root, repo=repo, default_branch=branch))


def start_branch(
    session: IndexSession,
    *,
    branch: str,
    console: ConsoleProtocol,
) -> Result[IndexSession, PublishError]:
    """Check out ``branch``, created or reset at the current HEAD."""
    if session.repo.has_branch(branch):
        console.warning(f"branch {branch} already exists and will be reset")

    console.print(f"git checkout -B {branch}", Style.DIM)
    result = session.repo.checkout_reset(branch)
    if isinstance(result, Err):
        return Err(_git_failed(result.error, message=f"failed to create branch: {branch}"))
    return Ok(replace(session, branch=branch))


def commit_all(
    session: IndexSession,
    *,
    message: str,
    console: ConsoleProtocol,
) -> Result[None, PublishError]:
    repo = session.repo
    console.print("git add -A", Style.DIM)
    added = repo.add_all()
    if isinstance(added, Err):
        return Err(_git_failed(added.error, message="git add failed"))

    staged = repo.has_staged_changes()
    if isinstance(staged, Err):
        return Err(_git_failed(staged.error, message="failed to inspect staged changes"))
    if not staged.value:
        return Err(
            PublishError(
                kind="nothing_to_commit",
                message="no manifest changes to commit",
                hint="The index already contains these manifests.",
            )
        )

    console.print(f"git commit -m {message!r}", Style.DIM)
    committed = repo.commit(message)
    if isinstance(committed, Err):
        hint = committed.error.message or "Configure git user.name/user.email, then retry."
        return Err(PublishError(kind="git_failed", message="git commit failed", hint=hint))
    return Ok(None)
