"""Git repository abstraction.

This module provides the Repository class used for both the index clone and
the crate's own clone. All operations return Result types.

Usage:
    repo = Repository(Path("alire-index"))

    match repo.default_branch():
        case Ok(branch):
            repo.checkout(branch)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from alrpub.core.result import Err, Ok, Result
from alrpub.platform.process import ProcessError
from alrpub.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_GIT_CLONE_TIMEOUT_SECONDS = 15 * 60.0

_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "ls-remote"})

__all__ = ["GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, e: ProcessError) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
        returncode=e.returncode,
    )


class Repository:
    """A local git clone.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def clone(cls, url: str, dest: Path) -> Result[Repository, GitError]:
        """Clone ``url`` into ``dest`` (which must not exist yet)."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        result = run_process(
            ["git", "clone", url, str(dest)],
            cwd=dest.parent,
            timeout=_GIT_CLONE_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(_git_error("clone", result.error))
        return Ok(cls(dest))

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def default_branch(self, remote: str = "origin") -> Result[str, GitError]:
        """Ask the remote which branch its HEAD points to.

        Parses ``git ls-remote --symref <remote> HEAD``, whose first line reads
        ``ref: refs/heads/<branch>\\tHEAD``.
        """
        result = self._run(["ls-remote", "--symref", remote, "HEAD"])
        if isinstance(result, Err):
            return Err(_git_error("ls-remote", result.error))

        for line in result.value.splitlines():
            if not line.startswith("ref:"):
                continue
            ref = line[len("ref:") :].split("\t", 1)[0].strip()
            prefix = "refs/heads/"
            if ref.startswith(prefix) and len(ref) > len(prefix):
                return Ok(ref[len(prefix) :])

        return Err(
            GitError(
                command="ls-remote",
                message=f"could not determine default branch of {remote}",
            )
        )

    def has_branch(self, branch: str) -> bool:
        """True if a local branch with this name exists."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"])
        return isinstance(result, Ok)

    def checkout(self, branch: str) -> Result[None, GitError]:
        return self._simple(["checkout", branch])

    def checkout_reset(self, branch: str) -> Result[None, GitError]:
        """Create ``branch`` at HEAD, or reset it there if it already exists."""
        return self._simple(["checkout", "-B", branch])

    def pull_ff(self) -> Result[str, GitError]:
        """Pull with fast-forward only. Up to date is success."""
        result = self._run(["pull", "--ff-only"])
        if isinstance(result, Err):
            return Err(_git_error("pull --ff-only", result.error))
        return Ok(result.value.strip())

    def add_all(self) -> Result[None, GitError]:
        return self._simple(["add", "-A"])

    def has_staged_changes(self) -> Result[bool, GitError]:
        """True if the index differs from HEAD."""
        result = self._run(["diff", "--cached", "--quiet"])
        if isinstance(result, Ok):
            return Ok(False)
        if result.error.returncode == 1:
            return Ok(True)
        return Err(_git_error("diff --cached", result.error))

    def commit(self, message: str) -> Result[None, GitError]:
        return self._simple(["commit", "-m", message])

    def remotes(self) -> Result[list[str], GitError]:
        result = self._run(["remote"])
        if isinstance(result, Err):
            return Err(_git_error("remote", result.error))
        return Ok([ln.strip() for ln in result.value.splitlines() if ln.strip()])

    def add_remote(self, name: str, url: str) -> Result[bool, GitError]:
        """Add a remote. Returns Ok(False) if it was already configured."""
        existing = self.remotes()
        if isinstance(existing, Err):
            return existing
        if name in existing.value:
            return Ok(False)

        result = self._run(["remote", "add", name, url])
        if isinstance(result, Err):
            if "already exists" in result.error.stderr:
                return Ok(False)
            return Err(_git_error("remote add", result.error))
        return Ok(True)

    def push(self, remote: str, ref: str, *, set_upstream: bool = False) -> Result[None, GitError]:
        args = ["push", "-u", remote, ref] if set_upstream else ["push", remote, ref]
        return self._simple(args)

    def fetch_tags(self, remote: str) -> Result[None, GitError]:
        return self._simple(["fetch", "--tags", remote])

    def has_tag(self, tag: str) -> Result[bool, GitError]:
        result = self._run(["tag", "-l", tag])
        if isinstance(result, Err):
            return Err(_git_error("tag -l", result.error))
        return Ok(any(ln.strip() == tag for ln in result.value.splitlines()))

    def create_signed_tag(self, tag: str, message: str) -> Result[None, GitError]:
        """Create a GPG-signed annotated tag at HEAD."""
        return self._simple(["tag", "-s", tag, "-m", message])

    def _simple(self, args: list[str]) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(" ".join(args[:2]), result.error))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
