from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from alrpub.core.result import Err, Ok, Result
from alrpub.core.structured import as_str_dict, get_str
from alrpub.platform.process import ProcessError
from alrpub.platform.process import run as run_process
from alrpub.services.publish.errors import PublishError, PublishErrorKind
from alrpub.services.publish.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def run_gh_read(
    *,
    cwd: Path,
    cmd: list[str],
    kind: PublishErrorKind,
    message: str,
    hint: str | None = None,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, PublishError]:
    """Run a read-only gh command, retrying transient network failures."""
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=cwd, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and _is_transient_gh_error(error):
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(PublishError(kind=kind, message=message, hint=error.stderr.strip() or hint))

    return Err(PublishError(kind=kind, message=message, hint=hint))


@dataclass(frozen=True, slots=True)
class GhViewer:
    login: str


def ensure_gh_available() -> Result[None, PublishError]:
    if shutil.which("gh") is None:
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def current_user(*, cwd: Path) -> Result[GhViewer, PublishError]:
    result = run_gh_read(
        cwd=cwd,
        cmd=["gh", "api", "user"],
        kind="collaborator_unavailable",
        message="unable to get GitHub username",
        hint="Run: gh auth login",
    )
    if isinstance(result, Err):
        return result

    try:
        obj: object = json.loads(result.value)
    except json.JSONDecodeError as e:
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message=f"invalid JSON from gh api user: {e}",
            )
        )

    data = as_str_dict(obj)
    login = get_str(data, "login") if data is not None else None
    if login is None:
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message="missing user.login",
                hint="Run: gh auth login",
            )
        )
    return Ok(GhViewer(login=login))


def repo_exists(*, cwd: Path, repo: str) -> bool:
    result = run_process(
        ["gh", "repo", "view", repo, "--json", "name"],
        cwd=cwd,
        timeout=GH_TIMEOUT_SECONDS,
    )
    return isinstance(result, Ok)


def fork_repo(*, cwd: Path, upstream: str) -> Result[None, PublishError]:
    result = run_process(
        ["gh", "repo", "fork", upstream, "--clone=false"],
        cwd=cwd,
        timeout=GH_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message=f"failed to fork {upstream}",
                hint=result.error.stderr.strip() or None,
            )
        )
    return Ok(None)


def create_pull_request(
    *,
    cwd: Path,
    upstream: str,
    head: str,
    title: str,
    body: str,
) -> Result[str, PublishError]:
    """Open a PR on ``upstream`` from ``head`` (``owner:branch``); returns its url."""
    result = run_process(
        [
            "gh",
            "pr",
            "create",
            "--repo",
            upstream,
            "--head",
            head,
            "--title",
            title,
            "--body",
            body,
        ],
        cwd=cwd,
        timeout=GH_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message="failed to create pull request",
                hint=result.error.stderr.strip() or None,
            )
        )

    lines = [ln.strip() for ln in result.value.splitlines() if ln.strip()]
    return Ok(lines[-1] if lines else "")
