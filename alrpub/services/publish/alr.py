from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Mapping
from pathlib import Path

from alrpub.core.result import Err, Ok, Result
from alrpub.platform.process import ProcessError
from alrpub.platform.process import run as run_process
from alrpub.platform.process import run_logged
from alrpub.services.publish.errors import PublishError, PublishErrorKind
from alrpub.services.publish.timeouts import (
    ALR_MANIFEST_TIMEOUT_SECONDS,
    ALR_QUERY_TIMEOUT_SECONDS,
)

GITHUB_LOGIN_SETTING = "user.github_login"
GH_TOKEN_ENV = "GH_TOKEN"


def _alr_error(
    e: ProcessError, *, kind: PublishErrorKind, message: str
) -> PublishError:
    hint = e.stderr.strip() or e.stdout.strip() or None
    return PublishError(kind=kind, message=message, hint=hint)


def ensure_alr_available() -> Result[None, PublishError]:
    if shutil.which("alr") is None:
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message="alr: missing",
                hint="Install Alire: https://alire.ada.dev/",
            )
        )
    return Ok(None)


def ensure_gh_token(env: Mapping[str, str] | None = None) -> Result[None, PublishError]:
    source = os.environ if env is None else env
    if not source.get(GH_TOKEN_ENV, "").strip():
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message=f"{GH_TOKEN_ENV} is not set",
                hint="Export a GitHub token with repo scope as GH_TOKEN.",
            )
        )
    return Ok(None)


def ensure_github_login(*, crate_root: Path) -> Result[str, PublishError]:
    """Return the GitHub login alr will publish as."""
    hint = f"Run: alr settings --global --set {GITHUB_LOGIN_SETTING} <your login>"
    result = run_process(
        ["alr", "settings", "--global", "--get", GITHUB_LOGIN_SETTING],
        cwd=crate_root,
        timeout=ALR_QUERY_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message="GitHub login is not set",
                hint=hint,
            )
        )

    login = result.value.strip()
    if not login or "not defined" in login:
        return Err(
            PublishError(
                kind="collaborator_unavailable",
                message="GitHub login is not set",
                hint=hint,
            )
        )
    return Ok(login)


def show_json(*, crate_root: Path) -> Result[str, PublishError]:
    result = run_process(
        ["alr", "--format=JSON", "show"],
        cwd=crate_root,
        timeout=ALR_QUERY_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            _alr_error(
                result.error,
                kind="invalid_package",
                message=f"not a valid crate: {crate_root}",
            )
        )
    return Ok(result.value)


def show_text(*, crate_root: Path) -> Result[str, PublishError]:
    result = run_process(["alr", "show"], cwd=crate_root, timeout=ALR_QUERY_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            _alr_error(
                result.error,
                kind="invalid_package",
                message=f"not a valid crate: {crate_root}",
            )
        )
    return Ok(result.value)


def generate_manifest(*, crate_root: Path) -> Result[None, PublishError]:
    """Write the release manifest locally without building or submitting."""
    result = run_process(
        ["alr", "-n", "-q", "publish", "--skip-build", "--skip-submit"],
        cwd=crate_root,
        timeout=ALR_MANIFEST_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            _alr_error(
                result.error,
                kind="publish_action_failed",
                message=f"alr publish failed in {crate_root}",
            )
        )
    return Ok(None)


def publish_release(
    *,
    crate_root: Path,
    log_path: Path,
    force: bool,
    skip_build: bool,
    echo: Callable[[str], None] | None = None,
) -> Result[str, PublishError]:
    """Run a full ``alr publish`` (opens the PR) and return its output."""
    cmd = ["alr", "-n"]
    if force:
        cmd.append("--force")
    cmd.append("publish")
    if skip_build:
        cmd.append("--skip-build")

    result = run_logged(cmd, cwd=crate_root, log_path=log_path, echo=echo)
    if isinstance(result, Err):
        e = result.error
        return Err(
            PublishError(
                kind="publish_action_failed",
                message=f"alr publish failed (exit {e.returncode})",
                hint=e.stderr.strip() or f"see {log_path}",
            )
        )
    return Ok(result.value)


def publish_status(*, crate_root: Path) -> Result[str, PublishError]:
    result = run_process(
        ["alr", "publish", "--status"],
        cwd=crate_root,
        timeout=ALR_QUERY_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            _alr_error(
                result.error,
                kind="collaborator_unavailable",
                message="alr publish --status failed",
            )
        )
    return Ok(result.value)


def request_review(*, crate_root: Path, pr_id: int) -> Result[None, PublishError]:
    result = run_process(
        ["alr", "publish", f"--request-review={pr_id}"],
        cwd=crate_root,
        timeout=ALR_QUERY_TIMEOUT_SECONDS,
    )
    if isinstance(result, Err):
        return Err(
            _alr_error(
                result.error,
                kind="review_promotion_failed",
                message=f"failed to request review for PR {pr_id}",
            )
        )
    return Ok(None)
