from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from alrpub.core.result import Err, Ok, Result
from alrpub.platform.process import ProcessError
from alrpub.services.publish import alr as alr_mod


def _err(cmd: list[str], *, stdout: str = "", stderr: str = "", returncode: int = 1):
    return Err(ProcessError(command=tuple(cmd), returncode=returncode, stdout=stdout, stderr=stderr))


def test_publish_release_forwards_modifiers(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_logged(
        cmd: list[str],
        cwd: Path,
        *,
        log_path: Path,
        echo: Callable[[str], None] | None = None,
    ) -> Result[str, ProcessError]:
        del cwd, log_path, echo
        calls.append(cmd)
        return Ok("done\n")

    monkeypatch.setattr(alr_mod, "run_logged", fake_logged)

    alr_mod.publish_release(
        crate_root=tmp_path, log_path=tmp_path / "log", force=True, skip_build=True
    )
    alr_mod.publish_release(
        crate_root=tmp_path, log_path=tmp_path / "log", force=False, skip_build=False
    )

    assert calls == [
        ["alr", "-n", "--force", "publish", "--skip-build"],
        ["alr", "-n", "publish"],
    ]


def test_publish_release_failure_is_publish_action_failed(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_logged(cmd: list[str], cwd: Path, **_: object):
        del cwd
        return _err(cmd, stdout="https://x/pull/5 for details\n", returncode=2)

    monkeypatch.setattr(alr_mod, "run_logged", fake_logged)

    result = alr_mod.publish_release(
        crate_root=tmp_path, log_path=tmp_path / "log", force=False, skip_build=False
    )
    assert isinstance(result, Err)
    assert result.error.kind == "publish_action_failed"
    assert "exit 2" in result.error.message


def test_generate_manifest_uses_skip_submit(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd, timeout
        calls.append(cmd)
        return Ok("")

    monkeypatch.setattr(alr_mod, "run_process", fake_run)

    assert isinstance(alr_mod.generate_manifest(crate_root=tmp_path), Ok)
    assert calls == [["alr", "-n", "-q", "publish", "--skip-build", "--skip-submit"]]


def test_request_review_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd, timeout
        calls.append(cmd)
        return _err(cmd, stderr="not a draft")

    monkeypatch.setattr(alr_mod, "run_process", fake_run)

    result = alr_mod.request_review(crate_root=tmp_path, pr_id=42)
    assert calls == [["alr", "publish", "--request-review=42"]]
    assert isinstance(result, Err)
    assert result.error.kind == "review_promotion_failed"


def test_github_login_not_defined(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd, timeout
        return Ok("Setting key user.github_login is not defined\n")

    monkeypatch.setattr(alr_mod, "run_process", fake_run)

    result = alr_mod.ensure_github_login(crate_root=tmp_path)
    assert isinstance(result, Err)
    assert result.error.kind == "collaborator_unavailable"


def test_github_login_defined(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        alr_mod, "run_process", lambda cmd, *, cwd, timeout=None: Ok("octocat\n")
    )

    result = alr_mod.ensure_github_login(crate_root=tmp_path)
    assert isinstance(result, Ok)
    assert result.value == "octocat"


def test_gh_token_required() -> None:
    assert isinstance(alr_mod.ensure_gh_token({}), Err)
    assert isinstance(alr_mod.ensure_gh_token({"GH_TOKEN": "  "}), Err)
    assert isinstance(alr_mod.ensure_gh_token({"GH_TOKEN": "ghp_x"}), Ok)


def test_alr_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(alr_mod.shutil, "which", lambda name: None)
    result = alr_mod.ensure_alr_available()
    assert isinstance(result, Err)
    assert result.error.kind == "collaborator_unavailable"
