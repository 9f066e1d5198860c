from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

GitRunner = Callable[..., str]


def _git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        check=True,
        capture_output=True,
        text=True,
    )
    return proc.stdout


@pytest.fixture
def run_git() -> GitRunner:
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return _git


@pytest.fixture
def git_identity(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate git from the user's config (signing, hooks, default branch)."""
    gitconfig = tmp_path / "gitconfig"
    gitconfig.write_text("", encoding="utf-8")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


@pytest.fixture
def index_upstream(tmp_path: Path, run_git: GitRunner, git_identity: None) -> Path:
    """A bare index repository whose default branch is ``stable``.

    Layout: ``index/aa/aaa/aaa-1.0.0.toml`` and ``index/li/libfoo/libfoo-0.1.0.toml``.
    """
    work = tmp_path / "upstream-work"
    work.mkdir()
    run_git(work, "init", "-q")
    run_git(work, "symbolic-ref", "HEAD", "refs/heads/stable")

    for rel, text in (
        ("index/aa/aaa/aaa-1.0.0.toml", 'name = "aaa"\nversion = "1.0.0"\n'),
        ("index/li/libfoo/libfoo-0.1.0.toml", 'name = "libfoo"\nversion = "0.1.0"\n'),
    ):
        path = work / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    run_git(work, "add", "-A")
    run_git(work, "commit", "-q", "-m", "initial index")

    bare = tmp_path / "upstream.git"
    run_git(tmp_path, "clone", "-q", "--bare", str(work), str(bare))
    return bare
