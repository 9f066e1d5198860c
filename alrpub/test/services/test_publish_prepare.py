from __future__ import annotations

import json
from pathlib import Path

import pytest

from alrpub.core.config import IndexConfig
from alrpub.core.result import Err, Ok, Result
from alrpub.git.repository import GitError
from alrpub.output.console import MockConsole
from alrpub.services.publish import crate as crate_mod
from alrpub.services.publish import prepare as prepare_mod
from alrpub.services.publish.errors import PublishError
from alrpub.services.publish.gh import GhViewer
from alrpub.services.publish.index_repo import IndexSession
from alrpub.services.publish.model import Milestone


def _crate(tmp_path: Path, name: str, version: str) -> Path:
    root = tmp_path / "crates" / name
    root.mkdir(parents=True)
    (root / "crate.json").write_text(
        json.dumps({"name": name, "version": version}), encoding="utf-8"
    )
    return root


def _fake_alr(monkeypatch: pytest.MonkeyPatch, *, write_manifest: bool = True) -> list[Path]:
    """Fake `alr show` from crate.json and `alr publish` writing the manifest."""
    generated: list[Path] = []

    def fake_show_json(*, crate_root: Path) -> Result[str, PublishError]:
        return Ok((crate_root / "crate.json").read_text(encoding="utf-8"))

    def fake_generate(*, crate_root: Path) -> Result[None, PublishError]:
        generated.append(crate_root)
        if write_manifest:
            info = json.loads((crate_root / "crate.json").read_text(encoding="utf-8"))
            manifest = crate_root / "alire" / "releases" / f"{info['name']}-{info['version']}.toml"
            manifest.parent.mkdir(parents=True, exist_ok=True)
            manifest.write_text(
                f'name = "{info["name"]}"\nversion = "{info["version"]}"\n', encoding="utf-8"
            )
        return Ok(None)

    monkeypatch.setattr(prepare_mod, "ensure_alr_available", lambda: Ok(None))
    monkeypatch.setattr(crate_mod, "show_json", fake_show_json)
    monkeypatch.setattr(prepare_mod, "generate_manifest", fake_generate)
    return generated


def _never_asked(question: str) -> bool:
    raise AssertionError(f"unexpected prompt: {question}")


def test_prepare_two_crates_one_commit(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, index_upstream: Path, run_git
) -> None:
    _fake_alr(monkeypatch)
    foo = _crate(tmp_path, "foo", "1.0.0")
    bar = _crate(tmp_path, "bar", "2.1.0")
    index_root = tmp_path / "alire-index"
    asked: list[str] = []

    def decline(question: str) -> bool:
        asked.append(question)
        return False

    result = prepare_mod.prepare_releases(
        crate_paths=[foo, bar],
        index_root=index_root,
        index=IndexConfig(url=str(index_upstream)),
        console=MockConsole(),
        confirm_push=decline,
        confirm_pr=_never_asked,
    )

    assert isinstance(result, Ok)
    outcome = result.value
    assert outcome.branch == "publish-foo=1.0.0-bar=2.1.0"
    assert outcome.commit_message == "foo 1.0.0, bar 2.1.0"
    assert outcome.pushed is False
    assert len(asked) == 1

    assert run_git(index_root, "rev-parse", "--abbrev-ref", "HEAD").strip() == outcome.branch
    assert run_git(index_root, "log", "-1", "--format=%s").strip() == "foo 1.0.0, bar 2.1.0"
    changed = run_git(index_root, "show", "--name-only", "--format=", "HEAD").split()
    assert sorted(changed) == [
        "index/ba/bar/bar-2.1.0.toml",
        "index/fo/foo/foo-1.0.0.toml",
    ]
    # Package-local manifests are left in place.
    assert (foo / "alire" / "releases" / "foo-1.0.0.toml").is_file()


def test_prepare_missing_manifest_aborts_batch(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, index_upstream: Path, run_git
) -> None:
    generated = _fake_alr(monkeypatch, write_manifest=False)
    foo = _crate(tmp_path, "foo", "1.0.0")
    bar = _crate(tmp_path, "bar", "2.1.0")
    index_root = tmp_path / "alire-index"

    result = prepare_mod.prepare_releases(
        crate_paths=[foo, bar],
        index_root=index_root,
        index=IndexConfig(url=str(index_upstream)),
        console=MockConsole(),
        confirm_push=_never_asked,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "manifest_not_found"
    assert generated == [foo.resolve()]
    # The branch is left for inspection.
    branch = run_git(index_root, "rev-parse", "--abbrev-ref", "HEAD").strip()
    assert branch == "publish-foo=1.0.0-bar=2.1.0"


def test_prepare_layout_failure_touches_nothing(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, index_upstream: Path, run_git
) -> None:
    generated = _fake_alr(monkeypatch)
    foo = _crate(tmp_path, "foo", "1.0.0")
    index_root = tmp_path / "alire-index"

    result = prepare_mod.prepare_releases(
        crate_paths=[foo],
        index_root=index_root,
        index=IndexConfig(url=str(index_upstream), sentinel="zz"),
        console=MockConsole(),
        confirm_push=_never_asked,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "layout_discovery_failed"
    assert generated == []
    assert run_git(index_root, "rev-parse", "--abbrev-ref", "HEAD").strip() == "stable"


def test_prepare_existing_manifest_is_nothing_to_commit(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, index_upstream: Path
) -> None:
    _fake_alr(monkeypatch)
    # Same content as the manifest already in the upstream index.
    aaa = _crate(tmp_path, "aaa", "1.0.0")

    result = prepare_mod.prepare_releases(
        crate_paths=[aaa],
        index_root=tmp_path / "alire-index",
        index=IndexConfig(url=str(index_upstream)),
        console=MockConsole(),
        confirm_push=_never_asked,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "nothing_to_commit"


def test_prepare_requires_paths(tmp_path: Path) -> None:
    result = prepare_mod.prepare_releases(
        crate_paths=[],
        index_root=tmp_path / "alire-index",
        index=IndexConfig(),
        console=MockConsole(),
    )
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"


def test_prepare_requires_alr(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    generated = _fake_alr(monkeypatch)
    monkeypatch.setattr(
        prepare_mod,
        "ensure_alr_available",
        lambda: Err(PublishError(kind="collaborator_unavailable", message="alr: missing")),
    )
    foo = _crate(tmp_path, "foo", "1.0.0")
    index_root = tmp_path / "alire-index"

    result = prepare_mod.prepare_releases(
        crate_paths=[foo],
        index_root=index_root,
        index=IndexConfig(url=str(tmp_path / "unused")),
        console=MockConsole(),
        confirm_push=_never_asked,
    )

    assert isinstance(result, Err)
    assert result.error.kind == "collaborator_unavailable"
    assert generated == []
    assert not index_root.exists()


class _FakeIndexRepo:
    def __init__(self) -> None:
        self.remotes: dict[str, str] = {}
        self.pushed: list[tuple[str, str, bool]] = []

    def add_remote(self, name: str, url: str) -> Result[bool, GitError]:
        if name in self.remotes:
            return Ok(False)
        self.remotes[name] = url
        return Ok(True)

    def push(self, remote: str, ref: str, *, set_upstream: bool = False) -> Result[None, GitError]:
        self.pushed.append((remote, ref, set_upstream))
        return Ok(None)


def _fake_gh(monkeypatch: pytest.MonkeyPatch, *, fork_exists: bool) -> dict[str, list[object]]:
    calls: dict[str, list[object]] = {"fork": [], "pr": []}

    monkeypatch.setattr(prepare_mod, "ensure_gh_available", lambda: Ok(None))
    monkeypatch.setattr(prepare_mod, "current_user", lambda *, cwd: Ok(GhViewer(login="octocat")))
    monkeypatch.setattr(prepare_mod, "repo_exists", lambda *, cwd, repo: fork_exists)

    def fake_fork(*, cwd: Path, upstream: str) -> Result[None, PublishError]:
        calls["fork"].append(upstream)
        return Ok(None)

    def fake_pr(**kwargs: object) -> Result[str, PublishError]:
        calls["pr"].append(kwargs)
        return Ok("https://github.com/alire-project/alire-index/pull/9")

    monkeypatch.setattr(prepare_mod, "fork_repo", fake_fork)
    monkeypatch.setattr(prepare_mod, "create_pull_request", fake_pr)
    return calls


def test_submit_creates_fork_pushes_and_opens_pr(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls = _fake_gh(monkeypatch, fork_exists=False)
    repo = _FakeIndexRepo()
    session = IndexSession(root=tmp_path, repo=repo, branch="publish-foo=1.0.0-bar=2.1.0")  # type: ignore[arg-type]
    outcome = prepare_mod.PrepareOutcome(
        branch="publish-foo=1.0.0-bar=2.1.0",
        commit_message="foo 1.0.0, bar 2.1.0",
        manifests=(),
    )

    result = prepare_mod.submit_to_fork(
        session,
        outcome=outcome,
        milestones=[Milestone("foo", "1.0.0"), Milestone("bar", "2.1.0")],
        index=IndexConfig(),
        console=MockConsole(),
        confirm_pr=lambda question: True,
    )

    assert isinstance(result, Ok)
    assert result.value.pushed is True
    assert result.value.pr_url == "https://github.com/alire-project/alire-index/pull/9"
    assert calls["fork"] == ["alire-project/alire-index"]
    assert repo.remotes == {"octocat": "https://github.com/octocat/alire-index.git"}
    assert repo.pushed == [("octocat", "publish-foo=1.0.0-bar=2.1.0", True)]
    assert calls["pr"] == [
        {
            "cwd": tmp_path,
            "upstream": "alire-project/alire-index",
            "head": "octocat:publish-foo=1.0.0-bar=2.1.0",
            "title": "Publish: foo=1.0.0, bar=2.1.0",
            "body": "Adding manifests for: foo=1.0.0, bar=2.1.0",
        }
    ]


def test_submit_tolerates_existing_remote_and_skips_pr(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    calls = _fake_gh(monkeypatch, fork_exists=True)
    repo = _FakeIndexRepo()
    repo.remotes["octocat"] = "https://github.com/octocat/alire-index.git"
    session = IndexSession(root=tmp_path, repo=repo)  # type: ignore[arg-type]
    outcome = prepare_mod.PrepareOutcome(branch="publish-foo=1.0.0", commit_message="", manifests=())

    result = prepare_mod.submit_to_fork(
        session,
        outcome=outcome,
        milestones=[Milestone("foo", "1.0.0")],
        index=IndexConfig(),
        console=MockConsole(),
    )

    assert isinstance(result, Ok)
    assert result.value.pushed is True
    assert result.value.pr_url is None
    assert calls["fork"] == []
    assert calls["pr"] == []
