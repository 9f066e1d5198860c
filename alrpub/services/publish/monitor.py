"""Publish one release and supervise its PR until checks conclude.

States run in this order, with ``failed`` reachable from any of them:

    publishing -> awaiting_review -> polling -> checks_passed -> finalizing -> done
                                             -> checks_failed
                                             -> timed_out

Only ``checks_passed`` leads to ``finalizing`` (review request, signed tag,
tag push). A pending or unrecognized status keeps polling until the timeout,
so nothing irreversible happens on an inconclusive signal.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from time import sleep

from alrpub.core.config import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_LOG_FILE,
    DEFAULT_TIMEOUT_SECONDS,
)
from alrpub.core.result import Err, Ok, Result
from alrpub.git.repository import Repository
from alrpub.output.console import ConsoleProtocol, Style
from alrpub.services.publish.alr import (
    ensure_alr_available,
    ensure_gh_token,
    ensure_github_login,
    publish_release,
    publish_status,
    request_review,
)
from alrpub.services.publish.crate import resolve_crate
from alrpub.services.publish.errors import PublishError
from alrpub.services.publish.model import (
    MonitorState,
    PackageDescriptor,
    ReviewRequest,
    ReviewStatus,
)
from alrpub.services.publish.review_text import classify_status, find_pull_reference, status_lines

# Picks one of several remotes, or None to abort.
RemoteChooser = Callable[[list[str]], str | None]


def refuse_ambiguous(remotes: list[str]) -> str | None:
    del remotes
    return None


@dataclass(frozen=True, slots=True)
class MonitorSettings:
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    force: bool = False
    skip_build: bool = False
    log_file: str = DEFAULT_LOG_FILE


@dataclass(frozen=True, slots=True)
class MonitorSession:
    state: MonitorState
    crate: PackageDescriptor
    review: ReviewRequest | None = None
    # Seconds slept since the PR was opened.
    waited: float = 0.0
    queries: int = 0
    status_line: str | None = None
    remote: str | None = None


# Next session to run, or None once the run is complete.
type Step = Result[MonitorSession | None, PublishError]


def _empty_history() -> list[MonitorState]:
    return []


@dataclass
class PublishMonitor:
    crate: PackageDescriptor
    settings: MonitorSettings
    console: ConsoleProtocol
    choose_remote: RemoteChooser = refuse_ambiguous
    history: list[MonitorState] = field(default_factory=_empty_history)

    @property
    def log_path(self) -> Path:
        return self.crate.source_path / self.settings.log_file

    def run(self) -> Result[MonitorSession, PublishError]:
        initial = MonitorSession(state=MonitorState.PUBLISHING, crate=self.crate)
        self.history = [initial.state]

        handlers: Mapping[MonitorState, Callable[[MonitorSession], Step]] = {
            MonitorState.PUBLISHING: self._publishing,
            MonitorState.AWAITING_REVIEW: self._awaiting_review,
            MonitorState.POLLING: self._polling,
            MonitorState.CHECKS_PASSED: self._checks_passed,
            MonitorState.CHECKS_FAILED: self._checks_failed,
            MonitorState.TIMED_OUT: self._timed_out,
            MonitorState.FINALIZING: self._finalizing,
            MonitorState.DONE: self._done,
        }

        session = initial
        while True:
            handler = handlers.get(session.state)
            if handler is None:
                step: Step = Err(
                    PublishError(
                        kind="invalid_input",
                        message=f"no handler for monitor state: {session.state.value}",
                    )
                )
            else:
                step = handler(session)

            if isinstance(step, Err):
                self.history.append(MonitorState.FAILED)
                return step
            if step.value is None:
                return Ok(session)
            session = step.value
            self._record(session)

    def _record(self, session: MonitorSession) -> None:
        if not self.history or self.history[-1] != session.state:
            self.history.append(session.state)

    def _wait(self, session: MonitorSession) -> MonitorSession:
        backoff = self.settings.backoff_seconds
        self.console.print(
            f"waiting {backoff:g}s for PR checks "
            f"({session.waited:g}s of {self.settings.timeout_seconds:g}s elapsed)",
            Style.DIM,
        )
        sleep(backoff)
        return replace(session, waited=session.waited + backoff)

    def _publishing(self, s: MonitorSession) -> Step:
        self.console.header(f"Publishing {s.crate.milestone}")
        published = publish_release(
            crate_root=s.crate.source_path,
            log_path=self.log_path,
            force=self.settings.force,
            skip_build=self.settings.skip_build,
            echo=self.console.raw,
        )
        if isinstance(published, Err):
            return published

        ref = find_pull_reference(published.value)
        if ref is None:
            return Err(
                PublishError(
                    kind="review_request_id_not_found",
                    message="no pull request url found in alr publish output",
                    hint=f"see {self.log_path}",
                )
            )

        self.console.success(f"PR created for {s.crate.milestone} with number: {ref.id}")
        review = ReviewRequest(
            id=ref.id,
            status=ReviewStatus.PENDING,
            log_reference=ref.line,
            log_path=self.log_path,
        )
        return Ok(replace(s, state=MonitorState.AWAITING_REVIEW, review=review))

    def _awaiting_review(self, s: MonitorSession) -> Step:
        # Checks need time to start; no query right after publishing.
        return Ok(replace(self._wait(s), state=MonitorState.POLLING))

    def _polling(self, s: MonitorSession) -> Step:
        review = _require_review(s)
        status_r = publish_status(crate_root=s.crate.source_path)
        if isinstance(status_r, Err):
            return Err(replace(status_r.error, hint=status_r.error.hint or review.log_reference))

        status = classify_status(status_r.value, review.id)
        lines = status_lines(status_r.value, review.id)
        s = replace(
            s,
            queries=s.queries + 1,
            review=replace(review, status=status),
            status_line=lines[0] if lines else None,
        )

        match status:
            case ReviewStatus.CHECKS_PASSED:
                return Ok(replace(s, state=MonitorState.CHECKS_PASSED))
            case ReviewStatus.CHECKS_FAILED:
                return Ok(replace(s, state=MonitorState.CHECKS_FAILED))
            case ReviewStatus.PENDING:
                pass

        if s.waited > self.settings.timeout_seconds:
            return Ok(replace(s, state=MonitorState.TIMED_OUT))
        return Ok(self._wait(s))

    def _checks_failed(self, s: MonitorSession) -> Step:
        review = _require_review(s)
        detail = f": {s.status_line}" if s.status_line else ""
        return Err(
            PublishError(
                kind="checks_failed",
                message=f"checks failed for PR {review.id}{detail}",
                hint=f"review manually at: {review.log_reference}",
            )
        )

    def _timed_out(self, s: MonitorSession) -> Step:
        review = _require_review(s)
        return Err(
            PublishError(
                kind="timed_out",
                message=(
                    f"checks not completed after {self.settings.timeout_seconds:g}s "
                    f"for PR {review.id}"
                ),
                hint=f"review manually at: {review.log_reference}",
            )
        )

    def _checks_passed(self, s: MonitorSession) -> Step:
        review = _require_review(s)
        self.console.success(f"checks passed for PR {review.id}")
        return Ok(replace(s, state=MonitorState.FINALIZING))

    def _finalizing(self, s: MonitorSession) -> Step:
        review = _require_review(s)
        crate = s.crate

        self.console.print(f"alr publish --request-review={review.id}", Style.DIM)
        promoted = request_review(crate_root=crate.source_path, pr_id=review.id)
        if isinstance(promoted, Err):
            return Err(replace(promoted.error, hint=review.log_reference))
        self.console.success(
            "review requested; after manual review the release will be included in the index"
        )

        repo = Repository(crate.source_path)
        remote = self._select_remote(repo)
        if isinstance(remote, Err):
            return remote

        tagged = self._ensure_tag(repo, crate=crate, remote=remote.value)
        if isinstance(tagged, Err):
            return tagged

        self.console.print(f"git push {remote.value} {crate.tag}", Style.DIM)
        pushed = repo.push(remote.value, crate.tag)
        if isinstance(pushed, Err):
            return Err(
                PublishError(
                    kind="tag_push_failed",
                    message=f"failed to push {crate.tag} to {remote.value}",
                    hint=f"local tag kept; retry with: git push {remote.value} {crate.tag}",
                )
            )
        self.console.success(f"tag {crate.tag} pushed to {remote.value}")
        return Ok(replace(s, state=MonitorState.DONE, remote=remote.value))

    def _done(self, s: MonitorSession) -> Step:
        del s
        return Ok(None)

    def _select_remote(self, repo: Repository) -> Result[str, PublishError]:
        listed = repo.remotes()
        if isinstance(listed, Err):
            return Err(
                PublishError(
                    kind="git_failed",
                    message="failed to list remotes",
                    hint=listed.error.message,
                )
            )

        remotes = listed.value
        if len(remotes) == 1:
            return Ok(remotes[0])
        if not remotes:
            return Err(
                PublishError(
                    kind="remote_ambiguous",
                    message=f"no git remote configured in {repo.path}",
                )
            )

        chosen = self.choose_remote(remotes)
        if chosen is None or chosen not in remotes:
            return Err(
                PublishError(
                    kind="remote_ambiguous",
                    message="multiple remotes found and none selected",
                    hint=f"available: {', '.join(remotes)}",
                )
            )
        return Ok(chosen)

    def _ensure_tag(
        self, repo: Repository, *, crate: PackageDescriptor, remote: str
    ) -> Result[None, PublishError]:
        self.console.print(f"git fetch --tags {remote}", Style.DIM)
        fetched = repo.fetch_tags(remote)
        if isinstance(fetched, Err):
            return Err(
                PublishError(
                    kind="git_failed",
                    message=f"failed to fetch tags from {remote}",
                    hint=fetched.error.message,
                )
            )

        exists = repo.has_tag(crate.tag)
        if isinstance(exists, Err):
            return Err(PublishError(kind="git_failed", message="failed to list tags"))
        if exists.value:
            self.console.warning(f"tag {crate.tag} already exists in the repository")
            return Ok(None)

        self.console.print(f"git tag -s {crate.tag} -m 'Release {crate.version}'", Style.DIM)
        created = repo.create_signed_tag(crate.tag, f"Release {crate.version}")
        if isinstance(created, Err):
            return Err(
                PublishError(
                    kind="tag_failed",
                    message=f"failed to create signed tag {crate.tag}",
                    hint=created.error.message,
                )
            )
        return Ok(None)


def _require_review(s: MonitorSession) -> ReviewRequest:
    if s.review is None:
        raise RuntimeError(f"no review request in state {s.state.value}")
    return s.review


def check_prerequisites(*, crate_root: Path) -> Result[str, PublishError]:
    """alr on PATH, GH_TOKEN set and a GitHub login in alr settings."""
    for check in (ensure_alr_available, ensure_gh_token):
        ok = check()
        if isinstance(ok, Err):
            return ok
    return ensure_github_login(crate_root=crate_root)


def publish_and_monitor(
    *,
    crate_root: Path,
    settings: MonitorSettings,
    console: ConsoleProtocol,
    choose_remote: RemoteChooser = refuse_ambiguous,
) -> Result[MonitorSession, PublishError]:
    ready = check_prerequisites(crate_root=crate_root)
    if isinstance(ready, Err):
        return ready
    console.print(f"GitHub login: {ready.value}", Style.DIM)

    crate = resolve_crate(crate_root)
    if isinstance(crate, Err):
        return crate
    console.info(f"publishing release with version {crate.value.version}")

    monitor = PublishMonitor(
        crate=crate.value,
        settings=settings,
        console=console,
        choose_remote=choose_remote,
    )
    return monitor.run()
