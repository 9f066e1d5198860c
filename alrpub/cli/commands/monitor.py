from __future__ import annotations

from pathlib import Path

import typer

from alrpub.cli.commands._helpers import exit_on_error
from alrpub.cli.context import build_context
from alrpub.output.console import ConsoleProtocol
from alrpub.services.publish.monitor import MonitorSettings, RemoteChooser, publish_and_monitor


def _remote_chooser(preselected: str | None, console: ConsoleProtocol) -> RemoteChooser:
    def choose(remotes: list[str]) -> str | None:
        if preselected is not None:
            return preselected
        console.print(f"multiple remotes found: {', '.join(remotes)}")
        answer: str = typer.prompt("Remote to push the tag to", default="")
        return answer.strip() or None

    return choose


def monitor(
    path: Path = typer.Option(
        Path("."),
        "--path",
        help="Root of the crate to publish.",
    ),
    force: bool = typer.Option(False, "--force", help="Pass --force to alr."),
    skip_build: bool = typer.Option(False, "--skip-build", help="Skip the local build check."),
    backoff: float | None = typer.Option(
        None,
        "--backoff",
        min=1.0,
        help="Seconds between PR status queries.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=1.0,
        help="Give up when checks have not concluded after this many seconds.",
    ),
    remote: str | None = typer.Option(
        None,
        "--remote",
        help="Remote to push the version tag to when several are configured.",
    ),
) -> None:
    """Publish a crate, wait for PR checks, then request review and push the tag."""
    ctx = build_context()
    defaults = ctx.config.monitor
    settings = MonitorSettings(
        backoff_seconds=backoff or defaults.backoff_seconds,
        timeout_seconds=timeout or defaults.timeout_seconds,
        force=force,
        skip_build=skip_build,
        log_file=defaults.log_file,
    )

    session = exit_on_error(
        publish_and_monitor(
            crate_root=path.expanduser().resolve(),
            settings=settings,
            console=ctx.console,
            choose_remote=_remote_chooser(remote, ctx.console),
        ),
        ctx,
    )
    ctx.console.success(f"{session.crate.milestone}: all automatic operations completed")
