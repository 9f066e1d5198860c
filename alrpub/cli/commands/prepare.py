from __future__ import annotations

from pathlib import Path

import typer

from alrpub.cli.commands._helpers import exit_on_error
from alrpub.cli.context import build_context
from alrpub.output.console import Style
from alrpub.services.publish.prepare import Confirm, prepare_releases


def _gate(flag: bool | None) -> Confirm:
    if flag is None:
        return lambda question: typer.confirm(question, default=False)
    return lambda question: flag


def prepare(
    crate_paths: list[Path] = typer.Argument(
        ...,
        help="Root directories of the crates to publish together.",
    ),
    index_dir: Path | None = typer.Option(
        None,
        "--index-dir",
        help="Local clone of the community index (default: ./alire-index).",
    ),
    push: bool | None = typer.Option(
        None,
        "--push/--no-push",
        help="Push the branch to your fork (asks when omitted).",
    ),
    pr: bool | None = typer.Option(
        None,
        "--pr/--no-pr",
        help="Open a pull request after pushing (asks when omitted).",
    ),
) -> None:
    """Prepare manifests for several crates in one index branch."""
    ctx = build_context()
    index = ctx.config.index
    index_root = (index_dir or ctx.cwd / index.local_dir).expanduser().resolve()

    outcome = exit_on_error(
        prepare_releases(
            crate_paths=crate_paths,
            index_root=index_root,
            index=index,
            console=ctx.console,
            confirm_push=_gate(push),
            confirm_pr=_gate(pr),
        ),
        ctx,
    )

    ctx.console.print(f"branch: {outcome.branch}", Style.DIM)
    for manifest in outcome.manifests:
        ctx.console.print(f"manifest: {manifest}", Style.DIM)
    if outcome.pr_url:
        ctx.console.info("please check that everything is in order in the pull request")
    ctx.console.success(f"manifests prepared in {index_root}")
