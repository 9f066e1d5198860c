from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from alrpub.core.config import Config, load_config_or_default
from alrpub.core.errors import ErrorCode
from alrpub.core.result import Err
from alrpub.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    cwd: Path
    config: Config
    console: ConsoleProtocol


def build_context() -> CLIContext:
    cwd = Path.cwd().resolve()
    config_result = load_config_or_default(cwd)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(cwd=cwd, config=config_result.value, console=RichConsole())
