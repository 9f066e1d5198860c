"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from alrpub.core.errors import ErrorCode
from alrpub.core.result import Err, Result
from alrpub.services.publish.errors import PublishError

if TYPE_CHECKING:
    from alrpub.cli.context import CLIContext

_ENV_KINDS = frozenset({"collaborator_unavailable", "remote_ambiguous"})
_CHECK_KINDS = frozenset({"checks_failed", "timed_out", "publish_action_failed"})
_NETWORK_KINDS = frozenset({"tag_push_failed", "review_promotion_failed", "git_failed"})
_IO_KINDS = frozenset({"manifest_not_found", "placement_failed", "layout_discovery_failed"})


def publish_error_code(kind: str) -> ErrorCode:
    if kind in _ENV_KINDS:
        return ErrorCode.ENV_ERROR
    if kind in _CHECK_KINDS:
        return ErrorCode.CHECK_ERROR
    if kind in _NETWORK_KINDS:
        return ErrorCode.NETWORK_ERROR
    if kind in _IO_KINDS:
        return ErrorCode.IO_ERROR
    return ErrorCode.USER_ERROR


def exit_on_error[T](result: Result[T, PublishError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code.

    The message goes to the error stream; review related errors carry the PR
    reference in their hint.
    """
    if isinstance(result, Err):
        error = result.error
        ctx.console.error(error.message)
        if error.hint:
            ctx.console.hint(error.hint)
        exit_with_code(int(publish_error_code(error.kind)))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
