"""Result type for explicit error handling.

Every step that talks to an external tool (alr, git, gh) can fail, and a
failure must stop the run before any irreversible action. Returning a Result
instead of raising keeps that control flow visible at each call site.

Usage:
    def parse_pr(text: str) -> Result[int, str]:
        match = re.search(r"/pull/(\\d+)", text)
        if match is None:
            return Err("no PR url in output")
        return Ok(int(match.group(1)))

    match parse_pr(output):
        case Ok(number):
            print(f"PR #{number}")
        case Err(error):
            print(f"failed: {error}")
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result holding ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result holding ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
