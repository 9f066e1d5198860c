"""Error codes for CLI exit status.

Every fatal publication condition is mapped onto one of these codes before
the process exits. The numeric values are part of the CLI contract:
- 0: Success
- 1: User error (bad path, not a crate, nothing to commit)
- 2: Environment error (missing tool, missing credentials, bad config)
- 3: Check error (PR checks failed or never completed)
- 4: Network error (push, fork or PR creation failed)
- 5: I/O error (manifest missing, copy failed)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    CHECK_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
