"""Git operations.

Usage:
    from alrpub.git import Repository

    repo = Repository(Path("alire-index"))
    repo.checkout_reset("publish-foo=1.0.0")
"""

from alrpub.git.repository import GitError, Repository

__all__ = ["GitError", "Repository"]
