"""Placement of manifests in the index's two-letter classification tree.

The index keeps ``<root>/<first two letters>/<name>/<name>-<version>.toml``.
The classification root is found by locating the sentinel directory (``aa``)
and taking its parent, so the layout is not hard-coded.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from alrpub.core.result import Err, Ok, Result
from alrpub.services.publish.errors import PublishError
from alrpub.services.publish.model import IndexPlacement

# Git's object store also uses two-hex-digit directories.
_SKIP_DIRS = frozenset({".git"})


def discover_classification_root(
    index_root: Path, *, sentinel: str
) -> Result[Path, PublishError]:
    found: list[Path] = []
    for dirpath, dirnames, _ in os.walk(index_root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        if sentinel in dirnames:
            found.append(Path(dirpath) / sentinel)

    if len(found) != 1:
        detail = "none found" if not found else ", ".join(str(p) for p in found)
        return Err(
            PublishError(
                kind="layout_discovery_failed",
                message=f"expected exactly one '{sentinel}' directory in {index_root}",
                hint=detail,
            )
        )
    return Ok(found[0].parent)


def placement_for(classification_root: Path, name: str) -> Result[IndexPlacement, PublishError]:
    if len(name) < 2:
        return Err(
            PublishError(
                kind="invalid_package",
                message=f"crate name too short for index placement: '{name}'",
            )
        )
    return Ok(IndexPlacement(classification_root=classification_root, name=name))


def place_manifest(manifest: Path, placement: IndexPlacement) -> Result[Path, PublishError]:
    """Copy ``manifest`` into its destination, overwriting. Returns the new path."""
    dest_dir = placement.destination
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        copied = shutil.copy2(manifest, dest_dir / manifest.name)
    except OSError as e:
        return Err(
            PublishError(
                kind="placement_failed",
                message=f"failed to copy {manifest.name} into {dest_dir}",
                hint=str(e),
            )
        )
    return Ok(Path(copied))
