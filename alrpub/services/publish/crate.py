"""Turn a crate path into a validated (name, version) descriptor.

``alr --format=JSON show`` is authoritative. The first line of plain
``alr show`` (``name=version: description``) is only a fallback, because its
layout belongs to alr and may change.
"""

from __future__ import annotations

from pathlib import Path

from alrpub.core.result import Err, Ok, Result
from alrpub.core.structured import json_field
from alrpub.services.publish.alr import show_json, show_text
from alrpub.services.publish.errors import PublishError
from alrpub.services.publish.model import PackageDescriptor


def parse_summary_line(text: str) -> tuple[str, str] | None:
    """Best-effort parse of ``name=version: description``."""
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    if not lines:
        return None
    milestone = lines[0].split(":", 1)[0].strip()
    if "=" not in milestone:
        return None
    name, version = (part.strip() for part in milestone.split("=", 1))
    if not name or not version or " " in name or " " in version:
        return None
    return name, version


def resolve_crate(path: Path) -> Result[PackageDescriptor, PublishError]:
    if not path.is_dir():
        return Err(PublishError(kind="invalid_package", message=f"'{path}' is not a directory"))

    root = path.resolve()

    shown = show_json(crate_root=root)
    if isinstance(shown, Ok):
        name = json_field(shown.value, "name")
        version = json_field(shown.value, "version")
        if name is not None and version is not None:
            return Ok(PackageDescriptor(name=name, version=version, source_path=root))

    text = show_text(crate_root=root)
    if isinstance(text, Err):
        return text

    parsed = parse_summary_line(text.value)
    if parsed is None:
        return Err(
            PublishError(
                kind="invalid_package",
                message=f"'{path}' does not appear to be a valid crate",
                hint="alr show printed no name=version line",
            )
        )

    name, version = parsed
    return Ok(PackageDescriptor(name=name, version=version, source_path=root))


def resolve_crates(paths: list[Path]) -> Result[list[PackageDescriptor], PublishError]:
    """Resolve every path, stopping at the first invalid one."""
    out: list[PackageDescriptor] = []
    for path in paths:
        result = resolve_crate(path)
        if isinstance(result, Err):
            return result
        out.append(result.value)
    return Ok(out)
