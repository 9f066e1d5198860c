"""Grammar for the free-text output of ``alr publish``.

alr offers no structured form for the PR it opens or for its check status, so
the patterns are kept loose and live only here:

- PR id: the first ``/pull/<digits>`` path segment anywhere in the output.
- Status: lines of ``alr publish --status`` that mention ``/<id>`` (not
  followed by another digit) carry a ``Checks_Passed`` or ``Checks_Failed``
  token once the checks have concluded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from alrpub.services.publish.model import ReviewStatus

_PULL_RE = re.compile(r"/pull/(\d+)")

CHECKS_PASSED_TOKEN = "Checks_Passed"
CHECKS_FAILED_TOKEN = "Checks_Failed"


@dataclass(frozen=True, slots=True)
class PullReference:
    id: int
    line: str


def find_pull_reference(output: str) -> PullReference | None:
    """Return the first PR id in ``output`` and the line it appeared on."""
    for line in output.splitlines():
        match = _PULL_RE.search(line)
        if match is not None:
            return PullReference(id=int(match.group(1)), line=line.strip())
    return None


def status_lines(status_output: str, pr_id: int) -> list[str]:
    pattern = re.compile(rf"/{pr_id}(?!\d)")
    return [ln.strip() for ln in status_output.splitlines() if pattern.search(ln)]


def classify_status(status_output: str, pr_id: int) -> ReviewStatus:
    """Classify the check status of ``pr_id``.

    A failure token wins over a pass token. Anything else, including no line
    for the PR at all, is pending.
    """
    lines = status_lines(status_output, pr_id)
    if any(CHECKS_FAILED_TOKEN in ln for ln in lines):
        return ReviewStatus.CHECKS_FAILED
    if any(CHECKS_PASSED_TOKEN in ln for ln in lines):
        return ReviewStatus.CHECKS_PASSED
    return ReviewStatus.PENDING
