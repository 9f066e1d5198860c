"""Publication of crates into the community index.

- prepare: several manifests, one branch, one commit, one PR
- monitor: one `alr publish`, PR check polling, tag on success
"""

from __future__ import annotations
