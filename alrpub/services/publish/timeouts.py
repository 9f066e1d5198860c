from __future__ import annotations

# alr operations that only read local state (show, settings, --status)
ALR_QUERY_TIMEOUT_SECONDS = 2 * 60.0

# `alr publish --skip-build --skip-submit` may still fetch the origin
ALR_MANIFEST_TIMEOUT_SECONDS = 10 * 60.0

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
