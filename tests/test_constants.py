"""
Centralized test credentials and secrets.

All test-only credentials are loaded from environment variables when available,
with clearly non-production placeholders as fallbacks.
"""

from __future__ import annotations

import os

# Shared secret for /internal/* endpoints (conftest sets INTERNAL_JOB_TOKEN from this)
TEST_INTERNAL_JOB_TOKEN = os.environ.get("TEST_INTERNAL_JOB_TOKEN") or "test-internal-token"

# Override identity used by policy tests
TEST_OVERRIDE_EMAIL = "ops@founder-circles.test"
