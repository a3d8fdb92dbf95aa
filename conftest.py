"""Global pytest configuration."""

import os

# Tests always run against the fixture-backed providers
os.environ.setdefault("PROVIDER_MODE", "stub")
