"""Root conftest — shared test configuration."""

import os

# Ensure tests never call the real API or a real database
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")
os.environ.setdefault("AI_EVALUATION_ENABLED", "false")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
