"""Root conftest — shared test configuration."""

import os

# Ensure tests never call the real Google APIs or write a stray database
os.environ.setdefault("GOOGLE_API_KEY", "test-fake-google-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
