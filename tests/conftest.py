"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database, Docketwise or SMTP server
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("DOCKETWISE_API_TOKEN", "dw-test-token")
os.environ.setdefault("LOG_FORMAT", "text")
