import os

# Settings are cached on first import, so these must be in place before any
# project module is loaded.
os.environ.setdefault("EXPENSES_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("EXPENSES_SEED_DEFAULTS", "0")
os.environ.setdefault("EXPENSES_ENABLE_INIT", "1")
os.environ.setdefault("EXPENSES_TOKEN_SECRET", "test-secret")
