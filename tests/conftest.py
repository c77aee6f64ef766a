"""Root test configuration: isolate cwd, MDSITE_* env vars, and logging per test"""

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test from a clean tmp directory with no MDSITE_* overrides."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("MDSITE_"):
            monkeypatch.delenv(name)
    yield
    # CLI commands bind handlers to CliRunner's stderr, which is closed afterwards.
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
