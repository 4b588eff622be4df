# tests/conftest.py

"""Shared pytest fixtures for the catalog tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from ecom_insights.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path) -> Generator[None, None, None]:
    """Keep tests off the developer's .env database, seed file and logs."""
    with patch.object(Settings, "DATABASE_URL", ""), \
            patch.object(Settings, "SEED_CSV_PATH", tmp_path / "absent.csv"), \
            patch.object(Settings, "LOGS_DIR", tmp_path / "logs"):
        yield
