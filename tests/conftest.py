"""Shared pytest fixtures for the FTP Browser tests."""

from pathlib import Path

import pytest

from tests.fakes import FakeClock, RecordingSink


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    """Clock that only moves when a test advances it."""
    return FakeClock()


@pytest.fixture
def temp_settings_file(tmp_path: Path) -> Path:
    """Settings path inside the test's tmp directory (not created)."""
    return tmp_path / "settings.json"


@pytest.fixture
def sample_upload_file(tmp_path: Path) -> Path:
    """A 300 KiB JPEG-looking file, large enough for several progress events."""
    upload_file = tmp_path / "photo.jpg"
    upload_file.write_bytes(b"\xff\xd8" + b"\x00" * (300 * 1024 - 2))
    return upload_file
