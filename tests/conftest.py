"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest
import pytest_asyncio

from reelnote.common.config import Config, DatabaseConfig, LoggingConfig
from reelnote.core.db import MultimediaRepository, User
from reelnote.services import MultimediaService


@pytest.fixture
def sample_config(tmp_path: Path) -> Config:
    """Provide a configuration rooted in a temporary directory."""
    return Config(
        config_dir=tmp_path,
        logging=LoggingConfig(level="DEBUG", format="text"),
        database=DatabaseConfig(
            database_path="test_reelnote.db",
            enable_wal_mode=False,  # Disable WAL mode in tests to avoid lock issues
            connection_timeout=30,
        ),
    )


@pytest_asyncio.fixture
async def test_repository(sample_config: Config) -> MultimediaRepository:
    """Provide a test database with migrations applied."""
    repo = await MultimediaRepository.from_config(sample_config)
    yield repo
    await repo.close()


@pytest_asyncio.fixture
async def multimedia_service(test_repository: MultimediaRepository) -> MultimediaService:
    """Provide a service backed by the test database."""
    return MultimediaService(test_repository)


@pytest_asyncio.fixture
async def user(test_repository: MultimediaRepository) -> User:
    """A stored user."""
    row = await test_repository.create_user("jose", name="José")
    return User.from_row(row)


@pytest_asyncio.fixture
async def other_user(test_repository: MultimediaRepository) -> User:
    """A second stored user."""
    row = await test_repository.create_user("chris", name="Chris")
    return User.from_row(row)


@pytest.fixture
def video_attrs() -> dict:
    """Valid video input."""
    return {
        "url": "https://www.youtube.com/watch?v=Rn3fKjGNQqI",
        "title": "Programming Phoenix",
        "description": "Building a video annotation app",
    }
