"""Pytest configuration and fixtures."""

import shutil
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from collectrr.config.settings import CollectrrConfig
from collectrr.core.grouper import Grouper
from collectrr.core.models import MediaItem, MediaType

BASE_DIR = "videodb://movies/titles/"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config():
    """Create a test configuration."""
    return CollectrrConfig()


@pytest.fixture
def grouper(test_config):
    """Grouper with the default configuration."""
    return Grouper(test_config)


@pytest.fixture
def base_dir():
    return BASE_DIR


@pytest.fixture
def make_item():
    """Factory for MediaItem objects with sequential ids."""
    counter = {"id": 0}

    def _make(**kwargs) -> MediaItem:
        counter["id"] += 1
        kwargs.setdefault("id", counter["id"])
        kwargs.setdefault("title", f"Item {kwargs['id']}")
        return MediaItem(**kwargs)

    return _make


@pytest.fixture
def matrix_set(make_item):
    """Three movies of one set with mixed metadata."""
    return [
        make_item(
            title="The Matrix",
            set_id=7,
            set_title="The Matrix Collection",
            set_overview="Neo and friends.",
            base_path="/movies/The Matrix (1999)/The Matrix.mkv",
            rating=8.7,
            year=1999,
            play_count=2,
            last_played=datetime(2023, 5, 1, 20, 0),
            date_added=datetime(2020, 1, 1),
        ),
        make_item(
            title="The Matrix Reloaded",
            set_id=7,
            set_title="The Matrix Collection",
            base_path="/movies/The Matrix Reloaded (2003)/Reloaded.mkv",
            rating=0.0,
            year=2003,
            play_count=1,
            date_added=datetime(2021, 6, 1),
        ),
        make_item(
            title="The Matrix Revolutions",
            set_id=7,
            set_title="The Matrix Collection",
            base_path="/movies/The Matrix Revolutions (2003)/",
            rating=6.7,
            year=2003,
            play_count=1,
            last_played=datetime(2024, 2, 3, 21, 30),
        ),
    ]


@pytest.fixture
def sample_library_file(temp_dir):
    """Write a small YAML library file."""
    library = temp_dir / "library.yaml"
    library.write_text(
        """items:
  - id: 1
    title: Alien
    setId: 3
    setTitle: Alien Collection
    basePath: /movies/Alien (1979)/Alien.mkv
    rating: 8.5
    year: 1979
    playCount: 1
  - id: 2
    title: Aliens
    set_id: 3
    set_title: Alien Collection
    base_path: /movies/Aliens (1986)/Aliens.mkv
    rating: 8.4
    year: 1986
    play_count: 1
    last_played: "2024-03-01T20:15:00"
  - id: 3
    title: Heat
    movieUniqueId: tt0113277
    basePath: /nas1/Heat.mkv
    rating: 8.3
  - id: 4
    title: Heat
    movieUniqueId: tt0113277
    basePath: /nas2/Heat.mkv
    rating: 0
  - id: 5
    title: Home Video
    basePath: /home/video.mp4
""",
        encoding="utf-8",
    )
    return library


@pytest.fixture
def episode_items(make_item):
    """Two copies of one episode plus a unique episode."""
    return [
        make_item(
            title="Pilot",
            media_type=MediaType.EPISODE,
            episode_unique_id="81189-1x01",
            play_count=1,
            rating=9.0,
        ),
        make_item(
            title="Pilot",
            media_type=MediaType.EPISODE,
            episode_unique_id="81189-1x01",
            play_count=2,
            rating=8.0,
        ),
        make_item(
            title="Cat's in the Bag...",
            media_type=MediaType.EPISODE,
            episode_unique_id="81189-1x02",
        ),
    ]
