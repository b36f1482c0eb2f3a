import json
import os
import pytest

import reel.config
from reel.models import Record


@pytest.fixture
def sample_shows():
    """Sample catalog entries as plain dictionaries."""
    return [
        {
            "slug": "spirited-away",
            "url": "/movie/spirited-away/",
            "data": {
                "title": "Spirited Away",
                "layout": "show.liquid",
                "type": "movie",
                "airedYear": 2001,
                "popularity": 95,
                "rating": 8.6,
                "featured": True,
                "status": "Finished",
            },
        },
        {
            "slug": "frieren",
            "url": "/anime/frieren/",
            "data": {
                "title": "Frieren",
                "layout": "show.liquid",
                "type": "anime",
                "airedYear": 2023,
                "popularity": 88,
                "imbdScore": 9.0,
                "status": "Currently Airing",
            },
        },
        {
            "slug": "severance",
            "url": "/series/severance/",
            "data": {
                "title": "Severance",
                "layout": "show.liquid",
                "type": "series",
                "airedYear": 2022,
                "popularity": 90,
                "rating": 8.7,
                "featured": True,
                "status": "Ongoing",
            },
        },
        {
            "slug": "cats",
            "url": "/movie/cats/",
            "data": {
                "title": "Cats",
                "layout": "show.liquid",
                "type": "movie",
                "airedYear": 2019,
                "popularity": 12,
                "rating": 2.8,
            },
        },
        {
            "slug": "bebop",
            "url": "/anime/bebop/",
            "data": {
                "title": "Cowboy Bebop",
                "layout": "show.liquid",
                "type": "anime",
                "airedYear": 1998,
                "rating": 8.9,
                "status": "Finished",
            },
        },
        {
            "slug": "about",
            "url": "/about/",
            "data": {"title": "About"},
        },
    ]


@pytest.fixture
def sample_records(sample_shows):
    """Sample catalog entries as Records."""
    return [Record.from_dict(show) for show in sample_shows]


@pytest.fixture
def records_file(tmp_path, sample_shows):
    """A JSON record file holding the sample catalog."""
    path = tmp_path / "content.json"
    path.write_text(json.dumps(sample_shows), encoding="utf-8")
    return path


@pytest.fixture
def views_file(tmp_path):
    """A YAML view definitions file."""
    path = tmp_path / "views.yaml"
    path.write_text(
        """
recentAnime:
  description: Anime aired since 2020
  filter:
    - {field: type, value: anime}
    - "item.airedYear >= 2020"
  sort: {field: popularity, order: desc, default: 0}

byTitle:
  filter: {field: layout, present: true}
  sort: title asc
  limit: 3
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from real config files and the cached global config."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("REEL_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(reel.config, "_config", None)
    yield
