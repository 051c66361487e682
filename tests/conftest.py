"""Shared fixtures: an app wired to temporary storage."""

from dataclasses import replace

import pytest

from portfolio import Settings, create_app

SAMPLE = {
    "name": "Test Person",
    "headerTaglineOne": "Tagline one",
    "headerTaglineTwo": "Tagline two",
    "headerTaglineThree": "Tagline three",
    "headerTaglineFour": "Tagline four",
    "showCursor": False,
    "socials": [{"id": "1", "title": "GitHub", "link": "https://github.com/test"}],
    "projects": [
        {
            "id": "1",
            "title": "Stored Project",
            "description": "Stored project description",
            "imageSrc": "/images/stored.png",
            "url": "https://example.com/stored",
        }
    ],
    "services": [{"id": "1", "title": "Stored Service", "description": "Stored service description"}],
    "aboutpara": "Stored about text",
}


@pytest.fixture
def settings(tmp_path):
    """Production-mode settings pointing at a temp data file and posts dir."""
    return Settings(
        admin_password="s3cret",
        app_env="production",
        data_file=tmp_path / "data" / "portfolio.json",
        posts_dir=tmp_path / "_posts",
        secret_key="test-key",
    )


@pytest.fixture
def make_app(settings):
    """Build an app; keyword overrides are applied to the settings."""

    def _make(**overrides):
        app = create_app(replace(settings, **overrides))
        app.config["TESTING"] = True
        return app

    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def dev_client(make_app):
    return make_app(app_env="development").test_client()


@pytest.fixture
def seeded(settings):
    """Write SAMPLE to the data file and return its path."""
    import json

    settings.data_file.parent.mkdir(parents=True, exist_ok=True)
    settings.data_file.write_text(json.dumps(SAMPLE, indent=2), encoding="utf-8")
    return settings.data_file


@pytest.fixture
def sample():
    import copy

    return copy.deepcopy(SAMPLE)
