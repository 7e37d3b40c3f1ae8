import pytest

from atlas_watch.config import Settings
from atlas_watch.database import Database


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'atlas_test.db'}",
        SCHEDULER_ENABLED=False,
        RSS_ENABLED=False,
        NEWS_API_KEY="",
        NASA_API_KEY="",
        OPENAI_API_KEY="",
        USE_OLLAMA=False,
        FETCH_TIMEOUT_SECONDS=1.0,
        NOTIFICATION_TIMEZONE="",
    )


@pytest.fixture
def db(settings):
    database = Database(settings.database_url)
    database.create_tables()
    return database
