import pytest

import datadget.database as db_module
from datadget.database import init_db


@pytest.fixture(autouse=True)
def use_temp_db(tmp_path, monkeypatch):
    """Each test uses a fresh temporary SQLite database."""
    test_db = tmp_path / "test.db"
    monkeypatch.setattr(db_module, "DB_PATH", test_db)
    monkeypatch.setenv("DB_RESET_ON_START", "false")
    init_db()
    yield test_db
