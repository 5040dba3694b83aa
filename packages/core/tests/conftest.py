import pytest

from deltascape_store.sqlite import SQLiteStore


@pytest.fixture
def store():
    s = SQLiteStore(db_path=":memory:")
    yield s
    s.close()
