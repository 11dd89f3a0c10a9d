# tests/conftest.py
import os
import sqlite3

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from core.config import Settings
from core.store import InventionStore
from lore import lorekeeper


@pytest.fixture(autouse=True)
def lore_root(tmp_path):
    lorekeeper.set_root(str(tmp_path / "data"))
    yield tmp_path / "data"
    lorekeeper.set_root(lorekeeper.DEFAULT_ROOT)


class FlakyConnection(sqlite3.Connection):
    """Connection whose commit() can be switched to fail."""
    fail_commits = False

    def commit(self):
        if self.fail_commits:
            raise sqlite3.OperationalError("disk I/O error")
        return super().commit()


@pytest.fixture
def store():
    s = InventionStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def flaky_store():
    s = InventionStore(":memory:", connect=lambda p: sqlite3.connect(p, factory=FlakyConnection))
    yield s
    s.close()


@pytest.fixture
def settings():
    return Settings({"edit_on_add": False})


@pytest.fixture
def seeded(store):
    store.create(title="Radio", details="wireless")
    store.create(title="Engine", details=None)
    store.save()
    return store


@pytest.fixture(scope="session")
def qapp():
    QtWidgets = pytest.importorskip("PySide6.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
