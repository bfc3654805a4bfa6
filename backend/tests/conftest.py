import os
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

# must be set before config.py is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_ENABLED"] = "false"

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import database  # noqa: E402
import models  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture()
def db():
    database.Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture()
def client(db):
    return TestClient(app)


@pytest.fixture()
def make_menu_item(db):
    def _make(name="Zinger Burger", price="500", **extra):
        values = {
            "name": name,
            "price": Decimal(price),
            "description": f"{name} description",
            "preparation_time": 10,
            "created_at": datetime.now(),
        }
        values.update(extra)
        item = models.MenuItem(**values)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return _make
