import os
import sqlite3
import sys
import tempfile
from contextlib import closing

from shop import models
from shop.seed import main, seed


def test_seed_is_idempotent(db_session):
    first = seed(db_session)
    assert first == {"users": 8, "products": 6, "orders": 2}
    assert seed(db_session) == {"users": 0, "products": 0, "orders": 0}
    assert db_session.query(models.User).count() == 8


def test_seed_command_writes_database_file(monkeypatch):
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "shop.db")
        monkeypatch.setattr(sys, "argv", ["shop.seed", "--db", db_path])
        main()

        with closing(sqlite3.connect(db_path)) as conn:
            rows = conn.execute("SELECT email, password, isAdmin FROM users ORDER BY id").fetchall()
            assert rows[0] == ("admin@shop.com", "password123", 1)
            assert len(rows) == 8
            items = conn.execute("SELECT COUNT(*) FROM order_items").fetchone()[0]
            assert items == 3


def test_seeded_admin_can_log_in(client, db_session):
    seed(db_session)
    body = client.post("/auth/login", json={"email": "admin@shop.com", "password": "password123"}).json()
    assert body["success"] is True
    assert body["user"]["isAdmin"] is True
    assert body["user"]["username"] == "admin"
