import pytest

from backend.database import init_db


def test_init_db_creates_tables(mock_db):
    mock_conn, mock_cursor = mock_db

    init_db.init_db()

    sql = mock_cursor.execute.call_args.args[0]
    for table in ("users", "events", "rsvps"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in sql
    assert "NOT NULL UNIQUE" in sql
    assert "REFERENCES events (id) ON DELETE CASCADE" in sql
    mock_conn.close.assert_called_once()


def test_create_admin(mock_db, fast_hasher):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {
        "id": 1, "username": "admin", "email": "admin@x.com", "is_admin": True
    }

    admin = init_db.create_admin("admin", " Admin@X.com", "admin123")

    assert admin == {"id": 1, "username": "admin", "email": "admin@x.com", "isAdmin": True}
    sql, params = mock_cursor.execute.call_args.args
    assert "ON CONFLICT (email) DO UPDATE SET is_admin = TRUE" in sql
    assert params[:2] == ("admin", "admin@x.com")
    assert fast_hasher.verify(params[2], "admin123")


def test_create_admin_requires_fields(mock_db):
    with pytest.raises(ValueError):
        init_db.create_admin("admin", "", "admin123")


def test_main_seeds_admin(mocker):
    mock_init = mocker.patch("backend.database.init_db.init_db")
    mock_create = mocker.patch("backend.database.init_db.create_admin")

    assert init_db.main(["--admin-email", "admin@x.com", "--admin-password", "pw"]) == 0

    mock_init.assert_called_once_with()
    mock_create.assert_called_once_with("admin", "admin@x.com", "pw")


def test_main_requires_password_with_email(mocker):
    mocker.patch("backend.database.init_db.init_db")

    with pytest.raises(SystemExit):
        init_db.main(["--admin-email", "admin@x.com"])
