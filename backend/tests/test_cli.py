"""
CLI command tests.
"""

from marketpos.models import User


class TestSystemInit:

    def test_creates_default_users_once(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert {u.username: u.role for u in db_session.query(User).all()} == {
            "admin": "admin",
            "staff": "staff",
            "cashier": "cashier",
        }

        again = runner.invoke(args=["system", "init"])
        assert again.exit_code == 0
        assert "already exists" in again.output
        assert db_session.query(User).count() == 3


class TestUsersCommands:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create",
            "--username", "night",
            "--full-name", "Night Shift",
            "--password", "secret1",
            "--role", "cashier",
        ])
        assert result.exit_code == 0, result.output

        listing = runner.invoke(args=["users", "list"])
        assert "night" in listing.output

    def test_create_rejects_short_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--username", "weak",
            "--full-name", "Weak",
            "--password", "123",
            "--role", "staff",
        ])
        assert result.exit_code == 1
        assert db_session.query(User).filter_by(username="weak").count() == 0
