"""CLI command tests (flask users / perms)."""

from layup.services import auth_service, user_service


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create", "--name", "root", "--role", "admin", "--password", "boot-pass-1",
    ])
    assert result.exit_code == 0
    assert "PASS Created user: root" in result.output

    tokens, user = auth_service.login("root", "boot-pass-1")
    assert user.role == "admin"

    listing = runner.invoke(args=["users", "list"])
    assert "root" in listing.output


def test_users_create_second_admin_fails(app, admin):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create", "--name", "root2", "--role", "admin", "--password", "boot-pass-1",
    ])
    assert result.exit_code == 1
    assert "FAIL" in result.output
    assert user_service.get_user_by_name("root2") is None


def test_set_password(app, worker):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "set-password", "anna", "--password", "reset-pass-1"])
    assert result.exit_code == 0
    auth_service.login("anna", "reset-pass-1")


def test_set_password_unknown_user(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["users", "set-password", "nobody", "--password", "x"])
    assert result.exit_code == 1


def test_perms_check(app):
    runner = app.test_cli_runner()
    assert "PASS worker has log:void" in runner.invoke(args=["perms", "check", "worker", "log:void"]).output
    assert "FAIL pattern_maker does not have order:read" in runner.invoke(
        args=["perms", "check", "pattern_maker", "order:read"]
    ).output


def test_perms_list_role(app):
    runner = app.test_cli_runner()
    output = runner.invoke(args=["perms", "list", "--role", "manager"]).output
    assert "manager: all permissions" in output

    output = runner.invoke(args=["perms", "list", "--role", "worker"]).output
    assert "log:create" in output.splitlines()
