"""CLI tests — click's CliRunner with the database work stubbed out."""

from click.testing import CliRunner

from tollgate import __version__
from tollgate.cli import main as cli_module
from tollgate.errors import EmailAlreadyExists


def test_version():
    result = CliRunner().invoke(cli_module.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_sweep_sessions(monkeypatch):
    async def fake_sweep():
        return 3

    monkeypatch.setattr(cli_module, "_sweep_impl", fake_sweep)
    result = CliRunner().invoke(cli_module.main, ["sweep-sessions"])
    assert result.exit_code == 0
    assert "Deleted 3 expired session(s)" in result.output


def test_create_user(monkeypatch):
    seen = {}

    async def fake_create(email, first_name, last_name, password):
        seen.update(email=email, first=first_name, last=last_name, password=password)
        return 42

    monkeypatch.setattr(cli_module, "_create_user_impl", fake_create)
    result = CliRunner().invoke(
        cli_module.main,
        ["create-user", "jane@example.com", "-f", "Jane", "-l", "Smith"],
        input="s3cret\ns3cret\n",
    )
    assert result.exit_code == 0, result.output
    assert "User #42 created" in result.output
    assert seen == {
        "email": "jane@example.com", "first": "Jane", "last": "Smith", "password": "s3cret",
    }


def test_create_user_duplicate(monkeypatch):
    async def fake_create(*args):
        raise EmailAlreadyExists()

    monkeypatch.setattr(cli_module, "_create_user_impl", fake_create)
    result = CliRunner().invoke(
        cli_module.main,
        ["create-user", "jane@example.com", "-f", "Jane", "-l", "Smith", "--password", "x"],
    )
    assert result.exit_code == 1
