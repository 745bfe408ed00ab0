import pytest
from typer.testing import CliRunner

from budget_categorizer import cli

runner = CliRunner()

@pytest.fixture(autouse=True)
def fresh_state():
    """The CLI keeps its service on module state; start every test clean"""
    cli.state.service = None
    cli.state.db = None
    yield
    if cli.state.db is not None:
        cli.state.db.close()
    cli.state.service = None
    cli.state.db = None

def invoke(db_path, *args):
    return runner.invoke(cli.app, ["--db", str(db_path), "--owner", "user-1", *args])

@pytest.mark.integration
class TestCli:

    def test_rule_then_suggest(self, tmp_path):
        db_path = tmp_path / "budget.db"

        result = invoke(db_path, "init-db")
        assert result.exit_code == 0, result.output
        assert "Created 9 categories" in result.output

        result = invoke(db_path, "rules", "add", "coffee", "Dining Out", "--priority", "5")
        assert result.exit_code == 0, result.output

        result = invoke(db_path, "suggest", "Blue Bottle Coffee")
        assert result.exit_code == 0, result.output
        assert "Dining Out" in result.output
        assert "rule match" in result.output

    def test_invalid_pattern_fails_cleanly(self, tmp_path):
        db_path = tmp_path / "budget.db"
        invoke(db_path, "init-db")

        result = invoke(db_path, "rules", "add", "(", "Dining Out")

        assert result.exit_code == 1
        assert "Invalid rule pattern" in result.output

    def test_unknown_category(self, tmp_path):
        db_path = tmp_path / "budget.db"
        invoke(db_path, "init-db")

        result = invoke(db_path, "rules", "add", "coffee", "Nope")

        assert result.exit_code == 1
        assert "Unknown category" in result.output

    def test_rule_with_account_pattern(self, tmp_path):
        db_path = tmp_path / "budget.db"
        invoke(db_path, "init-db")

        result = invoke(db_path, "rules", "add", "amazon", "Shopping", "--account", "visa")
        assert result.exit_code == 0, result.output

        result = invoke(db_path, "rules", "list")
        assert result.exit_code == 0, result.output
        assert "visa" in result.output

    def test_invalid_account_pattern_fails_cleanly(self, tmp_path):
        db_path = tmp_path / "budget.db"
        invoke(db_path, "init-db")

        result = invoke(db_path, "rules", "add", "amazon", "Shopping", "--account", "[visa")

        assert result.exit_code == 1
        assert "Invalid rule pattern" in result.output
