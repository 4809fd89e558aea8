"""
Tests for the command line interface.
"""

import orjson
import pytest
from typer.testing import CliRunner

from truthdare.services.cli import app

PACKAGES = [
    {"id": 1, "name": "Starter", "description": "Easy going", "truth": "starter_truth.txt", "dare": "starter_dare.txt"},
    {"id": 2, "name": "Spicy", "description": "Bolder prompts", "truth": "spicy_truth.txt", "dare": "spicy_dare.txt"},
]

FILES = {
    "starter_truth.txt": "Starter truth one\nStarter truth two\nStarter truth three\n",
    "starter_dare.txt": "Starter dare one\nStarter dare two\n",
    "spicy_truth.txt": "Spicy truth one\nSpicy truth two\n",
    "spicy_dare.txt": "Spicy dare one\n",
}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def assets_dir(tmp_path):
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "card_mapping.json").write_bytes(orjson.dumps(PACKAGES))
    for name, text in FILES.items():
        (assets / name).write_text(text, encoding="utf-8")
    return assets


@pytest.fixture
def invoke(runner, tmp_path, assets_dir):
    """Run the CLI against temporary assets and state."""
    env = {
        "TRUTHDARE_ASSETS_DIR": str(assets_dir),
        "TRUTHDARE_STATE_DIR": str(tmp_path / "state"),
        "TRUTHDARE_SEED": "5",
    }

    def _invoke(*args, input=None):
        return runner.invoke(app, ["--config", str(tmp_path / "none.json"), *args], env=env, input=input)

    return _invoke


class TestPackages:
    def test_lists_catalog(self, invoke):
        result = invoke("packages")
        assert result.exit_code == 0
        assert "Starter" in result.output
        assert "Spicy" in result.output

    def test_select_marks_packages(self, invoke, tmp_path):
        result = invoke("select", "2")
        assert result.exit_code == 0
        assert "[x]" in result.output
        settings = orjson.loads((tmp_path / "state" / "settings.json").read_bytes())
        assert settings["selectedPackageIds"] == [2]

    def test_select_unknown(self, invoke):
        result = invoke("select", "1", "9")
        assert result.exit_code == 1
        assert "Unknown package ids: 9" in result.output

    def test_missing_catalog(self, invoke, assets_dir):
        (assets_dir / "card_mapping.json").unlink()
        result = invoke("packages")
        assert result.exit_code == 1
        assert "could not load the prompt packages" in result.output


class TestGame:
    def test_start_without_selection(self, invoke):
        result = invoke("start")
        assert result.exit_code == 1
        assert "Please select at least one package!" in result.output

    def test_draw_without_game(self, invoke):
        result = invoke("truth")
        assert result.exit_code == 1
        assert "No game in progress" in result.output

    def test_full_round_trip(self, invoke, tmp_path):
        started = invoke("start", "1")
        assert started.exit_code == 0
        assert "Round:" in started.output
        assert (tmp_path / "state" / "session.json").exists()

        truth = invoke("truth")
        assert truth.exit_code == 0
        assert "TRUTH" in truth.output
        assert "Starter truth" in truth.output

        passed = invoke("pass", "--yes")
        assert passed.exit_code == 0
        assert "TRUTH (pass)" in passed.output

        dare = invoke("dare")
        assert dare.exit_code == 0
        assert "Starter dare" in dare.output

        saved = orjson.loads((tmp_path / "state" / "session.json").read_bytes())
        assert saved["currentRound"] == 3
        assert saved["lastCardType"] == "dare"

        status = invoke("status")
        assert status.exit_code == 0
        assert "Round:" in status.output
        assert "3" in status.output

    def test_pass_needs_prior_draw(self, invoke):
        invoke("start", "1")
        result = invoke("pass", "--yes")
        assert result.exit_code == 1
        assert "Draw a card first!" in result.output

    def test_pass_can_be_declined(self, invoke, tmp_path):
        invoke("start", "1")
        invoke("truth")
        before = (tmp_path / "state" / "session.json").read_bytes()
        result = invoke("pass", input="n\n")
        assert result.exit_code == 1
        assert (tmp_path / "state" / "session.json").read_bytes() == before

    def test_start_again_keeps_progress(self, invoke, tmp_path):
        invoke("start", "1")
        invoke("truth")
        result = invoke("start", "1", "2")
        assert result.exit_code == 0
        assert "A saved game was found: round 2" in result.output
        saved = orjson.loads((tmp_path / "state" / "session.json").read_bytes())
        assert saved["currentRound"] == 2
        assert saved["selectedPackageIds"] == [1, 2]
        assert saved["packageStates"][0]["truthIndex"] == 1

    def test_start_new_discards_progress(self, invoke, tmp_path):
        invoke("start", "1")
        invoke("truth")
        result = invoke("start", "--new")
        assert result.exit_code == 0
        saved = orjson.loads((tmp_path / "state" / "session.json").read_bytes())
        assert saved["currentRound"] == 1

    def test_removing_last_package_disables_pass(self, invoke):
        invoke("start", "1")
        invoke("truth")
        changed = invoke("start", "2")
        assert changed.exit_code == 0
        assert "Pass is not available" in changed.output
        result = invoke("pass", "--yes")
        assert result.exit_code == 1

    def test_reset(self, invoke):
        invoke("start", "1")
        result = invoke("reset")
        assert result.exit_code == 0
        assert "Saved game cleared." in result.output
        assert invoke("truth").exit_code == 1

    def test_play_loop(self, invoke):
        invoke("select", "2")
        result = invoke("play", input="t\nd\ns\nq\n")
        assert result.exit_code == 0
        assert "Spicy truth" in result.output
        assert "Spicy dare one" in result.output
        assert "Game saved. See you next time!" in result.output


def test_dark_mode(invoke, tmp_path):
    result = invoke("dark-mode", "on")
    assert result.exit_code == 0
    assert "Dark mode on." in result.output
    settings = orjson.loads((tmp_path / "state" / "settings.json").read_bytes())
    assert settings["darkMode"] is True
    assert invoke("dark-mode", "off").output.strip() == "Dark mode off."


def test_invalid_seed_is_reported(runner, tmp_path, assets_dir):
    env = {"TRUTHDARE_ASSETS_DIR": str(assets_dir), "TRUTHDARE_STATE_DIR": str(tmp_path / "state"), "TRUTHDARE_SEED": "abc"}
    result = runner.invoke(app, ["--config", str(tmp_path / "none.json"), "packages"], env=env)
    assert result.exit_code == 1
    assert "TRUTHDARE_SEED must be a number" in result.output
    assert not isinstance(result.exception, ValueError)
