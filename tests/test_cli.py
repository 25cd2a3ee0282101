"""Tests for turnpath CLI."""

import json

import pytest

from turnpath.cli import main, create_parser


FLOW_MODULE = '''
from turnpath.flow import each_player, player_actions, sequence

main = sequence(
    each_player(name="player", do=player_actions(name="turn", actions=["draw", "bet"])),
    name="game",
)
'''


@pytest.fixture
def flow_module(tmp_path, monkeypatch):
    """Importable module holding a small flow definition."""
    (tmp_path / "cli_sample_flow.py").write_text(FLOW_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_sample_flow:main"


class TestCLIParser:
    """Tests for CLI argument parsing."""

    def test_parser_creation(self):
        """Test that parser is created correctly."""
        parser = create_parser()
        assert parser.prog == "turnpath"

    def test_help_no_error(self):
        """Test that help doesn't raise an error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    def test_no_args_shows_help(self):
        """Test that no arguments shows help and exits 0."""
        assert main([]) == 0

    def test_version_flag(self):
        """Test --version flag."""
        assert main(["--version"]) == 0

    def test_inspect_requires_flow(self):
        """Test that inspect without --flow is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["inspect"])
        assert exc_info.value.code == 2


class TestVersionCommand:
    """Tests for the version command."""

    def test_version_output(self, capsys):
        """Test that version command outputs expected info."""
        assert main(["version"]) == 0
        captured = capsys.readouterr()
        assert "turnpath" in captured.out
        assert "Python" in captured.out
        assert "Dependencies:" in captured.out


class TestValidateCommand:
    """Tests for the validate command."""

    def test_validate_config(self, tmp_path, capsys):
        """Test validating a configuration with a file sink."""
        path = tmp_path / "turnpath.yaml"
        path.write_text(
            "version: '1.0'\n"
            "interpreter:\n"
            "  max_loop_iterations: 100\n"
            "observability:\n"
            "  level: normal\n"
            "  sinks:\n"
            "    - type: file\n"
            "      path: /tmp/trace.jsonl\n",
            encoding="utf-8",
        )

        assert main(["validate", "-c", str(path)]) == 0
        captured = capsys.readouterr()
        assert "max_loop_iterations: 100" in captured.out
        assert "file -> /tmp/trace.jsonl" in captured.out
        assert "Configuration is valid." in captured.out

    def test_validate_invalid_config(self, tmp_path, capsys):
        """Test that schema errors are reported."""
        path = tmp_path / "bad.yaml"
        path.write_text("interpreter:\n  max_steps: -1\n", encoding="utf-8")

        assert main(["validate", "-c", str(path)]) == 1
        assert "Validation failed" in capsys.readouterr().err

    def test_validate_missing_file(self, capsys):
        """Test that a missing file is reported."""
        assert main(["validate", "-c", "/nonexistent/turnpath.yaml"]) == 1
        assert "not found" in capsys.readouterr().err


class TestInspectCommand:
    """Tests for the inspect command."""

    def test_inspect_start(self, flow_module, capsys):
        """Test inspecting a flow from its start."""
        assert main(["inspect", "--flow", flow_module]) == 0
        out = capsys.readouterr().out
        assert "[Definition]" in out
        assert "[Awaiting] draw, bet from players [1]" in out
        assert "[Position]" in out

    def test_inspect_saved_position(self, flow_module, tmp_path, capsys):
        """Test restoring a saved position before printing it."""
        from cli_sample_flow import main as definition
        from turnpath.flow import FlowDriver, Move
        from turnpath.players import PlayerCollection

        driver = FlowDriver(definition, players=PlayerCollection.of("A", "B", "C"))
        driver.start()
        driver.resume(Move(player=1, name="bet"))
        saved = tmp_path / "position.json"
        saved.write_text(json.dumps(driver.branch_json()), encoding="utf-8")

        assert main(["inspect", "--flow", flow_module, "--position", str(saved), "-p", "3"]) == 0
        assert "from players [2]" in capsys.readouterr().out

    def test_inspect_bad_reference(self, capsys):
        """Test that an unimportable flow is reported."""
        assert main(["inspect", "--flow", "no_such_module_xyz:main"]) == 1
        assert "Error" in capsys.readouterr().err

    def test_inspect_malformed_reference(self, capsys):
        """Test that a reference without an attribute is reported."""
        assert main(["inspect", "--flow", "turnpath"]) == 1
        assert "module:attribute" in capsys.readouterr().err

    def test_inspect_mismatched_position(self, flow_module, tmp_path, capsys):
        """Test that a position from another flow is reported."""
        saved = tmp_path / "position.json"
        saved.write_text(json.dumps([{"type": "for_loop", "name": "round", "index": 0}]), encoding="utf-8")

        assert main(["inspect", "--flow", flow_module, "--position", str(saved)]) == 1
        assert "Error" in capsys.readouterr().err


class TestDebugCommand:
    """Tests for the debug command."""

    def test_debug_runs_to_completion(self, capsys):
        """Test that the demo flow plays through."""
        assert main(["debug", "-p", "2", "-r", "2"]) == 0
        out = capsys.readouterr().out
        assert "[Results]" in out
        assert "Player 1:" in out

    def test_debug_verbose(self, capsys):
        """Test that --debug prints the active path."""
        assert main(["debug", "-p", "2", "-r", "1", "--debug"]) == 0
        out = capsys.readouterr().out
        assert "--- Move 1: player #1" in out
