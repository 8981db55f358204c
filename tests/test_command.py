"""Tests for CommandFilter with variable injection."""

import pytest
from unittest.mock import MagicMock, patch

from assetpipe.command import CommandFilter
from assetpipe.exceptions import CommandError


class TestCommandFilterFormatting:
    """Tests for variable substitution."""

    def test_variables_are_quoted(self):
        command = CommandFilter(
            "esbuild {entry} --target={target}",
            variables={'entry': '/src/my app.js', 'target': 'es2015'},
        )
        assert command.format_command() == "esbuild '/src/my app.js' --target=es2015"

    def test_list_variable_becomes_words(self):
        command = CommandFilter(
            "uncss {pages}",
            variables={'pages': ['a.html', 'b c.html']},
        )
        assert command.format_command() == "uncss a.html 'b c.html'"

    def test_unknown_variable(self):
        command = CommandFilter("run {missing}", variables={'entry': 'x'})
        with pytest.raises(KeyError) as exc_info:
            command.format_command()
        assert "missing" in str(exc_info.value)
        assert "Available variables: entry" in str(exc_info.value)

    def test_no_variables(self):
        command = CommandFilter("cat")
        assert command.format_command() == "cat"

    def test_environment(self):
        command = CommandFilter(
            "postcss",
            variables={'browsers': 'last 2 versions', 'pages': ['a', 'b']},
            env={'BROWSERSLIST': 'last 2 versions'},
        )
        env = command._build_environment()
        assert env['browsers'] == 'last 2 versions'
        assert env['pages'] == 'a b'
        assert env['BROWSERSLIST'] == 'last 2 versions'

    def test_repr(self):
        assert repr(CommandFilter("cat")) == "CommandFilter('cat')"


class TestCommandFilterExecution:
    """Tests for running commands."""

    def test_filters_stdin_to_stdout(self):
        command = CommandFilter("tr a-z A-Z")
        assert command("body { color: red }") == "BODY { COLOR: RED }"

    def test_env_variable_visible_to_command(self):
        command = CommandFilter('printf "%s" "$target"', variables={'target': 'es5'})
        assert command() == "es5"

    def test_cwd(self, tmp_path):
        (tmp_path / "input.txt").write_text("from file")
        command = CommandFilter("cat input.txt", cwd=tmp_path)
        assert command() == "from file"

    def test_failure_raises(self):
        command = CommandFilter('echo "broken" >&2; exit 3')
        with pytest.raises(CommandError) as exc_info:
            command("input")
        assert exc_info.value.returncode == 3
        assert "broken" in exc_info.value.stderr
        assert "exit code 3" in str(exc_info.value)

    def test_subprocess_arguments(self):
        with patch('assetpipe.command.subprocess.run') as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="out", stderr="")
            result = CommandFilter("tool {x}", variables={'x': '1'})("in")

        assert result == "out"
        args, kwargs = mock_run.call_args
        assert args[0] == "tool 1"
        assert kwargs['shell'] is True
        assert kwargs['input'] == "in"
        assert kwargs['text'] is True
