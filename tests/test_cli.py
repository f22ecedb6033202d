"""Tests for the slug-guard CLI."""

import hashlib

from typer.testing import CliRunner

from slug_guard import __version__
from slug_guard.cli import app

runner = CliRunner()


class TestCompute:
    """Tests for the compute command."""

    def test_default_strategy(self):
        """Without a strategy the id hex slug is printed."""
        result = runner.invoke(app, ["compute", "42"])

        assert result.exit_code == 0
        assert hashlib.sha256(b"42").hexdigest()[:11] in result.output

    def test_number_strategy(self):
        """YAML mappings select the numeric strategy."""
        result = runner.invoke(app, ["compute", "42", "--strategy", "{id: number, length: 4}"])

        assert result.exit_code == 0
        expected = int(hashlib.sha256(b"42").hexdigest(), 16) % 10**4
        assert result.output.strip() == str(expected)

    def test_attribute_strategy(self):
        """Attribute strategies parameterize the given value."""
        result = runner.invoke(
            app, ["compute", "1", "--strategy", "title", "--value", "Big Red Backpack"]
        )

        assert result.exit_code == 0
        assert result.output.strip() == "big-red-backpack"

    def test_invalid_yaml(self):
        """Unparseable strategies exit with an error."""
        result = runner.invoke(app, ["compute", "1", "--strategy", "{id: [unclosed"])

        assert result.exit_code == 1
        assert "Invalid strategy" in result.output


class TestClassify:
    """Tests for the classify command."""

    def test_slug_message(self):
        result = runner.invoke(app, ["classify", "UNIQUE constraint failed: posts.slug"])

        assert result.exit_code == 0
        assert result.output.strip() == "slug"

    def test_other_message(self):
        result = runner.invoke(app, ["classify", "UNIQUE constraint failed: posts.canonical_slug"])

        assert result.exit_code == 0
        assert result.output.strip() == "other"


class TestSimulate:
    """Tests for the simulate command."""

    def test_identical_titles(self):
        """One record keeps the base slug and the rest are suffixed."""
        result = runner.invoke(app, ["simulate", "Big Red Backpack", "--count", "3"])

        assert result.exit_code == 0
        assert result.output.count("big-red-backpack-") == 2
        assert result.output.count("big-red-backpack") == 3

    def test_not_null_column(self):
        """Pre-insert assignment gives the same kind of result."""
        result = runner.invoke(app, ["simulate", "Tent", "-n", "2", "--not-null"])

        assert result.exit_code == 0
        assert result.output.count("tent-") == 1

    def test_missing_config(self, tmp_path):
        """A missing settings file is reported."""
        result = runner.invoke(app, ["simulate", "Tent", "--config", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestStrategies:
    """Tests for the strategies command."""

    def test_lists_resolved_strategies(self, tmp_path):
        """Each configured collection is shown with its resolved strategy."""
        config_file = tmp_path / "slugs.yaml"
        config_file.write_text(
            "max_attempts: 4\n"
            "strategies:\n"
            "  posts: title\n"
            "  coupons:\n"
            "    id: number\n"
            "    length: 8\n"
        )

        result = runner.invoke(app, ["strategies", str(config_file)])

        assert result.exit_code == 0
        assert "posts" in result.output
        assert "IdNumber(length=8)" in result.output
        assert "Max attempts: 4" in result.output

    def test_non_mapping_config(self, tmp_path):
        """A YAML list is rejected with a suggestion."""
        config_file = tmp_path / "slugs.yaml"
        config_file.write_text("- title\n")

        result = runner.invoke(app, ["strategies", str(config_file)])

        assert result.exit_code == 1
        assert "Configuration Error" in result.output


def test_version():
    """--version prints the package version."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
