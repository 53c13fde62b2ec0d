#!/usr/bin/env python3

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from schemacast import __version__
from schemacast.cli_utils import reconstruct_command_line
from schemacast.schemacast import cli, generate

SCHEMAS_DIR = Path(__file__).parent / "test_data" / "schemas"


@pytest.fixture
def runner():
    return CliRunner()


class TestGenerateCommand:
    """The schemacast generate subcommand"""

    def test_generate(self, runner, tmp_path):
        output_dir = tmp_path / "out"
        result = runner.invoke(cli, ["generate", str(SCHEMAS_DIR), "--output-dir", str(output_dir), "--prefix", "models"])

        assert result.exit_code == 0, result.output
        assert "module(s) generated" in result.output
        assert (output_dir / "product.py").is_file()

    def test_generation_comment_records_the_command(self, runner, tmp_path):
        output_dir = tmp_path / "out"
        runner.invoke(cli, ["generate", str(SCHEMAS_DIR), "-o", str(output_dir), "-p", "models"])

        first_line = (output_dir / "product.py").read_text().splitlines()[0]
        assert first_line == f"# Generated by schemacast v{__version__} : schemacast generate schemas --output-dir out --prefix models"

    def test_failed_file_exits_non_zero(self, runner, tmp_path):
        schema_dir = tmp_path / "schemas"
        schema_dir.mkdir()
        (schema_dir / "bad.json").write_text("{", encoding="utf-8")
        (schema_dir / "good.json").write_text(json.dumps({"properties": {"a": {"type": "string"}}}), encoding="utf-8")

        result = runner.invoke(cli, ["generate", str(schema_dir), "-o", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "FAILED bad.json: parse:" in result.output
        assert "1 module(s) generated" in result.output

    def test_dry_run_writes_nothing(self, runner, tmp_path):
        output_dir = tmp_path / "out"
        result = runner.invoke(cli, ["generate", str(SCHEMAS_DIR), "-o", str(output_dir), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "[dry run]" in result.output
        assert not output_dir.exists()

    def test_config_file(self, runner, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"add_generation_comment": False, "enforce_constraints": True}))
        output_dir = tmp_path / "out"

        result = runner.invoke(cli, ["generate", str(SCHEMAS_DIR), "-o", str(output_dir), "-c", str(config_path)])

        assert result.exit_code == 0, result.output
        code = (output_dir / "product.py").read_text()
        assert "# Generated by" not in code
        assert 'Field("price", Integer(minimum=0))' in code

    def test_invalid_config_file(self, runner, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("[not json")

        result = runner.invoke(cli, ["generate", str(SCHEMAS_DIR), "-o", str(tmp_path / "out"), "-c", str(config_path)])

        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_missing_schema_directory_is_a_usage_error(self, runner, tmp_path):
        result = runner.invoke(cli, ["generate", str(tmp_path / "nope")])
        assert result.exit_code == 2

    def test_refusing_to_clear_is_reported(self, runner, tmp_path):
        schema_dir = tmp_path / "schemas"
        schema_dir.mkdir()
        (schema_dir / "a.json").write_text(json.dumps({"properties": {}}), encoding="utf-8")

        result = runner.invoke(cli, ["generate", str(schema_dir), "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert "refusing to clear" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert __version__ in result.output


class TestCliUtils:
    """Test cases for CLI utilities"""

    def test_reconstruct_command_line_without_context(self):
        """Without an active Click context the program name is returned"""
        assert reconstruct_command_line(generate) == "schemacast"


if __name__ == "__main__":
    pytest.main([__file__])
