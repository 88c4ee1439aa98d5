from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from api_doc_generator.cli import main
from api_doc_generator.errors import InputError

FIXTURES = Path(__file__).parent / "fixtures"
DECLARATIONS = FIXTURES / "declarations.yaml"


class TestCliGenerate:
    def test_generate_default(self, tmp_path):
        output = tmp_path / "docs"
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(DECLARATIONS), str(output)])

        assert result.exit_code == 0, result.output
        assert "Documented 3 operations, 2 options classes and 1 registration methods." in result.output
        assert f"Output written to {output.resolve()}" in result.output
        assert (output / "frontend" / "ODataOperations" / "index.md").exists()

    def test_entity_errors_are_reported_but_not_fatal(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(DECLARATIONS), str(tmp_path / "docs")])
        assert result.exit_code == 0
        assert "ERROR: ERROR! Duplicated section 'sensenet:Client'" in result.output
        assert "ERROR: Options class 'UnknownOptions' is not categorized." in result.output

    def test_all_flag_documents_every_project(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(DECLARATIONS), str(tmp_path / "docs"), "--all"])
        assert result.exit_code == 0
        assert "Documented 5 operations" in result.output

    def test_level_option(self, tmp_path):
        output = tmp_path / "docs"
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(DECLARATIONS), str(output), "--level", "operation"])
        assert result.exit_code == 0
        assert (output / "frontend" / "ODataOperations" / "tools" / "ping.md").exists()

    def test_invalid_level_is_rejected(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(DECLARATIONS), str(tmp_path / "docs"), "--level", "page"])
        assert result.exit_code == 2

    def test_missing_input(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(tmp_path / "missing"), str(tmp_path / "docs")])
        assert result.exit_code == 1
        assert "Error: Unknown file or directory" in result.output
        assert not (tmp_path / "docs").exists()

    def test_unsupported_input_type(self, tmp_path):
        source = tmp_path / "Program.cs"
        source.write_text("class Program {}")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(source), str(tmp_path / "docs")])
        assert result.exit_code == 1
        assert "Unsupported input file type '.cs'" in result.output

    def test_config_file_is_layered_under_options(self, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text("product_name: acme\nfile_level: category\n")
        output = tmp_path / "docs"
        runner = CliRunner()
        result = runner.invoke(
            main, ["generate", str(DECLARATIONS), str(output), "--config", str(config), "--level", "flat"]
        )
        assert result.exit_code == 0, result.output
        ping = (output / "frontend" / "ODataOperations" / "ping.md").read_text()
        assert 'metaTitle: "acme API - Ping"' in ping

    def test_generation_error_exits_with_one(self, tmp_path):
        with patch("api_doc_generator.cli.run_generation", side_effect=InputError("no declarations")):
            runner = CliRunner()
            result = runner.invoke(main, ["generate", str(DECLARATIONS), str(tmp_path / "docs")])
        assert result.exit_code == 1
        assert "Error: no declarations" in result.output


class TestCliVersion:
    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "api-doc-gen, version 0.3.0" in result.output


class TestCliReport:
    def test_report_prints_without_writing(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["report", str(DECLARATIONS)])
            assert list(Path.cwd().iterdir()) == []
        assert result.exit_code == 0
        assert "ODATA CHEAT SHEET:" in result.output
        assert "Operations:      5" in result.output

    def test_report_missing_input(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["report", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
