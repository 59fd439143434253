# Tests for photosync.cli
# CLI commands using Click testing

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from photosync.cli import cli


def invoke(config_file: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(config_file), *args])


class TestCliGroup:
    """Tests for main CLI group."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "PhotoSync" in result.output
        assert "writeall" in result.output
        assert "syncstatus" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "photosync" in result.output

    @patch("photosync.cli.load_config", side_effect=FileNotFoundError("No config"))
    def test_missing_config(self, mock_load):
        runner = CliRunner()
        result = runner.invoke(cli, ["import"])
        assert result.exit_code == 1
        assert "No config" in result.output

    def test_missing_config_file(self, temp_dir: Path):
        result = invoke(temp_dir / "absent.yaml", "status")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestTransferCommands:
    """Tests for import, export and blob store commands."""

    def test_import(self, config_file: Path, folders, write_photo):
        write_photo("P1.jpg")
        write_photo("P2.jpg")

        result = invoke(config_file, "import")

        assert result.exit_code == 0
        assert "Imported 2/2 images" in result.output
        assert (folders["archive"] / "P1.jpg").exists()

    def test_import_skip_archive(self, config_file: Path, folders, write_photo):
        write_photo("P1.jpg")

        result = invoke(config_file, "import", "--skip-archive")

        assert result.exit_code == 0
        assert (folders["import"] / "P1.jpg").exists()

    def test_import_missing_folder(self, config_file: Path, temp_dir: Path):
        result = invoke(config_file, "import", str(temp_dir / "nowhere"))
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_import_then_export(self, config_file: Path, folders, write_photo):
        write_photo("P1.jpg", b"one")
        invoke(config_file, "import")

        result = invoke(config_file, "export", "--incremental")

        assert result.exit_code == 0
        assert "Exported 1/1 images (incremental)" in result.output
        assert (folders["export"] / "P1.jpg").read_bytes() == b"one"

    def test_export_to_folder_argument(self, config_file: Path, temp_dir: Path, write_photo):
        write_photo("P1.jpg")
        invoke(config_file, "import")

        result = invoke(config_file, "export", str(temp_dir / "elsewhere"), "--force")

        assert result.exit_code == 0
        assert (temp_dir / "elsewhere" / "P1.jpg").exists()

    def test_blob_round_trip(self, config_file: Path, temp_dir: Path, write_photo):
        write_photo("P1.jpg")
        invoke(config_file, "import")

        upload = invoke(config_file, "toblobstore")
        download = invoke(config_file, "fromblobstore")

        assert upload.exit_code == 0
        assert "Uploaded 1/1 images" in upload.output
        assert (temp_dir / "blobs" / "photos" / "P1.jpg").exists()
        assert download.exit_code == 0
        assert "Downloaded 0/0 images" in download.output


class TestWriteAllCommand:
    """Tests for the writeall command."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["writeall", "--help"])
        assert result.exit_code == 0
        assert "FIELD" in result.output
        assert "--dry-run" in result.output

    def test_full_workflow(self, config_file: Path, folders, write_photo):
        write_photo("P1.jpg")

        result = invoke(config_file, "writeall")

        assert result.exit_code == 0
        assert (folders["export"] / "P1.jpg").exists()

    def test_dry_run(self, config_file: Path, folders, write_photo):
        write_photo("P1.jpg")

        result = invoke(config_file, "writeall", "image_data", "--dry-run")

        assert result.exit_code == 0
        assert "No changes were made" in result.output
        assert (folders["import"] / "P1.jpg").exists()
        assert not folders["export"].exists()

    def test_invalid_field(self, config_file: Path):
        result = invoke(config_file, "writeall", "code")
        assert result.exit_code == 1
        assert "cannot be cleared" in result.output

    def test_invalid_workflow(self, config_file: Path):
        result = invoke(config_file, "writeall", "--workflow", "import,sync")
        assert result.exit_code == 1
        assert "Unknown workflow step" in result.output


class TestStatusCommands:
    """Tests for status, syncstatus and test commands."""

    def test_status(self, config_file: Path, write_photo):
        write_photo("P1.jpg")
        invoke(config_file, "import", "--skip-archive")

        result = invoke(config_file, "status")

        assert result.exit_code == 0
        assert "Image count: 1 images" in result.output

    def test_syncstatus(self, config_file: Path, write_photo):
        write_photo("P1.jpg")
        invoke(config_file, "import")

        result = invoke(config_file, "syncstatus", "--detailed")

        assert result.exit_code == 0
        assert "PhotoSync Status Report" in result.output
        assert "never_exported: 1" in result.output

    def test_setup_check(self, config_file: Path):
        result = invoke(config_file, "test")
        assert result.exit_code == 0
        assert "PASSED" in result.output

    def test_init_db(self, config_file: Path, temp_dir: Path):
        result = invoke(config_file, "init-db")
        assert result.exit_code == 0
        assert (temp_dir / "ledger.db").exists()


class TestConfigCommands:
    """Tests for config subcommands."""

    def test_init_creates_file(self, temp_dir: Path):
        path = temp_dir / "new" / "config.yaml"

        result = invoke(path, "config", "init")

        assert result.exit_code == 0
        assert path.read_text(encoding="utf-8").startswith("# PhotoSync Configuration")

    def test_init_keeps_existing(self, config_file: Path):
        before = config_file.read_text(encoding="utf-8")

        result = invoke(config_file, "config", "init")

        assert result.exit_code == 0
        assert config_file.read_text(encoding="utf-8") == before

    def test_init_force(self, config_file: Path):
        result = invoke(config_file, "config", "init", "--force")

        assert result.exit_code == 0
        assert config_file.read_text(encoding="utf-8").startswith("# PhotoSync")

    def test_validate(self, config_file: Path):
        result = invoke(config_file, "config", "validate")
        assert result.exit_code == 0

    def test_validate_invalid(self, temp_dir: Path):
        path = temp_dir / "bad.yaml"
        path.write_text("retry:\n  max_attempts: 0\n", encoding="utf-8")

        result = invoke(path, "config", "validate")

        assert result.exit_code == 1

    def test_show(self, config_file: Path):
        result = invoke(config_file, "config", "show")
        assert result.exit_code == 0
        assert "export_file_name_format" in result.output
