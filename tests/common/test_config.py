import os
import pytest
import tempfile
import argparse
import yaml
from common.config import (
    get_config_file_path,
    get_env_file_path,
    load_env_vars,
    load_config,
    apply_config_to_args,
)


@pytest.fixture
def no_env(monkeypatch):
    """Keep a .env file in the working directory out of the tests."""
    monkeypatch.setattr("common.config.load_env_vars", lambda: {})


class TestConfig:
    """Tests for the config module."""

    def test_get_config_file_path_current_dir(self, tmp_path, monkeypatch):
        """Test that get_config_file_path finds a config file in the current directory."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "notes_porter.yaml").write_text("global: {}\n")

        assert get_config_file_path() == "notes_porter.yaml"

    def test_get_config_file_path_home_dir(self, monkeypatch):
        """Test that get_config_file_path finds a config file in the home directory."""
        def mock_exists(path):
            return path == os.path.expanduser("~/.notes_porter.yaml")

        monkeypatch.setattr(os.path, "exists", mock_exists)

        assert get_config_file_path() == os.path.expanduser("~/.notes_porter.yaml")

    def test_get_config_file_path_not_found(self, monkeypatch):
        """Test that get_config_file_path returns an empty string when no config file is found."""
        monkeypatch.setattr(os.path, "exists", lambda path: False)

        assert get_config_file_path() == ""

    def test_get_env_file_path_not_found(self, monkeypatch):
        """Test that get_env_file_path returns an empty string when no .env file is found."""
        monkeypatch.setattr(os.path, "exists", lambda path: False)

        assert get_env_file_path() == ""

    def test_load_env_vars(self, tmp_path, monkeypatch):
        """Test that load_env_vars keeps prefixed variables and converts their values."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text(
            "NOTES_PORTER_API_TOKEN=secret\n"
            "NOTES_PORTER_IMPORT_BATCH_SIZE=25\n"
            "NOTES_PORTER_DRY_RUN=true\n"
            "OTHER_SETTING=ignored\n"
        )
        for key in ("NOTES_PORTER_API_TOKEN", "NOTES_PORTER_IMPORT_BATCH_SIZE", "NOTES_PORTER_DRY_RUN", "OTHER_SETTING"):
            monkeypatch.delenv(key, raising=False)

        try:
            env_vars = load_env_vars()
        finally:
            for key in ("NOTES_PORTER_API_TOKEN", "NOTES_PORTER_IMPORT_BATCH_SIZE", "NOTES_PORTER_DRY_RUN", "OTHER_SETTING"):
                os.environ.pop(key, None)

        assert env_vars["api-token"] == "secret"
        assert env_vars["import-batch-size"] == 25
        assert env_vars["dry-run"] is True
        assert "other-setting" not in env_vars

    def test_load_config_env_sections(self, monkeypatch):
        """Test that environment variables named after a command go into that command's section."""
        monkeypatch.setattr(
            "common.config.load_env_vars",
            lambda: {"import-batch-size": 25, "api-token": "secret"},
        )
        monkeypatch.setattr("common.config.get_config_file_path", lambda: "")

        config = load_config()

        assert config == {"import": {"batch-size": 25}, "global": {"api-token": "secret"}}

    def test_load_config_with_file(self, no_env):
        """Test that load_config correctly loads a config file."""
        config_data = {
            "global": {
                "log_file": "global.log"
            },
            "import": {
                "duplicates": "replace"
            }
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml") as temp_file:
            yaml.dump(config_data, temp_file)
            temp_file.flush()

            config = load_config(temp_file.name)
            assert config == config_data

    def test_load_config_without_file(self, no_env, monkeypatch):
        """Test that load_config returns an empty dict when no config file is provided or found."""
        monkeypatch.setattr("common.config.get_config_file_path", lambda: "")

        assert load_config() == {}

    def test_load_config_invalid_file(self, no_env):
        """Test that load_config handles invalid config files gracefully."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml") as temp_file:
            temp_file.write("invalid: yaml: content:")
            temp_file.flush()

            assert load_config(temp_file.name) == {}

    def test_load_config_not_a_mapping(self, no_env):
        """Test that load_config ignores a file whose top level is not a mapping."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml") as temp_file:
            temp_file.write("- one\n- two\n")
            temp_file.flush()

            assert load_config(temp_file.name) == {}

    def test_load_config_skips_scalar_section(self, no_env):
        """Test that load_config skips sections that are not mappings."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml") as temp_file:
            temp_file.write("global: oops\nexport:\n  format: html\n")
            temp_file.flush()

            assert load_config(temp_file.name) == {"export": {"format": "html"}}

    def test_apply_config_to_args_global(self):
        """Test that global configuration fills arguments that were not given."""
        args = argparse.Namespace(command="import", api_url=None, duplicates="ignore")
        config = {"global": {"api-url": "http://notes.test/api", "duplicates": "replace"}}

        args = apply_config_to_args(args, config)

        assert args.api_url == "http://notes.test/api"
        assert args.duplicates == "ignore"

    def test_apply_config_to_args_command_overrides_global(self):
        """Test that command configuration overrides a value that came from the global section."""
        args = argparse.Namespace(command="import", batch_size=None)
        config = {"global": {"batch-size": 10}, "import": {"batch-size": 20}}

        args = apply_config_to_args(args, config)

        assert args.batch_size == 20

    def test_apply_config_to_args_other_command_ignored(self):
        """Test that configuration of another command is not applied."""
        args = argparse.Namespace(command="convert", format=None)
        config = {"export": {"format": "html"}}

        args = apply_config_to_args(args, config)

        assert args.format is None

    def test_apply_config_to_args_cli_wins(self):
        """Test that explicit command line values are kept."""
        args = argparse.Namespace(command="export", format="text")
        config = {"export": {"format": "html"}}

        args = apply_config_to_args(args, config)

        assert args.format == "text"
