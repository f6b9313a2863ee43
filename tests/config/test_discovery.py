"""Tests for config discovery and loading."""

from pathlib import Path

import pytest

from allocctl.config.discovery import CONFIG_FILENAME, find_config, load_config
from allocctl.config.models import AllocConfig


class TestFindConfig:
    def test_finds_in_current_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text('[remote]\nbase_url = "http://ledger"\n')
        assert find_config(tmp_path) == config_file.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        assert find_config(child) == config_file.resolve()

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("")
        monkeypatch.setenv("ALLOCCTL_CONFIG", str(config_file))
        assert find_config(tmp_path / "elsewhere") == config_file


class TestLoadConfig:
    def test_loads_from_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(
            '[remote]\nprefix = "/api/allocations"\nretries = 0\n[execution]\nreplace = false\n'
        )
        cfg = load_config(config_file)
        assert cfg.remote.prefix == "/api/allocations"
        assert cfg.remote.retries == 0
        assert cfg.execution.replace is False
        assert cfg.workspace.dirname == ".allocctl"  # default

    def test_returns_defaults_when_no_file(self, tmp_path: Path) -> None:
        assert load_config(cwd=tmp_path) == AllocConfig()

    def test_unknown_dimension_rejected(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text('[rules]\ndefault_dimension = "region"\n')
        with pytest.raises(ValueError):
            load_config(config_file)
