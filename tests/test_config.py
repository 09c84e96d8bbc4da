"""Tests for garage-fs configuration loading."""

import json
import os
from unittest.mock import patch

import pytest

from garage_fs.config import (
    ENV_VARS,
    StoreConfig,
    get_config_path,
    load_config,
    read_config_file,
)


@pytest.fixture
def clean_env():
    """Environment without any GARAGE_* settings."""
    env = {k: v for k, v in os.environ.items() if k not in ENV_VARS}
    with patch.dict(os.environ, env, clear=True):
        yield


class TestStoreConfig:

    def test_defaults(self):
        cfg = StoreConfig()
        assert cfg.default_host == "localhost"
        assert cfg.default_port == 3900
        assert cfg.bucket == "garage-fs"
        assert cfg.key_prefix == "filesystem/"
        assert cfg.use_ssl is False
        assert cfg.ensure_bucket is True

    def test_config_path_follows_xdg(self, tmp_path):
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            assert get_config_path() == tmp_path / "garage-fs" / "config.json"


class TestReadConfigFile:

    def test_missing(self, tmp_path):
        assert read_config_file(tmp_path / "missing.json") is None

    def test_valid(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"bucket": "mine"}))
        assert read_config_file(path) == {"bucket": "mine"}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("not json {{{")
        assert read_config_file(path) is None

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert read_config_file(path) is None


class TestLoadConfig:

    def test_defaults_without_sources(self, tmp_path, clean_env):
        cfg = load_config(config_path=tmp_path / "missing.json", use_dotenv=False)
        assert cfg == StoreConfig()

    def test_file_values(self, tmp_path, clean_env):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "default_host": "garage.lan",
            "default_port": "3901",
            "use_ssl": True,
            "read_timeout": 10,
        }))
        cfg = load_config(config_path=path, use_dotenv=False)
        assert cfg.default_host == "garage.lan"
        assert cfg.default_port == 3901
        assert cfg.use_ssl is True
        assert cfg.read_timeout == 10.0

    def test_env_overrides_file(self, tmp_path, clean_env):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"bucket": "from-file", "region": "file-region"}))
        with patch.dict(os.environ, {
            "GARAGE_BUCKET": "from-env",
            "GARAGE_FS_PORT": "4000",
            "GARAGE_FS_USE_SSL": "yes",
            "GARAGE_ACCESS_KEY_ID": "ak",
            "GARAGE_SECRET_ACCESS_KEY": "sk",
        }):
            cfg = load_config(config_path=path, use_dotenv=False)
        assert cfg.bucket == "from-env"
        assert cfg.region == "file-region"
        assert cfg.default_port == 4000
        assert cfg.use_ssl is True
        assert cfg.access_key == "ak"
        assert cfg.secret_key == "sk"

    def test_overrides_win(self, tmp_path, clean_env):
        with patch.dict(os.environ, {"GARAGE_FS_HOST": "env-host"}):
            cfg = load_config(
                overrides={"default_host": "cli-host", "default_port": 1234},
                config_path=tmp_path / "missing.json",
                use_dotenv=False,
            )
        assert cfg.default_host == "cli-host"
        assert cfg.default_port == 1234

    def test_unknown_and_invalid_values_ignored(self, tmp_path, clean_env):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"colour": "blue", "default_port": "not-a-number"}))
        cfg = load_config(config_path=path, use_dotenv=False)
        assert cfg.default_port == 3900
        assert not hasattr(cfg, "colour")

    def test_dotenv_loaded(self, tmp_path, clean_env):
        with patch("garage_fs.config.load_dotenv") as mock_load:
            load_config(config_path=tmp_path / "missing.json")
        mock_load.assert_called_once()
