"""Tests for configuration loading, merging and saving."""

import json

import pytest

from leaguesight.core.config import (
    LeagueSightConfig,
    config_to_dict,
    dict_to_config,
    generate_default_config,
    get_config,
    load_config,
    load_config_file,
    load_env_config,
    merge_configs,
    reset_config,
    save_config,
    set_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("FACEIT_API_KEY", "LEAGUESIGHT_CACHE_VERSION", "LEAGUESIGHT_COMPETITION_ID",
                "LEAGUESIGHT_API_DELAY_MS", "LEAGUESIGHT_CACHE_BACKEND"):
        monkeypatch.delenv(var, raising=False)
    yield
    reset_config()


class TestDefaults:
    """Tests for default values."""

    def test_pipeline_defaults(self):
        config = LeagueSightConfig()
        assert config.league.page_size == 100
        assert config.league.max_matches == 500
        assert config.league.batch_size == 10
        assert config.faceit.request_delay_ms == 500
        assert config.faceit.max_retries == 3

    def test_cache_defaults(self):
        cache = LeagueSightConfig().cache
        assert cache.namespace == "uniliga_stats"
        assert cache.ttl_seconds == 4 * 60 * 60
        assert cache.player_ttl_seconds == 7 * 24 * 60 * 60


class TestLoading:
    """Tests for file and environment sources."""

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "leaguesight.yaml"
        path.write_text("league:\n  max_matches: 50\ncache:\n  version: 12\n")

        config = load_config(path, include_env=False)

        assert config.league.max_matches == 50
        assert config.cache.version == 12
        assert config.league.page_size == 100

    def test_toml_file(self, tmp_path):
        path = tmp_path / "leaguesight.toml"
        path.write_text("[league]\nbatch_size = 4\n")
        assert load_config(path, include_env=False).league.batch_size == 4

    def test_json_file(self, tmp_path):
        path = tmp_path / "leaguesight.json"
        path.write_text(json.dumps({"faceit": {"game": "csgo"}}))
        assert load_config(path, include_env=False).faceit.game == "csgo"

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config_file(tmp_path / "absent.yaml") == {}

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "leaguesight.yaml"
        path.write_text("cache:\n  version: 12\n")
        monkeypatch.setenv("LEAGUESIGHT_CACHE_VERSION", "13")
        monkeypatch.setenv("FACEIT_API_KEY", "12345")

        config = load_config(path)

        assert config.cache.version == 13
        assert config.faceit.api_key == "12345"

    def test_env_strings_not_coerced(self, monkeypatch):
        monkeypatch.setenv("LEAGUESIGHT_COMPETITION_ID", "123")
        assert load_env_config()["league"]["competition_id"] == "123"

    def test_unknown_keys_ignored(self):
        config = dict_to_config({"league": {"bogus": 1, "max_matches": 10}})
        assert config.league.max_matches == 10
        assert not hasattr(config.league, "bogus")


class TestMerge:
    """Tests for merge_configs."""

    def test_nested_merge(self):
        merged = merge_configs({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": 4})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 4}


class TestSaving:
    """Tests for saving and templates."""

    def test_secret_hidden(self):
        config = LeagueSightConfig()
        config.faceit.api_key = "secret"
        assert config_to_dict(config)["faceit"]["api_key"] is None
        assert config_to_dict(config, include_secrets=True)["faceit"]["api_key"] == "secret"

    def test_save_and_reload_json(self, tmp_path):
        config = LeagueSightConfig()
        config.league.max_matches = 42
        path = tmp_path / "out.json"

        save_config(config, path)

        assert load_config(path, include_env=False).league.max_matches == 42

    def test_save_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError):
            save_config(LeagueSightConfig(), tmp_path / "out.ini")

    def test_default_yaml_template_loads(self, tmp_path):
        path = tmp_path / "leaguesight.yaml"
        generate_default_config(path)

        config = load_config(path, include_env=False)

        assert config.cache.version == LeagueSightConfig().cache.version
        assert config.league.teams_file == "uniliga_teams.json"


class TestGlobalConfig:
    """Tests for the process-wide configuration."""

    def test_set_and_get(self):
        config = LeagueSightConfig()
        set_config(config)
        assert get_config() is config

    def test_reset(self):
        set_config(LeagueSightConfig())
        reset_config()
        assert get_config() is not None
