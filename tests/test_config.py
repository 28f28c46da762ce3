"""
tests/test_config.py — .env + YAML Configuration
=================================================
"""

from __future__ import annotations

import dataclasses

import pytest

from scrimcord.config import load_config, parse_bool, parse_id_list
from scrimcord.errors import ConfigError

REQUIRED_ENV = {
    "SCRIMMAGE_API_SERVER_ENDPOINT": "https://ledger.example/",
    "SCRIMMAGE_PRIVATE_KEY": "pk-test",
    "SCRIMMAGE_NAMESPACE": "staging",
}


class TestParsing:

    def test_id_list_drops_blanks(self):
        assert parse_id_list("1, 2,,3 ,") == frozenset({"1", "2", "3"})

    def test_id_list_from_yaml_ints(self):
        assert parse_id_list([100, 200]) == frozenset({"100", "200"})

    def test_id_list_unset(self):
        assert parse_id_list(None) == frozenset()
        assert parse_id_list("") == frozenset()

    def test_id_list_single_yaml_int(self):
        assert parse_id_list(123) == frozenset({"123"})

    @pytest.mark.parametrize("raw", [{"id": 1}, 1.5, True])
    def test_id_list_rejects_other_shapes(self, raw):
        with pytest.raises(ConfigError, match="list of ids"):
            parse_id_list(raw)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("TRUE", True), ("false", False), ("", False), (None, False), (True, True)],
    )
    def test_bool(self, raw, expected):
        assert parse_bool(raw) is expected


class TestLoadConfig:

    def test_env_only(self, tmp_path):
        env = {
            **REQUIRED_ENV,
            "DISCORD_ALLOWED_GUILD_IDS": "100,101",
            "DISCORD_ALLOW_REGISTRATION": "true",
            "SCRIMMAGE_DATA_TYPE_PREFIX": "discord",
            "PORT": "3000",
        }
        cfg = load_config(tmp_path / "missing.yaml", env=env)
        assert cfg.ledger.api_server_endpoint == "https://ledger.example"
        assert cfg.ledger.namespace == "staging"
        assert cfg.scope.allowed_guild_ids == frozenset({"100", "101"})
        assert cfg.scope.allowed_channel_ids == frozenset()
        assert cfg.allow_registration is True
        assert cfg.event_type_prefix == "discord"
        assert cfg.status_port == 3000

    def test_yaml_values_with_env_override(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "discord:\n"
            "  allowed_channel_ids: [500, 501]\n"
            "  allowed_guild_ids: [100]\n"
            "scrimmage:\n"
            "  api_server_endpoint: https://yaml.example\n"
            "  private_key: from-yaml\n"
            "  namespace: prod\n"
            "  data_type_prefix: yaml\n"
            "max_in_flight: 8\n",
            encoding="utf-8",
        )
        cfg = load_config(path, env={"DISCORD_ALLOWED_GUILD_IDS": "200"})
        assert cfg.ledger.private_key == "from-yaml"
        assert cfg.scope.allowed_channel_ids == frozenset({"500", "501"})
        assert cfg.scope.allowed_guild_ids == frozenset({"200"})
        assert cfg.event_type_prefix == "yaml"
        assert cfg.max_in_flight == 8
        assert cfg.status_port is None

    def test_blank_yaml_keys_fall_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "discord:\n"
            "  bot_prefix:\n"
            "scrimmage:\n"
            "  data_type_prefix:\n"
            "  timeout:\n"
            "status:\n"
            "  host:\n"
            "max_in_flight:\n",
            encoding="utf-8",
        )
        cfg = load_config(path, env=REQUIRED_ENV)
        assert cfg.event_type_prefix == ""
        assert cfg.bot_prefix == "!"
        assert cfg.status_host == "0.0.0.0"
        assert cfg.ledger.timeout == 10.0
        assert cfg.max_in_flight == 64

    def test_scalar_guild_id_in_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("discord:\n  allowed_guild_ids: 123\n", encoding="utf-8")
        cfg = load_config(path, env=REQUIRED_ENV)
        assert cfg.scope.allowed_guild_ids == frozenset({"123"})

    def test_mapping_guild_ids_in_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("discord:\n  allowed_guild_ids: {a: 1}\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path, env=REQUIRED_ENV)

    def test_missing_ledger_settings(self, tmp_path):
        with pytest.raises(ConfigError, match="SCRIMMAGE_PRIVATE_KEY"):
            load_config(tmp_path / "missing.yaml", env={
                "SCRIMMAGE_API_SERVER_ENDPOINT": "https://x", "SCRIMMAGE_NAMESPACE": "n",
            })

    def test_bad_port(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.yaml", env={**REQUIRED_ENV, "PORT": "eighty"})

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path, env=REQUIRED_ENV)

    def test_config_is_frozen(self, tmp_path):
        cfg = load_config(tmp_path / "missing.yaml", env=REQUIRED_ENV)
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.event_type_prefix = "other"  # type: ignore[misc]
