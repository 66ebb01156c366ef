# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for Config: files, profiles, env overrides, placeholders and binding."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import BaseModel

from pysession.core.config import Config, config_properties


class TestConfig:
    def test_get_simple_value(self):
        config = Config({"session": {"cookie_name": "sid"}})
        assert config.get("session.cookie_name") == "sid"

    def test_get_with_default(self):
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "pysession.yaml"
        config_file.write_text("pysession:\n  session:\n    cookie_name: app.sid\n")
        config = Config.from_file(config_file)
        assert config.get("pysession.session.cookie_name") == "app.sid"

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "pysession.toml"
        config_file.write_text('[pysession.session]\nrolling = true\n')
        config = Config.from_file(config_file)
        assert config.get("pysession.session.rolling") is True

    def test_library_defaults_loaded(self, tmp_path: Path):
        config = Config.from_sources(tmp_path)
        assert config.get("pysession.session.cookie_name") == "connect.sid"
        assert config.get("pysession.session.unset") == "keep"
        assert "pysession-defaults.yaml (library defaults)" in config.loaded_sources

    def test_defaults_can_be_skipped(self, tmp_path: Path):
        config = Config.from_sources(tmp_path, load_defaults=False)
        assert config.get("pysession.session.cookie_name") is None

    def test_env_key(self):
        assert Config.env_key("pysession.session.secret") == "PYSESSION_SESSION_SECRET"
        assert Config.env_key("pysession.session.cookie-name") == "PYSESSION_SESSION_COOKIE_NAME"

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("PYSESSION_SESSION_SECRET", "from-env")
        config = Config({"pysession": {"session": {"secret": "from-file"}}})
        assert config.get("pysession.session.secret") == "from-env"


class TestProfileConfigMerging:
    def test_merge_profile_config(self, tmp_path):
        base = tmp_path / "pysession.yaml"
        base.write_text("pysession:\n  session:\n    rolling: false\n    proxy: false\n")

        profile = tmp_path / "pysession-prod.yaml"
        profile.write_text("pysession:\n  session:\n    proxy: true\n")

        config = Config.from_file(base, active_profiles=["prod"], load_defaults=False)
        assert config.get("pysession.session.proxy") is True
        assert config.get("pysession.session.rolling") is False

    def test_later_profile_wins(self, tmp_path):
        (tmp_path / "pysession.yaml").write_text("store: base\n")
        (tmp_path / "pysession-dev.yaml").write_text("store: memory\n")
        (tmp_path / "pysession-local.yaml").write_text("store: redis\n")

        config = Config.from_file(tmp_path / "pysession.yaml", active_profiles=["dev", "local"])
        assert config.get("store") == "redis"

    def test_config_directory_is_searched(self, tmp_path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "pysession.yaml").write_text("name: from-config-dir\n")

        config = Config.from_sources(tmp_path)
        assert config.get("name") == "from-config-dir"

    def test_missing_profile_file_is_skipped(self, tmp_path):
        base = tmp_path / "pysession.yaml"
        base.write_text("name: base\n")

        config = Config.from_file(base, active_profiles=["nonexistent"])
        assert config.get("name") == "base"

    def test_env_vars_still_win(self, tmp_path, monkeypatch):
        (tmp_path / "pysession.yaml").write_text("pysession:\n  session:\n    cookie_name: base\n")
        (tmp_path / "pysession-dev.yaml").write_text("pysession:\n  session:\n    cookie_name: dev\n")

        monkeypatch.setenv("PYSESSION_SESSION_COOKIE_NAME", "env-wins")
        config = Config.from_file(tmp_path / "pysession.yaml", active_profiles=["dev"])
        assert config.get("pysession.session.cookie_name") == "env-wins"


class TestPlaceholderResolution:
    def test_resolve_env_var(self, monkeypatch):
        monkeypatch.setenv("SESSION_SECRET", "s3cret")
        config = Config({"session": {"secret": "${SESSION_SECRET}"}})
        assert config.get("session.secret") == "s3cret"

    def test_resolve_config_reference(self):
        config = Config({"app": {"name": "shop"}, "cookie": "${app.name}.sid"})
        assert config.get("cookie") == "shop.sid"

    def test_resolve_with_default(self):
        config = Config({"key": "${MISSING_VAR:fallback_value}"})
        assert config.get("key") == "fallback_value"

    def test_non_string_passthrough(self):
        config = Config({"ttl": 86400})
        assert config.get("ttl") == 86400

    def test_unresolvable_placeholder_raises(self):
        config = Config({"key": "${SURELY_NOT_SET_ANYWHERE}"})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("key")

    def test_max_recursion_guard(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ValueError, match="[Mm]ax.*recursion"):
            config.get("a")


class TestConfigProperties:
    def test_bind_to_pydantic_model(self):
        @config_properties(prefix="pysession.session.redis")
        class RedisSettings(BaseModel):
            url: str = "redis://localhost:6379/0"
            ttl: int = 60

        config = Config({"pysession": {"session": {"redis": {"url": "redis://cache:6379/1", "ttl": "120"}}}})
        settings = config.bind(RedisSettings)
        assert settings.url == "redis://cache:6379/1"
        assert settings.ttl == 120

    def test_bind_uses_defaults(self):
        @config_properties(prefix="pysession.session.redis")
        class RedisSettings(BaseModel):
            ttl: int = 60

        assert Config({}).bind(RedisSettings).ttl == 60

    def test_bind_validation_failure(self):
        @config_properties(prefix="limits")
        class Limits(BaseModel):
            ttl: int

        with pytest.raises(ValueError, match="Configuration validation failed"):
            Config({"limits": {"ttl": "not-a-number"}}).bind(Limits)

    def test_bind_undecorated_class(self):
        class Plain(BaseModel):
            pass

        with pytest.raises(ValueError, match="not decorated"):
            Config({}).bind(Plain)
