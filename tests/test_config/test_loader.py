"""Tests for glrunner configuration loader."""

from pathlib import Path

import pytest

from glrunner.config.loader import (
    ConfigError,
    load_runner_config,
    load_yaml,
    merge_overrides,
)
from glrunner.config.models import RunnerConfig


@pytest.fixture
def tmp_yaml(tmp_path):
    """Create a temporary YAML file."""

    def _create(content: str, filename: str = "runner.yaml") -> Path:
        path = tmp_path / filename
        path.write_text(content)
        return path

    return _create


class TestLoadYaml:
    def test_valid_yaml(self, tmp_yaml):
        path = tmp_yaml("name: build-01\n")
        assert load_yaml(path) == {"name": "build-01"}

    def test_empty_yaml(self, tmp_yaml):
        assert load_yaml(tmp_yaml("")) == {}

    def test_file_not_found(self):
        with pytest.raises(ConfigError, match="not found"):
            load_yaml(Path("/nonexistent/runner.yaml"))

    def test_invalid_yaml(self, tmp_yaml):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_yaml(tmp_yaml("invalid: [yaml: {broken"))

    def test_top_level_list(self, tmp_yaml):
        with pytest.raises(ConfigError, match="Expected a mapping"):
            load_yaml(tmp_yaml("- a\n- b\n"))


class TestLoadRunnerConfig:
    def test_full_config(self, tmp_yaml):
        content = """
name: build-01
registration_token: reg-token
config_dir: /srv/gitlab-runner
additional_options:
  description: build host
  tag_list: [docker, linux]
  run_untagged: false
connection:
  url: https://gitlab.example.org
  proxy: http://proxy.example.org:3128
  ca_file: /etc/ssl/internal-ca.pem
  ssl_insecure: false
  timeout: 10
"""
        config = load_runner_config(tmp_yaml(content))
        assert config.name == "build-01"
        assert config.config_dir == Path("/srv/gitlab-runner")
        assert config.additional_options["tag_list"] == ["docker", "linux"]
        assert config.additional_options["run_untagged"] is False
        assert config.connection.url == "https://gitlab.example.org"
        assert config.connection.proxy == "http://proxy.example.org:3128"
        assert config.connection.timeout == 10.0

    def test_validation_failure(self, tmp_yaml):
        content = "connection:\n  timeout: 0\n"
        with pytest.raises(ConfigError, match="validation failed"):
            load_runner_config(tmp_yaml(content))


class TestMergeOverrides:
    def test_overrides_connection_and_runner(self):
        config = RunnerConfig(name="from-file")
        merged = merge_overrides(
            config,
            name="from-cli",
            url="https://gitlab.example.org",
            ssl_insecure=True,
        )
        assert merged.name == "from-cli"
        assert merged.connection.url == "https://gitlab.example.org"
        assert merged.connection.ssl_insecure is True

    def test_empty_values_ignored(self):
        config = RunnerConfig(
            name="build-01",
            connection={"url": "https://gitlab.example.org", "ssl_insecure": True},
        )
        merged = merge_overrides(config, name="", url=None, proxy="", ssl_insecure=None)
        assert merged.name == "build-01"
        assert merged.connection.url == "https://gitlab.example.org"
        assert merged.connection.ssl_insecure is True

    def test_additional_options_merged(self):
        config = RunnerConfig(additional_options={"description": "a", "locked": True})
        merged = merge_overrides(config, additional_options={"description": "b"})
        assert merged.additional_options == {"description": "b", "locked": True}

    def test_config_dir_string_becomes_path(self):
        merged = merge_overrides(RunnerConfig(), config_dir="/tmp/runners")
        assert merged.config_dir == Path("/tmp/runners")

    def test_invalid_override(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            merge_overrides(RunnerConfig(), timeout=0.1)
