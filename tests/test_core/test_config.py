"""Tests for config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from contentfix.core.config import ContentFixConfig, get_contentfix_dir, load_config


class TestLoadConfig:
    def test_defaults_when_no_config_file(self, tmp_path: Path):
        """Without a contentfix.toml, load_config should return defaults."""
        config = load_config(tmp_path)

        assert isinstance(config, ContentFixConfig)
        assert config.remediation.rollback_threshold == 0.5
        assert config.remediation.content_loss_threshold == 0.8
        assert config.remediation.recent_content_limit == 10
        assert config.remediation.max_changes == 50
        assert config.verification.settle_delay == 3.0

    def test_loads_remediation_section(self, tmp_path: Path):
        toml_content = """\
[remediation]
rollback_threshold = 0.25
recent_content_limit = 5
enable_reanalysis = false
"""
        (tmp_path / "contentfix.toml").write_text(toml_content)
        config = load_config(tmp_path)

        assert config.remediation.rollback_threshold == 0.25
        assert config.remediation.recent_content_limit == 5
        assert config.remediation.enable_reanalysis is False
        assert config.remediation.max_changes == 50

    def test_loads_client_and_verification_sections(self, tmp_path: Path):
        toml_content = """\
[client]
per_page = 20
user_agent = "Test/1.0"

[verification]
settle_delay = 0
"""
        (tmp_path / "contentfix.toml").write_text(toml_content)
        config = load_config(tmp_path)

        assert config.client.per_page == 20
        assert config.client.user_agent == "Test/1.0"
        assert config.verification.settle_delay == 0

    def test_unknown_keys_ignored(self, tmp_path: Path):
        (tmp_path / "contentfix.toml").write_text("[remediation]\nbogus = 1\n[other]\nx = 2\n")
        config = load_config(tmp_path)
        assert not hasattr(config.remediation, "bogus")

    @pytest.mark.parametrize("key", ["rollback_threshold", "content_loss_threshold"])
    def test_threshold_out_of_range(self, tmp_path: Path, key: str):
        (tmp_path / "contentfix.toml").write_text(f"[remediation]\n{key} = 1.5\n")
        with pytest.raises(ValueError, match=key):
            load_config(tmp_path)


def test_get_contentfix_dir_creates_directory(tmp_path: Path):
    path = get_contentfix_dir(tmp_path)
    assert path == tmp_path / ".contentfix"
    assert path.is_dir()
