"""Tests for the click command line, run against a store in a temp directory."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from contentfix._version import __version__
from contentfix.cli.common import DEFAULT_USER
from contentfix.cli.main import cli
from contentfix.store.sqlite import SQLiteStore


@pytest.fixture
def runner(tmp_path, monkeypatch) -> CliRunner:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    return CliRunner()


@pytest.fixture
def local_store(tmp_path) -> SQLiteStore:
    return SQLiteStore(tmp_path)


@pytest.fixture
def site_id(local_store) -> str:
    return local_store.add_site(DEFAULT_USER, "https://example.com", "admin", "secret").id


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestSiteCommands:
    def test_add_site(self, runner, local_store):
        result = runner.invoke(
            cli,
            ["site", "add", "https://blog.example.com/", "-u", "editor", "-p", "pw",
             "--keyword", "bikes"],
        )
        assert result.exit_code == 0, result.output
        assert "Site id:" in result.output
        new_id = result.output.split("Site id:")[1].split()[0]
        saved = local_store.get_site(new_id, DEFAULT_USER)
        assert saved.url == "https://blog.example.com"
        assert saved.keywords == ["bikes"]
        assert saved.application_password == "pw"

    def test_import_issues_object(self, runner, tmp_path, site_id, local_store):
        path = tmp_path / "issues.json"
        path.write_text(json.dumps({"issues": [
            {"type": "images_missing_alt", "severity": "critical"},
            {"type": "missing_canonical"},
        ]}))
        result = runner.invoke(cli, ["issues", "import", site_id, str(path)])
        assert result.exit_code == 0, result.output
        assert "Imported 2 issue(s)" in result.output

    def test_import_invalid_json(self, runner, tmp_path, site_id):
        path = tmp_path / "issues.json"
        path.write_text("{nope")
        result = runner.invoke(cli, ["issues", "import", site_id, str(path)])
        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_import_unknown_site(self, runner, tmp_path):
        path = tmp_path / "issues.json"
        path.write_text("[]")
        result = runner.invoke(cli, ["issues", "import", "missing", str(path)])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_types(self, runner, site_id, local_store):
        local_store.import_issues(site_id, DEFAULT_USER, [
            {"type": "missing_meta_description"},
            {"type": "broken_sitemap"},
        ])
        result = runner.invoke(cli, ["types", site_id])
        assert result.exit_code == 0, result.output
        assert "missing_meta_description" in result.output
        assert "broken_sitemap" in result.output
        assert "2 fixable issue(s)" in result.output


class TestRunCommand:
    def test_dry_run_json(self, runner, site_id, local_store):
        local_store.import_issues(site_id, DEFAULT_USER, [
            {"type": "missing_meta_description", "severity": "critical"},
        ])
        result = runner.invoke(cli, ["run", site_id, "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["dry_run"] is True
        assert data["stats"]["fixes_attempted"] == 1
        assert data["reanalysis"]["simulated"] is True

    def test_dry_run_text(self, runner, site_id, local_store):
        local_store.import_issues(site_id, DEFAULT_USER, [{"type": "missing_h1"}])
        result = runner.invoke(cli, ["run", site_id])
        assert result.exit_code == 0, result.output
        assert "Dry run complete. Found 1 fixable issues." in result.output

    def test_failure_exit_code(self, runner):
        result = runner.invoke(cli, ["run", "missing-site", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_skip_backup_needs_confirmation(self, runner, site_id, local_store):
        local_store.import_issues(site_id, DEFAULT_USER, [{"type": "missing_h1"}])
        result = runner.invoke(cli, ["run", site_id, "--apply", "--skip-backup"], input="n\n")
        assert result.exit_code == 0
        assert "Aborted." in result.output


class TestRollbackCommand:
    def test_unknown_site(self, runner):
        result = runner.invoke(cli, ["rollback", "session-1", "--site", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_no_backup_for_session(self, runner, site_id):
        result = runner.invoke(cli, ["rollback", "session-1", "--site", site_id])
        assert result.exit_code == 0
        assert "No backup recorded for session session-1" in result.output
