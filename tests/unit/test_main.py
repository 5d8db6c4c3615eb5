"""Tests for the command-line entry point."""

import json
import pytest
from unittest.mock import patch

import main
from conftest import FakeStore
from resolver.config import Config
from resolver.dedup import DuplicateResolver
from resolver.errors import UpstreamFetchError


@pytest.fixture
def cli_config():
    return Config(
        supabase_url="https://test-project.supabase.co",
        supabase_service_role_key="test-service-role-key",
    )


@pytest.fixture
def run_cli(cli_config, fake_store):
    """Run ``main.main`` against the in-memory store."""

    def _run(*argv, store=None, config=None):
        resolver = DuplicateResolver(store=store or fake_store)
        with (
            patch("main.get_config", return_value=config or cli_config),
            patch("main.DuplicateResolver", return_value=resolver),
        ):
            return main.main(list(argv))

    return _run


class TestReport:
    def test_default_report(self, run_cli, capsys):
        assert run_cli() == main.EXIT_OK

        out = capsys.readouterr().out
        assert "Found 1 duplicate group(s), 2 duplicate user(s)." in out
        assert "ip:1.1.1.1:fp1" in out

    def test_json_report(self, run_cli, capsys):
        assert run_cli("--json") == main.EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["totalGroups"] == 1
        assert data["totalDuplicates"] == 2

    def test_store_failure(self, run_cli, capsys):
        store = FakeStore(users_error=UpstreamFetchError("connection refused", table="user_data"))

        assert run_cli(store=store) == main.EXIT_FAILURE
        assert "Store read failed" in capsys.readouterr().out

    def test_configuration_issues(self, run_cli, capsys):
        assert run_cli(config=Config(supabase_url="", supabase_service_role_key="")) == main.EXIT_FAILURE
        assert "Configuration issues found" in capsys.readouterr().out


class TestGroup:
    def test_found(self, run_cli, capsys):
        assert run_cli("--group", "ip:1.1.1.1:fp1", "--json") == main.EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["primaryUser"]["user_id"] == "C"

    def test_not_found(self, run_cli):
        assert run_cli("--group", "unique:D") == main.EXIT_BAD_INPUT

    def test_empty_key(self, run_cli):
        assert run_cli("--group", "") == main.EXIT_BAD_INPUT


class TestMerge:
    def test_not_implemented(self, run_cli, capsys):
        assert run_cli("--merge", "ip:1.1.1.1:fp1") == main.EXIT_NOT_IMPLEMENTED
        assert "not yet implemented" in capsys.readouterr().out

    def test_not_implemented_without_store_config(self, run_cli):
        config = Config(supabase_url="", supabase_service_role_key="")
        assert run_cli("--merge", "ip:1.1.1.1:fp1", config=config) == main.EXIT_NOT_IMPLEMENTED

    def test_missing_key(self, run_cli):
        assert run_cli("--merge", "") == main.EXIT_BAD_INPUT

    def test_preview(self, run_cli, capsys):
        assert run_cli("--preview", "ip:1.1.1.1:fp1", "--primary", "B", "--json") == main.EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["primaryUserId"] == "B"
        assert data["duplicateUserIds"] == ["C", "A"]

    def test_preview_unknown_primary(self, run_cli):
        assert run_cli("--preview", "ip:1.1.1.1:fp1", "--primary", "Z") == main.EXIT_BAD_INPUT

    def test_primary_without_preview_or_merge(self, run_cli, fake_store):
        assert run_cli("--primary", "B") == main.EXIT_BAD_INPUT
        assert fake_store.calls == []

    def test_primary_with_group_is_rejected(self, run_cli):
        assert run_cli("--group", "ip:1.1.1.1:fp1", "--primary", "B") == main.EXIT_BAD_INPUT


class TestOtherCommands:
    def test_stats(self, run_cli, capsys):
        assert run_cli("--stats", "--json") == main.EXIT_OK

        data = json.loads(capsys.readouterr().out)
        assert data["totalUsers"] == 4
        assert data["uniqueUsers"] == 2

    @pytest.mark.parametrize("healthy,expected", [(True, 0), (False, 1)])
    def test_healthcheck(self, run_cli, healthy, expected):
        with patch("resolver.healthcheck.run_health_checks", return_value=(healthy, [])):
            assert run_cli("--healthcheck") == expected

    def test_serve(self, run_cli, cli_config):
        with patch("uvicorn.run") as mock_run:
            assert run_cli("--serve") == main.EXIT_OK

        mock_run.assert_called_once_with(
            "resolver.api.main:app", host=cli_config.api_host, port=cli_config.api_port
        )

    def test_commands_are_exclusive(self, run_cli):
        with pytest.raises(SystemExit):
            run_cli("--stats", "--group", "x")
