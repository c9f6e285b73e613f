# Overview: Flask CLI maintenance command tests.

import pytest

from seating.services.version_store import VersionStore


@pytest.fixture
def runner(app, db_session):
    return app.test_cli_runner()


class TestChartsCommands:
    def test_list_empty(self, runner):
        result = runner.invoke(args=["charts", "list"])
        assert result.exit_code == 0
        assert "No seating charts found." in result.output

    def test_list_shows_charts(self, runner, service, make_payload):
        kept = service.create(make_payload())
        gone = service.create(make_payload(name="Basement"))
        service.delete(gone["id"])

        result = runner.invoke(args=["charts", "list"])
        assert kept["id"] in result.output
        assert gone["id"] not in result.output

        result = runner.invoke(args=["charts", "list", "--all"])
        assert gone["id"] in result.output

    def test_prune_versions(self, runner, service, make_payload):
        chart_id = service.create(make_payload())["id"]
        for n in range(4):
            service.update(chart_id, {"name": f"rev {n}"})

        result = runner.invoke(args=["charts", "prune-versions", "--keep", "1"])
        assert result.exit_code == 0
        assert "Deleted 3 version snapshots" in result.output
        assert VersionStore().count(chart_id) == 1

    def test_prune_versions_rejects_zero(self, runner):
        result = runner.invoke(args=["charts", "prune-versions", "--keep", "0"])
        assert result.exit_code != 0

    def test_clear_cache(self, runner, app):
        cache = app.extensions["seating_cache"]
        cache.set("chart:abc", {"id": "abc"}, 600)
        result = runner.invoke(args=["charts", "clear-cache", "--yes"])
        assert result.exit_code == 0
        assert cache.get("chart:abc") is None
