# Overview: Pytest coverage for the append-only version snapshot log.

import pytest

from seating.errors import NotFoundError
from seating.services.version_store import VersionStore, diff_snapshots


@pytest.fixture
def versions(db_session):
    return VersionStore()


class TestVersionStore:
    def test_snapshot_stores_full_state(self, versions):
        state = {"id": "chart-1", "name": "Floor3", "layout": {"seats": [{"id": "s1"}]}}
        version = versions.snapshot("chart-1", state)
        assert version.id.startswith("v-")
        assert versions.get("chart-1", version.id).data == state

    def test_list_newest_first_with_pagination(self, versions):
        ids = [versions.snapshot("chart-1", {"n": n}).id for n in range(5)]
        versions.snapshot("chart-2", {"n": 99})

        page1 = [v.id for v in versions.list("chart-1", page=1, limit=2)]
        page3 = [v.id for v in versions.list("chart-1", page=3, limit=2)]
        assert page1 == [ids[4], ids[3]]
        assert page3 == [ids[0]]
        assert versions.count("chart-1") == 5

    def test_unknown_chart_yields_empty_page(self, versions):
        assert versions.list("chart-unknown") == []
        assert versions.count("chart-unknown") == 0

    def test_get_enforces_chart_ownership(self, versions):
        version = versions.snapshot("chart-1", {"n": 1})
        with pytest.raises(NotFoundError):
            versions.get("chart-2", version.id)
        with pytest.raises(NotFoundError):
            versions.get("chart-1", "v-missing")

    def test_to_dict_shape(self, versions):
        version = versions.snapshot("chart-1", {"n": 1})
        summary = version.to_dict()
        assert summary["chartId"] == "chart-1"
        assert summary["data"] == {"n": 1}
        assert summary["createdAt"].endswith("Z")

    def test_prune_keeps_newest(self, versions):
        ids = [versions.snapshot("chart-1", {"n": n}).id for n in range(5)]
        assert versions.prune("chart-1", keep=2) == 3
        assert [v.id for v in versions.list("chart-1")] == [ids[4], ids[3]]

    def test_prune_disabled_for_non_positive_keep(self, versions):
        versions.snapshot("chart-1", {"n": 1})
        assert versions.prune("chart-1", keep=0) == 0
        assert versions.count("chart-1") == 1

    def test_prune_all(self, versions):
        for n in range(3):
            versions.snapshot("chart-1", {"n": n})
            versions.snapshot("chart-2", {"n": n})
        assert versions.prune_all(keep=1) == 4
        assert versions.count("chart-1") == 1
        assert versions.count("chart-2") == 1


def _state(width=800, height=600, seats=()):
    return {"layout": {"width": width, "height": height, "seats": list(seats)}}


SEAT = {"id": "s1", "x": 0, "y": 0, "width": 60, "height": 40, "type": "desk", "color": "#fff", "status": "available"}


class TestDiffSnapshots:
    def test_identical_states(self):
        assert diff_snapshots(_state(seats=[SEAT]), _state(seats=[SEAT])) == []

    def test_canvas_resize(self):
        changes = diff_snapshots(_state(), _state(height=700))
        assert changes == [{
            "type": "layout_changed",
            "field": "height",
            "oldValue": 600,
            "newValue": 700,
            "description": "Canvas height changed from 600 to 700",
        }]

    def test_seat_updated_lists_changed_fields_only(self):
        after = dict(SEAT, status="occupied", assignedUser="alice")
        changes = diff_snapshots(_state(seats=[SEAT]), _state(seats=[after]))
        assert len(changes) == 1
        assert changes[0]["type"] == "seat_updated"
        assert changes[0]["oldValue"] == {"assignedUser": None, "status": "available"}
        assert changes[0]["newValue"] == {"assignedUser": "alice", "status": "occupied"}

    def test_move_and_update_are_separate_entries(self):
        after = dict(SEAT, y=30, color="#000")
        types = [c["type"] for c in diff_snapshots(_state(seats=[SEAT]), _state(seats=[after]))]
        assert types == ["seat_moved", "seat_updated"]

    def test_added_and_removed(self):
        other = dict(SEAT, id="s2")
        changes = diff_snapshots(_state(seats=[SEAT]), _state(seats=[other]))
        assert [(c["type"], c["seatId"]) for c in changes] == [("seat_added", "s2"), ("seat_removed", "s1")]
