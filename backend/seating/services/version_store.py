# Overview: Append-only snapshot log per chart, with paginated retrieval, retention and seat-level diffs.

from __future__ import annotations

import json

from ..errors import NotFoundError
from ..extensions import db
from ..identifiers import new_version_id
from ..models import SeatingChartVersion
from seating.time_utils import utcnow
from .concurrency import run_with_retry


class VersionStore:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def snapshot(self, chart_id: str, state: dict, *, commit: bool = True) -> SeatingChartVersion:
        """Append a full copy of `state`. Existing versions are never touched."""
        def _op():
            version = SeatingChartVersion(
                id=new_version_id(),
                chart_id=chart_id,
                version_data=json.dumps(state),
                created_at=utcnow(),
            )
            self.session.add(version)
            if commit:
                self.session.commit()
            else:
                self.session.flush()
            return version

        if not commit:
            return _op()
        return run_with_retry(_op, session=self.session)

    def _for_chart(self, chart_id: str):
        return self.session.query(SeatingChartVersion).filter_by(chart_id=chart_id)

    def list(self, chart_id: str, *, page: int = 1, limit: int = 10) -> list[SeatingChartVersion]:
        return (
            self._for_chart(chart_id)
            .order_by(SeatingChartVersion.created_at.desc(), SeatingChartVersion.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
            .all()
        )

    def count(self, chart_id: str) -> int:
        return self._for_chart(chart_id).count()

    def get(self, chart_id: str, version_id: str) -> SeatingChartVersion:
        version = self._for_chart(chart_id).filter_by(id=version_id).first()
        if not version:
            raise NotFoundError("Version not found")
        return version

    def prune(self, chart_id: str, *, keep: int, commit: bool = True) -> int:
        """
        Delete the oldest snapshots of one chart beyond the newest `keep`.

        keep <= 0 disables pruning.
        """
        if keep <= 0:
            return 0

        def _op():
            stale_ids = [
                row.id
                for row in self._for_chart(chart_id)
                .with_entities(SeatingChartVersion.id)
                .order_by(SeatingChartVersion.created_at.desc(), SeatingChartVersion.id.desc())
                .offset(keep)
                .all()
            ]
            if stale_ids:
                self.session.query(SeatingChartVersion).filter(
                    SeatingChartVersion.id.in_(stale_ids)
                ).delete(synchronize_session=False)
            if commit:
                self.session.commit()
            else:
                self.session.flush()
            return len(stale_ids)

        if not commit:
            return _op()
        return run_with_retry(_op, session=self.session)

    def prune_all(self, *, keep: int) -> int:
        chart_ids = [
            row.chart_id
            for row in self.session.query(SeatingChartVersion.chart_id).distinct().all()
        ]
        return sum(self.prune(chart_id, keep=keep) for chart_id in chart_ids)


# Seat fields that make up a position change; anything else is an update
SEAT_POSITION_FIELDS = ("x", "y")
CANVAS_FIELDS = ("width", "height")


def _seats_by_id(state: dict) -> dict:
    layout = state.get("layout") or {}
    return {seat["id"]: seat for seat in layout.get("seats", []) if "id" in seat}


def diff_snapshots(before: dict, after: dict) -> list[dict]:
    """
    Describe how `after` differs from `before`.

    Returns change entries typed layout_changed, seat_added, seat_removed,
    seat_moved or seat_updated. Canvas changes come first, then seats in
    `after` order, then removed seats in `before` order. A seat that both
    moves and changes other fields yields one entry of each type.
    """
    changes = []
    old_layout = before.get("layout") or {}
    new_layout = after.get("layout") or {}

    for field in CANVAS_FIELDS:
        old_value, new_value = old_layout.get(field), new_layout.get(field)
        if old_value != new_value:
            changes.append({
                "type": "layout_changed",
                "field": field,
                "oldValue": old_value,
                "newValue": new_value,
                "description": f"Canvas {field} changed from {old_value} to {new_value}",
            })

    old_seats = _seats_by_id(before)
    new_seats = _seats_by_id(after)

    for seat_id, seat in new_seats.items():
        previous = old_seats.get(seat_id)
        if previous is None:
            changes.append({
                "type": "seat_added",
                "seatId": seat_id,
                "newValue": seat,
                "description": f"Seat {seat_id} added",
            })
            continue

        moved = {f for f in SEAT_POSITION_FIELDS if previous.get(f) != seat.get(f)}
        if moved:
            changes.append({
                "type": "seat_moved",
                "seatId": seat_id,
                "oldValue": {f: previous.get(f) for f in SEAT_POSITION_FIELDS},
                "newValue": {f: seat.get(f) for f in SEAT_POSITION_FIELDS},
                "description": f"Seat {seat_id} moved",
            })

        updated = sorted(
            f for f in set(previous) | set(seat)
            if f not in SEAT_POSITION_FIELDS and previous.get(f) != seat.get(f)
        )
        if updated:
            changes.append({
                "type": "seat_updated",
                "seatId": seat_id,
                "oldValue": {f: previous.get(f) for f in updated},
                "newValue": {f: seat.get(f) for f in updated},
                "description": f"Seat {seat_id} updated: {', '.join(updated)}",
            })

    for seat_id, seat in old_seats.items():
        if seat_id not in new_seats:
            changes.append({
                "type": "seat_removed",
                "seatId": seat_id,
                "oldValue": seat,
                "description": f"Seat {seat_id} removed",
            })

    return changes
