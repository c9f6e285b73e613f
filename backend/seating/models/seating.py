from __future__ import annotations

import json

from ..extensions import db
from seating.time_utils import to_utc_z


class SeatingChart(db.Model):
    """
    Department seating chart: canvas dimensions plus embedded seats.

    Layout and metadata are stored as serialized JSON blobs next to the
    scalar columns. Seats are not a separate table.
    """
    __tablename__ = "seating_charts"
    __table_args__ = (
        # Department listings are ordered by most recent update
        db.Index("ix_seating_charts_dept_active_updated", "department", "is_active", "updated_at"),
    )

    id = db.Column(db.String(64), primary_key=True)
    department = db.Column(db.String(128), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    layout_data = db.Column(db.Text, nullable=False)
    metadata_data = db.Column("metadata", db.Text, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # Optimistic locking: a flush against a stale row raises StaleDataError
    revision = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": revision}

    @property
    def layout(self) -> dict:
        return json.loads(self.layout_data) if self.layout_data else {}

    @layout.setter
    def layout(self, value: dict) -> None:
        self.layout_data = json.dumps(value)

    @property
    def chart_metadata(self) -> dict:
        return json.loads(self.metadata_data) if self.metadata_data else {}

    @chart_metadata.setter
    def chart_metadata(self, value: dict) -> None:
        self.metadata_data = json.dumps(value)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "department": self.department,
            "name": self.name,
            "description": self.description,
            "layout": self.layout,
            "metadata": self.chart_metadata,
            "isActive": self.is_active,
            "deletedAt": to_utc_z(self.deleted_at) if self.deleted_at else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "revision": self.revision,
        }


class SeatingChartVersion(db.Model):
    """Immutable snapshot of a chart's full state, used for history and rollback."""
    __tablename__ = "seating_chart_versions"
    __table_args__ = (
        db.Index("ix_seating_chart_versions_chart_created", "chart_id", "created_at"),
    )

    id = db.Column(db.String(64), primary_key=True)
    chart_id = db.Column(db.String(64), db.ForeignKey("seating_charts.id"), nullable=False, index=True)
    version_data = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def data(self) -> dict:
        return json.loads(self.version_data)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "chartId": self.chart_id,
            "data": self.data,
            "createdAt": to_utc_z(self.created_at),
        }
