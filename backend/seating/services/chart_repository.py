# Overview: Durable CRUD over seating chart rows; the single source of truth.

from __future__ import annotations

from typing import Optional

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..identifiers import new_chart_id
from ..models import SeatingChart
from seating.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


# Document keys the repository is allowed to merge on update
UPDATABLE_FIELDS = ("department", "name", "description", "layout", "metadata", "isActive")


class ChartRepository:
    """
    Persistence for SeatingChart records.

    Writes commit by default. Pass commit=False to only flush, so the caller
    can put a version snapshot and the write in one transaction.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def create(self, document: dict, *, commit: bool = True) -> SeatingChart:
        def _op():
            chart_id = new_chart_id()
            if self.session.get(SeatingChart, chart_id) is not None:
                raise ConflictError(f"Chart id already exists: {chart_id}")

            now = utcnow()
            chart = SeatingChart(
                id=chart_id,
                department=document["department"],
                name=document["name"],
                description=document.get("description"),
                is_active=document.get("isActive", True),
                created_at=now,
                updated_at=now,
            )
            chart.layout = document["layout"]
            chart.chart_metadata = document["metadata"]
            if not chart.is_active:
                chart.deleted_at = now

            self.session.add(chart)
            self._finish(commit)
            return chart

        return self._run(_op, commit)

    def get(self, chart_id: str, *, include_inactive: bool = False, for_update: bool = False) -> SeatingChart:
        query = self.session.query(SeatingChart).filter_by(id=chart_id)
        if not include_inactive:
            query = query.filter(SeatingChart.is_active.is_(True))
        if for_update:
            query = lock_for_update(query)
        chart = query.first()
        if not chart:
            raise NotFoundError("Seating chart not found")
        return chart

    def _filtered(self, department: Optional[str], active: Optional[bool]):
        query = self.session.query(SeatingChart)
        if department is not None:
            query = query.filter(SeatingChart.department == department)
        if active is not None:
            query = query.filter(SeatingChart.is_active.is_(active))
        return query

    def list(
        self,
        *,
        department: Optional[str] = None,
        active: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> list[SeatingChart]:
        return (
            self._filtered(department, active)
            .order_by(SeatingChart.updated_at.desc(), SeatingChart.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
            .all()
        )

    def count(self, *, department: Optional[str] = None, active: Optional[bool] = None) -> int:
        return self._filtered(department, active).count()

    def update(
        self,
        chart_id: str,
        fields: dict,
        *,
        include_inactive: bool = False,
        expected_revision: Optional[int] = None,
        commit: bool = True,
    ) -> SeatingChart:
        """
        Merge the provided top-level fields and bump updatedAt.

        include_inactive lets rollback rewrite a soft-deleted chart in place.
        """
        def _op():
            chart = self.get(chart_id, include_inactive=include_inactive, for_update=True)
            if expected_revision is not None and chart.revision != expected_revision:
                raise ConflictError(
                    f"Chart revision is {chart.revision}, expected {expected_revision}"
                )

            now = utcnow()
            if "department" in fields:
                chart.department = fields["department"]
            if "name" in fields:
                chart.name = fields["name"]
            if "description" in fields:
                chart.description = fields["description"]
            if "layout" in fields:
                chart.layout = fields["layout"]
            if "metadata" in fields:
                chart.chart_metadata = fields["metadata"]
            if "isActive" in fields:
                is_active = bool(fields["isActive"])
                if is_active:
                    chart.deleted_at = None
                elif chart.is_active or chart.deleted_at is None:
                    chart.deleted_at = now
                chart.is_active = is_active
            chart.updated_at = now

            self._finish(commit)
            return chart

        return self._run(_op, commit)

    def soft_delete(self, chart_id: str, *, commit: bool = True) -> SeatingChart:
        def _op():
            chart = self.get(chart_id, include_inactive=True, for_update=True)
            if chart.is_active:
                now = utcnow()
                chart.is_active = False
                chart.deleted_at = now
                chart.updated_at = now
            self._finish(commit)
            return chart

        return self._run(_op, commit)

    def _finish(self, commit: bool) -> None:
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    def _run(self, op, commit: bool):
        # Uncommitted work belongs to the caller's transaction and retry loop
        if not commit:
            return op()
        return run_with_retry(op, session=self.session)
