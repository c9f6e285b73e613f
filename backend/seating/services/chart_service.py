# Overview: Seating chart orchestration; repository is authoritative, cache is best effort.

from __future__ import annotations

from typing import Any, Optional

from flask import current_app

from ..errors import CacheError, FieldError, NotFoundError, ValidationError
from ..validation import (
    validate_chart,
    validate_chart_patch,
    validate_seat,
    validate_seat_patch,
)
from .cache_service import BaseCache, NullCache
from .chart_repository import UPDATABLE_FIELDS, ChartRepository
from .concurrency import run_with_retry
from .version_store import VersionStore, diff_snapshots


DEFAULT_CHART_TTL = 600
DEFAULT_LIST_TTL = 300
MAX_PAGE_LIMIT = 100

# Auxiliary department-scoped caches owned by other parts of the system
DEPARTMENT_PATTERNS = (
    "chart-list:{department}:*",
    "department:{department}:*",
    "stats:{department}:*",
)
ALL_DEPARTMENTS_LIST_PATTERN = "chart-list:all:*"


def _glob_escape(value: str) -> str:
    # Character classes are understood by both fnmatch and Redis MATCH.
    # Inside a class Redis still treats a backslash as an escape, fnmatch does not;
    # "[\\]" matches one literal backslash in both.
    return "".join(
        "[\\\\]" if ch == "\\" else f"[{ch}]" if ch in "*?[" else ch
        for ch in value
    )


def chart_key(chart_id: str) -> str:
    return f"chart:{chart_id}"


def list_key(department: Optional[str], active: Optional[bool], page: int, limit: int) -> str:
    active_part = "any" if active is None else str(bool(active)).lower()
    return f"chart-list:{department or 'all'}:{page}:{limit}:{active_part}"


def _page_args(page: Any, limit: Any) -> tuple[int, int]:
    errors = []
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        errors.append(FieldError("page", "must be an integer >= 1"))
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_LIMIT:
        errors.append(FieldError("limit", f"must be an integer between 1 and {MAX_PAGE_LIMIT}"))
    if errors:
        raise ValidationError(errors)
    return page, limit


class ChartService:
    """
    Implements create/list/get/update/delete/patch-seat/versions/compare/rollback.

    Every write goes to the repository first. The cache is refreshed or
    invalidated afterwards and a cache failure only produces a warning.
    """

    def __init__(
        self,
        *,
        repository: Optional[ChartRepository] = None,
        versions: Optional[VersionStore] = None,
        cache: Optional[BaseCache] = None,
        chart_ttl: int = DEFAULT_CHART_TTL,
        list_ttl: int = DEFAULT_LIST_TTL,
        snapshot_on_seat_patch: bool = False,
        max_versions: int = 0,
        logger=None,
    ):
        self.repository = repository or ChartRepository()
        self.versions = versions or VersionStore()
        self.cache = cache if cache is not None else NullCache()
        self.chart_ttl = chart_ttl
        self.list_ttl = list_ttl
        self.snapshot_on_seat_patch = snapshot_on_seat_patch
        self.max_versions = max_versions
        self._logger = logger

    @property
    def log(self):
        return self._logger or current_app.logger

    @property
    def session(self):
        return self.repository.session

    # ---- operations -----------------------------------------------------

    def create(self, payload: Any) -> dict:
        chart_input = validate_chart(payload).unwrap()
        chart = self.repository.create(chart_input.to_dict())
        document = chart.to_dict()

        self._cache_document(document)
        self._invalidate_department(document["department"])
        self.log.info("Seating chart created: id=%s department=%s", document["id"], document["department"])
        return document

    def list_charts(
        self,
        *,
        department: Optional[str] = None,
        active: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        page, limit = _page_args(page, limit)
        key = list_key(department, active, page, limit)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        charts = self.repository.list(department=department, active=active, page=page, limit=limit)
        result = {
            "items": [chart.to_dict() for chart in charts],
            "page": page,
            "limit": limit,
            "total": self.repository.count(department=department, active=active),
        }
        self._cache_set(key, result, self.list_ttl)
        return result

    def get_one(self, chart_id: str) -> dict:
        cached = self._cache_get(chart_key(chart_id))
        if cached is not None and cached.get("isActive"):
            return cached

        document = self.repository.get(chart_id).to_dict()
        self._cache_chart(document)
        return document

    def update(self, chart_id: str, payload: Any, *, expected_revision: Optional[int] = None) -> dict:
        """
        Apply a partial update, snapshotting the pre-update state first.

        The snapshot and the write share one transaction, so a rejected
        write leaves no history entry behind.
        """
        fields = validate_chart_patch(payload).unwrap().to_dict()

        def _op():
            previous = self.repository.get(chart_id, for_update=True).to_dict()
            self.versions.snapshot(chart_id, previous, commit=False)
            chart = self.repository.update(
                chart_id, fields, expected_revision=expected_revision, commit=False
            )
            self._prune_history(chart_id)
            document = chart.to_dict()
            self.session.commit()
            return previous, document

        previous, document = run_with_retry(_op, session=self.session)

        self._cache_document(document)
        self._invalidate_department(document["department"])
        if previous["department"] != document["department"]:
            self._invalidate_department(previous["department"])
        self.log.info("Seating chart updated: id=%s revision=%s", chart_id, document["revision"])
        return document

    def delete(self, chart_id: str) -> dict:
        self.repository.get(chart_id)
        chart = self.repository.soft_delete(chart_id)
        document = chart.to_dict()

        self._cache_delete(chart_key(chart_id))
        self._invalidate_department(document["department"])
        self.log.info("Seating chart soft-deleted: id=%s", chart_id)
        return {"id": chart_id, "deleted": True, "deletedAt": document["deletedAt"]}

    def patch_seat(
        self,
        chart_id: str,
        seat_id: str,
        payload: Any,
        *,
        expected_revision: Optional[int] = None,
    ) -> dict:
        """
        Merge a partial update into one seat and rewrite the layout.

        No snapshot is taken unless snapshot_on_seat_patch is enabled.
        """
        changes = validate_seat_patch(payload).unwrap().to_dict()

        def _op():
            chart = self.repository.get(chart_id, for_update=True)
            layout = chart.layout
            seats = layout.get("seats", [])
            index = next((i for i, s in enumerate(seats) if s.get("id") == seat_id), None)
            if index is None:
                raise NotFoundError("Seat not found")

            merged = dict(seats[index])
            for key, value in changes.items():
                if value is None:
                    merged.pop(key, None)
                else:
                    merged[key] = value
            validate_seat(merged, prefix=f"layout.seats[{index}]").unwrap()
            seats[index] = merged

            if self.snapshot_on_seat_patch:
                self.versions.snapshot(chart_id, chart.to_dict(), commit=False)
            updated = self.repository.update(
                chart_id, {"layout": layout}, expected_revision=expected_revision, commit=False
            )
            if self.snapshot_on_seat_patch:
                self._prune_history(chart_id)
            document = updated.to_dict()
            self.session.commit()
            return document, merged

        document, seat = run_with_retry(_op, session=self.session)

        self._cache_document(document)
        self._invalidate_department(document["department"])
        self.log.info("Seat updated: chart=%s seat=%s", chart_id, seat_id)
        return {
            "chartId": chart_id,
            "seatId": seat_id,
            "seat": seat,
            "revision": document["revision"],
        }

    def list_versions(self, chart_id: str, *, page: int = 1, limit: int = 10) -> dict:
        page, limit = _page_args(page, limit)
        versions = self.versions.list(chart_id, page=page, limit=limit)
        return {
            "items": [version.to_dict() for version in versions],
            "page": page,
            "limit": limit,
            "total": self.versions.count(chart_id),
        }

    def compare_versions(self, chart_id: str, from_version_id: str, to_version_id: str) -> dict:
        """Seat-level changes needed to go from one snapshot of a chart to another."""
        before = self.versions.get(chart_id, from_version_id)
        after = self.versions.get(chart_id, to_version_id)
        return {
            "chartId": chart_id,
            "from": before.id,
            "to": after.id,
            "changes": diff_snapshots(before.data, after.data),
        }

    def rollback(self, chart_id: str, version_id: str) -> dict:
        """
        Restore a chart's content from a snapshot, keeping its id.

        The state being replaced is snapshotted first, so a rollback can
        itself be rolled back. Soft-deleted charts may be restored.
        """
        def _op():
            version = self.versions.get(chart_id, version_id)
            data = version.data
            current = self.repository.get(chart_id, include_inactive=True, for_update=True)
            previous = current.to_dict()
            self.versions.snapshot(chart_id, previous, commit=False)

            fields = {key: data[key] for key in UPDATABLE_FIELDS if key in data}
            chart = self.repository.update(chart_id, fields, include_inactive=True, commit=False)
            self._prune_history(chart_id)
            document = chart.to_dict()
            self.session.commit()
            return previous, document

        previous, document = run_with_retry(_op, session=self.session)

        self._cache_document(document)
        self._invalidate_department(document["department"])
        if previous["department"] != document["department"]:
            self._invalidate_department(previous["department"])
        self.log.info("Seating chart rolled back: id=%s version=%s", chart_id, version_id)
        return document

    # ---- helpers --------------------------------------------------------

    def _prune_history(self, chart_id: str) -> None:
        if self.max_versions > 0:
            self.versions.prune(chart_id, keep=self.max_versions, commit=False)

    def _cache_chart(self, document: dict) -> None:
        self._cache_set(chart_key(document["id"]), document, self.chart_ttl)

    def _cache_document(self, document: dict) -> None:
        """Refresh the item key after a write; soft-deleted charts are never cached."""
        if document["isActive"]:
            self._cache_chart(document)
        else:
            self._cache_delete(chart_key(document["id"]))

    def _cache_get(self, key: str) -> Any:
        try:
            return self.cache.get(key)
        except CacheError as exc:
            self.log.warning("Cache read failed for %s: %s", key, exc)
            return None

    def _cache_set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.cache.set(key, value, ttl)
        except CacheError as exc:
            self.log.warning("Cache write failed for %s: %s", key, exc)

    def _cache_delete(self, key: str) -> None:
        try:
            self.cache.delete(key)
        except CacheError as exc:
            self.log.warning("Cache delete failed for %s: %s", key, exc)

    def _invalidate_department(self, department: str) -> None:
        escaped = _glob_escape(department)
        patterns = [p.format(department=escaped) for p in DEPARTMENT_PATTERNS]
        patterns.append(ALL_DEPARTMENTS_LIST_PATTERN)
        for pattern in patterns:
            try:
                self.cache.delete_pattern(pattern)
            except CacheError as exc:
                self.log.warning("Cache invalidation failed for %s: %s", pattern, exc)


def get_chart_service() -> ChartService:
    """ChartService wired to the current app's cache and settings."""
    app = current_app
    return ChartService(
        cache=app.extensions.get("seating_cache"),
        chart_ttl=app.config.get("SEATING_CHART_CACHE_TTL", DEFAULT_CHART_TTL),
        list_ttl=app.config.get("SEATING_LIST_CACHE_TTL", DEFAULT_LIST_TTL),
        snapshot_on_seat_patch=app.config.get("SEATING_SNAPSHOT_ON_SEAT_PATCH", False),
        max_versions=app.config.get("SEATING_MAX_VERSIONS_PER_CHART", 0),
    )
