from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from .errors import FieldError, ValidationError


LAYOUT_WIDTH_RANGE = (100, 2000)
LAYOUT_HEIGHT_RANGE = (100, 1500)
SEAT_WIDTH_RANGE = (20, 200)
SEAT_HEIGHT_RANGE = (20, 150)
ROTATION_RANGE = (0, 360)

SEAT_STATUSES = ("available", "occupied", "maintenance", "reserved")
DEFAULT_SEAT_STATUS = "available"
DEFAULT_METADATA_VERSION = "1.0.0"

CHART_FIELDS = ("department", "name", "description", "layout", "metadata", "isActive")
LAYOUT_FIELDS = ("width", "height", "seats")
METADATA_FIELDS = ("createdBy", "updatedBy", "version", "figmaFileId", "figmaNodeId")
SEAT_FIELDS = (
    "id", "x", "y", "width", "height", "type", "color",
    "rotation", "label", "assignedUser", "status",
)
SEAT_PATCH_FIELDS = tuple(f for f in SEAT_FIELDS if f != "id")

T = TypeVar("T")

_MISSING = object()


@dataclass
class ValidationResult(Generic[T]):
    """Tagged result: either a value or a non-empty list of field errors."""
    value: Optional[T] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        if self.errors:
            raise ValidationError(self.errors)
        return self.value  # type: ignore[return-value]


@dataclass
class SeatInput:
    id: str
    x: float
    y: float
    width: float
    height: float
    type: str
    color: str
    rotation: float = 0
    label: Optional[str] = None
    assigned_user: Optional[str] = None
    status: str = DEFAULT_SEAT_STATUS

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "type": self.type,
            "color": self.color,
            "rotation": self.rotation,
            "status": self.status,
        }
        if self.label is not None:
            out["label"] = self.label
        if self.assigned_user is not None:
            out["assignedUser"] = self.assigned_user
        return out


@dataclass
class LayoutInput:
    width: float
    height: float
    seats: list[SeatInput] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "seats": [seat.to_dict() for seat in self.seats],
        }


@dataclass
class MetadataInput:
    created_by: str
    updated_by: str
    version: str = DEFAULT_METADATA_VERSION
    figma_file_id: Optional[str] = None
    figma_node_id: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "version": self.version,
        }
        if self.figma_file_id is not None:
            out["figmaFileId"] = self.figma_file_id
        if self.figma_node_id is not None:
            out["figmaNodeId"] = self.figma_node_id
        return out


@dataclass
class ChartInput:
    department: str
    name: str
    layout: LayoutInput
    metadata: MetadataInput
    description: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "department": self.department,
            "name": self.name,
            "description": self.description,
            "layout": self.layout.to_dict(),
            "metadata": self.metadata.to_dict(),
            "isActive": self.is_active,
        }


@dataclass
class ChartPatch:
    """Partial chart update. Only keys in `provided` are applied downstream."""
    department: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    layout: Optional[LayoutInput] = None
    metadata: Optional[MetadataInput] = None
    is_active: Optional[bool] = None
    provided: frozenset = frozenset()

    def to_dict(self) -> dict:
        values = {
            "department": self.department,
            "name": self.name,
            "description": self.description,
            "layout": self.layout.to_dict() if self.layout else None,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "isActive": self.is_active,
        }
        return {k: v for k, v in values.items() if k in self.provided}


@dataclass
class SeatPatch:
    """Partial seat update. A None value for label/assignedUser clears it."""
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    type: Optional[str] = None
    color: Optional[str] = None
    rotation: Optional[float] = None
    label: Optional[str] = None
    assigned_user: Optional[str] = None
    status: Optional[str] = None
    provided: frozenset = frozenset()

    def to_dict(self) -> dict:
        values = {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "type": self.type,
            "color": self.color,
            "rotation": self.rotation,
            "label": self.label,
            "assignedUser": self.assigned_user,
            "status": self.status,
        }
        return {k: v for k, v in values.items() if k in self.provided}


def _path(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _reject_unknown(errors: list, data: dict, allowed: tuple, prefix: str) -> None:
    for key in data.keys():
        if key not in allowed:
            errors.append(FieldError(_path(prefix, str(key)), "field not allowed"))


def _string(errors, data, key, prefix, *, required=True, non_empty=False, nullable=False, default=None):
    path = _path(prefix, key)
    raw = data.get(key, _MISSING)
    if raw is _MISSING:
        if required:
            errors.append(FieldError(path, "is required"))
        return default
    if raw is None:
        if not nullable:
            errors.append(FieldError(path, "cannot be null"))
        return None
    if not isinstance(raw, str):
        errors.append(FieldError(path, "must be a string"))
        return None
    if non_empty and raw.strip() == "":
        errors.append(FieldError(path, "cannot be empty"))
        return None
    return raw


def _number(errors, data, key, prefix, *, required=True, bounds=None, default=None):
    path = _path(prefix, key)
    raw = data.get(key, _MISSING)
    if raw is _MISSING:
        if required:
            errors.append(FieldError(path, "is required"))
        return default
    if not _is_number(raw):
        errors.append(FieldError(path, "must be a number"))
        return None
    if bounds is not None:
        low, high = bounds
        if raw < low or raw > high:
            errors.append(FieldError(path, f"must be between {low} and {high}"))
            return None
    return raw


def _status(errors, data, prefix, *, required=False):
    path = _path(prefix, "status")
    raw = data.get("status", _MISSING)
    if raw is _MISSING:
        if required:
            errors.append(FieldError(path, "is required"))
        return DEFAULT_SEAT_STATUS
    if raw not in SEAT_STATUSES:
        errors.append(FieldError(path, f"must be one of: {', '.join(SEAT_STATUSES)}"))
        return None
    return raw


def _boolean(errors, data, key, prefix, *, default=None):
    path = _path(prefix, key)
    raw = data.get(key, _MISSING)
    if raw is _MISSING:
        return default
    if not isinstance(raw, bool):
        errors.append(FieldError(path, "must be a boolean"))
        return None
    return raw


def _object(errors, raw, path) -> Optional[dict]:
    if not isinstance(raw, dict):
        errors.append(FieldError(path, "must be an object"))
        return None
    return raw


def _seat(errors: list, raw: Any, prefix: str) -> Optional[SeatInput]:
    data = _object(errors, raw, prefix)
    if data is None:
        return None
    before = len(errors)
    _reject_unknown(errors, data, SEAT_FIELDS, prefix)
    seat = SeatInput(
        id=_string(errors, data, "id", prefix, non_empty=True),
        x=_number(errors, data, "x", prefix),
        y=_number(errors, data, "y", prefix),
        width=_number(errors, data, "width", prefix, bounds=SEAT_WIDTH_RANGE),
        height=_number(errors, data, "height", prefix, bounds=SEAT_HEIGHT_RANGE),
        type=_string(errors, data, "type", prefix),
        color=_string(errors, data, "color", prefix),
        rotation=_number(errors, data, "rotation", prefix, required=False, bounds=ROTATION_RANGE, default=0),
        label=_string(errors, data, "label", prefix, required=False, nullable=True),
        assigned_user=_string(errors, data, "assignedUser", prefix, required=False, nullable=True),
        status=_status(errors, data, prefix),
    )
    return seat if len(errors) == before else None


def _layout(errors: list, raw: Any, prefix: str) -> Optional[LayoutInput]:
    data = _object(errors, raw, prefix)
    if data is None:
        return None
    before = len(errors)
    _reject_unknown(errors, data, LAYOUT_FIELDS, prefix)
    width = _number(errors, data, "width", prefix, bounds=LAYOUT_WIDTH_RANGE)
    height = _number(errors, data, "height", prefix, bounds=LAYOUT_HEIGHT_RANGE)

    seats: list[SeatInput] = []
    raw_seats = data.get("seats", _MISSING)
    if raw_seats is _MISSING:
        errors.append(FieldError(_path(prefix, "seats"), "is required"))
    elif not isinstance(raw_seats, list):
        errors.append(FieldError(_path(prefix, "seats"), "must be a list"))
    else:
        seen: set[str] = set()
        for index, raw_seat in enumerate(raw_seats):
            seat_path = f"{_path(prefix, 'seats')}[{index}]"
            seat = _seat(errors, raw_seat, seat_path)
            if seat is None:
                continue
            if seat.id in seen:
                errors.append(FieldError(f"{seat_path}.id", f"duplicate seat id '{seat.id}'"))
                continue
            seen.add(seat.id)
            seats.append(seat)

    if len(errors) != before:
        return None
    return LayoutInput(width=width, height=height, seats=seats)


def _metadata(errors: list, raw: Any, prefix: str) -> Optional[MetadataInput]:
    data = _object(errors, raw, prefix)
    if data is None:
        return None
    before = len(errors)
    _reject_unknown(errors, data, METADATA_FIELDS, prefix)
    metadata = MetadataInput(
        created_by=_string(errors, data, "createdBy", prefix),
        updated_by=_string(errors, data, "updatedBy", prefix),
        version=_string(errors, data, "version", prefix, required=False, default=DEFAULT_METADATA_VERSION),
        figma_file_id=_string(errors, data, "figmaFileId", prefix, required=False, nullable=True),
        figma_node_id=_string(errors, data, "figmaNodeId", prefix, required=False, nullable=True),
    )
    return metadata if len(errors) == before else None


def _payload_errors(payload: Any) -> list[FieldError]:
    if payload is None or not isinstance(payload, dict):
        return [FieldError("", "Invalid JSON payload")]
    return []


def validate_chart(payload: Any) -> ValidationResult[ChartInput]:
    """
    Validate a full chart document (create semantics).

    Every violated field is reported; nothing is persisted on failure.
    """
    errors = _payload_errors(payload)
    if errors:
        return ValidationResult(errors=errors)

    _reject_unknown(errors, payload, CHART_FIELDS, "")
    department = _string(errors, payload, "department", "", non_empty=True)
    name = _string(errors, payload, "name", "", non_empty=True)
    description = _string(errors, payload, "description", "", required=False, nullable=True)

    layout = None
    if "layout" not in payload:
        errors.append(FieldError("layout", "is required"))
    else:
        layout = _layout(errors, payload["layout"], "layout")

    metadata = None
    if "metadata" not in payload:
        errors.append(FieldError("metadata", "is required"))
    else:
        metadata = _metadata(errors, payload["metadata"], "metadata")

    is_active = _boolean(errors, payload, "isActive", "", default=True)

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=ChartInput(
        department=department,
        name=name,
        description=description,
        layout=layout,
        metadata=metadata,
        is_active=is_active,
    ))


def validate_chart_patch(payload: Any) -> ValidationResult[ChartPatch]:
    """
    Validate a partial chart update (patch semantics).

    Only keys present are checked. layout and metadata replace the stored
    objects wholesale, so they are validated as complete objects.
    """
    errors = _payload_errors(payload)
    if errors:
        return ValidationResult(errors=errors)

    _reject_unknown(errors, payload, CHART_FIELDS, "")
    patch = ChartPatch(provided=frozenset(k for k in payload.keys() if k in CHART_FIELDS))

    if "department" in payload:
        patch.department = _string(errors, payload, "department", "", non_empty=True)
    if "name" in payload:
        patch.name = _string(errors, payload, "name", "", non_empty=True)
    if "description" in payload:
        patch.description = _string(errors, payload, "description", "", nullable=True)
    if "layout" in payload:
        patch.layout = _layout(errors, payload["layout"], "layout")
    if "metadata" in payload:
        patch.metadata = _metadata(errors, payload["metadata"], "metadata")
    if "isActive" in payload:
        patch.is_active = _boolean(errors, payload, "isActive", "")

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=patch)


def validate_seat(payload: Any, prefix: str = "seat") -> ValidationResult[SeatInput]:
    errors: list[FieldError] = []
    seat = _seat(errors, payload, prefix)
    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=seat)


def validate_seat_patch(payload: Any) -> ValidationResult[SeatPatch]:
    errors = _payload_errors(payload)
    if errors:
        return ValidationResult(errors=errors)

    if "id" in payload:
        errors.append(FieldError("id", "seat id cannot be changed"))
    _reject_unknown(errors, {k: v for k, v in payload.items() if k != "id"}, SEAT_PATCH_FIELDS, "")

    patch = SeatPatch(provided=frozenset(k for k in payload.keys() if k in SEAT_PATCH_FIELDS))
    if "x" in payload:
        patch.x = _number(errors, payload, "x", "")
    if "y" in payload:
        patch.y = _number(errors, payload, "y", "")
    if "width" in payload:
        patch.width = _number(errors, payload, "width", "", bounds=SEAT_WIDTH_RANGE)
    if "height" in payload:
        patch.height = _number(errors, payload, "height", "", bounds=SEAT_HEIGHT_RANGE)
    if "type" in payload:
        patch.type = _string(errors, payload, "type", "")
    if "color" in payload:
        patch.color = _string(errors, payload, "color", "")
    if "rotation" in payload:
        patch.rotation = _number(errors, payload, "rotation", "", bounds=ROTATION_RANGE)
    if "label" in payload:
        patch.label = _string(errors, payload, "label", "", nullable=True)
    if "assignedUser" in payload:
        patch.assigned_user = _string(errors, payload, "assignedUser", "", nullable=True)
    if "status" in payload:
        patch.status = _status(errors, payload, "")

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=patch)
