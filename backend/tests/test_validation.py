# Overview: Pytest coverage for chart and seat payload validation.

import pytest

from seating.errors import ValidationError
from seating.validation import (
    ChartInput,
    validate_chart,
    validate_chart_patch,
    validate_seat,
    validate_seat_patch,
)


def _fields(result):
    return {e.field for e in result.errors}


class TestValidateChart:
    """Full-document validation (create semantics)."""

    def test_valid_payload_fills_defaults(self, make_payload):
        result = validate_chart(make_payload())
        assert result.ok
        chart = result.value
        assert isinstance(chart, ChartInput)
        assert chart.is_active is True
        assert chart.description is None
        assert chart.metadata.version == "1.0.0"
        seat = chart.layout.seats[0]
        assert seat.rotation == 0
        assert seat.status == "available"

    def test_to_dict_round_trips_document_keys(self, make_payload):
        document = validate_chart(make_payload()).unwrap().to_dict()
        assert document["layout"]["seats"][0] == {
            "id": "s1", "x": 0, "y": 0, "width": 60, "height": 40,
            "type": "desk", "color": "#fff", "rotation": 0, "status": "available",
        }
        assert document["metadata"] == {"createdBy": "admin", "updatedBy": "admin", "version": "1.0.0"}
        assert "assignedUser" not in document["layout"]["seats"][0]

    def test_empty_department_and_name_reported_separately(self, make_payload):
        result = validate_chart(make_payload(department="", name="   "))
        assert not result.ok
        assert _fields(result) == {"department", "name"}

    def test_layout_dimensions_out_of_range(self, make_payload):
        payload = make_payload()
        payload["layout"]["width"] = 99
        payload["layout"]["height"] = 1501
        result = validate_chart(payload)
        assert _fields(result) == {"layout.width", "layout.height"}

    def test_layout_bounds_are_inclusive(self, make_payload):
        payload = make_payload()
        payload["layout"]["width"] = 2000
        payload["layout"]["height"] = 100
        assert validate_chart(payload).ok

    def test_seat_constraints(self, make_payload):
        payload = make_payload()
        seat = payload["layout"]["seats"][0]
        seat["width"] = 19
        seat["height"] = 151
        seat["rotation"] = 361
        seat["status"] = "broken"
        result = validate_chart(payload)
        assert _fields(result) == {
            "layout.seats[0].width",
            "layout.seats[0].height",
            "layout.seats[0].rotation",
            "layout.seats[0].status",
        }

    def test_duplicate_seat_ids_rejected(self, make_payload):
        payload = make_payload()
        payload["layout"]["seats"].append(dict(payload["layout"]["seats"][0]))
        result = validate_chart(payload)
        assert _fields(result) == {"layout.seats[1].id"}
        assert "duplicate" in result.errors[0].reason

    def test_boolean_is_not_a_number(self, make_payload):
        payload = make_payload()
        payload["layout"]["seats"][0]["x"] = True
        result = validate_chart(payload)
        assert _fields(result) == {"layout.seats[0].x"}

    def test_missing_required_sections(self):
        result = validate_chart({"department": "Eng", "name": "Floor3"})
        assert _fields(result) == {"layout", "metadata"}

    def test_missing_metadata_author(self, make_payload):
        result = validate_chart(make_payload(metadata={"createdBy": "admin"}))
        assert _fields(result) == {"metadata.updatedBy"}

    def test_unknown_field_not_allowed(self, make_payload):
        result = validate_chart(make_payload(owner="bob"))
        assert _fields(result) == {"owner"}

    def test_non_object_payload(self):
        result = validate_chart(["not", "a", "dict"])
        assert not result.ok
        with pytest.raises(ValidationError) as excinfo:
            result.unwrap()
        assert excinfo.value.status_code == 400

    def test_unwrap_collects_every_error(self, make_payload):
        payload = make_payload(department="")
        payload["layout"]["width"] = 5
        with pytest.raises(ValidationError) as excinfo:
            validate_chart(payload).unwrap()
        assert {e.field for e in excinfo.value.errors} == {"department", "layout.width"}


class TestValidateChartPatch:
    """Partial updates validate only present fields."""

    def test_only_present_fields_are_provided(self):
        patch = validate_chart_patch({"name": "Floor 3 East"}).unwrap()
        assert patch.to_dict() == {"name": "Floor 3 East"}

    def test_empty_patch_is_valid(self):
        assert validate_chart_patch({}).unwrap().to_dict() == {}

    def test_description_can_be_cleared(self):
        assert validate_chart_patch({"description": None}).unwrap().to_dict() == {"description": None}

    def test_layout_in_patch_is_validated_completely(self):
        result = validate_chart_patch({"layout": {"width": 800, "height": 600}})
        assert _fields(result) == {"layout.seats"}

    def test_empty_name_rejected(self):
        assert _fields(validate_chart_patch({"name": ""})) == {"name"}

    def test_is_active_must_be_boolean(self):
        assert _fields(validate_chart_patch({"isActive": "yes"})) == {"isActive"}


class TestValidateSeat:
    def test_seat_patch_subset(self):
        patch = validate_seat_patch({"status": "occupied", "assignedUser": "alice"}).unwrap()
        assert patch.to_dict() == {"status": "occupied", "assignedUser": "alice"}

    def test_seat_patch_rejects_id_change(self):
        assert _fields(validate_seat_patch({"id": "s9"})) == {"id"}

    def test_seat_patch_ranges(self):
        result = validate_seat_patch({"width": 500, "rotation": -1, "status": "gone"})
        assert _fields(result) == {"width", "rotation", "status"}

    def test_seat_patch_null_clears_assignment(self):
        assert validate_seat_patch({"assignedUser": None}).unwrap().to_dict() == {"assignedUser": None}

    def test_seat_patch_type_cannot_be_null(self):
        assert _fields(validate_seat_patch({"type": None})) == {"type"}

    def test_validate_seat_uses_prefix(self):
        result = validate_seat({"id": "s1"}, prefix="layout.seats[3]")
        assert "layout.seats[3].x" in _fields(result)
