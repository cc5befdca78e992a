#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from validate_yaml import load_schema, main, validate_vehicle_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "vehicleName" in schema["properties"]
        assert "upcomingSchedules" in schema["properties"]
        assert "maintenanceHistory" in schema["properties"]


class TestValidateVehicleFile:
    """Tests for validate_vehicle_file function."""

    def test_valid_document_returns_no_errors(self, tmp_path):
        """A document with legacy date shapes and string mileage is valid."""
        path = tmp_path / "valid.yaml"
        path.write_text("""
vehicleName: Civic
plateNumber: ABC 1234
engineType: Gasoline
currentMileage: '53200'
orcrExpiry:
  seconds: 1770000000
  nanoseconds: 0
upcomingSchedules:
  - id: '1'
    service: Oil Change
    date: Dec 12, 2025
    dateObject: 2025-12-12T00:00:00Z
    dueKm: 55000
    status: Pending
  - id: 7
    service: Brakes
    dueDate: Jan 10, 2026
maintenanceHistory:
  - id: hist_1718000000000_3fa9c
    service: Battery Replacement
    shop: Motolite Official
    cost: 4500
    date: Oct 12, 2023
    status: Completed
""")
        errors = validate_vehicle_file(path, load_schema())
        assert errors == []

    def test_vehicle_only_document_is_valid(self, tmp_path):
        """Schedules are filled in later, so they may be absent."""
        path = tmp_path / "new.yaml"
        path.write_text("vehicleName: Vios\nplateNumber: XYZ 9876\n")
        assert validate_vehicle_file(path, load_schema()) == []

    def test_missing_required_field_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("vehicleName: Civic\n")
        errors = validate_vehicle_file(path, load_schema())
        assert any("Schema validation" in e and "plateNumber" in e for e in errors)

    def test_bad_status_reports_path(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("""
vehicleName: Civic
plateNumber: ABC 1234
upcomingSchedules:
  - id: '1'
    service: Oil Change
    status: Done
""")
        errors = validate_vehicle_file(path, load_schema())
        assert errors[0].startswith("Schema validation error")
        assert "  at path: upcomingSchedules.0.status" in errors

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        """Invalid YAML syntax returns YAML parse error."""
        path = tmp_path / "bad.yaml"
        path.write_text("""
vehicleName: Civic
upcomingSchedules: [unclosed
""")
        errors = validate_vehicle_file(path, load_schema())
        assert len(errors) >= 1
        assert any("YAML" in e for e in errors)

    def test_duplicate_task_ids(self, tmp_path):
        """Completion and deletion find items by id, so ids must not repeat."""
        path = tmp_path / "dupes.yaml"
        path.write_text("""
vehicleName: Civic
plateNumber: ABC 1234
upcomingSchedules:
  - id: '1'
    service: Oil Change
  - id: 1
    service: Tire Rotation
""")
        errors = validate_vehicle_file(path, load_schema())
        assert errors == ["Duplicate id '1' in upcomingSchedules (2 items)"]

    def test_nonexistent_file_returns_errors(self, tmp_path):
        """Nonexistent file returns error (caught by validate_vehicle_file)."""
        errors = validate_vehicle_file(tmp_path / "does_not_exist.yaml", load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("Error:")


class TestMain:
    """Tests for validating a whole directory."""

    def test_reports_each_file(self, tmp_path, capsys):
        (tmp_path / "good.yaml").write_text("vehicleName: Civic\nplateNumber: ABC 1234\n")
        (tmp_path / "bad.yaml").write_text("vehicleName: Civic\n")
        assert main(tmp_path) == 1
        out = capsys.readouterr().out
        assert "OK: good - Civic (ABC 1234): 0 upcoming, 0 history" in out
        assert "FAIL: bad (bad.yaml)" in out
        assert "2 document(s) checked" in out

    def test_all_valid(self, tmp_path):
        (tmp_path / "good.yaml").write_text("vehicleName: Civic\nplateNumber: ABC 1234\n")
        assert main(tmp_path) == 0

    def test_missing_directory(self, tmp_path, capsys):
        assert main(tmp_path / "nope") == 1
        assert "not found" in capsys.readouterr().out

    def test_empty_directory(self, tmp_path, capsys):
        assert main(tmp_path) == 0
        assert "No vehicle documents" in capsys.readouterr().out

    def test_yml_files_included(self, tmp_path, capsys):
        (tmp_path / "car.yml").write_text("vehicleName: Vios\nplateNumber: XYZ 9876\n")
        assert main(tmp_path) == 0
        assert "OK: car - Vios (XYZ 9876)" in capsys.readouterr().out
