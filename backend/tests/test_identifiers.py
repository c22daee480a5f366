"""
Тесты формата уникального идентификатора
"""
import re

from backend.modules.assets import identifiers

FULL_ID_RE = re.compile(r"^IHUB/\d{4}-\d{2}/[A-Z]{1,3}(-*)/[A-Z0-9 \-]+/\d{3,}$")


def test_asset_code_takes_first_three_letters():
    assert identifiers.asset_code("Laptop") == "LAP"
    assert identifiers.asset_code("3D printer") == "DPR"
    assert identifiers.asset_code("tv") == "TV-"
    assert identifiers.asset_code("") == "---"
    assert identifiers.asset_code(None) == "---"


def test_compose_matches_example_preview():
    uid = identifiers.compose_unique_id("2024-25", "Laptop", "Storage Room A", 7)
    assert uid == "IHUB/2024-25/LAP/STORAGE ROOM A/007"
    assert FULL_ID_RE.match(uid)


def test_compose_uses_placeholders_for_missing_parts():
    uid = identifiers.compose_unique_id(None, None, "  ", None)
    assert uid == "IHUB/--/--/--/--"


def test_serial_wider_than_width_is_not_truncated():
    assert identifiers.format_serial(1234) == "1234"
    assert identifiers.compose_unique_id("2024-25", "Chair", "Hall", 1000).endswith("/1000")


def test_preview_for_several_rows_counts_up_from_next_serial():
    ids = identifiers.preview_unique_ids("2024-25", "Monitor", "Lab", 41, count=3)
    assert ids == [
        "IHUB/2024-25/MON/LAB/041",
        "IHUB/2024-25/MON/LAB/042",
        "IHUB/2024-25/MON/LAB/043",
    ]


def test_location_slash_does_not_break_segments():
    uid = identifiers.compose_unique_id("2024-25", "Desk", "Block B/2", 5)
    assert uid == "IHUB/2024-25/DES/BLOCK B-2/005"
    assert len(uid.split("/")) == 5


def test_validate_accepts_well_formed_id():
    assert identifiers.validate_unique_id("IHUB/2024-25/LAP/STORAGE ROOM A/007") == []
    assert identifiers.validate_unique_id("ihub/2024-25/tv-/lab/1000") == []


def test_validate_names_missing_components():
    errors = identifiers.validate_unique_id("IHUB/--/LAP/--/007")
    assert errors == ["Unique ID is missing: financial year, location"]


def test_validate_rejects_bad_shape_and_prefix():
    assert identifiers.validate_unique_id("IHUB/2024-25/LAP/007")[0].startswith(
        "Invalid unique ID format"
    )
    errors = identifiers.validate_unique_id("ACME/2024-25/LAP/LAB/007")
    assert "Unique ID must start with IHUB" in errors


def test_validate_rejects_malformed_segments():
    errors = identifiers.validate_unique_id("IHUB/2024/LAPT/LAB/7")
    assert "Financial year must look like YYYY-YY" in errors
    assert "Asset code must be up to three letters" in errors
    assert "Serial must be at least 3 digits" in errors


def test_auto_serial_marker():
    assert identifiers.is_auto(None)
    assert identifiers.is_auto("")
    assert identifiers.is_auto("auto")
    assert identifiers.is_auto("???")
    assert identifiers.is_auto("IHUB/2024-25/LAP/LAB/AUTO")
    assert not identifiers.is_auto("IHUB/2024-25/LAP/LAB/007")

    # маркер допустим только там, где серийный номер назначит сервер
    assert "Serial must be at least 3 digits" in identifiers.validate_unique_id(
        "IHUB/2024-25/LAP/LAB/AUTO"
    )
    assert identifiers.validate_unique_id("IHUB/2024-25/LAP/LAB/???", allow_auto_serial=True) == []


def test_replace_location_keeps_other_segments():
    uid = "IHUB/2024-25/LAP/STORAGE ROOM A/007"
    moved = identifiers.replace_location(uid, "Server Room")
    assert moved == "IHUB/2024-25/LAP/SERVER ROOM/007"
    before, after = uid.split("/"), moved.split("/")
    assert [before[i] for i in (0, 1, 2, 4)] == [after[i] for i in (0, 1, 2, 4)]


def test_serial_of():
    assert identifiers.serial_of("IHUB/2024-25/LAP/LAB/042") == 42
    assert identifiers.serial_of("IHUB/2024-25/LAP/LAB/--") is None
