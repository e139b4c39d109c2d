"""Tests for family data parsing and the loader states."""

import asyncio
import json
import os
import pytest
import sys

import httpx

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from family_loader import (
    FamilyDataLoader,
    LoaderStatus,
    fetch_family_data,
    is_url,
    load_family_file,
    parse_family_content,
)
from family_models import FamilyData, FamilyDataError, LayoutConfig


ROOT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def sample_family_path():
    """Path to the sample family JSON file."""
    return os.path.join(ROOT_DIR, "sample-family.json")


@pytest.fixture
def sample_gedcom_path():
    """Path to the sample GEDCOM file."""
    return os.path.join(ROOT_DIR, "sample-family.ged")


def family_json(people, root="a"):
    return json.dumps({"people": people, "rootPersonId": root})


# ============================================================================
# Parsing Tests
# ============================================================================

class TestParsing:
    """Tests for JSON parsing and validation."""

    def test_parse_family_content(self):
        content = family_json([
            {"id": "a", "name": "Anna", "generation": 1, "birthDate": "1900"},
            {"id": "b", "name": "Ben", "generation": 2, "parentIds": ["a"], "spouseId": "c"},
        ])
        data = parse_family_content(content)

        assert data.root_person_id == "a"
        assert [p.id for p in data.people] == ["a", "b"]
        assert data.people[0].birth_date == "1900"
        assert data.people[1].parent_ids == ["a"]
        assert data.people[1].spouse_id == "c"

    def test_parse_bytes(self):
        data = parse_family_content(family_json([{"id": "a", "name": "A", "generation": 1}]).encode("utf-8"))
        assert len(data.people) == 1

    def test_round_trip_uses_camel_case(self):
        """Serialized output keeps the JSON field names."""
        data = parse_family_content(family_json([
            {"id": "a", "name": "A", "generation": 1},
            {"id": "b", "name": "B", "generation": 1, "spouseId": "a"},
        ]))
        dumped = data.model_dump(by_alias=True, exclude_none=True)

        assert dumped["rootPersonId"] == "a"
        assert dumped["people"][1] == {"id": "b", "name": "B", "generation": 1, "spouseId": "a"}

    def test_missing_generation_names_person(self):
        """Malformed generations are rejected, naming the record."""
        content = family_json([
            {"id": "a", "name": "A", "generation": 1},
            {"id": "b", "name": "B"},
        ])
        with pytest.raises(FamilyDataError, match="'b'"):
            parse_family_content(content)

    def test_non_numeric_generation_rejected(self):
        content = family_json([{"id": "x", "name": "X", "generation": "two"}])
        with pytest.raises(FamilyDataError, match="generation"):
            parse_family_content(content)

    def test_string_number_generation_rejected(self):
        """Generations must be JSON integers, not numeric strings."""
        content = family_json([{"id": "x", "name": "X", "generation": "2"}])
        with pytest.raises(FamilyDataError):
            parse_family_content(content)

    def test_non_positive_generation_rejected(self):
        content = family_json([{"id": "x", "name": "X", "generation": 0}])
        with pytest.raises(FamilyDataError, match="'x'"):
            parse_family_content(content)

    def test_record_without_id_uses_index(self):
        content = family_json([{"name": "X", "generation": 1}])
        with pytest.raises(FamilyDataError, match="#0"):
            parse_family_content(content)

    def test_invalid_json(self):
        with pytest.raises(FamilyDataError, match="Invalid family data JSON"):
            parse_family_content("{not json")

    def test_missing_people_list(self):
        with pytest.raises(FamilyDataError, match="'people' list"):
            parse_family_content(json.dumps({"rootPersonId": "a"}))

    def test_find_person(self, sample_family_path):
        data = load_family_file(sample_family_path)
        assert data.find_person("linda").spouse_id == "james"
        assert data.find_person("nobody") is None


class TestFiles:
    """Tests for reading family data from disk."""

    def test_load_family_file(self, sample_family_path):
        data = load_family_file(sample_family_path)
        assert data.root_person_id == "robert"
        assert len(data.people) == 9

    def test_load_gedcom_file(self, sample_gedcom_path):
        """GEDCOM files are imported by suffix."""
        data = load_family_file(sample_gedcom_path)
        assert len(data.people) == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(FamilyDataError, match="not found"):
            load_family_file(str(tmp_path / "missing.json"))

    def test_is_url(self):
        assert is_url("https://example.com/family-data.json")
        assert is_url("http://localhost:5173/family-data.json")
        assert not is_url("family-data.json")


# ============================================================================
# HTTP Tests
# ============================================================================

def mock_transport(status_code=200, body=None):
    def handler(request):
        return httpx.Response(status_code, content=body or b"")
    return httpx.MockTransport(handler)


class TestFetch:
    """Tests for fetching family data over HTTP."""

    def test_fetch_family_data(self):
        body = family_json([{"id": "a", "name": "A", "generation": 1}]).encode("utf-8")
        data = asyncio.run(fetch_family_data("http://test/family-data.json", transport=mock_transport(body=body)))
        assert isinstance(data, FamilyData)
        assert data.people[0].id == "a"

    def test_fetch_accepts_any_success_status(self):
        """Non-200 success codes are not treated as failures."""
        body = family_json([{"id": "a", "name": "A", "generation": 1}]).encode("utf-8")
        data = asyncio.run(fetch_family_data("http://test/family-data.json", transport=mock_transport(203, body)))
        assert data.people[0].id == "a"

    def test_fetch_http_error_status(self):
        with pytest.raises(FamilyDataError, match="Failed to load family data"):
            asyncio.run(fetch_family_data("http://test/family-data.json", transport=mock_transport(404)))


# ============================================================================
# Loader State Tests
# ============================================================================

class TestFamilyDataLoader:
    """Tests for the pending / ready / failed loader."""

    def test_initial_state_is_pending(self):
        loader = FamilyDataLoader("family.json")
        assert loader.status == LoaderStatus.PENDING
        assert loader.family_data is None
        assert loader.people == []

    def test_load_file_ready(self, sample_family_path):
        loader = FamilyDataLoader(sample_family_path)
        data = asyncio.run(loader.load())

        assert loader.status == LoaderStatus.READY
        assert loader.error is None
        assert data is loader.family_data
        assert len(loader.people) == 9

    def test_load_url_ready(self):
        body = family_json([{"id": "a", "name": "A", "generation": 1}]).encode("utf-8")
        loader = FamilyDataLoader("https://example.com/family-data.json", transport=mock_transport(body=body))
        asyncio.run(loader.load())

        assert loader.status == LoaderStatus.READY
        assert [p.id for p in loader.people] == ["a"]

    def test_load_latin1_body(self):
        """A body that is not valid UTF-8 still finishes loading instead of staying pending."""
        body = '{"rootPersonId": "a", "people": [{"id": "a", "name": "\xe9mile", "generation": 1}]}'.encode("latin-1")
        loader = FamilyDataLoader("https://example.com/family-data.json", transport=mock_transport(body=body))
        asyncio.run(loader.load())

        assert loader.status == LoaderStatus.READY
        assert loader.people[0].name == "\xe9mile"

    def test_load_undecodable_garbage_fails(self):
        """Bytes that decode but are not JSON end in FAILED with a message."""
        loader = FamilyDataLoader("https://example.com/family-data.json", transport=mock_transport(body=b"\xff\xfe\x00garbage"))
        result = asyncio.run(loader.load())

        assert result is None
        assert loader.status == LoaderStatus.FAILED
        assert "Invalid family data JSON" in loader.error

    def test_load_failure_sets_message(self, tmp_path):
        """Failures become the FAILED state with a message, not an exception."""
        loader = FamilyDataLoader(str(tmp_path / "missing.json"))
        result = asyncio.run(loader.load())

        assert result is None
        assert loader.status == LoaderStatus.FAILED
        assert "not found" in loader.error
        assert loader.family_data is None

    def test_load_http_failure(self):
        loader = FamilyDataLoader("https://example.com/family-data.json", transport=mock_transport(500))
        asyncio.run(loader.load())

        assert loader.status == LoaderStatus.FAILED
        assert loader.error.startswith("Failed to load family data")

    def test_failed_load_discards_previous_snapshot(self, sample_family_path, tmp_path):
        loader = FamilyDataLoader(sample_family_path)
        asyncio.run(loader.load())
        asyncio.run(loader.load(str(tmp_path / "missing.json")))

        assert loader.status == LoaderStatus.FAILED
        assert loader.people == []

    def test_no_source(self):
        loader = FamilyDataLoader()
        asyncio.run(loader.load())
        assert loader.status == LoaderStatus.FAILED
        assert "No family data source" in loader.error

    def test_set_family_data(self):
        loader = FamilyDataLoader()
        loader.set_family_data(FamilyData(people=[], root_person_id=""))
        assert loader.status == LoaderStatus.READY


# ============================================================================
# Configuration Tests
# ============================================================================

class TestLayoutConfig:
    """Tests for layout configuration."""

    def test_defaults(self):
        config = LayoutConfig()
        assert config.vertical_spacing == 400
        assert config.card_width == 192
        assert config.spouse_offset == 210
        assert config.min_gap_between_pairs == 100
        assert config.group_gap == 200
        assert config.pair_spacing == 502

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LAYOUT_CARD_WIDTH", "150")
        monkeypatch.setenv("LAYOUT_GROUP_GAP", "80.5")
        monkeypatch.delenv("LAYOUT_SPOUSE_OFFSET", raising=False)

        config = LayoutConfig.from_env()
        assert config.card_width == 150
        assert config.group_gap == 80.5
        assert config.spouse_offset == 210

    def test_from_env_bad_value_names_variable(self, monkeypatch):
        monkeypatch.setenv("LAYOUT_CARD_WIDTH", "wide")
        with pytest.raises(ValueError, match="LAYOUT_CARD_WIDTH"):
            LayoutConfig.from_env()
