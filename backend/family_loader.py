"""Family data loading: JSON/GEDCOM parsing and the three-state loader."""

import json
import logging
import os
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from family_models import FamilyData, FamilyDataError, Person

logger = logging.getLogger("familychart.loader")

GEDCOM_SUFFIXES = (".ged", ".gedcom")


class LoaderStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


# ============================================================================
# Parsing
# ============================================================================

def family_data_from_dict(raw: Any) -> FamilyData:
    """
    Validate a decoded family document.

    Records are validated one at a time so the error names the offending
    person. A missing, non-integer or non-positive `generation` rejects the
    whole document.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("people"), list):
        raise FamilyDataError("Family data must be an object with a 'people' list")

    people = []
    for index, record in enumerate(raw["people"]):
        person_id = record.get("id") if isinstance(record, dict) else None
        try:
            people.append(Person.model_validate(record))
        except ValidationError as e:
            label = person_id if person_id is not None else f"#{index}"
            fields = ", ".join(
                ".".join(str(part) for part in err["loc"]) or "record" for err in e.errors()
            )
            raise FamilyDataError(f"Invalid person record '{label}': bad {fields}") from e

    root_person_id = raw.get("rootPersonId") or ""
    return FamilyData(people=people, root_person_id=str(root_person_id))


def parse_family_content(content: str | bytes) -> FamilyData:
    """Parse family data from a JSON string or raw bytes."""
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8')
        except UnicodeDecodeError:
            logger.info("UTF-8 decode failed, trying latin-1 encoding")
            content = content.decode('latin-1')

    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise FamilyDataError(f"Invalid family data JSON: {e}") from e
    return family_data_from_dict(raw)


def load_family_file(file_path: str) -> FamilyData:
    """Load family data from a JSON or GEDCOM file."""
    if not os.path.isfile(file_path):
        raise FamilyDataError(f"Family data file not found: {file_path}")

    if file_path.lower().endswith(GEDCOM_SUFFIXES):
        from gedcom_import import parse_gedcom_file
        return parse_gedcom_file(file_path)

    try:
        with open(file_path, encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FamilyDataError(f"Could not read family data file {file_path}: {e}") from e
    return parse_family_content(content)


async def fetch_family_data(url: str, transport: httpx.AsyncBaseTransport | None = None) -> FamilyData:
    """Fetch family data JSON over HTTP."""
    logger.debug(f"Fetching family data from: {url}")
    try:
        async with httpx.AsyncClient(transport=transport, timeout=30.0) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        raise FamilyDataError(f"Failed to load family data: {e}") from e

    if not response.is_success:
        logger.warning(f"Family data request to {url} returned status {response.status_code}")
        raise FamilyDataError(f"Failed to load family data (HTTP {response.status_code})")

    return parse_family_content(response.content)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


# ============================================================================
# Loader
# ============================================================================

class FamilyDataLoader:
    """
    Supplies the current family snapshot.

    `status` is PENDING until the first load finishes, then READY with
    `family_data` set, or FAILED with a human-readable `error`.
    """

    def __init__(self, source: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.source = source
        self.status = LoaderStatus.PENDING
        self.family_data: FamilyData | None = None
        self.error: str | None = None
        self._transport = transport

    @property
    def people(self) -> list[Person]:
        return self.family_data.people if self.family_data else []

    async def load(self, source: str | None = None) -> FamilyData | None:
        """Load from a path or http(s) URL. Failures set FAILED instead of raising."""
        if source:
            self.source = source
        if not self.source:
            self._fail("No family data source configured")
            return None

        logger.info(f"Loading family data from {self.source}")
        self.status = LoaderStatus.PENDING
        self.error = None

        try:
            if is_url(self.source):
                data = await fetch_family_data(self.source, transport=self._transport)
            else:
                data = load_family_file(self.source)
        except FamilyDataError as e:
            self._fail(str(e))
            return None

        self.set_family_data(data)
        return data

    def set_family_data(self, family_data: FamilyData) -> None:
        """Replace the snapshot; every consumer recomputes from the new one."""
        self.family_data = family_data
        self.status = LoaderStatus.READY
        self.error = None
        logger.info(f"Family data ready with {len(family_data.people)} people")

    def _fail(self, message: str) -> None:
        logger.error(f"Failed to load family data: {message}")
        self.family_data = None
        self.status = LoaderStatus.FAILED
        self.error = message
