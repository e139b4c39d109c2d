"""Family chart data model: person records, layout configuration and output shapes."""

import os

from pydantic import BaseModel, ConfigDict, Field


class FamilyDataError(ValueError):
    """Raised when family data cannot be read or a record is malformed."""


class Person(BaseModel):
    """One individual in the family dataset.

    `spouse_id` is directional: only one member of a couple carries it, the
    other is found by reverse lookup.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    generation: int = Field(strict=True, ge=1)
    photo: str | None = None
    occupation: str | None = None
    location: str | None = None
    description: str | None = None
    birth_date: str | None = Field(default=None, alias="birthDate")
    death_date: str | None = Field(default=None, alias="deathDate")
    parent_ids: list[str] | None = Field(default=None, alias="parentIds")
    spouse_id: str | None = Field(default=None, alias="spouseId")

    @property
    def has_parents(self) -> bool:
        """True when the record lists at least one parent (a descendant)."""
        return bool(self.parent_ids)


class FamilyData(BaseModel):
    """A person collection snapshot plus the informational root person id."""
    model_config = ConfigDict(populate_by_name=True)

    people: list[Person] = []
    root_person_id: str = Field(default="", alias="rootPersonId")

    def find_person(self, person_id: str) -> Person | None:
        for person in self.people:
            if person.id == person_id:
                return person
        return None


# ============================================================================
# Layout configuration
# ============================================================================

def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


class LayoutConfig(BaseModel):
    """Spacing constants for the generational layout (relative units)."""
    model_config = ConfigDict(frozen=True)

    vertical_spacing: float = 400
    card_width: float = 192
    spouse_offset: float = 210
    min_gap_between_pairs: float = 100
    group_gap: float = 200

    @property
    def pair_spacing(self) -> float:
        """Horizontal room for one child, that child's spouse and the clearance to the next pair."""
        return self.card_width + self.spouse_offset + self.min_gap_between_pairs

    @classmethod
    def from_env(cls) -> "LayoutConfig":
        """Build a config from LAYOUT_* environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            vertical_spacing=_env_float("LAYOUT_VERTICAL_SPACING", defaults.vertical_spacing),
            card_width=_env_float("LAYOUT_CARD_WIDTH", defaults.card_width),
            spouse_offset=_env_float("LAYOUT_SPOUSE_OFFSET", defaults.spouse_offset),
            min_gap_between_pairs=_env_float("LAYOUT_MIN_GAP_BETWEEN_PAIRS", defaults.min_gap_between_pairs),
            group_gap=_env_float("LAYOUT_GROUP_GAP", defaults.group_gap),
        )


# ============================================================================
# Layout output
# ============================================================================

class LayoutNode(BaseModel):
    """A positioned person card."""
    id: str
    x: float
    y: float


class LayoutEdge(BaseModel):
    """A parent-to-child connector."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    source_id: str = Field(alias="sourceId")
    target_id: str = Field(alias="targetId")


class ChartLayout(BaseModel):
    nodes: list[LayoutNode] = []
    edges: list[LayoutEdge] = []


# ============================================================================
# Relationship views
# ============================================================================

class PersonRelations(BaseModel):
    """Parents, spouse and children of one person."""
    parents: list[Person] = []
    spouse: Person | None = None
    children: list[Person] = []


class PersonDetail(BaseModel):
    """What the detail view shows for a selected person."""
    person: Person
    parents: list[Person] = []
    spouse: Person | None = None
    children: list[Person] = []
