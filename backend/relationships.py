"""Relationship lookups over a person collection (detail view support)."""

import logging
from typing import Sequence

from family_models import Person, PersonDetail, PersonRelations

logger = logging.getLogger("familychart.relationships")


# ============================================================================
# Lookups
# ============================================================================

def find_person(people: Sequence[Person], person_id: str) -> Person | None:
    """Find a person by id. Returns the first match or None."""
    for person in people:
        if person.id == person_id:
            return person
    return None


def get_parents(person: Person, people: Sequence[Person]) -> list[Person]:
    """Records whose id is listed in the person's parent ids, in collection order."""
    parent_ids = person.parent_ids or []
    return [p for p in people if p.id in parent_ids]


def get_children(person: Person, people: Sequence[Person]) -> list[Person]:
    """Records that list the person as a parent, in collection order."""
    return [p for p in people if person.id in (p.parent_ids or [])]


def find_spouse(person: Person, people: Sequence[Person]) -> Person | None:
    """
    Spouse lookup that checks both directions.

    Only one partner of a couple stores `spouseId`, so a forward lookup
    (`person.spouseId == other.id`) is tried first, then the reverse one
    (`other.spouseId == person.id`).
    """
    if person.spouse_id:
        spouse = find_person(people, person.spouse_id)
        if spouse:
            return spouse
    for other in people:
        if other.spouse_id == person.id and other.id != person.id:
            return other
    return None


def get_siblings(person: Person, people: Sequence[Person]) -> list[Person]:
    """People sharing at least one parent with the person (the person excluded)."""
    parent_ids = set(person.parent_ids or [])
    if not parent_ids:
        return []
    return [
        p for p in people
        if p.id != person.id and parent_ids.intersection(p.parent_ids or [])
    ]


def find_root_ancestors(people: Sequence[Person]) -> list[Person]:
    """People with no recorded parents and no spouse reference."""
    return [p for p in people if not p.has_parents and not p.spouse_id]


def find_youngest_generation(people: Sequence[Person]) -> list[Person]:
    """People nobody lists as a parent."""
    parent_ids = {pid for p in people for pid in (p.parent_ids or [])}
    return [p for p in people if p.id not in parent_ids]


# ============================================================================
# Detail view
# ============================================================================

def resolve_relationships(
    person: Person,
    people: Sequence[Person],
    symmetric_spouse: bool = False,
) -> PersonRelations:
    """
    Resolve parents, spouse and children of a person.

    By default the spouse comes from a forward lookup of the person's own
    `spouseId` only, so the partner that does not carry the reference shows
    no spouse. Pass `symmetric_spouse=True` to also search the reverse
    direction.
    """
    if symmetric_spouse:
        spouse = find_spouse(person, people)
    else:
        spouse = find_person(people, person.spouse_id) if person.spouse_id else None

    return PersonRelations(
        parents=get_parents(person, people),
        spouse=spouse,
        children=get_children(person, people),
    )


def get_person_detail(
    person_id: str,
    people: Sequence[Person],
    symmetric_spouse: bool = False,
) -> PersonDetail | None:
    """Person plus relations for the detail view, or None if the id is unknown."""
    person = find_person(people, person_id)
    if not person:
        logger.info(f"Person not found: '{person_id}'")
        return None

    relations = resolve_relationships(person, people, symmetric_spouse=symmetric_spouse)
    return PersonDetail(
        person=person,
        parents=relations.parents,
        spouse=relations.spouse,
        children=relations.children,
    )
