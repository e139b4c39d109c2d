"""GEDCOM import: convert a python-gedcom parse into family chart records."""

import logging
import os
import tempfile

from gedcom.element.family import FamilyElement
from gedcom.element.individual import IndividualElement
from gedcom.parser import Parser

from family_models import FamilyData, FamilyDataError, Person

logger = logging.getLogger("familychart.gedcom")


# ============================================================================
# Parsing
# ============================================================================

def parse_gedcom_file(file_path: str) -> FamilyData:
    """Parse a GEDCOM file into FamilyData."""
    parser = Parser()
    try:
        parser.parse_file(file_path, strict=False)
    except Exception as e:
        raise FamilyDataError(f"Failed to parse GEDCOM file: {e}") from e
    return family_data_from_gedcom(parser)


def parse_gedcom_content(content: str) -> FamilyData:
    """Parse GEDCOM content from a string."""
    # python-gedcom only reads from a file path
    with tempfile.NamedTemporaryFile(mode='w', suffix='.ged', delete=False, encoding='utf-8') as f:
        f.write(content)
        temp_path = f.name

    try:
        return parse_gedcom_file(temp_path)
    finally:
        os.unlink(temp_path)


# ============================================================================
# Conversion
# ============================================================================

def _person_id(pointer: str) -> str:
    return pointer.strip("@")


def _child_value(individual: IndividualElement, tag: str) -> str | None:
    for child in individual.get_child_elements():
        if child.get_tag() == tag and child.get_value():
            return child.get_value()
    return None


def _first_member(parser: Parser, family: FamilyElement, role: str) -> str | None:
    for member in parser.get_family_members(family, role):
        if isinstance(member, IndividualElement):
            return member.get_pointer()
    return None


def family_data_from_gedcom(parser: Parser) -> FamilyData:
    """
    Build FamilyData from a parsed GEDCOM file.

    Generation is one more than the deepest parent's; a parentless in-law
    takes the generation of a partner who has parents. In each couple only the partner
    without parents stores `spouseId` (the wife when that does not decide it),
    matching the directional spouse reference of the JSON format.
    """
    individuals = [
        element for element in parser.get_root_child_elements()
        if isinstance(element, IndividualElement)
    ]

    parents_of: dict[str, list[str]] = {}
    for individual in individuals:
        parents_of[individual.get_pointer()] = [
            parent.get_pointer() for parent in parser.get_parents(individual)
            if isinstance(parent, IndividualElement)
        ]

    # Every couple, in family record order
    couples: list[tuple[str, str]] = []
    partners_of: dict[str, list[str]] = {}
    for family in parser.get_root_child_elements():
        if not isinstance(family, FamilyElement):
            continue
        husband = _first_member(parser, family, "HUSB")
        wife = _first_member(parser, family, "WIFE")
        if husband and wife:
            couples.append((husband, wife))
            partners_of.setdefault(husband, []).append(wife)
            partners_of.setdefault(wife, []).append(husband)

    generations: dict[str, int] = {}

    def generation_of(pointer: str, visiting: set[str]) -> int:
        if pointer in generations:
            return generations[pointer]
        if pointer in visiting:
            logger.warning(f"Circular ancestry at {pointer}")
            return 1
        visiting.add(pointer)

        parents = parents_of.get(pointer, [])
        blood_partner = next(
            (p for p in partners_of.get(pointer, []) if parents_of.get(p)), None
        )
        if parents:
            generation = 1 + max(generation_of(p, visiting) for p in parents)
        elif blood_partner:
            generation = generation_of(blood_partner, visiting)
        else:
            generation = 1

        visiting.discard(pointer)
        generations[pointer] = generation
        return generation

    # A record stores one spouse reference; later marriages of a carrier are dropped
    spouse_of: dict[str, str] = {}
    for husband, wife in couples:
        if parents_of.get(wife) and not parents_of.get(husband):
            carrier, partner = husband, wife
        else:
            carrier, partner = wife, husband
        if carrier in spouse_of:
            logger.debug(f"{carrier} already references a spouse, skipping {partner}")
            continue
        spouse_of[carrier] = partner

    people = []
    for individual in individuals:
        pointer = individual.get_pointer()
        first_name, last_name = individual.get_name()
        birth_data = individual.get_birth_data()
        death_data = individual.get_death_data()
        parent_ids = [_person_id(p) for p in parents_of[pointer]]

        people.append(Person(
            id=_person_id(pointer),
            name=f"{first_name} {last_name}".strip() or _person_id(pointer),
            generation=generation_of(pointer, set()),
            occupation=_child_value(individual, "OCCU"),
            location=birth_data[1] if len(birth_data) > 1 and birth_data[1] else None,
            description=_child_value(individual, "NOTE"),
            birth_date=(birth_data[0] or None) if birth_data else None,
            death_date=(death_data[0] or None) if death_data else None,
            parent_ids=parent_ids or None,
            spouse_id=_person_id(spouse_of[pointer]) if pointer in spouse_of else None,
        ))

    root = next((p for p in people if not p.has_parents and not p.spouse_id), None)
    if root is None and people:
        root = people[0]

    logger.info(f"Imported {len(people)} people from GEDCOM")
    return FamilyData(people=people, root_person_id=root.id if root else "")
