"""Generational layout for family charts.

Converts a flat person collection into absolute node coordinates and
parent-to-child edges. People are layered by `generation`; within a layer,
root couples are centered about x = 0 and descendants are laid out in
sibling groups keyed by their (order-normalized) parent ids.
"""

import logging
from typing import Iterable

from family_models import ChartLayout, LayoutConfig, LayoutEdge, LayoutNode, Person

logger = logging.getLogger("familychart.layout")

ROOT = "root"
DESCENDANT = "descendant"
SPOUSE = "spouse"


# ============================================================================
# Grouping & classification
# ============================================================================

def group_by_generation(people: Iterable[Person]) -> dict[int, list[Person]]:
    """Bucket people by generation, keeping first-encountered order for buckets and members."""
    generations: dict[int, list[Person]] = {}
    for person in people:
        generations.setdefault(person.generation, []).append(person)
    return generations


def classify_person(person: Person) -> str:
    """
    Classify a person for placement, in precedence order:
    root (no parents, no spouse reference), descendant (has parents),
    spouse (spouse reference only, placed next to their partner).
    """
    if not person.has_parents and not person.spouse_id:
        return ROOT
    if person.has_parents:
        return DESCENDANT
    return SPOUSE


def family_unit_key(person: Person) -> tuple[str, ...]:
    """Sibling group key: the parent ids sorted, so listing order does not matter."""
    return tuple(sorted(person.parent_ids or []))


# ============================================================================
# Placement
# ============================================================================

def _layout_generation(generation: int, people: list[Person], config: LayoutConfig) -> list[LayoutNode]:
    """Position every member of one generation bucket."""
    y = (generation - 1) * config.vertical_spacing
    kinds = [classify_person(p) for p in people]
    # bucket position -> node; a position is placed at most once
    placed: dict[int, LayoutNode] = {}

    def place(pos: int, x: float) -> None:
        placed[pos] = LayoutNode(id=people[pos].id, x=x, y=y)

    def reverse_spouse(person_id: str) -> int | None:
        for pos, candidate in enumerate(people):
            if kinds[pos] == SPOUSE and pos not in placed and candidate.spouse_id == person_id:
                return pos
        return None

    # Root people: a couple straddles x = 0, a lone person is centered on it
    half_gap = config.spouse_offset / 2
    for pos, person in enumerate(people):
        if kinds[pos] != ROOT:
            continue
        spouse_pos = reverse_spouse(person.id)
        if spouse_pos is not None:
            place(pos, -half_gap - config.card_width)
            place(spouse_pos, half_gap)
        else:
            place(pos, -config.card_width / 2)

    # Descendants, grouped into sibling units
    groups: dict[tuple[str, ...], list[int]] = {}
    for pos, person in enumerate(people):
        if kinds[pos] == DESCENDANT:
            groups.setdefault(family_unit_key(person), []).append(pos)

    if groups:
        pair_spacing = config.pair_spacing
        total_width = sum(len(children) * pair_spacing for children in groups.values())
        total_width += (len(groups) - 1) * config.group_gap
        total_width += config.spouse_offset  # room for the last child's spouse

        cursor_x = -total_width / 2
        for key, children in groups.items():
            logger.debug(f"Generation {generation}: placing {len(children)} children of {'/'.join(key)}")
            for index, pos in enumerate(children):
                child_x = cursor_x + index * pair_spacing
                place(pos, child_x)
                spouse_pos = reverse_spouse(people[pos].id)
                if spouse_pos is not None:
                    place(spouse_pos, child_x + config.spouse_offset)
            cursor_x += len(children) * pair_spacing + config.group_gap

    # Spouses whose partner is not in this bucket float centered like lone roots
    for pos, person in enumerate(people):
        if pos not in placed:
            logger.debug(f"Generation {generation}: no partner found for '{person.id}', centering it")
            place(pos, -config.card_width / 2)

    return list(placed.values())


# ============================================================================
# Edges
# ============================================================================

def build_edges(people: Iterable[Person]) -> list[LayoutEdge]:
    """One parent-to-child edge per parent id of every descendant; unknown parents are skipped."""
    people = list(people)
    known_ids = {p.id for p in people}
    edges: list[LayoutEdge] = []
    seen: set[str] = set()

    for child in people:
        for parent_id in child.parent_ids or []:
            if parent_id not in known_ids:
                logger.warning(f"Parent '{parent_id}' of '{child.id}' not found, omitting edge")
                continue
            edge_id = f"{parent_id}-{child.id}"
            if edge_id in seen:
                continue
            seen.add(edge_id)
            edges.append(LayoutEdge(id=edge_id, source_id=parent_id, target_id=child.id))

    return edges


def compute_layout(people: Iterable[Person], config: LayoutConfig | None = None) -> ChartLayout:
    """
    Lay out a family chart.

    Pure and deterministic: the same input sequence always yields the same
    nodes and edges. Every person gets exactly one node.
    """
    config = config or LayoutConfig()
    people = list(people)

    nodes: list[LayoutNode] = []
    for generation, members in group_by_generation(people).items():
        nodes.extend(_layout_generation(generation, members, config))

    edges = build_edges(people)
    logger.info(f"Computed layout: {len(nodes)} nodes, {len(edges)} edges")
    return ChartLayout(nodes=nodes, edges=edges)
