"""Person selection: the single event the chart view sends back to the backend."""

import logging
from typing import Callable, Sequence

from family_models import Person, PersonDetail
from relationships import get_person_detail

logger = logging.getLogger("familychart.selection")

# Called with the selected person id, or None when the selection is cleared
PersonSelectedCallback = Callable[[str | None], None]


class PersonSelection:
    """Tracks the selected person and resolves their detail against the current snapshot."""

    def __init__(self, get_people: Callable[[], Sequence[Person]], symmetric_spouse: bool = False):
        self._get_people = get_people
        self._listeners: list[PersonSelectedCallback] = []
        self.symmetric_spouse = symmetric_spouse
        self.selected_person_id: str | None = None

    def on_person_selected(self, callback: PersonSelectedCallback) -> PersonSelectedCallback:
        """Register a listener. Usable as a decorator."""
        self._listeners.append(callback)
        return callback

    def select(self, person_id: str) -> PersonDetail:
        """Select a person. Raises KeyError if the id is not in the snapshot."""
        detail = get_person_detail(person_id, self._get_people(), symmetric_spouse=self.symmetric_spouse)
        if detail is None:
            raise KeyError(person_id)
        self.selected_person_id = person_id
        self._notify(person_id)
        return detail

    def clear(self) -> None:
        self.selected_person_id = None
        self._notify(None)

    def current(self) -> PersonDetail | None:
        """
        Detail of the selected person, recomputed from the current snapshot.

        A selected person missing from the snapshot clears the selection.
        """
        if self.selected_person_id is None:
            return None
        detail = get_person_detail(
            self.selected_person_id, self._get_people(), symmetric_spouse=self.symmetric_spouse
        )
        if detail is None:
            logger.info(f"Selected person '{self.selected_person_id}' no longer exists")
            self.clear()
        return detail

    def _notify(self, person_id: str | None) -> None:
        for listener in self._listeners:
            listener(person_id)
