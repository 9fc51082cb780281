"""Multi-select event-type filtering."""

from typing import Dict, Iterable, List, Optional

from .event_types import filter_keys
from .models import Event


class FilterEngine:
    """
    Toggle set over the known event types.

    With every flag off all events pass, including types the table does
    not know. Once any flag is on, only events whose own type is switched
    on pass, so unknown types drop out.
    """

    def __init__(self, enabled: Optional[Iterable[str]] = None):
        self._flags: Dict[str, bool] = {key: False for key in filter_keys()}
        for key in enabled or ():
            self.toggle(key)

    @property
    def state(self) -> Dict[str, bool]:
        return dict(self._flags)

    @property
    def active(self) -> bool:
        return any(self._flags.values())

    def toggle(self, event_type: str) -> bool:
        """
        Flip one type's flag, leaving the others alone.

        Returns:
            The new value of the flag.

        Raises:
            KeyError: If ``event_type`` is not a filterable key.
        """
        if event_type not in self._flags:
            raise KeyError(event_type)
        self._flags[event_type] = not self._flags[event_type]
        return self._flags[event_type]

    def predicate(self, event: Event) -> bool:
        if not self.active:
            return True
        return self._flags.get(event.type, False)

    def apply(self, events: Iterable[Event]) -> List[Event]:
        return [event for event in events if self.predicate(event)]
