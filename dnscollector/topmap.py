"""A bounded ranking of names by hit count."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TopMapItem:
    """One ranked entry: a name and its current hit count."""

    name: str
    hit: int


class TopMap:
    """Keeps the ``max_items`` names with the highest hit counts.

    Recording a name that is already ranked replaces its hit count. Ties keep
    the order in which names first entered the ranking.
    """

    def __init__(self, max_items: int) -> None:
        self.max_items = max_items
        self._items: list[TopMapItem] = []

    def record(self, name: str, hit: int) -> None:
        """Set the hit count of ``name`` and re-rank."""
        for position, item in enumerate(self._items):
            if item.name == name:
                self._items[position] = TopMapItem(name, hit)
                break
        else:
            self._items.append(TopMapItem(name, hit))
        self._items.sort(key=lambda item: item.hit, reverse=True)
        del self._items[max(self.max_items, 0):]

    def get(self) -> list[TopMapItem]:
        """Return the ranked items, highest hit count first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)