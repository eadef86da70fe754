from __future__ import annotations

from typing import Iterable, Iterator


def normalize(raw_name: str, known_names: Iterable[str]) -> str:
    """Return the first-seen casing of ``raw_name`` among ``known_names``.

    Falls back to the trimmed input when no case-insensitive match exists.
    """

    name = raw_name.strip()
    key = name.casefold()
    for known in known_names:
        if known.casefold() == key:
            return known
    return name


class NameRegistry:
    """Lowercase key -> first-seen display form.

    Differently-cased spellings of a name resolve to one canonical casing,
    whichever was added first.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._canonical: dict[str, str] = {}
        for name in names:
            self.add(name)

    @classmethod
    def from_entries(cls, entries: Iterable, *, attribute: str = "kids_taught") -> "NameRegistry":
        registry = cls()
        for entry in entries:
            value = getattr(entry, attribute)
            if isinstance(value, str):
                registry.add(value)
            else:
                for name in value:
                    registry.add(name)
        return registry

    def add(self, name: str) -> str:
        """Register ``name`` if unseen and return its canonical form."""

        cleaned = name.strip()
        if not cleaned:
            return cleaned
        return self._canonical.setdefault(cleaned.casefold(), cleaned)

    def canonical(self, name: str) -> str:
        cleaned = name.strip()
        return self._canonical.get(cleaned.casefold(), cleaned)

    def names(self) -> list[str]:
        return list(self._canonical.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().casefold() in self._canonical

    def __iter__(self) -> Iterator[str]:
        return iter(self._canonical.values())

    def __len__(self) -> int:
        return len(self._canonical)
