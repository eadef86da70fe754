from __future__ import annotations

import logging
from typing import Iterable

from tutoring_tracker.data.tables import Table, TableError
from tutoring_tracker.models import KidProfile
from tutoring_tracker.services.errors import LoadError, WriteError

_LOGGER = logging.getLogger(__name__)

ALL_CLASSES = "all"


class ProfileService:
    """Contact details for every student, saved or not yet saved."""

    def __init__(self, profiles_table: Table, entries_table: Table) -> None:
        self._profiles = profiles_table
        self._entries = entries_table

    def list_profiles(self) -> list[KidProfile]:
        try:
            saved_rows = self._profiles.select(order_by=(("created_at", False),))
            progress_rows = self._entries.select()
        except TableError as exc:
            _LOGGER.error("Error loading kid profiles: %s", exc)
            raise LoadError("Failed to load kid profiles") from exc

        saved = {}
        for row in saved_rows:
            profile = KidProfile.from_row(row)
            saved.setdefault(profile.name, profile)

        name_to_class: dict[str, str] = {}
        for row in progress_rows:
            class_name = row.get("class") or ""
            for kid in row.get("kids_taught") or []:
                key = kid.strip()
                if key and not name_to_class.get(key):
                    name_to_class[key] = class_name

        merged: list[KidProfile] = []
        for name in {**dict.fromkeys(name_to_class), **dict.fromkeys(saved)}:
            profile = saved.get(name)
            if profile is None:
                merged.append(KidProfile(name=name, classname=name_to_class.get(name, "")))
                continue
            if not profile.classname:
                profile.classname = name_to_class.get(name, "")
            merged.append(profile)

        return sorted(merged, key=lambda profile: profile.name.casefold())

    def save_profile(self, profile: KidProfile, *, school: str, phone: str) -> KidProfile:
        """Persist contact details; a placeholder profile is inserted on first save."""

        values = {"school": school.strip(), "phone": phone.strip(), "classname": profile.classname or None}
        try:
            if profile.id:
                row = self._profiles.update(profile.id, values)
                if row is None:
                    raise WriteError(f"Kid profile {profile.id} does not exist")
            else:
                row = self._profiles.insert({"name": profile.name, **values})
        except TableError as exc:
            _LOGGER.error("Error saving profile for %s: %s", profile.name, exc)
            raise WriteError("Failed to save profile") from exc

        _LOGGER.info("Saved profile for %s", profile.name)
        return KidProfile.from_row(row)


def search_profiles(
    profiles: Iterable[KidProfile],
    search: str = "",
    class_filter: str = ALL_CLASSES,
) -> list[KidProfile]:
    needle = search.strip().casefold()
    result = []
    for profile in profiles:
        if needle and not any(
            needle in value.casefold() for value in (profile.name, profile.school, profile.phone)
        ):
            continue
        if class_filter != ALL_CLASSES and profile.classname != class_filter:
            continue
        result.append(profile)
    return result


def count_with_contacts(profiles: Iterable[KidProfile]) -> int:
    return sum(1 for profile in profiles if profile.has_contact)
