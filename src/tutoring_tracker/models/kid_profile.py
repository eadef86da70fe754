from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(slots=True)
class KidProfile:
    name: str
    classname: str = ""
    school: str = ""
    phone: str = ""
    id: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.id is None

    @property
    def has_contact(self) -> bool:
        return bool(self.school or self.phone)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "KidProfile":
        return cls(
            id=row.get("id"),
            name=row["name"],
            classname=row.get("classname") or "",
            school=row.get("school") or "",
            phone=row.get("phone") or "",
        )
