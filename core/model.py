# core/model.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional


def new_invention_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Invention:
    id: str
    title: Optional[str] = None
    details: Optional[str] = None
    link_string: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class InventionDraft:
    """
    Detached working copy of one Invention.
    Edits stay here until the draft is committed; discarding it leaves the
    stored record untouched.
    """
    id: str
    title: Optional[str] = None
    details: Optional[str] = None
    link_string: Optional[str] = None

    @classmethod
    def from_invention(cls, inv: Invention) -> "InventionDraft":
        return cls(id=inv.id, title=inv.title, details=inv.details, link_string=inv.link_string)

    def apply_to(self, inv: Invention) -> Invention:
        if inv.id != self.id:
            raise ValueError(f"Draft {self.id} cannot be applied to invention {inv.id}")
        return replace(inv, title=self.title, details=self.details, link_string=self.link_string)
