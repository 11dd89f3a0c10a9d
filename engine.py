# >>> BEGIN ENGINE FILE <<<
# engine.py — Inventions command layer
# ---------------------------------------------------------------------
# - Add / Delete commands, each an independent single-record commit
# - Edit sessions over a detached draft (Done commits, Cancel discards)
# - Visible list = store order narrowed by the search filter
# - Failed commits roll back pending changes and re-raise StoreError

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from core.config import Settings
from core.model import Invention, InventionDraft
from core.search import filter_inventions
from core.store import InventionStore, StoreError
from lore import lorekeeper

# ============================== STATES ==============================

IDLE = "idle"
EDITING = "editing"


class CommandStateError(RuntimeError):
    """A command was issued in a state that does not allow it."""


class InventionCommands:
    """
    Idle --add--> Editing(new) --commit|cancel--> Idle
    Idle --begin_edit--> Editing(existing) --commit|cancel--> Idle
    Idle --delete--> Idle
    """

    def __init__(self, store: InventionStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.state = IDLE
        self.draft: Optional[InventionDraft] = None
        self.editing_new = False

    # ---------- queries ----------
    def visible(self, query: str = "") -> List[Invention]:
        return filter_inventions(self.store.all(), query, include_link=self.settings.search_links)

    # ---------- add / delete ----------
    def add(self) -> Union[InventionDraft, Invention]:
        """Create a record with placeholder fields and persist it.
        With edit_on_add the new record is opened for editing and its draft
        is returned; otherwise the saved record is returned."""
        if self.state != IDLE:
            raise CommandStateError("Cannot add while an invention is being edited")
        inv = self.store.create(title=self.settings.new_title, details="")
        self._save_or_rollback("add")
        lorekeeper.log_app_event("add", [f"id={inv.id}"])
        if self.settings.edit_on_add:
            draft = self.begin_edit(inv.id)
            self.editing_new = True
            return draft
        return inv

    def delete(self, invention_id: str) -> None:
        if self.store.get(invention_id) is None:
            raise KeyError(f"Unknown invention '{invention_id}'")
        if self.state == EDITING and self.draft and self.draft.id == invention_id:
            raise CommandStateError("Cannot delete the invention that is being edited")
        self.store.delete(invention_id)
        self._save_or_rollback("delete")
        lorekeeper.log_app_event("delete", [f"id={invention_id}"])

    def delete_rows(self, visible: Sequence[Invention], rows: Sequence[int]) -> None:
        """Delete by row index into the currently visible (filtered) list."""
        targets = [visible[r].id for r in sorted(set(rows)) if 0 <= r < len(visible)]
        for invention_id in targets:
            self.delete(invention_id)

    # ---------- edit session ----------
    def begin_edit(self, invention_id: str) -> InventionDraft:
        if self.state != IDLE:
            raise CommandStateError("Another invention is already being edited")
        inv = self.store.get(invention_id)
        if inv is None:
            raise KeyError(f"Unknown invention '{invention_id}'")
        self.draft = InventionDraft.from_invention(inv)
        self.editing_new = False
        self.state = EDITING
        return self.draft

    def commit(self) -> Invention:
        """Write the draft back and save. On StoreError the session stays open."""
        if self.state != EDITING or self.draft is None:
            raise CommandStateError("No invention is being edited")
        current = self.store.get(self.draft.id)
        if current is None:
            lorekeeper.log_app_event("edit target missing", [f"id={self.draft.id}"])
            raise KeyError(f"Invention '{self.draft.id}' no longer exists")
        updated = self.draft.apply_to(current)
        try:
            self.store.update(updated)
        except StoreError as e:
            lorekeeper.log_error("edit update failed", e)
            self.store.discard()
            raise
        self._save_or_rollback("edit")
        lorekeeper.log_app_event("edit committed", [f"id={updated.id}"])
        self._end_session()
        return updated

    def cancel(self) -> None:
        if self.state != EDITING or self.draft is None:
            raise CommandStateError("No invention is being edited")
        lorekeeper.log_app_event("edit cancelled", [f"id={self.draft.id}"])
        self._end_session()

    def _end_session(self) -> None:
        self.draft = None
        self.editing_new = False
        self.state = IDLE

    # ---------- helpers ----------
    def _save_or_rollback(self, op: str) -> None:
        try:
            self.store.save()
        except StoreError as e:
            lorekeeper.log_error(f"{op} commit failed", e)
            self.store.discard()
            raise
