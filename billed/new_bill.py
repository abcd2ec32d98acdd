"""New bill form: draft state machine and the effects it asks for.

``change_field`` and ``handle_submit`` are pure: they take the current draft
and return a new one (plus effects for ``handle_submit``). ``run_effects``
is the only place where the store is called.

    editing --submit--> submitting --create ok--> completed
                                   \--create failed--> failed

A submit without an accepted receipt leaves the draft in editing.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from .effects import Alert, ClearFileInput, CreateBill, Effect, Navigate, ShowMessage, UploadReceipt
from .schemas import BillDraft, BillOut, DEFAULT_PCT, DraftState
from .store import BillStore, BillStoreError
from .views import ROUTES_PATH

logger = logging.getLogger(__name__)

MISSING_ATTACHMENT_MESSAGE = "Justificatif manquant : joignez une image jpg, jpeg ou png avant d'envoyer."
UPLOAD_FAILED_MESSAGE = "Le justificatif n'a pas pu être enregistré"

FORM_FIELDS = ("type", "name", "date", "amount", "vat", "pct", "commentary")


class DraftLocked(Exception):
    """The draft left the editing state and can no longer change."""


def ensure_editing(draft: BillDraft) -> None:
    if draft.state != DraftState.EDITING:
        raise DraftLocked(f"Draft is {draft.state.value}")


def _to_float(value: Any) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(str(value).replace(",", "."))
    except ValueError:
        return None


def _to_int(value: Any) -> Optional[int]:
    f = _to_float(value)
    return None if f is None else int(f)


def change_field(draft: BillDraft, field: str, value: Any) -> BillDraft:
    ensure_editing(draft)
    if field not in FORM_FIELDS:
        raise ValueError(f"Unknown bill field {field!r}")
    if field == "amount":
        value = _to_float(value)
    elif field == "pct":
        value = _to_int(value)
    else:
        value = "" if value is None else str(value)
        if field in ("type", "date", "vat"):
            value = value.strip()
    return draft.model_copy(update={field: value})


def apply_form(draft: BillDraft, form: Mapping[str, Any]) -> BillDraft:
    """Copy the bill fields present in ``form`` into the draft."""
    ensure_editing(draft)
    for field in FORM_FIELDS:
        if form.get(field) is not None:
            draft = change_field(draft, field, form[field])
    return draft


def handle_submit(draft: BillDraft, form: Mapping[str, Any], session) -> Tuple[BillDraft, List[Effect]]:
    """Read the form into the draft and ask for creation, or refuse.

    ``session`` is a session accessor (anything with ``get()``); the
    employee email comes from it, never from the form.
    """
    draft = apply_form(draft, form)

    if not draft.has_attachment:
        return draft, [ShowMessage(message=MISSING_ATTACHMENT_MESSAGE)]

    user = session.get()
    draft = draft.model_copy(update={
        "email": user.email if user else None,
        "status": "pending",
        "pct": DEFAULT_PCT if draft.pct is None else draft.pct,
        "state": DraftState.SUBMITTING,
    })
    return draft, [CreateBill(bill=draft), Navigate(path=ROUTES_PATH["Bills"])]


class Outcome(BaseModel):
    draft: BillDraft
    navigate: Optional[Navigate] = None
    alerts: List[str] = Field(default_factory=list)
    message: Optional[str] = None
    cleared_file_input: bool = False
    created: Optional[BillOut] = None


def run_effects(draft: BillDraft, effects: List[Effect], store: BillStore) -> Outcome:
    """Carry out ``effects`` in order. Store failures never escape: they end up
    in the alerts or in the error carried by the navigation."""
    out = Outcome(draft=draft)
    failure: Optional[str] = None

    for effect in effects:
        if isinstance(effect, UploadReceipt):
            try:
                url = store.upload_receipt(effect.file_name, effect.content)
                out.draft = out.draft.model_copy(update={"file_url": url})
            except BillStoreError as e:
                logger.warning("Receipt upload failed for %s: %s", effect.file_name, e)
                out.draft = out.draft.model_copy(update={"file_name": None, "file_url": None})
                out.alerts.append(f"{UPLOAD_FAILED_MESSAGE} ({e})")
        elif isinstance(effect, CreateBill):
            try:
                out.created = store.create(effect.bill)
                out.draft = out.draft.model_copy(update={"state": DraftState.COMPLETED})
            except BillStoreError as e:
                logger.error("Bill creation failed for %s: %s", effect.bill.email, e)
                out.draft = out.draft.model_copy(update={"state": DraftState.FAILED})
                failure = str(e)
        elif isinstance(effect, Navigate):
            out.navigate = Navigate(path=effect.path, error=effect.error or failure)
        elif isinstance(effect, Alert):
            out.alerts.append(effect.message)
        elif isinstance(effect, ShowMessage):
            out.message = effect.message
        elif isinstance(effect, ClearFileInput):
            out.cleared_file_input = True
    return out


class DraftRegistry:
    """One draft per employee, kept in memory between requests."""

    def __init__(self):
        self._drafts: Dict[str, BillDraft] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> BillDraft:
        with self._lock:
            return self._drafts.get(key) or BillDraft()

    def put(self, key: str, draft: BillDraft) -> None:
        with self._lock:
            if draft.state in (DraftState.COMPLETED, DraftState.FAILED):
                self._drafts.pop(key, None)
            else:
                self._drafts[key] = draft

    def claim(self, key: str, draft: BillDraft) -> None:
        """Store ``draft`` only if the stored one is still editing.

        Raises DraftLocked when another submit got there first.
        """
        with self._lock:
            current = self._drafts.get(key)
            if current is not None and current.state != DraftState.EDITING:
                raise DraftLocked(f"Draft is {current.state.value}")
            self._drafts[key] = draft

    def discard(self, key: str) -> None:
        with self._lock:
            self._drafts.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._drafts)
