"""Receipt file selection: extension check and the file-change command."""
from __future__ import annotations

import os
from typing import List, Optional, Tuple

from pydantic import BaseModel

from .config import settings
from .effects import Alert, ClearFileInput, Effect, UploadReceipt
from .new_bill import ensure_editing
from .schemas import BillDraft

ACCEPTED_EXTENSIONS = (".jpg", ".jpeg", ".png")
# some clients send no precise type for images
_NEUTRAL_CONTENT_TYPES = ("application/octet-stream",)

REJECTED_FILE_MESSAGE = "Seuls les fichiers jpg, jpeg et png sont acceptés."
TOO_LARGE_MESSAGE = "Le justificatif dépasse la taille maximale autorisée."


class SelectedFile(BaseModel):
    name: str
    content_type: Optional[str] = None
    content: bytes = b""


def is_accepted(file_name: str, content_type: Optional[str] = None) -> bool:
    ext = os.path.splitext(file_name or "")[1].lower()
    if ext not in ACCEPTED_EXTENSIONS:
        return False
    if content_type:
        ct = content_type.lower()
        if not ct.startswith("image/") and ct not in _NEUTRAL_CONTENT_TYPES:
            return False
    return True


def handle_change_file(
    draft: BillDraft, selected: SelectedFile, max_bytes: Optional[int] = None
) -> Tuple[BillDraft, List[Effect]]:
    ensure_editing(draft)
    if not is_accepted(selected.name, selected.content_type):
        return draft, [ClearFileInput(), Alert(message=REJECTED_FILE_MESSAGE)]
    limit = settings.MAX_RECEIPT_BYTES if max_bytes is None else max_bytes
    if len(selected.content) > limit:
        return draft, [ClearFileInput(), Alert(message=TOO_LARGE_MESSAGE)]

    # file_url arrives once the upload resolves
    draft = draft.model_copy(update={"file_name": selected.name, "file_url": None})
    return draft, [
        UploadReceipt(file_name=selected.name, content=selected.content, content_type=selected.content_type)
    ]
