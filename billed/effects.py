"""Side effects returned by the event handlers.

Handlers never talk to the store, the browser or the router directly: they
return a new draft and a list of these values, and ``new_bill.run_effects``
carries them out in order.
"""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel

from .schemas import BillDraft


class UploadReceipt(BaseModel):
    file_name: str
    content: bytes = b""
    content_type: Optional[str] = None


class CreateBill(BaseModel):
    bill: BillDraft


class Navigate(BaseModel):
    path: str
    error: Optional[str] = None


class Alert(BaseModel):
    message: str


class ShowMessage(BaseModel):
    message: str


class ClearFileInput(BaseModel):
    pass


Effect = Union[UploadReceipt, CreateBill, Navigate, Alert, ShowMessage, ClearFileInput]
