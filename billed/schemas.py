from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

BillStatus = Literal["pending", "accepted", "refused"]
UserType = Literal["Employee", "Admin"]

DEFAULT_PCT = 20

EXPENSE_TYPES = (
    "Transports",
    "Restaurants et bars",
    "Hôtel et logement",
    "Services en ligne",
    "IT et électronique",
    "Equipement et matériel",
    "Fournitures de bureau",
)


class UserSession(BaseModel):
    """What the ``user`` cookie holds once decoded."""
    type: UserType
    email: Optional[str] = None


class DraftState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class BillDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = ""
    name: str = ""
    date: str = ""
    amount: Optional[float] = None
    vat: str = ""
    pct: Optional[int] = None
    commentary: str = ""
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    status: Optional[BillStatus] = None
    email: Optional[str] = None
    state: DraftState = DraftState.EDITING

    @property
    def has_attachment(self) -> bool:
        return bool(self.file_name) and bool(self.file_url)

    def payload(self) -> dict:
        """Fields sent to the store; the in-memory state never leaves the process."""
        return self.model_dump(exclude={"state"})


class BillOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: Union[int, str]
    type: str = ""
    name: Optional[str] = None
    date: str
    amount: float = Field(ge=0)
    vat: Optional[str] = ""
    pct: int = DEFAULT_PCT
    commentary: Optional[str] = None
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    status: BillStatus
    comment_admin: Optional[str] = Field(default=None, alias="commentAdmin")
    email: Optional[str] = None
    # filled by the bills container for display; never persisted
    display_date: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, v):
        if isinstance(v, (dt.date, dt.datetime)):
            return v.isoformat()[:10]
        return v

    @field_validator("vat", mode="before")
    @classmethod
    def _vat_text(cls, v):
        if v is None:
            return ""
        return str(v)

    @field_validator("pct", mode="before")
    @classmethod
    def _pct_default(cls, v):
        return DEFAULT_PCT if v in (None, "") else v


class BillReview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["accepted", "refused"]
    comment_admin: Optional[str] = Field(default=None, alias="commentAdmin")


class LoginBody(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
