"""Bill persistence seen through a small capability interface.

Everything that talks to the bill store goes through ``BillStore``; the
SQLAlchemy implementation below is the production one, tests substitute
their own objects with the same four methods.
"""
import logging
import os
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Protocol, Union
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .schemas import BillDraft, BillOut, BillReview, DEFAULT_PCT

logger = logging.getLogger(__name__)

# status -> statuses it may move to; anything not listed is final
ALLOWED_TRANSITIONS = {
    "pending": {"accepted", "refused"},
}

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


class BillStoreError(Exception):
    """A store call failed. ``str(exc)`` is meant for the user, verbatim."""


class InvalidTransition(BillStoreError):
    pass


class BillStore(Protocol):
    def list(self) -> List[BillOut]: ...

    def create(self, draft: BillDraft) -> BillOut: ...

    def update(self, bill_id: Union[int, str], changes: BillReview) -> BillOut: ...

    def upload_receipt(self, file_name: str, content: bytes) -> str: ...


def check_transition(current: str, new: str) -> None:
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Erreur 400 : transition {current} -> {new} impossible")


# ============================================================
# Helpers
# ============================================================
def _parse_bill_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise BillStoreError(f"Erreur 400 : date invalide ({value!r})")


def _parse_amount(value) -> Decimal:
    if value is None:
        raise BillStoreError(f"Erreur 400 : montant invalide ({value!r})")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise BillStoreError(f"Erreur 400 : montant invalide ({value!r})")
    if not amount.is_finite() or amount < 0:
        raise BillStoreError(f"Erreur 400 : montant invalide ({value!r})")
    return amount


def _safe_filename(name: str) -> str:
    base = os.path.basename(name or "").strip()
    return _UNSAFE_FILENAME.sub("_", base) or "receipt"


class SqlBillStore:
    """BillStore backed by the ``bills`` table.

    When ``email`` is given, ``list`` only returns that employee's bills.
    """

    def __init__(
        self,
        db: Session,
        email: Optional[str] = None,
        upload_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
    ):
        self.db = db
        self.email = email
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")

    def list(self) -> List[BillOut]:
        q = select(models.Bill).order_by(models.Bill.id)
        if self.email:
            q = q.where(models.Bill.email == self.email)
        try:
            rows = self.db.execute(q).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Listing bills failed: %s", e)
            raise BillStoreError("Erreur 500") from e
        return [BillOut.model_validate(b) for b in rows]

    def create(self, draft: BillDraft) -> BillOut:
        if not (draft.type or "").strip():
            raise BillStoreError("Erreur 400 : type de dépense manquant")
        if not draft.email:
            raise BillStoreError("Erreur 400 : email manquant")

        bill = models.Bill(
            email=draft.email,
            type=draft.type.strip(),
            name=draft.name or None,
            date=_parse_bill_date(draft.date),
            amount=_parse_amount(draft.amount),
            vat=draft.vat or "",
            pct=DEFAULT_PCT if draft.pct is None else draft.pct,
            commentary=draft.commentary or None,
            file_url=draft.file_url,
            file_name=draft.file_name,
            status=draft.status or "pending",
        )
        try:
            self.db.add(bill)
            self.db.commit()
            self.db.refresh(bill)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Creating bill for %s failed: %s", draft.email, e)
            raise BillStoreError("Erreur 500") from e
        logger.info("Bill %s created for %s", bill.id, bill.email)
        return BillOut.model_validate(bill)

    def update(self, bill_id: Union[int, str], changes: BillReview) -> BillOut:
        try:
            bill = self.db.get(models.Bill, int(bill_id))
        except (TypeError, ValueError):
            bill = None
        if not bill:
            raise BillStoreError("Erreur 404")
        check_transition(bill.status, changes.status)

        bill.status = changes.status
        if changes.comment_admin is not None:
            bill.comment_admin = changes.comment_admin
        try:
            self.db.add(bill)
            self.db.commit()
            self.db.refresh(bill)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Updating bill %s failed: %s", bill_id, e)
            raise BillStoreError("Erreur 500") from e
        return BillOut.model_validate(bill)

    def upload_receipt(self, file_name: str, content: bytes) -> str:
        stored = f"{uuid4().hex}-{_safe_filename(file_name)}"
        dest_path = os.path.join(self.upload_dir, stored)
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(dest_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error("Storing receipt %s failed: %s", file_name, e)
            raise BillStoreError("Erreur 500") from e
        return f"{self.url_prefix}/{stored}"
