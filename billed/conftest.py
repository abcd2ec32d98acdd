import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from billed.db import Base
from billed import models  # noqa: F401
from billed.schemas import BillDraft, BillOut, BillReview, UserSession
from billed.store import BillStoreError, check_transition

BILLS = [
    {
        "id": "47qAXb6fIm2zOKkLzMro",
        "vat": "80",
        "fileUrl": "https://test.storage.tld/v0/b/billable/o/preview-facture-free-201801-pdf-1.jpg",
        "status": "pending",
        "type": "Hôtel et logement",
        "commentary": "séminaire billed",
        "name": "encore",
        "fileName": "preview-facture-free-201801-pdf-1.jpg",
        "date": "2004-04-04",
        "amount": 400,
        "commentAdmin": "ok",
        "email": "a@a",
        "pct": 20,
    },
    {
        "id": "BeKy5Mo4jkmdfPGYpTxZ",
        "vat": "",
        "amount": 100,
        "name": "test1",
        "fileName": "1592770761.jpeg",
        "commentary": "plop",
        "pct": 20,
        "type": "Transports",
        "email": "a@a",
        "fileUrl": "https://test.storage.tld/v0/b/billable/o/1592770761.jpeg",
        "date": "2001-01-01",
        "status": "refused",
        "commentAdmin": "en fait non",
    },
    {
        "id": "UIUZtnPQvnbFnB0ozvJh",
        "name": "test3",
        "email": "a@a",
        "type": "Services en ligne",
        "vat": "60",
        "pct": 20,
        "commentAdmin": "bon bah d'accord",
        "amount": 300,
        "status": "accepted",
        "date": "2003-03-03",
        "commentary": "",
        "fileName": "facture-client-php-exportee.png",
        "fileUrl": "https://test.storage.tld/v0/b/billable/o/facture-client-php-exportee.png",
    },
    {
        "id": "qcCK3SzECmaZAGRrHjaC",
        "status": "refused",
        "pct": 20,
        "amount": 200,
        "email": "a@a",
        "name": "test2",
        "vat": "40",
        "fileName": "preview-facture-free-201801-pdf-1.jpg",
        "date": "2002-02-02",
        "commentAdmin": "pas la bonne facture",
        "commentary": "test2",
        "type": "Restaurants et bars",
        "fileUrl": "https://test.storage.tld/v0/b/billable/o/preview-facture-free-201801-pdf-1.jpg",
    },
]


class FakeStore:
    """In-memory BillStore; set ``*_error`` to make the matching call fail."""

    def __init__(self, bills=()):
        self.bills = [BillOut.model_validate(b) for b in bills]
        self.created = []
        self.uploads = []
        self.list_calls = 0
        self.list_error = None
        self.create_error = None
        self.upload_error = None

    def list(self):
        self.list_calls += 1
        if self.list_error:
            raise BillStoreError(self.list_error)
        return list(self.bills)

    def create(self, draft: BillDraft):
        if self.create_error:
            raise BillStoreError(self.create_error)
        self.created.append(draft)
        bill = BillOut.model_validate({**draft.payload(), "id": f"bill-{len(self.created)}"})
        self.bills.append(bill)
        return bill

    def update(self, bill_id, changes: BillReview):
        for i, bill in enumerate(self.bills):
            if str(bill.id) == str(bill_id):
                check_transition(bill.status, changes.status)
                updated = bill.model_copy(update={"status": changes.status, "comment_admin": changes.comment_admin})
                self.bills[i] = updated
                return updated
        raise BillStoreError("Erreur 404")

    def upload_receipt(self, file_name, content):
        if self.upload_error:
            raise BillStoreError(self.upload_error)
        self.uploads.append((file_name, content))
        return f"https://test.storage.tld/receipts/{file_name}"


class StaticSession:
    def __init__(self, user=None):
        self.user = user

    def get(self):
        return self.user


@pytest.fixture
def bills():
    return [dict(b) for b in BILLS]


@pytest.fixture
def store(bills):
    return FakeStore(bills)


@pytest.fixture
def employee():
    return StaticSession(UserSession(type="Employee", email="employee@test.tld"))


@pytest.fixture
def admin():
    return StaticSession(UserSession(type="Admin", email="admin@test.tld"))


@pytest.fixture
def anonymous():
    return StaticSession(None)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
