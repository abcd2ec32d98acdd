import os

import pytest

from billed.schemas import BillDraft, BillReview
from billed.store import BillStoreError, InvalidTransition, SqlBillStore, check_transition


def _draft(**kw):
    data = dict(
        type="Transports",
        name="Vol Paris Londres",
        date="2022-05-10",
        amount=348.0,
        vat="70",
        pct=20,
        commentary="",
        fileName="image.png",
        fileUrl="/uploads/abc-image.png",
        status="pending",
        email="employee@test.tld",
    )
    data.update(kw)
    return BillDraft(**data)


def test_create_then_list(db, tmp_path):
    store = SqlBillStore(db, email="employee@test.tld", upload_dir=str(tmp_path))
    created = store.create(_draft())
    assert created.id
    assert created.date == "2022-05-10"
    assert created.status == "pending"
    assert created.amount == 348.0

    listed = store.list()
    assert [b.id for b in listed] == [created.id]
    assert listed[0].file_url == "/uploads/abc-image.png"


def test_list_only_shows_own_bills(db):
    SqlBillStore(db).create(_draft(email="other@test.tld"))
    SqlBillStore(db).create(_draft())
    assert len(SqlBillStore(db, email="employee@test.tld").list()) == 1
    assert len(SqlBillStore(db).list()) == 2


def test_pct_defaults_to_20(db):
    assert SqlBillStore(db).create(_draft(pct=None)).pct == 20


@pytest.mark.parametrize(
    "changes",
    [
        {"amount": -1},
        {"amount": None},
        {"date": "10/05/2022"},
        {"date": ""},
        {"type": "  "},
        {"email": None},
    ],
)
def test_create_rejects_incomplete_bills(db, changes):
    with pytest.raises(BillStoreError) as exc:
        SqlBillStore(db).create(_draft(**changes))
    assert str(exc.value).startswith("Erreur 400")
    assert SqlBillStore(db).list() == []


def test_review_accepts_a_pending_bill(db):
    store = SqlBillStore(db)
    bill = store.create(_draft())
    updated = store.update(bill.id, BillReview(status="accepted", commentAdmin="ok"))
    assert updated.status == "accepted"
    assert updated.comment_admin == "ok"


def test_review_cannot_change_a_decided_bill(db):
    store = SqlBillStore(db)
    bill = store.create(_draft())
    store.update(bill.id, BillReview(status="refused"))
    with pytest.raises(InvalidTransition):
        store.update(bill.id, BillReview(status="accepted"))


def test_review_of_a_missing_bill(db):
    with pytest.raises(BillStoreError, match="Erreur 404"):
        SqlBillStore(db).update(999, BillReview(status="accepted"))


def test_check_transition():
    check_transition("pending", "accepted")
    check_transition("pending", "refused")
    with pytest.raises(InvalidTransition):
        check_transition("accepted", "refused")
    with pytest.raises(InvalidTransition):
        check_transition("pending", "pending")


def test_upload_receipt_writes_the_file(db, tmp_path):
    store = SqlBillStore(db, upload_dir=str(tmp_path / "uploads"), url_prefix="/uploads/")
    url = store.upload_receipt("../ma facture.png", b"\x89PNG")
    assert url.startswith("/uploads/")
    stored = url.rsplit("/", 1)[1]
    assert stored.endswith("-ma_facture.png")
    with open(os.path.join(tmp_path, "uploads", stored), "rb") as f:
        assert f.read() == b"\x89PNG"


def test_upload_failure_is_a_store_error(db, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    store = SqlBillStore(db, upload_dir=str(blocker))
    with pytest.raises(BillStoreError, match="Erreur 500"):
        store.upload_receipt("image.png", b"png")
