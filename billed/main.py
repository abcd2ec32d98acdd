# billed/main.py
import os
import logging
import re
from typing import Optional

from fastapi import FastAPI, UploadFile, File, Form, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from billed.auth import router as auth_router, get_session, require_admin, require_employee, CookieSession

from .config import settings
from .db import get_db, init_db
from . import schemas, views
from .bills import Bills
from .new_bill import DraftLocked, DraftRegistry, apply_form, handle_submit, run_effects
from .routes import RouteGate, highlight
from .schemas import DraftState
from .store import BillStore, BillStoreError, InvalidTransition, SqlBillStore
from .uploads import SelectedFile, handle_change_file
from .views import ROUTES_PATH

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Billed", version="1.0")

@app.get("/api/health")
def api_health():
    return {"ok": True, "service": "billed"}

app.include_router(auth_router)
app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)

# one in-memory draft per employee
drafts = DraftRegistry()

# ------------------- dependencies -------------------
def get_store(db: Session = Depends(get_db), session: CookieSession = Depends(get_session)) -> BillStore:
    user = session.get()
    return SqlBillStore(db, email=user.email if user else None)

def get_drafts() -> DraftRegistry:
    return drafts

@app.on_event("startup")
def _startup():
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    init_db()
    if settings.SEED_USERS:
        from .seed_users import ensure_demo_users
        ensure_demo_users()

def _page(markup: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(views.document(markup), status_code=status_code)

# ------------------- NAVIGATION -------------------
@app.get("/", response_class=HTMLResponse)
def login_page():
    return _page(views.login_ui())

@app.get("/bills", response_class=HTMLResponse)
def bills_page(
    session: CookieSession = Depends(get_session),
    store: BillStore = Depends(get_store),
    drafts: DraftRegistry = Depends(get_drafts),
):
    return _page(RouteGate(store, drafts).resolve(ROUTES_PATH["Bills"], session))

@app.get("/new-bill", response_class=HTMLResponse)
def new_bill_page(
    session: CookieSession = Depends(get_session),
    store: BillStore = Depends(get_store),
    drafts: DraftRegistry = Depends(get_drafts),
):
    return _page(RouteGate(store, drafts).resolve(ROUTES_PATH["NewBill"], session))

@app.get("/bills/receipt", response_class=HTMLResponse)
def receipt_modal(
    url: str,
    user: schemas.UserSession = Depends(require_employee),
    store: BillStore = Depends(get_store),
):
    return HTMLResponse(Bills(store).handle_click_icon_eye(url))

# ------------------- NEW BILL EVENTS -------------------
@app.post("/new-bill/file", response_class=HTMLResponse)
def select_file(
    file: UploadFile = File(...),
    expense_type: Optional[str] = Form(None, alias="type"),
    name: Optional[str] = Form(None),
    expense_date: Optional[str] = Form(None, alias="date"),
    amount: Optional[str] = Form(None),
    vat: Optional[str] = Form(None),
    pct: Optional[str] = Form(None),
    commentary: Optional[str] = Form(None),
    user: schemas.UserSession = Depends(require_employee),
    store: BillStore = Depends(get_store),
    drafts: DraftRegistry = Depends(get_drafts),
):
    key = user.email or ""
    # fields typed so far travel with the file
    form = {
        "type": expense_type,
        "name": name,
        "date": expense_date,
        "amount": amount,
        "vat": vat,
        "pct": pct,
        "commentary": commentary,
    }
    # one byte past the limit is enough to tell it was exceeded
    content = file.file.read(settings.MAX_RECEIPT_BYTES + 1)
    selected = SelectedFile(name=file.filename or "", content_type=file.content_type, content=content)
    try:
        draft = apply_form(drafts.get(key), form)
        draft, effects = handle_change_file(draft, selected, settings.MAX_RECEIPT_BYTES)
    except DraftLocked:
        raise HTTPException(409, "Bill submission already in progress")

    outcome = run_effects(draft, effects, store)
    drafts.put(key, outcome.draft)
    markup = views.new_bill_ui(outcome.draft, alerts=outcome.alerts, active_icon=highlight(ROUTES_PATH["NewBill"]))
    return _page(markup, status_code=400 if outcome.alerts else 200)

@app.post("/new-bill", response_class=HTMLResponse)
def submit_bill(
    expense_type: str = Form("", alias="type"),
    name: str = Form(""),
    expense_date: str = Form("", alias="date"),
    amount: str = Form(""),
    vat: str = Form(""),
    pct: str = Form(""),
    commentary: str = Form(""),
    session: CookieSession = Depends(get_session),
    user: schemas.UserSession = Depends(require_employee),
    store: BillStore = Depends(get_store),
    drafts: DraftRegistry = Depends(get_drafts),
):
    key = user.email or ""
    form = {
        "type": expense_type,
        "name": name,
        "date": expense_date,
        "amount": amount,
        "vat": vat,
        "pct": pct,
        "commentary": commentary,
    }
    try:
        draft, effects = handle_submit(drafts.get(key), form, session)
        if draft.state == DraftState.SUBMITTING:
            # a second submit for this employee now hits DraftLocked
            drafts.claim(key, draft)
    except DraftLocked:
        raise HTTPException(409, "Bill submission already in progress")

    outcome = run_effects(draft, effects, store)
    drafts.put(key, outcome.draft)

    if outcome.navigate is None:
        markup = views.new_bill_ui(outcome.draft, message=outcome.message, active_icon=highlight(ROUTES_PATH["NewBill"]))
        return _page(markup, status_code=400)
    if outcome.navigate.error:
        gate = RouteGate(store, drafts)
        return _page(gate.resolve(outcome.navigate.path, session, error=outcome.navigate.error))
    return RedirectResponse(outcome.navigate.path, status_code=303)

# ------------------- REVIEW -------------------
@app.patch("/bills/{bill_id}", response_model=schemas.BillOut)
def review_bill(
    bill_id: str,
    review: schemas.BillReview,
    user: schemas.UserSession = Depends(require_admin),
    store: BillStore = Depends(get_store),
):
    bill = store.update(bill_id, review)
    logger.info("Bill %s marked %s by %s", bill_id, bill.status, user.email)
    return bill

# ------------------- GLOBAL ERROR HANDLERS -------------------
_STATUS_IN_MESSAGE = re.compile(r"^Erreur (\d{3})\b")

@app.exception_handler(BillStoreError)
def store_error_handler(request: Request, exc: BillStoreError):
    m = _STATUS_IN_MESSAGE.match(str(exc))
    status_code = int(m.group(1)) if m else 502
    if isinstance(exc, InvalidTransition):
        status_code = 400
    logger.warning(f"BillStoreError at {request.url}: {exc}")
    return JSONResponse(status_code=status_code, content={"ok": False, "error": "STORE_ERROR", "detail": str(exc)})

@app.exception_handler(IntegrityError)
def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.error(f"IntegrityError at {request.url}: {exc}")
    return JSONResponse(status_code=400, content={"ok": False, "error": "DB_ERROR", "detail": "Database integrity error."})
