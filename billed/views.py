"""Static markup.

Every function here is a pure function of its arguments and returns an HTML
fragment; ``document`` wraps a fragment into a full page for the web shell.
"""
from __future__ import annotations

from html import escape
from typing import Iterable, Optional

from .schemas import BillDraft, EXPENSE_TYPES

ROUTES_PATH = {
    "Login": "/",
    "Bills": "/bills",
    "NewBill": "/new-bill",
}

NAV_ICONS = (
    # (data-testid, path, label)
    ("icon-window", ROUTES_PATH["Bills"], "Mes factures"),
    ("icon-mail", ROUTES_PATH["NewBill"], "Nouvelle facture"),
)


def document(body: str, title: str = "Billed") -> str:
    return (
        "<!DOCTYPE html>"
        "<html lang='fr'><head><meta charset='utf-8'>"
        f"<title>{escape(title)}</title></head>"
        f"<body><div id='root'>{body}</div></body></html>"
    )


def vertical_layout(height: int = 120, active_icon: Optional[str] = None) -> str:
    icons = []
    for n, (testid, href, label) in enumerate(NAV_ICONS, start=1):
        css = "nav-icon active-icon" if testid == active_icon else "nav-icon"
        icons.append(
            f"<div id='layout-icon{n}' data-testid='{testid}' class='{css}'>"
            f"<a href='{href}' title='{escape(label)}'>{escape(label)}</a></div>"
        )
    return (
        f"<div class='vertical-navbar' style='height: {height}vh;'>"
        "<div class='layout-title'><span>Billed</span></div>"
        f"{''.join(icons)}"
        "</div>"
    )


def page(content: str, active_icon: Optional[str] = None, height: int = 120) -> str:
    return (
        "<div class='layout'>"
        f"{vertical_layout(height, active_icon)}"
        f"<div class='content'>{content}</div>"
        "</div>"
    )


def loading_page(active_icon: Optional[str] = None) -> str:
    return page("<div id='loading'>Loading...</div>", active_icon)


def error_page(error: str, active_icon: Optional[str] = None) -> str:
    return page(
        "<div class='content-header'><div class='content-title'>Erreur</div></div>"
        f"<div data-testid='error-message'>{escape(str(error))}</div>",
        active_icon,
    )


def modal_file(bill_url: Optional[str] = None, img_width: int = 500) -> str:
    body = ""
    if bill_url:
        body = (
            f"<div style='text-align: center;' class='bill-proof-container'>"
            f"<img width='{img_width}' src='{escape(bill_url)}' alt='Bill' /></div>"
        )
    return (
        "<div class='modal fade' id='modaleFile' data-testid='modaleFile' tabindex='-1' role='dialog'>"
        "<div class='modal-dialog modal-dialog-centered modal-lg' role='document'>"
        "<div class='modal-content'>"
        "<div class='modal-header'><h5 class='modal-title'>Justificatif</h5></div>"
        f"<div class='modal-body'>{body}</div>"
        "</div></div></div>"
    )


def login_ui() -> str:
    return (
        "<div class='login-page'>"
        "<h2>Connexion</h2>"
        "<form data-testid='form-login' method='post' action='/auth/login'>"
        "<label for='login-email'>Adresse e-mail</label>"
        "<input id='login-email' data-testid='login-email-input' type='email' name='username' required>"
        "<label for='login-password'>Mot de passe</label>"
        "<input id='login-password' data-testid='login-password-input' type='password' name='password' required>"
        "<button type='submit' data-testid='login-button'>Se connecter</button>"
        "</form></div>"
    )


def _option(value: str, selected: str) -> str:
    sel = " selected" if value == selected else ""
    return f"<option{sel}>{escape(value)}</option>"


def _number(value: Optional[float]) -> str:
    if value is None:
        return ""
    # repr keeps every digit the employee typed
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def new_bill_ui(
    draft: Optional[BillDraft] = None,
    alerts: Iterable[str] = (),
    message: Optional[str] = None,
    active_icon: Optional[str] = None,
) -> str:
    d = draft or BillDraft()
    alert_html = "".join(
        f"<div role='alert' data-testid='alert' class='alert'>{escape(a)}</div>" for a in alerts
    )
    message_html = (
        f"<div data-testid='file-error' class='error-message'>{escape(message)}</div>" if message else ""
    )
    amount = _number(d.amount)
    pct = "" if d.pct is None else str(d.pct)
    attached = (
        f"<span data-testid='file-name'>{escape(d.file_name)}</span>" if d.has_attachment else ""
    )
    # a single form: "Joindre" posts every field along with the file
    content = (
        "<div class='content-header'><div class='content-title'>Envoyer une note de frais</div></div>"
        f"{alert_html}"
        "<div class='form-newbill-container content-inner'>"
        "<form data-testid='form-new-bill' method='post' action='/new-bill' enctype='multipart/form-data'>"
        "<label for='expense-type' class='bold-label'>Type de dépense</label>"
        "<select required class='form-control blue-border' data-testid='expense-type' name='type'>"
        f"{''.join(_option(t, d.type) for t in EXPENSE_TYPES)}"
        "</select>"
        "<label for='expense-name' class='bold-label'>Nom de la dépense</label>"
        "<input type='text' class='form-control blue-border' data-testid='expense-name' name='name' "
        f"placeholder='Vol Paris Londres' value='{escape(d.name)}' />"
        "<label for='datepicker' class='bold-label'>Date</label>"
        "<input required type='date' class='form-control blue-border' data-testid='datepicker' name='date' "
        f"value='{escape(d.date)}' />"
        "<label for='amount' class='bold-label'>Montant TTC</label>"
        "<input required type='number' step='0.01' min='0' class='form-control blue-border' "
        f"data-testid='amount' name='amount' placeholder='348' value='{amount}' />"
        "<label for='vat' class='bold-label'>TVA</label>"
        f"<input type='number' class='form-control blue-border' data-testid='vat' name='vat' placeholder='70' value='{escape(d.vat)}' />"
        f"<input type='number' class='form-control blue-border' data-testid='pct' name='pct' placeholder='20' value='{pct}' /> %"
        "<label for='commentary' class='bold-label'>Commentaire</label>"
        f"<textarea class='form-control blue-border' data-testid='commentary' name='commentary' rows='3'>{escape(d.commentary)}</textarea>"
        "<label for='file' class='bold-label'>Justificatif</label>"
        "<input type='file' accept='.jpg,.jpeg,.png' class='form-control blue-border' "
        "data-testid='file' name='file' />"
        f"{attached}"
        "<button type='submit' formaction='/new-bill/file' formnovalidate data-testid='btn-upload'>Joindre</button>"
        f"{message_html}"
        "<button type='submit' id='btn-send-bill' class='btn btn-primary'>Envoyer</button>"
        "</form>"
        "</div>"
    )
    return page(content, active_icon)
