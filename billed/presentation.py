"""Bills list rendering: loading and error substitution, ordering, rows."""
from __future__ import annotations

from html import escape
from urllib.parse import quote
from typing import Any, Iterable, List, Mapping, Optional, Union

from . import views
from .formatting import format_status
from .schemas import BillOut

BillLike = Union[BillOut, Mapping[str, Any]]


def _as_bill(b: BillLike) -> BillOut:
    return b if isinstance(b, BillOut) else BillOut.model_validate(b)


def sort_bills(bills: Iterable[BillLike]) -> List[BillOut]:
    """Most recent first.

    ISO ``YYYY-MM-DD`` strings sort like the dates they spell, so the raw
    value is the key. ``sorted`` is stable, bills sharing a date keep their
    input order.
    """
    return sorted((_as_bill(b) for b in bills), key=lambda b: b.date, reverse=True)


def _amount(value: float) -> str:
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.2f}"


def row(bill: BillOut) -> str:
    shown_date = bill.display_date or bill.date
    return (
        "<tr>"
        f"<td>{escape(bill.type or '')}</td>"
        f"<td>{escape(bill.name or '')}</td>"
        f"<td data-testid='bill-date'>{escape(shown_date)}</td>"
        f"<td>{_amount(bill.amount)} €</td>"
        f"<td class='status status-{bill.status}'>{escape(format_status(bill.status))}</td>"
        "<td><div class='icon-actions'>"
        f"<div data-testid='icon-eye' data-bill-url='{escape(bill.file_url or '')}'>"
        f"<a href='/bills/receipt?url={escape(quote(bill.file_url or '', safe=''))}'>Voir</a></div>"
        "</div></td>"
        "</tr>"
    )


def present(
    bills: Optional[Iterable[BillLike]] = None,
    loading: bool = False,
    error: Optional[str] = None,
    active_icon: Optional[str] = None,
) -> str:
    if loading:
        return views.loading_page(active_icon)
    if error:
        return views.error_page(error, active_icon)

    rows = "".join(row(b) for b in sort_bills(bills or []))
    content = (
        "<div class='content-header'>"
        "<div class='content-title'>Mes notes de frais</div>"
        "<a href='/new-bill' data-testid='btn-new-bill' class='btn btn-primary'>Nouvelle note de frais</a>"
        "</div>"
        "<div id='data-table'>"
        "<table id='bills-table' class='table table-striped' style='width:100%'>"
        "<thead><tr><th>Type</th><th>Nom</th><th>Date</th><th>Montant</th><th>Statut</th><th>Actions</th></tr></thead>"
        f"<tbody data-testid='tbody'>{rows}</tbody>"
        "</table>"
        "</div>"
        f"{views.modal_file()}"
    )
    return views.page(content, active_icon)
