"""Bills page container: fetches, orders and formats what the list shows."""
from __future__ import annotations

import logging
from typing import List

from . import views
from .views import ROUTES_PATH
from .effects import Navigate
from .formatting import format_date
from .presentation import sort_bills
from .schemas import BillOut
from .store import BillStore

logger = logging.getLogger(__name__)


class Bills:
    def __init__(self, store: BillStore):
        self.store = store

    def handle_click_new_bill(self) -> Navigate:
        return Navigate(path=ROUTES_PATH["NewBill"])

    def handle_click_icon_eye(self, bill_url: str, img_width: int = 500) -> str:
        """Markup of the receipt modal; list state is untouched."""
        return views.modal_file(bill_url, img_width)

    def get_bills(self) -> List[BillOut]:
        """Store bills, most recent first, each with a human ``display_date``.

        Store failures propagate as ``BillStoreError``.
        """
        out = []
        for bill in sort_bills(self.store.list()):
            try:
                shown = format_date(bill.date)
            except ValueError:
                # corrupted data: show it as stored
                logger.warning("Bill %s has an unreadable date %r", bill.id, bill.date)
                shown = bill.date
            out.append(bill.model_copy(update={"display_date": shown}))
        return out
