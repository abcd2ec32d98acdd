"""Route gate: which view a path renders for a given session, and which
navigation icon is lit."""
from __future__ import annotations

import logging
from typing import Optional

from . import views
from .bills import Bills
from .new_bill import DraftRegistry
from .presentation import present
from .schemas import UserSession
from .store import BillStore, BillStoreError
from .views import ROUTES_PATH

logger = logging.getLogger(__name__)

EMPLOYEE_PATHS = (ROUTES_PATH["Bills"], ROUTES_PATH["NewBill"])

_ICONS = {
    ROUTES_PATH["Bills"]: "icon-window",
    ROUTES_PATH["NewBill"]: "icon-mail",
}


def highlight(path: str) -> Optional[str]:
    """data-testid of the navigation icon to mark active, if any."""
    return _ICONS.get(path)


def is_employee(session: Optional[UserSession]) -> bool:
    return session is not None and session.type == "Employee"


class RouteGate:
    def __init__(self, store: BillStore, drafts: Optional[DraftRegistry] = None):
        self.store = store
        self.drafts = drafts or DraftRegistry()

    def can_access(self, path: str, session) -> bool:
        if path in EMPLOYEE_PATHS:
            return is_employee(session.get())
        return True

    def resolve(self, path: str, session, error: Optional[str] = None) -> str:
        """Markup for ``path``.

        ``session`` is a session accessor. Employee paths fall back to the
        login view when the session is missing or not an employee one.
        ``error`` short-circuits the bills list into its error branch.
        """
        if path not in EMPLOYEE_PATHS or not self.can_access(path, session):
            if path in EMPLOYEE_PATHS:
                logger.info("Blocked %s for a non-employee session", path)
            return views.login_ui()

        active = highlight(path)
        if path == ROUTES_PATH["Bills"]:
            if error:
                return present(error=error, active_icon=active)
            try:
                bills = Bills(self.store).get_bills()
            except BillStoreError as e:
                logger.warning("Listing bills failed: %s", e)
                return present(error=str(e), active_icon=active)
            return present(bills, active_icon=active)

        user = session.get()
        return views.new_bill_ui(self.drafts.get(user.email or ""), active_icon=active)
