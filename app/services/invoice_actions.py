"""Form actions that create, update and delete invoices.

Every action issues a single SQL statement.  Validation failures and
database errors come back as an :class:`ActionState` describing what to show
on the form; successful actions revalidate the cached invoice pages and set
``redirect_to``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy import delete, insert, update
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.forms import InvoiceForm
from app.models import Invoice
from app.services.invoice_queries import DASHBOARD_PATH, INVOICES_PATH
from app.utils.activity import log_activity
from app.utils.formatting import to_cents
from app.utils.page_cache import revalidate_path

CREATE_FAILED_MESSAGE = "Missing Fields. Failed to Create Invoice."
UPDATE_FAILED_MESSAGE = "Missing Fields. Failed to Update Invoice."
CREATE_DB_ERROR = "Database error: Unable to create invoice"
UPDATE_DB_ERROR = "Database error: Unable to update invoice"
DELETE_DB_ERROR = "Database error: Unable to delete invoice"


@dataclass
class ActionState:
    errors: Dict[str, List[str]] = field(default_factory=dict)
    message: Optional[str] = None
    redirect_to: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.redirect_to is not None


def _field_errors(form: InvoiceForm) -> Dict[str, List[str]]:
    return {
        name: list(messages)
        for name, messages in form.errors.items()
        if name in ("customer_id", "amount", "status")
    }


def _check_form(
    form: InvoiceForm, failed_message: str, db_error: str
) -> Optional[ActionState]:
    """Return the state to show when ``form`` cannot be saved, else ``None``.

    Validation looks the customer up, so it can fail on the database too.
    """
    try:
        valid = form.validate()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to validate invoice form")
        return ActionState(message=db_error)
    if not valid:
        return ActionState(errors=_field_errors(form), message=failed_message)
    return None


def _revalidate_invoice_pages() -> None:
    revalidate_path(INVOICES_PATH)
    revalidate_path(DASHBOARD_PATH)


def create_invoice(form: InvoiceForm) -> ActionState:
    """Validate ``form`` and insert a new invoice dated today (UTC)."""

    failed = _check_form(form, CREATE_FAILED_MESSAGE, CREATE_DB_ERROR)
    if failed is not None:
        return failed

    amount_in_cents = to_cents(form.amount.data)
    issued_on = datetime.now(timezone.utc).date()
    invoice_id = str(uuid.uuid4())

    try:
        db.session.execute(
            insert(Invoice).values(
                id=invoice_id,
                customer_id=form.customer_id.data,
                amount=amount_in_cents,
                status=form.status.data,
                date=issued_on,
            )
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to insert invoice")
        return ActionState(message=CREATE_DB_ERROR)

    log_activity(f"Created invoice {invoice_id}")
    _revalidate_invoice_pages()
    return ActionState(message="Created Invoice.", redirect_to=INVOICES_PATH)


def update_invoice(invoice_id: str, form: InvoiceForm) -> ActionState:
    """Validate ``form`` and update the customer, amount and status.

    The issue date is left untouched.  An id that matches no row updates
    nothing and is not treated as an error.
    """

    failed = _check_form(form, UPDATE_FAILED_MESSAGE, UPDATE_DB_ERROR)
    if failed is not None:
        return failed

    amount_in_cents = to_cents(form.amount.data)

    try:
        result = db.session.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(
                customer_id=form.customer_id.data,
                amount=amount_in_cents,
                status=form.status.data,
            )
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to update invoice %s", invoice_id)
        return ActionState(message=UPDATE_DB_ERROR)

    if result.rowcount == 0:
        current_app.logger.warning("Update matched no invoice %s", invoice_id)
    log_activity(f"Updated invoice {invoice_id}")
    _revalidate_invoice_pages()
    return ActionState(message="Updated Invoice.", redirect_to=INVOICES_PATH)


def delete_invoice(invoice_id: str) -> ActionState:
    """Delete the invoice with ``invoice_id``."""

    try:
        db.session.execute(delete(Invoice).where(Invoice.id == invoice_id))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to delete invoice %s", invoice_id)
        return ActionState(message=DELETE_DB_ERROR)

    log_activity(f"Deleted invoice {invoice_id}")
    _revalidate_invoice_pages()
    return ActionState(message="Deleted Invoice.", redirect_to=INVOICES_PATH)
