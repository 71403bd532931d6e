"""Read-side helpers feeding the dashboard and invoice pages."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import String, cast, func, or_, select

from app import db
from app.models import Customer, Invoice
from app.utils.formatting import from_cents
from app.utils.page_cache import remember

DASHBOARD_PATH = "/dashboard"
INVOICES_PATH = "/dashboard/invoices"
ITEMS_PER_PAGE = 6


@dataclass(frozen=True)
class InvoiceRow:
    id: str
    customer_id: str
    name: str
    email: str
    image_url: Optional[str]
    amount: int
    date: date
    status: str


@dataclass(frozen=True)
class InvoicePage:
    rows: List[InvoiceRow]
    page: int
    pages: int
    total: int
    query: str = ""

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


@dataclass(frozen=True)
class InvoiceDetail:
    id: str
    customer_id: str
    amount: Decimal
    status: str
    date: date


@dataclass(frozen=True)
class CardData:
    number_of_invoices: int = 0
    number_of_customers: int = 0
    total_paid: int = 0
    total_pending: int = 0


def _invoice_rows_stmt():
    return (
        select(
            Invoice.id,
            Invoice.customer_id,
            Customer.name,
            Customer.email,
            Customer.image_url,
            Invoice.amount,
            Invoice.date,
            Invoice.status,
        )
        .join(Customer, Invoice.customer_id == Customer.id)
        .order_by(Invoice.date.desc(), Invoice.id)
    )


def _search_filter(query: str):
    pattern = f"%{query}%"
    return or_(
        Customer.name.ilike(pattern),
        Customer.email.ilike(pattern),
        cast(Invoice.amount, String).ilike(pattern),
        cast(Invoice.date, String).ilike(pattern),
        Invoice.status.ilike(pattern),
    )


def _load_filtered_invoices(query: str, page: int) -> InvoicePage:
    stmt = _invoice_rows_stmt()
    count_stmt = select(func.count(Invoice.id)).join(
        Customer, Invoice.customer_id == Customer.id
    )
    if query:
        stmt = stmt.where(_search_filter(query))
        count_stmt = count_stmt.where(_search_filter(query))

    total = db.session.execute(count_stmt).scalar_one()
    pages = max(1, math.ceil(total / ITEMS_PER_PAGE))
    page = min(max(1, page), pages)
    offset = (page - 1) * ITEMS_PER_PAGE
    rows = [
        InvoiceRow(*row)
        for row in db.session.execute(
            stmt.limit(ITEMS_PER_PAGE).offset(offset)
        ).all()
    ]
    return InvoicePage(rows=rows, page=page, pages=pages, total=total, query=query)


def fetch_filtered_invoices(query: str = "", page: int = 1) -> InvoicePage:
    """Return one page of invoices matching ``query``."""

    query = (query or "").strip()
    return remember(
        INVOICES_PATH,
        ("filtered", query.lower(), page),
        lambda: _load_filtered_invoices(query, page),
    )


def fetch_invoice_by_id(invoice_id: str) -> Optional[InvoiceDetail]:
    """Return the invoice for the edit form with its amount in dollars."""

    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        return None
    return InvoiceDetail(
        id=invoice.id,
        customer_id=invoice.customer_id,
        amount=from_cents(invoice.amount),
        status=invoice.status,
        date=invoice.date,
    )


def fetch_customers() -> List[Customer]:
    return Customer.query.order_by(Customer.name).all()


def fetch_latest_invoices(limit: int = 5) -> List[InvoiceRow]:
    """Return the most recent invoices for the dashboard."""

    def _load():
        return [
            InvoiceRow(*row)
            for row in db.session.execute(_invoice_rows_stmt().limit(limit)).all()
        ]

    return remember(DASHBOARD_PATH, ("latest", limit), _load)


def _load_card_data() -> CardData:
    number_of_invoices = db.session.execute(
        select(func.count(Invoice.id))
    ).scalar_one()
    number_of_customers = db.session.execute(
        select(func.count(Customer.id))
    ).scalar_one()
    totals = dict(
        db.session.execute(
            select(Invoice.status, func.coalesce(func.sum(Invoice.amount), 0))
            .group_by(Invoice.status)
        ).all()
    )
    return CardData(
        number_of_invoices=number_of_invoices,
        number_of_customers=number_of_customers,
        total_paid=int(totals.get("paid", 0)),
        total_pending=int(totals.get("pending", 0)),
    )


def fetch_card_data() -> CardData:
    """Return the totals shown on the dashboard cards."""

    return remember(DASHBOARD_PATH, "cards", _load_card_data)
