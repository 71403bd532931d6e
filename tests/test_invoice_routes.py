from datetime import datetime, timezone

from app import db
from app.models import ActivityLog, Invoice
from tests.utils import login


def test_create_invoice_flow(client, app, user, customers):
    email, password = user
    with client:
        login(client, email, password)
        assert client.get("/dashboard/invoices/create").status_code == 200
        response = client.post(
            "/dashboard/invoices/create",
            data={"customer_id": customers[1], "amount": "123.45", "status": "paid"},
        )
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/dashboard/invoices")

        listing = client.get("/dashboard/invoices")
        assert b"Created Invoice." in listing.data
        assert b"Lee Robinson" in listing.data
        assert b"$123.45" in listing.data

    invoice = Invoice.query.filter_by(customer_id=customers[1]).one()
    assert invoice.amount == 12345
    assert invoice.status == "paid"
    assert invoice.date == datetime.now(timezone.utc).date()
    assert ActivityLog.query.filter_by(
        activity=f"Created invoice {invoice.id}"
    ).count() == 1


def test_create_invoice_reports_field_errors(client, app, user, customers):
    email, password = user
    with client:
        login(client, email, password)
        response = client.post("/dashboard/invoices/create", data={})
    assert response.status_code == 200
    assert b"Please select a customer" in response.data
    assert b"Amount must be greater than $0" in response.data
    assert b"Please select a status" in response.data
    assert b"Missing Fields. Failed to Create Invoice." in response.data
    assert Invoice.query.count() == 0


def test_edit_invoice_prefills_and_updates(client, app, user, customers, invoice):
    email, password = user
    with client:
        login(client, email, password)
        page = client.get(f"/dashboard/invoices/{invoice}/edit")
        assert page.status_code == 200
        assert b'value="157.95"' in page.data

        response = client.post(
            f"/dashboard/invoices/{invoice}/edit",
            data={"customer_id": customers[1], "amount": "200", "status": "paid"},
        )
        assert response.status_code == 302

    updated = db.session.get(Invoice, invoice)
    assert updated.customer_id == customers[1]
    assert updated.amount == 20000
    assert updated.status == "paid"
    # The issue date is never touched by an update
    assert updated.date.isoformat() == "2022-12-06"


def test_edit_invoice_reports_update_message(client, user, customers, invoice):
    email, password = user
    with client:
        login(client, email, password)
        response = client.post(
            f"/dashboard/invoices/{invoice}/edit",
            data={"customer_id": customers[0], "amount": "-5", "status": "paid"},
        )
    assert response.status_code == 200
    assert b"Missing Fields. Failed to Update Invoice." in response.data
    assert b"Amount must be greater than $0" in response.data
    assert db.session.get(Invoice, invoice).amount == 15795


def test_edit_missing_invoice_is_not_found(client, user):
    email, password = user
    with client:
        login(client, email, password)
        response = client.get("/dashboard/invoices/does-not-exist/edit")
    assert response.status_code == 404


def test_delete_invoice(client, user, invoice):
    email, password = user
    with client:
        login(client, email, password)
        response = client.post(
            f"/dashboard/invoices/{invoice}/delete", follow_redirects=True
        )
    assert response.status_code == 200
    assert b"Deleted Invoice." in response.data
    assert db.session.get(Invoice, invoice) is None


def test_invoice_list_is_revalidated_after_changes(client, user, customers, invoice):
    email, password = user
    with client:
        login(client, email, password)
        first = client.get("/dashboard/invoices")
        assert b"$157.95" in first.data

        client.post(
            f"/dashboard/invoices/{invoice}/edit",
            data={"customer_id": customers[0], "amount": "10", "status": "pending"},
        )
        second = client.get("/dashboard/invoices")
        assert b"$157.95" not in second.data
        assert b"$10.00" in second.data

        client.post(f"/dashboard/invoices/{invoice}/delete")
        third = client.get("/dashboard/invoices")
        assert b"No invoices found." in third.data


def test_invoice_search_and_pagination(client, app, user, customers):
    from datetime import date

    with app.app_context():
        for day in range(1, 9):
            db.session.add(
                Invoice(
                    customer_id=customers[day % 2],
                    amount=day * 100,
                    status="paid" if day % 2 else "pending",
                    date=date(2023, 1, day),
                )
            )
        db.session.commit()

    email, password = user
    with client:
        login(client, email, password)
        first_page = client.get("/dashboard/invoices")
        assert first_page.data.count(b"Edit</a>") == 6
        second_page = client.get("/dashboard/invoices?page=2")
        assert second_page.data.count(b"Edit</a>") == 2

        search = client.get("/dashboard/invoices?query=rabbit")
        assert search.data.count(b"Edit</a>") == 4
        assert b"Lee Robinson" not in search.data


def test_dashboard_cards(client, user, invoice):
    email, password = user
    with client:
        login(client, email, password)
        response = client.get("/dashboard")
    assert response.status_code == 200
    assert b"$157.95" in response.data
    assert b"Evil Rabbit" in response.data


def test_delete_without_csrf_token_is_rejected(client, app, user, invoice):
    email, password = user
    with client:
        login(client, email, password)
        app.config["WTF_CSRF_ENABLED"] = True
        response = client.post(f"/dashboard/invoices/{invoice}/delete")
    assert response.status_code == 400
    assert b"The form could not be submitted" in response.data
    assert db.session.get(Invoice, invoice) is not None


def test_security_headers_applied(client):
    response = client.get("/login")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "nonce-" in response.headers["Content-Security-Policy"]
    assert client.options("/login").status_code == 405
