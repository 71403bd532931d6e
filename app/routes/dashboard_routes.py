from flask import (
    Blueprint,
    abort,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required

from app.forms import DeleteForm, InvoiceForm, InvoiceSearchForm, LogoutForm
from app.services.invoice_actions import (
    ActionState,
    create_invoice,
    delete_invoice,
    update_invoice,
)
from app.services.invoice_queries import (
    fetch_card_data,
    fetch_filtered_invoices,
    fetch_invoice_by_id,
    fetch_latest_invoices,
)

dashboard = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@dashboard.context_processor
def inject_logout_form():
    return {"logout_form": LogoutForm()}


@dashboard.route("")
@login_required
def overview():
    """Render the dashboard cards and latest invoices."""
    return render_template(
        "dashboard/overview.html",
        user=current_user,
        cards=fetch_card_data(),
        latest_invoices=fetch_latest_invoices(),
    )


@dashboard.route("/invoices")
@login_required
def view_invoices():
    """List invoices matching the search query, one page at a time."""
    search_form = InvoiceSearchForm(request.args)
    page = request.args.get("page", 1, type=int)
    invoices = fetch_filtered_invoices(search_form.query.data or "", page)
    return render_template(
        "invoices/view_invoices.html",
        invoices=invoices,
        search_form=search_form,
        delete_form=DeleteForm(),
    )


@dashboard.route("/invoices/create", methods=["GET", "POST"])
@login_required
def create_invoice_page():
    """Create an invoice."""
    form = InvoiceForm()
    state = ActionState()
    if request.method == "POST":
        state = create_invoice(form)
        if state.ok:
            flash(state.message, "success")
            return redirect(state.redirect_to)

    return render_template(
        "invoices/invoice_form_page.html",
        form=form,
        state=state,
        title="Create Invoice",
    )


@dashboard.route("/invoices/<invoice_id>/edit", methods=["GET", "POST"])
@login_required
def edit_invoice_page(invoice_id):
    """Edit an invoice's customer, amount and status."""
    form = InvoiceForm()
    state = ActionState()
    if request.method == "POST":
        state = update_invoice(invoice_id, form)
        if state.ok:
            flash(state.message, "success")
            return redirect(state.redirect_to)
    else:
        invoice = fetch_invoice_by_id(invoice_id)
        if invoice is None:
            abort(404)
        form.customer_id.data = invoice.customer_id
        form.amount.data = invoice.amount
        form.status.data = invoice.status

    return render_template(
        "invoices/invoice_form_page.html",
        form=form,
        state=state,
        title="Edit Invoice",
        invoice_id=invoice_id,
    )


@dashboard.route("/invoices/<invoice_id>/delete", methods=["POST"])
@login_required
def delete_invoice_action(invoice_id):
    """Delete an invoice."""
    form = DeleteForm()
    if not form.validate_on_submit():
        abort(400)
    state = delete_invoice(invoice_id)
    if state.ok:
        flash(state.message, "success")
        return redirect(state.redirect_to)
    flash(state.message, "danger")
    return redirect(url_for("dashboard.view_invoices"))
