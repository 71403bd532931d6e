from decimal import Decimal, InvalidOperation

from flask_wtf import FlaskForm
from wtforms import (
    DecimalField as WTFormsDecimalField,
    HiddenField,
    PasswordField,
    RadioField,
    SelectField,
    StringField,
    SubmitField,
)
from wtforms.validators import DataRequired, Email, Length, Optional, ValidationError

from app import db
from app.models import INVOICE_STATUSES, Customer
from app.services.invoice_queries import fetch_customers
from app.utils.formatting import to_cents

CUSTOMER_REQUIRED_MESSAGE = "Please select a customer"
AMOUNT_POSITIVE_MESSAGE = "Amount must be greater than $0"
AMOUNT_NUMBER_MESSAGE = "Amount must be a number"
STATUS_REQUIRED_MESSAGE = "Please select a status"


class AmountField(WTFormsDecimalField):
    """Decimal field that coerces blank input to zero.

    A missing or empty value becomes ``Decimal(0)`` so that the positive
    amount check reports it, rather than a generic parse error.  Anything
    else that does not parse as a finite number is reported as not a number.
    """

    def process_formdata(self, valuelist):
        raw = valuelist[0] if valuelist else None
        if raw is None or not str(raw).strip():
            self.data = Decimal(0)
            return
        try:
            value = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            self.data = None
            raise ValueError(AMOUNT_NUMBER_MESSAGE)
        if not value.is_finite():
            self.data = None
            raise ValueError(AMOUNT_NUMBER_MESSAGE)
        self.data = value


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField(
        "Password", validators=[DataRequired(), Length(min=6)]
    )
    redirect_to = HiddenField(validators=[Optional()])
    submit = SubmitField("Log in")


class InvoiceForm(FlaskForm):
    """Fields shared by the create and edit invoice pages."""

    customer_id = SelectField(
        "Choose customer", validate_choice=False, default=""
    )
    amount = AmountField("Choose an amount", places=2)
    status = RadioField(
        "Set the invoice status",
        choices=[(status, status.capitalize()) for status in INVOICE_STATUSES],
        validate_choice=False,
    )
    submit = SubmitField("Save Invoice")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.customer_id.choices = [("", "Select a customer")] + [
            (c.id, c.name) for c in fetch_customers()
        ]

    def validate_customer_id(self, field):
        if not field.data or db.session.get(Customer, field.data) is None:
            raise ValidationError(CUSTOMER_REQUIRED_MESSAGE)

    def validate_amount(self, field):
        if field.data is None and field.process_errors:
            # Parse errors are already recorded.
            return
        # An empty submission never reaches process_formdata.  Amounts are
        # stored in cents, so anything that rounds to 0 cents is rejected.
        if field.data is None or to_cents(field.data) <= 0:
            raise ValidationError(AMOUNT_POSITIVE_MESSAGE)

    def validate_status(self, field):
        if field.data not in INVOICE_STATUSES:
            raise ValidationError(STATUS_REQUIRED_MESSAGE)


class InvoiceSearchForm(FlaskForm):
    class Meta:
        csrf = False

    query = StringField("Search invoices...", validators=[Optional()])


class DeleteForm(FlaskForm):
    """Simple form used for CSRF protection on delete actions."""

    submit = SubmitField("Delete")


class LogoutForm(FlaskForm):
    submit = SubmitField("Sign Out")
