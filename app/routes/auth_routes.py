from urllib.parse import urlparse

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required

from app import limiter
from app.forms import LoginForm, LogoutForm
from app.services.auth import authenticate, sign_out

auth = Blueprint("auth", __name__)


def _safe_redirect_target(target):
    """Return ``target`` when it stays on this site, otherwise ``None``."""
    if not target:
        return None
    target = target.replace("\\", "")
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith("/"):
        return None
    return target


@auth.route("/")
def index():
    return redirect(url_for("dashboard.overview"))


@auth.route("/login", methods=["GET", "POST"])
@limiter.limit("5 per minute", methods=["POST"])
def login():
    """Authenticate a user and start their session."""
    form = LoginForm()
    error_message = None
    if request.method == "GET":
        form.redirect_to.data = request.args.get("next", "")
    elif request.method == "POST":
        error_message = authenticate(form)
        if error_message is None:
            target = _safe_redirect_target(form.redirect_to.data)
            return redirect(target or url_for("dashboard.overview"))

    return render_template(
        "auth/login.html",
        form=form,
        error_message=error_message,
        demo=current_app.config["DEMO"],
    )


@auth.route("/logout", methods=["POST"])
@login_required
def logout():
    """Log the current user out."""
    form = LogoutForm()
    if form.validate_on_submit():
        sign_out(current_user.id)
        flash("You have been signed out.", "info")
    return redirect(url_for("auth.login"))
