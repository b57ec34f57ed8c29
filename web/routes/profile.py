"""Web profile routes: cached profile page, address edit, password reset."""

from quart import Blueprint, current_app, make_response, redirect, render_template, request, session
import structlog

from config.settings import settings
from profile_edit.activation import activate
from profile_edit.field_sets import ADDRESS, CREDENTIAL_RESET, FieldSet
from profile_edit.status import OperationStatus
from storage.profile_cache import CookieProfileCache
from web.navigation import RequestNavigator, destination_url

log = structlog.get_logger(__name__)

profile_bp = Blueprint("profile_routes", __name__)


@profile_bp.route("/profile")
async def profile_page():
    record = CookieProfileCache(session).read()
    if record is None:
        return redirect(settings.login_url)
    return await render_template("profile.html", profile=record)


@profile_bp.route("/profile/address", methods=["GET", "POST"])
async def edit_address():
    return await _edit(ADDRESS, "edit_address.html")


@profile_bp.route("/forgot-password", methods=["GET", "POST"])
async def forgot_password():
    return await _edit(CREDENTIAL_RESET, "forgot_password.html")


async def _edit(field_set: FieldSet, template: str):
    """Run one request's worth of a profile edit session.

    GET renders the buffer seeded from the cached profile; POST applies the
    submitted fields and submits. The session lives for this request only,
    so a success is rendered with a Refresh header carrying the redirect delay.
    """
    navigator = RequestNavigator()
    edit = await activate(
        field_set,
        current_app.record_store,  # type: ignore[attr-defined]
        CookieProfileCache(session),
        navigator,
    )
    if edit is None:
        return redirect(navigator.url)

    try:
        if request.method == "POST":
            form = await request.form
            if form.get("action") == "cancel":
                await edit.cancel()
                return redirect(navigator.url)
            for name in field_set.fields:
                if name in form:
                    await edit.set_field(name, form[name])
            await edit.submit()

        state = edit.state
        visible = {
            name: ("" if name in field_set.secret_fields else value)
            for name, value in state.buffer.items()
        }
        body = await render_template(
            template,
            state=state,
            form=visible,
            busy=not state.accepts_input,
            login_url=settings.login_url,
        )
        response = await make_response(body)
        if state.status is OperationStatus.SUCCEEDED:
            target = destination_url(field_set.success_destination)
            response.headers["Refresh"] = f"{field_set.redirect_delay:g}; url={target}"
        elif state.status is OperationStatus.FAILED:
            response.status_code = 422
        return response
    finally:
        edit.teardown()
