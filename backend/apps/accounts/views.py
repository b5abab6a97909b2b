import logging

from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect, render

from .auth import LANDING_PAGES, check_role_password, current_role, end_session, role_password, start_session
from .forms import LoginForm

logger = logging.getLogger(__name__)


def home(request: HttpRequest) -> HttpResponse:
    role = current_role(request)
    if request.method == "GET" and role is not None:
        return redirect(LANDING_PAGES[role])

    if request.method == "POST":
        form = LoginForm(request.POST)
        if form.is_valid():
            login_id = form.cleaned_data["login_id"].strip().lower()
            if role_password(login_id) is None:
                form.add_error("login_id", "Choose administrator or employee.")
            elif not check_role_password(login_id, form.cleaned_data["password"]):
                logger.warning("Rejected %s login with a wrong password", login_id)
                form.add_error("password", "The password is incorrect.")
            else:
                start_session(request, login_id)
                return redirect(LANDING_PAGES[login_id])
    else:
        form = LoginForm()

    return render(request, "accounts/login.html", {"form": form})


def logout_view(request: HttpRequest) -> HttpResponse:
    end_session(request)
    return redirect("home")
