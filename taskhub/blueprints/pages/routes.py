from flask import render_template, request, redirect, url_for
from flask_login import login_required, current_user
from ...session import end_session
from ..auth.forms import LoginForm, RegisterForm
from . import pages_bp


@pages_bp.route("/")
def home():
    return render_template("home.html", title="Task Management System")


@pages_bp.route("/login")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("pages.dashboard"))
    return render_template("auth/login.html", title="Login", form=LoginForm(),
                           success=request.args.get("success"), error=None)


@pages_bp.route("/register")
def register():
    if current_user.is_authenticated:
        return redirect(url_for("pages.dashboard"))
    return render_template("auth/register.html", title="Register", form=RegisterForm(), error=None)


@pages_bp.route("/dashboard")
@login_required
def dashboard():
    return render_template("dashboard.html", title="Dashboard")


@pages_bp.route("/logout")
def logout():
    end_session()
    return redirect(url_for("pages.home"))
