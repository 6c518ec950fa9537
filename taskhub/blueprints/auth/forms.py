# taskhub/blueprints/auth/forms.py
from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SubmitField
from wtforms.validators import DataRequired, Email, Length

from ...services.auth_service import MIN_PASSWORD_LENGTH

REQUIRED = "All fields are required"


class RegisterForm(FlaskForm):
    username = StringField("Username", validators=[DataRequired(message=REQUIRED), Length(max=120)])
    email = StringField("Email", validators=[DataRequired(message=REQUIRED), Email(message="Enter a valid email address"), Length(max=255)])
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message=REQUIRED),
            Length(min=MIN_PASSWORD_LENGTH, message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"),
        ],
    )
    submit = SubmitField("Create account")


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(message="Email and password are required")])
    password = PasswordField("Password", validators=[DataRequired(message="Email and password are required")])
    submit = SubmitField("Sign in")


def first_error(form: FlaskForm) -> str | None:
    for errors in form.errors.values():
        if errors:
            return errors[0]
    return None
