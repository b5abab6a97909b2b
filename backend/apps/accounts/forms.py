from django import forms

from .auth import ROLE_ADMIN, ROLE_EMPLOYEE


class LoginForm(forms.Form):
    login_id = forms.ChoiceField(
        label="Sign in as",
        choices=(
            (ROLE_ADMIN, "Administrator"),
            (ROLE_EMPLOYEE, "Employee"),
        ),
        widget=forms.Select(),
    )
    password = forms.CharField(
        label="Password",
        required=False,
        widget=forms.PasswordInput(attrs={"placeholder": "Password"}),
    )
