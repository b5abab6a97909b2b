from django.test import TestCase
from django.urls import reverse

from .auth import check_role_password
from .models import Employee


class LoginFlowTests(TestCase):
    def test_admin_login_redirects_dashboard(self):
        response = self.client.post(
            reverse("home"),
            {
                "login_id": "admin",
                "password": "admin-pass",
            },
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("dashboard_index"))
        self.assertEqual(self.client.session.get("role"), "admin")

    def test_employee_login_redirects_goal_index(self):
        response = self.client.post(
            reverse("home"),
            {
                "login_id": "employee",
                "password": "employee-pass",
            },
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("goal_index"))
        self.assertEqual(self.client.session.get("role"), "employee")

    def test_wrong_password_shows_error(self):
        response = self.client.post(
            reverse("home"),
            {
                "login_id": "admin",
                "password": "wrong",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "The password is incorrect.")
        self.assertIsNone(self.client.session.get("role"))

    def test_logout_clears_role(self):
        session = self.client.session
        session["role"] = "admin"
        session.save()

        response = self.client.get(reverse("logout"))

        self.assertEqual(response.status_code, 302)
        self.assertIsNone(self.client.session.get("role"))


class RoleGuardTests(TestCase):
    def test_dashboard_requires_admin(self):
        response = self.client.get(reverse("dashboard_index"))
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("home"))

    def test_goal_index_requires_login(self):
        response = self.client.get(reverse("goal_index"))
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("home"))

    def test_employee_cannot_open_dashboard(self):
        session = self.client.session
        session["role"] = "employee"
        session.save()

        response = self.client.get(reverse("dashboard_index"))

        self.assertEqual(response.status_code, 302)


class EmployeeModelTests(TestCase):
    def test_full_name_joins_first_and_last_name(self):
        employee = Employee.objects.create(first_name="Ada", last_name="Lovelace", email="ada@example.com")
        self.assertEqual(employee.full_name, "Ada Lovelace")
        self.assertEqual(str(employee), "Ada Lovelace (ada@example.com)")

    def test_full_name_without_last_name(self):
        employee = Employee.objects.create(first_name="Cher", email="cher@example.com")
        self.assertEqual(employee.full_name, "Cher")


class RolePasswordTests(TestCase):
    def test_check_role_password(self):
        self.assertTrue(check_role_password("admin", "admin-pass"))
        self.assertTrue(check_role_password("employee", "employee-pass"))
        self.assertFalse(check_role_password("admin", "employee-pass"))
        self.assertFalse(check_role_password("auditor", "admin-pass"))

    def test_unknown_role_in_session_is_ignored(self):
        session = self.client.session
        session["role"] = "auditor"
        session.save()

        response = self.client.get(reverse("home"))

        self.assertEqual(response.status_code, 200)
