from django.contrib import admin

from .models import Employee


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "position", "sector", "employment_status")
    list_filter = ("sector", "employment_status")
    search_fields = ("first_name", "last_name", "email")
