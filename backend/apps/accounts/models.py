from django.db import models

SECTOR_HR = "HR"
SECTOR_SALES = "Sales"
SECTOR_FINANCE = "Finance"
SECTOR_OPERATIONS = "Operations"
SECTOR_MARKETING = "Marketing"
SECTOR_CHOICES = [
    (SECTOR_HR, "HR"),
    (SECTOR_SALES, "Sales"),
    (SECTOR_FINANCE, "Finance"),
    (SECTOR_OPERATIONS, "Operations"),
    (SECTOR_MARKETING, "Marketing"),
]

EMPLOYMENT_ACTIVE = "active"
EMPLOYMENT_INACTIVE = "inactive"
EMPLOYMENT_STATUS_CHOICES = [
    (EMPLOYMENT_ACTIVE, "active"),
    (EMPLOYMENT_INACTIVE, "inactive"),
]


class Employee(models.Model):
    first_name = models.CharField(max_length=64)
    last_name = models.CharField(max_length=64, blank=True)
    email = models.EmailField(unique=True)
    position = models.CharField(max_length=128, blank=True)
    sector = models.CharField(max_length=16, choices=SECTOR_CHOICES, default=SECTOR_HR)
    employment_status = models.CharField(
        max_length=16,
        choices=EMPLOYMENT_STATUS_CHOICES,
        default=EMPLOYMENT_ACTIVE,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["first_name", "last_name", "id"]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.full_name} ({self.email})"
