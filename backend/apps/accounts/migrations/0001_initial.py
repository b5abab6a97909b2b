from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=64)),
                ("last_name", models.CharField(blank=True, max_length=64)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("position", models.CharField(blank=True, max_length=128)),
                (
                    "sector",
                    models.CharField(
                        choices=[
                            ("HR", "HR"),
                            ("Sales", "Sales"),
                            ("Finance", "Finance"),
                            ("Operations", "Operations"),
                            ("Marketing", "Marketing"),
                        ],
                        default="HR",
                        max_length=16,
                    ),
                ),
                (
                    "employment_status",
                    models.CharField(
                        choices=[("active", "active"), ("inactive", "inactive")],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["first_name", "last_name", "id"],
            },
        ),
    ]
