from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TenantDatabase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(blank=True, editable=False, null=True)),
                ("updated_at", models.DateTimeField(blank=True, editable=False, null=True)),
                ("db_name", models.CharField(max_length=255, unique=True)),
                (
                    "driver_type",
                    models.CharField(
                        choices=[("mysql", "MySQL"), ("postgresql", "PostgreSQL"), ("sqlsrv", "SQL Server")],
                        default="sqlsrv",
                        max_length=32,
                    ),
                ),
                ("db_user_name", models.CharField(blank=True, default=None, max_length=255, null=True)),
                ("db_password", models.CharField(blank=True, default=None, max_length=255, null=True)),
                ("db_host", models.CharField(blank=True, default=None, max_length=255, null=True)),
                ("db_port", models.CharField(blank=True, default=None, max_length=5, null=True)),
                (
                    "database_status",
                    models.CharField(
                        choices=[
                            ("DATABASE_NOT_CREATED", "Not created"),
                            ("DATABASE_CREATED", "Created"),
                            ("DATABASE_MIGRATED", "Migrated"),
                        ],
                        db_index=True,
                        default="DATABASE_NOT_CREATED",
                        max_length=32,
                    ),
                ),
            ],
            options={
                "verbose_name": "tenant database",
                "verbose_name_plural": "tenant databases",
                "ordering": ("created_at", "id"),
            },
        ),
    ]
