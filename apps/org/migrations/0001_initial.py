import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="WorkUnit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200, unique=True)),
                ("code", models.CharField(max_length=32, unique=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("nip", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(db_index=True, max_length=200)),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("user_unit", "Pegawai Unit"),
                            ("admin_unit", "Admin Unit"),
                            ("admin_pusat", "Admin Pusat"),
                            ("user_pimpinan", "Pimpinan"),
                        ],
                        db_index=True,
                        default="user_unit",
                        max_length=16,
                    ),
                ),
                ("jabatan", models.CharField(blank=True, default="", max_length=200)),
                ("kriteria_asn", models.CharField(blank=True, max_length=32, null=True)),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "work_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="profiles",
                        to="org.workunit",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["work_unit", "role"], name="org_profile_unit_role_idx")],
            },
        ),
    ]
