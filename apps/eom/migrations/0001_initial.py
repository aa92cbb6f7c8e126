import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

PERIOD_VALIDATOR = django.core.validators.RegexValidator(
    "^\\d{4}-(0[1-9]|1[0-2])$", "Periode harus berformat YYYY-MM."
)


def timestamps():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


def evaluation_flags():
    return [
        ("rating_period", models.CharField(max_length=7, validators=[PERIOD_VALIDATOR])),
        ("has_disciplinary_action", models.BooleanField(default=False)),
        ("disciplinary_action_note", models.TextField(blank=True, default="")),
        ("disciplinary_evidence_link", models.URLField(blank=True, default="")),
        ("disciplinary_penalty", models.IntegerField(default=0)),
        ("has_poor_attendance", models.BooleanField(default=False)),
        ("attendance_note", models.TextField(blank=True, default="")),
        ("attendance_evidence_link", models.URLField(blank=True, default="")),
        ("attendance_penalty", models.IntegerField(default=0)),
        ("has_poor_performance", models.BooleanField(default=False)),
        ("performance_note", models.TextField(blank=True, default="")),
        ("performance_evidence_link", models.URLField(blank=True, default="")),
        ("performance_penalty", models.IntegerField(default=0)),
        ("has_contribution", models.BooleanField(default=False)),
        ("contribution_description", models.TextField(blank=True, default="")),
        ("contribution_evidence_link", models.URLField(blank=True, default="")),
        ("contribution_bonus", models.IntegerField(default=0)),
        ("final_total_points", models.IntegerField(default=0)),
        (
            "evaluator",
            models.ForeignKey(
                on_delete=django.db.models.deletion.PROTECT, related_name="+", to=settings.AUTH_USER_MODEL
            ),
        ),
        (
            "rated_employee",
            models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="+", to="org.profile"),
        ),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("org", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="EomSettings",
            fields=timestamps() + [
                ("period", models.CharField(max_length=7, unique=True, validators=[PERIOD_VALIDATOR])),
                ("rating_start_date", models.DateField()),
                ("rating_end_date", models.DateField()),
                ("evaluation_start_date", models.DateField()),
                ("evaluation_end_date", models.DateField()),
                ("verification_start_date", models.DateField()),
                ("verification_end_date", models.DateField()),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-rating_start_date"],
            },
        ),
        migrations.CreateModel(
            name="ParticipatingUnit",
            fields=timestamps() + [
                ("is_active", models.BooleanField(default=True)),
                (
                    "work_unit",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="eom_participation",
                        to="org.workunit",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="EmployeeRating",
            fields=timestamps() + [
                ("rating_period", models.CharField(max_length=7, validators=[PERIOD_VALIDATOR])),
                ("reason", models.TextField()),
                ("detailed_ratings", models.JSONField(default=dict)),
                ("criteria_totals", models.JSONField(default=dict)),
                ("total_points", models.PositiveIntegerField(default=0)),
                ("max_possible_points", models.PositiveIntegerField(default=0)),
                ("is_pimpinan_rating", models.BooleanField(default=False)),
                (
                    "rated_employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ratings_received",
                        to="org.profile",
                    ),
                ),
                (
                    "rater",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ratings_given",
                        to="org.profile",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["rating_period", "rated_employee"], name="eom_rating_period_emp_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("rater", "rating_period"), name="uniq_rating_per_rater_period"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AdminUnitEvaluation",
            fields=timestamps() + evaluation_flags() + [
                ("original_total_points", models.IntegerField(default=0)),
                (
                    "work_unit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="eom_unit_evaluations",
                        to="org.workunit",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("rated_employee", "rating_period"), name="uniq_unit_eval_emp_period"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AdminPusatEvaluation",
            fields=timestamps() + evaluation_flags() + [
                ("peer_total_points", models.IntegerField(default=0)),
                ("admin_unit_final_points", models.IntegerField(blank=True, null=True)),
                ("disciplinary_verified", models.BooleanField(default=False)),
                ("disciplinary_verified_at", models.DateTimeField(blank=True, null=True)),
                ("attendance_verified", models.BooleanField(default=False)),
                ("attendance_verified_at", models.DateTimeField(blank=True, null=True)),
                ("performance_verified", models.BooleanField(default=False)),
                ("performance_verified_at", models.DateTimeField(blank=True, null=True)),
                ("contribution_verified", models.BooleanField(default=False)),
                ("contribution_verified_at", models.DateTimeField(blank=True, null=True)),
                ("additional_adjustment", models.IntegerField(default=0)),
                ("additional_adjustment_note", models.TextField(blank=True, default="")),
                (
                    "admin_unit_evaluation",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="final_evaluations",
                        to="eom.adminunitevaluation",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("rated_employee", "rating_period"), name="uniq_final_eval_emp_period"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DesignatedWinner",
            fields=timestamps() + [
                (
                    "winner_type",
                    models.CharField(choices=[("monthly", "Bulanan"), ("yearly", "Tahunan")], max_length=8),
                ),
                (
                    "employee_category",
                    models.CharField(choices=[("ASN", "ASN"), ("Non ASN", "Non ASN")], max_length=8),
                ),
                ("period", models.CharField(max_length=7)),
                ("final_points", models.IntegerField(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("designated_at", models.DateTimeField(auto_now_add=True)),
                (
                    "designated_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="+", to=settings.AUTH_USER_MODEL
                    ),
                ),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT, related_name="eom_wins", to="org.profile"
                    ),
                ),
            ],
            options={
                "ordering": ["-period", "employee_category"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("period", "winner_type", "employee_category"),
                        name="uniq_winner_period_type_category",
                    ),
                ],
            },
        ),
    ]
