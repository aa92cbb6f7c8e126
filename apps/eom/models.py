from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models
from apps.core.models import TimeStampedModel
from apps.org.models import CATEGORIES, Profile, WorkUnit

PERIOD_RE = r"^\d{4}-(0[1-9]|1[0-2])$"
YEAR_RE = r"^\d{4}$"

period_validator = RegexValidator(PERIOD_RE, "Periode harus berformat YYYY-MM.")


class EomSettings(TimeStampedModel):
    period = models.CharField(max_length=7, unique=True, validators=[period_validator])
    rating_start_date = models.DateField()
    rating_end_date = models.DateField()
    evaluation_start_date = models.DateField()
    evaluation_end_date = models.DateField()
    verification_start_date = models.DateField()
    verification_end_date = models.DateField()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        ordering = ["-rating_start_date"]

    def __str__(self) -> str:
        return self.period


class ParticipatingUnit(TimeStampedModel):
    work_unit = models.OneToOneField(WorkUnit, on_delete=models.CASCADE, related_name="eom_participation")
    is_active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return f"{self.work_unit} ({'aktif' if self.is_active else 'nonaktif'})"


class EmployeeRating(TimeStampedModel):
    rater = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name="ratings_given")
    rated_employee = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name="ratings_received")
    rating_period = models.CharField(max_length=7, validators=[period_validator])
    reason = models.TextField()
    detailed_ratings = models.JSONField(default=dict)
    criteria_totals = models.JSONField(default=dict)
    total_points = models.PositiveIntegerField(default=0)
    max_possible_points = models.PositiveIntegerField(default=0)
    is_pimpinan_rating = models.BooleanField(default=False)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["rater", "rating_period"], name="uniq_rating_per_rater_period"),
        ]
        indexes = [
            models.Index(fields=["rating_period", "rated_employee"], name="eom_rating_period_emp_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.rater_id} -> {self.rated_employee_id} ({self.rating_period})"


class EvaluationFlags(TimeStampedModel):
    """Penalty and bonus switches shared by the unit and central evaluations."""

    rated_employee = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name="+")
    evaluator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    rating_period = models.CharField(max_length=7, validators=[period_validator])

    has_disciplinary_action = models.BooleanField(default=False)
    disciplinary_action_note = models.TextField(blank=True, default="")
    disciplinary_evidence_link = models.URLField(blank=True, default="")
    disciplinary_penalty = models.IntegerField(default=0)

    has_poor_attendance = models.BooleanField(default=False)
    attendance_note = models.TextField(blank=True, default="")
    attendance_evidence_link = models.URLField(blank=True, default="")
    attendance_penalty = models.IntegerField(default=0)

    has_poor_performance = models.BooleanField(default=False)
    performance_note = models.TextField(blank=True, default="")
    performance_evidence_link = models.URLField(blank=True, default="")
    performance_penalty = models.IntegerField(default=0)

    has_contribution = models.BooleanField(default=False)
    contribution_description = models.TextField(blank=True, default="")
    contribution_evidence_link = models.URLField(blank=True, default="")
    contribution_bonus = models.IntegerField(default=0)

    final_total_points = models.IntegerField(default=0)

    class Meta:
        abstract = True


class AdminUnitEvaluation(EvaluationFlags):
    work_unit = models.ForeignKey(WorkUnit, on_delete=models.PROTECT, related_name="eom_unit_evaluations")
    original_total_points = models.IntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["rated_employee", "rating_period"], name="uniq_unit_eval_emp_period"),
        ]


class AdminPusatEvaluation(EvaluationFlags):
    admin_unit_evaluation = models.ForeignKey(
        AdminUnitEvaluation, on_delete=models.SET_NULL, null=True, blank=True, related_name="final_evaluations"
    )
    peer_total_points = models.IntegerField(default=0)
    admin_unit_final_points = models.IntegerField(null=True, blank=True)

    disciplinary_verified = models.BooleanField(default=False)
    disciplinary_verified_at = models.DateTimeField(null=True, blank=True)
    attendance_verified = models.BooleanField(default=False)
    attendance_verified_at = models.DateTimeField(null=True, blank=True)
    performance_verified = models.BooleanField(default=False)
    performance_verified_at = models.DateTimeField(null=True, blank=True)
    contribution_verified = models.BooleanField(default=False)
    contribution_verified_at = models.DateTimeField(null=True, blank=True)

    additional_adjustment = models.IntegerField(default=0)
    additional_adjustment_note = models.TextField(blank=True, default="")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["rated_employee", "rating_period"], name="uniq_final_eval_emp_period"),
        ]


class DesignatedWinner(TimeStampedModel):
    class WinnerType(models.TextChoices):
        MONTHLY = "monthly", "Bulanan"
        YEARLY = "yearly", "Tahunan"

    employee = models.ForeignKey(Profile, on_delete=models.PROTECT, related_name="eom_wins")
    winner_type = models.CharField(max_length=8, choices=WinnerType.choices)
    employee_category = models.CharField(max_length=8, choices=[(c, c) for c in CATEGORIES])
    period = models.CharField(max_length=7)
    final_points = models.IntegerField(default=0)
    notes = models.TextField(blank=True, default="")
    designated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    designated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-period", "employee_category"]
        constraints = [
            models.UniqueConstraint(
                fields=["period", "winner_type", "employee_category"],
                name="uniq_winner_period_type_category",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_winner_type_display()} {self.period} [{self.employee_category}] {self.employee_id}"
