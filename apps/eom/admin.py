from django.contrib import admin
from .forms import EomSettingsForm
from .models import (
    AdminPusatEvaluation,
    AdminUnitEvaluation,
    DesignatedWinner,
    EmployeeRating,
    EomSettings,
    ParticipatingUnit,
)


@admin.register(EomSettings)
class EomSettingsAdmin(admin.ModelAdmin):
    form = EomSettingsForm
    list_display = (
        "period",
        "rating_start_date",
        "rating_end_date",
        "evaluation_end_date",
        "verification_end_date",
        "created_by",
    )
    search_fields = ("period",)
    ordering = ("-rating_start_date",)

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)


@admin.register(ParticipatingUnit)
class ParticipatingUnitAdmin(admin.ModelAdmin):
    list_display = ("work_unit", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("work_unit__name", "work_unit__code")


@admin.register(EmployeeRating)
class EmployeeRatingAdmin(admin.ModelAdmin):
    list_display = (
        "rating_period",
        "rater",
        "rated_employee",
        "total_points",
        "max_possible_points",
        "is_pimpinan_rating",
        "created_at",
    )
    list_filter = ("rating_period", "is_pimpinan_rating")
    search_fields = (
        "rater__name",
        "rater__nip",
        "rated_employee__name",
        "rated_employee__nip",
    )
    readonly_fields = ("detailed_ratings", "criteria_totals", "total_points", "max_possible_points")


@admin.register(AdminUnitEvaluation)
class AdminUnitEvaluationAdmin(admin.ModelAdmin):
    list_display = (
        "rated_employee",
        "rating_period",
        "work_unit",
        "original_total_points",
        "final_total_points",
        "evaluator",
    )
    list_filter = ("rating_period", "work_unit")
    search_fields = ("rated_employee__name", "rated_employee__nip")


@admin.register(AdminPusatEvaluation)
class AdminPusatEvaluationAdmin(admin.ModelAdmin):
    list_display = (
        "rated_employee",
        "rating_period",
        "peer_total_points",
        "admin_unit_final_points",
        "additional_adjustment",
        "final_total_points",
        "evaluator",
    )
    list_filter = ("rating_period",)
    search_fields = ("rated_employee__name", "rated_employee__nip")


@admin.register(DesignatedWinner)
class DesignatedWinnerAdmin(admin.ModelAdmin):
    list_display = ("period", "winner_type", "employee_category", "employee", "final_points", "designated_at")
    list_filter = ("winner_type", "employee_category")
    search_fields = ("employee__name", "employee__nip", "period")
