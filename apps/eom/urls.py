from django.urls import path
from . import views

urlpatterns = [
    path("eom/status/", views.period_status, name="eom_status"),
    path("eom/rate/<int:employee_id>/", views.rate_employee, name="eom_rate"),
    path("eom/rankings/", views.rankings, name="eom_rankings"),
    path("eom/top/", views.top_by_category, name="eom_top"),
    path(
        "eom/evaluations/unit/<int:employee_id>/<str:period>/",
        views.unit_evaluation,
        name="eom_unit_evaluation",
    ),
    path(
        "eom/evaluations/final/<int:employee_id>/<str:period>/",
        views.final_evaluation,
        name="eom_final_evaluation",
    ),
    path("eom/winners/", views.winners, name="eom_winners"),
    path("eom/winners/<int:winner_id>/remove/", views.winner_remove, name="eom_winner_remove"),
    path("eom/winners/candidates/", views.yearly_candidates, name="eom_yearly_candidates"),
    path("eom/analytics/participation/", views.participation, name="eom_participation"),
    path("eom/employees/<int:employee_id>/breakdown/", views.employee_breakdown, name="eom_employee_breakdown"),
]
