import json
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.permissions import (
    can_manage_eom,
    can_rate,
    can_view_rankings,
    is_admin_pusat,
    is_admin_unit,
    profile_of,
)
from apps.eom.forms import FinalEvaluationForm, RatingForm, UnitEvaluationForm, WinnerForm
from apps.eom.models import AdminUnitEvaluation, DesignatedWinner, EmployeeRating
from apps.eom.selectors import EomDataSource, unit_names
from apps.eom.services import ranking
from apps.eom.services.evaluations import (
    final_evaluation_initial,
    save_final_evaluation,
    save_unit_evaluation,
)
from apps.eom.services.periods import current_status, is_unit_participating, validate_period, validate_year
from apps.eom.services.ratings import has_rated, submit_rating
from apps.eom.services.winners import designate_winner, remove_winner
from apps.org.models import Profile
from apps.org.selectors import employees_visible_to

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200


def json_errors(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ValidationError as exc:
            return JsonResponse({"errors": exc.messages}, status=400)
    return wrapper


def _payload(request) -> dict:
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            raise ValidationError("Body JSON tidak valid.", code="invalid_json")
        if not isinstance(data, dict):
            raise ValidationError("Body JSON harus berupa objek.", code="invalid_json")
        return data
    return request.POST


def _bound(form_class, request):
    form = form_class(_payload(request))
    if not form.is_valid():
        raise ValidationError(
            [f"{field}: {msg}" for field, msgs in form.errors.items() for msg in msgs]
        )
    return form.cleaned_data


def _int_param(request, name: str, default: int) -> int:
    raw = request.GET.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Parameter {name} harus berupa angka.", code="invalid_param")


def _period_param(request, required: bool = False):
    period = request.GET.get("period")
    if not period:
        if required:
            raise ValidationError("Parameter period wajib diisi.", code="period_required")
        return None
    return validate_period(period)


def _evaluation_json(evaluation):
    if evaluation is None:
        return None
    return {
        "id": evaluation.id,
        "final_total_points": evaluation.final_total_points,
        "disciplinary_penalty": evaluation.disciplinary_penalty,
        "attendance_penalty": evaluation.attendance_penalty,
        "performance_penalty": evaluation.performance_penalty,
        "contribution_bonus": evaluation.contribution_bonus,
    }


def _row_json(ranked: ranking.RankedRow) -> dict:
    row = ranked.row
    return {
        "rank": ranked.rank,
        "score": ranked.score,
        "employee_id": row.employee_id,
        "employee_name": row.employee_name,
        "employee_work_unit": row.employee_work_unit,
        "employee_category": row.employee_category,
        "rating_period": row.rating_period,
        "total_points": row.total_points,
        "rating_count": row.rating_count,
        "unit_evaluation": _evaluation_json(row.unit_evaluation),
        "final_evaluation": _evaluation_json(row.final_evaluation),
    }


def _winner_json(winner: DesignatedWinner) -> dict:
    return {
        "id": winner.id,
        "employee_id": winner.employee_id,
        "employee_name": winner.employee.name,
        "winner_type": winner.winner_type,
        "employee_category": winner.employee_category,
        "period": winner.period,
        "final_points": winner.final_points,
        "notes": winner.notes,
    }


def _status_json(status: ranking.EmployeeRatingStatus) -> dict:
    return {
        "id": status.id,
        "name": status.name,
        "nip": status.nip,
        "category": status.category,
        "unit_name": status.unit_name,
        "has_rated": status.has_rated,
        "rated_asn": status.rated_asn,
        "rated_non_asn": status.rated_non_asn,
    }


@login_required
@require_GET
def period_status(request):
    status = current_status()
    profile = profile_of(request.user)
    data = {
        "phase": status.phase,
        "period": status.active_period,
        "message": status.message,
        "can_rate": status.can_rate,
        "can_evaluate": status.can_evaluate,
        "can_verify": status.can_verify,
        "role": profile.role if profile else None,
        "has_rated": False,
        "unit_participating": False,
    }
    if profile is not None:
        data["unit_participating"] = is_unit_participating(profile.work_unit_id)
        if status.active_period:
            data["has_rated"] = has_rated(profile, status.active_period)
    return JsonResponse(data)


@login_required
@require_POST
@json_errors
def rate_employee(request, employee_id: int):
    if not can_rate(request.user):
        raise PermissionDenied
    rater = profile_of(request.user)
    employee = get_object_or_404(Profile, pk=employee_id)

    data = _bound(RatingForm, request)
    rating = submit_rating(rater, employee, data["detailed_ratings"], data["reason"])
    return JsonResponse(
        {
            "id": rating.id,
            "rating_period": rating.rating_period,
            "total_points": rating.total_points,
            "max_possible_points": rating.max_possible_points,
            "criteria_totals": rating.criteria_totals,
        },
        status=201,
    )


@login_required
@require_GET
@json_errors
def rankings(request):
    if not can_view_rankings(request.user):
        raise PermissionDenied

    period = _period_param(request)
    page = _int_param(request, "page", 1)
    page_size = min(max(_int_param(request, "page_size", DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    category = request.GET.get("category")

    rows = EomDataSource.for_user(request.user).aggregated_rows(period=period)
    if category:
        rows = ranking.partition_by_category(rows).get(category, [])
    score = ranking.effective_score if is_admin_pusat(request.user) else ranking.unit_score
    ranked = ranking.rank_within_scope(rows, score=score)

    return JsonResponse(
        {
            "period": period,
            "count": len(ranked),
            "page": max(page, 1),
            "page_size": page_size,
            "results": [_row_json(r) for r in ranking.paginate_ranked(ranked, page, page_size)],
        }
    )


@login_required
@require_GET
@json_errors
def top_by_category(request):
    if not can_view_rankings(request.user):
        raise PermissionDenied

    period = _period_param(request)
    year = request.GET.get("year")
    if period:
        rows = EomDataSource.for_user(request.user).aggregated_rows(period=period)
        top = ranking.top_by_category_for_period(rows, period)
    elif year:
        year = validate_year(year)
        rows = EomDataSource.for_user(request.user).aggregated_rows(year=year)
        top = ranking.top_by_category_for_year(rows, year)
    else:
        raise ValidationError("Parameter period atau year wajib diisi.", code="period_required")

    return JsonResponse(
        {
            "period": period,
            "year": year,
            "results": {category: _row_json(row) for category, row in top.items()},
        }
    )


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def unit_evaluation(request, employee_id: int, period: str):
    if not (is_admin_unit(request.user) or is_admin_pusat(request.user)):
        raise PermissionDenied
    period = validate_period(period)
    employee = get_object_or_404(employees_visible_to(request.user), pk=employee_id)

    if request.method == "GET":
        evaluation = AdminUnitEvaluation.objects.filter(rated_employee=employee, rating_period=period).first()
        return JsonResponse({"employee_id": employee.id, "period": period, "evaluation": _evaluation_json(evaluation)})

    data = _bound(UnitEvaluationForm, request)
    evaluation = save_unit_evaluation(request.user, employee, period, data)
    return JsonResponse(
        {
            "employee_id": employee.id,
            "period": period,
            "original_total_points": evaluation.original_total_points,
            "evaluation": _evaluation_json(evaluation),
        }
    )


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def final_evaluation(request, employee_id: int, period: str):
    if not is_admin_pusat(request.user):
        raise PermissionDenied
    period = validate_period(period)
    employee = get_object_or_404(employees_visible_to(request.user), pk=employee_id)

    if request.method == "GET":
        return JsonResponse(
            {"employee_id": employee.id, "period": period, "initial": final_evaluation_initial(employee, period)}
        )

    data = _bound(FinalEvaluationForm, request)
    evaluation = save_final_evaluation(request.user, employee, period, data)
    return JsonResponse(
        {
            "employee_id": employee.id,
            "period": period,
            "peer_total_points": evaluation.peer_total_points,
            "admin_unit_final_points": evaluation.admin_unit_final_points,
            "additional_adjustment": evaluation.additional_adjustment,
            "evaluation": _evaluation_json(evaluation),
        }
    )


@login_required
@require_http_methods(["GET", "POST"])
@json_errors
def winners(request):
    if request.method == "GET":
        if not can_view_rankings(request.user):
            raise PermissionDenied
        qs = EomDataSource.for_user(request.user).winners.select_related("employee")
        year = request.GET.get("year")
        if year:
            qs = qs.filter(period__startswith=validate_year(year))
        return JsonResponse({"results": [_winner_json(w) for w in qs]})

    if not can_manage_eom(request.user):
        raise PermissionDenied
    data = _bound(WinnerForm, request)
    employee = get_object_or_404(Profile, pk=data["employee_id"])
    winner = designate_winner(
        request.user,
        employee,
        data["rating_period"],
        data["winner_type"],
        data["employee_category"],
        notes=data["notes"],
        replace=data["replace"],
    )
    return JsonResponse(_winner_json(winner), status=201)


@login_required
@require_POST
@json_errors
def winner_remove(request, winner_id: int):
    if not can_manage_eom(request.user):
        raise PermissionDenied
    winner = get_object_or_404(DesignatedWinner, pk=winner_id)
    remove_winner(request.user, winner)
    return JsonResponse({"removed": winner_id})


@login_required
@require_GET
@json_errors
def yearly_candidates(request):
    if not can_manage_eom(request.user):
        raise PermissionDenied
    year = validate_year(request.GET.get("year"))
    source = EomDataSource()
    candidates = ranking.yearly_candidates(source.fetch_winners(year), year, source.fetch_employees())
    return JsonResponse(
        {
            "year": year,
            "results": [
                {
                    "employee_id": c.employee_id,
                    "employee_name": c.employee_name,
                    "employee_category": c.employee_category,
                    "monthly_win_count": c.monthly_win_count,
                    "total_points": c.total_points,
                    "avg_points": c.avg_points,
                    "months": list(c.months),
                }
                for c in candidates
            ],
        }
    )


@login_required
@require_GET
@json_errors
def participation(request):
    if not can_manage_eom(request.user):
        raise PermissionDenied
    period = _period_param(request, required=True)

    source = EomDataSource()
    ratings = source.fetch_ratings(period=period)
    employees = source.fetch_employees()
    names = unit_names()
    stats = ranking.participation_stats(
        ratings, employees, period, source.fetch_participating_unit_ids(), names
    )

    return JsonResponse(
        {
            "period": period,
            "summary": ranking.participation_summary(stats),
            "units": [
                {
                    "unit_id": u.unit_id,
                    "unit_name": u.unit_name,
                    "total_employees": u.total_employees,
                    "employees_rated": u.employees_rated,
                    "employees_not_rated": u.employees_not_rated,
                    "rated_percentage": u.rated_percentage,
                    "rated": [_status_json(s) for s in u.rated_employees],
                    "not_rated": [_status_json(s) for s in u.not_rated_employees],
                }
                for u in stats
            ],
            "pimpinan": [_status_json(s) for s in ranking.pimpinan_status(ratings, employees, period, names)],
        }
    )


@login_required
@require_GET
@json_errors
def employee_breakdown(request, employee_id: int):
    if not can_view_rankings(request.user):
        raise PermissionDenied
    period = _period_param(request, required=True)
    employee = get_object_or_404(employees_visible_to(request.user), pk=employee_id)

    source = EomDataSource(ratings=EmployeeRating.objects.filter(rated_employee=employee))
    ratings = source.fetch_ratings(period=period)
    return JsonResponse(
        {
            "employee_id": employee.id,
            "employee_name": employee.name,
            "employee_category": employee.category,
            "period": period,
            "rating_count": len(ratings),
            "total_points": sum(r.total_points for r in ratings),
            "criteria": [
                {
                    "criterion_id": b.criterion_id,
                    "title": b.title,
                    "average_points": b.average_points,
                    "max_points": b.max_points,
                    "average_percentage": b.average_percentage,
                }
                for b in ranking.criteria_breakdown(ratings, employee.category)
            ],
            "testimonials": [
                {"reason": r.reason, "is_pimpinan_rating": r.is_pimpinan_rating} for r in ratings
            ],
        }
    )
