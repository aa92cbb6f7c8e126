from datetime import date, timedelta
from io import StringIO
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from apps.core.models import AuditLog
from apps.core.permissions import ADMIN_PUSAT, ADMIN_UNIT, USER_PIMPINAN, USER_UNIT
from apps.eom.criteria import criteria_for
from apps.eom.forms import UnitEvaluationForm
from apps.eom.models import (
    AdminPusatEvaluation,
    AdminUnitEvaluation,
    DesignatedWinner,
    EmployeeRating,
    EomSettings,
    ParticipatingUnit,
)
from apps.eom.selectors import EomDataSource
from apps.eom.services import ranking
from apps.eom.services.evaluations import (
    final_evaluation_initial,
    save_final_evaluation,
    save_unit_evaluation,
)
from apps.eom.services.periods import (
    ACTIVE,
    COMPLETED,
    NO_SETTINGS,
    NOT_STARTED,
    period_of,
    period_status,
    resolve_active_settings,
    validate_period,
    validate_period_dates,
)
from apps.eom.services.ratings import DUPLICATE_MESSAGE, submit_rating
from apps.eom.services.scoring import compute_adjustments, compute_rating_totals, round_half_up
from apps.eom.services.winners import designate_winner, remove_winner
from apps.org.constants import ASN, NON_ASN
from apps.org.models import Profile, WorkUnit


def full_ratings(category, score=5):
    return {c.id: {str(i): score for i in range(len(c.items))} for c in criteria_for(category)}


def rating(rid, rater, rated, period, points, **kwargs):
    return ranking.Rating(
        id=rid, rater_id=rater, rated_employee_id=rated, rating_period=period, total_points=points, **kwargs
    )


def employee(eid, name, unit=1, category=ASN, role=USER_UNIT):
    return ranking.Employee(id=eid, name=name, work_unit_id=unit, work_unit_name=f"Unit {unit}",
                            category=category, role=role, nip=f"NIP{eid}")


def winner(wid, emp, period, points, category=ASN, winner_type=ranking.MONTHLY):
    return ranking.Winner(id=wid, employee_id=emp, winner_type=winner_type,
                          employee_category=category, period=period, final_points=points)


class AggregationTests(SimpleTestCase):
    def setUp(self):
        self.employees = [employee(1, "Ani"), employee(2, "Budi"), employee(3, "Citra", category=NON_ASN)]
        self.ratings = [
            rating(1, 10, 1, "2025-03", 80),
            rating(2, 11, 1, "2025-03", 90),
            rating(3, 12, 1, "2025-03", 70),
        ]

    def test_three_tier_score(self):
        [row] = ranking.aggregate(self.ratings, self.employees)
        self.assertEqual(row.total_points, 240)
        self.assertEqual(row.rating_count, 3)
        self.assertEqual(ranking.effective_score(row), 240)

        unit = {(1, "2025-03"): SimpleNamespace(final_total_points=200)}
        [row] = ranking.aggregate(self.ratings, self.employees, unit_overrides=unit)
        self.assertEqual(ranking.effective_score(row), 200)

        final = {(1, "2025-03"): SimpleNamespace(final_total_points=230)}
        [row] = ranking.aggregate(self.ratings, self.employees, unit_overrides=unit, final_overrides=final)
        self.assertEqual(ranking.effective_score(row), 230)
        self.assertEqual(ranking.unit_score(row), 200)

    def test_override_for_other_period_is_ignored(self):
        unit = {(1, "2025-04"): SimpleNamespace(final_total_points=10)}
        [row] = ranking.aggregate(self.ratings, self.employees, unit_overrides=unit)
        self.assertFalse(row.has_unit_evaluation)
        self.assertEqual(ranking.effective_score(row), 240)

    def test_unknown_ratee(self):
        [row] = ranking.aggregate([rating(1, 10, 99, "2025-03", 50)], self.employees)
        self.assertEqual(row.employee_name, "Unknown")
        self.assertEqual(row.employee_category, ASN)

    def test_aggregate_is_repeatable(self):
        before = list(self.ratings)
        self.assertEqual(ranking.aggregate(self.ratings, self.employees), ranking.aggregate(self.ratings, self.employees))
        self.assertEqual(self.ratings, before)

    def test_groups_keep_first_seen_order(self):
        ratings = [
            rating(1, 10, 2, "2025-03", 10),
            rating(2, 11, 1, "2025-03", 10),
            rating(3, 12, 2, "2025-04", 10),
            rating(4, 13, 2, "2025-03", 10),
        ]
        rows = ranking.aggregate(ratings, self.employees)
        self.assertEqual([(r.employee_id, r.rating_period) for r in rows], [(2, "2025-03"), (1, "2025-03"), (2, "2025-04")])
        self.assertEqual(sum(r.rating_count for r in rows), len(ratings))
        self.assertEqual(rows[0].total_points, 20)


class RankingTests(SimpleTestCase):
    def setUp(self):
        self.employees = [employee(i, f"E{i}") for i in range(1, 6)]

    def test_ties_keep_input_order(self):
        ratings = [
            rating(1, 10, 3, "2025-03", 50),
            rating(2, 11, 1, "2025-03", 90),
            rating(3, 12, 2, "2025-03", 50),
        ]
        ranked = ranking.rank_within_scope(ranking.aggregate(ratings, self.employees))
        self.assertEqual([r.row.employee_id for r in ranked], [1, 3, 2])
        self.assertEqual([r.rank for r in ranked], [1, 2, 3])

    def test_pagination_keeps_global_ranks(self):
        ratings = [rating(i, 10 + i, i, "2025-03", 100 - i) for i in range(1, 6)]
        ranked = ranking.rank_within_scope(ranking.aggregate(ratings, self.employees))
        page = ranking.paginate_ranked(ranked, page=2, page_size=2)
        self.assertEqual([r.rank for r in page], [3, 4])
        self.assertEqual(ranking.paginate_ranked(ranked, page=4, page_size=2), [])

    def test_partition_only_exact_non_asn(self):
        rows = ranking.aggregate(
            [rating(1, 10, 1, "2025-03", 10), rating(2, 11, 2, "2025-03", 10), rating(3, 12, 3, "2025-03", 10)],
            [employee(1, "A", category=NON_ASN), employee(2, "B", category="non asn"), employee(3, "C")],
        )
        partitions = ranking.partition_by_category(rows)
        self.assertEqual([r.employee_id for r in partitions[NON_ASN]], [1])
        self.assertEqual([r.employee_id for r in partitions[ASN]], [2, 3])

    def test_top_per_period_is_per_category(self):
        employees = [employee(1, "A"), employee(2, "B"), employee(3, "C", category=NON_ASN)]
        rows = ranking.aggregate(
            [
                rating(1, 10, 1, "2025-03", 60),
                rating(2, 11, 2, "2025-03", 80),
                rating(3, 12, 3, "2025-03", 40),
                rating(4, 13, 1, "2025-04", 120),
            ],
            employees,
        )
        top = ranking.top_by_category_for_period(rows, "2025-03")
        self.assertEqual(top[ASN].row.employee_id, 2)
        self.assertEqual(top[NON_ASN].row.employee_id, 3)
        self.assertEqual(top[ASN].rank, 1)

    def test_top_for_year_uses_strongest_single_month(self):
        rows = ranking.aggregate(
            [
                rating(1, 10, 1, "2025-01", 100),
                rating(2, 11, 1, "2025-02", 100),
                rating(3, 12, 2, "2025-03", 150),
                rating(4, 13, 1, "2024-12", 500),
            ],
            self.employees,
        )
        top = ranking.top_by_category_for_year(rows, 2025)
        self.assertEqual(top[ASN].row.employee_id, 2)
        self.assertEqual(top[ASN].score, 150)
        self.assertNotIn(NON_ASN, top)

    def test_empty_scope(self):
        self.assertEqual(ranking.rank_within_scope([]), [])
        self.assertEqual(ranking.top_by_category_for_period([], "2025-03"), {})


class YearlyCandidateTests(SimpleTestCase):
    def test_win_count_and_average(self):
        winners = [winner(1, 7, "2025-02", 230), winner(2, 7, "2025-05", 210)]
        [candidate] = ranking.yearly_candidates(winners, 2025, [employee(7, "Eka")])
        self.assertEqual(candidate.monthly_win_count, 2)
        self.assertEqual(candidate.total_points, 440)
        self.assertEqual(candidate.avg_points, 220)
        self.assertEqual(candidate.months, ("2025-05", "2025-02"))
        self.assertEqual(candidate.employee_name, "Eka")

    def test_count_ranks_before_points(self):
        winners = [
            winner(1, 1, "2025-01", 100),
            winner(2, 1, "2025-02", 100),
            winner(3, 2, "2025-03", 400),
            winner(4, 3, "2025-04", 150, category=NON_ASN),
            winner(5, 3, "2025-05", 151, category=NON_ASN),
        ]
        candidates = ranking.yearly_candidates(winners, "2025")
        self.assertEqual([c.employee_id for c in candidates], [3, 1, 2])
        self.assertEqual(candidates[0].avg_points, 151)  # 150.5 rounds up
        self.assertEqual(candidates[2].employee_name, "Unknown")

    def test_ignores_yearly_rows_and_other_years(self):
        winners = [
            winner(1, 1, "2025", 300, winner_type=ranking.YEARLY),
            winner(2, 1, "2024-12", 300),
            winner(3, 2, "2025-01", 90),
        ]
        candidates = ranking.yearly_candidates(winners, 2025)
        self.assertEqual([c.employee_id for c in candidates], [2])

    def test_no_winners(self):
        self.assertEqual(ranking.yearly_candidates([], 2025), [])


class ParticipationTests(SimpleTestCase):
    def test_forty_percent(self):
        employees = [employee(i, f"E{i}", unit=1) for i in range(1, 11)]
        employees.append(employee(50, "Admin", unit=1, role=ADMIN_UNIT))
        ratings = [rating(i, i, 10 - i + 1, "2025-03", 100) for i in range(1, 5)]
        ratings.append(rating(9, 5, 1, "2025-02", 100))

        [unit] = ranking.participation_stats(ratings, employees, "2025-03", [1], {1: "Umum"})
        self.assertEqual(unit.unit_name, "Umum")
        self.assertEqual(unit.total_employees, 10)
        self.assertEqual(unit.employees_rated, 4)
        self.assertEqual(unit.employees_not_rated, 6)
        self.assertEqual(unit.rated_percentage, 40.0)

    def test_empty_unit_and_sort(self):
        employees = [employee(1, "A", unit=1), employee(2, "B", unit=2)]
        ratings = [rating(1, 2, 1, "2025-03", 100)]
        stats = ranking.participation_stats(ratings, employees, "2025-03", [1, 2, 3])
        self.assertEqual([u.unit_id for u in stats], [2, 1, 3])
        self.assertEqual(stats[2].rated_percentage, 0)
        self.assertEqual(stats[2].unit_name, "Unit 3")

        summary = ranking.participation_summary(stats)
        self.assertEqual(summary["total_employees"], 2)
        self.assertEqual(summary["total_rated"], 1)
        self.assertEqual(summary["overall_percentage"], 50.0)

    def test_rated_category_flags(self):
        employees = [employee(1, "A"), employee(2, "B", category=NON_ASN)]
        ratings = [rating(1, 1, 2, "2025-03", 100)]
        [unit] = ranking.participation_stats(ratings, employees, "2025-03", [1])
        [status] = unit.rated_employees
        self.assertTrue(status.rated_non_asn)
        self.assertFalse(status.rated_asn)

    def test_pimpinan_status(self):
        employees = [
            employee(1, "zaki", role=USER_PIMPINAN),
            employee(2, "Ayu", role=USER_PIMPINAN),
            employee(3, "Bima", role=USER_PIMPINAN),
            employee(4, "Staf"),
        ]
        ratings = [rating(1, 3, 4, "2025-03", 100, is_pimpinan_rating=True)]
        statuses = ranking.pimpinan_status(ratings, employees, "2025-03", {1: "Umum"})
        self.assertEqual([s.name for s in statuses], ["Ayu", "zaki", "Bima"])
        self.assertTrue(statuses[2].has_rated)
        self.assertEqual(statuses[0].unit_name, "Umum")

    def test_criteria_breakdown(self):
        ratings = [
            rating(1, 10, 1, "2025-03", 0, criteria_totals={"kedisiplinan": 25, "kinerja_produktivitas": 20}),
            rating(2, 11, 1, "2025-03", 0, criteria_totals={"kedisiplinan": 20, "kinerja_produktivitas": 15}),
        ]
        breakdown = ranking.criteria_breakdown(ratings, NON_ASN)
        self.assertEqual(len(breakdown), 4)
        self.assertEqual(breakdown[0].criterion_id, "kedisiplinan")
        self.assertEqual(breakdown[0].average_points, 22.5)
        self.assertEqual(breakdown[0].average_percentage, 90)
        self.assertEqual(breakdown[1].average_percentage, 70)
        self.assertEqual(ranking.criteria_breakdown([], ASN), [])


class ScoringTests(SimpleTestCase):
    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(3.5), 4)
        self.assertEqual(round_half_up(-2.5), -2)
        self.assertEqual(round_half_up(2.49), 2)

    def test_adjustments(self):
        adj = compute_adjustments(240, has_disciplinary_action=True)
        self.assertEqual(adj.disciplinary_penalty, 36)
        self.assertEqual(adj.final_total_points, 204)

        adj = compute_adjustments(
            105,
            has_poor_attendance=True,
            has_poor_performance=True,
            has_contribution=True,
            additional_adjustment=-3,
        )
        self.assertEqual(adj.attendance_penalty, 5)
        self.assertEqual(adj.performance_penalty, 5)
        self.assertEqual(adj.contribution_bonus, 11)  # 10.5
        self.assertEqual(adj.final_total_points, 105 - 10 + 11 - 3)

    def test_rating_totals(self):
        totals = compute_rating_totals(full_ratings(ASN, 4), criteria_for(ASN))
        self.assertEqual(totals.total_points, 100)
        self.assertEqual(totals.max_possible_points, 125)
        self.assertEqual(set(totals.criteria_totals.values()), {20})

        totals = compute_rating_totals(full_ratings(NON_ASN), criteria_for(NON_ASN))
        self.assertEqual(totals.total_points, 100)
        self.assertEqual(totals.max_possible_points, 100)

    def test_rating_totals_accepts_int_keys(self):
        data = {c.id: {i: 3 for i in range(len(c.items))} for c in criteria_for(ASN)}
        totals = compute_rating_totals(data, criteria_for(ASN))
        self.assertEqual(totals.total_points, 75)
        self.assertIn("0", totals.detailed_ratings["kedisiplinan"])

    def test_rating_totals_incomplete(self):
        data = full_ratings(ASN)
        data["kedisiplinan"]["0"] = 6
        del data["berakhlak"]["4"]
        with self.assertRaises(ValidationError) as cm:
            compute_rating_totals(data, criteria_for(ASN))
        self.assertEqual(cm.exception.code, "incomplete")
        self.assertEqual(cm.exception.params["count"], 2)


class EvaluationFormTests(SimpleTestCase):
    def test_evidence_link_defaults_to_https(self):
        form = UnitEvaluationForm({"disciplinary_evidence_link": "drive.example.go.id/bukti"})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data["disciplinary_evidence_link"], "https://drive.example.go.id/bukti")
        self.assertEqual(form.cleaned_data["attendance_evidence_link"], "")


class PeriodStatusTests(SimpleTestCase):
    def _settings(self, period, start, end):
        return EomSettings(
            period=period,
            rating_start_date=start,
            rating_end_date=end,
            evaluation_start_date=end,
            evaluation_end_date=end,
            verification_start_date=end,
            verification_end_date=end,
        )

    def test_phases(self):
        s = self._settings("2025-03", date(2025, 3, 1), date(2025, 3, 25))
        self.assertEqual(period_status(None, date(2025, 3, 5)).phase, NO_SETTINGS)
        self.assertEqual(period_status(s, date(2025, 2, 27)).phase, NOT_STARTED)

        active = period_status(s, date(2025, 3, 25))
        self.assertEqual(active.phase, ACTIVE)
        self.assertTrue(active.can_rate and active.can_evaluate and active.can_verify)
        self.assertEqual(active.active_period, "2025-03")

        done = period_status(s, date(2025, 3, 26))
        self.assertEqual(done.phase, COMPLETED)
        self.assertFalse(done.can_rate or done.can_evaluate or done.can_verify)

    def test_resolve_prefers_current_then_nearest_upcoming(self):
        feb = self._settings("2025-02", date(2025, 2, 1), date(2025, 2, 20))
        mar = self._settings("2025-03", date(2025, 3, 1), date(2025, 3, 20))
        apr = self._settings("2025-04", date(2025, 4, 1), date(2025, 4, 20))
        settings = [feb, apr, mar]
        self.assertIs(resolve_active_settings(settings, date(2025, 3, 10)), mar)
        self.assertIs(resolve_active_settings(settings, date(2025, 2, 25)), mar)
        self.assertIsNone(resolve_active_settings(settings, date(2025, 5, 1)))

    def test_validate_period(self):
        self.assertEqual(validate_period(" 2025-03 "), "2025-03")
        for bad in ("2025-13", "2025-3", "25-03", ""):
            with self.assertRaises(ValidationError):
                validate_period(bad)
        self.assertEqual(period_of(date(2025, 3, 9)), "2025-03")

    def test_validate_period_dates(self):
        d = date(2025, 3, 1)
        validate_period_dates(d, d + timedelta(days=20), d + timedelta(days=20), d + timedelta(days=25),
                              d + timedelta(days=25), d + timedelta(days=30))
        with self.assertRaises(ValidationError) as cm:
            validate_period_dates(d, d - timedelta(days=1), d, d, d, d)
        self.assertEqual(len(cm.exception.messages), 1)


class EomDataTestCase(TestCase):
    def setUp(self):
        User = get_user_model()
        self.unit_a = WorkUnit.objects.create(name="Bagian Umum", code="UMUM")
        self.unit_b = WorkUnit.objects.create(name="Bagian Keuangan", code="KEU")

        def make(name, nip, unit, role=USER_UNIT, kriteria=None, username=None):
            user = User.objects.create_user(username=username, password="x") if username else None
            return Profile.objects.create(
                user=user, nip=nip, name=name, work_unit=unit, role=role, kriteria_asn=kriteria
            )

        self.alice = make("Alice", "1001", self.unit_a, username="alice")
        self.bob = make("Bob", "1002", self.unit_a, username="bob")
        self.carol = make("Carol", "2001", self.unit_b, kriteria=NON_ASN, username="carol")
        self.dedi = make("Dedi", "2002", self.unit_b, username="dedi")
        self.pimpinan = make("Pimpinan", "9001", self.unit_a, role=USER_PIMPINAN, username="boss")
        self.admin_unit_profile = make("Admin Umum", "8001", self.unit_a, role=ADMIN_UNIT, username="adm_umum")
        self.pusat_profile = make("Admin Pusat", "7001", None, role=ADMIN_PUSAT, username="pusat")
        self.admin_unit = self.admin_unit_profile.user
        self.pusat = self.pusat_profile.user

        self.today = timezone.localdate()
        self.period = period_of(self.today)
        end = self.today + timedelta(days=3)
        self.settings = EomSettings.objects.create(
            period=self.period,
            rating_start_date=self.today - timedelta(days=3),
            rating_end_date=end,
            evaluation_start_date=end,
            evaluation_end_date=end,
            verification_start_date=end,
            verification_end_date=end,
        )

    def rate(self, rater, rated, points, period=None):
        return EmployeeRating.objects.create(
            rater=rater,
            rated_employee=rated,
            rating_period=period or self.period,
            reason="Teladan",
            total_points=points,
            max_possible_points=125,
            is_pimpinan_rating=rater.role == USER_PIMPINAN,
        )


class SubmitRatingTests(EomDataTestCase):
    def test_saves_totals(self):
        r = submit_rating(self.alice, self.bob, full_ratings(ASN, 4), "  Rajin  ")
        self.assertEqual(r.rating_period, self.period)
        self.assertEqual(r.total_points, 100)
        self.assertEqual(r.max_possible_points, 125)
        self.assertEqual(r.reason, "Rajin")
        self.assertFalse(r.is_pimpinan_rating)

    def test_non_asn_uses_own_criteria(self):
        r = submit_rating(self.alice, self.carol, full_ratings(NON_ASN), "Cekatan")
        self.assertEqual(r.total_points, 100)
        self.assertEqual(r.max_possible_points, 100)

    def test_pimpinan_rating_flagged(self):
        r = submit_rating(self.pimpinan, self.bob, full_ratings(ASN), "Pemimpin")
        self.assertTrue(r.is_pimpinan_rating)

    def test_one_rating_per_period(self):
        submit_rating(self.alice, self.bob, full_ratings(ASN), "Satu")
        with self.assertRaises(ValidationError) as cm:
            submit_rating(self.alice, self.carol, full_ratings(NON_ASN), "Dua")
        self.assertEqual(cm.exception.code, "duplicate")
        self.assertEqual(EmployeeRating.objects.filter(rater=self.alice).count(), 1)

    def test_rejections(self):
        cases = [
            (self.alice, self.bob, "", "reason_required"),
            (self.admin_unit_profile, self.bob, "x", "role"),
            (self.alice, self.alice, "x", "self_rating"),
            (self.alice, self.pimpinan, "x", "not_candidate"),
        ]
        for rater, rated, reason, code in cases:
            with self.subTest(code=code):
                with self.assertRaises(ValidationError) as cm:
                    submit_rating(rater, rated, full_ratings(ASN), reason)
                self.assertEqual(cm.exception.code, code)

    def test_outside_window(self):
        with self.assertRaises(ValidationError) as cm:
            submit_rating(self.alice, self.bob, full_ratings(ASN), "x", today=self.today - timedelta(days=10))
        self.assertEqual(cm.exception.code, "period_closed")

    def test_inactive_unit(self):
        ParticipatingUnit.objects.create(work_unit=self.unit_b)
        with self.assertRaises(ValidationError) as cm:
            submit_rating(self.alice, self.bob, full_ratings(ASN), "x")
        self.assertEqual(cm.exception.code, "unit_inactive")
        submit_rating(self.dedi, self.carol, full_ratings(NON_ASN), "x")

    def test_db_constraint(self):
        self.rate(self.alice, self.bob, 10)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.rate(self.alice, self.carol, 10)


class EvaluationTests(EomDataTestCase):
    def setUp(self):
        super().setUp()
        self.rate(self.alice, self.bob, 80)
        self.rate(self.pimpinan, self.bob, 90)
        self.rate(self.carol, self.bob, 70)

    def test_unit_evaluation(self):
        ev = save_unit_evaluation(
            self.admin_unit,
            self.bob,
            self.period,
            {"has_disciplinary_action": True, "disciplinary_action_note": "SP1"},
        )
        self.assertEqual(ev.original_total_points, 240)
        self.assertEqual(ev.disciplinary_penalty, 36)
        self.assertEqual(ev.final_total_points, 204)
        self.assertEqual(ev.work_unit, self.unit_a)

        ev = save_unit_evaluation(self.admin_unit, self.bob, self.period, {})
        self.assertEqual(ev.final_total_points, 240)
        self.assertEqual(AdminUnitEvaluation.objects.count(), 1)

    def test_unit_evaluation_rules(self):
        with self.assertRaises(PermissionDenied):
            save_unit_evaluation(self.admin_unit, self.carol, self.period, {})
        with self.assertRaises(PermissionDenied):
            save_unit_evaluation(self.alice.user, self.bob, self.period, {})
        with self.assertRaises(ValidationError):
            save_unit_evaluation(self.admin_unit, self.bob, self.period, {"has_disciplinary_action": True})
        with self.assertRaises(ValidationError) as cm:
            save_unit_evaluation(self.pusat, self.dedi, self.period, {})
        self.assertEqual(cm.exception.code, "no_ratings")

    def test_final_evaluation(self):
        unit_ev = save_unit_evaluation(
            self.admin_unit, self.bob, self.period,
            {"has_disciplinary_action": True, "disciplinary_action_note": "SP1"},
        )
        initial = final_evaluation_initial(self.bob, self.period)
        self.assertTrue(initial["has_disciplinary_action"])
        self.assertFalse(initial["disciplinary_verified"])

        data = {
            "has_contribution": True,
            "contribution_description": "Inovasi layanan",
            "contribution_verified": True,
            "additional_adjustment": -4,
            "additional_adjustment_note": "Koreksi",
        }
        ev = save_final_evaluation(self.pusat, self.bob, self.period, data)
        self.assertEqual(ev.peer_total_points, 240)
        self.assertEqual(ev.admin_unit_final_points, 204)
        self.assertEqual(ev.admin_unit_evaluation, unit_ev)
        self.assertEqual(ev.contribution_bonus, 24)
        self.assertEqual(ev.final_total_points, 260)
        self.assertIsNotNone(ev.contribution_verified_at)

        verified_at = ev.contribution_verified_at
        ev = save_final_evaluation(self.pusat, self.bob, self.period, data)
        self.assertGreaterEqual(ev.contribution_verified_at, verified_at)
        self.assertIsNone(ev.disciplinary_verified_at)

        data["contribution_verified"] = False
        ev = save_final_evaluation(self.pusat, self.bob, self.period, data)
        self.assertIsNone(ev.contribution_verified_at)
        self.assertEqual(AdminPusatEvaluation.objects.count(), 1)

        [row] = [r for r in EomDataSource().aggregated_rows(period=self.period) if r.employee_id == self.bob.pk]
        self.assertEqual(ranking.effective_score(row), 260)
        self.assertEqual(ranking.unit_score(row), 204)

    def test_final_evaluation_rules(self):
        with self.assertRaises(PermissionDenied):
            save_final_evaluation(self.admin_unit, self.bob, self.period, {})
        with self.assertRaises(ValidationError):
            save_final_evaluation(self.pusat, self.bob, self.period, {"additional_adjustment": 5})

    def test_unit_evaluation_without_work_unit(self):
        orphan = Profile.objects.create(nip="5001", name="Tanpa Unit")
        self.rate(self.dedi, orphan, 60)
        with self.assertRaises(ValidationError) as cm:
            save_unit_evaluation(self.pusat, orphan, self.period, {})
        self.assertEqual(cm.exception.code, "no_unit")
        self.assertFalse(AdminUnitEvaluation.objects.filter(rated_employee=orphan).exists())

        self.admin_unit_profile.work_unit = None
        self.admin_unit_profile.save()
        with self.assertRaises(PermissionDenied):
            save_unit_evaluation(self.admin_unit, orphan, self.period, {})

    def test_closed_period(self):
        self.settings.rating_end_date = self.today - timedelta(days=1)
        self.settings.save()
        with self.assertRaises(ValidationError) as cm:
            save_unit_evaluation(self.admin_unit, self.bob, self.period, {})
        self.assertEqual(cm.exception.code, "period_closed")


class WinnerTests(EomDataTestCase):
    def setUp(self):
        super().setUp()
        self.rate(self.alice, self.bob, 90)
        self.rate(self.dedi, self.alice, 80)
        self.rate(self.bob, self.carol, 70)

    def test_designate_monthly(self):
        w = designate_winner(self.pusat, self.bob, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN)
        self.assertEqual(w.period, self.period)
        self.assertEqual(w.final_points, 90)
        self.assertTrue(
            AuditLog.objects.filter(entity="DesignatedWinner", entity_id=str(w.pk), action=AuditLog.Action.DESIGNATE).exists()
        )

    def test_designate_yearly_uses_year(self):
        w = designate_winner(self.pusat, self.carol, self.period, DesignatedWinner.WinnerType.YEARLY, NON_ASN)
        self.assertEqual(w.period, self.period[:4])

    def test_category_mismatch(self):
        with self.assertRaises(ValidationError) as cm:
            designate_winner(self.pusat, self.bob, self.period, DesignatedWinner.WinnerType.MONTHLY, NON_ASN)
        self.assertEqual(cm.exception.code, "category_mismatch")
        self.assertFalse(DesignatedWinner.objects.exists())

    def test_one_winner_per_category(self):
        designate_winner(self.pusat, self.bob, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN)
        with self.assertRaises(ValidationError) as cm:
            designate_winner(self.pusat, self.alice, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN)
        self.assertEqual(cm.exception.code, "already_designated")

        w = designate_winner(self.pusat, self.alice, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN, replace=True)
        self.assertEqual(DesignatedWinner.objects.get().pk, w.pk)
        self.assertEqual(w.employee, self.alice)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.REMOVE, reason="replaced").exists())

        # other category is independent
        designate_winner(self.pusat, self.carol, self.period, DesignatedWinner.WinnerType.MONTHLY, NON_ASN)
        self.assertEqual(DesignatedWinner.objects.count(), 2)

    def test_no_ratings_and_permission(self):
        with self.assertRaises(ValidationError):
            designate_winner(self.pusat, self.dedi, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN)
        with self.assertRaises(PermissionDenied):
            designate_winner(self.admin_unit, self.bob, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN)

    def test_remove(self):
        w = designate_winner(self.pusat, self.bob, self.period, DesignatedWinner.WinnerType.MONTHLY, ASN)
        with self.assertRaises(PermissionDenied):
            remove_winner(self.alice.user, w)
        remove_winner(self.pusat, w)
        self.assertFalse(DesignatedWinner.objects.exists())
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.Action.REMOVE).exists())

    def test_db_constraint(self):
        DesignatedWinner.objects.create(
            employee=self.bob, winner_type="monthly", employee_category=ASN, period="2025-01", designated_by=self.pusat
        )
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                DesignatedWinner.objects.create(
                    employee=self.alice, winner_type="monthly", employee_category=ASN, period="2025-01",
                    designated_by=self.pusat,
                )


class EomViewTests(EomDataTestCase):
    def test_login_required(self):
        resp = self.client.get(reverse("eom_status"))
        self.assertEqual(resp.status_code, 302)

    def test_status(self):
        self.client.force_login(self.alice.user)
        data = self.client.get(reverse("eom_status")).json()
        self.assertEqual(data["phase"], ACTIVE)
        self.assertEqual(data["period"], self.period)
        self.assertFalse(data["has_rated"])
        self.assertTrue(data["unit_participating"])

    def test_rate_json(self):
        self.client.force_login(self.alice.user)
        url = reverse("eom_rate", args=[self.bob.pk])
        body = {"reason": "Rajin", "detailed_ratings": full_ratings(ASN)}
        resp = self.client.post(url, body, content_type="application/json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["total_points"], 125)

        resp = self.client.post(url, body, content_type="application/json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn(DUPLICATE_MESSAGE, resp.json()["errors"])

    def test_rate_forbidden_and_missing(self):
        self.client.force_login(self.admin_unit)
        resp = self.client.post(reverse("eom_rate", args=[self.bob.pk]), {}, content_type="application/json")
        self.assertEqual(resp.status_code, 403)

        self.client.force_login(self.alice.user)
        resp = self.client.post(reverse("eom_rate", args=[99999]), {}, content_type="application/json")
        self.assertEqual(resp.status_code, 404)

    def test_rankings_scope(self):
        self.rate(self.alice, self.bob, 90)
        self.rate(self.bob, self.alice, 80)
        self.rate(self.dedi, self.carol, 70)
        AdminPusatEvaluation.objects.create(
            rated_employee=self.alice, evaluator=self.pusat, rating_period=self.period, final_total_points=120
        )

        self.client.force_login(self.alice.user)
        self.assertEqual(self.client.get(reverse("eom_rankings")).status_code, 403)

        self.client.force_login(self.pusat)
        data = self.client.get(reverse("eom_rankings"), {"period": self.period}).json()
        self.assertEqual([r["employee_id"] for r in data["results"]], [self.alice.pk, self.bob.pk, self.carol.pk])
        self.assertEqual(data["results"][0]["score"], 120)

        data = self.client.get(reverse("eom_rankings"), {"period": self.period, "page": 2, "page_size": 1}).json()
        self.assertEqual(data["count"], 3)
        self.assertEqual(data["results"][0]["rank"], 2)

        self.client.force_login(self.admin_unit)
        data = self.client.get(reverse("eom_rankings"), {"period": self.period}).json()
        self.assertEqual([r["employee_id"] for r in data["results"]], [self.bob.pk, self.alice.pk])
        self.assertIsNone(data["results"][1]["final_evaluation"])

    def test_rankings_bad_params(self):
        self.client.force_login(self.pusat)
        self.assertEqual(self.client.get(reverse("eom_rankings"), {"period": "2025-13"}).status_code, 400)
        self.assertEqual(self.client.get(reverse("eom_rankings"), {"page": "x"}).status_code, 400)
        self.assertEqual(self.client.get(reverse("eom_top")).status_code, 400)

    def test_top(self):
        self.rate(self.alice, self.bob, 90)
        self.rate(self.dedi, self.carol, 70)
        self.client.force_login(self.pusat)
        data = self.client.get(reverse("eom_top"), {"year": self.period[:4]}).json()
        self.assertEqual(data["results"][ASN]["employee_id"], self.bob.pk)
        self.assertEqual(data["results"][NON_ASN]["employee_id"], self.carol.pk)

    def test_evaluation_endpoints(self):
        self.rate(self.alice, self.bob, 100)
        self.client.force_login(self.admin_unit)
        url = reverse("eom_unit_evaluation", args=[self.bob.pk, self.period])
        resp = self.client.post(url, {"has_poor_attendance": True}, content_type="application/json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["evaluation"]["final_total_points"], 95)

        url = reverse("eom_unit_evaluation", args=[self.carol.pk, self.period])
        self.assertEqual(self.client.get(url).status_code, 404)

        url = reverse("eom_final_evaluation", args=[self.bob.pk, self.period])
        self.assertEqual(self.client.get(url).status_code, 403)

        self.client.force_login(self.pusat)
        initial = self.client.get(url).json()["initial"]
        self.assertTrue(initial["has_poor_attendance"])
        resp = self.client.post(url, {"disciplinary_evidence_link": "bukan url"}, content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_winner_endpoints(self):
        self.rate(self.alice, self.bob, 90)
        self.client.force_login(self.pusat)
        body = {
            "employee_id": self.bob.pk,
            "rating_period": self.period,
            "winner_type": "monthly",
            "employee_category": ASN,
        }
        resp = self.client.post(reverse("eom_winners"), body, content_type="application/json")
        self.assertEqual(resp.status_code, 201)
        winner_id = resp.json()["id"]

        resp = self.client.post(reverse("eom_winners"), body, content_type="application/json")
        self.assertEqual(resp.status_code, 400)

        data = self.client.get(reverse("eom_winners"), {"year": self.period[:4]}).json()
        self.assertEqual(len(data["results"]), 1)

        data = self.client.get(reverse("eom_yearly_candidates"), {"year": self.period[:4]}).json()
        self.assertEqual(data["results"][0]["monthly_win_count"], 1)
        self.assertEqual(self.client.get(reverse("eom_yearly_candidates")).status_code, 400)

        resp = self.client.post(reverse("eom_winner_remove", args=[winner_id]))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(DesignatedWinner.objects.exists())

    def test_winner_list_scoped_to_unit(self):
        orphan = Profile.objects.create(nip="5001", name="Tanpa Unit")
        for emp, period in ((orphan, "2025-01"), (self.bob, "2025-02"), (self.dedi, "2025-03")):
            DesignatedWinner.objects.create(
                employee=emp, winner_type="monthly", employee_category=ASN, period=period, designated_by=self.pusat
            )

        self.client.force_login(self.admin_unit)
        data = self.client.get(reverse("eom_winners")).json()
        self.assertEqual([w["employee_id"] for w in data["results"]], [self.bob.pk])

        self.admin_unit_profile.work_unit = None
        self.admin_unit_profile.save()
        data = self.client.get(reverse("eom_winners")).json()
        self.assertEqual(data["results"], [])

        self.client.force_login(self.pusat)
        data = self.client.get(reverse("eom_winners")).json()
        self.assertEqual(len(data["results"]), 3)

    def test_participation_and_breakdown(self):
        self.rate(self.alice, self.bob, 90)
        self.rate(self.pimpinan, self.bob, 100)
        self.client.force_login(self.pusat)

        data = self.client.get(reverse("eom_participation"), {"period": self.period}).json()
        units = {u["unit_name"]: u for u in data["units"]}
        self.assertEqual(units["Bagian Umum"]["employees_rated"], 1)
        self.assertEqual(units["Bagian Umum"]["rated_percentage"], 50.0)
        self.assertEqual(units["Bagian Keuangan"]["rated_percentage"], 0)
        self.assertTrue(data["pimpinan"][0]["has_rated"])
        self.assertEqual(self.client.get(reverse("eom_participation")).status_code, 400)

        url = reverse("eom_employee_breakdown", args=[self.bob.pk])
        data = self.client.get(url, {"period": self.period}).json()
        self.assertEqual(data["rating_count"], 2)
        self.assertEqual(data["total_points"], 190)
        self.assertEqual(len(data["criteria"]), 5)
        self.assertEqual(len(data["testimonials"]), 2)


class EomCommandTests(TestCase):
    def setUp(self):
        self.unit = WorkUnit.objects.create(name="Bagian Umum", code="UMUM")

    def test_setup_period(self):
        out = StringIO()
        call_command("setup_eom_period", "2025-03", "--rating-start", "2025-03-01", "--rating-end", "2025-03-25",
                     stdout=out)
        s = EomSettings.objects.get(period="2025-03")
        self.assertEqual(s.verification_end_date, date(2025, 3, 25))

        with self.assertRaises(CommandError):
            call_command("setup_eom_period", "2025-03", "--rating-start", "2025-03-01", "--rating-end", "2025-03-20")
        call_command("setup_eom_period", "2025-03", "--rating-start", "2025-03-01", "--rating-end", "2025-03-20",
                     "--update", stdout=out)
        s.refresh_from_db()
        self.assertEqual(s.rating_end_date, date(2025, 3, 20))

    def test_setup_period_invalid_dates(self):
        with self.assertRaises(CommandError):
            call_command("setup_eom_period", "2025-04", "--rating-start", "2025-04-20", "--rating-end", "2025-04-01")
        with self.assertRaises(CommandError):
            call_command("setup_eom_period", "2025-04", "--rating-start", "2025-04-01", "--rating-end", "2025-04-20",
                         "--evaluation-start", "2025-04-10")
        self.assertFalse(EomSettings.objects.exists())

    def test_set_participating_unit(self):
        call_command("set_participating_unit", "UMUM", stdout=StringIO())
        self.assertTrue(ParticipatingUnit.objects.get(work_unit=self.unit).is_active)
        call_command("set_participating_unit", "UMUM", "--inactive", stdout=StringIO())
        self.assertFalse(ParticipatingUnit.objects.get(work_unit=self.unit).is_active)
        with self.assertRaises(CommandError):
            call_command("set_participating_unit", "NOPE")

    def test_report(self):
        a = Profile.objects.create(nip="1", name="Ani", work_unit=self.unit)
        b = Profile.objects.create(nip="2", name="Budi", work_unit=self.unit)
        EmployeeRating.objects.create(rater=a, rated_employee=b, rating_period="2025-03", reason="x", total_points=99)

        out = StringIO()
        call_command("report_eom_period", "2025-03", stdout=out)
        text = out.getvalue()
        self.assertIn("Maret 2025".upper(), text)
        self.assertIn("Budi", text)
        self.assertIn("1/2", text)

        out = StringIO()
        call_command("report_eom_period", "2025-03", "--csv", stdout=out)
        lines = out.getvalue().strip().splitlines()
        self.assertEqual(lines[0].strip(), "category,rank,nip,name,unit,rating_count,total_points,score")
        self.assertEqual(lines[1].strip(), "ASN,1,2,Budi,Bagian Umum,1,99,99")

        with self.assertRaises(CommandError):
            call_command("report_eom_period", "2025-3")
