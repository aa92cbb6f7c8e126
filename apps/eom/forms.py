from django import forms
from django.core.exceptions import ValidationError

from apps.eom.models import DesignatedWinner, EomSettings
from apps.eom.services.periods import validate_period_dates
from apps.org.constants import CATEGORIES


class RatingForm(forms.Form):
    reason = forms.CharField(strip=True)
    detailed_ratings = forms.JSONField()


class UnitEvaluationForm(forms.Form):
    has_disciplinary_action = forms.BooleanField(required=False)
    disciplinary_action_note = forms.CharField(required=False)
    disciplinary_evidence_link = forms.URLField(required=False, assume_scheme="https")

    has_poor_attendance = forms.BooleanField(required=False)
    attendance_note = forms.CharField(required=False)
    attendance_evidence_link = forms.URLField(required=False, assume_scheme="https")

    has_poor_performance = forms.BooleanField(required=False)
    performance_note = forms.CharField(required=False)
    performance_evidence_link = forms.URLField(required=False, assume_scheme="https")

    has_contribution = forms.BooleanField(required=False)
    contribution_description = forms.CharField(required=False)
    contribution_evidence_link = forms.URLField(required=False, assume_scheme="https")


class FinalEvaluationForm(UnitEvaluationForm):
    disciplinary_verified = forms.BooleanField(required=False)
    attendance_verified = forms.BooleanField(required=False)
    performance_verified = forms.BooleanField(required=False)
    contribution_verified = forms.BooleanField(required=False)

    additional_adjustment = forms.IntegerField(required=False)
    additional_adjustment_note = forms.CharField(required=False)


class WinnerForm(forms.Form):
    employee_id = forms.IntegerField()
    rating_period = forms.RegexField(regex=r"^\d{4}-(0[1-9]|1[0-2])$")
    winner_type = forms.ChoiceField(choices=DesignatedWinner.WinnerType.choices)
    employee_category = forms.ChoiceField(choices=[(c, c) for c in CATEGORIES])
    notes = forms.CharField(required=False)
    replace = forms.BooleanField(required=False)


class EomSettingsForm(forms.ModelForm):
    class Meta:
        model = EomSettings
        fields = [
            "period",
            "rating_start_date",
            "rating_end_date",
            "evaluation_start_date",
            "evaluation_end_date",
            "verification_start_date",
            "verification_end_date",
        ]

    def clean(self):
        cleaned = super().clean()
        dates = [cleaned.get(f) for f in self.Meta.fields[1:]]
        if all(dates):
            try:
                validate_period_dates(*dates)
            except ValidationError as exc:
                raise ValidationError(exc.messages)
        return cleaned
