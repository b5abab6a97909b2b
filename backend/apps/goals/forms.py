from decimal import Decimal

from django import forms

from apps.accounts.models import SECTOR_CHOICES, Employee

from .models import GOAL_TYPE_CHOICES, GOAL_TYPE_MONTHLY, METRIC_TYPE_CHOICES


class GoalForm(forms.Form):
    name = forms.CharField(
        label="Goal name",
        max_length=128,
        widget=forms.TextInput(attrs={"placeholder": "e.g. Monthly submissions"}),
    )
    description = forms.CharField(
        label="Description",
        required=False,
        widget=forms.Textarea(attrs={"rows": 3}),
    )
    sector = forms.ChoiceField(label="Sector", choices=SECTOR_CHOICES)
    metric_type = forms.ChoiceField(label="Metric type", choices=METRIC_TYPE_CHOICES)
    metric_unit = forms.CharField(
        label="Unit",
        required=False,
        max_length=16,
        widget=forms.TextInput(attrs={"placeholder": "e.g. candidates / USD / h"}),
    )
    target_value = forms.DecimalField(
        label="Base target",
        required=False,
        min_value=0,
        max_digits=14,
        decimal_places=2,
    )
    start_date = forms.DateField(label="Start date", widget=forms.DateInput(attrs={"type": "date"}))
    end_date = forms.DateField(label="End date", widget=forms.DateInput(attrs={"type": "date"}))

    def clean(self):
        cleaned_data = super().clean()
        start_date = cleaned_data.get("start_date")
        end_date = cleaned_data.get("end_date")
        if start_date and end_date and start_date > end_date:
            self.add_error("end_date", "The end date must be on or after the start date.")
        return cleaned_data


class AssignGoalForm(forms.Form):
    employees = forms.ModelMultipleChoiceField(
        label="Employees",
        queryset=Employee.objects.none(),
        widget=forms.CheckboxSelectMultiple,
    )
    target_value = forms.DecimalField(
        label="Target per employee",
        min_value=Decimal("0.01"),
        max_digits=14,
        decimal_places=2,
    )
    goal_type = forms.ChoiceField(label="Cadence", choices=GOAL_TYPE_CHOICES, initial=GOAL_TYPE_MONTHLY)

    def __init__(self, *args, employees=None, **kwargs):
        super().__init__(*args, **kwargs)
        if employees is None:
            employees = Employee.objects.none()
        self.fields["employees"].queryset = employees
        self.fields["employees"].label_from_instance = lambda employee: employee.full_name


class TrackingRecordForm(forms.Form):
    assigned_goal_id = forms.IntegerField(widget=forms.HiddenInput)
    value = forms.DecimalField(label="Value", min_value=Decimal("0.01"), max_digits=14, decimal_places=2)
    record_date = forms.DateField(
        label="Date",
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
    )
    notes = forms.CharField(label="Notes", required=False, widget=forms.Textarea(attrs={"rows": 2}))
