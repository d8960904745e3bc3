"""
Tests for the draft reducer and the form state holder.
"""

from datetime import date

import pytest

from leave_form.errors import SubmissionInProgressError, ValidationError
from leave_form.form_state import apply_field, empty_draft, filter_employees
from leave_form.models import Employee


class TestApplyField:
    """Test the reducer keyed by field name."""

    def test_returns_new_draft_and_leaves_old_untouched(self):
        draft = empty_draft()
        updated = apply_field(draft, "leave_type", "Vacaciones")

        assert updated.leave_type == "Vacaciones"
        assert draft.leave_type == ""
        assert updated is not draft

    def test_one_date_does_not_derive_duration(self):
        draft = apply_field(empty_draft(), "start_date", "2024-03-01")

        assert draft.start_date == date(2024, 3, 1)
        assert draft.duration_days == 0
        assert draft.duration_label == ""

    def test_both_dates_derive_duration(self):
        draft = apply_field(empty_draft(), "start_date", "2024-03-01")
        draft = apply_field(draft, "end_date", "2024-03-05")

        assert draft.duration_days == 5
        assert draft.duration_hours == 40
        assert draft.duration_label == "5 días"
        assert draft.range_warning is None

    def test_inverted_range_resets_duration_and_warns(self):
        draft = apply_field(empty_draft(), "start_date", "2024-03-01")
        draft = apply_field(draft, "end_date", "2024-03-05")
        draft = apply_field(draft, "start_date", "2024-03-06")

        assert draft.duration_days == 0
        assert draft.duration_hours == 0
        assert draft.duration_label == ""
        assert draft.range_warning is not None

    def test_fixing_range_clears_warning(self):
        draft = apply_field(empty_draft(), "start_date", "2024-03-05")
        draft = apply_field(draft, "end_date", "2024-03-01")
        draft = apply_field(draft, "end_date", "2024-03-07")

        assert draft.range_warning is None
        assert draft.duration_days == 3

    def test_clearing_a_date_resets_duration(self):
        draft = apply_field(empty_draft(), "start_date", "2024-03-01")
        draft = apply_field(draft, "end_date", "2024-03-05")
        draft = apply_field(draft, "end_date", "")

        assert draft.end_date is None
        assert draft.duration_days == 0

    def test_custom_hours_per_workday(self):
        draft = apply_field(empty_draft(), "start_date", "2024-03-01", hours_per_workday=6)
        draft = apply_field(draft, "end_date", "2024-03-02", hours_per_workday=6)
        assert draft.duration_hours == 12

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            apply_field(empty_draft(), "salary", 1000)

    def test_derived_fields_are_read_only(self):
        with pytest.raises(ValidationError):
            apply_field(empty_draft(), "duration_days", 99)

    def test_text_fields_are_stripped(self):
        draft = apply_field(empty_draft(), "employee_name", "  Ana Torres ")
        assert draft.employee_name == "Ana Torres"

    def test_value_of_wrong_type_rejected(self):
        """Values the draft model cannot hold never reach the draft."""
        with pytest.raises(ValidationError) as exc_info:
            apply_field(empty_draft(), "employee_id", [1, 2])

        assert exc_info.value.field == "employee_id"

    def test_string_employee_id_accepted(self):
        draft = apply_field(empty_draft(), "employee_id", "EMP-7")
        assert draft.employee_id == "EMP-7"


class TestFormStateHolder:
    """Test the stateful holder used by a single form."""

    def test_march_scenario(self, holder):
        holder.set_field("start_date", "2024-03-01")
        holder.set_field("end_date", "2024-03-05")

        draft = holder.get_draft()
        assert draft.duration_days == 5
        assert draft.duration_hours == 40
        assert draft.duration_label == "5 días"

    def test_inverted_scenario_surfaces_warning(self, holder):
        holder.set_field("start_date", "2024-03-05")
        holder.set_field("end_date", "2024-03-01")

        draft = holder.get_draft()
        assert draft.duration_days == 0
        assert draft.range_warning == "La fecha de salida no puede ser mayor a la fecha de regreso."

    def test_mutations_are_visible_in_order(self, holder):
        holder.set_field("leave_type", "Permiso Personal")
        holder.set_field("department", "Finanzas")
        holder.set_field("leave_type", "Vacaciones")

        draft = holder.get_draft()
        assert draft.leave_type == "Vacaciones"
        assert draft.department == "Finanzas"
        assert holder.changes == [
            ("leave_type", "Permiso Personal"),
            ("department", "Finanzas"),
            ("leave_type", "Vacaciones"),
        ]

    def test_bad_date_keeps_draft(self, filled_holder):
        before = filled_holder.get_draft()

        with pytest.raises(ValidationError):
            filled_holder.set_field("start_date", "32/13/2024")

        assert filled_holder.get_draft() == before

    def test_select_employee(self, holder):
        holder.select_employee(Employee(id=2, name="Luis Andrade"))

        draft = holder.get_draft()
        assert draft.employee_id == 2
        assert draft.employee_name == "Luis Andrade"

        holder.select_employee(None)
        assert holder.get_draft().employee_name == ""
        assert holder.get_draft().employee_id is None

    def test_reset_restores_empty_draft(self, filled_holder):
        filled_holder.reset()

        assert filled_holder.get_draft() == empty_draft()
        assert filled_holder.changes == []

    def test_locked_holder_rejects_edits(self, filled_holder):
        """Edits during an in-flight submission are refused, not lost."""
        before = filled_holder.get_draft()
        filled_holder.locked = True

        with pytest.raises(SubmissionInProgressError):
            filled_holder.set_field("leave_type", "Permiso Personal")
        with pytest.raises(SubmissionInProgressError):
            filled_holder.reset()

        assert filled_holder.get_draft() == before

    def test_bad_employee_id_keeps_draft(self, filled_holder):
        before = filled_holder.get_draft()

        with pytest.raises(ValidationError):
            filled_holder.set_field("employee_id", {"id": 1})

        assert filled_holder.get_draft() == before


class TestFilterEmployees:
    """Test the employee search used by the name picker."""

    @pytest.fixture
    def employees(self):
        return [
            Employee(id=1, nombre="Ana Torres"),
            Employee(id=2, nombre="Luis Andrade"),
            Employee(id=3, nombre="María Anaya"),
        ]

    def test_case_insensitive_substring(self, employees):
        found = filter_employees(employees, "ANA")
        assert [e.id for e in found] == [1, 3]

    def test_empty_term_returns_everyone(self, employees):
        assert filter_employees(employees, "") == employees

    def test_no_match(self, employees):
        assert filter_employees(employees, "zz") == []
