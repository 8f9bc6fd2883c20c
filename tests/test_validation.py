"""Tests for form validation."""

import pytest
from datetime import date
from decimal import Decimal

from duogesto.models.records import (
    ExpenseRecurrence,
    IncomeRecurrence,
    PriceType,
    PropertyDeal,
    PropertyKind,
)
from duogesto.validation import RecordValidationError, RecordValidator


TODAY = date(2024, 5, 10)


@pytest.fixture
def validator():
    return RecordValidator(today=TODAY)


class TestIncomeForm:

    def test_valid_income(self, validator):
        result = validator.validate_income({
            "description": "Salary",
            "amount": "5000.00",
            "recurrence": "fixed",
            "effective_date": "2024-01-05",
        })
        assert result.is_valid
        assert result.cleaned["amount"] == Decimal("5000.00")
        assert result.cleaned["recurrence"] == IncomeRecurrence.FIXED_MONTHLY
        assert result.cleaned["effective_date"] == date(2024, 1, 5)

    def test_missing_date_defaults_to_today(self, validator):
        result = validator.validate_income({"description": "Gift", "amount": "50"})
        assert result.cleaned["effective_date"] == TODAY
        assert result.cleaned["recurrence"] == IncomeRecurrence.ONE_TIME

    def test_non_numeric_amount(self, validator):
        result = validator.validate_income({"description": "Gift", "amount": "abc"})
        assert result.has_errors
        issue = result.issues[0]
        assert issue.field == "amount"
        assert issue.issue_type == "invalid_format"
        assert issue.suggested_fix

    def test_missing_description_and_amount(self, validator):
        result = validator.validate_income({})
        assert {i.field for i in result.issues} == {"description", "amount"}

    def test_period_needs_months(self, validator):
        result = validator.validate_income({
            "description": "Contract",
            "amount": "100",
            "recurrence": "period",
            "period_months": "0",
        })
        assert [i.field for i in result.issues] == ["period_months"]

    def test_unknown_recurrence(self, validator):
        result = validator.validate_income({
            "description": "x", "amount": "1", "recurrence": "weekly",
        })
        assert result.issues[0].field == "recurrence"

    def test_bad_date(self, validator):
        result = validator.validate_income({
            "description": "x", "amount": "1", "effective_date": "31/12/2024",
        })
        assert result.issues[0].field == "effective_date"

    def test_zero_amount_is_only_a_warning(self, validator):
        result = validator.validate_income({"description": "x", "amount": "0"})
        assert result.is_valid
        assert result.warnings == ["Amount is zero or negative"]


class TestExpenseForm:

    def test_installment_expense(self, validator):
        result = validator.validate_expense({
            "description": "Sofa",
            "amount": "100",
            "recurrence": "installment",
            "installment_count": "12",
            "start_date": date(2024, 1, 15),
        })
        assert result.is_valid
        assert result.cleaned["recurrence"] == ExpenseRecurrence.INSTALLMENT
        assert result.cleaned["installment_count"] == 12
        assert result.cleaned["start_date"] == date(2024, 1, 15)

    def test_installment_count_must_be_whole(self, validator):
        result = validator.validate_expense({
            "description": "Sofa",
            "amount": "100",
            "recurrence": "installment",
            "installment_count": "2.5",
        })
        assert result.issues[0].field == "installment_count"

    def test_fixed_expense_ignores_count(self, validator):
        result = validator.validate_expense({
            "description": "Rent",
            "amount": "1500",
            "recurrence": "fixed",
            "installment_count": "abc",
        })
        assert result.is_valid


class TestOtherForms:

    def test_goal_defaults_amounts_to_zero(self, validator):
        result = validator.validate_goal({"title": "Car"})
        assert result.is_valid
        assert result.cleaned["goal_amount"] == Decimal("0")
        assert result.cleaned["current_amount"] == Decimal("0")

    def test_goal_needs_title(self, validator):
        result = validator.validate_goal({"goal_amount": "100"})
        assert result.issues[0].field == "title"

    def test_movement_must_be_positive(self, validator):
        assert validator.validate_movement({"amount": "0"}).has_errors
        assert validator.validate_movement({"amount": "-5"}).has_errors
        result = validator.validate_movement({"amount": "10", "reason": "  "})
        assert result.is_valid
        assert result.cleaned["reason"] is None


class TestPlanForms:

    def test_room_needs_label(self, validator):
        result = validator.validate_room({"label": "  ", "icon": "🛋️"})
        assert result.issues[0].field == "label"
        assert validator.validate_room({"label": "Sala"}).is_valid

    def test_home_item(self, validator):
        result = validator.validate_home_item({"name": "Sofa", "price": "2500.00", "link": " "})
        assert result.is_valid
        assert result.cleaned["price"] == Decimal("2500.00")
        assert result.cleaned["link"] is None

    def test_home_item_needs_name_and_price(self, validator):
        fields = {i.field for i in validator.validate_home_item({}).issues}
        assert fields == {"name", "price"}

    def test_property_defaults(self, validator):
        result = validator.validate_property({
            "city": "Curitiba", "neighborhood": "Batel", "price": "3000",
        })
        assert result.is_valid
        assert result.cleaned["deal"] == PropertyDeal.RENT
        assert result.cleaned["kind"] == PropertyKind.APARTMENT
        assert (result.cleaned["rooms"], result.cleaned["bathrooms"], result.cleaned["garage"]) == (1, 1, 0)

    def test_property_condo_only_when_flagged(self, validator):
        form = {
            "city": "Curitiba", "neighborhood": "Batel", "price": "3000",
            "condo_value": "600", "condo_includes": "água",
        }
        cleaned = validator.validate_property(form).cleaned
        assert cleaned["condo_value"] == Decimal("0")
        assert cleaned["condo_includes"] == ""

        cleaned = validator.validate_property({**form, "has_condo": True}).cleaned
        assert cleaned["condo_value"] == Decimal("600")
        assert cleaned["condo_includes"] == "água"

    def test_property_rejects_negative_counts(self, validator):
        result = validator.validate_property({
            "city": "Curitiba", "neighborhood": "Batel", "price": "3000", "garage": "-1",
        })
        assert [i.field for i in result.issues] == ["garage"]

    def test_travel(self, validator):
        result = validator.validate_travel({
            "location": "Lisboa",
            "price": "4000",
            "price_type": "PER_PERSON",
            "activities": [{"title": "Tram 28"}, {"title": "  "}, {"link": "x"}],
        })
        assert result.is_valid
        assert result.cleaned["price_type"] == PriceType.PER_PERSON
        assert result.cleaned["price"] == Decimal("4000")
        assert result.cleaned["activities"] == [{"title": "Tram 28", "link": None}]
        assert result.cleaned["city"] is None

    def test_travel_needs_location(self, validator):
        result = validator.validate_travel({"price": "100"})
        assert result.issues[0].field == "location"


class TestEnsureValid:

    def test_returns_cleaned_values(self, validator):
        cleaned = RecordValidator.ensure_valid(
            validator.validate_movement({"amount": "10"})
        )
        assert cleaned["amount"] == Decimal("10")

    def test_raises_with_issues(self, validator):
        with pytest.raises(RecordValidationError) as excinfo:
            RecordValidator.ensure_valid(validator.validate_income({}))
        assert len(excinfo.value.issues) == 2
        assert "Invalid income" in str(excinfo.value)

    def test_summary(self, validator):
        result = validator.validate_income({"description": "x", "amount": "abc"})
        summary = RecordValidator.get_user_friendly_summary(result)
        assert summary.startswith("Error: Amount must be a number")

    def test_summary_when_all_good(self, validator):
        result = validator.validate_movement({"amount": "10"})
        assert RecordValidator.get_user_friendly_summary(result) == "All good."
