"""
Form Validation

Forms arrive from the presentation layer as raw values (usually strings).
Validation happens in two stages:

STAGE 1 - SCHEMA: required fields present, numbers numeric, dates dates,
counts positive integers. Errors here block the write.

STAGE 2 - SEMANTIC: values that are legal but suspicious (a zero or
negative amount). These are warnings; the accrual engine accepts such
values and lets them flow through the arithmetic unchanged.

IMPORTANT: Validation NEVER silently fixes issues. The parsed values are
returned in ValidationResult.cleaned for the caller to use.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from duogesto.models.normalize import parse_bool, parse_date, parse_decimal, parse_int
from duogesto.models.records import (
    ExpenseRecurrence,
    IncomeRecurrence,
    PriceType,
    PropertyDeal,
    PropertyKind,
)
from duogesto.models.validation import ValidationIssue, ValidationResult


class RecordValidationError(Exception):
    """A submitted form failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        self.issues = result.issues
        messages = "; ".join(
            i.message for i in result.issues if i.severity == "error"
        )
        super().__init__(f"Invalid {result.record_type}: {messages}")


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _warning(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
    )


class RecordValidator:
    """
    Validates submitted forms for every record kind.

    Each validate_* method returns a ValidationResult; ensure_valid turns
    a failed result into a RecordValidationError.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    # -------------------------------------------------------------------------
    # Shared checks
    # -------------------------------------------------------------------------

    def _description(self, form: dict, issues: list, cleaned: dict, field: str = "description") -> None:
        text = str(form.get(field) or "").strip()
        if not text:
            issues.append(_error(field, "missing", f"{field.capitalize()} is required"))
        cleaned[field] = text

    def _amount(self, form: dict, issues: list, cleaned: dict, field: str = "amount", positive: bool = False) -> None:
        raw = form.get(field)
        if raw is None or str(raw).strip() == "":
            issues.append(_error(field, "missing", "Amount is required"))
            return
        amount = parse_decimal(raw)
        if amount is None:
            issues.append(_error(
                field,
                "invalid_format",
                f"Amount must be a number, got {raw!r}",
                "Use digits and a dot for decimals, e.g. 1250.50",
            ))
            return
        if amount <= 0:
            if positive:
                issues.append(_error(field, "invalid_value", "Amount must be greater than zero"))
            else:
                issues.append(_warning(field, "suspicious_value", "Amount is zero or negative"))
        cleaned[field] = amount

    def _date(self, form: dict, issues: list, cleaned: dict, field: str, required: bool = True) -> None:
        raw = form.get(field)
        if raw is None or raw == "":
            if required:
                issues.append(_error(field, "missing", f"{field} is required"))
            else:
                cleaned[field] = None
            return
        parsed = parse_date(raw)
        if parsed is None:
            issues.append(_error(field, "invalid_format", f"{field} must be a date (YYYY-MM-DD)"))
            return
        cleaned[field] = parsed

    def _count(self, form: dict, issues: list, cleaned: dict, field: str) -> None:
        count = parse_int(form.get(field))
        if count is None or count < 1:
            issues.append(_error(
                field,
                "invalid_value",
                f"{field} must be a whole number of at least 1",
            ))
            return
        cleaned[field] = count

    @staticmethod
    def _choice(form: dict, issues: list, cleaned: dict, field: str, enum_type: Any, default: Any) -> None:
        raw = form.get(field)
        if raw is None or raw == "":
            cleaned[field] = default
            return
        try:
            cleaned[field] = enum_type(raw)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_type)
            issues.append(_error(field, "invalid_value", f"{field} must be one of: {allowed}"))

    # -------------------------------------------------------------------------
    # Record forms
    # -------------------------------------------------------------------------

    def validate_income(self, form: dict) -> ValidationResult:
        """
        Income form: description, amount, category, recurrence,
        period_months (PERIOD only), effective_date.
        """
        issues: list[ValidationIssue] = []
        cleaned: dict = {"category": form.get("category") or None}

        self._description(form, issues, cleaned)
        self._amount(form, issues, cleaned)
        self._choice(form, issues, cleaned, "recurrence", IncomeRecurrence, IncomeRecurrence.ONE_TIME)
        if cleaned.get("recurrence") == IncomeRecurrence.PERIOD:
            self._count(form, issues, cleaned, "period_months")
        self._date(form, issues, cleaned, "effective_date", required=False)
        if cleaned.get("effective_date") is None and "effective_date" in cleaned:
            cleaned["effective_date"] = self.today

        return ValidationResult(record_type="income", issues=issues, cleaned=cleaned)

    def validate_expense(self, form: dict) -> ValidationResult:
        """
        Expense form: description, amount, category, recurrence,
        installment_count (INSTALLMENT only), start_date.

        For installments the amount typed in is the value of ONE
        installment; the caller stores amount * installment_count.
        """
        issues: list[ValidationIssue] = []
        cleaned: dict = {"category": form.get("category") or None}

        self._description(form, issues, cleaned)
        self._amount(form, issues, cleaned)
        self._choice(form, issues, cleaned, "recurrence", ExpenseRecurrence, ExpenseRecurrence.ONE_TIME)
        if cleaned.get("recurrence") == ExpenseRecurrence.INSTALLMENT:
            self._count(form, issues, cleaned, "installment_count")
        self._date(form, issues, cleaned, "start_date", required=False)
        if cleaned.get("start_date") is None and "start_date" in cleaned:
            cleaned["start_date"] = self.today

        return ValidationResult(record_type="expense", issues=issues, cleaned=cleaned)

    def validate_goal(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned: dict = {
            "institution_name": form.get("institution_name") or None,
            "account_ref": form.get("account_ref") or None,
            "owner_name": form.get("owner_name") or None,
        }

        self._description(form, issues, cleaned, field="title")
        for field in ("current_amount", "goal_amount", "monthly_target"):
            raw = form.get(field)
            if raw is None or str(raw).strip() == "":
                cleaned[field] = Decimal("0")
                continue
            self._amount(form, issues, cleaned, field=field)

        return ValidationResult(record_type="goal", issues=issues, cleaned=cleaned)

    def validate_movement(self, form: dict) -> ValidationResult:
        """Deposit / withdrawal / transfer: a strictly positive amount."""
        issues: list[ValidationIssue] = []
        cleaned: dict = {"reason": (form.get("reason") or "").strip() or None}
        self._amount(form, issues, cleaned, positive=True)
        return ValidationResult(record_type="goal_movement", issues=issues, cleaned=cleaned)

    # -------------------------------------------------------------------------
    # Home, properties and travels
    # -------------------------------------------------------------------------

    @staticmethod
    def _whole(form: dict, issues: list, cleaned: dict, field: str, default: int) -> None:
        raw = form.get(field)
        if raw is None or str(raw).strip() == "":
            cleaned[field] = default
            return
        value = parse_int(raw)
        if value is None or value < 0:
            issues.append(_error(field, "invalid_value", f"{field} must be a whole number, 0 or more"))
            return
        cleaned[field] = value

    def validate_room(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned: dict = {
            "icon": form.get("icon") or None,
            "color": form.get("color") or None,
        }
        self._description(form, issues, cleaned, field="label")
        return ValidationResult(record_type="room", issues=issues, cleaned=cleaned)

    def validate_home_item(self, form: dict) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned: dict = {"link": (form.get("link") or "").strip() or None}
        self._description(form, issues, cleaned, field="name")
        self._amount(form, issues, cleaned, field="price")
        return ValidationResult(record_type="home_item", issues=issues, cleaned=cleaned)

    def validate_property(self, form: dict) -> ValidationResult:
        """
        Property form. The condo value and description only count when
        has_condo is set; otherwise they are cleared.
        """
        issues: list[ValidationIssue] = []
        has_condo = parse_bool(form.get("has_condo"))
        cleaned: dict = {
            "link": (form.get("link") or "").strip() or None,
            "has_balcony": parse_bool(form.get("has_balcony")),
            "is_penthouse": parse_bool(form.get("is_penthouse")),
            "has_condo": has_condo,
            "condo_value": Decimal("0"),
            "condo_includes": "",
        }

        self._description(form, issues, cleaned, field="city")
        self._description(form, issues, cleaned, field="neighborhood")
        self._amount(form, issues, cleaned, field="price")
        self._choice(form, issues, cleaned, "deal", PropertyDeal, PropertyDeal.RENT)
        self._choice(form, issues, cleaned, "kind", PropertyKind, PropertyKind.APARTMENT)
        self._whole(form, issues, cleaned, "rooms", 1)
        self._whole(form, issues, cleaned, "bathrooms", 1)
        self._whole(form, issues, cleaned, "garage", 0)

        if has_condo:
            raw = form.get("condo_value")
            if raw is not None and str(raw).strip() != "":
                self._amount(form, issues, cleaned, field="condo_value")
            cleaned["condo_includes"] = str(form.get("condo_includes") or "").strip()

        return ValidationResult(record_type="property", issues=issues, cleaned=cleaned)

    def validate_travel(self, form: dict) -> ValidationResult:
        """Travel form. Activities without a title are dropped."""
        issues: list[ValidationIssue] = []
        cleaned: dict = {
            field: (str(form.get(field) or "").strip() or None)
            for field in ("city", "state", "banner_url", "link")
        }
        cleaned["activities"] = [
            {"title": str(a.get("title")).strip(), "link": a.get("link") or None}
            for a in form.get("activities") or []
            if isinstance(a, dict) and str(a.get("title") or "").strip()
        ]

        self._description(form, issues, cleaned, field="location")
        self._amount(form, issues, cleaned, field="price")
        self._choice(form, issues, cleaned, "price_type", PriceType, PriceType.TOTAL)
        return ValidationResult(record_type="travel", issues=issues, cleaned=cleaned)

    @staticmethod
    def ensure_valid(result: ValidationResult) -> dict:
        """Return the cleaned values or raise RecordValidationError."""
        if result.has_errors:
            raise RecordValidationError(result)
        return result.cleaned

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """One message the UI can show as-is."""
        if result.is_valid and not result.warnings:
            return "All good."
        lines = []
        for issue in result.issues:
            prefix = "Error" if issue.severity == "error" else "Attention"
            line = f"{prefix}: {issue.message}"
            if issue.suggested_fix:
                line += f" ({issue.suggested_fix})"
            lines.append(line)
        return "\n".join(lines)
