"""
Store Boundary Normalization

Every document read from the record store goes through this module
before the rest of the system sees it. Documents written by the first
version of the app use camelCase keys and several overlapping flags for
the same concept:

    incomes:  type ("unique" | "fixed" | "period"), totalMonths, date
    expenses: type, isFixed, isInstallment, totalInstallments, startDate,
              payments[].installment, payments[].user
    users:    name, password, partnerId, role "SUPERUSUARIO" / "USUARIO"
    properties: type, subType, hasCondo, condoValue, isPenthouse, addedBy
    travels:  priceType, isVisited, visitDate, reviewDuo1, reviewDuo2,
              comments[].user, comments[].date
    home_items: room (the room id)

Documents written by this package use the model field names. Both shapes
are accepted; models are always written back in the new shape.

DESIGN DECISION: Nothing in here raises on bad data. An unparseable date
or amount becomes None and the record is carried along, so the accrual
engine can decide (fail-closed) instead of the loader.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel

from duogesto.models.records import (
    FIXED_RECURRENCE_MONTHS,
    BankGoal,
    Category,
    CategoryKind,
    Expense,
    ExpenseRecurrence,
    GoalLedgerEntry,
    HomeItem,
    Income,
    IncomeRecurrence,
    InstallmentPayment,
    LegacyRecurrence,
    PriceType,
    Property,
    PropertyDeal,
    PropertyKind,
    Room,
    Transaction,
    TransactionKind,
    Travel,
    TravelActivity,
    TravelComment,
    TravelReview,
    User,
    UserRole,
)


_INCOME_KINDS = {
    "unique": IncomeRecurrence.ONE_TIME,
    "one_time": IncomeRecurrence.ONE_TIME,
    "fixed": IncomeRecurrence.FIXED_MONTHLY,
    "fixed_monthly": IncomeRecurrence.FIXED_MONTHLY,
    "period": IncomeRecurrence.PERIOD,
}

_EXPENSE_KINDS = {
    "unique": ExpenseRecurrence.ONE_TIME,
    "one_time": ExpenseRecurrence.ONE_TIME,
    "fixed": ExpenseRecurrence.FIXED,
    "installment": ExpenseRecurrence.INSTALLMENT,
}

_ROLES = {
    "ADMIN": UserRole.ADMIN,
    "SUPERUSER": UserRole.SUPERUSER,
    "SUPERUSUARIO": UserRole.SUPERUSER,
}


# =============================================================================
# SCALAR PARSERS
# =============================================================================

def first_of(doc: dict, *keys: str) -> Any:
    """Return the first value among keys that is not None or empty."""
    for key in keys:
        value = doc.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse an amount. Non-numeric and non-finite values give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def parse_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    amount = parse_decimal(value)
    if amount is None or amount != amount.to_integral_value():
        return default
    return int(amount)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp ("2024-01-15T12:00:00.000Z") or a plain date.

    Anything else (store server timestamps, garbage strings) gives None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    parsed = parse_date(text)
    if parsed is None:
        return None
    return datetime(parsed.year, parsed.month, parsed.day)


def parse_date(value: Any) -> Optional[date]:
    """
    Parse the calendar date of a value.

    Only the date part of a timestamp is kept, the way the record was
    entered in the form ("YYYY-MM-DD" at noon UTC).
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def parse_bool(value: Any) -> bool:
    """Truthiness of a stored flag; "false"/"0" strings count as False."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "sim")
    return bool(value)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


# =============================================================================
# DOCUMENT -> MODEL
# =============================================================================

def income_from_document(doc: dict) -> Income:
    raw_kind = first_of(doc, "recurrence", "type")
    recurrence = _INCOME_KINDS.get(str(raw_kind).lower(), IncomeRecurrence.ONE_TIME)

    if recurrence == IncomeRecurrence.FIXED_MONTHLY:
        period_months = FIXED_RECURRENCE_MONTHS
    elif recurrence == IncomeRecurrence.PERIOD:
        period_months = parse_int(first_of(doc, "period_months", "totalMonths"), default=1)
    else:
        period_months = 1

    return Income(
        id=_text(doc.get("id")),
        description=str(doc.get("description") or ""),
        amount=parse_decimal(doc.get("amount")),
        category=_text(doc.get("category")),
        recurrence=recurrence,
        period_months=period_months,
        effective_date=parse_date(
            first_of(doc, "effective_date", "date", "created_at", "createdAt")
        ),
        owner_name=_text(first_of(doc, "owner_name", "user")),
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
    )


def _expense_recurrence(doc: dict) -> ExpenseRecurrence:
    explicit = doc.get("recurrence")
    if explicit:
        return _EXPENSE_KINDS.get(str(explicit).lower(), ExpenseRecurrence.ONE_TIME)

    # Legacy flags: fixed wins over installment, same as the old screens.
    legacy_type = str(doc.get("type") or "").lower()
    if doc.get("isFixed") or legacy_type == "fixed":
        return ExpenseRecurrence.FIXED
    if doc.get("isInstallment") or legacy_type == "installment":
        return ExpenseRecurrence.INSTALLMENT
    return ExpenseRecurrence.ONE_TIME


def payment_from_document(doc: dict) -> Optional[InstallmentPayment]:
    number = parse_int(first_of(doc, "installment_number", "installment"))
    if number is None or number < 1:
        return None
    return InstallmentPayment(
        installment_number=number,
        paid_at=parse_datetime(first_of(doc, "paid_at", "paidAt", "date")),
        by_whom=_text(first_of(doc, "by_whom", "user")),
        source=_text(doc.get("source")),
    )


def expense_from_document(doc: dict) -> Expense:
    recurrence = _expense_recurrence(doc)
    if recurrence == ExpenseRecurrence.INSTALLMENT:
        installment_count = parse_int(
            first_of(doc, "installment_count", "totalInstallments"), default=1
        )
    else:
        installment_count = 1

    # One entry per installment number, first one wins.
    payments: list[InstallmentPayment] = []
    seen: set[int] = set()
    for raw in doc.get("payments") or []:
        if not isinstance(raw, dict):
            continue
        payment = payment_from_document(raw)
        if payment is None or payment.installment_number in seen:
            continue
        seen.add(payment.installment_number)
        payments.append(payment)

    due_day = parse_int(first_of(doc, "due_day", "dueDay"))
    if due_day is not None and not 1 <= due_day <= 31:
        due_day = None

    completed = doc.get("completed")

    return Expense(
        id=_text(doc.get("id")),
        description=str(doc.get("description") or ""),
        amount=parse_decimal(doc.get("amount")),
        category=_text(doc.get("category")),
        recurrence=recurrence,
        installment_count=installment_count,
        start_date=parse_date(
            first_of(doc, "start_date", "startDate", "created_at", "createdAt")
        ),
        due_day=due_day,
        owner_name=_text(first_of(doc, "owner_name", "user")),
        payments=payments,
        completed=completed if isinstance(completed, bool) else None,
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
    )


def transaction_from_document(doc: dict) -> Transaction:
    raw_kind = str(first_of(doc, "kind", "type") or "").upper()
    raw_recurrence = str(doc.get("recurrence") or "").upper()
    return Transaction(
        id=_text(doc.get("id")),
        kind=TransactionKind.GAIN if raw_kind == "GAIN" else TransactionKind.EXPENSE,
        description=str(doc.get("description") or ""),
        value=parse_decimal(first_of(doc, "value", "amount")),
        category=_text(doc.get("category")),
        transaction_date=parse_date(first_of(doc, "transaction_date", "date")),
        recurrence=(
            LegacyRecurrence(raw_recurrence)
            if raw_recurrence in LegacyRecurrence.__members__
            else LegacyRecurrence.ONE_TIME
        ),
        end_date=parse_date(first_of(doc, "end_date", "endDate")),
        user_id=_text(first_of(doc, "user_id", "userId")),
    )


def goal_from_document(doc: dict) -> BankGoal:
    zero = Decimal("0")
    return BankGoal(
        id=_text(doc.get("id")),
        title=str(doc.get("title") or ""),
        institution_name=_text(first_of(doc, "institution_name", "bankName")),
        account_ref=_text(first_of(doc, "account_ref", "accountInfo")),
        owner_name=_text(first_of(doc, "owner_name", "responsible")),
        current_amount=parse_decimal(first_of(doc, "current_amount", "currentAmount")) or zero,
        goal_amount=parse_decimal(first_of(doc, "goal_amount", "goalAmount")) or zero,
        monthly_target=parse_decimal(first_of(doc, "monthly_target", "monthlyTarget")) or zero,
        opening_amount=parse_decimal(doc.get("opening_amount")) or zero,
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
        updated_at=parse_datetime(first_of(doc, "updated_at", "updatedAt")),
    )


def ledger_entry_from_document(doc: dict) -> GoalLedgerEntry:
    return GoalLedgerEntry(
        id=_text(doc.get("id")),
        goal_id=str(first_of(doc, "goal_id", "bankId") or ""),
        amount=parse_decimal(doc.get("amount")) or Decimal("0"),
        by_whom=_text(first_of(doc, "by_whom", "user")),
        reason=_text(doc.get("reason")),
        moved_at=parse_datetime(first_of(doc, "moved_at", "date")),
    )


def category_from_document(doc: dict) -> Category:
    raw_kind = str(first_of(doc, "kind", "type") or "").upper()
    return Category(
        id=_text(doc.get("id")),
        label=str(first_of(doc, "label", "name") or doc.get("id") or ""),
        icon=_text(doc.get("icon")),
        color=_text(doc.get("color")),
        kind=CategoryKind.INCOME if raw_kind == "INCOME" else CategoryKind.EXPENSE,
    )


def user_from_document(doc: dict) -> User:
    return User(
        id=_text(doc.get("id")),
        display_name=str(first_of(doc, "display_name", "name") or ""),
        username=str(doc.get("username") or doc.get("id") or "unknown"),
        password_hash=_text(first_of(doc, "password_hash", "password")),
        role=_ROLES.get(str(doc.get("role") or "").upper(), UserRole.USER),
        partner_user_id=_text(first_of(doc, "partner_user_id", "partnerId")),
        accounting_start_date=parse_date(
            first_of(doc, "accounting_start_date", "accountingStartDate")
        ),
        email=_text(doc.get("email")),
        phone=_text(doc.get("phone")),
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
    )


def _non_negative(value: Any, default: int) -> int:
    return max(parse_int(value, default=default) or 0, 0)


def _names(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(name) for name in value if name]


def room_from_document(doc: dict) -> Room:
    return Room(
        id=_text(doc.get("id")),
        label=str(first_of(doc, "label", "name") or ""),
        icon=_text(doc.get("icon")),
        color=_text(doc.get("color")),
    )


def home_item_from_document(doc: dict) -> HomeItem:
    return HomeItem(
        id=_text(doc.get("id")),
        name=str(doc.get("name") or ""),
        price=parse_decimal(doc.get("price")),
        link=doc.get("link") or None,
        room_id=_text(first_of(doc, "room_id", "room")),
        bought=parse_bool(doc.get("bought")),
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
    )


def property_from_document(doc: dict) -> Property:
    zero = Decimal("0")
    # The old screens show anything that is not RENT as a purchase.
    raw_deal = str(first_of(doc, "deal", "type") or "").upper()
    raw_kind = str(first_of(doc, "kind", "subType") or "").upper()
    return Property(
        id=_text(doc.get("id")),
        city=str(doc.get("city") or ""),
        neighborhood=str(doc.get("neighborhood") or ""),
        price=parse_decimal(doc.get("price")) or zero,
        deal=PropertyDeal.RENT if raw_deal == "RENT" else PropertyDeal.BUY,
        kind=PropertyKind.HOUSE if raw_kind in ("CASA", "HOUSE") else PropertyKind.APARTMENT,
        rooms=_non_negative(doc.get("rooms"), 1),
        bathrooms=_non_negative(doc.get("bathrooms"), 1),
        garage=_non_negative(doc.get("garage"), 0),
        has_balcony=parse_bool(first_of(doc, "has_balcony", "hasBalcony")),
        is_penthouse=parse_bool(first_of(doc, "is_penthouse", "isPenthouse")),
        link=doc.get("link") or None,
        has_condo=parse_bool(first_of(doc, "has_condo", "hasCondo")),
        condo_value=parse_decimal(first_of(doc, "condo_value", "condoValue")) or zero,
        condo_includes=str(first_of(doc, "condo_includes", "condoIncludes") or ""),
        added_by=_text(first_of(doc, "added_by", "addedBy")),
        favorites=_names(doc.get("favorites")),
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
        updated_at=parse_datetime(first_of(doc, "updated_at", "updatedAt")),
    )


def _reviews(doc: dict) -> list[TravelReview]:
    raw_reviews = doc.get("reviews")
    if not isinstance(raw_reviews, list):
        raw_reviews = [doc.get("reviewDuo1"), doc.get("reviewDuo2")]
    reviews = []
    for raw in raw_reviews:
        if isinstance(raw, dict) and (raw.get("name") or raw.get("text")):
            reviews.append(TravelReview(
                name=str(raw.get("name") or "Duo"),
                text=str(raw.get("text") or ""),
            ))
    return reviews


def travel_from_document(doc: dict) -> Travel:
    raw_price_type = str(first_of(doc, "price_type", "priceType") or "").upper()

    activities = [
        TravelActivity(title=str(raw["title"]).strip(), link=raw.get("link") or None)
        for raw in doc.get("activities") or []
        if isinstance(raw, dict) and str(raw.get("title") or "").strip()
    ]
    comments = [
        TravelComment(
            id=str(raw["id"]),
            author=str(first_of(raw, "author", "user") or ""),
            user_id=_text(first_of(raw, "user_id", "userId")),
            text=str(raw["text"]),
            posted_at=parse_datetime(first_of(raw, "posted_at", "date")),
        )
        for raw in doc.get("comments") or []
        if isinstance(raw, dict) and raw.get("id") and raw.get("text")
    ]

    return Travel(
        id=_text(doc.get("id")),
        location=str(doc.get("location") or ""),
        city=_text(doc.get("city")),
        state=_text(doc.get("state")),
        price=parse_decimal(doc.get("price")) or Decimal("0"),
        price_type=(
            PriceType(raw_price_type)
            if raw_price_type in PriceType.__members__
            else PriceType.TOTAL
        ),
        activities=activities,
        banner_url=_text(first_of(doc, "banner_url", "bannerUrl")),
        link=doc.get("link") or None,
        added_by=_text(first_of(doc, "added_by", "addedBy")),
        favorites=_names(doc.get("favorites")),
        comments=comments,
        is_visited=parse_bool(first_of(doc, "is_visited", "isVisited")),
        visit_date=parse_date(first_of(doc, "visit_date", "visitDate")),
        reviews=_reviews(doc),
        photos_url=_text(first_of(doc, "photos_url", "photosUrl")),
        visited_at=parse_datetime(first_of(doc, "visited_at", "visitedAt")),
        created_at=parse_datetime(first_of(doc, "created_at", "createdAt")),
        updated_at=parse_datetime(first_of(doc, "updated_at", "updatedAt")),
    )


# =============================================================================
# MODEL -> DOCUMENT
# =============================================================================

def to_document(model: BaseModel) -> dict:
    """
    Serialize a model for the store.

    Decimals and dates become strings; the id lives outside the document.
    """
    return model.model_dump(mode="json", exclude={"id"})
