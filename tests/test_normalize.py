"""Tests for store boundary normalization."""

from datetime import date, datetime, timezone
from decimal import Decimal

from duogesto.models.normalize import (
    category_from_document,
    expense_from_document,
    goal_from_document,
    home_item_from_document,
    income_from_document,
    ledger_entry_from_document,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_decimal,
    parse_int,
    property_from_document,
    room_from_document,
    to_document,
    transaction_from_document,
    travel_from_document,
    user_from_document,
)
from duogesto.models.records import (
    FIXED_RECURRENCE_MONTHS,
    CategoryKind,
    Expense,
    ExpenseRecurrence,
    IncomeRecurrence,
    LegacyRecurrence,
    PriceType,
    PropertyDeal,
    PropertyKind,
    TransactionKind,
    UserRole,
)


class TestScalarParsers:

    def test_parse_decimal(self):
        assert parse_decimal("12.50") == Decimal("12.50")
        assert parse_decimal(3) == Decimal("3")
        assert parse_decimal(" 7 ") == Decimal("7")

    def test_parse_decimal_rejects_garbage(self):
        assert parse_decimal("abc") is None
        assert parse_decimal(None) is None
        assert parse_decimal(True) is None
        assert parse_decimal("NaN") is None
        assert parse_decimal("Infinity") is None

    def test_parse_int(self):
        assert parse_int("12") == 12
        assert parse_int(3.0) == 3
        assert parse_int("2.5") is None
        assert parse_int("x", default=1) == 1

    def test_parse_date_keeps_date_part(self):
        assert parse_date("2024-01-15T12:00:00.000Z") == date(2024, 1, 15)
        assert parse_date("2024-03-10") == date(2024, 3, 10)
        assert parse_date(datetime(2024, 5, 1, 8)) == date(2024, 5, 1)

    def test_parse_date_garbage_is_none(self):
        assert parse_date("not a date") is None
        assert parse_date("") is None
        assert parse_date({"seconds": 1}) is None

    def test_parse_datetime_with_zulu(self):
        parsed = parse_datetime("2024-01-15T12:00:00Z")
        assert parsed == datetime(2024, 1, 15, 12, tzinfo=timezone.utc)

    def test_parse_datetime_from_plain_date(self):
        assert parse_datetime("2024-01-15") == datetime(2024, 1, 15)


class TestIncomeDocuments:

    def test_legacy_fixed_income(self):
        income = income_from_document({
            "id": "i1",
            "description": "Salary",
            "amount": "5000",
            "type": "fixed",
            "totalMonths": 999,
            "date": "2024-01-05",
            "user": "Ana",
        })
        assert income.recurrence == IncomeRecurrence.FIXED_MONTHLY
        assert income.period_months == FIXED_RECURRENCE_MONTHS
        assert income.effective_date == date(2024, 1, 5)
        assert income.owner_name == "Ana"

    def test_legacy_period_income(self):
        income = income_from_document({"type": "period", "totalMonths": "3", "amount": 10})
        assert income.recurrence == IncomeRecurrence.PERIOD
        assert income.period_months == 3

    def test_date_falls_back_to_created_at(self):
        income = income_from_document({"createdAt": "2024-02-20T10:00:00.000Z"})
        assert income.effective_date == date(2024, 2, 20)

    def test_missing_dates_and_bad_amount(self):
        income = income_from_document({"amount": "abc"})
        assert income.effective_date is None
        assert income.amount is None
        assert income.recurrence == IncomeRecurrence.ONE_TIME


class TestExpenseDocuments:

    def test_is_installment_flag(self):
        expense = expense_from_document({
            "amount": 1200,
            "isInstallment": True,
            "totalInstallments": 12,
            "startDate": "2024-01-15",
        })
        assert expense.recurrence == ExpenseRecurrence.INSTALLMENT
        assert expense.installment_count == 12
        assert expense.start_date == date(2024, 1, 15)

    def test_fixed_wins_over_installment(self):
        expense = expense_from_document({"isFixed": True, "isInstallment": True})
        assert expense.recurrence == ExpenseRecurrence.FIXED
        assert expense.installment_count == 1

    def test_type_string(self):
        assert expense_from_document({"type": "installment"}).recurrence == ExpenseRecurrence.INSTALLMENT
        assert expense_from_document({"type": "unique"}).recurrence == ExpenseRecurrence.ONE_TIME

    def test_legacy_payments_are_deduplicated(self):
        expense = expense_from_document({
            "payments": [
                {"installment": 1, "user": "Ana", "date": "2024-01-10T00:00:00Z"},
                {"installment": 1, "user": "Bia"},
                {"installment": 0},
                "garbage",
                {"installment": "2"},
            ]
        })
        assert [p.installment_number for p in expense.payments] == [1, 2]
        assert expense.payments[0].by_whom == "Ana"

    def test_completed_flag_is_carried(self):
        assert expense_from_document({"completed": True}).completed is True
        assert expense_from_document({}).completed is None

    def test_round_trip_through_document(self):
        expense = Expense(
            description="Sofa",
            amount=Decimal("1200"),
            recurrence=ExpenseRecurrence.INSTALLMENT,
            installment_count=12,
            start_date=date(2024, 1, 15),
        )
        doc = to_document(expense)
        assert "id" not in doc
        assert doc["amount"] == "1200"
        again = expense_from_document(doc)
        assert again.amount == Decimal("1200")
        assert again.installment_count == 12
        assert again.start_date == date(2024, 1, 15)


class TestOtherDocuments:

    def test_transaction(self):
        tx = transaction_from_document({
            "type": "gain",
            "value": "100",
            "date": "2024-01-01",
            "recurrence": "duration",
            "endDate": "2024-06-30",
            "userId": "u1",
        })
        assert tx.kind == TransactionKind.GAIN
        assert tx.recurrence == LegacyRecurrence.DURATION
        assert tx.end_date == date(2024, 6, 30)
        assert tx.user_id == "u1"

    def test_goal_legacy_keys(self):
        goal = goal_from_document({
            "title": "Trip",
            "bankName": "Nubank",
            "currentAmount": "300",
            "goalAmount": "1000",
        })
        assert goal.institution_name == "Nubank"
        assert goal.current_amount == Decimal("300")
        assert goal.opening_amount == Decimal("0")

    def test_ledger_entry_legacy_keys(self):
        entry = ledger_entry_from_document({"bankId": "g1", "amount": "-30", "user": "Ana"})
        assert entry.goal_id == "g1"
        assert entry.amount == Decimal("-30")
        assert entry.by_whom == "Ana"

    def test_category_name_fallback(self):
        category = category_from_document({"id": "c1", "name": "Food", "type": "income"})
        assert category.label == "Food"
        assert category.kind == CategoryKind.INCOME

    def test_user_legacy_roles(self):
        user = user_from_document({
            "username": "Ana",
            "password": "secret",
            "role": "SUPERUSUARIO",
            "partnerId": "u2",
            "name": "Ana Maria",
        })
        assert user.username == "ana"
        assert user.password_hash == "secret"
        assert user.role == UserRole.SUPERUSER
        assert user.partner_user_id == "u2"
        assert user.display_name == "Ana Maria"

    def test_unknown_role_is_user(self):
        assert user_from_document({"username": "x", "role": "USUARIO"}).role == UserRole.USER


class TestPlanDocuments:

    def test_parse_bool(self):
        assert parse_bool(True)
        assert parse_bool("true")
        assert not parse_bool("false")
        assert not parse_bool("0")
        assert not parse_bool(None)

    def test_room_name_fallback(self):
        room = room_from_document({"id": "r1", "name": "Cozinha", "icon": "🍳"})
        assert room.label == "Cozinha"
        assert room.icon == "🍳"

    def test_home_item_legacy_keys(self):
        item = home_item_from_document({
            "id": "i1",
            "name": "Geladeira",
            "price": 3200,
            "room": "r1",
            "bought": True,
            "createdAt": "2024-02-01T10:00:00.000Z",
        })
        assert item.room_id == "r1"
        assert item.price == Decimal("3200")
        assert item.bought
        assert item.created_at.year == 2024

    def test_home_item_without_price(self):
        assert home_item_from_document({"name": "Vaso"}).price is None

    def test_property_legacy_keys(self):
        prop = property_from_document({
            "city": "Curitiba",
            "neighborhood": "Batel",
            "price": "3000",
            "type": "SALE",
            "subType": "CASA",
            "hasCondo": True,
            "condoValue": "650",
            "addedBy": "Ana",
            "favorites": ["Ana", "", None, "Bia"],
        })
        assert prop.deal == PropertyDeal.BUY
        assert prop.kind == PropertyKind.HOUSE
        assert prop.total_cost == Decimal("3650")
        assert prop.added_by == "Ana"
        assert prop.favorites == ["Ana", "Bia"]

    def test_property_condo_ignored_without_flag(self):
        prop = property_from_document({"price": "3000", "type": "RENT", "condoValue": "650"})
        assert prop.deal == PropertyDeal.RENT
        assert prop.total_cost == Decimal("3000")

    def test_property_counts_default(self):
        prop = property_from_document({"rooms": "", "garage": "-2"})
        assert (prop.rooms, prop.bathrooms, prop.garage) == (1, 1, 0)

    def test_travel_legacy_keys(self):
        travel = travel_from_document({
            "location": "Gramado",
            "price": "2500",
            "priceType": "PER_PERSON",
            "activities": [{"title": "Snowland"}, {"title": ""}],
            "isVisited": True,
            "visitDate": "2024-07-20",
            "reviewDuo1": {"name": "Ana", "text": "Frio!"},
            "reviewDuo2": {"name": "", "text": "Lindo"},
            "photosUrl": "https://photos.example/gramado",
            "comments": [
                {"id": 1718000000000, "user": "Bia", "userId": "u2", "text": "Vamos?"},
                {"id": 1718000000001, "user": "Ana", "text": ""},
            ],
        })
        assert travel.price_type == PriceType.PER_PERSON
        assert [a.title for a in travel.activities] == ["Snowland"]
        assert travel.is_visited
        assert travel.visit_date == date(2024, 7, 20)
        assert [(r.name, r.text) for r in travel.reviews] == [("Ana", "Frio!"), ("Duo", "Lindo")]
        assert travel.photos_url == "https://photos.example/gramado"
        assert len(travel.comments) == 1
        assert travel.comments[0].id == "1718000000000"
        assert travel.comments[0].author == "Bia"
        assert travel.comments[0].user_id == "u2"

    def test_travel_unknown_price_type_is_total(self):
        assert travel_from_document({"priceType": "weird"}).price_type == PriceType.TOTAL
