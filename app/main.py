"""
Streamlit Frontend for DuoGesto

The screens the couple uses every day: the month dashboard, the cash
flow, the savings goals (DuoBank), travels, the home shopping list, the
properties being compared and, for admins, user management.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every number shown comes from the accrual core, never from the UI
3. Clear error messages in simple language
4. Visual feedback for all operations

The UI holds no business rules: it collects forms, calls the flows and
shows what they return or raise.
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from duogesto.auth import AuthenticationError, PermissionDeniedError, require_admin
from duogesto.config import get_settings, validate_all_settings
from duogesto.goals import InsufficientFundsError
from duogesto.models.records import (
    ExpenseRecurrence,
    IncomeRecurrence,
    PriceType,
    PropertyDeal,
    PropertyKind,
    User,
    UserRole,
)
from duogesto.orchestrator import AppComponents, create_app_components
from duogesto.services.storage import StorageError
from duogesto.validation import RecordValidationError, RecordValidator


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


# Page configuration
st.set_page_config(
    page_title="DuoGesto",
    page_icon="💑",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(value: Decimal) -> str:
    return f"R$ {value:,.2f}"


def show_validation_error(error: RecordValidationError) -> None:
    st.error(RecordValidator.get_user_friendly_summary(error.result))


def main():
    """Main application entry point."""
    components = get_components()

    if "user" not in st.session_state:
        st.session_state.user = None

    user = st.session_state.user
    if user is None:
        render_login_page(components)
        return

    st.sidebar.title("💑 DuoGesto")
    st.sidebar.markdown(f"Logged in as **{user.display_name or user.username}**")
    st.sidebar.markdown("---")

    pages = ["📊 Dashboard", "💸 Cash Flow", "🏦 DuoBank", "✈️ Travel", "🏠 Our Home", "🏘️ Properties"]
    if user.is_admin:
        pages.append("👥 Users")
    pages.append("⚙️ Settings")

    page = st.sidebar.radio("Navigate to:", pages, index=0)

    if st.sidebar.button("Log out"):
        st.session_state.user = None
        st.rerun()

    if page == "📊 Dashboard":
        render_dashboard_page(components, user)
    elif page == "💸 Cash Flow":
        render_cash_flow_page(components, user)
    elif page == "🏦 DuoBank":
        render_goals_page(components, user)
    elif page == "✈️ Travel":
        render_travel_page(components, user)
    elif page == "🏠 Our Home":
        render_home_page(components, user)
    elif page == "🏘️ Properties":
        render_properties_page(components, user)
    elif page == "👥 Users":
        render_users_page(components, user)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_login_page(components: AppComponents):
    st.title("💑 DuoGesto")
    st.markdown("Log in to see the couple's finances.")

    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        try:
            st.session_state.user = run_async(
                components.user_service.authenticate(username, password)
            )
            st.rerun()
        except AuthenticationError:
            st.error("Wrong username or password.")


# =============================================================================
# DASHBOARD
# =============================================================================

def _selected_month() -> tuple[int, int]:
    if "view_month" not in st.session_state:
        today = date.today()
        st.session_state.view_month = (today.month, today.year)
    return st.session_state.view_month


def _shift_month(delta: int) -> None:
    month, year = _selected_month()
    index = year * 12 + (month - 1) + delta
    st.session_state.view_month = (index % 12 + 1, index // 12)


def render_dashboard_page(components: AppComponents, user: User):
    st.title("📊 Dashboard")
    settings = get_settings().app

    col1, col2, col3 = st.columns([1, 3, 1])
    with col1:
        if st.button("◀ Previous"):
            _shift_month(-1)
            st.rerun()
    with col3:
        if st.button("Next ▶"):
            _shift_month(1)
            st.rerun()
    month, year = _selected_month()
    with col2:
        st.subheader(f"{MONTH_NAMES[month - 1]} {year}")

    percent = st.slider(
        "Spending target (% of the month's income)",
        min_value=5,
        max_value=95,
        value=settings.default_spending_percent,
        step=5,
    )

    reset_month = st.session_state.get("reset_month")
    try:
        report = run_async(components.finance_flow.month_report(
            user, month, year, reset_month=reset_month, spending_percent=percent,
        ))
    except StorageError as e:
        st.error(f"Could not load your records: {e}")
        return

    accrual = report.accrual
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Income", money(accrual.total_income))
    c2.metric("Expenses", money(accrual.total_expense))
    c3.metric("Month net", money(accrual.net))
    c4.metric("Accumulated", money(report.balance.accumulated))

    spending = report.spending
    st.markdown("### Spending target")
    st.markdown(
        f"Spend up to **{money(spending.spending_limit)}**, "
        f"keep **{money(spending.expected_reserve)}** in reserve."
    )
    if accrual.total_expense > spending.spending_limit:
        st.warning("This month's expenses are above the target.")

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("### Expenses by category")
        if report.expenses_by_category:
            for item in report.expenses_by_category:
                st.markdown(f"{item.icon or '•'} **{item.name}**: {money(item.total)}")
        else:
            st.info("No expenses this month.")
    with col2:
        st.markdown("### Recent movements")
        for line in report.recent:
            sign = "+" if line.record_type == "income" else "-"
            st.markdown(
                f"{line.reference_date:%d/%m/%Y} {line.description}: "
                f"{sign}{money(line.amount)}"
            )

    with st.expander("Reset accumulated balance"):
        st.markdown(
            "Start counting again from the month after the one chosen here."
        )
        chosen = st.date_input("Zero the balance at the end of", value=reset_month)
        if st.button("Apply reset"):
            st.session_state.reset_month = chosen
            st.rerun()
        if reset_month and st.button("Clear reset"):
            st.session_state.reset_month = None
            st.rerun()

    stats, legacy_balance = run_async(components.finance_flow.legacy_month(user, month, year))
    if stats.transaction_ids:
        with st.expander("Legacy ledger"):
            st.markdown(f"Gains: {money(stats.gains)}  Expenses: {money(stats.expenses)}")
            st.markdown(f"Accumulated: {money(legacy_balance.accumulated)}")


# =============================================================================
# CASH FLOW
# =============================================================================

def render_cash_flow_page(components: AppComponents, user: User):
    st.title("💸 Cash Flow")
    flow = components.finance_flow
    owner = user.display_name or user.username

    tab_in, tab_out = st.tabs(["Incomes", "Expenses"])

    with tab_in:
        with st.form("new_income", clear_on_submit=True):
            description = st.text_input("Description *")
            amount = st.text_input("Amount (R$) *")
            recurrence = st.selectbox(
                "Recurrence",
                options=list(IncomeRecurrence),
                format_func=lambda x: x.name.replace("_", " ").title(),
            )
            period_months = st.number_input("Months (period only)", min_value=1, value=1)
            effective_date = st.date_input("Effective date", value=date.today())
            category = st.text_input("Category")
            if st.form_submit_button("Add income", type="primary"):
                try:
                    run_async(flow.add_income({
                        "description": description,
                        "amount": amount,
                        "recurrence": recurrence.value,
                        "period_months": period_months,
                        "effective_date": effective_date,
                        "category": category,
                    }, owner_name=owner))
                    st.success("Income saved.")
                except RecordValidationError as e:
                    show_validation_error(e)
                except StorageError as e:
                    st.error(f"Failed to save: {e}")

        for income in run_async(flow.load_incomes()):
            col1, col2 = st.columns([5, 1])
            col1.markdown(
                f"**{income.description}** {money(income.amount or Decimal('0'))} "
                f"({income.recurrence.name.replace('_', ' ').lower()})"
            )
            if col2.button("🗑️", key=f"del_income_{income.id}"):
                run_async(flow.delete_income(income.id))
                st.rerun()

    with tab_out:
        with st.form("new_expense", clear_on_submit=True):
            description = st.text_input("Description *")
            amount = st.text_input(
                "Amount (R$) *",
                help="For installments, the value of ONE installment",
            )
            recurrence = st.selectbox(
                "Recurrence",
                options=list(ExpenseRecurrence),
                format_func=lambda x: x.name.replace("_", " ").title(),
            )
            installment_count = st.number_input("Installments", min_value=1, value=1)
            start_date = st.date_input("Start date", value=date.today())
            category = st.text_input("Category")
            if st.form_submit_button("Add expense", type="primary"):
                try:
                    run_async(flow.add_expense({
                        "description": description,
                        "amount": amount,
                        "recurrence": recurrence.value,
                        "installment_count": installment_count,
                        "start_date": start_date,
                        "category": category,
                    }, owner_name=owner))
                    st.success("Expense saved.")
                except RecordValidationError as e:
                    show_validation_error(e)
                except StorageError as e:
                    st.error(f"Failed to save: {e}")

        for expense in run_async(flow.load_expenses()):
            with st.expander(f"{expense.description} {money(expense.amount or Decimal('0'))}"):
                if expense.recurrence == ExpenseRecurrence.INSTALLMENT:
                    cols = st.columns(min(expense.installment_count, 12))
                    for n in range(1, expense.installment_count + 1):
                        label = f"{'✅' if expense.is_paid(n) else '⬜'} {n}"
                        if cols[(n - 1) % len(cols)].button(label, key=f"pay_{expense.id}_{n}"):
                            run_async(components.installment_tracker.toggle_payment(
                                expense.id, n, by_whom=owner
                            ))
                            st.rerun()
                if st.button("Delete", key=f"del_expense_{expense.id}"):
                    run_async(flow.delete_expense(expense.id))
                    st.rerun()


# =============================================================================
# DUOBANK
# =============================================================================

def render_goals_page(components: AppComponents, user: User):
    st.title("🏦 DuoBank")
    ledger = components.goal_ledger
    validator = RecordValidator()
    owner = user.display_name or user.username

    with st.expander("➕ New goal"):
        with st.form("new_goal", clear_on_submit=True):
            title = st.text_input("Title *")
            goal_amount = st.text_input("Goal amount (R$)")
            current_amount = st.text_input("Already saved (R$)")
            monthly_target = st.text_input("Monthly target (R$)")
            institution = st.text_input("Bank")
            if st.form_submit_button("Create goal", type="primary"):
                result = validator.validate_goal({
                    "title": title,
                    "goal_amount": goal_amount,
                    "current_amount": current_amount,
                    "monthly_target": monthly_target,
                    "institution_name": institution,
                    "owner_name": owner,
                })
                try:
                    cleaned = validator.ensure_valid(result)
                    run_async(ledger.create_goal(**cleaned))
                    st.success("Goal created.")
                except RecordValidationError as e:
                    show_validation_error(e)

    for goal in run_async(ledger.list_goals()):
        st.markdown("---")
        st.subheader(goal.title)
        st.progress(min(float(goal.progress_percent) / 100, 1.0))
        st.markdown(
            f"{money(goal.current_amount)} of {money(goal.goal_amount)} "
            f"({goal.progress_percent:.0f}%)"
        )

        col1, col2, col3 = st.columns(3)
        amount = col1.text_input("Amount (R$)", key=f"amount_{goal.id}")
        reason = col2.text_input("Reason", key=f"reason_{goal.id}")
        action = col3.selectbox(
            "Action", ["Deposit", "Withdraw", "Transfer from the month"], key=f"action_{goal.id}"
        )
        if st.button("Apply", key=f"apply_{goal.id}"):
            try:
                cleaned = validator.ensure_valid(
                    validator.validate_movement({"amount": amount, "reason": reason})
                )
                if action == "Deposit":
                    run_async(ledger.deposit(goal.id, cleaned["amount"], owner, cleaned["reason"]))
                elif action == "Withdraw":
                    run_async(ledger.withdraw(goal.id, cleaned["amount"], owner, cleaned["reason"]))
                else:
                    run_async(ledger.transfer(goal.id, cleaned["amount"], owner))
                st.rerun()
            except RecordValidationError as e:
                show_validation_error(e)
            except InsufficientFundsError as e:
                st.error(f"Not enough money in this goal: {money(e.available)} available.")

        with st.expander("History"):
            for entry in run_async(ledger.history(goal.id)):
                col1, col2 = st.columns([5, 1])
                when = f"{entry.moved_at:%d/%m/%Y}" if entry.moved_at else "-"
                col1.markdown(
                    f"{when} {entry.by_whom or ''} {money(entry.amount)} {entry.reason or ''}"
                )
                if col2.button("↩️", key=f"reverse_{entry.id}"):
                    run_async(ledger.reverse(entry.id))
                    st.rerun()
            if st.button("Recompute balance", key=f"reconcile_{goal.id}"):
                run_async(ledger.reconcile(goal.id))
                st.rerun()


def render_travel_page(components: AppComponents, user: User):
    st.title("✈️ Travel")
    st.markdown("Places we want to go, and what we thought once we went.")
    planner = components.travel_planner
    me = user.display_name or user.username

    with st.expander("➕ New destination"):
        with st.form("new_travel", clear_on_submit=True):
            location = st.text_input("Destination *")
            col1, col2 = st.columns(2)
            city = col1.text_input("City")
            state = col2.text_input("State")
            price = st.text_input("Price (R$) *")
            price_type = st.radio(
                "Price is",
                options=list(PriceType),
                format_func=lambda x: "Total" if x == PriceType.TOTAL else "Per person",
            )
            activities = st.text_area("Activities (one per line)")
            link = st.text_input("Link")
            banner_url = st.text_input("Banner image URL")
            create_goal = st.checkbox("Also open a savings goal in DuoBank")
            if st.form_submit_button("Save destination", type="primary"):
                try:
                    travel, goal = run_async(planner.save_travel(
                        {
                            "location": location,
                            "city": city,
                            "state": state,
                            "price": price,
                            "price_type": price_type.value,
                            "activities": [{"title": line} for line in activities.splitlines()],
                            "link": link,
                            "banner_url": banner_url,
                        },
                        added_by=me,
                        create_goal=create_goal,
                    ))
                    st.success(f"'{travel.location}' saved.")
                    if goal is not None:
                        st.success(f"Goal '{goal.title}' created for {money(goal.goal_amount)}.")
                except RecordValidationError as e:
                    show_validation_error(e)

    for travel in run_async(planner.list_travels()):
        st.markdown("---")
        header = f"{'✅ ' if travel.is_visited else ''}{travel.location}"
        col1, col2 = st.columns([5, 1])
        col1.subheader(header)
        star = "⭐" if me in travel.favorites else "☆"
        if col2.button(f"{star} {len(travel.favorites)}", key=f"fav_travel_{travel.id}"):
            run_async(planner.toggle_favorite(travel.id, me))
            st.rerun()

        place = ", ".join(p for p in (travel.city, travel.state) if p)
        quoted = "per person" if travel.price_type == PriceType.PER_PERSON else "total"
        st.markdown(f"{place} · {money(travel.price)} {quoted}")
        for activity in travel.activities:
            st.markdown(f"- {activity.title}")

        if travel.is_visited:
            when = f"{travel.visit_date:%d/%m/%Y}" if travel.visit_date else "-"
            st.markdown(f"Visited on {when}")
            for review in travel.reviews:
                st.markdown(f"**{review.name}:** {review.text}")
            if travel.photos_url:
                st.markdown(f"[Photos]({travel.photos_url})")
        else:
            with st.expander("Mark as visited"):
                with st.form(f"visit_{travel.id}"):
                    visit_date = st.date_input("Visit date", value=date.today())
                    review_1 = st.text_area(f"Review by {me}")
                    other = st.text_input("Second reviewer", value="Duo")
                    review_2 = st.text_area("Their review")
                    photos_url = st.text_input("Photo album link")
                    if st.form_submit_button("Save visit"):
                        run_async(planner.record_visit(
                            travel.id,
                            visit_date,
                            [{"name": me, "text": review_1}, {"name": other, "text": review_2}],
                            photos_url,
                        ))
                        st.rerun()

        with st.expander(f"💬 Comments ({len(travel.comments)})"):
            for comment in travel.comments:
                col1, col2 = st.columns([5, 1])
                col1.markdown(f"**{comment.author}:** {comment.text}")
                if comment.user_id == user.id and col2.button("🗑️", key=f"del_comment_{comment.id}"):
                    run_async(planner.delete_comment(travel.id, comment.id))
                    st.rerun()
            text = st.text_input("Write a comment", key=f"comment_{travel.id}")
            if st.button("Send", key=f"send_{travel.id}"):
                try:
                    run_async(planner.add_comment(travel.id, user, text))
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))

        if st.button("Delete destination", key=f"del_travel_{travel.id}"):
            run_async(planner.delete_travel(travel.id))
            st.rerun()


# =============================================================================
# HOME
# =============================================================================

def render_home_page(components: AppComponents, user: User):
    st.title("🏠 Our Home")
    planner = components.home_planner
    summary = run_async(planner.summary())

    col1, col2, col3 = st.columns(3)
    col1.metric("Items bought", f"{summary.bought_items}/{summary.total_items}")
    col2.metric("Still to spend", money(summary.pending_total))
    col3.metric("Progress", f"{summary.progress_percent}%")
    st.progress(summary.progress_percent / 100)

    with st.expander("➕ New room"):
        with st.form("new_room", clear_on_submit=True):
            label = st.text_input("Room *")
            icon = st.text_input("Icon", value="🛋️")
            if st.form_submit_button("Add room", type="primary"):
                try:
                    run_async(planner.save_room({"label": label, "icon": icon}))
                    st.rerun()
                except RecordValidationError as e:
                    show_validation_error(e)

    rooms = {room.id: room for room in run_async(planner.list_rooms())}
    items = run_async(planner.list_items())

    for progress in summary.rooms:
        st.markdown("---")
        col1, col2 = st.columns([5, 1])
        col1.subheader(f"{progress.icon or ''} {progress.label}")
        col1.markdown(
            f"{progress.bought_items}/{progress.total_items} bought · "
            f"{money(progress.pending_total)} to go"
        )
        if col2.button("🗑️", key=f"del_room_{progress.room_id}"):
            run_async(planner.delete_room(progress.room_id))
            st.rerun()
        st.progress(progress.progress_percent / 100)

        for item in (i for i in items if i.room_id == progress.room_id):
            col1, col2, col3 = st.columns([4, 1, 1])
            name = f"~~{item.name}~~" if item.bought else item.name
            price = money(item.price) if item.price is not None else "-"
            col1.markdown(f"{name} · {price}" + (f" · [link]({item.link})" if item.link else ""))
            if col2.button("✅" if not item.bought else "↩️", key=f"buy_{item.id}"):
                run_async(planner.toggle_bought(item.id, user.username))
                st.rerun()
            if col3.button("🗑️", key=f"del_item_{item.id}"):
                run_async(planner.delete_item(item.id))
                st.rerun()

        room = rooms.get(progress.room_id)
        if room is not None:
            with st.form(f"new_item_{room.id}", clear_on_submit=True):
                col1, col2, col3 = st.columns([3, 1, 2])
                item_name = col1.text_input("Item *")
                item_price = col2.text_input("Price (R$)")
                item_link = col3.text_input("Link")
                if st.form_submit_button("Add item"):
                    try:
                        run_async(planner.save_item(
                            {"name": item_name, "price": item_price, "link": item_link},
                            room.id,
                        ))
                        st.rerun()
                    except RecordValidationError as e:
                        show_validation_error(e)


# =============================================================================
# PROPERTIES
# =============================================================================

def render_properties_page(components: AppComponents, user: User):
    st.title("🏘️ Properties")
    catalog = components.property_catalog
    me = user.display_name or user.username

    with st.expander("➕ New property"):
        with st.form("new_property", clear_on_submit=True):
            col1, col2 = st.columns(2)
            city = col1.text_input("City *")
            neighborhood = col2.text_input("Neighborhood *")
            deal = col1.radio(
                "Deal", list(PropertyDeal),
                format_func=lambda x: "Rent" if x == PropertyDeal.RENT else "Buy",
            )
            kind = col2.radio(
                "Kind", list(PropertyKind),
                format_func=lambda x: "Apartment" if x == PropertyKind.APARTMENT else "House",
            )
            price = st.text_input("Price (R$) *")
            col1, col2, col3 = st.columns(3)
            rooms = col1.number_input("Bedrooms", min_value=0, value=1)
            bathrooms = col2.number_input("Bathrooms", min_value=0, value=1)
            garage = col3.number_input("Parking spots", min_value=0, value=0)
            has_balcony = st.checkbox("Balcony")
            is_penthouse = st.checkbox("Penthouse")
            has_condo = st.checkbox("Condo fee")
            condo_value = st.text_input("Condo fee (R$)")
            condo_includes = st.text_input("Condo fee includes")
            link = st.text_input("Listing link")
            if st.form_submit_button("Save property", type="primary"):
                try:
                    run_async(catalog.save_property(
                        {
                            "city": city,
                            "neighborhood": neighborhood,
                            "deal": deal.value,
                            "kind": kind.value,
                            "price": price,
                            "rooms": rooms,
                            "bathrooms": bathrooms,
                            "garage": garage,
                            "has_balcony": has_balcony,
                            "is_penthouse": is_penthouse,
                            "has_condo": has_condo,
                            "condo_value": condo_value,
                            "condo_includes": condo_includes,
                            "link": link,
                        },
                        added_by=me,
                    ))
                    st.rerun()
                except RecordValidationError as e:
                    show_validation_error(e)

    for prop in run_async(catalog.list_properties()):
        st.markdown("---")
        col1, col2 = st.columns([5, 1])
        deal = "Rent" if prop.deal == PropertyDeal.RENT else "Buy"
        col1.subheader(f"{prop.neighborhood}, {prop.city}")
        col1.markdown(
            f"{deal} · {prop.rooms} bedrooms · {prop.bathrooms} bathrooms · "
            f"{prop.garage} parking · **{money(prop.total_cost)}**"
        )
        if prop.has_condo:
            col1.markdown(f"Condo {money(prop.condo_value)} {prop.condo_includes}")
        if prop.link:
            col1.markdown(f"[Listing]({prop.link})")
        star = "⭐" if me in prop.favorites else "☆"
        if col2.button(f"{star} {len(prop.favorites)}", key=f"fav_prop_{prop.id}"):
            run_async(catalog.toggle_favorite(prop.id, me))
            st.rerun()
        if col2.button("🗑️", key=f"del_prop_{prop.id}"):
            run_async(catalog.delete_property(prop.id))
            st.rerun()


# =============================================================================
# USERS
# =============================================================================

def render_users_page(components: AppComponents, user: User):
    st.title("👥 Users")
    try:
        require_admin(user)
    except PermissionDeniedError as e:
        st.error(str(e))
        return

    service = components.user_service
    users = run_async(service.list_users())
    by_id = {u.id: u for u in users}

    for member in users:
        partner = by_id.get(member.partner_user_id)
        st.markdown(
            f"**{member.display_name or member.username}** ({member.role.value}) "
            f"partner: {partner.username if partner else '-'}"
        )

    st.markdown("---")
    st.markdown("### Create or edit user")
    options = [None] + [u.id for u in users]
    editing_id = st.selectbox(
        "User",
        options=options,
        format_func=lambda x: "New user" if x is None else by_id[x].username,
    )
    editing = by_id.get(editing_id)

    with st.form("save_user"):
        display_name = st.text_input("Name", value=editing.display_name if editing else "")
        username = st.text_input("Username *", value=editing.username if editing else "")
        role = st.selectbox(
            "Role",
            options=list(UserRole),
            index=list(UserRole).index(editing.role) if editing else 2,
        )
        partner_id = st.selectbox(
            "Partner",
            options=options,
            format_func=lambda x: "-" if x is None else by_id[x].username,
            index=options.index(editing.partner_user_id)
            if editing and editing.partner_user_id in options else 0,
        )
        start = st.date_input(
            "Accounting start",
            value=editing.accounting_start_date if editing else None,
        )
        password = st.text_input("New password (optional)", type="password")
        if st.form_submit_button("Save", type="primary"):
            try:
                run_async(service.save_user(
                    {
                        "display_name": display_name,
                        "username": username,
                        "role": role,
                        "partner_user_id": partner_id,
                        "accounting_start_date": start,
                    },
                    user_id=editing_id,
                    password=password or None,
                ))
                st.success("User saved.")
                st.rerun()
            except (StorageError, ValueError) as e:
                st.error(f"Failed to save: {e}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()
    services = [
        ("Application", "app"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "Set STORAGE_BACKEND=google_sheets and the GOOGLE_SHEETS_* variables "
        "to keep records in a spreadsheet."
    )


if __name__ == "__main__":
    main()
