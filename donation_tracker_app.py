"""Streamlit app for logging and tracking food donations."""

from __future__ import annotations

import logging
import locale
from dataclasses import dataclass, field
from typing import Any

import pandas as pd
import streamlit as st

from donation_tracker import (
    DonationCollection,
    DonationForm,
    DonationRecord,
    DonationTrackerError,
    FilterState,
    NoticeBoard,
    SessionLifecycle,
    SignInState,
    build_contact_link,
    derive,
    display_phone,
    load_settings,
    location_options,
    sanitize_contact_input,
)
from donation_tracker.models import SORT_KEYS, STATUS_FILTERS
from donation_tracker.remote import AuthGateway, DonationGateway, create_supabase_client


STATUS_LABELS = {"all": "All Status", "active": "Active Only", "finished": "Finished Only"}
SORT_LABELS = {"date": "Newest First", "quantity": "Highest Quantity", "name": "Name (A-Z)"}
MUTATION_CHANNEL = "mutation"


def _secrets() -> dict:
    try:
        return dict(st.secrets)
    except FileNotFoundError:
        return {}


SETTINGS = load_settings(_secrets())


@dataclass
class AppState:
    collection: DonationCollection
    lifecycle: SessionLifecycle
    sign_in: SignInState
    notices: NoticeBoard = field(default_factory=NoticeBoard)
    filters: FilterState = field(default_factory=FilterState)
    form_version: int = 0
    form_error: str | None = None
    form_saved: bool = False


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
          .stApp {
            background: linear-gradient(170deg, #f1f5f9 0%, #f8fafc 60%, #ffffff 100%);
            color: #0f172a;
          }

          .block-container {
            max-width: 960px;
            padding-top: 1.4rem;
          }

          .tracker-hero {
            background: #ffffff;
            border: 1px solid #e2e8f0;
            border-radius: 14px;
            padding: 1.1rem 1.4rem;
            margin-bottom: 1rem;
          }

          .tracker-hero h1 {
            font-size: 1.6rem;
            margin: 0;
          }

          .metric-card {
            background: #ffffff;
            border: 1px solid #e2e8f0;
            border-radius: 12px;
            padding: 0.8rem 1rem;
          }

          .metric-label {
            font-size: 0.78rem;
            color: #475569;
            margin: 0;
          }

          .metric-value {
            font-size: 1.5rem;
            font-weight: 700;
            margin: 0.2rem 0 0;
          }

          .metric-active { color: #059669; }
          .metric-finished { color: #e11d48; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _render_metric_card(title: str, value: str, tone: str = "") -> None:
    st.markdown(
        f"""
        <div class="metric-card">
          <p class="metric-label">{title}</p>
          <p class="metric-value {tone}">{value}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _hero(lifecycle: SessionLifecycle) -> None:
    left, right = st.columns([4, 1.3], gap="small")
    with left:
        st.markdown(
            """
            <div class="tracker-hero">
              <h1>Pasikuthu</h1>
              <p>Sign in with your email to log donations and track contributions.</p>
            </div>
            """,
            unsafe_allow_html=True,
        )
    if lifecycle.is_signed_in:
        with right:
            st.caption(lifecycle.user_email or "Signed in")
            if st.button("Sign out", use_container_width=True):
                lifecycle.sign_out()
                st.rerun()


def _app_state() -> AppState:
    if "app_state" not in st.session_state:
        client = create_supabase_client(SETTINGS)
        auth = AuthGateway(client)
        collection = DonationCollection(
            DonationGateway(client),
            known_cities=SETTINGS.known_cities,
            require_contact=SETTINGS.require_contact_number,
        )
        lifecycle = SessionLifecycle(auth, collection)
        lifecycle.start()
        st.session_state.app_state = AppState(
            collection=collection,
            lifecycle=lifecycle,
            sign_in=SignInState(auth, redirect_to=SETTINGS.email_redirect_to),
        )
    return st.session_state.app_state


def _table_or_info(frame: pd.DataFrame, empty_message: str) -> None:
    if frame.empty:
        st.info(empty_message)
        return
    st.dataframe(
        frame,
        use_container_width=True,
        hide_index=True,
        column_config={"WhatsApp": st.column_config.LinkColumn("WhatsApp")},
    )


def _donation_label(record: DonationRecord) -> str:
    status = f"Qty {record.quantity}" if record.quantity > 0 else "Finished"
    return f"{record.food_name} ({status}) - {record.created_at:%d %b %Y %H:%M}"


def render_sign_in(state: AppState) -> None:
    st.markdown("### Sign in to continue")
    st.caption("Enter your email to start contributing to food donations.")

    with st.form("magic-link-form"):
        email = st.text_input("Email", placeholder="you@example.com")
        send = st.form_submit_button("Send magic link", use_container_width=True)
        if send:
            state.sign_in.request_magic_link(email)

    message = state.sign_in.message
    if message and state.sign_in.status == "error":
        st.error(message)
    elif message:
        st.success(message)

    with st.form("otp-code-form"):
        st.caption("Or paste the one-time code from the email.")
        code_email = st.text_input("Email used for the link", key="otp-email")
        code = st.text_input("Code", key="otp-code")
        verify = st.form_submit_button("Verify code", use_container_width=True)
        if verify and state.sign_in.verify_code(code_email, code):
            st.rerun()


def render_donation_form(state: AppState) -> None:
    st.markdown("#### Log a donation")

    with st.form(f"donation-form-{state.form_version}"):
        food_name = st.text_input("Food name *", placeholder="Canned beans")
        description = st.text_area(
            "Description",
            height=90,
            placeholder="Optional details about packaging or expiry",
        )
        quantity = st.text_input("Quantity *", value="1")
        donor_name = st.text_input("Your name", placeholder="Donor name")
        location = st.selectbox(
            "Location",
            options=[""] + list(SETTINGS.known_cities),
            accept_new_options=True,
            format_func=lambda city: city or "Start typing a city...",
        )
        contact_label = "Contact number (+91) *" if SETTINGS.require_contact_number else "Contact number (+91)"
        contact_number = st.text_input(contact_label, max_chars=10, placeholder="10-digit mobile number")

        submit = st.form_submit_button("Save donation", use_container_width=True)
        if submit:
            form = DonationForm(
                food_name=food_name,
                description=description,
                quantity=quantity,
                donor_name=donor_name,
                location=location or "",
                contact_number=sanitize_contact_input(contact_number),
            )
            try:
                state.collection.submit(form, state.lifecycle.session)
            except DonationTrackerError as exc:
                state.form_error = exc.message
                state.form_saved = False
            else:
                state.form_error = None
                state.form_saved = True
                state.form_version += 1
                st.rerun()

    if state.form_error:
        st.error(state.form_error)
    elif state.form_saved:
        st.success("Donation saved!")


def render_stats(state: AppState) -> None:
    stats = derive(state.collection.records, state.filters).stats
    metric_columns = st.columns(4)
    with metric_columns[0]:
        _render_metric_card("Total Donations", str(stats.total))
    with metric_columns[1]:
        _render_metric_card("Active", str(stats.active), "metric-active")
    with metric_columns[2]:
        _render_metric_card("Finished", str(stats.finished), "metric-finished")
    with metric_columns[3]:
        _render_metric_card("Total Quantity", str(stats.total_quantity))


def _render_filters(state: AppState) -> FilterState:
    locations = location_options(state.collection.records)
    current = state.filters

    search_query = st.text_input(
        "Search",
        value=current.search_query,
        placeholder="Search by food name, description, or donor...",
    )
    filter_cols = st.columns(3)
    with filter_cols[0]:
        location_choices = [""] + locations
        location_filter = st.selectbox(
            "Location",
            options=location_choices,
            index=location_choices.index(current.location_filter)
            if current.location_filter in location_choices
            else 0,
            format_func=lambda city: city or "All Locations",
        )
    with filter_cols[1]:
        status_filter = st.selectbox(
            "Status",
            options=list(STATUS_FILTERS),
            index=STATUS_FILTERS.index(current.status_filter),
            format_func=STATUS_LABELS.get,
        )
    with filter_cols[2]:
        sort_key = st.selectbox(
            "Sort",
            options=list(SORT_KEYS),
            index=SORT_KEYS.index(current.sort_key),
            format_func=SORT_LABELS.get,
        )

    state.filters = FilterState(
        search_query=search_query,
        location_filter=location_filter,
        status_filter=status_filter,
        sort_key=sort_key,
    )
    if state.filters.is_filtered and st.button("Clear filters"):
        state.filters = state.filters.cleared()
        st.rerun()
    return state.filters


def _render_manage_donation(state: AppState, visible: tuple[DonationRecord, ...]) -> None:
    st.markdown("##### Update or remove")
    record_map = {record.id: record for record in visible}
    selected_id = st.selectbox(
        "Donation",
        options=list(record_map.keys()),
        format_func=lambda donation_id: _donation_label(record_map[donation_id]),
        key="manage-donation",
    )
    selected = record_map[selected_id]
    busy = state.collection.is_locked(selected_id)

    manage_cols = st.columns([2, 1, 1])
    with manage_cols[0]:
        new_quantity = st.text_input(
            f"Quantity (current: {selected.quantity})",
            value=str(selected.quantity),
            key=f"quantity-{selected_id}",
        )
    with manage_cols[1]:
        st.markdown("<br>", unsafe_allow_html=True)
        update = st.button("Update", disabled=busy, use_container_width=True)
    with manage_cols[2]:
        st.markdown("<br>", unsafe_allow_html=True)
        confirm = st.checkbox("Confirm delete", key=f"confirm-delete-{selected_id}")
        delete = st.button("Delete", disabled=busy or not confirm, use_container_width=True)

    try:
        if update:
            state.collection.update_quantity(selected_id, new_quantity)
            st.rerun()
        if delete:
            state.collection.delete(selected_id)
            st.rerun()
    except DonationTrackerError as exc:
        state.notices.post(MUTATION_CHANNEL, exc.message)


def _show_notice(state: AppState, slot: Any) -> None:
    # Filled after the manage controls so errors from this run show at once.
    notice = state.notices.current(MUTATION_CHANNEL)
    if notice is not None:
        slot.error(notice.message)


def render_donations(state: AppState) -> None:
    collection = state.collection

    filters = _render_filters(state)
    view = derive(collection.records, filters)

    header_cols = st.columns([4, 1])
    with header_cols[0]:
        st.markdown(f"#### Donations ({len(view.visible_records)})")
    with header_cols[1]:
        if st.button("Refresh", disabled=collection.loading, use_container_width=True):
            collection.reload(state.lifecycle.session)
            st.rerun()

    if collection.load_error:
        st.error(collection.load_error)
    notice_slot = st.empty()

    if not collection.records:
        st.info("No donations logged yet. Add the first one above.")
        _show_notice(state, notice_slot)
        return

    donations_df = pd.DataFrame(
        [
            {
                "Food": record.food_name,
                "Quantity": record.quantity if record.quantity > 0 else "Finished",
                "Description": record.description or "-",
                "Name": record.donor_name or "-",
                "Location": record.location or "-",
                "Contact": display_phone(record.contact_number) or "-",
                "WhatsApp": build_contact_link(record.contact_number),
                "Logged": record.created_at.strftime("%d %b %Y %H:%M"),
            }
            for record in view.visible_records
        ]
    )
    _table_or_info(donations_df, "No donations match your filters. Try adjusting your search or filters.")

    if view.visible_records:
        _render_manage_donation(state, view.visible_records)
    _show_notice(state, notice_slot)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        logging.getLogger(__name__).warning("Falling back to the C collation locale")
    st.set_page_config(
        page_title="Pasikuthu Donations",
        page_icon=":knife_fork_plate:",
        layout="centered",
    )
    _inject_styles()

    if not SETTINGS.is_configured:
        st.warning("Supabase is not configured. Add SUPABASE_URL and SUPABASE_KEY to your secrets.")
        return

    state = _app_state()
    _hero(state.lifecycle)

    if not state.lifecycle.is_signed_in:
        render_sign_in(state)
        return

    render_donation_form(state)
    render_stats(state)
    render_donations(state)


if __name__ == "__main__":
    main()
