"""
Bulk meter reading entry component for Reflex.

Step one picks the apartment and reading date and shows the billing period
they fall in; step two lists one row per meter for the current readings.
"""

import reflex as rx

from society_console.state import MeterEntryState


def meter_entry_form() -> rx.Component:
    """
    Build the bulk entry card.

    Returns:
        The entry component.
    """
    return rx.box(
        rx.heading("Meter Reading Entry", size="5", as_="h2"),
        rx.cond(
            MeterEntryState.error_message != "",
            rx.callout(MeterEntryState.error_message, icon="triangle-alert", color_scheme="red"),
        ),
        rx.cond(
            MeterEntryState.notice != "",
            rx.callout(MeterEntryState.notice, icon="check", color_scheme="green"),
        ),
        _selection(),
        rx.cond(MeterEntryState.rows.length() > 0, _entry_table()),
        class_name="card meter-entry",
    )


def _selection() -> rx.Component:
    return rx.hstack(
        rx.box(
            rx.text("Apartment *", size="2", weight="medium"),
            rx.el.select(
                rx.el.option("Select...", value=""),
                rx.foreach(
                    MeterEntryState.apartments,
                    lambda option: rx.el.option(option[1], value=option[0]),
                ),
                value=MeterEntryState.apartment_id,
                on_change=MeterEntryState.set_apartment,
                class_name="select",
            ),
            class_name="form-field",
        ),
        rx.box(
            rx.text("Reading Date *", size="2", weight="medium"),
            rx.input(
                type="date",
                value=MeterEntryState.reading_date,
                on_change=MeterEntryState.set_reading_date,
            ),
            class_name="form-field",
        ),
        rx.box(
            rx.text("Billing Period", size="2", weight="medium"),
            rx.badge(MeterEntryState.period_label, size="2"),
            class_name="form-field",
        ),
        rx.button(
            "Proceed",
            on_click=MeterEntryState.load_rows,
            loading=MeterEntryState.is_loading,
        ),
        align="end",
        spacing="4",
        wrap="wrap",
    )


def _entry_row(row: rx.Var) -> rx.Component:
    meter_id = row["meter_id"]
    return rx.table.row(
        rx.table.cell(row["label"]),
        rx.table.cell(
            rx.el.select(
                rx.foreach(
                    MeterEntryState.reading_types,
                    lambda option: rx.el.option(option[1], value=option[0]),
                ),
                value=row["type_id"],
                on_change=lambda value: MeterEntryState.set_reading_type(meter_id, value),
                class_name="select",
            )
        ),
        rx.table.cell(
            rx.input(
                value=row["reading"],
                input_mode="numeric",
                on_change=lambda value: MeterEntryState.set_reading(meter_id, value),
                debounce_timeout=300,
            ),
            rx.cond(row["error"] != "", rx.text(row["error"], size="1", color_scheme="red")),
        ),
    )


def _entry_table() -> rx.Component:
    return rx.box(
        rx.table.root(
            rx.table.header(
                rx.table.row(
                    rx.table.column_header_cell("Flat / Meter"),
                    rx.table.column_header_cell("Reading Type"),
                    rx.table.column_header_cell("Current Reading"),
                ),
            ),
            rx.table.body(rx.foreach(MeterEntryState.rows, _entry_row)),
            width="100%",
        ),
        rx.hstack(
            rx.spacer(),
            rx.button(
                "Finalise",
                on_click=MeterEntryState.finalise,
                loading=MeterEntryState.is_saving,
                color_scheme="green",
            ),
            width="100%",
        ),
    )
