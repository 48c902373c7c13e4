"""
Listing table component for Reflex.

Renders the rows of the open listing with sortable headers, an expandable
detail row, paging controls, the loading overlay and the empty state.
"""

import reflex as rx

from society_console.state import ListingScreenState


def listing_table() -> rx.Component:
    """
    Build the listing container.

    Returns:
        The listing component for the current screen.
    """
    return rx.box(
        _toolbar(),
        rx.cond(
            ListingScreenState.error_message != "",
            rx.callout(ListingScreenState.error_message, icon="triangle-alert", color_scheme="red"),
        ),
        rx.box(
            rx.cond(ListingScreenState.is_empty, _empty(), _table()),
            rx.cond(ListingScreenState.overlay_visible, _overlay()),
            class_name="listing-body",
            position="relative",
        ),
        rx.cond(ListingScreenState.is_paged, _pager()),
        class_name="card listing",
    )


def _toolbar() -> rx.Component:
    return rx.hstack(
        rx.heading(ListingScreenState.title, size="5", as_="h2"),
        rx.spacer(),
        rx.button(
            rx.icon("refresh-cw", size=16),
            on_click=ListingScreenState.refresh,
            variant="soft",
            disabled=ListingScreenState.overlay_visible,
            title="Refresh",
        ),
        rx.button(
            rx.icon("plus", size=16),
            "Add",
            on_click=ListingScreenState.add,
            disabled=ListingScreenState.overlay_visible,
        ),
        class_name="listing-toolbar",
        width="100%",
    )


def _header_cell(column: rx.Var) -> rx.Component:
    return rx.table.column_header_cell(
        rx.hstack(
            rx.text(column[1]),
            rx.cond(
                ListingScreenState.sort_field == column[0],
                rx.cond(
                    ListingScreenState.sort_ascending,
                    rx.icon("arrow-up", size=14),
                    rx.icon("arrow-down", size=14),
                ),
            ),
            spacing="1",
        ),
        on_click=ListingScreenState.sort(column[0]),
        cursor="pointer",
    )


def _row(row: rx.Var) -> rx.Component:
    return rx.fragment(
        rx.table.row(
            rx.table.cell(
                rx.icon_button(
                    rx.cond(
                        ListingScreenState.expanded_row_id == row["__id"],
                        rx.icon("chevron-down", size=14),
                        rx.icon("chevron-right", size=14),
                    ),
                    on_click=ListingScreenState.expand(row["__id"]),
                    variant="ghost",
                    size="1",
                ),
            ),
            rx.foreach(
                ListingScreenState.columns,
                lambda column: rx.table.cell(row[column[0]]),
            ),
            rx.table.cell(
                rx.hstack(
                    rx.icon_button(
                        rx.icon("pencil", size=14),
                        on_click=ListingScreenState.edit(row["__id"]),
                        variant="soft",
                        size="1",
                    ),
                    rx.icon_button(
                        rx.icon("trash-2", size=14),
                        on_click=ListingScreenState.delete(row["__id"]),
                        color_scheme="red",
                        variant="soft",
                        size="1",
                    ),
                    spacing="2",
                ),
            ),
        ),
        rx.cond(
            ListingScreenState.expanded_row_id == row["__id"],
            rx.table.row(
                rx.table.cell(_details(), col_span=ListingScreenState.columns.length() + 2),
            ),
        ),
    )


def _details() -> rx.Component:
    return rx.grid(
        rx.foreach(
            ListingScreenState.details,
            lambda item: rx.box(
                rx.text(item[0], class_name="muted", size="1"),
                rx.text(item[1]),
            ),
        ),
        columns="3",
        spacing="3",
        class_name="row-details",
    )


def _table() -> rx.Component:
    return rx.table.root(
        rx.table.header(
            rx.table.row(
                rx.table.column_header_cell(""),
                rx.foreach(ListingScreenState.columns, _header_cell),
                rx.table.column_header_cell("Actions"),
            ),
        ),
        rx.table.body(rx.foreach(ListingScreenState.rows, _row)),
        width="100%",
    )


def _pager() -> rx.Component:
    return rx.hstack(
        rx.text(ListingScreenState.range_text, class_name="muted"),
        rx.spacer(),
        rx.select(
            ListingScreenState.page_size_options,
            value=ListingScreenState.page_size.to_string(),
            on_change=ListingScreenState.change_page_size,
            disabled=ListingScreenState.overlay_visible,
            size="1",
        ),
        rx.button(
            rx.icon("chevron-left", size=14),
            on_click=ListingScreenState.change_page(ListingScreenState.page_number - 1),
            disabled=~ListingScreenState.has_previous | ListingScreenState.overlay_visible,
            variant="soft",
            size="1",
        ),
        rx.text(ListingScreenState.page_number, " / ", ListingScreenState.total_pages),
        rx.button(
            rx.icon("chevron-right", size=14),
            on_click=ListingScreenState.change_page(ListingScreenState.page_number + 1),
            disabled=~ListingScreenState.has_next | ListingScreenState.overlay_visible,
            variant="soft",
            size="1",
        ),
        class_name="listing-pager",
        width="100%",
    )


def _overlay() -> rx.Component:
    return rx.center(
        rx.spinner(size="3"),
        class_name="loading-overlay",
        position="absolute",
        inset="0",
        background_color="rgba(255, 255, 255, 0.6)",
    )


def _empty() -> rx.Component:
    """Build the empty state when the listing has no rows."""
    return rx.box(
        rx.icon("inbox", class_name="empty-icon", size=60),
        rx.heading("No records found", size="3", as_="h3"),
        rx.text("Use Add to create the first one.", class_name="muted"),
        class_name="empty-state",
    )
