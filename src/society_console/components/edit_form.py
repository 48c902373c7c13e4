"""
Add/edit form component for Reflex.

Renders the open edit session generically: one input per entity field,
chosen by field kind, plus the save / save-and-next / reset buttons and the
unsaved-changes dialog.
"""

import reflex as rx

from society_console.state import EditScreenState


def edit_form() -> rx.Component:
    """
    Build the add/edit form for the current screen.

    Returns:
        The form component.
    """
    return rx.box(
        rx.hstack(
            rx.heading(
                rx.cond(EditScreenState.is_edit, "Edit ", "Add "),
                EditScreenState.title,
                size="5",
                as_="h2",
            ),
            rx.spacer(),
            rx.cond(EditScreenState.is_dirty, rx.badge("Unsaved changes", color_scheme="amber")),
            width="100%",
        ),
        rx.cond(
            EditScreenState.error_message != "",
            rx.callout(EditScreenState.error_message, icon="triangle-alert", color_scheme="red"),
        ),
        rx.cond(
            EditScreenState.notice != "",
            rx.callout(EditScreenState.notice, icon="check", color_scheme="green"),
        ),
        rx.grid(
            rx.foreach(EditScreenState.form_fields, _field),
            columns="2",
            spacing="4",
            class_name="form-grid",
        ),
        _buttons(),
        _leave_dialog(),
        class_name="card edit-form",
        custom_attrs={"data-unsaved": rx.cond(EditScreenState.is_dirty, "true", "false")},
    )


def _field(item: rx.Var) -> rx.Component:
    name = item["name"]
    return rx.box(
        rx.text(item["label"], size="2", weight="medium"),
        rx.match(
            item["kind"],
            (
                "bool",
                rx.checkbox(
                    checked=item["value"] == "true",
                    on_change=lambda checked: EditScreenState.set_value(name, checked),
                ),
            ),
            (
                "date",
                rx.input(
                    type="date",
                    value=item["value"],
                    on_change=lambda value: EditScreenState.set_value(name, value),
                ),
            ),
            (
                "number",
                rx.input(
                    type="number",
                    value=item["value"],
                    on_change=lambda value: EditScreenState.set_value(name, value),
                    debounce_timeout=300,
                ),
            ),
            (
                "select",
                rx.el.select(
                    rx.el.option("Select...", value=""),
                    rx.foreach(
                        EditScreenState.options[name],
                        lambda option: rx.el.option(option[1], value=option[0]),
                    ),
                    value=item["value"],
                    on_change=lambda value: EditScreenState.set_value(name, value),
                    class_name="select",
                ),
            ),
            rx.input(
                value=item["value"],
                on_change=lambda value: EditScreenState.set_value(name, value),
                debounce_timeout=300,
            ),
        ),
        class_name="form-field",
    )


def _buttons() -> rx.Component:
    return rx.hstack(
        rx.button(
            "Back",
            on_click=EditScreenState.leave(""),
            variant="outline",
        ),
        rx.spacer(),
        rx.button(
            "Reset",
            on_click=EditScreenState.reset_form,
            variant="soft",
            disabled=~EditScreenState.is_dirty | EditScreenState.is_submitting,
        ),
        rx.cond(
            ~EditScreenState.is_edit,
            rx.button(
                "Save & Next",
                on_click=EditScreenState.save_and_next,
                variant="soft",
                loading=EditScreenState.is_submitting,
            ),
        ),
        rx.button(
            "Save",
            on_click=EditScreenState.submit,
            loading=EditScreenState.is_submitting,
        ),
        width="100%",
        class_name="form-buttons",
    )


def _leave_dialog() -> rx.Component:
    return rx.alert_dialog.root(
        rx.alert_dialog.content(
            rx.alert_dialog.title("Discard changes?"),
            rx.alert_dialog.description(
                "You have unsaved changes. Leaving this page will discard them."
            ),
            rx.hstack(
                rx.alert_dialog.cancel(
                    rx.button("Stay", variant="soft", on_click=EditScreenState.cancel_leave),
                ),
                rx.alert_dialog.action(
                    rx.button("Leave", color_scheme="red", on_click=EditScreenState.confirm_leave),
                ),
                justify="end",
                spacing="3",
            ),
        ),
        open=EditScreenState.confirm_open,
    )
