"""
Reflex application entry point for the Society Console.

This module initializes the Reflex app and registers, for every screen kind
in the catalogue, a listing page and an add/edit page, plus the bulk meter
reading entry page.
"""

import os

import reflex as rx

from society_console.components import edit_form, listing_table, meter_entry_form
from society_console.lib import logs
from society_console.screens import SCREENS, ScreenSpec
from society_console.state import EditScreenState, ListingScreenState, MeterEntryState

LOG = logs.logger(__file__)

# Configuration from environment
APP_PORT = int(os.getenv("APP_PORT", "8000"))
APP_TITLE = "Society Console"
APP_SUBTITLE = "Manage societies, apartments, flats, meters and maintenance."

_FONT_URL = "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap"

METER_ENTRY_ROUTE = "/meter-reading/entry"


# Asks the browser to confirm unloading while an edit form reports unsaved changes
_UNLOAD_GUARD = """
window.addEventListener("beforeunload", (event) => {
  if (document.querySelector('[data-unsaved="true"]')) {
    event.preventDefault();
    event.returnValue = "";
  }
});
"""


def _nav_link(text: str | rx.Component, route: str, guarded: bool) -> rx.Component:
    if guarded:
        # Edit pages leave through the session so the unsaved-changes guard runs
        return rx.link(text, on_click=EditScreenState.leave(route), cursor="pointer")
    return rx.link(text, href=route)


def page_header(guarded: bool = False) -> rx.Component:
    """Build the hero text area at the top of the page."""
    return rx.box(
        _nav_link(rx.heading(APP_TITLE, size="6", as_="h1"), "/", guarded),
        rx.text(APP_SUBTITLE, class_name="muted"),
        class_name="page-header",
    )


def navigation(guarded: bool = False) -> rx.Component:
    """Links to every listing screen."""
    return rx.flex(
        *[_nav_link(spec.title, spec.listing_route, guarded) for spec in SCREENS.values()],
        _nav_link("Meter Reading Entry", METER_ENTRY_ROUTE, guarded),
        wrap="wrap",
        spacing="4",
        class_name="nav",
    )


def _shell(*children: rx.Component, guarded: bool = False) -> rx.Component:
    return rx.box(
        rx.box(
            page_header(guarded),
            navigation(guarded),
            *children,
            class_name="app-container",
        ),
        class_name="app-shell",
    )


def index() -> rx.Component:
    """
    Build the landing page.

    Returns:
        The page component with header and screen links.
    """
    return _shell(
        rx.box(
            rx.text("Pick a screen above to get started.", class_name="muted"),
            class_name="card",
        )
    )


def listing_page(spec: ScreenSpec):
    def page() -> rx.Component:
        return _shell(listing_table())

    page.__name__ = f"{spec.kind}_listing"
    return page


def edit_page(spec: ScreenSpec):
    def page() -> rx.Component:
        return _shell(edit_form(), rx.script(_UNLOAD_GUARD), guarded=True)

    page.__name__ = f"{spec.kind}_edit"
    return page


def meter_entry_page() -> rx.Component:
    return _shell(meter_entry_form())


# Create the Reflex app
app = rx.App(
    theme=rx.theme(
        appearance="light",
        has_background=True,
        radius="large",
    ),
    stylesheets=[
        _FONT_URL,
        "/styles.css",
    ],
)

# Add the index page
app.add_page(index, title=APP_TITLE)

for _spec in SCREENS.values():
    app.add_page(
        listing_page(_spec),
        route=_spec.listing_route,
        title=f"{_spec.title} | {APP_TITLE}",
        on_load=ListingScreenState.open(_spec.kind),
    )
    app.add_page(
        edit_page(_spec),
        route=_spec.edit_route,
        title=f"{_spec.title} | {APP_TITLE}",
        on_load=EditScreenState.open(_spec.kind),
    )
    LOG.debug("Registered pages for %s", _spec.kind)

app.add_page(
    meter_entry_page,
    route=METER_ENTRY_ROUTE,
    title=f"Meter Reading Entry | {APP_TITLE}",
    on_load=MeterEntryState.open,
)


def main() -> None:
    """Entrypoint used via `society-console`."""
    # Note: In production, use `reflex run` instead
    import subprocess
    import sys

    subprocess.run([sys.executable, "-m", "reflex", "run", "--port", str(APP_PORT)])


if __name__ == "__main__":
    main()
