"""Reflex configuration for the Society Console application."""

import os

import reflex as rx

# Get port from environment
APP_PORT = int(os.getenv("APP_PORT", "8000"))

config = rx.Config(
    app_name="society_console",
    # Use the src directory structure
    app_module_import="society_console.app",
    frontend_port=APP_PORT,
)
