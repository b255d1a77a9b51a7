"""WSGI entry point for the crewcode server.

This module MUST be the entry point for gunicorn to ensure eventlet
monkey patching happens before any other imports:

    gunicorn --worker-class eventlet -w 1 crewcode.server.wsgi:app
"""

# Monkey-patch first, before any other imports
import eventlet
eventlet.monkey_patch()

from crewcode.server.app import create_app  # noqa: E402

# Create the app instance for gunicorn
app = create_app()
