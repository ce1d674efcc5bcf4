"""WSGI entrypoint for deploying the finiquito backend under Passenger."""

from finiquito.backend.app import create_app

# Passenger expects a module-level variable named ``application``.
application = create_app()
