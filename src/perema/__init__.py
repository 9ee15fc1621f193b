"""
perema — personal relationship manager.

Stores contacts with their relationships, notes, activities and reminders,
exposes them over a REST API, serves a single-page frontend, and emails
birthday and reminder notifications from a background scheduler.

Layers (outermost first)::

    perema.api / perema.cli      transports (FastAPI, Typer)
    perema.ops                   transport-agnostic operations
    perema.core.repositories     SQLAlchemy data access
    perema.core.orm              declarative models

Side-channels: ``perema.notifications`` (mail delivery) and
``perema.scheduling`` (daily/interval jobs).
"""

__version__ = "0.3.0"
