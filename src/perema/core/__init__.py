"""Core primitives: settings, errors, logging, ORM and repositories."""
