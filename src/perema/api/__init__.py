"""FastAPI application for perema (``create_app``)."""
