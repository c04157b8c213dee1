"""Entry point for ASGI servers (``uvicorn --factory zenshift.app_factory:create_app``)."""
from zenshift.app import create_app

__all__ = ["create_app"]
