"""
FastAPI dependency utilities for injecting configuration sections.
"""

from app.core.config import CourierSettings, get_settings


def get_courier_settings() -> CourierSettings:
    """FastAPI dependency returning the Colis Privé settings section."""
    return get_settings().courier


__all__ = ["get_courier_settings"]
