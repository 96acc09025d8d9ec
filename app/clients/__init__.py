"""Expose constructed client wrappers."""

from .colis_prive import ColisPriveAuthClient, ColisPriveTourneeClient, TourneeFetchError

__all__ = [
    "ColisPriveAuthClient",
    "ColisPriveTourneeClient",
    "TourneeFetchError",
]
