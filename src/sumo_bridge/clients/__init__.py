"""HTTP clients for remote collectors."""

from .sumo_client import CONTENT_TYPE, SumoClient

__all__ = ["CONTENT_TYPE", "SumoClient"]
