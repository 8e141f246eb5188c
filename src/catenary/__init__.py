"""Catenary: location-matched ephemeral group chat."""

__version__ = "0.1.0"
