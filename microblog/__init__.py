"""Microblog data layer and the user backfill task."""

__version__ = "0.1.0"
