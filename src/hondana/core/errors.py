"""Errors raised while fetching and storing book records."""

from __future__ import annotations


class HondanaError(Exception):
    """Base class for import failures."""


class RequestFailed(HondanaError):
    """The metadata or thumbnail service could not be reached or answered badly."""


class MissingMetadata(HondanaError):
    """The metadata document exists but carries no ONIX payload."""


class PersistenceConflict(HondanaError):
    """The store rejected the record, usually a duplicate ISBN."""
