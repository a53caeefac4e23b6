"""Exceptions raised by deepstore."""


class StoreError(Exception):
    """Base class for all deepstore errors."""


class UsageError(StoreError, TypeError):
    """The store was called in a way the caller could have prevented."""
