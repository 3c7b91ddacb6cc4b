"""Exceptions raised by the tracker."""

from __future__ import annotations


class TimeforError(Exception):
    """Base class for every error the tracker reports to its caller."""


class StorageError(TimeforError):
    """The log store refused a write."""


class OrderingViolation(StorageError):
    """An insert would start before the end of an existing entry."""


class UniquenessViolation(StorageError):
    """An insert duplicated a start time or a second current entry."""


class ValidationError(TimeforError, ValueError):
    """Input rejected before touching the store."""


class AlreadyTracking(TimeforError):
    """The requested activity is already the active one."""

    def __init__(self, name: str) -> None:
        super().__init__("Keep tracking existing activity")
        self.name = name


class NoCurrentActivity(TimeforError):
    def __init__(self) -> None:
        super().__init__("no current activity")


class SelectionFailed(TimeforError):
    """The external menu did not return a selection."""


class TemplateError(TimeforError):
    """A display template could not be rendered."""


class NotifyFailed(TimeforError):
    """A desktop notification could not be delivered."""


class HookFailed(TimeforError):
    """The daemon hook command could not be rendered or exited non-zero."""
