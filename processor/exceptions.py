"""Errors raised while turning source events into drafts."""


class EventImportError(Exception):
    """Base error for a source event that cannot be imported."""

    def __init__(self, message: str, anchor: str = ''):
        super().__init__(message)
        self.anchor = anchor


class MissingAnchorError(EventImportError):
    """Source event carries no unique anchor token."""


class UnresolvableStartError(EventImportError):
    """Neither DTSTART nor DTSTAMP resolves to an instant."""
