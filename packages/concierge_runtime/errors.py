"""Exception hierarchy shared by the Concierge packages."""


class ConciergeError(Exception):
    """Base class for all Concierge errors."""

    pass


class PersistenceError(ConciergeError):
    """Raised when a repository fails to load or save a document."""

    pass


class TicketError(ConciergeError):
    """Raised on invalid support ticket data or an illegal status transition."""

    pass
