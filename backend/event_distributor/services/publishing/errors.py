"""Errors raised by the publishing and verification services."""


class PublishingError(Exception):
    """Base class for publishing service errors."""


class PreconditionError(PublishingError):
    """A request cannot start: nothing was attempted and nothing was logged."""


class EventNotFoundError(PreconditionError):
    def __init__(self, event_id):
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class NoTargetsError(PreconditionError):
    def __init__(self):
        super().__init__("No target platforms given")


class LogNotFoundError(PreconditionError):
    def __init__(self, log_id):
        super().__init__(f"Publication log {log_id} not found")
        self.log_id = log_id


class NoLogsError(PreconditionError):
    def __init__(self, event_id):
        super().__init__(f"No publication logs for event {event_id}")
        self.event_id = event_id


class InvalidTransitionError(PublishingError):
    """A log row was asked to move to a status its lifecycle forbids."""

    def __init__(self, current, requested):
        super().__init__(f"Cannot change status from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested
