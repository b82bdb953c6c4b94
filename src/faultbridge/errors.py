"""Custom exceptions for faultbridge."""


class FaultBridgeError(Exception):
    """Base exception for this package."""


class MissingDependencyError(FaultBridgeError):
    """Raised when an optional dependency is required but not installed."""


class IntegrationMismatchError(FaultBridgeError, TypeError):
    """Raised when a lifecycle signal arrives in a shape the listener does not know.

    This means the host framework no longer matches the signal contracts the
    listener was built against, so handling of that one signal is aborted.
    """

    def __init__(self, handler: str, accepted: tuple[type, ...], received: object) -> None:
        self.handler = handler
        self.accepted = accepted
        self.received = received
        names = " and ".join(kind.__name__ for kind in accepted)
        super().__init__(
            f"{handler} only accepts {names} arguments, got {type(received).__name__}"
        )
