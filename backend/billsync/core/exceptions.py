"""Error taxonomy shared by services and the HTTP layer."""

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


class BillSyncError(Exception):
    """Base error for the billing sync service."""

    status_code = 500

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


class AuthenticationError(BillSyncError):
    """Missing secret, missing signature header, or signature mismatch."""

    status_code = 400


class NotFoundError(BillSyncError):
    """No record for the given identifier."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ConflictError(BillSyncError):
    """Duplicate business key, e.g. a second refund for one payment."""

    status_code = 409

    def __init__(self, message: str = "Already exists"):
        super().__init__(message)


class ProviderError(BillSyncError):
    """A call to the billing provider failed."""


class TransientProviderError(ProviderError):
    """A provider call kept failing after all retry attempts."""


class EventPayloadError(BillSyncError):
    """A verified event body does not match the shape expected for its type."""

    status_code = 400
