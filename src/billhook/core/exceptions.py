"""Exceptions raised while handling webhook deliveries."""


class BillhookError(Exception):
    """Base error for billhook."""


class VerificationError(BillhookError):
    """The delivery could not be proven to come from Stripe."""


class DownstreamCallError(BillhookError):
    """A primary external call failed; the delivery must be retried."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
