class WebhookServiceError(Exception):
    """Base error for the webhook service."""
    pass


class StoreUnavailableError(WebhookServiceError):
    """Raised when the job store cannot be reached while enqueuing."""
    pass


class UnsupportedPayloadError(WebhookServiceError):
    """Raised when an inbound webhook carries no usable source identifier."""
    pass
