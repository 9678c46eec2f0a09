"""
Custom exceptions for tunnel and webhook operations.
"""


class TunnelError(Exception):
    """Base exception for all tunnel-related errors."""
    pass


class ConfigValidationError(TunnelError):
    """Raised when required configuration or arguments are missing or invalid."""

    def __init__(self, messages):
        self.messages = list(messages)
        super().__init__('; '.join(self.messages))


class EnvironmentRestrictionError(TunnelError):
    """Raised when the listener is started outside a local environment."""
    pass


class ProcessManagementError(TunnelError):
    """Raised when the tunnel process cannot be started."""
    pass


class TransientNetworkError(TunnelError):
    """Raised when an HTTP call still fails after all retry attempts."""
    pass


class WebhookRegistrationError(TunnelError):
    """Raised when Lemon Squeezy does not accept a new webhook."""

    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class WebhookDeletionError(TunnelError):
    """Raised when Lemon Squeezy does not confirm a webhook deletion."""

    def __init__(self, message, webhook_id=None, status_code=None):
        self.webhook_id = webhook_id
        self.status_code = status_code
        super().__init__(message)
