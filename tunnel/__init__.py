"""
Tunnel and webhook lifecycle for the Lemon Squeezy listener.

This package exposes a local webhook route through a tunnel, registers the
public URL with Lemon Squeezy, and removes the webhook again on shutdown.
"""

from .manager import ListenController
from .cleanup import CleanupJob
from .process import TunnelProcess
from .providers import PROVIDERS, Service
from .registrar import WebhookRegistry
from .request_log import RequestLogTail
from .resolver import LocalApiResolver, OutputScrapeResolver
from .exceptions import (
    ConfigValidationError,
    EnvironmentRestrictionError,
    ProcessManagementError,
    TransientNetworkError,
    TunnelError,
    WebhookDeletionError,
    WebhookRegistrationError,
)

__all__ = [
    'ListenController',
    'CleanupJob',
    'TunnelProcess',
    'PROVIDERS',
    'Service',
    'WebhookRegistry',
    'RequestLogTail',
    'LocalApiResolver',
    'OutputScrapeResolver',
    'ConfigValidationError',
    'EnvironmentRestrictionError',
    'ProcessManagementError',
    'TransientNetworkError',
    'TunnelError',
    'WebhookDeletionError',
    'WebhookRegistrationError',
]
