"""
Listen session lifecycle - validation, provider dispatch, interrupt handling
and webhook teardown.
"""

import signal
import threading
from typing import List, Optional
from urllib.parse import urlparse

import console
from config import LOCAL_ENVIRONMENTS
from .cleanup import CleanupJob
from .config import RunContext
from .error_messages import format_error
from .exceptions import (
    ConfigValidationError,
    EnvironmentRestrictionError,
    TunnelError,
)
from .providers import FAILURE, PROVIDERS, SUCCESS, Service
from .registrar import WebhookRegistry


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


class ListenController:
    """Runs one listen session from argument validation to webhook teardown."""

    def __init__(self, app, registry: Optional[WebhookRegistry] = None):
        """
        Initialize controller.

        Args:
            app: Flask application instance
            registry: Optional WebhookRegistry; built from app.config when omitted
        """
        self.app = app
        self.registry = registry

    def validate(self, service: Optional[str], url: Optional[str] = None) -> Service:
        """
        Check configuration and arguments before anything touches the network.

        Returns:
            The selected service

        Raises:
            ConfigValidationError: With one message per problem found
        """
        messages: List[str] = []

        if not self.app.config.get('LEMON_SQUEEZY_API_KEY'):
            messages.append('The LEMON_SQUEEZY_API_KEY environment variable is required.')

        if not self.app.config.get('LEMON_SQUEEZY_STORE'):
            messages.append('The LEMON_SQUEEZY_STORE environment variable is required.')

        if not service:
            messages.append('The service argument is required.')
        elif service not in Service.values():
            messages.append(f"The selected service is invalid. Use one of: {', '.join(Service.values())}.")

        if service == Service.CUSTOM.value and not url:
            messages.append('The --url option is required when service is custom.')
        elif url and not _is_valid_url(url):
            messages.append('The --url option must be a valid URL.')

        if messages:
            raise ConfigValidationError(messages)

        return Service(service)

    def check_environment(self):
        """
        Raises:
            EnvironmentRestrictionError: Outside a local/development environment
        """
        environment = self.app.config.get('APP_ENV')
        if environment not in LOCAL_ENVIRONMENTS:
            raise EnvironmentRestrictionError(
                f"listen can only be used in local environment (APP_ENV is '{environment}')."
            )

    def run(self, service: Optional[str], url: Optional[str] = None,
            cleanup: bool = False, verbose: bool = False) -> int:
        """
        Execute the listen command.

        Returns:
            Process exit status
        """
        try:
            selected = self.validate(service, url)
        except ConfigValidationError as e:
            for message in e.messages:
                console.error(message)
            return FAILURE

        ctx = RunContext(
            service=selected.value,
            verbose=verbose,
            custom_url=url.strip().rstrip('/') if url else None,
        )
        registry = self.registry or WebhookRegistry.from_app(self.app)
        provider = PROVIDERS[selected](self.app, registry, ctx)

        if not provider.requires_local_env:
            return provider.run()

        try:
            self.check_environment()
        except EnvironmentRestrictionError as e:
            self.app.logger.warning(str(e))
            console.error(format_error('environment_restricted'))
            return FAILURE

        if cleanup:
            return self.cleanup(registry, provider)

        console.note(f'Setting up webhooks domain with {selected.value}...')

        previous_handler = self._install_interrupt_handler(ctx)
        try:
            status = provider.run()
        finally:
            self._restore_interrupt_handler(previous_handler)

            if not ctx.running:
                self.teardown(registry, ctx)

            if ctx.process is not None:
                ctx.process.terminate()

        return status

    def cleanup(self, registry: WebhookRegistry, provider) -> int:
        """Remove every webhook of the store that belongs to the provider."""
        console.note(f"Cleaning up webhooks for '{provider.service.value}' service...")

        try:
            cleaned = CleanupJob(registry, provider).run()
        except TunnelError as e:
            self.app.logger.error(f"Webhook cleanup failed: {e}")
            console.error(format_error('network_error'))
            return FAILURE

        if cleaned == 0:
            console.info('No webhooks found to clean.')

        return SUCCESS

    def teardown(self, registry: WebhookRegistry, ctx: RunContext):
        """
        Delete the active webhook.

        Runs at most once per session. The active id is only cleared once
        Lemon Squeezy confirms the deletion.
        """
        if ctx.teardown_done:
            return

        ctx.teardown_done = True
        ctx.stop()

        if ctx.webhook_id is None:
            return

        console.note('\nCleaning up webhook on Lemon Squeezy...')

        try:
            registry.delete(ctx.webhook_id)
        except TunnelError as e:
            self.app.logger.error(f"Webhook teardown failed: {e}")
            console.error(format_error('webhook_deletion_failed', str(e), service=ctx.service))
            return

        ctx.webhook_id = None
        console.info('✅ Webhook removed successfully.')

    def _install_interrupt_handler(self, ctx: RunContext):
        # signal handlers can only be installed from the main thread
        if threading.current_thread() is not threading.main_thread():
            self.app.logger.debug('Not in main thread, interrupt handler not installed')
            return None

        def handle_interrupt(signum, frame):
            ctx.stop()

        return (signal.signal(signal.SIGINT, handle_interrupt),)

    def _restore_interrupt_handler(self, previous):
        if previous is not None:
            signal.signal(signal.SIGINT, previous[0] or signal.SIG_DFL)
