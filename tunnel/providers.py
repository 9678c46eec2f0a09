"""
Tunnel providers - one strategy per supported service.

Every provider exposes the same contract: run() blocks until the listen
session is over and returns the command exit status.
"""

import hashlib
import time
from enum import Enum
from typing import List, Optional, Tuple
from urllib.parse import urlparse

import requests

import console
from .error_messages import format_error
from .exceptions import ProcessManagementError, TunnelError
from .process import TunnelProcess
from .request_log import RequestLogTail
from .resolver import LocalApiResolver, OutputScrapeResolver, TunnelURLResolver

SUCCESS = 0
FAILURE = 1

# polling cadence of every provider loop
TICK_SECONDS = 1


class Service(str, Enum):
    """Services the listen command accepts."""

    EXPOSE = 'expose'
    NGROK = 'ngrok'
    CUSTOM = 'custom'
    TEST = 'test'

    @classmethod
    def values(cls) -> List[str]:
        return [service.value for service in cls]


class Provider:
    """Base provider: webhook setup shared by every service."""

    service: Service
    domains: Tuple[str, ...] = ()
    requires_local_env = True

    def __init__(self, app, registry, ctx):
        """
        Args:
            app: Flask application instance
            registry: WebhookRegistry used to create the webhook
            ctx: RunContext of the current invocation
        """
        self.app = app
        self.registry = registry
        self.ctx = ctx

    def run(self) -> int:
        raise NotImplementedError

    def owns_url(self, url: str) -> bool:
        """Whether a registered webhook URL points at this provider."""
        hostname = (urlparse(url).hostname or '').lower()
        return any(
            hostname == domain or hostname.endswith('.' + domain)
            for domain in self.domains
        )

    def setup_webhook(self, tunnel_url: str) -> bool:
        """
        Register the webhook for a discovered tunnel URL.

        Returns:
            True if the webhook is now active, False otherwise
        """
        if self.ctx.webhook_id is not None:
            self.app.logger.warning(f"Webhook {self.ctx.webhook_id} already active, not registering another")
            return True

        console.note(f"Found webhook endpoint: {tunnel_url}")
        console.note('Sending webhook to Lemon Squeezy...')

        try:
            webhook = self.registry.create(tunnel_url)
        except TunnelError as e:
            self.app.logger.error(f"Webhook registration failed: {e}")
            console.error(format_error('webhook_registration_failed'))
            return False

        self.ctx.tunnel_url = tunnel_url
        self.ctx.webhook_id = webhook.id

        console.info('✅ Webhook setup successfully.')
        console.note('Listening for webhooks...')
        return True


class ProcessProvider(Provider):
    """Provider backed by a tunnel subprocess."""

    def local_url(self) -> str:
        return self.app.config['LEMON_SQUEEZY_LOCAL_URL'].rstrip('/')

    def command(self) -> List[str]:
        raise NotImplementedError

    def make_resolver(self, process: TunnelProcess) -> TunnelURLResolver:
        raise NotImplementedError

    def make_request_log(self) -> Optional[RequestLogTail]:
        return None

    def _on_output(self, chunk: str):
        if self.ctx.verbose or self.ctx.webhook_id is not None:
            console.note(chunk.rstrip())

    def run(self) -> int:
        process = TunnelProcess(self.app)
        self.ctx.process = process

        try:
            process.start(self.command(), self._on_output)
        except ProcessManagementError as e:
            self.app.logger.error(str(e))
            console.error(format_error('process_start_failed'))
            return FAILURE

        resolver = self.make_resolver(process)
        request_log = self.make_request_log()
        deadline = time.monotonic() + self.app.config['TUNNEL_START_TIMEOUT']
        tunnel = None

        while self.ctx.running and process.running():
            if tunnel is None:
                tunnel = resolver.resolve()

                if tunnel:
                    if not self.setup_webhook(tunnel):
                        return FAILURE
                elif time.monotonic() > deadline:
                    console.error(format_error('tunnel_start_timeout'))
                    return FAILURE

            if tunnel and request_log:
                request_log.poll()

            self.ctx.wait(TICK_SECONDS)

        if not self.ctx.running:
            return SUCCESS

        # tunnel exited on its own; an active webhook stays registered
        self.app.logger.warning(f"{process.command[0]} exited with code {process.exit_code}")

        if self.ctx.webhook_id is None:
            console.error(format_error('process_start_failed'))
            return FAILURE

        self.ctx.orphaned_webhook_id = self.ctx.webhook_id
        console.warn(format_error(
            'process_crashed',
            webhook_id=self.ctx.webhook_id,
            service=self.service.value,
        ))
        return SUCCESS


class ExposeProvider(ProcessProvider):
    """expose.dev: public URL scraped from the share command's output."""

    service = Service.EXPOSE
    domains = ('sharedwithexpose.com',)

    def command(self) -> List[str]:
        subdomain = hashlib.sha1(str(int(time.time())).encode()).hexdigest()
        return [
            'expose',
            'share',
            self.local_url(),
            f'--subdomain={subdomain}',
            '--no-interaction',
        ]

    def make_resolver(self, process: TunnelProcess) -> TunnelURLResolver:
        return OutputScrapeResolver(process)


class NgrokProvider(ProcessProvider):
    """ngrok: public URL and request log read from the local inspection API."""

    service = Service.NGROK
    domains = ('ngrok-free.app', 'ngrok-free.dev', 'ngrok.app', 'ngrok.io')

    def __init__(self, app, registry, ctx):
        super().__init__(app, registry, ctx)
        self.api_url = app.config['NGROK_API_URL']
        self.session = requests.Session()

    def command(self) -> List[str]:
        return [
            'ngrok',
            'http',
            self.local_url(),
            '--host-header=rewrite',
            '--log=stdout',
        ]

    def make_resolver(self, process: TunnelProcess) -> TunnelURLResolver:
        return LocalApiResolver(self.api_url, session=self.session)

    def make_request_log(self) -> Optional[RequestLogTail]:
        return RequestLogTail(
            console.note,
            seen_ids=self.ctx.seen_request_ids,
            api_url=self.api_url,
            session=self.session,
        )


class CustomProvider(Provider):
    """A URL the developer already exposes; no subprocess to supervise."""

    service = Service.CUSTOM

    @property
    def base_url(self) -> str:
        return self.ctx.custom_url.strip().rstrip('/')

    def owns_url(self, url: str) -> bool:
        """Same scheme and host as the base URL, path under the base path."""
        base = urlparse(self.base_url)
        candidate = urlparse(url.strip())
        if (candidate.scheme.lower(), candidate.netloc.lower()) != (base.scheme.lower(), base.netloc.lower()):
            return False

        base_path = base.path.rstrip('/')
        return not base_path or candidate.path == base_path or candidate.path.startswith(base_path + '/')

    def run(self) -> int:
        if not self.setup_webhook(self.base_url):
            return FAILURE

        while not self.ctx.wait(TICK_SECONDS):
            pass

        return SUCCESS


class SmokeProvider(Provider):
    """Smoke-test service: succeeds without network or process activity."""

    service = Service.TEST
    requires_local_env = False

    def run(self) -> int:
        console.info('listen is using the test service.')
        return SUCCESS


PROVIDERS = {
    Service.EXPOSE: ExposeProvider,
    Service.NGROK: NgrokProvider,
    Service.CUSTOM: CustomProvider,
    Service.TEST: SmokeProvider,
}
