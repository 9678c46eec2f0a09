"""
Bulk removal of webhooks left behind by earlier listen sessions.
"""

import logging

import console
from .exceptions import TunnelError

log = logging.getLogger(__name__)


class CleanupJob:
    """Deletes every store webhook whose URL belongs to a provider."""

    def __init__(self, registry, provider):
        """
        Args:
            registry: WebhookRegistry for the configured store
            provider: Provider whose domains select the webhooks to delete
        """
        self.registry = registry
        self.provider = provider

    def find_matches(self):
        """Return {id: url} of the store webhooks owned by the provider."""
        return {
            webhook_id: url
            for webhook_id, url in self.registry.list().items()
            if self.provider.owns_url(url)
        }

    def run(self) -> int:
        """
        Delete matching webhooks, reporting each outcome.

        Returns:
            Number of matching webhooks (deleted or not)
        """
        matches = self.find_matches()

        for webhook_id, url in matches.items():
            try:
                self.registry.delete(webhook_id)
            except TunnelError as e:
                log.warning(f"Cleanup of webhook {webhook_id} ({url}) failed: {e}")
                console.error(f"Failed to remove webhook {webhook_id}.")
            else:
                console.info(f"✅ Webhook {webhook_id} removed successfully.")

        return len(matches)
