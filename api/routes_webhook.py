"""Webhook route - receives events forwarded through the tunnel."""

import hashlib
import hmac

from flask import current_app, jsonify, request

from api import api_bp


def verify_signature(secret, payload, signature):
    """Check the X-Signature header: hex HMAC-SHA256 of the raw body."""
    expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature or '')


@api_bp.route('/webhook', methods=['POST'])
def receive_webhook():
    """
    Acknowledge a Lemon Squeezy webhook.

    Only the signature and envelope are checked; handling the event itself is
    left to the application.
    """
    secret = current_app.config.get('LEMON_SQUEEZY_SIGNING_SECRET')

    if secret and not verify_signature(secret, request.get_data(), request.headers.get('X-Signature')):
        current_app.logger.warning(f"Webhook signature mismatch from {request.remote_addr}")
        return jsonify({'error': 'Invalid signature'}), 401

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({'error': 'Invalid JSON'}), 400

    event = (payload.get('meta') or {}).get('event_name', '')
    current_app.logger.info(f"Webhook received: {event or 'unknown event'}")

    return jsonify({'status': 'success', 'event': event}), 200
