"""
Centralized configuration for the Lemon Squeezy webhook listener.
Override via environment variables; create_app() copies these into app.config.
"""
import os

# Lemon Squeezy credentials. Both are required before the listener does anything.
API_KEY = os.environ.get("LEMON_SQUEEZY_API_KEY")
STORE = os.environ.get("LEMON_SQUEEZY_STORE")

# Optional signing secret. When unset a random one is generated per webhook.
SIGNING_SECRET = os.environ.get("LEMON_SQUEEZY_SIGNING_SECRET")

# URL path segment the local webhook route is mounted under: /<PATH>/webhook
WEBHOOK_PATH = os.environ.get("LEMON_SQUEEZY_PATH", "lemon-squeezy").strip("/")

# Lemon Squeezy API base URL. Set LEMON_SQUEEZY_API_URL for a mock server.
API_URL = os.environ.get("LEMON_SQUEEZY_API_URL", "https://api.lemonsqueezy.com/v1").rstrip("/")

# Application environment. The listener refuses to run outside these.
APP_ENV = os.environ.get("APP_ENV", "production")
LOCAL_ENVIRONMENTS = ("local", "development")

# Where the local Flask app is served; the tunnel forwards to this base URL.
LOCAL_URL = os.environ.get("LEMON_SQUEEZY_LOCAL_URL", "http://127.0.0.1:5000").rstrip("/")

# ngrok local inspection API.
NGROK_API_URL = os.environ.get("NGROK_API_URL", "http://localhost:4040/api").rstrip("/")

# Seconds to wait for a tunnel to report its public URL before giving up.
try:
    TUNNEL_START_TIMEOUT = int(os.environ.get("TUNNEL_START_TIMEOUT", "120"))
except ValueError:
    TUNNEL_START_TIMEOUT = 120

# HTTP request timeout (seconds) for Lemon Squeezy and provider APIs.
REQUEST_TIMEOUT = 10
