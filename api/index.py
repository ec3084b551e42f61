# api/index.py
"""
Serverless function adapter.

The Python runtime looks for a variable named `app` (ASGI); FastAPI is ASGI,
so the app is re-exported as-is.
"""
import sys
import os

# Ensure project root is on the Python path so `portal_analytics.*` imports resolve.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

os.environ.setdefault("PROMETHEUS_ENABLED", "false")

# Only /tmp is writable on serverless hosts
if not os.environ.get("DATABASE_URL"):
    os.environ["DATABASE_URL"] = "sqlite:////tmp/portal_analytics.db"

# Load .env if present (hosts inject env vars natively, but this helps local testing)
from dotenv import load_dotenv
load_dotenv(os.path.join(ROOT, ".env"), override=True)

from portal_analytics.app import app  # noqa: E402,F401
