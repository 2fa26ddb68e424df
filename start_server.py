#!/usr/bin/env python3
"""Start the timeline API with uvicorn, honoring the PORT environment variable."""

import os
import sys

import uvicorn

# Get PORT from environment, default to 8000
port = os.environ.get("PORT", "8000")

try:
    port_int = int(port)
except ValueError:
    print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
    port_int = 8000

# Allow running from a source checkout without installing the package
src_path = os.path.abspath("src")
if os.path.isdir(src_path) and src_path not in sys.path:
    sys.path.insert(0, src_path)

try:
    from fieldroute.config import settings
except ImportError as e:
    print(f"Failed to import fieldroute (ImportError): {e}", file=sys.stderr)
    sys.exit(1)

print(f"Starting {settings.app_name} on port {port_int} ({settings.routing_provider} routing)...", file=sys.stderr)

uvicorn.run(
    "fieldroute.main:app",
    host="0.0.0.0",
    port=port_int,
    log_level=settings.log_level.lower(),
    proxy_headers=True,
    forwarded_allow_ips="*",
)
