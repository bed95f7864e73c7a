#!/usr/bin/env python3
"""Launch the transit map API with uvicorn, honouring the PORT environment variable."""

import os
import subprocess
import sys
from pathlib import Path

port = os.environ.get("PORT", "8000")
try:
    port_int = int(port)
except ValueError:
    print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
    port_int = 8000

src_path = Path(__file__).resolve().parent / "src"
if not src_path.is_dir():
    print(f"Warning: src directory not found at {src_path}", file=sys.stderr)
    src_path = Path.cwd()

pythonpath = os.environ.get("PYTHONPATH", "")
os.environ["PYTHONPATH"] = f"{src_path}{os.pathsep}{pythonpath}" if pythonpath else str(src_path)
sys.path.insert(0, str(src_path))

cmd = [
    sys.executable,
    "-m",
    "uvicorn",
    "transitmap.main:app",
    "--host",
    os.environ.get("HOST", "0.0.0.0"),
    "--port",
    str(port_int),
    "--proxy-headers",
    "--forwarded-allow-ips",
    "*",
]

print(f"Starting server on port {port_int}...", file=sys.stderr)
print(f"PYTHONPATH={os.environ['PYTHONPATH']}", file=sys.stderr)

# Fail fast when the package or its route index cannot be loaded.
try:
    from transitmap.config import settings
    from transitmap.data.routes_repository import get_registry
except ImportError as e:
    print(f"Failed to import transitmap: {e}", file=sys.stderr)
    sys.exit(1)

registry = get_registry()
print(
    f"Route data: {len(registry.routes)} routes, {len(registry.stops)} stops from {settings.routes_dir}",
    file=sys.stderr,
)

try:
    sys.exit(subprocess.call(cmd))
except KeyboardInterrupt:
    print("Server interrupted by user", file=sys.stderr)
    sys.exit(0)
