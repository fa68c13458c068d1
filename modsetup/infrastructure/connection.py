"""Connection Initializer — turns a worker's server URL and admin pair into a CouchConnection.

Invariants:
    - hostname and port always come from the URL authority; port stays a string
    - Admin credentials are required
    - Malformed addresses raise ConnectionConfigError immediately (never retried)
"""

from urllib.parse import urlsplit

import httpx

from modsetup.core.errors import ConnectionConfigError
from modsetup.infrastructure.couch import (
    ConnectionAuth, ConnectionDescriptor, CouchConnection,
)

DEFAULT_PORTS = {"http": "80", "https": "443"}


def parse_server_url(
    server_url: str, admin_user: str, admin_pass: str,
) -> ConnectionDescriptor:
    """Build a ConnectionDescriptor from `scheme://host:port` plus admin credentials."""
    if not isinstance(server_url, str) or not server_url.strip():
        raise ConnectionConfigError("Server URL is empty", server_url)
    parts = urlsplit(server_url.strip())
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ConnectionConfigError(
            f"Unsupported scheme in server URL: {server_url!r}", server_url,
        )
    # userinfo is ignored; credentials come from the admin pair
    authority = parts.netloc.rpartition("@")[2]
    if authority.startswith("["):
        host, _, rest = authority[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    else:
        host, _, port = authority.partition(":")
    if not host:
        raise ConnectionConfigError(
            f"Server URL has no host: {server_url!r}", server_url,
        )
    if port and not port.isdigit():
        raise ConnectionConfigError(
            f"Server URL has an invalid port: {server_url!r}", server_url,
        )
    if not admin_user:
        raise ConnectionConfigError("Admin user is required", server_url)
    return ConnectionDescriptor(
        hostname=host,
        port=port or DEFAULT_PORTS[scheme],
        auth=ConnectionAuth(username=admin_user, password=admin_pass or ""),
        scheme=scheme,
    )


def init_connection(
    server_url: str,
    admin_user: str,
    admin_pass: str,
    timeout_seconds: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CouchConnection:
    """Open a handle on the document store. Performs no network I/O."""
    descriptor = parse_server_url(server_url, admin_user, admin_pass)
    return CouchConnection(
        descriptor, timeout_seconds=timeout_seconds, transport=transport,
    )
