"""Connection Initializer — server URL parsing and handle creation.

Tests:
    - hostname/port come from the URL authority, port stays a string
    - admin credentials land in auth
    - malformed addresses raise ConnectionConfigError synchronously
"""

import pytest

from modsetup.core.errors import ConnectionConfigError, InvalidWorkerError
from modsetup.infrastructure.connection import init_connection, parse_server_url
from modsetup.infrastructure.couch import CouchConnection
from modsetup.services.setup import Setup


def test_parses_host_and_port_from_authority():
    d = parse_server_url("https://couch.myapp.com:80", "admin", "secret")
    assert d.hostname == "couch.myapp.com"
    assert d.port == "80"
    assert d.auth.username == "admin"
    assert d.auth.password == "secret"
    assert d.scheme == "https"


def test_port_is_kept_as_literal_string():
    d = parse_server_url("http://localhost:05984", "admin", "secret")
    assert d.port == "05984"
    assert d.base_url == "http://localhost:05984"


def test_missing_port_uses_scheme_default():
    assert parse_server_url("http://couch", "a", "b").port == "80"
    assert parse_server_url("https://couch", "a", "b").port == "443"


def test_userinfo_in_url_is_ignored():
    d = parse_server_url("http://bob:pw@couch:5984", "admin", "secret")
    assert d.hostname == "couch"
    assert d.auth.username == "admin"


def test_ipv6_host():
    d = parse_server_url("http://[::1]:5984", "admin", "secret")
    assert d.hostname == "::1"
    assert d.port == "5984"


@pytest.mark.parametrize("url", [
    "", None, "couch.myapp.com:80", "ftp://couch:21", "http://:5984", "http://couch:abc",
])
def test_malformed_urls_raise(url):
    with pytest.raises(ConnectionConfigError):
        parse_server_url(url, "admin", "secret")


def test_admin_user_is_required():
    with pytest.raises(ConnectionConfigError):
        parse_server_url("http://couch:5984", "", "secret")


def test_init_connection_returns_handle_with_options():
    couch = init_connection("https://couch.myapp.com:80", "admin", "secret")
    assert isinstance(couch, CouchConnection)
    assert couch.options.hostname == "couch.myapp.com"
    assert couch.options.port == "80"
    assert couch.options.auth.username == "admin"
    assert couch.options.auth.password == "secret"


def test_setup_opens_worker_couch_from_config(worker):
    Setup(worker)
    assert worker.couch.options.hostname == "couch.myapp.com"
    assert worker.couch.options.port == "80"
    assert worker.couch.options.auth.username == "admin"
    assert worker.couch.options.auth.password == "secret"


def test_setup_with_malformed_server_fails_at_construction(worker):
    worker.config["server"] = "not a url"
    with pytest.raises(ConnectionConfigError):
        Setup(worker)


@pytest.mark.parametrize("admin", ["admin:secret", ["admin", "secret"], 42])
def test_setup_with_non_mapping_admin_raises_connection_error(worker, admin):
    worker.config["admin"] = admin
    with pytest.raises(ConnectionConfigError):
        Setup(worker)


@pytest.mark.parametrize("name", ["", "   ", None])
def test_setup_rejects_worker_without_name(worker, name):
    worker.name = name
    with pytest.raises(InvalidWorkerError) as exc_info:
        Setup(worker)
    assert exc_info.value.code == "INVALID_WORKER"
    assert worker.couch is None
