"""Unit tests for database URL and SSL handling."""

import ssl

from dmn_audit.database import (
    get_engine_url_and_connect_args,
    ssl_connect_arg,
    strip_ssl_params,
)

BASE_URL = "postgresql+asyncpg://dmn:pw@db.example.com:5432/dmn_audit"


def test_strip_ssl_params_returns_mode_and_keeps_other_params():
    url, mode = strip_ssl_params(BASE_URL + "?sslmode=verify-full&application_name=audit")
    assert mode == "verify-full"
    assert url == BASE_URL + "?application_name=audit"


def test_strip_ssl_params_without_ssl_leaves_url():
    assert strip_ssl_params(BASE_URL) == (BASE_URL, None)


def test_verify_full_keeps_certificate_and_hostname_checks():
    url, connect_args = get_engine_url_and_connect_args(BASE_URL + "?sslmode=verify-full")
    ctx = connect_args["ssl"]
    assert url == BASE_URL
    assert isinstance(ctx, ssl.SSLContext)
    assert ctx.verify_mode == ssl.CERT_REQUIRED
    assert ctx.check_hostname is True


def test_verify_ca_checks_certificate_not_hostname():
    ctx = ssl_connect_arg("verify-ca")
    assert ctx.verify_mode == ssl.CERT_REQUIRED
    assert ctx.check_hostname is False


def test_require_encrypts_without_verification():
    """libpq's require/prefer do not check the server certificate."""
    for mode in ("require", "prefer", "REQUIRE"):
        ctx = ssl_connect_arg(mode)
        assert ctx.verify_mode == ssl.CERT_NONE
        assert ctx.check_hostname is False


def test_disable_turns_ssl_off():
    _, connect_args = get_engine_url_and_connect_args(BASE_URL + "?sslmode=disable")
    assert connect_args == {"ssl": False}


def test_no_ssl_param_means_no_connect_args():
    assert get_engine_url_and_connect_args(BASE_URL) == (BASE_URL, {})
