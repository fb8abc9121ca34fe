"""Unit tests for admin API key checks."""

import asyncio

import pytest
from fastapi import HTTPException

from dmn_audit.auth import middleware
from dmn_audit.auth.middleware import hash_api_key, require_admin_key


@pytest.fixture
def admin_key(monkeypatch):
    key = "sk_admin_test"
    monkeypatch.setattr(middleware.settings, "admin_api_key_hashes", [hash_api_key(key)])
    return key


def test_hash_api_key_deterministic():
    assert hash_api_key("abc") == hash_api_key("abc")
    assert hash_api_key("abc") != hash_api_key("abd")


def test_valid_key_accepted(admin_key):
    assert asyncio.run(require_admin_key(f"Bearer {admin_key}")) == hash_api_key(admin_key)


@pytest.mark.parametrize(
    "header,status_code",
    [
        (None, 401),
        ("Token abc", 401),
        ("Bearer   ", 401),
        ("Bearer wrong", 403),
    ],
)
def test_rejected_headers(admin_key, header, status_code):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(require_admin_key(header))
    assert exc_info.value.status_code == status_code
