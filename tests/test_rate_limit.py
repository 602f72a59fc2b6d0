"""Tests for client IP resolution behind trusted proxies."""

from types import SimpleNamespace

import pytest

from kuvaajat.rate_limit import get_client_ip, is_trusted_proxy, trusted_networks


def make_request(host, forwarded_for=None):
    headers = {"x-forwarded-for": forwarded_for} if forwarded_for else {}
    return SimpleNamespace(client=SimpleNamespace(host=host), headers=headers)


@pytest.fixture(autouse=True)
def reset_networks(monkeypatch):
    monkeypatch.delenv("TRUSTED_PROXY_CIDRS", raising=False)
    trusted_networks.cache_clear()
    yield
    trusted_networks.cache_clear()


class TestTrustedProxy:
    @pytest.mark.parametrize("ip", ["127.0.0.1", "10.0.1.5", "172.17.0.1", "192.168.1.100", "::1"])
    def test_private_ranges_trusted_by_default(self, ip):
        assert is_trusted_proxy(ip) is True

    def test_public_ip_not_trusted(self):
        assert is_trusted_proxy("8.8.8.8") is False

    def test_garbage_not_trusted(self):
        assert is_trusted_proxy("not-an-ip") is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TRUSTED_PROXY_CIDRS", "203.0.113.0/24, bogus")
        trusted_networks.cache_clear()

        assert is_trusted_proxy("203.0.113.7") is True
        assert is_trusted_proxy("10.0.0.1") is False


class TestClientIp:
    def test_direct_connection(self):
        assert get_client_ip(make_request("198.51.100.4")) == "198.51.100.4"

    def test_forwarded_from_trusted_proxy(self):
        request = make_request("10.0.0.2", "198.51.100.4, 10.0.0.9")

        assert get_client_ip(request) == "198.51.100.4"

    def test_spoofed_header_ignored(self):
        request = make_request("198.51.100.4", "1.2.3.4")

        assert get_client_ip(request) == "198.51.100.4"

    def test_empty_forwarded_value(self):
        assert get_client_ip(make_request("10.0.0.2", " ,")) == "10.0.0.2"
