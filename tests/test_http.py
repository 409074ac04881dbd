import pytest

from authlayer import HttpRequestFactory, PendingRequest, ProxyConfig, RequestFactory, TransportConfig
from authlayer.config import ENV_PREFIX
from authlayer.exceptions import ConfigurationError, MalformedRequestError


def test_factory_binds_request_to_exact_uri():
    request = HttpRequestFactory().create("https://example.com/feed?alt=json")

    assert request.url == "https://example.com/feed?alt=json"
    assert request.allow_redirects is True
    assert len(request.headers) == 0


@pytest.mark.parametrize("uri", ["", "example.com/feed", "/feed", "ftp://example.com/file"])
def test_factory_rejects_unusable_uris(uri):
    with pytest.raises(MalformedRequestError):
        HttpRequestFactory().create(uri)


def test_factory_copies_transport_settings():
    transport = TransportConfig(
        timeout=5.0,
        verify_ssl="/etc/ca.pem",
        proxy=ProxyConfig(https="http://proxy:3128"),
        user_agent="MyApp/1.0",
    )

    request = HttpRequestFactory(transport).create("https://example.com/")

    assert request.timeout == 5.0
    assert request.verify == "/etc/ca.pem"
    assert request.proxies == {"https": "http://proxy:3128"}
    assert request.headers["user-agent"] == "MyApp/1.0"


def test_default_factory_satisfies_protocol():
    assert isinstance(HttpRequestFactory(), RequestFactory)


def test_prepare_carries_method_headers_and_body():
    request = PendingRequest(method="POST", url="https://example.com/feed", data="<entry/>")
    request.headers["Authorization"] = "AuthSub token=\"x\""

    prepared = request.prepare()

    assert prepared.method == "POST"
    assert prepared.url == "https://example.com/feed"
    assert prepared.headers["Authorization"] == "AuthSub token=\"x\""
    assert prepared.body == "<entry/>"


def test_proxy_config_maps_to_requests_proxies():
    proxy = ProxyConfig(http="http://p:1", https="http://p:2", no_proxy="localhost")

    assert proxy.as_requests() == {
        "http": "http://p:1",
        "https": "http://p:2",
        "no_proxy": "localhost",
    }
    assert bool(ProxyConfig()) is False


def test_transport_from_env():
    env = {
        f"{ENV_PREFIX}TIMEOUT": "12",
        f"{ENV_PREFIX}CA_CERT": "/tmp/ca.pem",
        f"{ENV_PREFIX}HTTPS_PROXY": "http://proxy:3128",
    }

    config = TransportConfig.from_env(env)

    assert config.timeout == 12.0
    assert config.verify_ssl == "/tmp/ca.pem"
    assert config.resolved_proxies() == {"https": "http://proxy:3128"}


def test_transport_from_env_defaults_and_errors():
    assert TransportConfig.from_env({}).verify_ssl is True
    assert TransportConfig.from_env({f"{ENV_PREFIX}VERIFY_SSL": "off"}).verify_ssl is False

    with pytest.raises(ConfigurationError):
        TransportConfig.from_env({f"{ENV_PREFIX}TIMEOUT": "soon"})
    with pytest.raises(ConfigurationError):
        TransportConfig.from_env(
            {f"{ENV_PREFIX}VERIFY_SSL": "0", f"{ENV_PREFIX}CA_CERT": "/tmp/ca.pem"}
        )
