import threading
import time

import pytest
import requests

from authlayer import Authenticator
from authlayer.auth import ClientLoginAuth, ClientLoginCredentials, DeveloperKeyAuth, ServiceNames
from authlayer.auth.clientlogin import CLIENT_LOGIN_URL, parse_clientlogin_body
from authlayer.exceptions import AuthenticationError, ConfigurationError, TokenFetchError

LOGIN_BODY = "SID=sid\nLSID=lsid\nAuth=tok123\n"


def _scheme(**kwargs):
    return ClientLoginAuth(
        ClientLoginCredentials("user@example.com", "pw"),
        ServiceNames.YOUTUBE,
        **kwargs,
    )


def test_first_request_fetches_and_applies_token(requests_mock):
    login = requests_mock.post(CLIENT_LOGIN_URL, text=LOGIN_BODY)
    authenticator = Authenticator("MyApp", _scheme())

    first = authenticator.create_http_request("GET", "https://example.com/feed").unwrap()
    second = authenticator.create_http_request("GET", "https://example.com/feed").unwrap()

    assert first.headers["Authorization"] == "GoogleLogin auth=tok123"
    assert second.headers["Authorization"] == "GoogleLogin auth=tok123"
    assert login.call_count == 1
    body = login.last_request.text
    assert "service=youtube" in body
    assert "source=MyApp" in body
    assert "accountType=HOSTED_OR_GOOGLE" in body
    assert authenticator.scheme.source is None


def test_rejected_credentials_are_not_retried(requests_mock):
    login = requests_mock.post(
        CLIENT_LOGIN_URL, status_code=403, text="Error=BadAuthentication\n"
    )
    authenticator = Authenticator("MyApp", _scheme())

    with pytest.raises(AuthenticationError) as excinfo:
        authenticator.create_http_request("GET", "https://example.com/feed")

    assert login.call_count == 1
    assert excinfo.value.status_code == 403
    assert "BadAuthentication" in str(excinfo.value)


def test_transient_failure_is_retried_once(requests_mock):
    login = requests_mock.post(
        CLIENT_LOGIN_URL,
        [{"exc": requests.exceptions.ConnectTimeout}, {"text": LOGIN_BODY}],
    )
    scheme = _scheme()
    authenticator = Authenticator("MyApp", scheme)

    request = authenticator.create_http_request("GET", "https://example.com/feed").unwrap()

    assert request.headers["Authorization"] == "GoogleLogin auth=tok123"
    assert login.call_count == 2
    assert scheme.token == "tok123"


def test_repeated_transient_failure_surfaces_fetch_error(requests_mock):
    login = requests_mock.post(CLIENT_LOGIN_URL, exc=requests.exceptions.ConnectionError)
    authenticator = Authenticator("MyApp", _scheme())

    with pytest.raises(TokenFetchError):
        authenticator.create_http_request("GET", "https://example.com/feed")

    assert login.call_count == 2


def test_response_without_auth_line_is_an_error(requests_mock):
    requests_mock.post(CLIENT_LOGIN_URL, text="SID=only\n")
    authenticator = Authenticator("MyApp", _scheme())

    with pytest.raises(TokenFetchError, match="did not contain"):
        authenticator.create_http_request("GET", "https://example.com/feed")


def test_refresh_replaces_rejected_token(requests_mock):
    login = requests_mock.post(CLIENT_LOGIN_URL, text="Auth=fresh\n")
    scheme = _scheme()
    scheme.set_token("stale")
    authenticator = Authenticator("MyApp", scheme)

    request = authenticator.create_http_request("GET", "https://example.com/feed").unwrap()
    assert request.headers["Authorization"] == "GoogleLogin auth=stale"
    assert login.call_count == 0

    authenticator.refresh_authentication(request)

    assert request.headers["Authorization"] == "GoogleLogin auth=fresh"
    assert login.call_count == 1
    assert scheme.fetch_count == 1


def test_custom_login_url_and_source(requests_mock):
    login = requests_mock.post("https://login.test/ClientLogin", text=LOGIN_BODY)
    scheme = _scheme(login_url="https://login.test/ClientLogin", source="custom-source")
    authenticator = Authenticator("MyApp", scheme)

    authenticator.create_http_request("GET", "https://example.com/feed")

    assert "source=custom-source" in login.last_request.text


def test_parse_body_ignores_noise():
    fields = parse_clientlogin_body("Auth=a=b\n\ngarbage\nError=CaptchaRequired\n")

    assert fields == {"Auth": "a=b", "Error": "CaptchaRequired"}


def test_repr_hides_password():
    assert "pw" not in repr(ClientLoginCredentials("user@example.com", "pw"))
    with pytest.raises(ConfigurationError):
        ClientLoginCredentials("", "pw")


def test_source_follows_each_authenticator(requests_mock):
    login = requests_mock.post(CLIENT_LOGIN_URL, text=LOGIN_BODY)
    scheme = _scheme()

    first = Authenticator("FirstApp", scheme)
    request = first.create_http_request("GET", "https://example.com/a").unwrap()
    Authenticator("SecondApp", scheme).refresh_authentication(request)

    assert "source=FirstApp" in login.request_history[0].text
    assert "source=SecondApp" in login.request_history[1].text
    assert scheme.source is None


def test_retry_is_logged(requests_mock, caplog):
    requests_mock.post(
        CLIENT_LOGIN_URL,
        [{"exc": requests.exceptions.ConnectionError}, {"text": LOGIN_BODY}],
    )
    authenticator = Authenticator("MyApp", _scheme())

    with caplog.at_level("WARNING", logger="authlayer.auth.clientlogin"):
        authenticator.create_http_request("GET", "https://example.com/feed")

    assert "ConnectionError" in caplog.text
    assert "retry 1 of 1" in caplog.text


def test_concurrent_requests_share_one_login(requests_mock):
    def slow_login(request, context):
        time.sleep(0.2)
        return LOGIN_BODY

    login = requests_mock.post(CLIENT_LOGIN_URL, text=slow_login)
    authenticator = Authenticator("MyApp", _scheme())
    headers: list[str] = []
    errors: list[Exception] = []
    lock = threading.Lock()

    def worker():
        try:
            request = authenticator.create_http_request("GET", "https://example.com/feed").unwrap()
        except Exception as exc:
            with lock:
                errors.append(exc)
            return
        with lock:
            headers.append(request.headers["Authorization"])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert errors == []
    assert login.call_count == 1
    assert headers == ["GoogleLogin auth=tok123"] * 8


class RecordingSession(requests.Session):
    def __init__(self):
        super().__init__()
        self.closed = False

    def close(self):
        self.closed = True
        super().close()


def test_close_releases_owned_session(monkeypatch):
    monkeypatch.setattr("authlayer.auth.clientlogin.requests.Session", RecordingSession)
    scheme = _scheme()
    authenticator = Authenticator("MyApp", DeveloperKeyAuth(scheme))

    authenticator.close()

    assert scheme._session.closed is True


def test_close_leaves_injected_session_open():
    session = RecordingSession()
    scheme = _scheme(session=session)

    Authenticator("MyApp", scheme).close()

    assert session.closed is False
