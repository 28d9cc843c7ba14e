import pytest
import requests

from conftest import FakeResponse, FakeSession
from otp.connection import OTPConnection, connect
from otp.errors import OTPConnectionError


def test_default_urls():
    connection = OTPConnection()
    assert connection.root_url() == "http://localhost:8080"
    assert connection.base_url() == "http://localhost:8080/otp"
    assert connection.router_url() == "http://localhost:8080/otp/routers/default"


def test_ssl_urls():
    connection = OTPConnection(hostname="otp.example.org", router="exeter", port=8081, ssl=True)
    assert connection.router_url() == "https://otp.example.org:8081/otp/routers/exeter"


def test_url_override_is_the_router_endpoint():
    connection = OTPConnection(url="https://api.example.org/otp/routers/hsl/")
    assert connection.router_url() == "https://api.example.org/otp/routers/hsl"
    assert connection.base_url() == "https://api.example.org/otp"


def test_url_override_without_router_part():
    connection = OTPConnection(url="https://example.org/otp-proxy/")
    assert connection.router_url() == "https://example.org/otp-proxy"
    assert connection.base_url() == "https://example.org/otp-proxy"


def test_check_uses_override_url():
    session = FakeSession(FakeResponse({}))
    OTPConnection(url="https://api.example.org/otp/routers/hsl").check(session=session)
    assert session.calls[0]["url"] == "https://api.example.org/otp/routers/hsl"


@pytest.mark.parametrize(
    "kwargs",
    [{"router": ""}, {"hostname": ""}, {"port": 0}, {"port": 70000}],
)
def test_invalid_connection(kwargs):
    with pytest.raises(ValueError):
        OTPConnection(**kwargs)


def test_check_ok():
    session = FakeSession(FakeResponse({"routerId": "default"}))
    connection = OTPConnection()
    assert connection.check(session=session) is connection
    assert session.calls[0]["url"] == "http://localhost:8080/otp/routers/default"


def test_check_missing_router():
    session = FakeSession(FakeResponse(status_code=404))
    with pytest.raises(OTPConnectionError, match="does not exist"):
        OTPConnection(router="nowhere").check(session=session)


def test_check_nothing_listening():
    session = FakeSession(requests.ConnectionError("refused"))
    with pytest.raises(OTPConnectionError):
        OTPConnection().check(session=session)


def test_connect_checks_by_default(monkeypatch):
    urls = []

    def get(url, **kwargs):
        urls.append(url)
        return FakeResponse({})

    monkeypatch.setattr(requests, "get", get)

    connection = connect(hostname="otp.local", port=9000, router="r1")

    assert connection.router_url() == "http://otp.local:9000/otp/routers/r1"
    assert urls == ["http://otp.local:9000/otp/routers/r1"]


def test_connect_without_check(monkeypatch):
    def get(url, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(requests, "get", get)
    assert connect(check=False).port == 8080
