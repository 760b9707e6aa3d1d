"""Tests for client.py — Basic-Auth transport, query params, accounts requests."""
import base64

import httpx
import pytest

from monies.client import BasicAuthTransport, SimpleFinClient, basic_auth_header, build_accounts_params
from monies.models.accounts import GetAccountsOptions
from monies.models.auth import AccessCredential
from monies.utils.errors import ApiError, NetworkError

ACCOUNTS_BODY = {
    "errors": ["Connection to Example Bank may need attention"],
    "accounts": [
        {
            "org": {"domain": "example.com", "name": "Example Bank", "sfin-url": "https://sfin.example.com/"},
            "id": "acct-1",
            "name": "Checking",
            "currency": "USD",
            "balance": "100.23",
            "available-balance": "75.23",
            "balance-date": 1700000000,
            "transactions": [
                {"id": "tx-1", "posted": 1699990000, "amount": "-33.00", "description": "Coffee"},
            ],
        },
    ],
}


class _Recorder:
    def __init__(self, status_code=200, json=None, text=None):
        self.requests: list[httpx.Request] = []
        self._status_code = status_code
        self._json = json
        self._text = text

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._text is not None:
            return httpx.Response(self._status_code, text=self._text)
        return httpx.Response(self._status_code, json=self._json if self._json is not None else {})


def _decode_basic(header: str) -> str:
    assert header.startswith("Basic ")
    return base64.b64decode(header[len("Basic "):]).decode("utf-8")


# ── BasicAuthTransport ───────────────────────────────────────────────

def test_basic_auth_header():
    assert basic_auth_header("alice", "s3cr3t") == "Basic " + base64.b64encode(b"alice:s3cr3t").decode()


def test_transport_sets_authorization():
    recorder = _Recorder()
    transport = BasicAuthTransport("alice", "s3cr3t", httpx.MockTransport(recorder))
    transport.handle_request(httpx.Request("GET", "https://api.example.com/accounts"))

    assert _decode_basic(recorder.requests[0].headers["Authorization"]) == "alice:s3cr3t"


def test_transport_does_not_mutate_original():
    recorder = _Recorder()
    transport = BasicAuthTransport("alice", "s3cr3t", httpx.MockTransport(recorder))
    original = httpx.Request("GET", "https://api.example.com/accounts", headers={"X-Trace": "1"})

    transport.handle_request(original)
    assert "Authorization" not in original.headers
    assert recorder.requests[0] is not original
    assert recorder.requests[0].headers["X-Trace"] == "1"


def test_transport_overrides_existing_authorization():
    recorder = _Recorder()
    transport = BasicAuthTransport("alice", "s3cr3t", httpx.MockTransport(recorder))
    transport.handle_request(
        httpx.Request("GET", "https://api.example.com/accounts", headers={"Authorization": "Bearer x"})
    )
    assert _decode_basic(recorder.requests[0].headers["Authorization"]) == "alice:s3cr3t"


def test_transport_empty_credentials():
    recorder = _Recorder()
    transport = BasicAuthTransport("", "", httpx.MockTransport(recorder))
    transport.handle_request(httpx.Request("GET", "https://api.example.com/accounts"))
    assert _decode_basic(recorder.requests[0].headers["Authorization"]) == ":"


def test_transport_special_characters():
    recorder = _Recorder()
    transport = BasicAuthTransport("us@er", "p:ss wörd", httpx.MockTransport(recorder))
    transport.handle_request(httpx.Request("GET", "https://api.example.com/accounts"))
    assert _decode_basic(recorder.requests[0].headers["Authorization"]) == "us@er:p:ss wörd"


def test_transport_reused_across_requests():
    recorder = _Recorder()
    transport = BasicAuthTransport("alice", "s3cr3t", httpx.MockTransport(recorder))
    for path in ("/a", "/b", "/c"):
        transport.handle_request(httpx.Request("GET", f"https://api.example.com{path}"))

    assert len(recorder.requests) == 3
    headers = {r.headers["Authorization"] for r in recorder.requests}
    assert len(headers) == 1


# ── build_accounts_params ────────────────────────────────────────────

def test_params_default():
    assert build_accounts_params(GetAccountsOptions()) == [("balances-only", "0")]


def test_params_none_options():
    assert build_accounts_params(None) == [("balances-only", "0")]


def test_params_all_set_sorted_by_key():
    params = build_accounts_params(GetAccountsOptions(
        start_date=1700000000,
        end_date=1700086400,
        pending=True,
        account_ids=["a1", "a2"],
        balances_only=True,
    ))
    assert params == [
        ("account", "a1"),
        ("account", "a2"),
        ("balances-only", "1"),
        ("end-date", "1700086400"),
        ("pending", "1"),
        ("start-date", "1700000000"),
    ]


def test_params_pending_false_omitted():
    keys = [k for k, _ in build_accounts_params(GetAccountsOptions(pending=False))]
    assert "pending" not in keys


# ── SimpleFinClient ──────────────────────────────────────────────────

def _client(recorder, host_path="api.example.com/simplefin/") -> SimpleFinClient:
    credential = AccessCredential(username="alice", password="s3cr3t", host_path=host_path)
    return SimpleFinClient(credential, transport=httpx.MockTransport(recorder))


def test_base_url_strips_trailing_slash():
    assert _client(_Recorder()).base_url == "https://api.example.com/simplefin"


def test_get_accounts_parses_response():
    recorder = _Recorder(json=ACCOUNTS_BODY)
    with _client(recorder) as client:
        response = client.get_accounts(GetAccountsOptions())

    assert len(response.accounts) == 1
    account = response.accounts[0]
    assert account.id == "acct-1"
    assert account.org.name == "Example Bank"
    assert account.available_balance == "75.23"
    assert account.transactions[0].amount == "-33.00"
    assert response.errors == ["Connection to Example Bank may need attention"]


def test_get_accounts_request_shape():
    recorder = _Recorder(json=ACCOUNTS_BODY)
    with _client(recorder) as client:
        client.get_accounts(GetAccountsOptions(pending=True, account_ids=["acct-1"]))

    request = recorder.requests[0]
    assert request.url.path == "/simplefin/accounts"
    assert str(request.url.query, "ascii") == "account=acct-1&balances-only=0&pending=1"
    assert _decode_basic(request.headers["Authorization"]) == "alice:s3cr3t"


def test_get_accounts_forbidden():
    recorder = _Recorder(status_code=403, text="")
    with _client(recorder) as client:
        with pytest.raises(ApiError) as exc_info:
            client.get_accounts()
    assert exc_info.value.status_code == 403
    assert "revoked" in str(exc_info.value)


def test_get_accounts_server_error():
    recorder = _Recorder(status_code=500, text="boom")
    with _client(recorder) as client:
        with pytest.raises(ApiError, match="500"):
            client.get_accounts()


def test_get_accounts_invalid_json():
    recorder = _Recorder(text="<html>not json</html>")
    with _client(recorder) as client:
        with pytest.raises(ApiError, match="invalid accounts payload"):
            client.get_accounts()


def test_get_accounts_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    credential = AccessCredential(username="alice", password="s3cr3t", host_path="api.example.com")
    with SimpleFinClient(credential, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError):
            client.get_accounts()
