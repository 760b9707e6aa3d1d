"""HTTP client for the SimpleFIN API.

Every request goes through ``BasicAuthTransport``, which stamps the access
credential onto a copy of the outgoing request.
"""

from __future__ import annotations

import base64
import logging

import httpx

from monies.models.accounts import AccountsResponse, GetAccountsOptions
from monies.models.auth import AccessCredential
from monies.utils.errors import ApiError, NetworkError

logger = logging.getLogger(__name__)


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class BasicAuthTransport(httpx.BaseTransport):
    """Transport that adds Basic-Auth to a copy of each request.

    The caller's request is never modified. Holds no per-request state, so
    one instance can serve any number of sequential requests.
    """

    def __init__(
        self,
        username: str,
        password: str,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._authorization = basic_auth_header(username, password)
        self._transport = transport or httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        headers = request.headers.copy()
        headers["Authorization"] = self._authorization
        cloned = httpx.Request(
            request.method,
            request.url,
            headers=headers,
            stream=request.stream,
            extensions=dict(request.extensions),
        )
        return self._transport.handle_request(cloned)

    def close(self) -> None:
        self._transport.close()


def build_accounts_params(options: GetAccountsOptions | None) -> list[tuple[str, str]]:
    """Query parameters for ``/accounts``, sorted by key."""
    options = options or GetAccountsOptions()
    params: list[tuple[str, str]] = [("account", account_id) for account_id in options.account_ids]
    params.append(("balances-only", "1" if options.balances_only else "0"))
    if options.end_date is not None:
        params.append(("end-date", str(options.end_date)))
    if options.pending:
        params.append(("pending", "1"))
    if options.start_date is not None:
        params.append(("start-date", str(options.start_date)))
    return params


class SimpleFinClient:
    """Read-only client for the SimpleFIN ``/accounts`` endpoint."""

    def __init__(
        self,
        credential: AccessCredential,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = f"https://{credential.host_path.rstrip('/')}"
        self._http = httpx.Client(
            transport=BasicAuthTransport(credential.username, credential.password, transport),
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_accounts(self, options: GetAccountsOptions | None = None) -> AccountsResponse:
        """Fetch accounts, balances, and (unless balances-only) transactions.

        Raises:
            NetworkError: The request could not be sent.
            ApiError: Non-2xx status or an unparseable body.
        """
        url = f"{self._base_url}/accounts"
        params = build_accounts_params(options)
        logger.info(f"GET {url}")

        try:
            response = self._http.get(url, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"SimpleFIN request failed: {e}") from e

        if response.status_code >= 400:
            detail = response.text.strip()
            if response.status_code == 403:
                detail = detail or "access denied; the token may have been revoked"
            raise ApiError(
                f"SimpleFIN API error (HTTP {response.status_code}): {detail}",
                status_code=response.status_code,
            )

        try:
            data = AccountsResponse.model_validate(response.json())
        except ValueError as e:
            raise ApiError(f"SimpleFIN returned an invalid accounts payload: {e}") from e

        for message in data.errors:
            logger.warning(f"SimpleFIN: {message}")
        return data

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def __enter__(self) -> SimpleFinClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
