"""Authenticated HTTP client for the wireless controller REST API.

Wraps a requests.Session with bearer-token authentication, password-grant
login and a single automatic token refresh on HTTP 401. Every failure,
transport or HTTP, is raised as a RemoteRequestError carrying the
controller's own message when one is available.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from netcap.models.capture import (
    RemoteRequestError,
    REMOTE_AUTH_FAILED,
    REMOTE_REQUEST_FAILED,
    REMOTE_UNREACHABLE,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
TOKEN_PATH = '/v1/oauth2/token'
REFRESH_PATH = '/v1/oauth2/refreshToken'


def extract_error_message(response: requests.Response) -> str:
    """Extract a human-readable error message from a controller response.

    Looks for 'message', 'error' (string or object with 'message'),
    'errors[0].errorMessage' and 'detail', falling back to a generic
    status message.

    Args:
        response: Failed HTTP response

    Returns:
        Error message
    """
    fallback = f'Request failed with status {response.status_code}'
    try:
        data = response.json()
    except ValueError:
        return fallback

    if not isinstance(data, dict):
        return fallback

    if isinstance(data.get('message'), str) and data['message']:
        return data['message']

    error = data.get('error')
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict) and isinstance(error.get('message'), str):
        return error['message']

    errors = data.get('errors')
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        message = errors[0].get('errorMessage') or errors[0].get('message')
        if message:
            return str(message)

    if isinstance(data.get('detail'), str) and data['detail']:
        return data['detail']

    return fallback


class ControllerClient:
    """HTTP client for the controller management API.

    Attributes:
        base_url: Controller base URL (e.g. 'https://controller:443/management')
        timeout: Default per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        verify_tls: bool = True,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Controller base URL
            access_token: Pre-issued bearer token (optional)
            username: Account used for password-grant login (optional)
            password: Password used for password-grant login (optional)
            timeout: Default request timeout in seconds
            verify_tls: Verify the controller certificate
            session: requests.Session to use (created if None)
        """
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self._username = username
        self._password = password
        self._access_token = access_token
        self._refresh_token: str | None = None
        self._auth_lock = threading.Lock()
        self._session = session or requests.Session()
        self._session.verify = verify_tls
        self._session.headers.update({'Accept': 'application/json'})

        logger.info(
            f'ControllerClient initialized '
            f'(base_url={self.base_url}, timeout={timeout}, verify_tls={verify_tls})'
        )

    @property
    def is_authenticated(self) -> bool:
        """Check if a bearer token is available."""
        return bool(self._access_token)

    def login(self, username: str | None = None, password: str | None = None) -> dict[str, Any]:
        """Obtain tokens with the OAuth2 password grant.

        Args:
            username: Account name (defaults to the configured one)
            password: Password (defaults to the configured one)

        Returns:
            Token response from the controller

        Raises:
            RemoteRequestError: If credentials are missing or rejected
        """
        username = username or self._username
        password = password or self._password
        if not username or not password:
            raise RemoteRequestError(
                code=REMOTE_AUTH_FAILED,
                message='Controller credentials are not configured',
            )

        payload = {
            'grantType': 'password',
            'userId': username.strip(),
            'password': password,
        }
        data = self._token_request(TOKEN_PATH, payload)

        with self._auth_lock:
            self._username = username
            self._password = password
            self._store_tokens(data)

        logger.info(f'Controller login successful (user={username})')
        return data

    def _refresh_access_token(self) -> bool:
        """Renew the access token.

        Uses the refresh token when one is held, otherwise logs in again
        with the configured credentials.

        Returns:
            True if a new token was obtained
        """
        with self._auth_lock:
            refresh_token = self._refresh_token
            can_login = bool(self._username and self._password)

        try:
            if refresh_token:
                data = self._token_request(REFRESH_PATH, {'refresh_token': refresh_token})
                with self._auth_lock:
                    self._store_tokens(data)
                logger.info('Controller access token refreshed')
                return True
            if can_login:
                self.login()
                return True
        except RemoteRequestError as e:
            logger.warning(f'Controller token renewal failed (error={e.message})')
            with self._auth_lock:
                self._access_token = None
                self._refresh_token = None
        return False

    def _store_tokens(self, data: dict[str, Any]) -> None:
        self._access_token = data.get('access_token')
        self._refresh_token = data.get('refresh_token')
        if not self._access_token:
            raise RemoteRequestError(
                code=REMOTE_AUTH_FAILED,
                message='Controller did not return an access token',
            )

    def _token_request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._session.post(
                f'{self.base_url}{path}',
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteRequestError(
                code=REMOTE_UNREACHABLE,
                message=f'Controller unreachable: {str(e)}',
                details={'path': path},
            ) from e

        if not response.ok:
            raise RemoteRequestError(
                code=REMOTE_AUTH_FAILED,
                message=extract_error_message(response),
                details={'path': path},
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteRequestError(
                code=REMOTE_AUTH_FAILED,
                message='Controller returned an invalid token response',
                details={'path': path},
                status_code=response.status_code,
            ) from e

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        raw: bool = False,
    ) -> Any:
        """Send an authenticated request.

        Args:
            method: HTTP verb
            path: Path relative to base_url (e.g. '/v1/packetcapture/active')
            json: JSON body
            params: Query parameters
            timeout: Per-call timeout (defaults to self.timeout)
            raw: Return the response body as bytes instead of decoded JSON

        Returns:
            Decoded JSON (None for an empty body), or bytes when raw is True

        Raises:
            RemoteRequestError: On transport failure or non-success status
        """
        if not self._access_token and self._username and self._password:
            self.login()

        response = self._send(method, path, json, params, timeout)

        if response.status_code == 401 and self._refresh_access_token():
            logger.debug(f'Retrying after token renewal (method={method}, path={path})')
            response = self._send(method, path, json, params, timeout)

        if not response.ok:
            message = extract_error_message(response)
            level = logging.DEBUG if response.status_code == 404 else logging.WARNING
            logger.log(
                level,
                f'Controller request failed '
                f'(method={method}, path={path}, status={response.status_code}, message={message})'
            )
            raise RemoteRequestError(
                code=REMOTE_AUTH_FAILED if response.status_code == 401 else REMOTE_REQUEST_FAILED,
                message=message,
                details={'method': method, 'path': path},
                status_code=response.status_code,
            )

        if raw:
            return response.content
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f'Non-JSON controller response ignored (path={path})')
            return None

    def _send(
        self,
        method: str,
        path: str,
        json: Any,
        params: dict[str, Any] | None,
        timeout: float | None,
    ) -> requests.Response:
        headers = {}
        if self._access_token:
            headers['Authorization'] = f'Bearer {self._access_token}'

        try:
            return self._session.request(
                method,
                f'{self.base_url}{path}',
                json=json,
                params=params,
                headers=headers,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f'Controller unreachable (method={method}, path={path}, error={str(e)})')
            raise RemoteRequestError(
                code=REMOTE_UNREACHABLE,
                message=f'Controller unreachable: {str(e)}',
                details={'method': method, 'path': path},
            ) from e

    def get(self, path: str, **kwargs: Any) -> Any:
        """Send an authenticated GET."""
        return self.request('GET', path, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        """Send an authenticated POST."""
        return self.request('POST', path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        """Send an authenticated PUT."""
        return self.request('PUT', path, json=json, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        """Send an authenticated DELETE."""
        return self.request('DELETE', path, **kwargs)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
