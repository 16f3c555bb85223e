"""OAuth device authorization flow for GitHub.

The flow is a small state machine. Each state is an immutable value and each
transition is a plain function that accepts exactly one source state type:

    Idle -> RequestedCode -> AwaitingUserAction -> Polling
    Polling -> Polling | Authenticated | Expired | Denied

``DeviceFlow`` drives the machine against GitHub's endpoints, waiting between
polls and persisting the token once the user has authorized the device.
"""

import logging
import os
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

import requests

from atat.exceptions import (
    AuthDeniedError,
    AuthExpiredError,
    AuthFlowError,
    ConfigurationError,
    InvalidTransitionError,
    LoginCancelledError,
    NetworkError,
)
from atat.storage import TokenStore

logger = logging.getLogger(__name__)

DEVICE_CODE_URL = "https://github.com/login/device/code"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
SCOPE = "repo"
CLIENT_ID_ENV = "ATAT_CLIENT_ID"

DEFAULT_INTERVAL = 5
SLOW_DOWN_STEP = 5
REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class DeviceCode:
    """Response of the device code endpoint."""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int = DEFAULT_INTERVAL

    @classmethod
    def from_dict(cls, data: dict) -> "DeviceCode":
        """Create DeviceCode from the endpoint's JSON body.

        Raises:
            AuthFlowError: If the server answered with an error.
            NetworkError: If required fields are missing.
        """
        if "error" in data:
            raise AuthFlowError(str(data["error"]))
        try:
            return cls(
                device_code=str(data["device_code"]),
                user_code=str(data["user_code"]),
                verification_uri=str(data["verification_uri"]),
                expires_in=int(data["expires_in"]),
                interval=int(data.get("interval") or DEFAULT_INTERVAL),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError(f"Invalid device code response: {e}")


@dataclass(frozen=True)
class TokenResponse:
    """One answer from the token endpoint: a token or an error code."""

    access_token: Optional[str] = None
    error: Optional[str] = None
    interval: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TokenResponse":
        interval = data.get("interval")
        return cls(
            access_token=data.get("access_token") or None,
            error=data.get("error") or None,
            interval=interval if isinstance(interval, int) and not isinstance(interval, bool) else None,
        )


# States


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class RequestedCode:
    code: DeviceCode


@dataclass(frozen=True)
class AwaitingUserAction:
    code: DeviceCode


@dataclass(frozen=True)
class Polling:
    """Waiting for the user; ``deadline`` is on the flow's clock."""

    code: DeviceCode
    interval: int
    deadline: float


@dataclass(frozen=True)
class Authenticated:
    token: str

    def __repr__(self) -> str:
        return "Authenticated(token=***)"


@dataclass(frozen=True)
class Expired:
    pass


@dataclass(frozen=True)
class Denied:
    pass


State = Union[Idle, RequestedCode, AwaitingUserAction, Polling, Authenticated, Expired, Denied]
TERMINAL_STATES = (Authenticated, Expired, Denied)


def is_terminal(state: State) -> bool:
    return isinstance(state, TERMINAL_STATES)


# Transitions


def request_code(state: State, code: DeviceCode) -> RequestedCode:
    """Idle -> RequestedCode."""
    if not isinstance(state, Idle):
        raise InvalidTransitionError("request a device code", state)
    return RequestedCode(code=code)


def display(state: State) -> AwaitingUserAction:
    """RequestedCode -> AwaitingUserAction, once the code was shown."""
    if not isinstance(state, RequestedCode):
        raise InvalidTransitionError("display the user code", state)
    return AwaitingUserAction(code=state.code)


def begin_polling(state: State, now: float) -> Polling:
    """AwaitingUserAction -> Polling, starting the expiry countdown at ``now``."""
    if not isinstance(state, AwaitingUserAction):
        raise InvalidTransitionError("begin polling", state)
    return Polling(
        code=state.code,
        interval=max(state.code.interval, 1),
        deadline=now + state.code.expires_in,
    )


def on_poll_response(
    state: State, response: TokenResponse, now: float
) -> Union[Polling, Authenticated, Expired, Denied]:
    """Advance a polling state with one token endpoint answer.

    Args:
        state: Current Polling state.
        response: Parsed token endpoint response.
        now: Current time on the same clock used for ``begin_polling``.

    Returns:
        The next state.

    Raises:
        InvalidTransitionError: If ``state`` is not Polling.
        AuthFlowError: On an error code the flow does not know.
    """
    if not isinstance(state, Polling):
        raise InvalidTransitionError("handle a poll response", state)

    if response.access_token:
        return Authenticated(token=response.access_token)

    error = response.error
    if error == "authorization_pending":
        next_state: Polling = state
    elif error == "slow_down":
        interval = max(state.interval + SLOW_DOWN_STEP, response.interval or 0)
        logger.debug("Server asked to slow down; polling every %ds", interval)
        next_state = replace(state, interval=interval)
    elif error == "expired_token":
        return Expired()
    elif error == "access_denied":
        return Denied()
    else:
        raise AuthFlowError(error or "no access token in response")

    if now >= state.deadline:
        logger.debug("Device code passed its local deadline")
        return Expired()
    return next_state


def get_client_id() -> str:
    """Read the OAuth app client id from the environment.

    Raises:
        ConfigurationError: If ATAT_CLIENT_ID is not set.
    """
    client_id = os.environ.get(CLIENT_ID_ENV, "").strip()
    if not client_id:
        raise ConfigurationError(
            f"{CLIENT_ID_ENV} is not set. Set it to the client id of your GitHub OAuth app."
        )
    return client_id


class DeviceFlow:
    """Runs the device flow against GitHub and stores the resulting token.

    ``sleep``, ``clock`` and ``display`` are injectable so the loop can run
    without real waiting or terminal output.
    """

    def __init__(
        self,
        token_store: TokenStore,
        client_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        display: Optional[Callable[[DeviceCode], None]] = None,
    ):
        self.token_store = token_store
        self.client_id = client_id or get_client_id()
        self.session = session or requests.Session()
        self.sleep = sleep
        self.clock = clock
        self.show_code = display or (lambda code: None)

    def _post(self, url: str, data: dict) -> dict:
        try:
            response = self.session.post(
                url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Request to GitHub failed: {e}")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise NetworkError(
                f"Unexpected response from {url}: HTTP {response.status_code}",
                status=response.status_code,
            )
        if response.status_code >= 400 and "error" not in body:
            raise NetworkError(f"API request error: HTTP {response.status_code}", status=response.status_code)
        return body

    def request_device_code(self) -> DeviceCode:
        body = self._post(DEVICE_CODE_URL, {"client_id": self.client_id, "scope": SCOPE})
        return DeviceCode.from_dict(body)

    def poll_token(self, code: DeviceCode) -> TokenResponse:
        body = self._post(
            ACCESS_TOKEN_URL,
            {
                "client_id": self.client_id,
                "device_code": code.device_code,
                "grant_type": GRANT_TYPE,
            },
        )
        return TokenResponse.from_dict(body)

    def run(self) -> str:
        """Run the flow to completion.

        Returns:
            The access token, already saved in the token store.

        Raises:
            AuthExpiredError: If the code expired before authorization.
            AuthDeniedError: If the user declined.
            LoginCancelledError: If interrupted while waiting.
        """
        state: State = request_code(Idle(), self.request_device_code())
        try:
            state = display(state)
            self.show_code(state.code)
            state = begin_polling(state, self.clock())

            while not is_terminal(state):
                self.sleep(state.interval)
                state = on_poll_response(state, self.poll_token(state.code), self.clock())
        except KeyboardInterrupt:
            raise LoginCancelledError()

        if isinstance(state, Authenticated):
            self.token_store.set(state.token)
            logger.info("Device authorized; token saved")
            return state.token
        if isinstance(state, Expired):
            raise AuthExpiredError()
        raise AuthDeniedError()
