"""Session lifecycle - connect/disconnect/auto-reconnect of the signer identity."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from secret_mapgen.errors import ConnectionRejected, ExtensionMissing
from secret_mapgen.interfaces.signer import ClientFactory, ProviderLocator
from secret_mapgen.interfaces.store import PreferenceStore
from secret_mapgen.models.records import SignerIdentity

log = logging.getLogger(__name__)

AUTO_CONNECT_FLAG = "wallet_auto_connect"

MSG_EXTENSION_MISSING = "Please install the wallet extension"
MSG_CONNECT_FAILED = (
    "An error occurred while connecting to the wallet. Please try again."
)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


StateListener = Callable[[ConnectionState], None]
AlertSink = Callable[[str], None]


class SessionLifecycle:
    """Owns the signer identity and its connection state machine.

    ``signer`` is only available in CONNECTED; CONNECTING reads the same as
    DISCONNECTED to everything downstream.
    """

    def __init__(
        self,
        chain_id: str,
        locate_provider: ProviderLocator,
        client_factory: ClientFactory,
        preferences: PreferenceStore,
        alert: AlertSink | None = None,
    ) -> None:
        self._chain_id = chain_id
        self._locate_provider = locate_provider
        self._client_factory = client_factory
        self._prefs = preferences
        self._alert = alert or (lambda msg: log.error("%s", msg))
        self._state = ConnectionState.DISCONNECTED
        self._identity: SignerIdentity | None = None
        self._listeners: list[StateListener] = []
        self.last_error: Exception | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def signer(self) -> SignerIdentity | None:
        return self._identity if self.is_connected else None

    @property
    def address(self) -> str | None:
        identity = self.signer
        return identity.address if identity else None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ── Transitions ────────────────────────────────────────

    async def connect(self) -> bool:
        """Connect the wallet. Failures are alerted, never silent.

        Returns True when CONNECTED. The auto-connect preference is only
        written once the identity is in place.
        """
        return await self._connect(alert=True)

    async def disconnect(self) -> None:
        """Drop the identity and turn auto-connect off."""
        identity = self._identity
        self._identity = None
        self._set_state(ConnectionState.DISCONNECTED)
        await self._prefs.set_flag(AUTO_CONNECT_FLAG, False)
        if identity is not None:
            await _close_client(identity)
        log.info("Wallet disconnected")

    async def shutdown(self) -> None:
        """Release the identity at process exit, keeping the auto-connect preference."""
        identity = self._identity
        self._identity = None
        self._set_state(ConnectionState.DISCONNECTED)
        if identity is not None:
            await _close_client(identity)

    async def auto_reconnect(self) -> bool:
        """Reconnect once at startup if the user connected last time.

        Best effort: a stale or broken signer must not block startup, so
        failures are logged and swallowed.
        """
        try:
            wanted = await self._prefs.get_flag(AUTO_CONNECT_FLAG)
        except Exception as exc:
            log.warning("Could not read auto-connect preference: %s", exc)
            return False
        if not wanted:
            return False
        log.info("Auto-connecting wallet")
        return await self._connect(alert=False)

    # ── Internals ──────────────────────────────────────────

    async def _connect(self, alert: bool) -> bool:
        if self._state is ConnectionState.CONNECTED:
            return True
        if self._state is ConnectionState.CONNECTING:
            log.debug("Connect already in progress")
            return False
        self.last_error = None
        self._set_state(ConnectionState.CONNECTING)
        try:
            identity = await self._setup()
        except ExtensionMissing as exc:
            self._fail(exc, MSG_EXTENSION_MISSING, alert)
            return False
        except Exception as exc:
            self._fail(exc, MSG_CONNECT_FAILED, alert)
            return False

        self._identity = identity
        self._set_state(ConnectionState.CONNECTED)
        log.info("Wallet connected: %s", identity.address)
        try:
            await self._prefs.set_flag(AUTO_CONNECT_FLAG, True)
        except Exception as exc:
            log.warning("Could not save auto-connect preference: %s", exc)
        return True

    async def _setup(self) -> SignerIdentity:
        provider = self._locate_provider()
        if provider is None:
            raise ExtensionMissing("no signer provider available")

        await provider.enable(self._chain_id)
        offline_signer = provider.get_offline_signer(self._chain_id)
        accounts = await offline_signer.get_accounts()
        if not accounts:
            raise ConnectionRejected(f"wallet exposes no account for {self._chain_id}")
        address = accounts[0].address

        client = self._client_factory(
            offline_signer, address, provider.get_encryption_utils(self._chain_id),
        )
        return SignerIdentity(address=address, client=client)

    def _fail(self, exc: Exception, message: str, alert: bool) -> None:
        self.last_error = exc
        self._identity = None
        self._set_state(ConnectionState.DISCONNECTED)
        if alert:
            log.error("Wallet connection failed: %s", exc)
            self._alert(message)
        else:
            log.warning("Auto-connect failed: %s", exc)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        log.debug("Connection state %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                log.exception("State listener failed")


async def _close_client(identity: SignerIdentity) -> None:
    close = getattr(identity.client, "close", None)
    if close is None:
        return
    try:
        await close()
    except Exception as exc:
        log.debug("Closing chain client failed: %s", exc)
