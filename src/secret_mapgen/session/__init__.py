"""Client-side session: signer lifecycle, contract calls, busy tracking."""

from secret_mapgen.session.contract import ContractSession
from secret_mapgen.session.guard import OperationGuard, OperationStatus
from secret_mapgen.session.lifecycle import (
    AUTO_CONNECT_FLAG,
    ConnectionState,
    SessionLifecycle,
)

__all__ = [
    "ContractSession",
    "OperationGuard", "OperationStatus",
    "AUTO_CONNECT_FLAG", "ConnectionState", "SessionLifecycle",
]
