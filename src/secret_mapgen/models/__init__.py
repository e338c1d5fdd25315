"""Data models for secret_mapgen."""

from secret_mapgen.models.actions import (
    Clear,
    ExecuteAction,
    Generate,
    GetCount,
    GetMap,
    GetMapCount,
    GetMaps,
    Increment,
    QueryAction,
    Reset,
    parse_action,
    parse_query,
)
from secret_mapgen.models.config import ClientConfig, GasConfig
from secret_mapgen.models.records import (
    DeploymentRecord,
    ExecuteOutcome,
    LogEntry,
    SignerIdentity,
    TxResult,
)

__all__ = [
    "Clear", "ExecuteAction", "Generate", "GetCount", "GetMap", "GetMapCount",
    "GetMaps", "Increment", "QueryAction", "Reset", "parse_action", "parse_query",
    "ClientConfig", "GasConfig",
    "DeploymentRecord", "ExecuteOutcome", "LogEntry", "SignerIdentity", "TxResult",
]
