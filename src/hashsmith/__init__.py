__all__ = [
    # Network
    "EnvironmentKind",
    "NetworkEndpoint",
    "NetworkContext",
    "load_network_context",
    "LedgerSession",
    # Artifacts
    "ArtifactRegistry",
    "ContractArtifact",
    "link_bytecode",
    "load_bytecode_file",
    # Encoding
    "CallSpec",
    "encode_call",
    "encode_constructor",
    "decode_call_data",
    # Gas
    "EstimationSource",
    "GasEstimate",
    "estimate_gas",
    "call_read_only",
    # Execution
    "ExecutionResult",
    "execute_deploy",
    "execute_invoke",
    # Decoding
    "AddressValue",
    "DecodedField",
    "EventRecord",
    "NativeAccountId",
    "RawAddress",
    "decode_log",
    "decode_return",
    "decode_error",
    # Mirror
    "MirrorLogReader",
    "fetch_logs",
    # Ids
    "EntityId",
    # Errors
    "HashsmithError",
    "ConfigurationError",
    "LocalError",
    "NetworkError",
    "ArtifactNotFound",
    "ArtifactMalformed",
    "ArgumentTypeMismatch",
    "FunctionOrEventNotFound",
    "LogDecodeSkipped",
    "QueryReverted",
    "TransactionStatusFailure",
    "TransportFailure",
]

from .errors import (
    ArgumentTypeMismatch,
    ArtifactMalformed,
    ArtifactNotFound,
    ConfigurationError,
    FunctionOrEventNotFound,
    HashsmithError,
    LocalError,
    LogDecodeSkipped,
    NetworkError,
    QueryReverted,
    TransactionStatusFailure,
    TransportFailure,
)
from .network import EnvironmentKind, NetworkContext, NetworkEndpoint, load_network_context
from .conduit.ids import EntityId
from .conduit.rpc import LedgerSession
from .conduit.artifacts import ArtifactRegistry, ContractArtifact, link_bytecode, load_bytecode_file
from .conduit.encoder import CallSpec, decode_call_data, encode_call, encode_constructor
from .conduit.decoder import (
    AddressValue,
    DecodedField,
    EventRecord,
    NativeAccountId,
    RawAddress,
    decode_log,
    decode_return,
)
from .conduit.revert import decode_error
from .conduit.gas import EstimationSource, GasEstimate, call_read_only, estimate_gas
from .conduit.executor import ExecutionResult, execute_deploy, execute_invoke
from .conduit.mirror import MirrorLogReader, fetch_logs
