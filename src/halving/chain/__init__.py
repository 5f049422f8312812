"""Chain access — epoch codec and the node's JSON-RPC client."""

from halving.chain.epoch_codec import (
    EpochIntegrityError,
    check_epoch,
    decode_epoch,
    encode_epoch,
    parse_packed,
)
from halving.chain.rpc_client import (
    ChainDataClient,
    ChainDataError,
    ChainProtocolError,
    ChainTransportError,
)

__all__ = [
    "EpochIntegrityError",
    "check_epoch",
    "decode_epoch",
    "encode_epoch",
    "parse_packed",
    "ChainDataClient",
    "ChainDataError",
    "ChainProtocolError",
    "ChainTransportError",
]
