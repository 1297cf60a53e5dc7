"""
Gateway module for the solgrind SDK.

The gateway is the network boundary: recent blockhashes, account lookups,
balances and broadcast. ``RpcGateway`` talks to a real node,
``StubGateway`` keeps everything in memory.
"""
from .transport import AccountInfo, LedgerGateway, get_gateway
from .rpc_transport import RpcGateway
from .stub_transport import StubGateway
from ._rate_limited_log import rate_limited_log

__all__ = [
    'AccountInfo',
    'LedgerGateway',
    'RpcGateway',
    'StubGateway',
    'get_gateway',
    'rate_limited_log',
]
