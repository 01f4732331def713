from .abi import AbiFunction, Contract, ContractInterface
from .client import ChainClient
from .errors import (
    AbiError,
    ChainError,
    ExecutionReverted,
    MulticallError,
    RPCError,
    UnsupportedCallShape,
)
from .multicall import (
    MULTICALL3_ADDRESS,
    CallResult,
    DescriptorCall,
    HandleCall,
    MulticallAggregator,
    RawCall,
)
from .reader import ChainReader
from .scheduler import RequestScheduler, SchedulerState

__all__ = [
    "AbiFunction",
    "Contract",
    "ContractInterface",
    "ChainClient",
    "ChainReader",
    "RequestScheduler",
    "SchedulerState",
    "MulticallAggregator",
    "MULTICALL3_ADDRESS",
    "CallResult",
    "RawCall",
    "HandleCall",
    "DescriptorCall",
    "ChainError",
    "RPCError",
    "ExecutionReverted",
    "AbiError",
    "MulticallError",
    "UnsupportedCallShape",
]
