"""Tests for chain.multicall: batch shapes and per-call failures."""

import pytest
from eth_abi import decode, encode

from chain.abi import Contract, ContractInterface
from chain.errors import ChainError, MulticallError, UnsupportedCallShape
from chain.multicall import (
    MULTICALL3_ADDRESS,
    CallResult,
    DescriptorCall,
    HandleCall,
    MulticallAggregator,
    RawCall,
)
from chain.scheduler import RequestScheduler

TOKEN_ABI = [
    {
        "type": "function",
        "name": "symbol",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "paused",
        "inputs": [],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

TOKEN_A = "0x00000000000000000000000000000000000000a1"
TOKEN_B = "0x00000000000000000000000000000000000000b2"
TOKEN_REVERTS = "0x00000000000000000000000000000000000000c3"
OWNER = "0x000000000000000000000000000000000000dEaD"

_IFACE = ContractInterface(TOKEN_ABI)


class _FakeMulticallClient:
    """Decodes aggregate3 requests and answers each sub-call from a table."""

    def __init__(self):
        self.requests = []
        self.symbols = {TOKEN_A: "AAA", TOKEN_B: "BBB"}
        self.garbage_targets = set()

    def call(self, request, block="latest"):
        self.requests.append(request)
        assert request.to == MULTICALL3_ADDRESS
        (calls,) = decode(["(address,bool,bytes)[]"], request.data[4:])
        results = [self._answer(target.lower(), data) for target, _allow, data in calls]
        return encode(["(bool,bytes)[]"], [results])

    def _answer(self, target, data):
        if target == TOKEN_REVERTS:
            return (False, b"")
        if target in self.garbage_targets:
            return (True, b"\x01")
        selector = data[:4]
        if selector == _IFACE.get_function("symbol").selector:
            return (True, encode(["string"], [self.symbols[target]]))
        if selector == _IFACE.get_function("balanceOf").selector:
            (owner,) = decode(["address"], data[4:])
            return (True, encode(["uint256"], [len(owner) * 1000]))
        return (False, b"")


class _FailingClient:
    def call(self, request, block="latest"):
        raise ChainError("network down")


class _BadResponseClient:
    def __init__(self, payload):
        self._payload = payload

    def call(self, request, block="latest"):
        return self._payload


def _aggregator(client):
    return MulticallAggregator(RequestScheduler(min_interval=0.0), client)


@pytest.mark.asyncio
async def test_empty_batch_has_no_network_activity():
    client = _FakeMulticallClient()
    scheduler = RequestScheduler(min_interval=0.0)
    aggregator = MulticallAggregator(scheduler, client)

    assert await aggregator.execute_batch([]) == []
    assert client.requests == []
    assert scheduler.executed == 0


@pytest.mark.asyncio
async def test_handle_batch_with_reverting_call_yields_none_at_position():
    client = _FakeMulticallClient()
    a = Contract.from_abi(TOKEN_A, TOKEN_ABI)
    bad = Contract.from_abi(TOKEN_REVERTS, TOKEN_ABI)
    b = Contract.from_abi(TOKEN_B, TOKEN_ABI)

    results = await _aggregator(client).execute_batch(
        [
            HandleCall(a, "symbol"),
            HandleCall(bad, "symbol", allow_failure=True),
            HandleCall(b, "balanceOf", [OWNER]),
        ]
    )

    assert results == ["AAA", None, 42000]
    assert len(client.requests) == 1


@pytest.mark.asyncio
async def test_failed_call_is_none_regardless_of_allow_failure():
    client = _FakeMulticallClient()
    bad = Contract.from_abi(TOKEN_REVERTS, TOKEN_ABI)

    results = await _aggregator(client).execute_batch(
        [HandleCall(bad, "symbol", allow_failure=False), HandleCall(bad, "symbol", allow_failure=True)]
    )

    assert results == [None, None]


@pytest.mark.asyncio
async def test_descriptor_batch_decodes_with_transient_interface():
    client = _FakeMulticallClient()

    results = await _aggregator(client).execute_batch(
        [
            DescriptorCall(TOKEN_B, TOKEN_ABI, "symbol"),
            DescriptorCall(TOKEN_A, TOKEN_ABI, "balanceOf", [OWNER], allow_failure=True),
        ]
    )

    assert results == ["BBB", 42000]


@pytest.mark.asyncio
async def test_decode_failure_is_contained(caplog):
    client = _FakeMulticallClient()
    client.garbage_targets.add(TOKEN_B)

    with caplog.at_level("WARNING", logger="chain.multicall"):
        results = await _aggregator(client).execute_batch(
            [DescriptorCall(TOKEN_A, TOKEN_ABI, "symbol"), DescriptorCall(TOKEN_B, TOKEN_ABI, "symbol")]
        )

    assert results == ["AAA", None]
    assert "Failed to decode" in caplog.text


@pytest.mark.asyncio
async def test_raw_batch_returns_call_results():
    client = _FakeMulticallClient()
    symbol_data = _IFACE.encode_function_data("symbol")

    results = await _aggregator(client).execute_batch(
        [RawCall(TOKEN_A, symbol_data), RawCall(TOKEN_REVERTS, symbol_data, allow_failure=True)]
    )

    assert results[0] == CallResult(True, encode(["string"], ["AAA"]))
    assert results[1] == CallResult(False, b"")


@pytest.mark.asyncio
async def test_invalid_item_is_skipped_not_sent():
    client = _FakeMulticallClient()

    results = await _aggregator(client).execute_batch(
        [
            DescriptorCall("not-an-address", TOKEN_ABI, "symbol"),
            DescriptorCall(TOKEN_A, TOKEN_ABI, "missingMethod"),
            DescriptorCall(TOKEN_B, TOKEN_ABI, "symbol"),
        ]
    )

    assert results == [None, None, "BBB"]
    (calls,) = decode(["(address,bool,bytes)[]"], client.requests[0].data[4:])
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_mixed_shapes_rejected_before_network():
    client = _FakeMulticallClient()
    a = Contract.from_abi(TOKEN_A, TOKEN_ABI)

    with pytest.raises(UnsupportedCallShape, match="Mixed"):
        await _aggregator(client).execute_batch(
            [HandleCall(a, "symbol"), DescriptorCall(TOKEN_B, TOKEN_ABI, "symbol")]
        )
    with pytest.raises(UnsupportedCallShape):
        await _aggregator(client).execute_batch([{"target": TOKEN_A}])
    assert client.requests == []


@pytest.mark.asyncio
async def test_transport_failure_fails_whole_batch():
    a = Contract.from_abi(TOKEN_A, TOKEN_ABI)

    with pytest.raises(ChainError, match="network down"):
        await _aggregator(_FailingClient()).execute_batch([HandleCall(a, "symbol")])


@pytest.mark.asyncio
async def test_malformed_aggregate_response_raises():
    a = Contract.from_abi(TOKEN_A, TOKEN_ABI)

    with pytest.raises(MulticallError, match="decode"):
        await _aggregator(_BadResponseClient(b"\x00")).execute_batch([HandleCall(a, "symbol")])

    short = encode(["(bool,bytes)[]"], [[]])
    with pytest.raises(MulticallError, match="0 results for 1 calls"):
        await _aggregator(_BadResponseClient(short)).execute_batch([HandleCall(a, "symbol")])


def test_encode_and_decode_helpers():
    aggregator = _aggregator(_FakeMulticallClient())
    a = Contract.from_abi(TOKEN_A, TOKEN_ABI)
    data = aggregator.encode_call(a, "paused")
    assert data == _IFACE.encode_function_data("paused")
    assert aggregator.decode_result(a, "paused", encode(["bool"], [True])) is True


@pytest.mark.asyncio
async def test_unencodable_argument_skips_only_that_call():
    client = _FakeMulticallClient()
    a = Contract.from_abi(TOKEN_A, TOKEN_ABI)
    b = Contract.from_abi(TOKEN_B, TOKEN_ABI)

    results = await _aggregator(client).execute_batch(
        [HandleCall(a, "symbol"), HandleCall(b, "balanceOf", ["not-an-address"])]
    )

    assert results == ["AAA", None]
    (calls,) = decode(["(address,bool,bytes)[]"], client.requests[0].data[4:])
    assert len(calls) == 1
