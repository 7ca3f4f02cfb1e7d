"""Tests for the coin/block index HTTP client."""

import httpx
import pytest

from proof_builders import BLOCK_INDEX, COIN_ID, CoinsetStub, coin_record, mock_client

from chiastamp.kernel.chain import ChainIndexError
from chiastamp._internal.coinset import CoinsetClient, CoinsetError


def _client(stub):
    return CoinsetClient("https://coinset.test/", client=mock_client(stub))


@pytest.mark.asyncio
async def test_coin_records_are_parsed(coinset_stub, coinset_client):
    records = await coinset_client.get_coin_records_by_hint("ab" * 32)
    assert len(records) == 1
    record = records[0]
    assert record.parent_coin_info == "0x" + COIN_ID
    assert record.amount == 1
    assert record.confirmed_block_index == BLOCK_INDEX
    assert coinset_stub.requests[0] == (
        "get_coin_records_by_hint",
        {"hint": "ab" * 32, "include_spent_coins": True},
    )


@pytest.mark.asyncio
async def test_block_record_ignores_extra_fields(coinset_client):
    block = await coinset_client.get_block_record_by_height(BLOCK_INDEX)
    assert block.height == BLOCK_INDEX
    assert not hasattr(block, "weight")


@pytest.mark.asyncio
async def test_trailing_slash_in_base_url():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"success": True, "coin_records": []})

    client = CoinsetClient("https://coinset.test/", client=mock_client(handler))
    assert await client.get_coin_records_by_hint("00") == []
    assert seen == ["https://coinset.test/get_coin_records_by_hint"]


@pytest.mark.asyncio
async def test_missing_coin_records_is_unsuccessful():
    stub = CoinsetStub()
    stub.coins_response = {"success": True}
    with pytest.raises(CoinsetError, match="unsuccessful"):
        await _client(stub).get_coin_records_by_hint("00")


@pytest.mark.asyncio
async def test_non_json_body():
    stub = CoinsetStub()
    stub.coins_response = httpx.Response(200, content=b"<html>gateway</html>")
    with pytest.raises(CoinsetError, match="malformed"):
        await _client(stub).get_coin_records_by_hint("00")


@pytest.mark.asyncio
async def test_malformed_record():
    broken = coin_record()
    del broken["confirmed_block_index"]
    stub = CoinsetStub(coin_records=[broken])
    with pytest.raises(CoinsetError, match="malformed coin records"):
        await _client(stub).get_coin_records_by_hint("00")


@pytest.mark.asyncio
async def test_block_http_error_status():
    stub = CoinsetStub()
    stub.block_response = httpx.Response(404)
    with pytest.raises(CoinsetError, match="Block record API responded with status: 404"):
        await _client(stub).get_block_record_by_height(1)


@pytest.mark.asyncio
async def test_errors_are_chain_index_errors():
    assert issubclass(CoinsetError, ChainIndexError)


@pytest.mark.asyncio
async def test_owned_client_is_closed():
    client = CoinsetClient("https://coinset.test")
    async with client:
        inner = client._get_client()
    assert inner.is_closed


@pytest.mark.asyncio
async def test_injected_client_is_not_closed(coinset_stub):
    inner = mock_client(coinset_stub)
    async with CoinsetClient("https://coinset.test", client=inner):
        pass
    assert not inner.is_closed
    await inner.aclose()
