"""Ledger index records and the query interface the anchor check depends on.

The kernel never performs I/O itself; a ChainIndex implementation is
supplied by the caller, such as the HTTP coinset client.
"""

from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict


class ChainIndexError(Exception):
    """Raised by a ChainIndex when a query cannot be answered."""
    pass


class Coin(BaseModel):
    parent_coin_info: Optional[str] = None
    puzzle_hash: Optional[str] = None
    amount: Optional[int] = None


class CoinRecord(BaseModel):
    """A coin as reported by the coin index (read-only)."""
    coin: Coin
    coinbase: bool = False
    confirmed_block_index: int
    spent: bool = False
    spent_block_index: int = 0
    timestamp: int  # unix seconds

    @property
    def parent_coin_info(self) -> Optional[str]:
        return self.coin.parent_coin_info

    @property
    def puzzle_hash(self) -> Optional[str]:
        return self.coin.puzzle_hash

    @property
    def amount(self) -> Optional[int]:
        return self.coin.amount


class BlockRecord(BaseModel):
    """A block as reported by the block index; unused fields are ignored."""
    header_hash: str
    height: int

    model_config = ConfigDict(extra="ignore")


class ChainIndex(Protocol):
    """Read-only view of the coin index and block index."""

    async def get_coin_records_by_hint(
        self,
        hint: str,
        include_spent_coins: bool = True,
    ) -> List[CoinRecord]:
        ...

    async def get_block_record_by_height(self, height: int) -> BlockRecord:
        ...


def strip_hex_prefix(value: str) -> str:
    """Remove an optional "0x" prefix."""
    return value[2:] if value.startswith("0x") else value
