# api/routers/history.py

from fastapi import APIRouter, Depends, Query, Response
from typing import Optional

import msgspec

from history_indexer.core.errors import UsageError
from history_indexer.services import HistoryService
from history_indexer.types import HistoryQuery, OrderDirection
from ..dependencies import get_history_service

router = APIRouter()


@router.get("")
def get_history(
    limit: int = Query(default=100, description="Entries per page, capped at 100"),
    offset: int = Query(default=0),
    order: str = Query(default="asc"),
    pair_address: Optional[str] = Query(default=None, alias="pairAddress"),
    token_address: Optional[str] = Query(default=None, alias="tokenAddress"),
    height: Optional[int] = Query(default=None),
    from_block_time: Optional[int] = Query(default=None, alias="fromBlockTime"),
    to_block_time: Optional[int] = Query(default=None, alias="toBlockTime"),
    history_service: HistoryService = Depends(get_history_service),
):
    """Liquidity history entries with USD values"""
    try:
        direction = OrderDirection(order.lower())
    except ValueError:
        raise UsageError(f"Invalid order '{order}', expected asc or desc")

    entries = history_service.get_all_history_entries(HistoryQuery(
        limit=limit,
        offset=offset,
        order=direction,
        pair_address=pair_address,
        token_address=token_address,
        height=height,
        from_block_time=from_block_time,
        to_block_time=to_block_time,
    ))
    return Response(content=msgspec.json.encode(entries), media_type="application/json")
