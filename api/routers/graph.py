# api/routers/graph.py

from fastapi import APIRouter, Depends, Query, Response
from typing import Optional

import msgspec

from history_indexer.services import GraphService
from ..dependencies import get_graph_service

router = APIRouter()


@router.get("")
def get_graph(
    graph_type: str = Query(alias="graphType"),
    time_frame: str = Query(default="MAX", alias="timeFrame"),
    token_address: Optional[str] = Query(default=None, alias="tokenAddress"),
    pair_address: Optional[str] = Query(default=None, alias="pairAddress"),
    graph_service: GraphService = Depends(get_graph_service),
):
    """Time series for one graph type, time frame and optional token or pair scope"""
    graph = graph_service.get_graph(
        graph_type,
        time_frame,
        token_address=token_address,
        pair_address=pair_address,
    )
    return Response(content=msgspec.json.encode(graph), media_type="application/json")
