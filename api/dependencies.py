# api/dependencies.py

from fastapi import HTTPException
from typing import Optional

from history_indexer.services import GraphService, HistoryService

# Set during app startup
_graph_service: Optional[GraphService] = None
_history_service: Optional[HistoryService] = None


def set_dependencies(graph_service: GraphService, history_service: HistoryService):
    """Called during app startup to set global dependencies"""
    global _graph_service, _history_service
    _graph_service = graph_service
    _history_service = history_service


def get_graph_service() -> GraphService:
    if _graph_service is None:
        raise HTTPException(status_code=500, detail="Graph service not initialized")
    return _graph_service


def get_history_service() -> HistoryService:
    if _history_service is None:
        raise HTTPException(status_code=500, detail="History service not initialized")
    return _history_service
