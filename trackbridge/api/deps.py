"""Request-scoped access to the objects wired in create_app()"""

from fastapi import Request

from trackbridge.services.event_dispatcher import EventDispatcher
from trackbridge.services.mapping_store import MappingStore
from trackbridge.services.reconciler import ReconciliationEngine


def get_engine(request: Request) -> ReconciliationEngine:
    return request.app.state.engine


def get_store(request: Request) -> MappingStore:
    return request.app.state.engine.store


def get_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.dispatcher
