"""Sync management endpoints"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from trackbridge.api.deps import get_engine, get_store
from trackbridge.errors import MissingMappings, TransportFailure
from trackbridge.services.mapping_store import MappingStore
from trackbridge.services.reconciler import ReconciliationEngine

router = APIRouter(prefix="/api/sync", tags=["sync"])


class MappingResponse(BaseModel):
    github_issue_id: int
    github_issue_number: int
    youtrack_task_id: str
    youtrack_task_id_readable: str
    last_synced_at: datetime

    class Config:
        from_attributes = True


@router.post("/import")
def trigger_import(engine: ReconciliationEngine = Depends(get_engine)):
    """Import all GitHub issues that are not mapped yet"""
    try:
        return engine.run_import().as_dict()
    except TransportFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/trigger")
def trigger_sync(engine: ReconciliationEngine = Depends(get_engine)):
    """Manually run an incremental sync pass"""
    try:
        return engine.run_sync().as_dict()
    except MissingMappings as e:
        raise HTTPException(status_code=409, detail=str(e))
    except TransportFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/issues/{number}/trigger")
def trigger_issue_sync(number: int, engine: ReconciliationEngine = Depends(get_engine)):
    """Sync one issue by number, importing it first if it has no mapping"""
    if engine.store.get_by_number(number) is None:
        return {"import": engine.import_issue_number(number).as_dict()}
    return {"sync": engine.run_sync(target_number=number).as_dict()}


@router.get("/mappings", response_model=List[MappingResponse])
def list_mappings(store: MappingStore = Depends(get_store)):
    """List issue -> task mappings in insertion order"""
    return [m.model_dump() for m in store.all()]


@router.delete("/mappings/{github_issue_id}")
def delete_mapping(github_issue_id: int, store: MappingStore = Depends(get_store)):
    """Forget a mapping (the YouTrack task itself is left untouched)"""
    if not store.delete(github_issue_id):
        raise HTTPException(status_code=404, detail="Mapping not found")
    return {"message": "Mapping deleted successfully"}
