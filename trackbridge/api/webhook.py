"""GitHub webhook endpoint"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request

from trackbridge.api.deps import get_dispatcher
from trackbridge.errors import SignatureInvalid
from trackbridge.services.event_dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


def _handle_delivery(
    dispatcher: EventDispatcher, event: str, payload: Dict[str, Any], delivery_id: Optional[str]
):
    try:
        outcome = dispatcher.dispatch(event, payload, delivery_id)
        logger.info(f"Delivery {delivery_id} handled: {outcome.value}")
    except Exception as e:
        logger.error(f"Error handling {event} delivery {delivery_id}: {e}")


def build_router(path: str) -> APIRouter:
    """Router serving the webhook at the configured path"""
    router = APIRouter(tags=["webhook"])

    @router.post(path, status_code=202)
    async def receive_webhook(
        request: Request,
        background_tasks: BackgroundTasks,
        x_github_event: Optional[str] = Header(None),
        x_github_delivery: Optional[str] = Header(None),
        x_hub_signature_256: Optional[str] = Header(None),
        dispatcher: EventDispatcher = Depends(get_dispatcher),
    ):
        """Verify and accept a GitHub delivery; handling runs after the response"""
        body = await request.body()
        try:
            payload = dispatcher.verify(body, x_hub_signature_256)
        except SignatureInvalid as e:
            logger.warning(f"Webhook verification failed for delivery {x_github_delivery}: {e}")
            raise HTTPException(status_code=401, detail="Invalid signature")
        except ValueError:
            raise HTTPException(status_code=400, detail="Payload must be a JSON object")

        if not x_github_event:
            raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

        background_tasks.add_task(
            _handle_delivery, dispatcher, x_github_event, payload, x_github_delivery
        )
        return {"status": "accepted", "delivery": x_github_delivery, "event": x_github_event}

    return router
