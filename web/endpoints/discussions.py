"""Discussion management, live stream and WebSocket endpoints."""

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from debate_engine.exceptions import (
    AgentNotFoundError,
    DebateStateError,
    DebateValidationError,
    DiscussionNotFoundError,
)
from debate_engine.types import DiscussionStatus
from web.app_state import get_broadcaster, get_engine, get_store
from web.discussion_request import DiscussionRequest
from web.discussion_response import (
    DiscussionLogResponse,
    DiscussionResponse,
    DiscussionStatusResponse,
)
from web.status_response import RetryResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
ws_router = APIRouter()

STREAM_KEEPALIVE_SECONDS = 15.0


def _not_found(discussion_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Discussion {discussion_id} not found")


def _sse(event_type: str, data: Any) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


@router.post("/discussions", response_model=DiscussionResponse, status_code=201)
async def create_discussion(request: Request, body: DiscussionRequest):
    """Start a discussion. Returns once it is persisted; the debate runs in the background."""
    try:
        discussion = await get_engine(request).start_debate(
            body.topic,
            body.agent_ids,
            moderator_id=body.moderator_id,
            max_rounds=body.max_rounds,
            language=body.language,
            max_char_limit=body.max_char_limit,
        )
    except DebateValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create discussion: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create discussion: {e}")

    logger.info(f"Created discussion {discussion.id}: {discussion.topic}")
    return DiscussionResponse.from_discussion(discussion)


@router.get("/discussions", response_model=list[DiscussionResponse])
async def list_discussions(request: Request):
    discussions = await asyncio.to_thread(get_store(request).list_discussions)
    return [DiscussionResponse.from_discussion(d) for d in discussions]


@router.get("/discussions/{discussion_id}", response_model=DiscussionStatusResponse)
async def get_discussion(request: Request, discussion_id: int):
    """Get a discussion together with its ordered turn log."""
    try:
        discussion, logs = await get_engine(request).get_status(discussion_id)
    except DiscussionNotFoundError:
        raise _not_found(discussion_id)

    return DiscussionStatusResponse(
        discussion=DiscussionResponse.from_discussion(discussion),
        logs=[DiscussionLogResponse.from_log(log) for log in logs],
    )


@router.post("/discussions/{discussion_id}/stop", response_model=StatusResponse)
async def stop_discussion(request: Request, discussion_id: int):
    try:
        await get_engine(request).stop_debate(discussion_id)
    except DiscussionNotFoundError:
        raise _not_found(discussion_id)
    except DebateStateError as e:
        raise HTTPException(status_code=400, detail=f"Failed to stop discussion: {e}")
    return StatusResponse(status="stopped")


@router.post(
    "/discussions/{discussion_id}/retry/{agent_id}", response_model=RetryResponse
)
async def retry_agent(request: Request, discussion_id: int, agent_id: int):
    """Re-ask one agent and append the outcome to the discussion log."""
    try:
        log = await get_engine(request).retry_participant(discussion_id, agent_id)
    except DiscussionNotFoundError:
        raise _not_found(discussion_id)
    except AgentNotFoundError:
        raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")
    except DebateStateError as e:
        raise HTTPException(status_code=400, detail=f"Failed to retry agent: {e}")
    return RetryResponse(status="retry completed", log=DiscussionLogResponse.from_log(log))


@router.delete("/discussions/{discussion_id}", status_code=204)
async def delete_discussion(request: Request, discussion_id: int):
    engine = get_engine(request)
    if engine.is_executing(discussion_id):
        raise HTTPException(
            status_code=400, detail="Cannot delete a discussion while it is running"
        )
    try:
        await asyncio.to_thread(get_store(request).delete_discussion, discussion_id)
    except DiscussionNotFoundError:
        raise _not_found(discussion_id)
    return Response(status_code=204)


@router.get("/discussions/{discussion_id}/stream")
async def stream_discussion(request: Request, discussion_id: int):
    """Server-Sent Events: a snapshot of the discussion, then live updates until it ends."""
    engine = get_engine(request)
    broadcaster = get_broadcaster(request)

    # Subscribe before reading the snapshot so nothing falls between the two.
    subscription = broadcaster.subscribe(discussion_id)
    try:
        discussion, logs = await engine.get_status(discussion_id)
    except DiscussionNotFoundError:
        broadcaster.unsubscribe(subscription)
        raise _not_found(discussion_id)

    async def event_stream() -> AsyncIterator[str]:
        try:
            yield _sse("discussion", discussion.to_dict())
            yield _sse("logs", [log.to_dict() for log in logs])
            if not discussion.is_running:
                return

            while True:
                try:
                    event = await asyncio.wait_for(
                        subscription.get(), timeout=STREAM_KEEPALIVE_SECONDS
                    )
                except asyncio.TimeoutError:
                    if await request.is_disconnected():
                        return
                    yield ": keep-alive\n\n"
                    continue

                if event is None:
                    return
                yield _sse(event["type"], event["data"])
                if (
                    event["type"] == "discussion"
                    and event["data"]["status"] != DiscussionStatus.RUNNING.value
                ):
                    return
        finally:
            broadcaster.unsubscribe(subscription)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@ws_router.websocket("/ws/discussions/{discussion_id}")
async def websocket_endpoint(websocket: WebSocket, discussion_id: int):
    """WebSocket endpoint for real-time discussion updates."""
    await websocket.accept()
    broadcaster = get_broadcaster(websocket)
    subscription = broadcaster.subscribe(discussion_id)

    async def forward_events() -> None:
        async for event in subscription.events():
            await websocket.send_json(event)

    sender: asyncio.Task[None] | None = None
    try:
        try:
            discussion = await asyncio.to_thread(
                get_store(websocket).get_discussion, discussion_id
            )
            status = discussion.status.value
        except DiscussionNotFoundError:
            status = None
        await websocket.send_json(
            {"type": "connected", "discussion_id": discussion_id, "status": status}
        )

        sender = asyncio.create_task(forward_events())
        # Keep connection alive
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"WebSocket listener for discussion {discussion_id} disconnected")
    finally:
        broadcaster.unsubscribe(subscription)
        if sender is not None:
            sender.cancel()
            with contextlib.suppress(Exception, asyncio.CancelledError):
                await sender
