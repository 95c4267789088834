"""Agent management endpoints."""

import asyncio
import logging
import sqlite3

from fastapi import APIRouter, HTTPException, Request, Response

from debate_engine.exceptions import AgentNotFoundError, PingError
from debate_engine.models import Agent
from web.agent_request import AgentRequest
from web.agent_response import AgentResponse
from web.app_state import get_config, get_engine, get_store
from web.status_response import StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _not_found(agent_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Agent {agent_id} not found")


def _name_taken(name: str) -> HTTPException:
    return HTTPException(status_code=409, detail=f"An agent named '{name}' already exists")


@router.post("/agents", response_model=AgentResponse, status_code=201)
async def create_agent(request: Request, body: AgentRequest):
    """Register a new agent."""
    store = get_store(request)
    timeout = body.timeout_seconds or get_config(request).debate.agent_timeout_seconds
    agent = Agent(
        name=body.name,
        provider_url=body.provider_url,
        model_name=body.model_name,
        provider_type=body.provider_type,
        api_token=body.api_token or "",
        timeout_seconds=timeout,
    )
    try:
        agent = await asyncio.to_thread(store.insert_agent, agent)
    except sqlite3.IntegrityError:
        raise _name_taken(body.name)
    except Exception as e:
        logger.error(f"Failed to create agent {body.name}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create agent: {e}")

    logger.info(f"Created agent {agent.id}: {agent.name}")
    return AgentResponse.from_agent(agent)


@router.get("/agents", response_model=list[AgentResponse])
async def list_agents(request: Request):
    agents = await asyncio.to_thread(get_store(request).list_agents)
    return [AgentResponse.from_agent(agent) for agent in agents]


@router.get("/agents/{agent_id}", response_model=AgentResponse)
async def get_agent(request: Request, agent_id: int):
    try:
        agent = await asyncio.to_thread(get_store(request).get_agent, agent_id)
    except AgentNotFoundError:
        raise _not_found(agent_id)
    return AgentResponse.from_agent(agent)


@router.put("/agents/{agent_id}", response_model=AgentResponse)
async def update_agent(request: Request, agent_id: int, body: AgentRequest):
    """Replace an agent's configuration. Omitting api_token keeps the stored one."""
    store = get_store(request)
    try:
        agent = await asyncio.to_thread(store.get_agent, agent_id)
        agent.name = body.name
        agent.provider_url = body.provider_url
        agent.model_name = body.model_name
        agent.provider_type = body.provider_type
        if body.api_token is not None:
            agent.api_token = body.api_token
        if body.timeout_seconds is not None:
            agent.timeout_seconds = body.timeout_seconds
        agent = await asyncio.to_thread(store.update_agent, agent)
    except AgentNotFoundError:
        raise _not_found(agent_id)
    except sqlite3.IntegrityError:
        raise _name_taken(body.name)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update agent: {e}")
    return AgentResponse.from_agent(agent)


@router.delete("/agents/{agent_id}", status_code=204)
async def delete_agent(request: Request, agent_id: int):
    try:
        await asyncio.to_thread(get_store(request).delete_agent, agent_id)
    except AgentNotFoundError:
        raise _not_found(agent_id)
    return Response(status_code=204)


@router.post("/agents/{agent_id}/duplicate", response_model=AgentResponse, status_code=201)
async def duplicate_agent(request: Request, agent_id: int):
    """Copy an agent's configuration under the name "<name> - Copy"."""
    store = get_store(request)
    try:
        original = await asyncio.to_thread(store.get_agent, agent_id)
    except AgentNotFoundError:
        raise _not_found(agent_id)

    duplicate = Agent(
        name=f"{original.name} - Copy",
        provider_url=original.provider_url,
        model_name=original.model_name,
        provider_type=original.provider_type,
        api_token=original.api_token,
        timeout_seconds=original.timeout_seconds,
    )
    try:
        duplicate = await asyncio.to_thread(store.insert_agent, duplicate)
    except sqlite3.IntegrityError:
        raise _name_taken(duplicate.name)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to duplicate agent: {e}")
    return AgentResponse.from_agent(duplicate)


@router.post("/agents/{agent_id}/ping", response_model=StatusResponse)
async def ping_agent(request: Request, agent_id: int):
    """Check that an agent's endpoint is reachable."""
    try:
        await get_engine(request).ping_participant(agent_id)
    except AgentNotFoundError:
        raise _not_found(agent_id)
    except PingError as e:
        raise HTTPException(status_code=400, detail=f"Ping failed: {e}")
    return StatusResponse(status="ok")
