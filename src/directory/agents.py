"""
DESCRIPTION
-----------
Agent record service: fetch one stored agent (edit-mode hydration source) and
create/update agents with a multipart submission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from src.directory.client import ApiClient, FilePart
from src.directory.errors import ResponseParseError
from src.directory.schemas import AGENT_RECORD_SCHEMA
from src.validator.schema_validator import validate_schema

logger = logging.getLogger(__name__)

ONBOARD_PATH = "/api/agent/onboard"


def agent_path(agent_id: str) -> str:
    return f"/api/agents/{quote(str(agent_id), safe='')}"


@dataclass(frozen=True)
class AgentRecord:
    agent: Dict[str, Any]
    capabilities: List[Dict[str, Any]] = field(default_factory=list)
    deployments: List[Dict[str, Any]] = field(default_factory=list)
    documentation: Dict[str, Any] = field(default_factory=dict)
    demo_assets: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def demo_preview(self) -> str:
        return str(self.agent.get("demo_preview") or "")


def parse_agent_record(payload: Any) -> AgentRecord:
    issues = validate_schema(payload, AGENT_RECORD_SCHEMA)
    if issues:
        raise ResponseParseError("agent record", issues)

    documentation = payload.get("documentation") or []
    return AgentRecord(
        agent=dict(payload["agent"]),
        capabilities=list(payload.get("capabilities") or []),
        deployments=list(payload.get("deployments") or []),
        documentation=dict(documentation[0]) if documentation else {},
        demo_assets=list(payload.get("demo_assets") or []),
        raw=dict(payload),
    )


class AgentService:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def fetch_agent(self, agent_id: str) -> AgentRecord:
        payload = await self._client.get_json(agent_path(agent_id), requires_auth=True)
        return parse_agent_record(payload)

    async def create(self, fields: Mapping[str, str], files: Optional[List[FilePart]] = None) -> Any:
        logger.info("Submitting new agent %r", fields.get("agent_name", ""))
        return await self._client.send_multipart("POST", ONBOARD_PATH, fields=fields, files=files)

    async def update(
        self,
        agent_id: str,
        fields: Mapping[str, str],
        files: Optional[List[FilePart]] = None,
    ) -> Any:
        logger.info("Updating agent %s", agent_id)
        return await self._client.send_multipart("PUT", agent_path(agent_id), fields=fields, files=files)
