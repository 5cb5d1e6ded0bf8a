from __future__ import annotations

import logging
from typing import Any, List
from urllib.parse import quote

from src.deployments.options import FetchedOption, option_from_listing
from src.directory.client import ApiClient
from src.directory.errors import ResponseParseError
from src.directory.schemas import DEPLOYMENT_LIST_SCHEMA
from src.validator.schema_validator import validate_schema

logger = logging.getLogger(__name__)


def deployments_path(capability_id: str) -> str:
    return f"/api/capabilities/{quote(str(capability_id), safe='')}/deployments"


def parse_deployments(payload: Any, capability_id: str, capability_name: str) -> List[FetchedOption]:
    issues = validate_schema(payload, DEPLOYMENT_LIST_SCHEMA)
    if issues:
        raise ResponseParseError("deployment list", issues)

    #note: The caller's id/name own the options; the response echo is only a fallback for the name.
    name = capability_name or str(payload.get("capability_name") or "")
    return [
        option_from_listing(raw, capability_id, name)
        for raw in (payload.get("options") or [])
    ]


class DeploymentDirectory:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def fetch(self, capability_id: str, capability_name: str = "") -> List[FetchedOption]:
        """Raises ApiError / ResponseParseError; the resolver decides how to degrade."""
        payload = await self._client.get_json(deployments_path(capability_id))
        options = parse_deployments(payload, capability_id, capability_name)
        logger.debug("Capability %s offers %d deployment option(s)", capability_id, len(options))
        return options
