"""HTTP clients for the agent store directory and persistence services."""

from src.directory.agents import AgentRecord, AgentService, parse_agent_record
from src.directory.capabilities import CapabilityDirectory, CapabilityRecord, parse_capabilities
from src.directory.client import ApiClient
from src.directory.deployments import DeploymentDirectory, parse_deployments
from src.directory.errors import ApiError, ResponseParseError
from src.directory.vocabulary import Vocabulary, VocabularyService, parse_vocabulary

__all__ = [
    "AgentRecord",
    "AgentService",
    "ApiClient",
    "ApiError",
    "CapabilityDirectory",
    "CapabilityRecord",
    "DeploymentDirectory",
    "ResponseParseError",
    "Vocabulary",
    "VocabularyService",
    "parse_agent_record",
    "parse_capabilities",
    "parse_deployments",
    "parse_vocabulary",
]
