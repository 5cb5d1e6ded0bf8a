from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, ClassVar, Dict, Tuple, Union


FETCHED = "fetched"
MANUAL = "manual"

OptionKey = Tuple[str, str, str, str]

EDITABLE_FIELDS = (
    "service_provider",
    "service_name",
    "deployment_type",
    "cloud_region",
    "capability_id",
    "capability_name",
)


def build_option_key(
    *,
    capability_id: str,
    service_provider: str,
    service_name: str,
    deployment_type: str,
) -> OptionKey:
    """Deterministic dedup key for a fetched deployment option."""
    return (
        (capability_id or "").strip(),
        (service_provider or "").strip(),
        (service_name or "").strip(),
        (deployment_type or "").strip(),
    )


@dataclass(frozen=True)
class FetchedOption:
    """Deployment option retrieved from the deployment directory."""

    service_provider: str
    service_name: str
    deployment_type: str
    cloud_region: str
    capability_id: str
    capability_name: str

    origin: ClassVar[str] = FETCHED

    @property
    def dedup_key(self) -> OptionKey:
        return build_option_key(
            capability_id=self.capability_id,
            service_provider=self.service_provider,
            service_name=self.service_name,
            deployment_type=self.deployment_type,
        )


@dataclass(frozen=True)
class ManualOption:
    """Deployment option typed in by the user; never deduplicated."""

    service_provider: str = ""
    service_name: str = ""
    deployment_type: str = ""
    cloud_region: str = ""
    capability_id: str = ""
    capability_name: str = ""

    origin: ClassVar[str] = MANUAL

    @property
    def is_complete(self) -> bool:
        return bool(self.service_provider and self.service_name and self.deployment_type)

    def with_updates(self, **fields: str) -> "ManualOption":
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown deployment option fields: {sorted(unknown)}")
        return replace(self, **fields)


DeploymentOption = Union[FetchedOption, ManualOption]


def option_from_listing(raw: Dict[str, Any], capability_id: str, capability_name: str) -> FetchedOption:
    """Build a fetched option from one deployment directory entry."""
    return FetchedOption(
        service_provider=str(raw.get("service_provider") or ""),
        service_name=str(raw.get("service_name") or ""),
        deployment_type=str(raw.get("deployment") or ""),
        cloud_region=str(raw.get("cloud_region") or ""),
        capability_id=capability_id,
        capability_name=capability_name,
    )


def option_from_record(raw: Dict[str, Any]) -> FetchedOption:
    """Build a fetched option from a deployment stored on an existing agent record."""
    return FetchedOption(
        service_provider=str(raw.get("service_provider") or ""),
        service_name=str(raw.get("service_name") or ""),
        deployment_type=str(raw.get("deployment") or ""),
        cloud_region=str(raw.get("cloud_region") or ""),
        capability_id=str(raw.get("capability_id") or ""),
        capability_name=str(raw.get("by_capability") or raw.get("capability_name") or ""),
    )


def option_to_payload(option: DeploymentOption) -> Dict[str, Any]:
    """Wire shape of one deployment option inside the submission's JSON array."""
    payload: Dict[str, Any] = {
        "serviceProvider": option.service_provider,
        "serviceName": option.service_name,
        "deploymentType": option.deployment_type,
        "cloudRegion": option.cloud_region,
        "capability": option.capability_name,
        "capabilityId": option.capability_id,
    }
    if isinstance(option, ManualOption):
        payload["isManual"] = True
    elif isinstance(option, FetchedOption):
        payload["isManual"] = False
    else:
        raise TypeError(f"Unsupported deployment option: {type(option).__name__}")
    return payload
