"""Deployment options: variants, dedup, selection tracking and capability-driven resolution."""

from src.deployments.collection import DeploymentCollection, MergeReport, OptionGroup
from src.deployments.deduper import dedupe_options, existing_keys
from src.deployments.options import (
    DeploymentOption,
    FetchedOption,
    ManualOption,
    build_option_key,
    option_from_listing,
    option_from_record,
    option_to_payload,
)
from src.deployments.resolver import DeploymentResolver, ResolveReport
from src.deployments.selection import SelectionIndexSet, adjust_for_removal

__all__ = [
    "DeploymentCollection",
    "DeploymentOption",
    "DeploymentResolver",
    "FetchedOption",
    "ManualOption",
    "MergeReport",
    "OptionGroup",
    "ResolveReport",
    "SelectionIndexSet",
    "adjust_for_removal",
    "build_option_key",
    "dedupe_options",
    "existing_keys",
    "option_from_listing",
    "option_from_record",
    "option_to_payload",
]
