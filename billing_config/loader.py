"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads billing parameter files written in YAML and parses them into the
validated ``BillingParameters`` frozen dataclass.

Architecture position
---------------------
**Config layer** -- input supply for the engines.  Depends on
``billing_engines.parameters`` for validation; engines never import this
module.

Invariants enforced
-------------------
* Every successful load returns a validated ``BillingParameters``; there
  are no silent defaults for required fields.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parameters, independent of YAML formatting or key order.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Document that is not a mapping  -> ``InvalidParameterError``.
* Missing / unknown / invalid keys  -> ``InvalidParameterError`` or
  ``InvalidRangeError`` from ``BillingParameters``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from billing_engines.parameters import BillingParameters
from billing_kernel.exceptions import InvalidParameterError
from billing_kernel.logging_config import get_logger

logger = get_logger("config.loader")

SECTION_KEY = "billing"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        InvalidParameterError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidParameterError(
            "document", type(data).__name__, f"{path} must contain a mapping"
        )
    return data


def parse_parameters(data: Mapping[str, Any]) -> BillingParameters:
    """
    Parse ``BillingParameters`` from a loaded document.

    The parameters may sit under a top-level ``billing:`` key or at the
    document root.
    """
    return BillingParameters.from_mapping(_section(data))


def _section(data: Mapping[str, Any]) -> Mapping[str, Any]:
    section = data.get(SECTION_KEY, data)
    if not isinstance(section, Mapping):
        raise InvalidParameterError(SECTION_KEY, section, "must be a mapping")
    return section


def load_parameters(
    path: Path | str,
    overrides: Mapping[str, Any] | None = None,
) -> BillingParameters:
    """
    Load and validate billing parameters from a YAML file.

    Args:
        path: YAML file to read
        overrides: Values that replace the file's values (e.g. CLI flags);
            ``None`` values are ignored

    Returns:
        Validated BillingParameters
    """
    path = Path(path)
    document = load_yaml_file(path)
    section = dict(_section(document))
    if overrides:
        section.update({k: v for k, v in overrides.items() if v is not None})

    params = BillingParameters.from_mapping(section)
    logger.info("billing_parameters_loaded", extra={
        "path": str(path),
        "checksum": compute_checksum(params),
        "cycle": params.cycle.value,
    })
    return params


def compute_checksum(params: BillingParameters) -> str:
    """
    Compute SHA-256 checksum of the canonical JSON form of ``params``.

    Identical parameters always produce identical checksums.
    """
    canonical = json.dumps(params.to_dict(), sort_keys=True)
    return hashlib.sha256(canonical.encode()).hexdigest()
