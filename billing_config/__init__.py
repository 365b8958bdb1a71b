"""
billing_config -- YAML input supply for the billing schedule engines.

Responsibility:
    Read billing parameters from YAML files and hand validated
    ``BillingParameters`` to callers.  The engines never read files;
    everything they need arrives through this layer or direct
    construction.

Architecture position:
    Configuration -- sits above ``billing_kernel`` and ``billing_engines``.
    Neither of those packages may import from ``billing_config``.

Failure modes:
    - ``FileNotFoundError`` / ``yaml.YAMLError`` from file loading.
    - ``InvalidParameterError`` / ``InvalidRangeError`` from validation.
"""

from __future__ import annotations

from pathlib import Path

from billing_config.loader import (
    compute_checksum,
    load_parameters,
    load_yaml_file,
    parse_parameters,
)

# Sample parameter sets shipped with the package
SETS_DIR = Path(__file__).parent / "sets"

__all__ = [
    "SETS_DIR",
    "compute_checksum",
    "load_parameters",
    "load_yaml_file",
    "parse_parameters",
]
