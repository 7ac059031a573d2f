"""
ledger_config -- single public entrypoint for the category taxonomy.

Responsibility:
    ``get_active_taxonomy()`` is the way runtime code obtains the
    ``CategoryTaxonomy``.  It is loaded once per process and handed to the
    classifier and journal selector by their callers; nothing imports it
    as live global state.

Architecture position:
    Configuration.  Sits above ``ledger_kernel`` and below
    ``ledger_engines`` / ``ledger_modules``.

Failure modes:
    - ``FileNotFoundError`` -- the taxonomy file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``TaxonomyConfigError`` -- required keys missing or roles unbound.

Audit relevance:
    The first load emits a ``LEDGER_CONFIG_TRACE`` log entry with the file
    path, version and content checksum.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from ledger_config.loader import compute_checksum, load_taxonomy
from ledger_config.taxonomy import (
    UNKNOWN_CATEGORY,
    CategoryDefinition,
    CategoryRoles,
    CategoryTaxonomy,
    EngineSettings,
)

_logger = logging.getLogger("ledger_kernel.config")

TAXONOMY_PATH_ENV = "LEDGER_TAXONOMY_PATH"
DEFAULT_TAXONOMY_PATH = Path(__file__).parent / "data" / "categories.yaml"

_active: CategoryTaxonomy | None = None
_lock = threading.Lock()


def resolve_taxonomy_path() -> Path:
    """The environment override if set, else the bundled file."""
    override = os.environ.get(TAXONOMY_PATH_ENV)
    return Path(override) if override else DEFAULT_TAXONOMY_PATH


def get_active_taxonomy() -> CategoryTaxonomy:
    """
    The process-wide taxonomy, loaded on first use.

    Immutable for the process lifetime; ``reset_active_taxonomy`` exists
    for tests only.
    """
    global _active
    with _lock:
        if _active is None:
            path = resolve_taxonomy_path()
            taxonomy = load_taxonomy(path)
            _logger.info(
                "LEDGER_CONFIG_TRACE",
                extra={
                    "trace_type": "LEDGER_CONFIG_TRACE",
                    "taxonomy_path": str(path),
                    "taxonomy_version": taxonomy.version,
                    "checksum": compute_checksum(taxonomy),
                    "category_count": len(taxonomy),
                },
            )
            _active = taxonomy
        return _active


def get_settings() -> EngineSettings:
    return get_active_taxonomy().settings


def reset_active_taxonomy() -> None:
    """Drop the cached taxonomy. FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "UNKNOWN_CATEGORY",
    "CategoryDefinition",
    "CategoryRoles",
    "CategoryTaxonomy",
    "EngineSettings",
    "DEFAULT_TAXONOMY_PATH",
    "TAXONOMY_PATH_ENV",
    "get_active_taxonomy",
    "get_settings",
    "load_taxonomy",
    "reset_active_taxonomy",
    "resolve_taxonomy_path",
]
