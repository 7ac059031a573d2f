"""
Taxonomy Loader (``ledger_config.loader``).

Responsibility
--------------
Loads the category taxonomy YAML file and parses it into the frozen
``ledger_config.taxonomy`` dataclasses.  Runtime callers go through
``ledger_config.get_active_taxonomy()``; tests and tooling may call
``load_taxonomy(path)`` directly.

Architecture position
---------------------
**Config layer**.  Depends on ``ledger_kernel`` value types only; never
on engines or modules.

Invariants enforced
-------------------
* No silent defaults for required keys: a missing role or category field
  raises ``TaxonomyConfigError`` naming the file and the key.
* Role bindings must point at categories that exist in the same file.
* ``compute_checksum`` produces a deterministic SHA-256 hash so the active
  taxonomy can be matched to a known file.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structural problems  -> ``TaxonomyConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.taxonomy import (
    CapitalRole,
    CategoryDefinition,
    CategoryRoles,
    CategoryTaxonomy,
    EngineSettings,
    FixedAssetRole,
    LoanRole,
)
from ledger_kernel.domain.values import CategoryType
from ledger_kernel.exceptions import TaxonomyConfigError

_ALLOWED_TYPES = {CategoryType.INCOME, CategoryType.EXPENSE, CategoryType.EQUITY}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _require(data: dict[str, Any], key: str, path: Path, where: str) -> Any:
    if not isinstance(data, dict) or key not in data or data[key] in (None, ""):
        raise TaxonomyConfigError(str(path), f"missing required key '{where}{key}'")
    return data[key]


def parse_category(data: dict[str, Any], path: Path) -> CategoryDefinition:
    name = _require(data, "name", path, "categories[].")
    raw_type = _require(data, "type", path, f"categories[{name}].")
    try:
        category_type = CategoryType(raw_type)
    except ValueError:
        raise TaxonomyConfigError(
            str(path), f"category {name!r} has unknown type {raw_type!r}"
        ) from None
    if category_type not in _ALLOWED_TYPES:
        raise TaxonomyConfigError(str(path), f"category {name!r} cannot be {raw_type!r}")

    subcategories = data.get("subcategories") or []
    if not isinstance(subcategories, list):
        raise TaxonomyConfigError(str(path), f"subcategories of {name!r} must be a list")
    return CategoryDefinition(
        name=str(name),
        type=category_type,
        subcategories=tuple(str(s) for s in subcategories),
    )


def parse_loan_role(data: dict[str, Any], path: Path, key: str) -> LoanRole:
    where = f"roles.{key}."
    return LoanRole(
        category=_require(data, "category", path, where),
        initial_subcategory=_require(data, "initial_subcategory", path, where),
        settlement_subcategory=_require(data, "settlement_subcategory", path, where),
    )


def parse_roles(data: dict[str, Any], path: Path) -> CategoryRoles:
    capital = _require(data, "capital", path, "roles.")
    fixed_assets = _require(data, "fixed_assets", path, "roles.")
    return CategoryRoles(
        capital=CapitalRole(
            category=_require(capital, "category", path, "roles.capital."),
            contribution_subcategory=_require(
                capital, "contribution_subcategory", path, "roles.capital."
            ),
            drawing_subcategory=_require(capital, "drawing_subcategory", path, "roles.capital."),
        ),
        loan_given=parse_loan_role(_require(data, "loan_given", path, "roles."), path, "loan_given"),
        loan_received=parse_loan_role(
            _require(data, "loan_received", path, "roles."), path, "loan_received"
        ),
        customer_advance=_require(data, "customer_advance", path, "roles."),
        supplier_advance=_require(data, "supplier_advance", path, "roles."),
        fixed_assets=FixedAssetRole(
            category=_require(fixed_assets, "category", path, "roles.fixed_assets."),
            depreciation_subcategory=_require(
                fixed_assets, "depreciation_subcategory", path, "roles.fixed_assets."
            ),
        ),
    )


def parse_settings(data: dict[str, Any] | None, path: Path) -> EngineSettings:
    """Settings are optional; absent keys take the ``EngineSettings`` defaults."""
    if not data:
        return EngineSettings()
    defaults = EngineSettings()
    try:
        epsilon = Decimal(str(data.get("epsilon", defaults.epsilon)))
    except InvalidOperation:
        raise TaxonomyConfigError(str(path), "settings.epsilon is not a number") from None
    markers = data.get("loan_markers", defaults.loan_markers)
    return EngineSettings(
        epsilon=epsilon,
        currency_code=str(data.get("currency_code", defaults.currency_code)),
        decimal_places=int(data.get("decimal_places", defaults.decimal_places)),
        enforce_cheque_total=bool(
            data.get("enforce_cheque_total", defaults.enforce_cheque_total)
        ),
        loan_markers=tuple(str(m) for m in markers),
    )


def _validate_roles(taxonomy: CategoryTaxonomy, path: Path) -> None:
    roles = taxonomy.roles
    bound = [
        roles.capital.category,
        roles.loan_given.category,
        roles.loan_received.category,
        roles.customer_advance,
        roles.supplier_advance,
        roles.fixed_assets.category,
    ]
    for name in bound:
        if name not in taxonomy:
            raise TaxonomyConfigError(str(path), f"role category {name!r} is not defined")
    if taxonomy.category_type(roles.capital.category) is not CategoryType.EQUITY:
        raise TaxonomyConfigError(
            str(path), f"capital category {roles.capital.category!r} must be Equity"
        )


def parse_taxonomy(data: dict[str, Any], path: Path) -> CategoryTaxonomy:
    raw_categories = _require(data, "categories", path, "")
    if not isinstance(raw_categories, list):
        raise TaxonomyConfigError(str(path), "'categories' must be a list")

    categories = tuple(parse_category(c, path) for c in raw_categories)
    names = [c.name for c in categories]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise TaxonomyConfigError(str(path), f"duplicate categories: {duplicates}")

    taxonomy = CategoryTaxonomy(
        categories=categories,
        roles=parse_roles(_require(data, "roles", path, ""), path),
        settings=parse_settings(data.get("settings"), path),
        version=int(data.get("version", 1)),
    )
    _validate_roles(taxonomy, path)
    return taxonomy


def load_taxonomy(path: Path | str) -> CategoryTaxonomy:
    """Load and validate a taxonomy file."""
    path = Path(path)
    return parse_taxonomy(load_yaml_file(path), path)


def compute_checksum(taxonomy: CategoryTaxonomy) -> str:
    """Deterministic SHA-256 of the taxonomy content."""
    payload = {
        "version": taxonomy.version,
        "categories": [
            [c.name, c.type.value, list(c.subcategories)] for c in taxonomy.categories
        ],
        "roles": [
            taxonomy.roles.capital.category,
            taxonomy.roles.capital.contribution_subcategory,
            taxonomy.roles.capital.drawing_subcategory,
            taxonomy.roles.loan_given.category,
            taxonomy.roles.loan_received.category,
            taxonomy.roles.customer_advance,
            taxonomy.roles.supplier_advance,
            taxonomy.roles.fixed_assets.category,
            taxonomy.roles.fixed_assets.depreciation_subcategory,
        ],
    }
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
