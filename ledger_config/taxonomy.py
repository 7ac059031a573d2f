"""
Category taxonomy schema.

The immutable registry the classifier and journal selector read: category
name -> (type, subcategories), plus the role bindings that say which
categories are loans, advances, capital and fixed assets.  Instances are
built by ``ledger_config.loader`` from YAML and never mutated afterwards.

Unknown lookups degrade gracefully: ``lookup`` returns the
``UNKNOWN_CATEGORY`` sentinel instead of raising, because categories are
free text typed by users.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import Decimal

from ledger_kernel.domain.values import CategoryType


@dataclass(frozen=True)
class CategoryDefinition:
    """One category and its allowed subcategories."""

    name: str
    type: CategoryType
    subcategories: tuple[str, ...] = ()

    @property
    def is_known(self) -> bool:
        return self.type is not CategoryType.UNKNOWN


UNKNOWN_CATEGORY = CategoryDefinition(name="", type=CategoryType.UNKNOWN)


@dataclass(frozen=True)
class CapitalRole:
    category: str
    contribution_subcategory: str
    drawing_subcategory: str


@dataclass(frozen=True)
class LoanRole:
    """A loan category and the subcategories for its two movements."""

    category: str
    initial_subcategory: str
    settlement_subcategory: str


@dataclass(frozen=True)
class FixedAssetRole:
    category: str
    depreciation_subcategory: str


@dataclass(frozen=True)
class CategoryRoles:
    """Which taxonomy categories play the special classification roles."""

    capital: CapitalRole
    loan_given: LoanRole
    loan_received: LoanRole
    customer_advance: str
    supplier_advance: str
    fixed_assets: FixedAssetRole

    @property
    def loan_categories(self) -> tuple[str, str]:
        return (self.loan_given.category, self.loan_received.category)

    @property
    def advance_categories(self) -> tuple[str, str]:
        return (self.customer_advance, self.supplier_advance)


@dataclass(frozen=True)
class EngineSettings:
    """Tunables read from the ``settings`` block of the taxonomy file."""

    epsilon: Decimal = Decimal("0.01")
    currency_code: str = "JOD"
    decimal_places: int = 2
    enforce_cheque_total: bool = True
    loan_markers: tuple[str, ...] = ("قرض", "قروض")


@dataclass(frozen=True)
class CategoryTaxonomy:
    """
    Immutable category registry.

    Supports ``name in taxonomy``, ``len(taxonomy)`` and iteration over
    ``CategoryDefinition`` objects in file order.
    """

    categories: tuple[CategoryDefinition, ...]
    roles: CategoryRoles
    settings: EngineSettings = field(default_factory=EngineSettings)
    version: int = 1
    _index: dict[str, CategoryDefinition] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {c.name: c for c in self.categories})

    def lookup(self, name: str) -> CategoryDefinition:
        """Definition for ``name``, or ``UNKNOWN_CATEGORY``. Never raises."""
        return self._index.get(name, UNKNOWN_CATEGORY)

    def category_type(self, name: str) -> CategoryType:
        return self.lookup(name).type

    def subcategories(self, name: str) -> tuple[str, ...]:
        return self.lookup(name).subcategories

    def pairs(self) -> Iterator[tuple[str, str]]:
        """Every (category, subcategory) pair; "" for categories without any."""
        for definition in self.categories:
            if not definition.subcategories:
                yield definition.name, ""
            for sub in definition.subcategories:
                yield definition.name, sub

    def is_loan_category(self, name: str) -> bool:
        return name in self.roles.loan_categories

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[CategoryDefinition]:
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)
