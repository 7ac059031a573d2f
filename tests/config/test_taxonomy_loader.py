"""
Tests for the category taxonomy loader and the cached active taxonomy.
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from ledger_config import (
    DEFAULT_TAXONOMY_PATH,
    TAXONOMY_PATH_ENV,
    get_active_taxonomy,
    get_settings,
    resolve_taxonomy_path,
)
from ledger_config.loader import compute_checksum, load_taxonomy, parse_taxonomy
from ledger_kernel.domain.values import CategoryType
from ledger_kernel.exceptions import TaxonomyConfigError


def _bundled_data() -> dict:
    with open(DEFAULT_TAXONOMY_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


class TestBundledTaxonomy:
    """The shipped categories.yaml."""

    def test_loads_all_base_types(self, taxonomy):
        types = {c.type for c in taxonomy}
        assert types == {CategoryType.INCOME, CategoryType.EXPENSE, CategoryType.EQUITY}

    def test_roles_bound_to_defined_categories(self, taxonomy):
        roles = taxonomy.roles
        for name in (*roles.loan_categories, *roles.advance_categories, roles.capital.category):
            assert name in taxonomy

    def test_capital_has_drawings(self, taxonomy):
        assert taxonomy.roles.capital.drawing_subcategory in taxonomy.subcategories(
            taxonomy.roles.capital.category
        )

    def test_settings_defaults(self, taxonomy):
        assert taxonomy.settings.epsilon == Decimal("0.01")
        assert taxonomy.settings.currency_code == "JOD"
        assert taxonomy.settings.enforce_cheque_total is True

    def test_unknown_lookup_never_raises(self, taxonomy):
        definition = taxonomy.lookup("no such category")
        assert not definition.is_known
        assert taxonomy.category_type("no such category") is CategoryType.UNKNOWN

    def test_pairs_include_categories_without_subcategories(self, taxonomy):
        pairs = set(taxonomy.pairs())
        assert (taxonomy.roles.customer_advance, "") in pairs
        assert (taxonomy.roles.supplier_advance, "") in pairs

    def test_checksum_is_stable(self, taxonomy):
        assert compute_checksum(taxonomy) == compute_checksum(load_taxonomy(DEFAULT_TAXONOMY_PATH))


class TestLoaderValidation:
    """Structural problems surface as TaxonomyConfigError naming the file."""

    def test_missing_categories(self):
        data = _bundled_data()
        del data["categories"]
        with pytest.raises(TaxonomyConfigError, match="categories"):
            parse_taxonomy(data, Path("broken.yaml"))

    def test_unknown_category_type(self):
        data = _bundled_data()
        data["categories"][0]["type"] = "Asset"
        with pytest.raises(TaxonomyConfigError, match="unknown type"):
            parse_taxonomy(data, Path("broken.yaml"))

    def test_duplicate_category(self):
        data = _bundled_data()
        data["categories"].append(dict(data["categories"][0]))
        with pytest.raises(TaxonomyConfigError, match="duplicate"):
            parse_taxonomy(data, Path("broken.yaml"))

    def test_role_pointing_at_missing_category(self):
        data = _bundled_data()
        data["roles"]["customer_advance"] = "غير موجود"
        with pytest.raises(TaxonomyConfigError, match="not defined"):
            parse_taxonomy(data, Path("broken.yaml"))

    def test_capital_must_be_equity(self):
        data = _bundled_data()
        for category in data["categories"]:
            if category["name"] == data["roles"]["capital"]["category"]:
                category["type"] = "Income"
        with pytest.raises(TaxonomyConfigError, match="must be Equity"):
            parse_taxonomy(data, Path("broken.yaml"))

    def test_bad_epsilon(self):
        data = _bundled_data()
        data["settings"]["epsilon"] = "tiny"
        with pytest.raises(TaxonomyConfigError, match="epsilon"):
            parse_taxonomy(data, Path("broken.yaml"))

    def test_error_carries_code(self):
        data = _bundled_data()
        del data["roles"]
        with pytest.raises(TaxonomyConfigError) as exc_info:
            parse_taxonomy(data, Path("broken.yaml"))
        assert exc_info.value.code == "TAXONOMY_CONFIG_ERROR"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_taxonomy(tmp_path / "absent.yaml")


class TestActiveTaxonomy:
    """Process-wide cached taxonomy and its environment override."""

    def test_cached_between_calls(self):
        assert get_active_taxonomy() is get_active_taxonomy()

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv(TAXONOMY_PATH_ENV, raising=False)
        assert resolve_taxonomy_path() == DEFAULT_TAXONOMY_PATH

    def test_environment_override(self, monkeypatch, tmp_path):
        data = _bundled_data()
        data["settings"]["enforce_cheque_total"] = False
        data["version"] = 7
        override = tmp_path / "categories.yaml"
        override.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
        monkeypatch.setenv(TAXONOMY_PATH_ENV, str(override))

        assert get_active_taxonomy().version == 7
        assert get_settings().enforce_cheque_total is False

    def test_first_load_emits_config_trace(self, captured_logs):
        get_active_taxonomy()
        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["checksum"]
