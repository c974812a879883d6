"""Shipped default fragments and their YAML parsing."""

import shutil
from decimal import Decimal

import pytest
import yaml

from sitio_config import build_config_stores, build_schema_registry
from sitio_config.loader import (
    DEFAULT_FILES,
    DEFAULTS_DIR,
    compute_checksum,
    load_defaults,
    load_yaml_file,
    parse_custom_fields,
    parse_decimal,
)
from sitio_kernel.domain.schemas import ComparisonLimits, CustomFieldDataType


class TestShippedDefaults:
    def test_every_domain_has_a_fragment(self):
        for filename in DEFAULT_FILES.values():
            assert (DEFAULTS_DIR / filename).is_file()

    def test_load(self):
        defaults = load_defaults()

        assert defaults.poverty_thresholds.monthly_threshold == Decimal("12030")
        assert defaults.poverty_thresholds.reference_year == 2023
        assert defaults.comparison_limits == ComparisonLimits(max_sitios=4, max_years=5)
        assert len(defaults.locations.municipalities) == 11
        assert defaults.custom_fields.fields == ()

    def test_defaults_pass_their_schemas(self):
        registry = build_schema_registry(load_defaults())
        for schema in registry:
            assert schema.validate(schema.default) == ()

    def test_checksums_are_stable(self):
        first = load_defaults().checksums
        second = load_defaults().checksums
        assert first == second
        assert set(first) == set(DEFAULT_FILES)
        assert all(len(c) == 64 for c in first.values())

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestAlternateDefaults:
    @pytest.fixture
    def defaults_dir(self, tmp_path):
        target = tmp_path / "defaults"
        shutil.copytree(DEFAULTS_DIR, target)
        return target

    def test_override_fragment(self, defaults_dir, memory_persistence, admin, clock):
        (defaults_dir / "comparison_limits.yaml").write_text(
            "max_sitios: 3\nmax_years: 8\n", encoding="utf-8"
        )
        stores = build_config_stores(memory_persistence, admin, clock, defaults_dir)
        assert stores.comparison_limits.get() == ComparisonLimits(3, 8)

    def test_invalid_default_fails_at_build(self, defaults_dir, memory_persistence, admin):
        (defaults_dir / "comparison_limits.yaml").write_text(
            "max_sitios: 50\nmax_years: 8\n", encoding="utf-8"
        )
        with pytest.raises(ValueError):
            build_config_stores(memory_persistence, admin, defaults_dir=defaults_dir)

    def test_missing_fragment(self, defaults_dir):
        (defaults_dir / "locations.yaml").unlink()
        with pytest.raises(FileNotFoundError):
            load_defaults(defaults_dir)


class TestParsing:
    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_yaml_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("a: [1, 2\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)

    @pytest.mark.parametrize("raw, expected", [("12030", "12030"), (12030, "12030"), (401.5, "401.5")])
    def test_parse_decimal(self, raw, expected):
        assert parse_decimal(raw, "x") == Decimal(expected)

    @pytest.mark.parametrize("raw", [True, "twelve"])
    def test_parse_decimal_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_decimal(raw, "x")

    def test_custom_fields_fragment(self):
        config = parse_custom_fields(
            {
                "fields": [
                    {
                        "id": "f1",
                        "field_name": "has_solar_panels",
                        "display_label": "Has Solar Panels",
                        "data_type": "boolean",
                        "group_id": "g1",
                    }
                ],
                "groups": [{"id": "g1", "name": "Energy"}],
            }
        )
        (definition,) = config.fields
        assert definition.data_type is CustomFieldDataType.BOOLEAN
        assert definition.validation_rules.required is False
        assert config.groups[0].icon == "Folder"
