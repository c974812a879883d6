"""Validation of custom field definitions and the values entered into them."""

from datetime import date

import pytest

from sitio_kernel.domain.schemas import (
    AggregationType,
    CustomFieldDataType,
    CustomFieldDefinition,
    CustomFieldGroup,
    CustomFieldsConfig,
    CustomFieldsSchema,
    FieldValidationRules,
    check_field_value,
    generate_field_name,
)


def _field(**changes) -> CustomFieldDefinition:
    values = {
        "id": "f1",
        "field_name": "waterSources",
        "display_label": "Water Sources",
        "data_type": CustomFieldDataType.NUMBER,
    }
    values.update(changes)
    return CustomFieldDefinition(**values)


@pytest.fixture
def schema() -> CustomFieldsSchema:
    return CustomFieldsSchema(CustomFieldsConfig())


class TestCustomFieldDefinition:
    def test_default_aggregation_for_number_is_sum(self):
        assert _field().aggregation_type is AggregationType.SUM

    def test_default_aggregation_for_text_is_count(self):
        assert _field(data_type="text").aggregation_type is AggregationType.COUNT

    def test_string_enums_coerced(self):
        definition = _field(data_type="number", aggregation_type="average")
        assert definition.data_type is CustomFieldDataType.NUMBER
        assert definition.aggregation_type is AggregationType.AVERAGE

    def test_generate_field_name(self):
        assert generate_field_name("My Custom Field") == "myCustomField"
        assert generate_field_name("  No. of Wells!  ") == "noOfWells"
        assert generate_field_name("???") == ""


class TestCustomFieldsValidation:
    def test_empty_config_valid(self, schema):
        assert schema.validate(CustomFieldsConfig()) == ()

    def test_valid_grouped_field(self, schema):
        config = CustomFieldsConfig(
            fields=(_field(group_id="g1"),),
            groups=(CustomFieldGroup(id="g1", name="Water"),),
        )
        assert schema.validate(config) == ()

    def test_duplicate_ids_and_names(self, schema):
        config = CustomFieldsConfig(fields=(_field(), _field()))
        codes = sorted(v.code for v in schema.validate(config))
        assert codes == ["DUPLICATE_FIELD_NAME", "DUPLICATE_ID"]

    def test_inactive_field_name_may_repeat(self, schema):
        config = CustomFieldsConfig(fields=(_field(), _field(id="f2", is_active=False)))
        assert schema.validate(config) == ()

    def test_invalid_field_name(self, schema):
        (violation,) = schema.validate(CustomFieldsConfig(fields=(_field(field_name="Water"),)))
        assert violation.code == "INVALID_FIELD_NAME"
        assert violation.field == "fields[0].field_name"

    def test_unknown_data_type(self, schema):
        (violation,) = schema.validate(
            CustomFieldsConfig(fields=(_field(data_type="color", aggregation_type="count"),))
        )
        assert violation.code == "UNKNOWN_DATA_TYPE"

    def test_aggregation_must_apply(self, schema):
        (violation,) = schema.validate(
            CustomFieldsConfig(fields=(_field(data_type="text", aggregation_type="sum"),))
        )
        assert violation.code == "AGGREGATION_NOT_APPLICABLE"

    def test_radio_needs_choices(self, schema):
        (violation,) = schema.validate(CustomFieldsConfig(fields=(_field(data_type="radio"),)))
        assert violation.code == "CHOICES_REQUIRED"

    def test_bounds_and_pattern(self, schema):
        rules = FieldValidationRules(min=10, max=1, pattern="([")
        codes = [v.code for v in schema.validate(CustomFieldsConfig(fields=(_field(validation_rules=rules),)))]
        assert codes == ["INVALID_BOUNDS", "INVALID_PATTERN"]

    def test_unknown_group(self, schema):
        (violation,) = schema.validate(CustomFieldsConfig(fields=(_field(group_id="missing"),)))
        assert violation.code == "UNKNOWN_GROUP"

    def test_payload_round_trip(self, schema):
        config = CustomFieldsConfig(
            fields=(
                _field(group_id="g1", description="Count of wells"),
                _field(
                    id="f2",
                    field_name="mainCrop",
                    display_label="Main Crop",
                    data_type="radio",
                    validation_rules=FieldValidationRules(required=True, choices=("Rice", "Corn")),
                ),
            ),
            groups=(CustomFieldGroup(id="g1", name="Water", display_order=2),),
        )
        assert schema.from_payload(schema.to_payload(config)) == config


class TestWrongTypedValues:
    """Wrong-typed nested values are reported as violations, never raised."""

    def test_non_numeric_bounds(self, schema):
        rules = FieldValidationRules(min="5", max=3)
        (violation,) = schema.validate(CustomFieldsConfig(fields=(_field(validation_rules=rules),)))
        assert violation.code == "TYPE_MISMATCH"
        assert violation.field == "fields[0].validation_rules.min"

    def test_non_integer_length_bounds(self, schema):
        rules = FieldValidationRules(min_length=2.5, max_length="9")
        violations = schema.validate(
            CustomFieldsConfig(fields=(_field(data_type="text", validation_rules=rules),))
        )
        assert [v.field for v in violations] == [
            "fields[0].validation_rules.min_length",
            "fields[0].validation_rules.max_length",
        ]

    def test_non_text_pattern(self, schema):
        rules = FieldValidationRules(pattern=42)
        (violation,) = schema.validate(CustomFieldsConfig(fields=(_field(validation_rules=rules),)))
        assert violation.code == "TYPE_MISMATCH"
        assert violation.field == "fields[0].validation_rules.pattern"

    def test_unhashable_group_id(self, schema):
        config = CustomFieldsConfig(
            fields=(_field(group_id=["g1"]),),
            groups=(CustomFieldGroup(id="g1", name="Water"),),
        )
        (violation,) = schema.validate(config)
        assert violation.code == "TYPE_MISMATCH"
        assert violation.field == "fields[0].group_id"

    def test_unhashable_aggregation(self, schema):
        (violation,) = schema.validate(
            CustomFieldsConfig(fields=(_field(aggregation_type=["sum"]),))
        )
        assert violation.code == "AGGREGATION_NOT_APPLICABLE"

    def test_members_of_wrong_type(self, schema):
        config = CustomFieldsConfig(fields=({"id": "f1"},), groups=("Water",))
        assert [(v.code, v.field) for v in schema.validate(config)] == [
            ("TYPE_MISMATCH", "groups[0]"),
            ("TYPE_MISMATCH", "fields[0]"),
        ]

    def test_collection_of_wrong_type(self, schema):
        (violation,) = schema.validate(CustomFieldsConfig(fields=None))
        assert (violation.code, violation.field) == ("TYPE_MISMATCH", "fields")


class TestCustomFieldsQueries:
    @pytest.fixture
    def config(self) -> CustomFieldsConfig:
        return CustomFieldsConfig(
            fields=(
                _field(id="f1", field_name="wells", display_order=2, group_id="g1"),
                _field(id="f2", field_name="springs", display_order=1, group_id="g1"),
                _field(id="f3", field_name="mainCrop", display_order=0),
                _field(id="f4", field_name="oldField", is_active=False, group_id="g1"),
            ),
            groups=(
                CustomFieldGroup(id="g1", name="Water", display_order=2),
                CustomFieldGroup(id="g2", name="Farming", display_order=1),
                CustomFieldGroup(id="g3", name="Retired", is_active=False),
            ),
        )

    def test_active_fields_in_display_order(self, config):
        assert [f.id for f in config.active_fields()] == ["f3", "f2", "f1"]

    def test_active_groups_in_display_order(self, config):
        assert [g.id for g in config.active_groups()] == ["g2", "g1"]

    def test_field_by_id(self, config):
        assert config.field_by_id("f2").field_name == "springs"
        assert config.field_by_id("missing") is None

    def test_fields_by_group(self, config):
        grouped = config.fields_by_group()

        assert set(grouped) == {"g1", None}
        assert [f.id for f in grouped["g1"]] == ["f2", "f1"]
        assert [f.id for f in grouped[None]] == ["f3"]


class TestCheckFieldValue:
    def test_required(self):
        definition = _field(validation_rules=FieldValidationRules(required=True))
        assert check_field_value(None, definition) == "Water Sources is required"
        assert check_field_value("", _field()) is None

    def test_number_bounds(self):
        definition = _field(validation_rules=FieldValidationRules(min=0, max=10))
        assert check_field_value(5, definition) is None
        assert check_field_value("11", definition) == "Must be at most 10"
        assert check_field_value("many", definition) == "Value must be a number"

    def test_text_rules(self):
        definition = _field(
            data_type="text",
            validation_rules=FieldValidationRules(max_length=3, pattern=r"^[A-Z]+$"),
        )
        assert check_field_value("ABC", definition) is None
        assert check_field_value("ABCD", definition) == "Must be at most 3 characters"
        assert check_field_value("ab", definition) == "Value does not match required pattern"

    def test_choices(self):
        rules = FieldValidationRules(choices=("Rice", "Corn"))
        radio = _field(data_type="radio", validation_rules=rules)
        checkbox = _field(data_type="checkbox", validation_rules=rules)
        assert check_field_value("Rice", radio) is None
        assert check_field_value("Wheat", radio) == "Invalid selection: Wheat"
        assert check_field_value(["Corn", "Wheat"], checkbox) == "Invalid selection: Wheat"

    def test_dates(self):
        definition = _field(data_type="date")
        assert check_field_value("2024-02-29", definition) is None
        assert check_field_value(date(2024, 1, 1), definition) is None
        assert check_field_value("not a date", definition) == "Invalid date"
