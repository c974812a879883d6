"""Domain schemas: typed defaults and validation per configuration domain."""

from sitio_kernel.domain.schemas.base import ConfigDomain, DomainSchema
from sitio_kernel.domain.schemas.comparison_limits import (
    ComparisonLimits,
    ComparisonLimitsSchema,
)
from sitio_kernel.domain.schemas.custom_fields import (
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
from sitio_kernel.domain.schemas.locations import (
    LocationsConfig,
    LocationsSchema,
    Municipality,
)
from sitio_kernel.domain.schemas.poverty_thresholds import (
    PovertyThresholdsConfig,
    PovertyThresholdsSchema,
)
from sitio_kernel.domain.schemas.registry import SchemaRegistry

__all__ = [
    "AggregationType",
    "ComparisonLimits",
    "ComparisonLimitsSchema",
    "ConfigDomain",
    "CustomFieldDataType",
    "CustomFieldDefinition",
    "CustomFieldGroup",
    "CustomFieldsConfig",
    "CustomFieldsSchema",
    "DomainSchema",
    "FieldValidationRules",
    "LocationsConfig",
    "LocationsSchema",
    "Municipality",
    "PovertyThresholdsConfig",
    "PovertyThresholdsSchema",
    "SchemaRegistry",
    "check_field_value",
    "generate_field_name",
]
