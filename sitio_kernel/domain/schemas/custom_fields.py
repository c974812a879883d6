"""
Custom field definitions -- admin-defined data fields extending sitio profiles.

Responsibility:
    Describes supplementary fields (and the groups they are displayed in)
    that operators add to the standard sitio profile form, plus the
    value-level checks a form applies to data entered into those fields.

Architecture position:
    Kernel > Domain > Schemas -- pure, zero I/O.

Invariants enforced:
    - Field and group ids are non-empty and unique within their collection.
    - Field names are camelCase identifiers, unique among active fields.
    - Aggregation type is applicable to the data type.
    - Checkbox and radio fields declare at least one choice.
    - Numeric and length bounds are ordered; patterns compile.
    - ``group_id`` refers to a declared group.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import date, datetime
from enum import Enum
from typing import Any

from sitio_kernel.domain.dtos import Violation
from sitio_kernel.domain.schemas.base import (
    ConfigDomain,
    DomainSchema,
    check_unique,
    is_blank,
    is_integer,
    is_number,
    require_text,
)

FIELD_NAME_PATTERN = re.compile(r"^[a-z][A-Za-z0-9]*$")


class CustomFieldDataType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    CHECKBOX = "checkbox"
    RADIO = "radio"


class AggregationType(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    COUNT = "count"
    MIN = "min"
    MAX = "max"


APPLICABLE_AGGREGATIONS: dict[CustomFieldDataType, frozenset[AggregationType]] = {
    data_type: frozenset({AggregationType.COUNT}) for data_type in CustomFieldDataType
}
APPLICABLE_AGGREGATIONS[CustomFieldDataType.NUMBER] = frozenset(AggregationType)

DEFAULT_AGGREGATION: dict[CustomFieldDataType, AggregationType] = {
    data_type: AggregationType.COUNT for data_type in CustomFieldDataType
}
DEFAULT_AGGREGATION[CustomFieldDataType.NUMBER] = AggregationType.SUM

_CHOICE_TYPES = frozenset({CustomFieldDataType.CHECKBOX, CustomFieldDataType.RADIO})


def _coerce_enum(enum_type: type[Enum], value: Any) -> Any:
    """Map a raw string to its enum member; leave unknown values for the validator."""
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class FieldValidationRules:
    required: bool = False
    min: int | float | None = None
    max: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    choices: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.choices, list):
            object.__setattr__(self, "choices", tuple(self.choices))


@dataclass(frozen=True)
class CustomFieldDefinition:
    id: str
    field_name: str
    display_label: str
    data_type: CustomFieldDataType
    validation_rules: FieldValidationRules = field(default_factory=FieldValidationRules)
    aggregation_type: AggregationType | None = None
    display_order: int = 0
    is_active: bool = True
    description: str | None = None
    group_id: str | None = None
    group_display_order: int | None = None

    def __post_init__(self) -> None:
        data_type = _coerce_enum(CustomFieldDataType, self.data_type)
        object.__setattr__(self, "data_type", data_type)
        if self.aggregation_type is None and isinstance(data_type, CustomFieldDataType):
            object.__setattr__(self, "aggregation_type", DEFAULT_AGGREGATION[data_type])
        else:
            object.__setattr__(
                self, "aggregation_type", _coerce_enum(AggregationType, self.aggregation_type)
            )


@dataclass(frozen=True)
class CustomFieldGroup:
    id: str
    name: str
    description: str | None = None
    icon: str = "Folder"
    display_order: int = 0
    is_collapsible: bool = True
    is_active: bool = True


@dataclass(frozen=True)
class CustomFieldsConfig:
    """All custom field definitions and groups."""

    fields: tuple[CustomFieldDefinition, ...] = ()
    groups: tuple[CustomFieldGroup, ...] = ()

    def __post_init__(self) -> None:
        for name in ("fields", "groups"):
            value = getattr(self, name)
            if isinstance(value, list):
                object.__setattr__(self, name, tuple(value))

    def active_fields(self) -> list[CustomFieldDefinition]:
        return sorted(
            (f for f in self.fields if f.is_active), key=lambda f: f.display_order
        )

    def active_groups(self) -> list[CustomFieldGroup]:
        return sorted(
            (g for g in self.groups if g.is_active), key=lambda g: g.display_order
        )

    def field_by_id(self, field_id: str) -> CustomFieldDefinition | None:
        return next((f for f in self.fields if f.id == field_id), None)

    def fields_by_group(self) -> dict[str | None, list[CustomFieldDefinition]]:
        """Active fields keyed by group id (None = uncategorized), in group order."""
        grouped: dict[str | None, list[CustomFieldDefinition]] = {}
        for f in self.active_fields():
            grouped.setdefault(f.group_id, []).append(f)
        for members in grouped.values():
            members.sort(key=lambda f: (f.group_display_order or 0, f.display_order))
        return grouped


def generate_field_name(display_label: str) -> str:
    """Derive a camelCase field name: ``"My Custom Field"`` -> ``"myCustomField"``."""
    cleaned = re.sub(r"[^a-z0-9\s]", "", display_label.strip().lower())
    words = cleaned.split()
    if not words:
        return ""
    return words[0] + "".join(w[:1].upper() + w[1:] for w in words[1:])


def check_field_value(value: Any, definition: CustomFieldDefinition) -> str | None:
    """Validate a value entered for a custom field.

    Returns:
        None when the value is acceptable, otherwise an error message.
    """
    rules = definition.validation_rules
    empty = value is None or value == ""
    if empty:
        return f"{definition.display_label} is required" if rules.required else None

    data_type = definition.data_type
    if data_type is CustomFieldDataType.TEXT:
        if not isinstance(value, str):
            return "Value must be text"
        if rules.min_length is not None and len(value) < rules.min_length:
            return f"Must be at least {rules.min_length} characters"
        if rules.max_length is not None and len(value) > rules.max_length:
            return f"Must be at most {rules.max_length} characters"
        if rules.pattern and not re.search(rules.pattern, value):
            return "Value does not match required pattern"
    elif data_type is CustomFieldDataType.NUMBER:
        try:
            number = value if is_number(value) else float(value)
        except (TypeError, ValueError):
            return "Value must be a number"
        if number != number:
            return "Value must be a number"
        if rules.min is not None and number < rules.min:
            return f"Must be at least {rules.min}"
        if rules.max is not None and number > rules.max:
            return f"Must be at most {rules.max}"
    elif data_type is CustomFieldDataType.BOOLEAN:
        if not isinstance(value, bool):
            return "Value must be Yes or No"
    elif data_type is CustomFieldDataType.DATE:
        if isinstance(value, str):
            try:
                datetime.fromisoformat(value)
            except ValueError:
                return "Invalid date"
        elif not isinstance(value, date):
            return "Invalid date"
    elif data_type is CustomFieldDataType.ARRAY:
        if not isinstance(value, (list, tuple)):
            return "Value must be a list"
        if rules.min_length is not None and len(value) < rules.min_length:
            return f"Must have at least {rules.min_length} items"
        if rules.max_length is not None and len(value) > rules.max_length:
            return f"Must have at most {rules.max_length} items"
        if not all(isinstance(item, str) for item in value):
            return "All items must be text"
    elif data_type is CustomFieldDataType.CHECKBOX:
        if not isinstance(value, (list, tuple)):
            return "Value must be an array of selections"
        for item in value:
            if rules.choices and item not in rules.choices:
                return f"Invalid selection: {item}"
    elif data_type is CustomFieldDataType.RADIO:
        if not isinstance(value, str):
            return "Value must be a single selection"
        if rules.choices and value not in rules.choices:
            return f"Invalid selection: {value}"
    return None


def _members(
    items: Any, item_type: type, name: str, violations: list[Violation]
) -> list[tuple[str, Any]]:
    """Indexed members of a collection that have the expected type; the rest are reported."""
    if not isinstance(items, (tuple, list)):
        violations.append(Violation("TYPE_MISMATCH", "must be a list", name))
        return []
    members = []
    for i, item in enumerate(items):
        path = f"{name}[{i}]"
        if isinstance(item, item_type):
            members.append((path, item))
        else:
            violations.append(
                Violation("TYPE_MISMATCH", f"must be a {item_type.__name__}", path)
            )
    return members


class CustomFieldsSchema(DomainSchema[CustomFieldsConfig]):
    domain = ConfigDomain.CUSTOM_FIELDS
    label = "Custom Fields"
    description = "Define supplementary data fields collected for every sitio."
    config_type = CustomFieldsConfig

    def _collect_violations(
        self, candidate: CustomFieldsConfig, violations: list[Violation]
    ) -> None:
        groups = _members(candidate.groups, CustomFieldGroup, "groups", violations)
        fields = _members(candidate.fields, CustomFieldDefinition, "fields", violations)

        group_ids: list[tuple[str, Any]] = []
        for path, group in groups:
            require_text(group.id, f"{path}.id", violations)
            require_text(group.name, f"{path}.name", violations)
            group_ids.append((f"{path}.id", group.id))
        check_unique(group_ids, "DUPLICATE_ID", "group id", violations)
        declared_groups = {g.id for _, g in groups if not is_blank(g.id)}

        field_ids: list[tuple[str, Any]] = []
        active_names: list[tuple[str, Any]] = []
        for path, definition in fields:
            require_text(definition.id, f"{path}.id", violations)
            field_ids.append((f"{path}.id", definition.id))
            require_text(definition.display_label, f"{path}.display_label", violations)

            name = definition.field_name
            if is_blank(name):
                require_text(name, f"{path}.field_name", violations)
            elif not FIELD_NAME_PATTERN.match(name):
                violations.append(
                    Violation(
                        "INVALID_FIELD_NAME",
                        f"'{name}' must be a camelCase identifier",
                        f"{path}.field_name",
                    )
                )
            if definition.is_active:
                active_names.append((f"{path}.field_name", name))

            self._check_types(definition, path, violations)
            self._check_rules(definition, path, violations)

            group_id = definition.group_id
            if group_id is None:
                continue
            if not isinstance(group_id, str):
                violations.append(
                    Violation(
                        "TYPE_MISMATCH",
                        f"group id must be text, got {type(group_id).__name__}",
                        f"{path}.group_id",
                    )
                )
            elif group_id not in declared_groups:
                violations.append(
                    Violation(
                        "UNKNOWN_GROUP",
                        f"group '{group_id}' is not declared",
                        f"{path}.group_id",
                    )
                )

        check_unique(field_ids, "DUPLICATE_ID", "field id", violations)
        check_unique(active_names, "DUPLICATE_FIELD_NAME", "field name", violations)

    @staticmethod
    def _check_types(
        definition: CustomFieldDefinition, path: str, violations: list[Violation]
    ) -> None:
        data_type = definition.data_type
        if not isinstance(data_type, CustomFieldDataType):
            violations.append(
                Violation(
                    "UNKNOWN_DATA_TYPE",
                    f"unsupported data type {data_type!r}",
                    f"{path}.data_type",
                )
            )
            return
        aggregation = definition.aggregation_type
        if (
            not isinstance(aggregation, AggregationType)
            or aggregation not in APPLICABLE_AGGREGATIONS[data_type]
        ):
            violations.append(
                Violation(
                    "AGGREGATION_NOT_APPLICABLE",
                    f"aggregation {getattr(aggregation, 'value', aggregation)!r} "
                    f"does not apply to {data_type.value} fields",
                    f"{path}.aggregation_type",
                )
            )
        rules = definition.validation_rules
        if (
            data_type in _CHOICE_TYPES
            and isinstance(rules, FieldValidationRules)
            and not rules.choices
        ):
            violations.append(
                Violation(
                    "CHOICES_REQUIRED",
                    f"{data_type.value} fields need at least one choice",
                    f"{path}.validation_rules.choices",
                )
            )

    @staticmethod
    def _check_rules(
        definition: CustomFieldDefinition, path: str, violations: list[Violation]
    ) -> None:
        rules = definition.validation_rules
        rpath = f"{path}.validation_rules"
        if not isinstance(rules, FieldValidationRules):
            violations.append(
                Violation("TYPE_MISMATCH", "must be FieldValidationRules", rpath)
            )
            return

        bounds_typed = True
        for name, check, expected in (
            ("min", is_number, "a number"),
            ("max", is_number, "a number"),
            ("min_length", is_integer, "an integer"),
            ("max_length", is_integer, "an integer"),
        ):
            value = getattr(rules, name)
            if value is not None and not check(value):
                bounds_typed = False
                violations.append(
                    Violation("TYPE_MISMATCH", f"must be {expected}", f"{rpath}.{name}")
                )

        if bounds_typed:
            if rules.min is not None and rules.max is not None and rules.min > rules.max:
                violations.append(
                    Violation("INVALID_BOUNDS", "min must not exceed max", f"{rpath}.min")
                )
            if (
                rules.min_length is not None
                and rules.max_length is not None
                and rules.min_length > rules.max_length
            ):
                violations.append(
                    Violation(
                        "INVALID_BOUNDS",
                        "min_length must not exceed max_length",
                        f"{rpath}.min_length",
                    )
                )

        if rules.pattern is not None and not isinstance(rules.pattern, str):
            violations.append(
                Violation("TYPE_MISMATCH", "must be text", f"{rpath}.pattern")
            )
        elif rules.pattern:
            try:
                re.compile(rules.pattern)
            except re.error as exc:
                violations.append(
                    Violation(
                        "INVALID_PATTERN",
                        f"pattern does not compile: {exc}",
                        f"{rpath}.pattern",
                    )
                )

        if not isinstance(rules.choices, (tuple, list)):
            violations.append(
                Violation("TYPE_MISMATCH", "must be a list of text", f"{rpath}.choices")
            )
            return
        for j, choice in enumerate(rules.choices):
            if is_blank(choice):
                violations.append(
                    Violation(
                        "REQUIRED", "must be non-empty text", f"{rpath}.choices[{j}]"
                    )
                )

    def to_payload(self, value: CustomFieldsConfig) -> dict[str, Any]:
        return {
            "fields": [_field_to_payload(f) for f in value.fields],
            "groups": [
                {
                    "id": g.id,
                    "name": g.name,
                    "description": g.description,
                    "icon": g.icon,
                    "displayOrder": g.display_order,
                    "isCollapsible": g.is_collapsible,
                    "isActive": g.is_active,
                }
                for g in value.groups
            ],
        }

    def from_payload(self, data: dict[str, Any]) -> CustomFieldsConfig:
        return CustomFieldsConfig(
            fields=tuple(_field_from_payload(f) for f in data.get("fields", ())),
            groups=tuple(
                CustomFieldGroup(
                    id=g["id"],
                    name=g["name"],
                    description=g.get("description"),
                    icon=g.get("icon", "Folder"),
                    display_order=g.get("displayOrder", 0),
                    is_collapsible=g.get("isCollapsible", True),
                    is_active=g.get("isActive", True),
                )
                for g in data.get("groups", ())
            ),
        )


_RULE_KEYS = {
    "required": "required",
    "min": "min",
    "max": "max",
    "min_length": "minLength",
    "max_length": "maxLength",
    "pattern": "pattern",
    "choices": "choices",
}


def _field_to_payload(definition: CustomFieldDefinition) -> dict[str, Any]:
    rules = definition.validation_rules
    return {
        "id": definition.id,
        "fieldName": definition.field_name,
        "displayLabel": definition.display_label,
        "dataType": definition.data_type.value,
        "validationRules": {
            _RULE_KEYS[f.name]: (
                list(rules.choices) if f.name == "choices" else getattr(rules, f.name)
            )
            for f in dataclass_fields(rules)
        },
        "aggregationType": definition.aggregation_type.value,
        "displayOrder": definition.display_order,
        "isActive": definition.is_active,
        "description": definition.description,
        "groupId": definition.group_id,
        "groupDisplayOrder": definition.group_display_order,
    }


def _field_from_payload(data: dict[str, Any]) -> CustomFieldDefinition:
    raw_rules = data.get("validationRules", {})
    rules = FieldValidationRules(
        **{
            attr: raw_rules[key]
            for attr, key in _RULE_KEYS.items()
            if key in raw_rules and raw_rules[key] is not None
        }
    )
    return CustomFieldDefinition(
        id=data["id"],
        field_name=data["fieldName"],
        display_label=data["displayLabel"],
        data_type=CustomFieldDataType(data["dataType"]),
        validation_rules=rules,
        aggregation_type=AggregationType(data["aggregationType"]),
        display_order=data.get("displayOrder", 0),
        is_active=data.get("isActive", True),
        description=data.get("description"),
        group_id=data.get("groupId"),
        group_display_order=data.get("groupDisplayOrder"),
    )
