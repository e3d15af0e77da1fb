"""Field schema — theme- and system-declared form inputs with rules.

Rules follow the async-validator shape used by theme descriptors::

    rules:
      - required: true
        message: Title is required
      - max: 60

Only the checks listed in :class:`FieldRule` are enforced; unknown rule
keys are kept so themes written for richer validators still load.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import StrEnum
from typing import Any

import pydantic
from pydantic import BaseModel, model_validator


class InputType(StrEnum):
    """Form input kinds a field can declare."""

    INPUT = "input"
    SELECT = "select"
    MULTIPLE_SELECT = "multiple-select"
    TEXTAREA = "textarea"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    SWITCH = "switch"
    MARKDOWN = "markdown"
    NUMBER = "number"


CHOICE_INPUT_TYPES = frozenset(
    {InputType.SELECT, InputType.MULTIPLE_SELECT, InputType.RADIO, InputType.CHECKBOX}
)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)

# Relative slash-separated path; no empty, "." or ".." segments and no whitespace.
URL_PATH_PATTERN = r"^(?!\.{1,2}(?:/|$))(?!.*/\.{1,2}(?:/|$))[^/\\\s]+(?:/[^/\\\s]+)*\Z"
_URL_PATH_RE = re.compile(URL_PATH_PATTERN)


def is_url_path(value: str) -> bool:
    """True for paths such as ``about`` or ``2024/trip``; false for ``../x`` or ``a//b``."""
    return _URL_PATH_RE.match(value) is not None


class FieldOption(BaseModel):
    """One choice of a select/radio/checkbox field."""

    model_config = {"frozen": True}

    label: str
    value: str


class FieldRule(BaseModel):
    """A single validation rule attached to a field."""

    model_config = {"frozen": True, "extra": "allow"}

    required: bool = False
    message: str | None = None
    type: str | None = None
    min: float | None = None
    max: float | None = None
    len: int | None = None
    pattern: str | None = None
    enum: list[Any] | None = None
    whitespace: bool = False


class Field(BaseModel):
    """A named input declared by a theme or by notepress itself."""

    model_config = {"frozen": True, "populate_by_name": True}

    name: str
    label: str | None = None
    tip: str | None = None
    placeholder: str | None = None
    input_type: InputType = pydantic.Field(default=InputType.INPUT, alias="inputType")
    default_value: Any = pydantic.Field(default=None, alias="defaultValue")
    rules: list[FieldRule] = pydantic.Field(default_factory=list)
    options: list[FieldOption] | None = None

    @model_validator(mode="after")
    def _options_only_for_choices(self) -> Field:
        if self.options is not None and self.input_type not in CHOICE_INPUT_TYPES:
            msg = f"Field {self.name!r}: options are not allowed on {self.input_type} inputs"
            raise ValueError(msg)
        return self

    @property
    def display_name(self) -> str:
        return self.label or self.name


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _is_unset(value: Any, *, whitespace: bool = False) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == "" or (whitespace and not value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _matches_type(kind: str, value: Any) -> bool:
    match kind:
        case "string":
            return isinstance(value, str)
        case "number" | "integer" | "float":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        case "boolean":
            return isinstance(value, bool)
        case "array":
            return isinstance(value, list)
        case "email":
            return isinstance(value, str) and _EMAIL_RE.match(value) is not None
        case "url":
            return isinstance(value, str) and _URL_RE.match(value) is not None
        case "date":
            if isinstance(value, (date, datetime)):
                return True
            if not isinstance(value, str):
                return False
            try:
                datetime.fromisoformat(value)
            except ValueError:
                return False
            return True
        case _:
            # Unknown types are not enforced.
            return True


def _size(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (str, list, tuple)):
        return len(value)
    return None


def _check_rule(field: Field, rule: FieldRule, value: Any) -> str | None:
    """Return an error message when *value* breaks *rule*, else None."""
    name = field.display_name
    if _is_unset(value, whitespace=rule.whitespace):
        if rule.required:
            return rule.message or f"{name} is Required"
        return None

    if rule.type is not None and not _matches_type(rule.type, value):
        return rule.message or f"{name} is not a valid {rule.type}"

    size = _size(value)
    if rule.len is not None and size is not None and size != rule.len:
        return rule.message or f"{name} must be exactly {rule.len}"
    if rule.min is not None and size is not None and size < rule.min:
        return rule.message or f"{name} must be at least {rule.min:g}"
    if rule.max is not None and size is not None and size > rule.max:
        return rule.message or f"{name} must be at most {rule.max:g}"

    if rule.pattern is not None and re.search(rule.pattern, str(value)) is None:
        return rule.message or f"{name} does not match pattern {rule.pattern}"

    if rule.enum is not None and value not in rule.enum:
        return rule.message or f"{name} must be one of {', '.join(map(str, rule.enum))}"

    return None


def validate_field(field: Field, value: Any) -> list[str]:
    """Check *value* against every rule of *field*."""
    errors: list[str] = []
    for rule in field.rules:
        message = _check_rule(field, rule, value)
        if message is not None:
            errors.append(message)
    return errors


def validate_values(fields: Iterable[Field], values: Mapping[str, Any]) -> dict[str, list[str]]:
    """Validate *values* against *fields*; returns only the failing fields."""
    errors: dict[str, list[str]] = {}
    for field in fields:
        messages = validate_field(field, values.get(field.name))
        if messages:
            errors[field.name] = messages
    return errors
