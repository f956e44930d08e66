"""
Validation functions for configuration values and user input.
"""

from typing import Any, List, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value!r}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value!r}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

    Raises:
        ValidationError: If validation fails
    """
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value!r}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_cpu_index(value: Any, mask_bits: int, field_name: str = "cpu index") -> int:
    """
    Validate a single logical CPU index against the mask width.

    Accepts ints and decimal strings (surrounding whitespace ignored). Booleans
    and anything else that is not a plain integer are rejected.

    Raises:
        ValidationError: If the index is not an integer in [0, mask_bits)
    """
    if isinstance(value, str):
        text = value.strip()
        if not text or not (text.isdigit() or (text[0] in "+-" and text[1:].isdigit())):
            raise ValidationError(
                f"{field_name} must be a decimal integer, got {value!r}",
                field_name=field_name,
                value=value
            )
        index = int(text)
    elif isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field_name} must be an integer, got {value!r}",
            field_name=field_name,
            value=value
        )
    else:
        index = value
    if index < 0 or index >= mask_bits:
        raise ValidationError(
            f"{field_name} must be in [0, {mask_bits}), got {index}",
            field_name=field_name,
            value=value
        )
    return index


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Raises:
        ValidationError: If value is not in valid choices
    """
    str_value = str(value)
    if case_sensitive:
        if str_value not in valid_choices:
            raise ValidationError(
                f"{field_name} must be one of {valid_choices}, got '{str_value}'",
                field_name=field_name,
                value=value
            )
        return str_value

    lowered = {choice.lower(): choice for choice in valid_choices}
    if str_value.lower() not in lowered:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices} (case insensitive), got '{str_value}'",
            field_name=field_name,
            value=value
        )
    return lowered[str_value.lower()]


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a string with non-whitespace content."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_string_list(value: Any, field_name: str = "value") -> List[str]:
    """Validate a list of non-empty strings (as found in TOML arrays)."""
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError(
            f"{field_name} must be a non-empty list of strings, got {value!r}",
            field_name=field_name,
            value=value
        )
    return [validate_non_empty_string(item, field_name=f"{field_name} entry") for item in value]
