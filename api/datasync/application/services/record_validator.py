"""
Validacion declarativa de registros mapeados.

Las reglas se evaluan en orden y se acumulan todas las violaciones
(no corta en la primera).
"""
import math
import re
from typing import Any, Callable, Dict, List, Sequence

from loguru import logger

from datasync.domain.entities.record_values import (
    MISSING,
    FieldValue,
    MappedRecord,
    TextValue,
    is_missing,
)
from datasync.domain.entities.sync import ValidationRule
from datasync.shared.constants.sync_constants import ValidationRuleType
from datasync.shared.exceptions.sync import RecordValidationError

# validator(valor, config, registro) -> True si es valido
CustomValidator = Callable[[FieldValue, Dict[str, Any], MappedRecord], bool]


class CustomValidatorRegistry:
    """
    Registro de validadores `custom` por nombre.

    La regla indica el nombre en rule_config["validator"]. Un nombre sin
    implementacion registrada no invalida el registro.
    """

    _validators: Dict[str, CustomValidator] = {}

    @classmethod
    def register(cls, name: str, validator: CustomValidator) -> None:
        cls._validators[name] = validator

    @classmethod
    def get(cls, name: str):
        return cls._validators.get(name)

    @classmethod
    def clear(cls) -> None:
        """Util para testing."""
        cls._validators = {}


def _is_empty(value: FieldValue) -> bool:
    # 0 y False son valores validos
    return is_missing(value) or (isinstance(value, TextValue) and value.value == "")


def _check_required(rule: ValidationRule, value: FieldValue, record: MappedRecord) -> List[str]:
    if _is_empty(value):
        return [rule.error_message or f"Field {rule.field_name} is required"]
    return []


def _check_type(rule: ValidationRule, value: FieldValue, record: MappedRecord) -> List[str]:
    expected = rule.rule_config.get("type")
    if expected and value.type_name != expected:
        return [rule.error_message or f"Field {rule.field_name} must be of type {expected}"]
    return []


def _check_format(rule: ValidationRule, value: FieldValue, record: MappedRecord) -> List[str]:
    pattern = rule.rule_config.get("regex") or rule.rule_config.get("pattern")
    if not pattern or _is_empty(value):
        return []
    try:
        matched = re.search(pattern, value.as_text()) is not None
    except re.error as e:
        logger.warning(f"Regex invalida en regla de formato para {rule.field_name}: {e}")
        return [rule.error_message or f"Field {rule.field_name} format is invalid"]
    if not matched:
        return [rule.error_message or f"Field {rule.field_name} format is invalid"]
    return []


def _check_range(rule: ValidationRule, value: FieldValue, record: MappedRecord) -> List[str]:
    if is_missing(value):
        return []

    number = value.as_number()
    # Un valor no numerico no viola ningun limite; texto vacio cuenta como 0
    if number is None or math.isnan(number):
        return []

    errors = []
    minimum = rule.rule_config.get("min")
    maximum = rule.rule_config.get("max")
    if minimum is not None and number < float(minimum):
        errors.append(rule.error_message or f"Field {rule.field_name} must be at least {minimum}")
    if maximum is not None and number > float(maximum):
        errors.append(rule.error_message or f"Field {rule.field_name} must be at most {maximum}")
    return errors


def _check_custom(rule: ValidationRule, value: FieldValue, record: MappedRecord) -> List[str]:
    name = rule.rule_config.get("validator")
    validator = CustomValidatorRegistry.get(name) if name else None
    if validator is None:
        return []
    if validator(value, rule.rule_config, record):
        return []
    return [rule.error_message or f"Field {rule.field_name} failed custom validation '{name}'"]


_CHECKS = {
    ValidationRuleType.REQUIRED.value: _check_required,
    ValidationRuleType.TYPE.value: _check_type,
    ValidationRuleType.FORMAT.value: _check_format,
    ValidationRuleType.RANGE.value: _check_range,
    ValidationRuleType.CUSTOM.value: _check_custom,
}


def collect_violations(record: MappedRecord, rules: Sequence[ValidationRule]) -> List[str]:
    """Retorna todas las violaciones del registro (lista vacia si es valido)."""
    errors: List[str] = []
    for rule in rules:
        check = _CHECKS.get(rule.rule_type)
        if check is None:
            continue
        errors.extend(check(rule, record.get(rule.field_name, MISSING), record))
    return errors


def validate_record(record: MappedRecord, rules: Sequence[ValidationRule]) -> None:
    """
    Valida el registro contra las reglas.

    Raises:
        RecordValidationError: con la lista completa de violaciones
    """
    errors = collect_violations(record, rules)
    if errors:
        raise RecordValidationError(errors)
