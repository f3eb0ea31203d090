"""
CustomValidator - delegates to a host-registered handler.

Stored rules only name a handler; the callable itself is registered by the
host process in a CustomConstraintRegistry. Nothing from stored data is ever
executed.
"""

from collections.abc import Callable, Mapping
from typing import Any

from .base_validator import BaseValidator, ValidationError

# handler(value, record) returns None on success and raises on failure
CustomHandler = Callable[[str | None, Mapping[str, str]], None]


class CustomConstraintRegistry:
    """Named custom constraint handlers supplied by the host."""

    def __init__(self, handlers: Mapping[str, CustomHandler] | None = None):
        self._handlers: dict[str, CustomHandler] = dict(handlers or {})

    def register(self, name: str, handler: CustomHandler) -> None:
        if not callable(handler):
            raise ValueError(f"Handler for '{name}' must be callable")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def get(self, name: str) -> CustomHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers


class CustomValidator(BaseValidator):
    """
    Validates using a custom handler.

    Parameters:
    - validator_func: A callable taking (value, record) that raises on failure
    - error_message: Optional message prefix

    The handler signature should be:
        def my_handler(value: str | None, record: Mapping[str, str]) -> None:
            if not valid:
                raise ValueError("Validation failed")
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.validator_func = self.parameters.get("validator_func")
        if not self.validator_func:
            raise ValueError("CustomValidator requires 'validator_func' parameter")

        if not callable(self.validator_func):
            raise ValueError("validator_func must be callable")

        self.error_message = self.parameters.get("error_message") or "Custom validation failed"

    def validate(self, value: str | None, record: Mapping[str, str]) -> None:
        """
        Raises:
            ValidationError: If the handler raises
        """
        try:
            self.validator_func(value, record)
        except Exception as e:
            raise ValidationError(
                rule_name=self.rule_type,
                field_name=self.field_name,
                message=f"{self.error_message}: {e}",
            ) from e

    @property
    def rule_type(self) -> str:
        return "custom"
