from typing import List, Optional


class AttributeEngineError(Exception):
    """Base class for attribute engine failures."""


class SchemaError(AttributeEngineError):
    """Referenced attribute key has no active definition."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Attribute definition '{key}' not found")


class AttributeValidationError(AttributeEngineError):
    """Value violates the definition's data type or validation rules."""

    def __init__(self, errors: List[str], value=None):
        self.errors = list(errors)
        self.value = value
        super().__init__("; ".join(self.errors))


class InheritanceError(AttributeEngineError):
    """Inheritance or override not permitted for the definition or owner."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


class StorageError(AttributeEngineError):
    """Unexpected persistence failure. Always propagated."""
