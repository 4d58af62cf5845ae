import enum

class DataType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DATE = "date"

class InheritanceStrategy(str, enum.Enum):
    NEVER = "never"
    FALLBACK = "fallback"
    ALWAYS = "always"

class AppliesTo(str, enum.Enum):
    PRODUCT = "product"
    VARIANT = "variant"
    BOTH = "both"

class OwnerKind(str, enum.Enum):
    PRODUCT = "product"
    VARIANT = "variant"

class AttributeSource(str, enum.Enum):
    MANUAL = "manual"
    INHERITED = "inherited"
    IMPORT = "import"
    SYSTEM = "system"

class CleanupAction(str, enum.Enum):
    FIX = "fix"
    REMOVE = "remove"
    REPORT = "report"
