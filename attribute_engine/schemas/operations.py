from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

class SkippedAttribute(BaseModel):
    key: str
    reason: str

class InheritanceResult(BaseModel):
    inherited: List[str] = []
    skipped: List[SkippedAttribute] = []
    errors: Dict[str, str] = {}
    total_processed: int = 0

    def skipped_keys(self) -> List[str]:
        return [item.key for item in self.skipped]

class RefreshedAttribute(BaseModel):
    key: str
    old: Optional[str] = None
    new: Optional[str] = None

class RefreshResult(BaseModel):
    updated: List[RefreshedAttribute] = []
    removed: List[str] = []
    unchanged: List[str] = []
    errors: Dict[str, str] = {}

class SyncResult(BaseModel):
    created: List[str] = []
    updated: List[str] = []
    errors: Dict[str, List[str]] = {}

class InheritanceDetail(BaseModel):
    status: str
    value: Any = None
    can_inherit: bool
    inheritance_strategy: Optional[str] = None

class InheritanceSummary(BaseModel):
    total_attributes: int = 0
    inherited: int = 0
    overridden: int = 0
    explicit: int = 0
    inheritable_available: int = 0
    details: Dict[str, InheritanceDetail] = {}

class ValidationReport(BaseModel):
    valid: bool = True
    errors: Dict[str, List[str]] = {}
    validated_count: int = 0

class CleanupReport(BaseModel):
    action: str
    processed: int = 0
    fixed: int = 0
    removed: int = 0
    unfixable: int = 0
    unfixable_keys: List[str] = []
    errors: Dict[str, List[str]] = {}

class ChannelSyncStatus(BaseModel):
    should_sync: bool
    status: str
    needs_sync: bool
    is_valid: bool = True
    last_synced_at: Optional[datetime] = None

class AttributeStatistics(BaseModel):
    total_attributes: int = 0
    valid_attributes: int = 0
    invalid_attributes: int = 0
    completion_percentage: float = 0.0
    by_source: Dict[str, int] = {}
    by_group: Dict[str, int] = {}

class ProductInheritanceResult(BaseModel):
    product_id: int
    variants_processed: int = 0
    variants_succeeded: int = 0
    variants_with_errors: int = 0
    total_inherited: int = 0
    variant_results: Dict[int, InheritanceResult] = {}
    summary: List[str] = []

class VariantAttributeRef(BaseModel):
    variant_id: int
    key: str

class OrphanCleanupResult(BaseModel):
    total_checked: int = 0
    orphans_found: int = 0
    orphans_removed: int = 0
    removed: List[VariantAttributeRef] = []

class InheritanceConflict(VariantAttributeRef):
    errors: List[str] = []

class InheritanceConflicts(BaseModel):
    inactive_definitions: List[InheritanceConflict] = []
    invalid_strategies: List[InheritanceConflict] = []
    orphaned_inheritance: List[InheritanceConflict] = []
    validation_failures: List[InheritanceConflict] = []

    def total(self) -> int:
        return (len(self.inactive_definitions) + len(self.invalid_strategies)
                + len(self.orphaned_inheritance) + len(self.validation_failures))

class ConflictRepair(VariantAttributeRef):
    kind: str
    action: Optional[str] = None
    error: Optional[str] = None

class RepairResult(BaseModel):
    repaired: List[ConflictRepair] = []
    failed: List[ConflictRepair] = []

class AttributeInheritanceCounts(BaseModel):
    total: int = 0
    inherited: int = 0
    overrides: int = 0
    explicit: int = 0

class InheritanceStatistics(BaseModel):
    products: int = 0
    variants: int = 0
    total_variant_attributes: int = 0
    inherited_attributes: int = 0
    override_attributes: int = 0
    explicit_attributes: int = 0
    inheritance_percentage: float = 0.0
    by_attribute: Dict[str, AttributeInheritanceCounts] = {}
