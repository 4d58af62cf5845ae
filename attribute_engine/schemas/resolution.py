from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel

class ResolutionStep(BaseModel):
    level: str
    value: Any = None
    provenance: str
    owner_kind: Optional[str] = None
    owner_id: Optional[int] = None
    recorded_at: Optional[datetime] = None
    selected: bool = False

class ResolutionPath(BaseModel):
    key: str
    final_value: Any = None
    resolved_level: Optional[str] = None
    path: List[ResolutionStep] = []

class EffectiveValue(BaseModel):
    key: str
    value: Any = None
