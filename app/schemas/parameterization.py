from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum


class ItemStateEnum(str, Enum):
    """Lifecycle state of a parameterization item"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class StateFilter(str, Enum):
    """State filter for list endpoints"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    ALL = "all"


class UpdateStateRequest(BaseModel):
    state: ItemStateEnum


# =========================================================================
# Standards
# =========================================================================

class StandardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    version: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    state: ItemStateEnum = ItemStateEnum.ACTIVE


class StandardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    version: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None


class StandardResponse(BaseModel):
    id: int
    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    state: ItemStateEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =========================================================================
# Criteria
# =========================================================================

class CriterionCreate(BaseModel):
    standard_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    state: ItemStateEnum = ItemStateEnum.ACTIVE


class CriterionUpdate(BaseModel):
    standard_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class CriterionResponse(BaseModel):
    id: int
    standard_id: int
    name: str
    description: Optional[str] = None
    state: ItemStateEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =========================================================================
# Sub-criteria
# =========================================================================

class SubCriterionCreate(BaseModel):
    criterion_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    state: ItemStateEnum = ItemStateEnum.ACTIVE


class SubCriterionUpdate(BaseModel):
    criterion_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class SubCriterionResponse(BaseModel):
    id: int
    criterion_id: int
    name: str
    description: Optional[str] = None
    state: ItemStateEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =========================================================================
# Metrics
# =========================================================================

class MetricCreate(BaseModel):
    sub_criterion_id: int
    code: Optional[str] = Field(None, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    formula: Optional[str] = Field(None, max_length=200)
    desired_threshold: Optional[str] = Field(None, max_length=50)
    worst_case: Optional[str] = Field(None, max_length=50)
    state: ItemStateEnum = ItemStateEnum.ACTIVE


class MetricUpdate(BaseModel):
    sub_criterion_id: Optional[int] = None
    code: Optional[str] = Field(None, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    formula: Optional[str] = Field(None, max_length=200)
    desired_threshold: Optional[str] = Field(None, max_length=50)
    worst_case: Optional[str] = Field(None, max_length=50)


class MetricResponse(BaseModel):
    id: int
    sub_criterion_id: int
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    formula: Optional[str] = None
    desired_threshold: Optional[str] = None
    worst_case: Optional[str] = None
    state: ItemStateEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =========================================================================
# Formula variables
# =========================================================================

class FormulaVariableCreate(BaseModel):
    metric_id: int
    symbol: str = Field(..., min_length=1, max_length=10)
    description: Optional[str] = None
    state: ItemStateEnum = ItemStateEnum.ACTIVE


class FormulaVariableUpdate(BaseModel):
    metric_id: Optional[int] = None
    symbol: Optional[str] = Field(None, min_length=1, max_length=10)
    description: Optional[str] = None


class FormulaVariableResponse(BaseModel):
    id: int
    metric_id: int
    symbol: str
    description: Optional[str] = None
    state: ItemStateEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =========================================================================
# Search results (autocomplete across standards)
# =========================================================================

class VariableSearchResult(BaseModel):
    variable_id: int
    symbol: str
    description: Optional[str] = None


class MetricSearchResult(BaseModel):
    metric_id: int
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    formula: Optional[str] = None
    desired_threshold: Optional[str] = None
    worst_case: Optional[str] = None
    sub_criterion_id: Optional[int] = None
    sub_criterion_name: Optional[str] = None
    criterion_id: Optional[int] = None
    criterion_name: Optional[str] = None
    standard_id: Optional[int] = None
    standard_name: Optional[str] = None
    variables: List[VariableSearchResult] = []


class CriterionSearchResult(BaseModel):
    criterion_id: int
    name: str
    description: Optional[str] = None
    standard_id: int
    standard_name: str


class SubCriterionSearchResult(BaseModel):
    """Sub-criterion match, including its active metrics for direct selection"""
    sub_criterion_id: int
    name: str
    description: Optional[str] = None
    criterion_id: int
    criterion_name: str
    standard_id: int
    standard_name: str
    metrics: List[MetricSearchResult]
    metrics_count: int
