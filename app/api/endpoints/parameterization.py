"""
Parameterization endpoints: the standard -> criterion -> sub-criterion ->
metric -> formula variable tree.

Items are never deleted; they are deactivated through the /state routes,
which cascade to every descendant. Write routes are admin-only.
"""

import logging
from typing import List, Optional, Tuple, Type
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db, Base
from app.core.deps import require_admin, require_evaluator
from app.crud import parameterization as param_crud
from app.models.parameterization import (
    ItemState,
    Standard,
    Criterion,
    SubCriterion,
    Metric,
    FormulaVariable,
)
from app.models.user import User
from app.schemas.parameterization import (
    StateFilter,
    UpdateStateRequest,
    StandardCreate, StandardUpdate, StandardResponse,
    CriterionCreate, CriterionUpdate, CriterionResponse,
    SubCriterionCreate, SubCriterionUpdate, SubCriterionResponse,
    MetricCreate, MetricUpdate, MetricResponse,
    FormulaVariableCreate, FormulaVariableUpdate, FormulaVariableResponse,
    CriterionSearchResult, SubCriterionSearchResult, MetricSearchResult,
)

router = APIRouter(prefix="/parameterization", tags=["Parameterization"])
logger = logging.getLogger(__name__)

# (parent model, foreign key column) for each child entity
_PARENTS = {
    Criterion: (Standard, "standard_id"),
    SubCriterion: (Criterion, "criterion_id"),
    Metric: (SubCriterion, "sub_criterion_id"),
    FormulaVariable: (Metric, "metric_id"),
}


def get_or_404(db: Session, model: Type[Base], item_id: int):
    item = param_crud.get(db, model, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"{model.__name__} with ID {item_id} not found")
    return item


def _check_parent(db: Session, model: Type[Base], data: dict) -> None:
    parent: Optional[Tuple[Type[Base], str]] = _PARENTS.get(model)
    if parent and data.get(parent[1]) is not None:
        get_or_404(db, parent[0], data[parent[1]])


def _create(db: Session, model: Type[Base], request):
    data = request.model_dump()
    data["state"] = ItemState(request.state.value)
    _check_parent(db, model, data)

    try:
        return param_crud.create(db, model, data)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating {model.__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create {model.__name__}: {str(e)}")


def _update(db: Session, model: Type[Base], item_id: int, request):
    item = get_or_404(db, model, item_id)
    data = request.model_dump(exclude_unset=True)
    _check_parent(db, model, data)

    try:
        return param_crud.update(db, item, data)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating {model.__name__} {item_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update {model.__name__}: {str(e)}")


def _set_state(db: Session, model: Type[Base], item_id: int, request: UpdateStateRequest):
    item = get_or_404(db, model, item_id)

    try:
        return param_crud.set_state(db, item, ItemState(request.state.value))
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating state of {model.__name__} {item_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update {model.__name__} state: {str(e)}")


def _list(db: Session, model: Type[Base], state: StateFilter, search: Optional[str], page: int, limit: int,
          parent_id: Optional[int] = None):
    parent_filter = None
    if parent_id is not None:
        parent_model, column = _PARENTS[model]
        get_or_404(db, parent_model, parent_id)
        parent_filter = {column: parent_id}

    return param_crud.get_multi(
        db, model,
        parent_filter=parent_filter,
        state=state.value,
        search=search,
        page=page,
        limit=limit,
    )


# =========================================================================
# Standards
# =========================================================================

@router.post("/standards", status_code=201, response_model=StandardResponse)
def create_standard(
    request: StandardCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create(db, Standard, request)


@router.get("/standards", response_model=List[StandardResponse])
def list_standards(
    state: StateFilter = StateFilter.ACTIVE,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    List standards.

    Args:
        state: active (default), inactive or all
        search: Case-insensitive match on name or description
        page: Page number (1-based)
        limit: Page size (max 100)
    """
    return _list(db, Standard, state, search, page, limit)


@router.get("/standards/{standard_id}", response_model=StandardResponse)
def get_standard(standard_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return get_or_404(db, Standard, standard_id)


@router.patch("/standards/{standard_id}", response_model=StandardResponse)
def update_standard(
    standard_id: int,
    request: StandardUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _update(db, Standard, standard_id, request)


@router.patch("/standards/{standard_id}/state", response_model=StandardResponse)
def update_standard_state(
    standard_id: int,
    request: UpdateStateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Activate or deactivate a standard and its whole subtree"""
    return _set_state(db, Standard, standard_id, request)


# =========================================================================
# Criteria
# =========================================================================

@router.post("/criteria", status_code=201, response_model=CriterionResponse)
def create_criterion(
    request: CriterionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create(db, Criterion, request)


@router.get("/standards/{standard_id}/criteria", response_model=List[CriterionResponse])
def list_criteria(
    standard_id: int,
    state: StateFilter = StateFilter.ACTIVE,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return _list(db, Criterion, state, search, page, limit, parent_id=standard_id)


@router.get("/criteria/{criterion_id}", response_model=CriterionResponse)
def get_criterion(criterion_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return get_or_404(db, Criterion, criterion_id)


@router.patch("/criteria/{criterion_id}", response_model=CriterionResponse)
def update_criterion(
    criterion_id: int,
    request: CriterionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _update(db, Criterion, criterion_id, request)


@router.patch("/criteria/{criterion_id}/state", response_model=CriterionResponse)
def update_criterion_state(
    criterion_id: int,
    request: UpdateStateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _set_state(db, Criterion, criterion_id, request)


# =========================================================================
# Sub-criteria
# =========================================================================

@router.post("/sub-criteria", status_code=201, response_model=SubCriterionResponse)
def create_sub_criterion(
    request: SubCriterionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create(db, SubCriterion, request)


@router.get("/criteria/{criterion_id}/sub-criteria", response_model=List[SubCriterionResponse])
def list_sub_criteria(
    criterion_id: int,
    state: StateFilter = StateFilter.ACTIVE,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return _list(db, SubCriterion, state, search, page, limit, parent_id=criterion_id)


@router.get("/sub-criteria/{sub_criterion_id}", response_model=SubCriterionResponse)
def get_sub_criterion(
    sub_criterion_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return get_or_404(db, SubCriterion, sub_criterion_id)


@router.patch("/sub-criteria/{sub_criterion_id}", response_model=SubCriterionResponse)
def update_sub_criterion(
    sub_criterion_id: int,
    request: SubCriterionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _update(db, SubCriterion, sub_criterion_id, request)


@router.patch("/sub-criteria/{sub_criterion_id}/state", response_model=SubCriterionResponse)
def update_sub_criterion_state(
    sub_criterion_id: int,
    request: UpdateStateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _set_state(db, SubCriterion, sub_criterion_id, request)


# =========================================================================
# Metrics
# =========================================================================

@router.post("/metrics", status_code=201, response_model=MetricResponse)
def create_metric(
    request: MetricCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create(db, Metric, request)


@router.get("/sub-criteria/{sub_criterion_id}/metrics", response_model=List[MetricResponse])
def list_metrics(
    sub_criterion_id: int,
    state: StateFilter = StateFilter.ACTIVE,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return _list(db, Metric, state, search, page, limit, parent_id=sub_criterion_id)


@router.get("/metrics/{metric_id}", response_model=MetricResponse)
def get_metric(metric_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return get_or_404(db, Metric, metric_id)


@router.patch("/metrics/{metric_id}", response_model=MetricResponse)
def update_metric(
    metric_id: int,
    request: MetricUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _update(db, Metric, metric_id, request)


@router.patch("/metrics/{metric_id}/state", response_model=MetricResponse)
def update_metric_state(
    metric_id: int,
    request: UpdateStateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _set_state(db, Metric, metric_id, request)


# =========================================================================
# Formula variables
# =========================================================================

@router.post("/variables", status_code=201, response_model=FormulaVariableResponse)
def create_variable(
    request: FormulaVariableCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _create(db, FormulaVariable, request)


@router.get("/metrics/{metric_id}/variables", response_model=List[FormulaVariableResponse])
def list_variables(
    metric_id: int,
    state: StateFilter = StateFilter.ACTIVE,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """List a metric's variables ordered by symbol"""
    return _list(db, FormulaVariable, state, search, page, limit, parent_id=metric_id)


@router.get("/variables/{variable_id}", response_model=FormulaVariableResponse)
def get_variable(variable_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    return get_or_404(db, FormulaVariable, variable_id)


@router.patch("/variables/{variable_id}", response_model=FormulaVariableResponse)
def update_variable(
    variable_id: int,
    request: FormulaVariableUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _update(db, FormulaVariable, variable_id, request)


@router.patch("/variables/{variable_id}/state", response_model=FormulaVariableResponse)
def update_variable_state(
    variable_id: int,
    request: UpdateStateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return _set_state(db, FormulaVariable, variable_id, request)


# =========================================================================
# Search (autocomplete across all standards, active items only)
# =========================================================================

def _metric_result(metric: Metric) -> MetricSearchResult:
    sub_criterion = metric.sub_criterion
    criterion = sub_criterion.criterion if sub_criterion else None
    standard = criterion.standard if criterion else None

    return MetricSearchResult(
        metric_id=metric.id,
        code=metric.code,
        name=metric.name,
        description=metric.description,
        formula=metric.formula,
        desired_threshold=metric.desired_threshold,
        worst_case=metric.worst_case,
        sub_criterion_id=sub_criterion.id if sub_criterion else None,
        sub_criterion_name=sub_criterion.name if sub_criterion else None,
        criterion_id=criterion.id if criterion else None,
        criterion_name=criterion.name if criterion else None,
        standard_id=standard.id if standard else None,
        standard_name=standard.name if standard else None,
        variables=[
            {"variable_id": v.id, "symbol": v.symbol, "description": v.description}
            for v in metric.variables
            if v.state == ItemState.ACTIVE
        ],
    )


@router.get("/search/criteria", response_model=List[CriterionSearchResult])
def search_criteria(
    search: str = Query(..., min_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return [
        CriterionSearchResult(
            criterion_id=c.id,
            name=c.name,
            description=c.description,
            standard_id=c.standard_id,
            standard_name=c.standard.name,
        )
        for c in param_crud.search_criteria(db, search)
    ]


@router.get("/search/sub-criteria", response_model=List[SubCriterionSearchResult])
def search_sub_criteria(
    search: str = Query(..., min_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    """
    Search sub-criteria by name or description.

    Each result carries its active metrics so a sub-criterion can be picked
    together with what it measures.
    """
    results = []
    for sc in param_crud.search_sub_criteria(db, search):
        metrics = [_metric_result(m) for m in sc.metrics if m.state == ItemState.ACTIVE]
        results.append(SubCriterionSearchResult(
            sub_criterion_id=sc.id,
            name=sc.name,
            description=sc.description,
            criterion_id=sc.criterion_id,
            criterion_name=sc.criterion.name,
            standard_id=sc.criterion.standard_id,
            standard_name=sc.criterion.standard.name,
            metrics=metrics,
            metrics_count=len(metrics),
        ))
    return results


@router.get("/search/metrics", response_model=List[MetricSearchResult])
def search_metrics(
    search: str = Query(..., min_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_evaluator)
):
    return [_metric_result(m) for m in param_crud.search_metrics(db, search)]
