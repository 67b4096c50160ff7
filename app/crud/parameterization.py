"""
CRUD operations for the parameterization tree.

Standard -> Criterion -> SubCriterion -> Metric -> FormulaVariable

The five entities share the same shape (parent id, state, timestamps), so the
operations here are written once and parameterized by model.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.database import Base
from app.models.parameterization import (
    ItemState,
    Standard,
    Criterion,
    SubCriterion,
    Metric,
    FormulaVariable,
)

logger = logging.getLogger(__name__)

# Child collection used when cascading state changes down the tree
_CHILDREN = {
    Standard: "criteria",
    Criterion: "sub_criteria",
    SubCriterion: "metrics",
    Metric: "variables",
}

# Columns matched by the `search` filter of list endpoints
_SEARCH_COLUMNS = {
    Standard: ("name", "description"),
    Criterion: ("name", "description"),
    SubCriterion: ("name", "description"),
    Metric: ("name", "description"),
    FormulaVariable: ("symbol", "description"),
}


def get(db: Session, model: Type[Base], item_id: int):
    """
    Retrieve a parameterization item by its ID.

    Args:
        db: Database session
        model: Standard, Criterion, SubCriterion, Metric or FormulaVariable
        item_id: ID to retrieve

    Returns:
        Model instance if found, None otherwise
    """
    return db.query(model).filter(model.id == item_id).first()


def create(db: Session, model: Type[Base], data: Dict[str, Any]):
    """
    Create a parameterization item.

    Parent existence is checked by the caller.
    """
    item = model(**data)
    db.add(item)
    db.commit()
    db.refresh(item)

    logger.info(f"Created {model.__name__} {item.id}")
    return item


def update(db: Session, item, data: Dict[str, Any]):
    """
    Apply a partial update.

    Args:
        db: Database session
        item: Instance to update
        data: Only the fields that were sent (exclude_unset)

    Returns:
        Updated instance
    """
    for field, value in data.items():
        setattr(item, field, value)

    db.commit()
    db.refresh(item)
    return item


def set_state(db: Session, item, state: ItemState):
    """
    Set the state of an item and of every descendant in one transaction.

    Deactivating a standard deactivates its criteria, their sub-criteria,
    those sub-criteria's metrics and the metrics' variables.
    """
    affected = _cascade_state(item, state)
    db.commit()
    db.refresh(item)

    logger.info(f"Set {type(item).__name__} {item.id} to {state.value} ({affected} items affected)")
    return item


def _cascade_state(item, state: ItemState) -> int:
    item.state = state
    affected = 1

    children_attr = _CHILDREN.get(type(item))
    if children_attr:
        for child in getattr(item, children_attr):
            affected += _cascade_state(child, state)

    return affected


def get_multi(
    db: Session,
    model: Type[Base],
    parent_filter: Optional[Dict[str, int]] = None,
    state: Optional[str] = ItemState.ACTIVE.value,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> List:
    """
    List parameterization items with filters and pagination.

    Args:
        db: Database session
        model: Model to list
        parent_filter: e.g. {"standard_id": 1} to list one parent's children
        state: "active", "inactive" or "all"
        search: Case-insensitive substring over name/description (symbol/description for variables)
        page: 1-based page number
        limit: Page size

    Returns:
        Items ordered by name (by symbol for variables)
    """
    query = db.query(model)

    for column, value in (parent_filter or {}).items():
        query = query.filter(getattr(model, column) == value)

    if state and state != "all":
        query = query.filter(model.state == ItemState(state))

    if search:
        pattern = f"%{search}%"
        columns = _SEARCH_COLUMNS[model]
        query = query.filter(or_(*[getattr(model, c).ilike(pattern) for c in columns]))

    order_column = model.symbol if model is FormulaVariable else model.name
    return query.order_by(order_column.asc()).offset((page - 1) * limit).limit(limit).all()


# =========================================================================
# Cross-standard search (autocomplete)
# =========================================================================

def _matches(model: Type[Base], term: str):
    pattern = f"%{term}%"
    return or_(model.name.ilike(pattern), model.description.ilike(pattern))


def search_criteria(db: Session, term: str) -> List[Criterion]:
    return (
        db.query(Criterion)
        .join(Criterion.standard)
        .options(joinedload(Criterion.standard))
        .filter(
            _matches(Criterion, term),
            Criterion.state == ItemState.ACTIVE,
            Standard.state == ItemState.ACTIVE,
        )
        .order_by(Criterion.name.asc())
        .all()
    )


def search_sub_criteria(db: Session, term: str) -> List[SubCriterion]:
    return (
        db.query(SubCriterion)
        .join(SubCriterion.criterion)
        .join(Criterion.standard)
        .options(joinedload(SubCriterion.criterion).joinedload(Criterion.standard))
        .filter(
            _matches(SubCriterion, term),
            SubCriterion.state == ItemState.ACTIVE,
            Criterion.state == ItemState.ACTIVE,
            Standard.state == ItemState.ACTIVE,
        )
        .order_by(SubCriterion.name.asc())
        .all()
    )


def search_metrics(db: Session, term: str) -> List[Metric]:
    pattern = f"%{term}%"
    return (
        db.query(Metric)
        .join(Metric.sub_criterion)
        .join(SubCriterion.criterion)
        .join(Criterion.standard)
        .filter(
            or_(Metric.name.ilike(pattern), Metric.description.ilike(pattern), Metric.code.ilike(pattern)),
            Metric.state == ItemState.ACTIVE,
            SubCriterion.state == ItemState.ACTIVE,
            Criterion.state == ItemState.ACTIVE,
            Standard.state == ItemState.ACTIVE,
        )
        .order_by(Metric.name.asc())
        .all()
    )
