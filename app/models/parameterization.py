"""
Parameterization models: the quality standard tree.

Standard -> Criterion -> SubCriterion -> Metric -> FormulaVariable

Every node carries an active/inactive state; deactivating a node cascades the
state down to all of its descendants (handled in the CRUD layer).
"""

import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class ItemState(str, enum.Enum):
    """Lifecycle state shared by every parameterization entity"""
    ACTIVE = "active"
    INACTIVE = "inactive"


def _state_column():
    return Column(
        Enum(ItemState, name="item_state", values_callable=lambda e: [m.value for m in e]),
        default=ItemState.ACTIVE,
        nullable=False,
        index=True,
    )


class Standard(Base):
    """A quality standard such as ISO/IEC 25010"""
    __tablename__ = "standards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    version = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    state = _state_column()

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    criteria = relationship("Criterion", back_populates="standard", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Standard(id={self.id}, name='{self.name}', state={self.state.value})>"


class Criterion(Base):
    __tablename__ = "criteria"

    id = Column(Integer, primary_key=True, index=True)
    standard_id = Column(Integer, ForeignKey("standards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    state = _state_column()

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    standard = relationship("Standard", back_populates="criteria")
    sub_criteria = relationship("SubCriterion", back_populates="criterion", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Criterion(id={self.id}, name='{self.name}')>"


class SubCriterion(Base):
    __tablename__ = "sub_criteria"

    id = Column(Integer, primary_key=True, index=True)
    criterion_id = Column(Integer, ForeignKey("criteria.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    state = _state_column()

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    criterion = relationship("Criterion", back_populates="sub_criteria")
    metrics = relationship("Metric", back_populates="sub_criterion", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SubCriterion(id={self.id}, name='{self.name}')>"


class Metric(Base):
    """
    A measurable metric.

    `formula` is an arithmetic expression over the metric's variable symbols
    (e.g. "A/B", "1-(A/B)"). `desired_threshold` and `worst_case` are free-form
    threshold strings (e.g. ">=10/20min", "0 %", "1") interpreted by the
    threshold parser at scoring time.
    """
    __tablename__ = "metrics"

    id = Column(Integer, primary_key=True, index=True)
    sub_criterion_id = Column(Integer, ForeignKey("sub_criteria.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(20), nullable=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    formula = Column(String(200), nullable=True)
    desired_threshold = Column(String(50), nullable=True)
    worst_case = Column(String(50), nullable=True)
    state = _state_column()

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    sub_criterion = relationship("SubCriterion", back_populates="metrics")
    variables = relationship(
        "FormulaVariable",
        back_populates="metric",
        cascade="all, delete-orphan",
        order_by="FormulaVariable.id",
    )

    def __repr__(self):
        return f"<Metric(id={self.id}, code='{self.code}', formula='{self.formula}')>"


class FormulaVariable(Base):
    __tablename__ = "formula_variables"

    id = Column(Integer, primary_key=True, index=True)
    metric_id = Column(Integer, ForeignKey("metrics.id", ondelete="CASCADE"), nullable=False, index=True)
    symbol = Column(String(10), nullable=False)
    description = Column(Text, nullable=True)
    state = _state_column()

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    metric = relationship("Metric", back_populates="variables")

    def __repr__(self):
        return f"<FormulaVariable(id={self.id}, symbol='{self.symbol}')>"
