"""Initial quality evaluation schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'item_state': ('active', 'inactive'),
    'project_status': ('in_progress', 'completed', 'cancelled'),
    'evaluation_status': ('in_progress', 'completed', 'cancelled'),
    'importance_level': ('A', 'M', 'B'),
    'analysis_status': ('PENDING', 'PROCESSING', 'COMPLETED', 'FAILED'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema - Create users, parameterization, evaluation and result tables."""
    conn = op.get_bind()

    # Create ENUM types only if they don't exist yet
    for name, values in ENUMS.items():
        result = conn.execute(sa.text(
            "SELECT 1 FROM pg_type WHERE typname = :name"
        ), {"name": name}).fetchone()
        if not result:
            postgresql.ENUM(*values, name=name).create(conn)

    # Users and roles
    op.create_table('roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index(op.f('ix_roles_id'), 'roles', ['id'], unique=False)

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.bulk_insert(
        sa.table('roles', sa.column('name', sa.String)),
        [{'name': 'admin'}, {'name': 'evaluator'}]
    )

    # Parameterization tree
    op.create_table('standards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('version', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('state', _enum('item_state'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_standards_id'), 'standards', ['id'], unique=False)
    op.create_index(op.f('ix_standards_name'), 'standards', ['name'], unique=False)
    op.create_index(op.f('ix_standards_state'), 'standards', ['state'], unique=False)

    op.create_table('criteria',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('standard_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('state', _enum('item_state'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['standard_id'], ['standards.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_criteria_id'), 'criteria', ['id'], unique=False)
    op.create_index(op.f('ix_criteria_standard_id'), 'criteria', ['standard_id'], unique=False)
    op.create_index(op.f('ix_criteria_name'), 'criteria', ['name'], unique=False)
    op.create_index(op.f('ix_criteria_state'), 'criteria', ['state'], unique=False)

    op.create_table('sub_criteria',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('criterion_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('state', _enum('item_state'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['criterion_id'], ['criteria.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sub_criteria_id'), 'sub_criteria', ['id'], unique=False)
    op.create_index(op.f('ix_sub_criteria_criterion_id'), 'sub_criteria', ['criterion_id'], unique=False)
    op.create_index(op.f('ix_sub_criteria_name'), 'sub_criteria', ['name'], unique=False)
    op.create_index(op.f('ix_sub_criteria_state'), 'sub_criteria', ['state'], unique=False)

    op.create_table('metrics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sub_criterion_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('formula', sa.String(length=200), nullable=True),
        sa.Column('desired_threshold', sa.String(length=50), nullable=True),
        sa.Column('worst_case', sa.String(length=50), nullable=True),
        sa.Column('state', _enum('item_state'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['sub_criterion_id'], ['sub_criteria.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_metrics_id'), 'metrics', ['id'], unique=False)
    op.create_index(op.f('ix_metrics_sub_criterion_id'), 'metrics', ['sub_criterion_id'], unique=False)
    op.create_index(op.f('ix_metrics_code'), 'metrics', ['code'], unique=False)
    op.create_index(op.f('ix_metrics_name'), 'metrics', ['name'], unique=False)
    op.create_index(op.f('ix_metrics_state'), 'metrics', ['state'], unique=False)

    op.create_table('formula_variables',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.Column('symbol', sa.String(length=10), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('state', _enum('item_state'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['metric_id'], ['metrics.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_formula_variables_id'), 'formula_variables', ['id'], unique=False)
    op.create_index(op.f('ix_formula_variables_metric_id'), 'formula_variables', ['metric_id'], unique=False)
    op.create_index(op.f('ix_formula_variables_state'), 'formula_variables', ['state'], unique=False)

    # Projects and evaluation configuration
    op.create_table('projects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('creator_user_id', sa.Integer(), nullable=False),
        sa.Column('status', _enum('project_status'), nullable=False),
        sa.Column('minimum_threshold', sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['creator_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_projects_id'), 'projects', ['id'], unique=False)
    op.create_index(op.f('ix_projects_name'), 'projects', ['name'], unique=False)
    op.create_index(op.f('ix_projects_creator_user_id'), 'projects', ['creator_user_id'], unique=False)
    op.create_index(op.f('ix_projects_status'), 'projects', ['status'], unique=False)

    op.create_table('evaluations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('standard_id', sa.Integer(), nullable=False),
        sa.Column('status', _enum('evaluation_status'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['standard_id'], ['standards.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_evaluations_id'), 'evaluations', ['id'], unique=False)
    op.create_index(op.f('ix_evaluations_project_id'), 'evaluations', ['project_id'], unique=False)
    op.create_index(op.f('ix_evaluations_standard_id'), 'evaluations', ['standard_id'], unique=False)
    op.create_index(op.f('ix_evaluations_status'), 'evaluations', ['status'], unique=False)

    op.create_table('evaluation_criteria',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('evaluation_id', sa.Integer(), nullable=False),
        sa.Column('criterion_id', sa.Integer(), nullable=False),
        sa.Column('importance_level', _enum('importance_level'), nullable=False),
        sa.Column('importance_percentage', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['evaluation_id'], ['evaluations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['criterion_id'], ['criteria.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_evaluation_criteria_id'), 'evaluation_criteria', ['id'], unique=False)
    op.create_index(op.f('ix_evaluation_criteria_evaluation_id'), 'evaluation_criteria', ['evaluation_id'], unique=False)
    op.create_index(op.f('ix_evaluation_criteria_criterion_id'), 'evaluation_criteria', ['criterion_id'], unique=False)

    op.create_table('evaluation_metrics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('eval_criterion_id', sa.Integer(), nullable=False),
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['eval_criterion_id'], ['evaluation_criteria.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['metric_id'], ['metrics.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_evaluation_metrics_id'), 'evaluation_metrics', ['id'], unique=False)
    op.create_index(op.f('ix_evaluation_metrics_eval_criterion_id'), 'evaluation_metrics', ['eval_criterion_id'], unique=False)
    op.create_index(op.f('ix_evaluation_metrics_metric_id'), 'evaluation_metrics', ['metric_id'], unique=False)

    # Entered values and calculated results
    op.create_table('evaluation_variables',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('eval_metric_id', sa.Integer(), nullable=False),
        sa.Column('variable_id', sa.Integer(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['eval_metric_id'], ['evaluation_metrics.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['variable_id'], ['formula_variables.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('eval_metric_id', 'variable_id', name='uq_evaluation_variable_metric_variable')
    )
    op.create_index(op.f('ix_evaluation_variables_id'), 'evaluation_variables', ['id'], unique=False)
    op.create_index(op.f('ix_evaluation_variables_eval_metric_id'), 'evaluation_variables', ['eval_metric_id'], unique=False)
    op.create_index(op.f('ix_evaluation_variables_variable_id'), 'evaluation_variables', ['variable_id'], unique=False)

    op.create_table('evaluation_metric_results',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('eval_metric_id', sa.Integer(), nullable=False),
        sa.Column('calculated_value', sa.Float(), nullable=False),
        sa.Column('weighted_value', sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['eval_metric_id'], ['evaluation_metrics.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_evaluation_metric_results_id'), 'evaluation_metric_results', ['id'], unique=False)
    op.create_index(op.f('ix_evaluation_metric_results_eval_metric_id'), 'evaluation_metric_results', ['eval_metric_id'], unique=True)

    op.create_table('evaluation_criteria_results',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('eval_criterion_id', sa.Integer(), nullable=False),
        sa.Column('final_score', sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['eval_criterion_id'], ['evaluation_criteria.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_evaluation_criteria_results_id'), 'evaluation_criteria_results', ['id'], unique=False)
    op.create_index(op.f('ix_evaluation_criteria_results_eval_criterion_id'), 'evaluation_criteria_results', ['eval_criterion_id'], unique=True)

    op.create_table('evaluation_results',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('evaluation_id', sa.Integer(), nullable=False),
        sa.Column('evaluation_score', sa.Float(), nullable=False),
        sa.Column('conclusion', sa.Text(), nullable=True),
        sa.Column('score_level', sa.String(length=50), nullable=True),
        sa.Column('satisfaction_grade', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['evaluation_id'], ['evaluations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_evaluation_results_id'), 'evaluation_results', ['id'], unique=False)
    op.create_index(op.f('ix_evaluation_results_evaluation_id'), 'evaluation_results', ['evaluation_id'], unique=True)

    op.create_table('project_results',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('final_project_score', sa.Float(), nullable=False),
        sa.Column('score_level', sa.String(length=50), nullable=True),
        sa.Column('satisfaction_grade', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_results_id'), 'project_results', ['id'], unique=False)
    op.create_index(op.f('ix_project_results_project_id'), 'project_results', ['project_id'], unique=True)

    op.create_table('project_analyses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('status', _enum('analysis_status'), nullable=False),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('content', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_analyses_id'), 'project_analyses', ['id'], unique=False)
    op.create_index(op.f('ix_project_analyses_project_id'), 'project_analyses', ['project_id'], unique=False)
    op.create_index(op.f('ix_project_analyses_status'), 'project_analyses', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema - Drop every table and ENUM type."""
    for table in (
        'project_analyses',
        'project_results',
        'evaluation_results',
        'evaluation_criteria_results',
        'evaluation_metric_results',
        'evaluation_variables',
        'evaluation_metrics',
        'evaluation_criteria',
        'evaluations',
        'projects',
        'formula_variables',
        'metrics',
        'sub_criteria',
        'criteria',
        'standards',
        'users',
        'roles',
    ):
        op.drop_table(table)

    conn = op.get_bind()
    for name in ENUMS:
        postgresql.ENUM(name=name).drop(conn, checkfirst=True)
