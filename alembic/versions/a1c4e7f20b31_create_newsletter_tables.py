"""create newsletter article tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2025-11-17 09:12:40.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7f20b31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'newsletter_weeks',
        sa.Column('week_number', sa.String(length=10), primary_key=True),
        sa.Column('release_date', sa.Date(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'classes',
        sa.Column('id', sa.String(length=10), primary_key=True),
        sa.Column('class_name', sa.Text(), nullable=False),
        sa.Column('class_grade_year', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('class_grade_year BETWEEN 1 AND 12', name='ck_classes_grade_year'),
    )
    op.create_index('ix_classes_class_grade_year', 'classes', ['class_grade_year'])

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "role IN ('admin', 'editor', 'teacher', 'parent', 'student')",
            name='ck_user_roles_role',
        ),
    )

    op.create_table(
        'teacher_class_assignment',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('user_roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('class_id', sa.String(length=10), sa.ForeignKey('classes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('teacher_id', 'class_id', name='uq_teacher_per_class'),
    )
    op.create_index('ix_teacher_class_assignment_teacher_id', 'teacher_class_assignment', ['teacher_id'])

    op.create_table(
        'families',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('family_code', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_families_family_code', 'families', ['family_code'], unique=True)

    op.create_table(
        'family_enrollment',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('user_roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('relationship', sa.String(length=20), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('family_id', 'parent_id', name='uq_parent_per_family'),
        sa.CheckConstraint(
            "relationship IN ('father', 'mother', 'guardian')",
            name='ck_family_enrollment_relationship',
        ),
    )
    op.create_index('ix_family_enrollment_family_id', 'family_enrollment', ['family_id'])

    op.create_table(
        'child_class_enrollment',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('child_id', sa.Uuid(), sa.ForeignKey('user_roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False),
        sa.Column('class_id', sa.String(length=10), sa.ForeignKey('classes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('graduated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'graduated_at IS NULL OR enrolled_at <= graduated_at',
            name='ck_child_enrollment_dates',
        ),
    )
    op.create_index(
        'uq_child_class_active',
        'child_class_enrollment',
        ['child_id', 'class_id'],
        unique=True,
        postgresql_where=sa.text('graduated_at IS NULL'),
    )
    op.create_index('idx_child_enrollment_family_active', 'child_class_enrollment', ['family_id', 'graduated_at'])

    op.create_table(
        'articles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('short_id', sa.String(length=10), nullable=False, unique=True),
        sa.Column(
            'week_number',
            sa.String(length=10),
            sa.ForeignKey('newsletter_weeks.week_number', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author', sa.String(length=100), nullable=True),
        sa.Column('article_order', sa.Integer(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('visibility_type', sa.String(length=20), nullable=False, server_default='public'),
        sa.Column('restricted_to_classes', postgresql.JSONB(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('updated_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "visibility_type IN ('public', 'class_restricted')",
            name='ck_articles_visibility_type',
        ),
        sa.CheckConstraint('article_order >= 1', name='ck_articles_order_positive'),
    )
    op.create_index(
        'uq_articles_week_order',
        'articles',
        ['week_number', 'article_order'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
    )
    op.create_index(
        'idx_articles_week_published',
        'articles',
        ['week_number', 'is_published', 'deleted_at', 'visibility_type'],
    )
    op.create_index('ix_articles_created_by', 'articles', ['created_by'])

    op.create_table(
        'article_revisions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('article_id', sa.Uuid(), nullable=False),
        sa.Column('operation', sa.String(length=20), nullable=False),
        sa.Column('old_values', postgresql.JSONB(), nullable=True),
        sa.Column('new_values', postgresql.JSONB(), nullable=True),
        sa.Column('changed_by', sa.Uuid(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "operation IN ('create', 'update', 'delete')",
            name='ck_article_revisions_operation',
        ),
    )
    op.create_index('idx_article_revisions_article_date', 'article_revisions', ['article_id', 'changed_at'])


def downgrade() -> None:
    op.drop_index('idx_article_revisions_article_date', table_name='article_revisions')
    op.drop_table('article_revisions')

    op.drop_index('ix_articles_created_by', table_name='articles')
    op.drop_index('idx_articles_week_published', table_name='articles')
    op.drop_index('uq_articles_week_order', table_name='articles')
    op.drop_table('articles')

    op.drop_index('idx_child_enrollment_family_active', table_name='child_class_enrollment')
    op.drop_index('uq_child_class_active', table_name='child_class_enrollment')
    op.drop_table('child_class_enrollment')

    op.drop_index('ix_family_enrollment_family_id', table_name='family_enrollment')
    op.drop_table('family_enrollment')

    op.drop_index('ix_families_family_code', table_name='families')
    op.drop_table('families')

    op.drop_index('ix_teacher_class_assignment_teacher_id', table_name='teacher_class_assignment')
    op.drop_table('teacher_class_assignment')

    op.drop_table('user_roles')

    op.drop_index('ix_classes_class_grade_year', table_name='classes')
    op.drop_table('classes')

    op.drop_table('newsletter_weeks')
