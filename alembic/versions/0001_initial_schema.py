"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REVIEW_STATES = ('APPROVED', 'CHANGES_REQUESTED', 'COMMENTED', 'DISMISSED', 'PENDING')


def upgrade() -> None:
    """Create repositories, issues, pull requests, reviews, comments, users, maintainers and watermarks."""
    op.create_table('repos',
        sa.Column('github_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('owner', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('private', sa.Boolean(), nullable=False),
        sa.Column('archived', sa.Boolean(), nullable=False),
        sa.Column('pushed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('github_id')
    )
    op.create_index('ix_repos_owner', 'repos', ['owner'])
    op.create_index('ix_repos_full_name', 'repos', ['full_name'])

    op.create_table('github_users',
        sa.Column('github_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('login', sa.String(length=100), nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('is_maintainer', sa.Boolean(), nullable=False),
        sa.Column('maintainer_sources', sa.JSON(), nullable=False),
        sa.Column('first_seen', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_seen', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('github_id')
    )
    op.create_index('ix_github_users_login', 'github_users', ['login'])

    op.create_table('issues',
        sa.Column('github_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('repo_github_id', sa.BigInteger(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=1024), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('state', sa.String(length=20), nullable=False),
        sa.Column('author_login', sa.String(length=100), nullable=True),
        sa.Column('labels', sa.JSON(), nullable=False),
        sa.Column('assignees', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('comments_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['repo_github_id'], ['repos.github_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('github_id'),
        sa.UniqueConstraint('repo_github_id', 'number', name='uq_issue_repo_number')
    )
    op.create_index('ix_issues_repo_github_id', 'issues', ['repo_github_id'])
    op.create_index('ix_issues_state', 'issues', ['state'])

    op.create_table('pull_requests',
        sa.Column('github_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('repo_github_id', sa.BigInteger(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=1024), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('state', sa.String(length=20), nullable=False),
        sa.Column('draft', sa.Boolean(), nullable=False),
        sa.Column('author_login', sa.String(length=100), nullable=True),
        sa.Column('labels', sa.JSON(), nullable=False),
        sa.Column('assignees', sa.JSON(), nullable=False),
        sa.Column('additions', sa.Integer(), nullable=True),
        sa.Column('deletions', sa.Integer(), nullable=True),
        sa.Column('changed_files', sa.Integer(), nullable=True),
        sa.Column('merged', sa.Boolean(), nullable=False),
        sa.Column('merged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('merge_commit_sha', sa.String(length=40), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['repo_github_id'], ['repos.github_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('github_id'),
        sa.UniqueConstraint('repo_github_id', 'number', name='uq_pr_repo_number')
    )
    op.create_index('ix_pull_requests_repo_github_id', 'pull_requests', ['repo_github_id'])
    op.create_index('ix_pull_requests_state', 'pull_requests', ['state'])

    op.create_table('pull_request_reviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pr_github_id', sa.BigInteger(), nullable=False),
        sa.Column('reviewer_login', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=30), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'state IN ({})'.format(', '.join(f"'{s}'" for s in REVIEW_STATES)),
            name='ck_review_state',
        ),
        sa.ForeignKeyConstraint(['pr_github_id'], ['pull_requests.github_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pull_request_reviews_pr_github_id', 'pull_request_reviews', ['pr_github_id'])

    op.create_table('issue_comments',
        sa.Column('comment_github_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('issue_github_id', sa.BigInteger(), nullable=False),
        sa.Column('author_login', sa.String(length=100), nullable=True),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['issue_github_id'], ['issues.github_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('comment_github_id')
    )
    op.create_index('ix_issue_comments_issue_github_id', 'issue_comments', ['issue_github_id'])

    op.create_table('repo_maintainers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('repo_github_id', sa.BigInteger(), nullable=False),
        sa.Column('github_user_id', sa.BigInteger(), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('sources', sa.JSON(), nullable=False),
        sa.Column('confidence', sa.Integer(), nullable=False),
        sa.Column('first_detected_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_confirmed_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('confidence BETWEEN 0 AND 100', name='ck_maintainer_confidence'),
        sa.ForeignKeyConstraint(['repo_github_id'], ['repos.github_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['github_user_id'], ['github_users.github_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('repo_github_id', 'github_user_id', name='uq_repo_maintainer')
    )
    op.create_index('ix_repo_maintainers_repo_github_id', 'repo_maintainers', ['repo_github_id'])
    op.create_index('ix_repo_maintainers_github_user_id', 'repo_maintainers', ['github_user_id'])

    op.create_table('sync_state',
        sa.Column('repo_github_id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('last_issue_sync', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_pr_sync', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_comment_sync', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['repo_github_id'], ['repos.github_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('repo_github_id')
    )


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    op.drop_table('sync_state')
    op.drop_index('ix_repo_maintainers_github_user_id', table_name='repo_maintainers')
    op.drop_index('ix_repo_maintainers_repo_github_id', table_name='repo_maintainers')
    op.drop_table('repo_maintainers')
    op.drop_index('ix_issue_comments_issue_github_id', table_name='issue_comments')
    op.drop_table('issue_comments')
    op.drop_index('ix_pull_request_reviews_pr_github_id', table_name='pull_request_reviews')
    op.drop_table('pull_request_reviews')
    op.drop_index('ix_pull_requests_state', table_name='pull_requests')
    op.drop_index('ix_pull_requests_repo_github_id', table_name='pull_requests')
    op.drop_table('pull_requests')
    op.drop_index('ix_issues_state', table_name='issues')
    op.drop_index('ix_issues_repo_github_id', table_name='issues')
    op.drop_table('issues')
    op.drop_index('ix_github_users_login', table_name='github_users')
    op.drop_table('github_users')
    op.drop_index('ix_repos_full_name', table_name='repos')
    op.drop_index('ix_repos_owner', table_name='repos')
    op.drop_table('repos')
