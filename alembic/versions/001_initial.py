"""Migration initiale - Création des tables Local Deals Togo

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CATEGORIES = (
    'Électronique', 'Mode & Vêtements', 'Maison & Jardin', 'Véhicules',
    'Services', 'Loisirs & Sports', 'Immobilier', 'Autre',
)


def upgrade() -> None:
    # Table users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('role', sa.Enum('acheteur', 'vendeur', 'admin', name='userrole', native_enum=False), nullable=False),
        sa.Column('nom', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('telephone', sa.String(length=30), server_default='', nullable=False),
        sa.Column('localisation', sa.String(length=140), server_default='', nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('avatar_public_id', sa.String(length=255), nullable=True),
        sa.Column('is_banned', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('ban_type', sa.Enum('temporary', 'permanent', name='bantype', native_enum=False), nullable=True),
        sa.Column('ban_reason', sa.Text(), nullable=True),
        sa.Column('ban_expiry', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('idx_user_role', 'users', ['role'])
    op.create_index('idx_user_banned', 'users', ['is_banned'])

    # Table demandes
    op.create_table(
        'demandes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('acheteur_id', sa.Integer(), nullable=False),
        sa.Column('titre', sa.String(length=140), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('budget', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('categorie', sa.Enum(*CATEGORIES, name='demandecategorie', native_enum=False), nullable=False),
        sa.Column('localisation', sa.String(length=140), nullable=False),
        sa.Column('badge', sa.Enum('new', 'urgent', 'top', 'sponsored', name='demandebadge', native_enum=False), nullable=True),
        sa.Column('status', sa.Enum('active', 'closed', 'deleted', name='demandestatus', native_enum=False), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['acheteur_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('budget >= 0', name='positive_budget'),
    )
    op.create_index('ix_demandes_id', 'demandes', ['id'])
    op.create_index('idx_demande_acheteur', 'demandes', ['acheteur_id'])
    op.create_index('idx_demande_categorie', 'demandes', ['categorie'])
    op.create_index('idx_demande_status_date', 'demandes', ['status', 'created_at'])

    # Table reponses
    op.create_table(
        'reponses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('demande_id', sa.Integer(), nullable=False),
        sa.Column('vendeur_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['demande_id'], ['demandes.id']),
        sa.ForeignKeyConstraint(['vendeur_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('demande_id', 'vendeur_id', name='uq_reponse_demande_vendeur'),
    )
    op.create_index('ix_reponses_id', 'reponses', ['id'])
    op.create_index('idx_reponse_vendeur', 'reponses', ['vendeur_id'])
    op.create_index('idx_reponse_date', 'reponses', ['created_at'])

    # Table messages
    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('conversation_id', sa.String(length=100), nullable=False),
        sa.Column('demande_id', sa.Integer(), nullable=False),
        sa.Column('demande_titre', sa.String(length=140), server_default='', nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('receiver_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), server_default='', nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['demande_id'], ['demandes.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.ForeignKeyConstraint(['receiver_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('idx_message_conversation', 'messages', ['conversation_id', 'created_at'])
    op.create_index('idx_message_sender_date', 'messages', ['sender_id', 'created_at'])
    op.create_index('idx_message_receiver_date', 'messages', ['receiver_id', 'created_at'])
    op.create_index('idx_message_demande', 'messages', ['demande_id'])

    # Table notifications
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.Enum('message', 'reponse', 'nouvelle_demande', 'admin', 'ban', name='notificationtype', native_enum=False), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('conversation_id', sa.String(length=100), nullable=True),
        sa.Column('message_id', sa.Integer(), nullable=True),
        sa.Column('demande_id', sa.Integer(), nullable=True),
        sa.Column('reponse_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('idx_notification_user_date', 'notifications', ['user_id', 'created_at'])
    op.create_index('idx_notification_user_unread', 'notifications', ['user_id', 'read'])
    op.create_index('idx_notification_conversation', 'notifications', ['conversation_id'])
    op.create_index('idx_notification_message', 'notifications', ['message_id'])
    op.create_index('idx_notification_demande', 'notifications', ['user_id', 'type', 'demande_id'])
    op.create_index('idx_notification_reponse', 'notifications', ['reponse_id'])

    # Table admin_actions
    op.create_table(
        'admin_actions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('target_user_id', sa.Integer(), nullable=True),
        sa.Column('target_demande_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_actions_id', 'admin_actions', ['id'])
    op.create_index('idx_admin_action_admin', 'admin_actions', ['admin_id'])
    op.create_index('idx_admin_action_date', 'admin_actions', ['created_at'])


def downgrade() -> None:
    # Supprimer les tables dans l'ordre inverse
    op.drop_table('admin_actions')
    op.drop_table('notifications')
    op.drop_table('messages')
    op.drop_table('reponses')
    op.drop_table('demandes')
    op.drop_table('users')
