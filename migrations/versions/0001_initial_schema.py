"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', sa.UUID(), nullable=False)


def _created_updated():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def _actors():
    return [
        sa.Column('created_by', sa.UUID(), nullable=True),
        sa.Column('updated_by', sa.UUID(), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
    ]


def _jsonb():
    return postgresql.JSONB(astext_type=sa.Text())


def _address_columns():
    return [
        sa.Column('address_type', sa.String(length=20), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=10), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('contact_name', sa.String(length=200), nullable=True),
        sa.Column('contact_title', sa.String(length=100), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    ]


def _contact_columns():
    return [
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=True),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('mobile', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('fax', sa.String(length=30), nullable=True),
        sa.Column('role', sa.String(length=100), nullable=True),
        sa.Column('is_primary', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    ]


def _party_columns():
    """Columns shared by customers and suppliers."""
    return [
        sa.Column('workspace_id', sa.UUID(), nullable=False),
        sa.Column('company_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('full_name', sa.String(length=500), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('mobile', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('fax', sa.String(length=30), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=10), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('tax_office', sa.String(length=100), nullable=True),
        sa.Column('tax_number', sa.String(length=20), nullable=True),
        sa.Column('mersis_number', sa.String(length=20), nullable=True),
        sa.Column('trade_registry_number', sa.String(length=50), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('payment_terms', sa.Integer(), nullable=True),
        sa.Column('primary_contact_name', sa.String(length=200), nullable=True),
        sa.Column('primary_contact_title', sa.String(length=100), nullable=True),
        sa.Column('primary_contact_phone', sa.String(length=30), nullable=True),
        sa.Column('primary_contact_email', sa.String(length=255), nullable=True),
        sa.Column('tags', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', _jsonb(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
    ]


def upgrade() -> None:
    # 1. users (no FKs)
    op.create_table('users',
    _id(),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('password_hash', sa.String(length=255), nullable=True),
    sa.Column('first_name', sa.String(length=100), nullable=True),
    sa.Column('last_name', sa.String(length=100), nullable=True),
    sa.Column('phone', sa.String(length=30), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('is_superuser', sa.Boolean(), nullable=True),
    *_created_updated(),
    sa.Column('last_login_at', sa.DateTime(), nullable=True),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email', name='users_email_key')
    )
    op.create_index('idx_users_email', 'users', ['email'], unique=False)

    # 2. workspaces and members
    op.create_table('workspaces',
    _id(),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('slug', sa.String(length=100), nullable=False),
    sa.Column('settings', _jsonb(), nullable=True),
    sa.Column('owner_id', sa.UUID(), nullable=False),
    *_created_updated(),
    sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('slug', name='workspaces_slug_key')
    )
    op.create_index('idx_workspaces_owner', 'workspaces', ['owner_id'], unique=False)

    op.create_table('workspace_members',
    _id(),
    sa.Column('workspace_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('role', sa.String(length=20), nullable=True),
    sa.Column('invited_by', sa.UUID(), nullable=True),
    sa.Column('joined_at', sa.DateTime(), nullable=True),
    sa.CheckConstraint("role IN ('owner', 'admin', 'member', 'viewer')", name='ck_workspace_member_role'),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['invited_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('workspace_id', 'user_id', name='uq_workspace_member')
    )
    op.create_index('idx_workspace_members_user', 'workspace_members', ['user_id'], unique=False)

    # 3. companies and the workspace link
    op.create_table('companies',
    _id(),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('full_name', sa.String(length=500), nullable=True),
    sa.Column('logo_url', sa.Text(), nullable=True),
    sa.Column('company_type', sa.String(length=50), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=True),
    sa.Column('industry', sa.String(length=100), nullable=True),
    sa.Column('phone', sa.String(length=30), nullable=True),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('website', sa.String(length=255), nullable=True),
    sa.Column('address', sa.Text(), nullable=True),
    sa.Column('district', sa.String(length=100), nullable=True),
    sa.Column('city', sa.String(length=100), nullable=True),
    sa.Column('postal_code', sa.String(length=10), nullable=True),
    sa.Column('tax_office', sa.String(length=100), nullable=True),
    sa.Column('tax_number', sa.String(length=20), nullable=True),
    sa.Column('mersis_number', sa.String(length=20), nullable=True),
    sa.Column('default_currency', sa.String(length=3), nullable=True),
    sa.Column('parent_company_id', sa.UUID(), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('metadata', _jsonb(), nullable=True),
    *_actors(),
    *_created_updated(),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['parent_company_id'], ['companies.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_companies_status', 'companies', ['status'], unique=False)
    op.create_index('idx_companies_tax_number', 'companies', ['tax_number'], unique=False)

    op.create_table('workspace_companies',
    _id(),
    sa.Column('workspace_id', sa.UUID(), nullable=False),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('added_by', sa.UUID(), nullable=True),
    sa.Column('added_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['added_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('workspace_id', 'company_id', name='uq_workspace_company')
    )

    # 4. departments and units
    op.create_table('departments',
    _id(),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('parent_department_id', sa.UUID(), nullable=True),
    sa.Column('code', sa.String(length=20), nullable=True),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('responsibility_area', sa.Text(), nullable=True),
    sa.Column('goals', _jsonb(), nullable=True),
    sa.Column('manager_id', sa.UUID(), nullable=True),
    sa.Column('mail_address', sa.String(length=255), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    *_actors(),
    *_created_updated(),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['parent_department_id'], ['departments.id'], ),
    sa.ForeignKeyConstraint(['manager_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_departments_company', 'departments', ['company_id'], unique=False)
    op.create_index('idx_departments_parent', 'departments', ['parent_department_id'], unique=False)
    op.create_index(
        'uq_departments_company_name', 'departments', ['company_id', 'name'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )
    op.create_index(
        'uq_departments_company_code', 'departments', ['company_id', 'code'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table('units',
    _id(),
    sa.Column('department_id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('staff_count', sa.Integer(), nullable=True),
    sa.Column('lead_id', sa.UUID(), nullable=True),
    *_created_updated(),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.CheckConstraint('staff_count >= 0', name='ck_units_staff_count'),
    sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['lead_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_units_department', 'units', ['department_id'], unique=False)
    op.create_index(
        'uq_units_department_name', 'units', ['department_id', 'name'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )

    # 5. locations
    op.create_table('locations',
    _id(),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('code', sa.String(length=20), nullable=True),
    sa.Column('location_type', sa.String(length=50), nullable=True),
    sa.Column('phone', sa.String(length=30), nullable=True),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('address', sa.Text(), nullable=True),
    sa.Column('district', sa.String(length=100), nullable=True),
    sa.Column('city', sa.String(length=100), nullable=True),
    sa.Column('postal_code', sa.String(length=10), nullable=True),
    sa.Column('country', sa.String(length=100), nullable=True),
    sa.Column('is_headquarters', sa.Boolean(), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('metadata', _jsonb(), nullable=True),
    *_actors(),
    *_created_updated(),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_locations_company', 'locations', ['company_id'], unique=False)
    op.create_index(
        'uq_locations_company_name', 'locations', ['company_id', 'name'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )
    op.create_index(
        'uq_locations_company_code', 'locations', ['company_id', 'code'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )
    op.create_index(
        'uq_locations_company_headquarters', 'locations', ['company_id'],
        unique=True, postgresql_where=sa.text('is_headquarters AND deleted_at IS NULL'),
    )

    # 6. customers
    op.create_table('customers',
    _id(),
    *_party_columns(),
    sa.Column('customer_type', sa.String(length=20), nullable=True),
    sa.Column('priority', sa.String(length=10), nullable=True),
    sa.Column('credit_limit', sa.Numeric(precision=15, scale=2), nullable=True),
    sa.Column('discount_rate', sa.Numeric(precision=5, scale=2), nullable=True),
    sa.Column('parent_customer_id', sa.UUID(), nullable=True),
    sa.Column('customer_group', sa.String(length=100), nullable=True),
    sa.Column('internal_notes', sa.Text(), nullable=True),
    *_actors(),
    *_created_updated(),
    sa.CheckConstraint(
        'discount_rate IS NULL OR (discount_rate >= 0 AND discount_rate <= 100)',
        name='ck_customers_discount_rate',
    ),
    sa.CheckConstraint('credit_limit IS NULL OR credit_limit >= 0', name='ck_customers_credit_limit'),
    sa.ForeignKeyConstraint(['parent_customer_id'], ['customers.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_customers_workspace_company', 'customers', ['workspace_id', 'company_id'], unique=False)
    op.create_index('idx_customers_status', 'customers', ['status'], unique=False)
    op.create_index('idx_customers_created', 'customers', ['created_at'], unique=False)

    op.create_table('customer_addresses',
    _id(),
    sa.Column('customer_id', sa.UUID(), nullable=False),
    *_address_columns(),
    *_created_updated(),
    sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_customer_addresses_customer', 'customer_addresses', ['customer_id'], unique=False)

    op.create_table('customer_contacts',
    _id(),
    sa.Column('customer_id', sa.UUID(), nullable=False),
    *_contact_columns(),
    *_created_updated(),
    sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_customer_contacts_customer', 'customer_contacts', ['customer_id'], unique=False)

    op.create_table('customer_notes',
    _id(),
    sa.Column('customer_id', sa.UUID(), nullable=False),
    sa.Column('title', sa.String(length=200), nullable=True),
    sa.Column('content', sa.Text(), nullable=False),
    sa.Column('note_type', sa.String(length=20), nullable=True),
    sa.Column('is_internal', sa.Boolean(), nullable=True),
    sa.Column('priority', sa.String(length=10), nullable=True),
    sa.Column('related_contact_id', sa.UUID(), nullable=True),
    sa.Column('created_by', sa.UUID(), nullable=True),
    *_created_updated(),
    sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['related_contact_id'], ['customer_contacts.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_customer_notes_customer', 'customer_notes', ['customer_id'], unique=False)

    # 7. suppliers
    op.create_table('suppliers',
    _id(),
    *_party_columns(),
    sa.Column('supplier_code', sa.String(length=50), nullable=True),
    sa.Column('supplier_type', sa.String(length=20), nullable=True),
    sa.Column('lead_time_days', sa.Integer(), nullable=True),
    sa.Column('minimum_order_quantity', sa.Numeric(precision=15, scale=3), nullable=True),
    sa.Column('order_increment', sa.Numeric(precision=15, scale=3), nullable=True),
    sa.Column('quality_rating', sa.Numeric(precision=3, scale=2), nullable=True),
    sa.Column('delivery_rating', sa.Numeric(precision=3, scale=2), nullable=True),
    sa.Column('parent_supplier_id', sa.UUID(), nullable=True),
    *_actors(),
    *_created_updated(),
    sa.CheckConstraint(
        'quality_rating IS NULL OR (quality_rating >= 0 AND quality_rating <= 5)',
        name='ck_suppliers_quality_rating',
    ),
    sa.CheckConstraint(
        'delivery_rating IS NULL OR (delivery_rating >= 0 AND delivery_rating <= 5)',
        name='ck_suppliers_delivery_rating',
    ),
    sa.ForeignKeyConstraint(['parent_supplier_id'], ['suppliers.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_suppliers_workspace_company', 'suppliers', ['workspace_id', 'company_id'], unique=False)
    op.create_index('idx_suppliers_status', 'suppliers', ['status'], unique=False)
    op.create_index(
        'uq_suppliers_workspace_company_code', 'suppliers',
        ['workspace_id', 'company_id', 'supplier_code'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL AND supplier_code IS NOT NULL'),
    )

    op.create_table('supplier_addresses',
    _id(),
    sa.Column('supplier_id', sa.UUID(), nullable=False),
    *_address_columns(),
    *_created_updated(),
    sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_supplier_addresses_supplier', 'supplier_addresses', ['supplier_id'], unique=False)

    op.create_table('supplier_contacts',
    _id(),
    sa.Column('supplier_id', sa.UUID(), nullable=False),
    *_contact_columns(),
    *_created_updated(),
    sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_supplier_contacts_supplier', 'supplier_contacts', ['supplier_id'], unique=False)

    # 8. files
    op.create_table('file_templates',
    _id(),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('category', sa.String(length=100), nullable=True),
    sa.Column('tags', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('created_by', sa.UUID(), nullable=True),
    *_created_updated(),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_file_templates_company', 'file_templates', ['company_id'], unique=False)

    op.create_table('file_versions',
    _id(),
    sa.Column('template_id', sa.UUID(), nullable=False),
    sa.Column('version', sa.String(length=20), nullable=False),
    sa.Column('blob_url', sa.Text(), nullable=False),
    sa.Column('blob_path', sa.Text(), nullable=True),
    sa.Column('content_type', sa.String(length=100), nullable=True),
    sa.Column('size', sa.BigInteger(), nullable=True),
    sa.Column('is_current', sa.Boolean(), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('created_by', sa.UUID(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['template_id'], ['file_templates.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('template_id', 'version', name='uq_file_versions_template_version')
    )
    op.create_index('idx_file_versions_template', 'file_versions', ['template_id'], unique=False)

    op.create_table('file_attachments',
    _id(),
    sa.Column('version_id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('blob_url', sa.Text(), nullable=False),
    sa.Column('blob_path', sa.Text(), nullable=True),
    sa.Column('content_type', sa.String(length=100), nullable=True),
    sa.Column('size', sa.BigInteger(), nullable=True),
    sa.Column('created_by', sa.UUID(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['version_id'], ['file_versions.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_file_attachments_version', 'file_attachments', ['version_id'], unique=False)

    # 9. settings
    op.create_table('workspace_settings',
    _id(),
    sa.Column('workspace_id', sa.UUID(), nullable=False),
    sa.Column('timezone', sa.String(length=50), nullable=True),
    sa.Column('currency', sa.String(length=3), nullable=True),
    sa.Column('language', sa.String(length=5), nullable=True),
    sa.Column('date_format', sa.String(length=20), nullable=True),
    sa.Column('working_hours_start', sa.String(length=5), nullable=True),
    sa.Column('working_hours_end', sa.String(length=5), nullable=True),
    sa.Column('working_days', _jsonb(), nullable=True),
    sa.Column('public_holidays', _jsonb(), nullable=True),
    sa.Column('custom_settings', _jsonb(), nullable=True),
    sa.Column('updated_by', sa.UUID(), nullable=True),
    *_created_updated(),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('workspace_id')
    )

    op.create_table('company_settings',
    _id(),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('fiscal_year_start', sa.String(length=5), nullable=True),
    sa.Column('tax_rate', sa.String(length=10), nullable=True),
    sa.Column('invoice_prefix', sa.String(length=20), nullable=True),
    sa.Column('invoice_numbering', sa.String(length=20), nullable=True),
    sa.Column('working_hours_start', sa.String(length=5), nullable=True),
    sa.Column('working_hours_end', sa.String(length=5), nullable=True),
    sa.Column('working_days', _jsonb(), nullable=True),
    sa.Column('public_holidays', _jsonb(), nullable=True),
    sa.Column('custom_settings', _jsonb(), nullable=True),
    sa.Column('updated_by', sa.UUID(), nullable=True),
    *_created_updated(),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('company_id')
    )

    # 10. system catalog
    op.create_table('modules',
    _id(),
    sa.Column('code', sa.String(length=50), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('display_name', sa.String(length=200), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('category', sa.String(length=50), nullable=True),
    sa.Column('icon', sa.String(length=50), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('sort_order', sa.Integer(), nullable=True),
    *_created_updated(),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('code')
    )

    op.create_table('company_modules',
    _id(),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('module_id', sa.UUID(), nullable=False),
    sa.Column('is_enabled', sa.Boolean(), nullable=True),
    sa.Column('updated_by', sa.UUID(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('company_id', 'module_id', name='uq_company_module')
    )

    op.create_table('module_resources',
    _id(),
    sa.Column('module_id', sa.UUID(), nullable=False),
    sa.Column('code', sa.String(length=100), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('display_name', sa.String(length=200), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('resource_type', sa.String(length=20), nullable=True),
    sa.Column('path', sa.String(length=255), nullable=True),
    sa.Column('parent_resource_id', sa.UUID(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('sort_order', sa.Integer(), nullable=True),
    *_created_updated(),
    sa.CheckConstraint(
        "resource_type IN ('page', 'api', 'feature', 'report', 'action', 'widget', 'submodule')",
        name='ck_module_resources_type',
    ),
    sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['parent_resource_id'], ['module_resources.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('module_id', 'code', name='uq_module_resources_module_code')
    )
    op.create_index('idx_module_resources_module', 'module_resources', ['module_id'], unique=False)

    op.create_table('module_permissions',
    _id(),
    sa.Column('resource_id', sa.UUID(), nullable=False),
    sa.Column('action', sa.String(length=20), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.CheckConstraint(
        "action IN ('view', 'edit', 'approve', 'manage')",
        name='ck_module_permissions_action',
    ),
    sa.ForeignKeyConstraint(['resource_id'], ['module_resources.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('resource_id', 'action', name='uq_module_permissions_resource_action')
    )

    op.create_table('roles',
    _id(),
    sa.Column('code', sa.String(length=50), nullable=False),
    sa.Column('name', sa.String(length=100), nullable=False),
    sa.Column('display_name', sa.String(length=200), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('workspace_id', sa.UUID(), nullable=True),
    sa.Column('company_id', sa.UUID(), nullable=True),
    sa.Column('is_system', sa.Boolean(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    sa.Column('sort_order', sa.Integer(), nullable=True),
    *_created_updated(),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint(
        'code', 'workspace_id', 'company_id',
        name='uq_roles_scope_code',
        postgresql_nulls_not_distinct=True,
    )
    )
    op.create_index('idx_roles_workspace', 'roles', ['workspace_id'], unique=False)
    op.create_index('idx_roles_company', 'roles', ['company_id'], unique=False)

    op.create_table('role_permissions',
    _id(),
    sa.Column('role_id', sa.UUID(), nullable=False),
    sa.Column('permission_id', sa.UUID(), nullable=False),
    sa.Column('workspace_id', sa.UUID(), nullable=True),
    sa.Column('company_id', sa.UUID(), nullable=True),
    sa.Column('is_granted', sa.Boolean(), nullable=True),
    sa.Column('expires_at', sa.DateTime(), nullable=True),
    sa.Column('granted_by', sa.UUID(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.CheckConstraint(
        'NOT (workspace_id IS NOT NULL AND company_id IS NOT NULL)',
        name='ck_role_permissions_single_scope',
    ),
    sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['permission_id'], ['module_permissions.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['granted_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint(
        'role_id', 'permission_id', 'workspace_id', 'company_id',
        name='uq_role_permissions_scope',
        postgresql_nulls_not_distinct=True,
    )
    )
    op.create_index('idx_role_permissions_role', 'role_permissions', ['role_id'], unique=False)

    # 11. employees and attendance
    op.create_table('employee_profiles',
    _id(),
    sa.Column('workspace_id', sa.UUID(), nullable=False),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('employee_number', sa.String(length=50), nullable=True),
    sa.Column('position', sa.String(length=100), nullable=True),
    sa.Column('department_id', sa.UUID(), nullable=True),
    sa.Column('manager_id', sa.UUID(), nullable=True),
    sa.Column('employment_type', sa.String(length=20), nullable=True),
    sa.Column('start_date', sa.Date(), nullable=True),
    sa.Column('end_date', sa.Date(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=True),
    *_created_updated(),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['manager_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('company_id', 'user_id', name='uq_employee_profiles_company_user')
    )
    op.create_index('idx_employee_profiles_manager', 'employee_profiles', ['manager_id'], unique=False)

    op.create_table('attendance_records',
    _id(),
    sa.Column('company_id', sa.UUID(), nullable=False),
    sa.Column('employee_id', sa.UUID(), nullable=False),
    sa.Column('work_date', sa.Date(), nullable=False),
    sa.Column('shift_start', sa.String(length=5), nullable=True),
    sa.Column('shift_end', sa.String(length=5), nullable=True),
    sa.Column('check_in', sa.String(length=5), nullable=True),
    sa.Column('check_out', sa.String(length=5), nullable=True),
    sa.Column('check_in_source', sa.String(length=10), nullable=True),
    sa.Column('check_out_source', sa.String(length=10), nullable=True),
    sa.Column('location_shared', sa.Boolean(), nullable=True),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('approval_status', sa.String(length=10), nullable=True),
    sa.Column('approved_by', sa.UUID(), nullable=True),
    sa.Column('approved_at', sa.DateTime(), nullable=True),
    sa.Column('updated_by', sa.UUID(), nullable=True),
    *_created_updated(),
    sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['employee_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ),
    sa.ForeignKeyConstraint(['updated_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint(
        'company_id', 'employee_id', 'work_date',
        name='uq_attendance_company_employee_date',
    )
    )
    op.create_index('idx_attendance_company_date', 'attendance_records', ['company_id', 'work_date'], unique=False)

    # 12. audit logs
    op.create_table('audit_logs',
    _id(),
    sa.Column('workspace_id', sa.UUID(), nullable=False),
    sa.Column('company_id', sa.UUID(), nullable=True),
    sa.Column('actor_id', sa.UUID(), nullable=True),
    sa.Column('actor_email', sa.String(length=255), nullable=True),
    sa.Column('action', sa.String(length=50), nullable=False),
    sa.Column('entity_type', sa.String(length=50), nullable=False),
    sa.Column('entity_id', sa.UUID(), nullable=False),
    sa.Column('before_state', _jsonb(), nullable=True),
    sa.Column('after_state', _jsonb(), nullable=True),
    sa.Column('changed_fields', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_audit_workspace', 'audit_logs', ['workspace_id'], unique=False)
    op.create_index('idx_audit_entity', 'audit_logs', ['entity_type', 'entity_id'], unique=False)
    op.create_index('idx_audit_actor', 'audit_logs', ['actor_id'], unique=False)
    op.create_index('idx_audit_created', 'audit_logs', [sa.text('created_at DESC')], unique=False)


def downgrade() -> None:
    for table in (
        'audit_logs',
        'attendance_records',
        'employee_profiles',
        'role_permissions',
        'roles',
        'module_permissions',
        'module_resources',
        'company_modules',
        'modules',
        'company_settings',
        'workspace_settings',
        'file_attachments',
        'file_versions',
        'file_templates',
        'supplier_contacts',
        'supplier_addresses',
        'suppliers',
        'customer_notes',
        'customer_contacts',
        'customer_addresses',
        'customers',
        'locations',
        'units',
        'departments',
        'workspace_companies',
        'companies',
        'workspace_members',
        'workspaces',
        'users',
    ):
        op.drop_table(table)
