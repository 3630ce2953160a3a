"""Initial schema: catalog, pricing, orders, operator stock, bincard, costs

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration creates:
1. Unit categories, UOMs, items, item bases, services, non-stock services
2. Pricing rows
3. Customers and sales partners
4. Orders, order items (LENS/AREA lines), item notes
5. Payment terms/transactions and commissions/transactions
6. Operator stock and the bincard ledger
7. Fixed costs and lab tools
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. CATALOG
    # ==========================================================================
    op.create_table('unit_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('constant', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table('uoms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unit_category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('abbreviation', sa.String(length=16), nullable=False),
        sa.Column('conversion_rate', sa.Float(), nullable=False, server_default='1'),
        sa.Column('base_unit', sa.Boolean(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['unit_category_id'], ['unit_categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'abbreviation', 'unit_category_id', name='uq_uoms_name_abbr_category'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('uoms', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_uoms_unit_category_id'), ['unit_category_id'], unique=False)

    op.create_table('items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_code', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_category_id', sa.Integer(), nullable=False),
        sa.Column('default_uom_id', sa.Integer(), nullable=True),
        sa.Column('purchase_uom_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False, server_default='0'),
        sa.Column('reorder_level', sa.Float(), nullable=False, server_default='0'),
        sa.Column('lens_material', sa.String(length=64), nullable=True),
        sa.Column('lens_index', sa.String(length=16), nullable=True),
        sa.Column('lens_type', sa.String(length=64), nullable=True),
        sa.Column('can_be_sold', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('can_be_purchased', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['unit_category_id'], ['unit_categories.id'], ),
        sa.ForeignKeyConstraint(['default_uom_id'], ['uoms.id'], ),
        sa.ForeignKeyConstraint(['purchase_uom_id'], ['uoms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_code'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_items_unit_category_id'), ['unit_category_id'], unique=False)

    op.create_table('item_bases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('base_code', sa.String(length=32), nullable=False),
        sa.Column('add_power', sa.String(length=16), nullable=False, server_default=''),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id', 'base_code', 'add_power', name='uq_item_bases_item_code_add'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('item_bases', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_item_bases_item_id'), ['item_id'], unique=False)

    for table in ('services', 'non_stock_services'):
        op.create_table(table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('name'),
            sqlite_autoincrement=True
        )

    # ==========================================================================
    # 2. PRICING
    # ==========================================================================
    op.create_table('pricing',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('item_base_id', sa.Integer(), nullable=True),
        sa.Column('service_id', sa.Integer(), nullable=True),
        sa.Column('non_stock_service_id', sa.Integer(), nullable=True),
        sa.Column('is_non_stock_service', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('selling_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('cost_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('base_uom_id', sa.Integer(), nullable=True),
        sa.Column('constant', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('width', sa.Float(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['item_base_id'], ['item_bases.id'], ),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ),
        sa.ForeignKeyConstraint(['non_stock_service_id'], ['non_stock_services.id'], ),
        sa.ForeignKeyConstraint(['base_uom_id'], ['uoms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('pricing', schema=None) as batch_op:
        batch_op.create_index('ix_pricing_item_base', ['item_id', 'item_base_id'], unique=False)
        batch_op.create_index('ix_pricing_item_service', ['item_id', 'service_id'], unique=False)
        batch_op.create_index('ix_pricing_item_nss', ['item_id', 'non_stock_service_id'], unique=False)

    # ==========================================================================
    # 3. PARTIES
    # ==========================================================================
    op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('customers', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_customers_phone'), ['phone'], unique=False)

    op.create_table('sales_partners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 4. ORDERS & LINES
    # ==========================================================================
    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('series', sa.String(length=64), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Pending'),
        sa.Column('order_source', sa.String(length=64), nullable=True),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('tax', sa.Float(), nullable=False, server_default='0'),
        sa.Column('grand_total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_quantity', sa.Float(), nullable=False, server_default='0'),
        sa.Column('internal_note', sa.Text(), nullable=True),
        sa.Column('file_names', sa.JSON(), nullable=False),
        sa.Column('admin_approval', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('sales_partner_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.ForeignKeyConstraint(['sales_partner_id'], ['sales_partners.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index('ix_orders_order_date', ['order_date'], unique=False)
        batch_op.create_index('ix_orders_customer', ['customer_id'], unique=False)

    op.create_table('order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('item_base_id', sa.Integer(), nullable=True),
        sa.Column('service_id', sa.Integer(), nullable=True),
        sa.Column('non_stock_service_id', sa.Integer(), nullable=True),
        sa.Column('is_non_stock_service', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('line_kind', sa.String(length=8), nullable=False, server_default='LENS'),
        sa.Column('pricing_id', sa.Integer(), nullable=True),
        sa.Column('uom_id', sa.Integer(), nullable=False),
        sa.Column('base_uom_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False, server_default='0'),
        sa.Column('unit', sa.Float(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('sales', sa.Float(), nullable=False, server_default='0'),
        sa.Column('discount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_discounted', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=True),
        sa.Column('admin_approval', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Received'),
        # LENS payload
        sa.Column('sphere_right', sa.Float(), nullable=True),
        sa.Column('sphere_left', sa.Float(), nullable=True),
        sa.Column('cylinder_right', sa.Float(), nullable=True),
        sa.Column('cylinder_left', sa.Float(), nullable=True),
        sa.Column('axis_right', sa.Integer(), nullable=True),
        sa.Column('axis_left', sa.Integer(), nullable=True),
        sa.Column('prism_right', sa.Float(), nullable=True),
        sa.Column('prism_left', sa.Float(), nullable=True),
        sa.Column('add_right', sa.Float(), nullable=True),
        sa.Column('add_left', sa.Float(), nullable=True),
        sa.Column('pd', sa.Float(), nullable=True),
        sa.Column('pd_monocular_right', sa.Float(), nullable=True),
        sa.Column('pd_monocular_left', sa.Float(), nullable=True),
        sa.Column('lens_type', sa.String(length=64), nullable=True),
        sa.Column('lens_material', sa.String(length=64), nullable=True),
        sa.Column('lens_coating', sa.String(length=64), nullable=True),
        sa.Column('lens_index', sa.String(length=16), nullable=True),
        sa.Column('base_curve', sa.Float(), nullable=True),
        sa.Column('diameter', sa.Float(), nullable=True),
        sa.Column('tint_color', sa.String(length=64), nullable=True),
        # AREA payload
        sa.Column('width', sa.Float(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("line_kind IN ('LENS','AREA')", name='ck_order_items_line_kind'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['item_base_id'], ['item_bases.id'], ),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ),
        sa.ForeignKeyConstraint(['non_stock_service_id'], ['non_stock_services.id'], ),
        sa.ForeignKeyConstraint(['pricing_id'], ['pricing.id'], ),
        sa.ForeignKeyConstraint(['uom_id'], ['uoms.id'], ),
        sa.ForeignKeyConstraint(['base_uom_id'], ['uoms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_items', schema=None) as batch_op:
        batch_op.create_index('ix_order_items_order', ['order_id'], unique=False)
        batch_op.create_index('ix_order_items_item_status', ['item_id', 'status'], unique=False)

    op.create_table('order_item_notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_item_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('author_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_item_id'], ['order_items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_item_notes', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_item_notes_order_item_id'), ['order_item_id'], unique=False)

    # ==========================================================================
    # 5. PAYMENTS & COMMISSIONS
    # ==========================================================================
    op.create_table('payment_terms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('remaining_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Not Paid'),
        sa.Column('force_payment', sa.Boolean(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
        sqlite_autoincrement=True
    )

    op.create_table('payment_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('payment_term_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['payment_term_id'], ['payment_terms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('payment_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payment_transactions_payment_term_id'), ['payment_term_id'], unique=False)

    op.create_table('commissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('sales_partner_id', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Float(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['sales_partner_id'], ['sales_partners.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('commissions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_commissions_sales_partner_id'), ['sales_partner_id'], unique=False)

    op.create_table('commission_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('commission_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('reference', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['commission_id'], ['commissions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('commission_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_commission_transactions_commission_id'), ['commission_id'], unique=False)

    # ==========================================================================
    # 6. OPERATOR STOCK & BINCARD
    # ==========================================================================
    op.create_table('operator_stock',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('uom_id', sa.Integer(), nullable=False),
        sa.Column('base_uom_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False, server_default='0'),
        sa.Column('unit', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Available'),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity >= 0', name='ck_operator_stock_quantity_non_negative'),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['uom_id'], ['uoms.id'], ),
        sa.ForeignKeyConstraint(['base_uom_id'], ['uoms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id'),
        sqlite_autoincrement=True
    )

    op.create_table('bincard',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('movement_type', sa.String(length=8), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('balance_after', sa.Float(), nullable=False),
        sa.Column('reference_type', sa.String(length=16), nullable=False),
        sa.Column('reference_id', sa.String(length=64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('uom_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("movement_type IN ('IN','OUT')", name='ck_bincard_movement_type'),
        sa.CheckConstraint(
            "reference_type IN ('OPENING','ORDER','SALE','PURCHASE','ADJUSTMENT')",
            name='ck_bincard_reference_type',
        ),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['uom_id'], ['uoms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('bincard', schema=None) as batch_op:
        batch_op.create_index('ix_bincard_item_created', ['item_id', 'created_at'], unique=False)

    # ==========================================================================
    # 7. FIXED COSTS & LAB TOOLS
    # ==========================================================================
    op.create_table('fixed_costs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('monthly_fixed_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('daily_fixed_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('description'),
        sqlite_autoincrement=True
    )

    op.create_table('lab_tools',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=True),
        sa.Column('base_curve_min', sa.Float(), nullable=False),
        sa.Column('base_curve_max', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('lab_tools', schema=None) as batch_op:
        batch_op.create_index('ix_lab_tools_range', ['base_curve_min', 'base_curve_max'], unique=False)


def downgrade():
    for table in (
        'lab_tools', 'fixed_costs',
        'bincard', 'operator_stock',
        'commission_transactions', 'commissions',
        'payment_transactions', 'payment_terms',
        'order_item_notes', 'order_items', 'orders',
        'sales_partners', 'customers',
        'pricing', 'non_stock_services', 'services',
        'item_bases', 'items', 'uoms', 'unit_categories',
    ):
        op.drop_table(table)
