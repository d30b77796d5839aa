"""Stock movement posting"""
import logging
from decimal import Decimal

from django.db import transaction

from textile_erp.core.exceptions import ServiceError
from .models import InventoryItem, StockMovement

logger = logging.getLogger(__name__)


def post_stock_movement(item, movement_type, quantity, user=None, to_warehouse=None,
                        reference='', notes=''):
    """
    Apply a movement to an item's balance and record it.

    in adds, out subtracts, adjustment adds the signed quantity and transfer
    relocates the item. The balance never goes negative.
    """
    quantity = Decimal(str(quantity))
    if movement_type in ('in', 'out') and quantity <= 0:
        raise ServiceError('Quantity must be greater than zero.', error='validation_error')
    if movement_type == 'adjustment' and quantity == 0:
        raise ServiceError('Adjustment quantity cannot be zero.', error='validation_error')

    with transaction.atomic():
        item = InventoryItem.objects.select_for_update().get(pk=item.pk)
        stock_before = item.current_stock
        from_warehouse = item.warehouse

        if movement_type == 'in':
            item.current_stock = stock_before + quantity
        elif movement_type == 'out':
            item.current_stock = stock_before - quantity
        elif movement_type == 'adjustment':
            item.current_stock = stock_before + quantity
        elif movement_type == 'transfer':
            if to_warehouse is None:
                raise ServiceError('Transfer needs a destination warehouse.', error='validation_error')
            if to_warehouse.company_id != item.company_id:
                raise ServiceError('Warehouse not found.', error='not_found', status_code=404)
            if item.warehouse_id == to_warehouse.pk:
                raise ServiceError('Item is already in that warehouse.', error='validation_error')
            item.warehouse = to_warehouse
            quantity = stock_before
        else:
            raise ServiceError(f"Unknown movement type '{movement_type}'.", error='validation_error')

        if item.current_stock < 0:
            logger.warning(f"Stock movement refused for {item.item_code}: {stock_before} available, {movement_type} {quantity}")
            raise ServiceError(
                f"Insufficient stock for {item.item_code}: available {stock_before}, requested {abs(quantity)}.",
                error='insufficient_stock',
            )

        item.save(update_fields=['current_stock', 'warehouse', 'updated_at'])
        movement = StockMovement.objects.create(
            company=item.company,
            item=item,
            movement_type=movement_type,
            quantity=quantity,
            from_warehouse=from_warehouse,
            to_warehouse=to_warehouse if movement_type == 'transfer' else None,
            reference=reference or '',
            notes=notes or '',
            stock_before=stock_before,
            stock_after=item.current_stock,
            created_by=user,
        )

    logger.info(f"Stock {movement_type} {quantity} for {item.item_code}: {stock_before} -> {item.current_stock}")
    return movement
