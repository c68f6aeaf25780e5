# storefront/services/order.py

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from storefront.models.order import Order as OrderModel
from storefront.services.sequence import MAX_ATTEMPTS, next_identifier
from storefront.utils.errors import ConflictError, NotFoundError
from storefront.utils.log import Log


async def read_orders(db: AsyncSession, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> list[OrderModel]:
    """
    Список заказов, новые первыми; опционально фильтр по статусу.
    """
    query = select(OrderModel)
    if status:
        query = query.where(OrderModel.status == status)
    query = query.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).offset(skip).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def find_order(db: AsyncSession, order_id: str) -> Optional[OrderModel]:
    result = await db.execute(select(OrderModel).where(OrderModel.order_id == order_id))
    return result.scalar_one_or_none()


async def read_order(db: AsyncSession, order_id: str) -> OrderModel:
    """
    Чтение заказа по orderId (ORD-###).
    """
    db_order = await find_order(db, order_id)
    if db_order is None:
        raise NotFoundError("Заказ не найден", {"orderId": order_id})
    return db_order


async def find_order_by_intent(db: AsyncSession, payment_intent_id: str) -> Optional[OrderModel]:
    result = await db.execute(
        select(OrderModel).where(OrderModel.payment_intent_id == payment_intent_id)
    )
    return result.scalar_one_or_none()


async def insert_order(db: AsyncSession, log: Log, **fields) -> tuple[OrderModel, bool]:
    """
    Сохраняет новый заказ под свежим номером ORD-###.

    Возвращает (заказ, created). Если заказ с тем же payment_intent_id уже
    сохранён параллельным запросом, возвращается он и created=False.
    При коллизии номера берётся следующий, не более MAX_ATTEMPTS раз.
    """
    payment_intent_id = fields.get("payment_intent_id")
    now = datetime.now(timezone.utc)

    for attempt in range(1, MAX_ATTEMPTS + 1):
        order_id = await next_identifier(db, "order")
        db_order = OrderModel(order_id=order_id, created_at=now, updated_at=now, **fields)
        db.add(db_order)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if payment_intent_id:
                existing = await find_order_by_intent(db, payment_intent_id)
                if existing is not None:
                    await log.log_warning("order", "Повторное подтверждение оплаты, заказ уже создан", {
                        "orderId": existing.order_id, "paymentIntentId": payment_intent_id,
                    })
                    return existing, False
            await log.log_warning("order", "Коллизия номера заказа", {"orderId": order_id, "attempt": attempt})
            continue

        await log.log_info("order", "Заказ создан", {"orderId": order_id, "total": db_order.total})
        return db_order, True

    raise ConflictError("Не удалось выделить уникальный номер заказа")


async def save_order(db: AsyncSession, db_order: OrderModel) -> OrderModel:
    db_order.updated_at = datetime.now(timezone.utc)
    db.add(db_order)
    await db.commit()
    await db.refresh(db_order)
    return db_order
