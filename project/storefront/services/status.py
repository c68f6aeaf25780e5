# storefront/services/status.py

from typing import Optional

from fastapi import Request

from storefront.models.order import Order as OrderModel
from storefront.schemas.order import OrderStatus, PaymentStatus
from storefront.services.order import read_order, save_order
from storefront.utils.errors import ValidationError

# Допустимые переходы: вперёд по цепочке Pending → Processing → Shipped → Delivered,
# отмена из любого незавершённого состояния. Delivered и Cancelled конечные.
TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    # повтор текущего статуса разрешён, чтобы можно было менять только статус оплаты
    return new == current or new in TRANSITIONS[current]


async def update_status_service(
    order_id: str,
    new_status: str,
    request: Request,
    new_payment_status: Optional[str] = None,
) -> OrderModel:
    """
    Смена статуса заказа администратором.

    - 404, если заказа нет
    - 400, если статус не из перечня или переход запрещён таблицей TRANSITIONS
    - статус оплаты меняется, только если передан
    """
    db = request.state.db
    log = request.app.state.log

    try:
        target = OrderStatus(new_status)
        payment = PaymentStatus(new_payment_status) if new_payment_status is not None else None
    except ValueError:
        raise ValidationError("Недопустимый статус", {"status": new_status, "paymentStatus": new_payment_status})

    db_order = await read_order(db, order_id)
    current = OrderStatus(db_order.status)

    if not can_transition(current, target):
        await log.log_warning("order", "Запрещённый переход статуса", {
            "orderId": order_id, "from": current.value, "to": target.value,
        })
        raise ValidationError(
            f"Переход {current.value} → {target.value} запрещён",
            {"from": current.value, "to": target.value,
             "allowed": sorted(s.value for s in TRANSITIONS[current])},
        )

    db_order.status = target.value
    if payment is not None:
        db_order.payment_status = payment.value

    await save_order(db, db_order)
    await log.log_info("order", "Статус заказа обновлён", {
        "orderId": order_id, "from": current.value, "to": target.value,
        "paymentStatus": db_order.payment_status,
    })
    return db_order
