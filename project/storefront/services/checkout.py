# storefront/services/checkout.py

"""
Оформление заказа: прямое создание и создание после подтверждённой оплаты.

Порядок шагов для одного заказа: номер ORD-### → сохранение заказа →
обновление агрегата клиента. Заказ — источник правды и фиксируется первым;
если обновить агрегат не удалось, заказ остаётся с ledger_applied=False,
а сверка (reconcile_ledger) учтёт его позже.
"""

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from storefront.models.order import Order as OrderModel
from storefront.schemas.order import OrderCreate, OrderStatus, PaymentStatus
from storefront.schemas.payment import PaymentConfirm
from storefront.services.customer import Contact, upsert_customer
from storefront.services.order import find_order_by_intent, insert_order
from storefront.services.payment import IntentStatus, PaymentGatewayClient
from storefront.utils.errors import ConflictError, PaymentNotCompleted
from storefront.utils.database import AsyncSessionLocal
from storefront.utils.log import Log


async def apply_to_ledger(log: Log, db_order: OrderModel) -> bool:
    """
    Учитывает сохранённый заказ в агрегате клиента.

    Работает в собственной сессии: откаты внутри ledger не трогают объекты
    сессии запроса. Ошибка не откатывает заказ: она логируется,
    заказ ждёт сверки.
    """
    order_id = db_order.order_id
    email = db_order.customer_email
    try:
        async with AsyncSessionLocal() as ledger_db:
            await upsert_customer(
                ledger_db,
                log,
                email=email,
                order_total=db_order.total,
                order_date=db_order.created_at,
                contact=Contact.from_snapshot(db_order.customer),
                payment_status=db_order.payment_status,
                source_order_id=order_id,
            )
        return True
    except (SQLAlchemyError, ConflictError) as e:
        await log.log_error("ledger", f"Агрегат клиента не обновлён, заказ оставлен для сверки: {e}", {
            "orderId": order_id, "email": email,
        })
        return False


async def create_order_service(order: OrderCreate, request: Request) -> OrderModel:
    """
    Прямое создание заказа (без проверки оплаты): статус Pending,
    статус оплаты из запроса или Pending.
    """
    db = request.state.db
    log = request.app.state.log

    payment_status = order.payment_status or PaymentStatus.PENDING
    db_order, _ = await insert_order(
        db,
        log,
        customer=order.customer.model_dump(),
        customer_email=order.customer.email,
        items=[item.model_dump() for item in order.items],
        total=order.total,
        status=OrderStatus.PENDING.value,
        payment_status=payment_status.value,
        notes=order.notes,
    )
    await apply_to_ledger(log, db_order)
    return db_order


async def confirm_payment_service(payload: PaymentConfirm, request: Request) -> tuple[OrderModel, bool]:
    """
    Создание заказа после успешной оплаты.

    Возвращает (заказ, created). Повторное подтверждение того же
    payment_intent_id возвращает уже созданный заказ с created=False
    и не трогает агрегат клиента.
    """
    db = request.state.db
    log = request.app.state.log
    payments: PaymentGatewayClient = request.app.state.payments

    payments.ensure_configured()

    existing = await find_order_by_intent(db, payload.payment_intent_id)
    if existing is not None:
        await log.log_info("payment", "Оплата уже подтверждена ранее", {
            "paymentIntentId": payload.payment_intent_id, "orderId": existing.order_id,
        })
        return existing, False

    status = await payments.get_intent_status(payload.payment_intent_id)
    await log.log_info("payment", "Проверка платёжного интента", {
        "paymentIntentId": payload.payment_intent_id, "status": status.value,
    })
    if status != IntentStatus.SUCCEEDED:
        raise PaymentNotCompleted("Оплата не завершена", {"status": status.value})

    shipping_method = payload.shipping.method if payload.shipping else ""
    db_order, created = await insert_order(
        db,
        log,
        customer=payload.customer.model_dump(),
        customer_email=payload.customer.email,
        items=[item.model_dump() for item in payload.items],
        total=payload.total,
        status=OrderStatus.PROCESSING.value,
        payment_status=PaymentStatus.COMPLETE.value,
        payment_intent_id=payload.payment_intent_id,
        notes=f"Shipping: {shipping_method}" if shipping_method else "",
    )
    if created:
        await apply_to_ledger(log, db_order)
    return db_order, created


async def reconcile_ledger(db: AsyncSession, log: Log) -> int:
    """
    Сверка: учитывает в агрегатах клиентов все заказы с ledger_applied=False
    (старые первыми). Возвращает число учтённых заказов.
    """
    query = select(OrderModel).where(OrderModel.ledger_applied.is_(False))
    result = await db.execute(query.order_by(OrderModel.created_at, OrderModel.id))
    pending = list(result.scalars().all())

    applied = 0
    for db_order in pending:
        if await apply_to_ledger(log, db_order):
            applied += 1

    if pending:
        await log.log_info("ledger", "Сверка агрегатов клиентов завершена", {
            "pending": len(pending), "applied": applied,
        })
    return applied
