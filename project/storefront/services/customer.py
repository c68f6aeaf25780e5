# storefront/services/customer.py

"""
Денормализованный агрегат клиента (ledger): число заказов, сумма покупок,
дата последнего заказа. Ключ агрегата — email в нижнем регистре.

Счётчики меняются только одним оператором UPDATE на стороне базы
(``total_orders = total_orders + 1``), а не чтением в приложении с
последующей записью, поэтому параллельные заказы одного клиента не
затирают приращения друг друга.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, insert, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from storefront.models.customer import Customer as CustomerModel
from storefront.models.order import Order as OrderModel
from storefront.services.sequence import MAX_ATTEMPTS, ensure_counter, next_identifier
from storefront.utils.errors import ConflictError, NotFoundError
from storefront.utils.log import Log

customers = CustomerModel.__table__
orders = OrderModel.__table__


@dataclass(frozen=True)
class Contact:
    name: str = ""
    phone: str = ""
    location: str = ""

    @classmethod
    def from_snapshot(cls, snapshot: dict) -> "Contact":
        return cls(
            name=snapshot.get("name") or "",
            phone=snapshot.get("phone") or "",
            location=snapshot.get("country") or "",
        )


async def find_customer_by_email(db: AsyncSession, email: str) -> Optional[CustomerModel]:
    result = await db.execute(
        select(CustomerModel)
        .where(CustomerModel.email == email)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def claim_order(db: AsyncSession, order_id: str) -> bool:
    """Помечает заказ учтённым; False, если его уже учли ранее."""
    result = await db.execute(
        update(orders)
        .where(orders.c.order_id == order_id, orders.c.ledger_applied.is_(False))
        .values(ledger_applied=True)
    )
    return result.rowcount == 1


async def upsert_customer(
    db: AsyncSession,
    log: Log,
    email: str,
    order_total: Decimal,
    order_date: datetime,
    contact: Contact,
    payment_status: str,
    source_order_id: Optional[str] = None,
) -> Optional[CustomerModel]:
    """
    Учитывает заказ в агрегате клиента.

    Существующий клиент: атомарно +1 к total_orders и +order_total к
    total_spent, обновляются last_order_date и payment_status; имя,
    телефон и локация перезаписываются только непустыми значениями.
    Новый клиент: выделяется CUST-### и создаётся строка с total_orders=1.

    Если передан source_order_id, флаг ledger_applied заказа
    выставляется в той же транзакции, что и приращение. Уже учтённый
    заказ повторно не считается: возвращается текущий агрегат клиента
    или None, если клиента с таким email нет.
    """
    email = email.strip().lower()

    for attempt in range(1, MAX_ATTEMPTS + 1):
        now = datetime.now(timezone.utc)

        if source_order_id and not await claim_order(db, source_order_id):
            await db.rollback()
            await log.log_warning("ledger", "Заказ уже учтён в агрегате клиента", {"orderId": source_order_id})
            return await find_customer_by_email(db, email)

        values = {
            "total_orders": customers.c.total_orders + 1,
            "total_spent": func.round(customers.c.total_spent + order_total, 2),
            "last_order_date": order_date,
            "payment_status": payment_status,
            "updated_at": now,
        }
        if contact.name:
            values["customer_name"] = contact.name
        if contact.phone:
            values["phone"] = contact.phone
        if contact.location:
            values["location"] = contact.location

        result = await db.execute(
            update(customers).where(customers.c.email == email).values(**values)
        )
        if result.rowcount == 1:
            await db.commit()
            await log.log_info("ledger", "Агрегат клиента обновлён", {"email": email, "orderId": source_order_id})
            return await find_customer_by_email(db, email)

        # клиента ещё нет
        await db.rollback()
        await ensure_counter(db, "customer")

        if source_order_id and not await claim_order(db, source_order_id):
            await db.rollback()
            return await find_customer_by_email(db, email)

        # номер в той же транзакции, что и вставка: проигравший гонку за email
        # откатывает и его
        customer_id = await next_identifier(db, "customer", commit=False)

        try:
            await db.execute(
                insert(customers).values(
                    customer_id=customer_id,
                    email=email,
                    customer_name=contact.name,
                    phone=contact.phone,
                    location=contact.location,
                    total_orders=1,
                    total_spent=order_total,
                    last_order_date=order_date,
                    payment_status=payment_status,
                    status="Active",
                    created_at=now,
                    updated_at=now,
                )
            )
            await db.commit()
        except IntegrityError:
            # параллельный заказ успел создать клиента с этим email
            await db.rollback()
            await log.log_warning("ledger", "Клиент создан параллельно, повторяем как обновление", {
                "email": email, "attempt": attempt,
            })
            continue

        await log.log_info("ledger", "Создан клиент", {"customerId": customer_id, "email": email})
        return await find_customer_by_email(db, email)

    raise ConflictError("Не удалось обновить агрегат клиента", {"email": email})


async def read_customers(
    db: AsyncSession, status: Optional[str] = None, search: Optional[str] = None
) -> list[CustomerModel]:
    """
    Список клиентов, новые первыми; фильтр по статусу и поиск по имени/email.
    """
    query = select(CustomerModel)
    if status:
        query = query.where(CustomerModel.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            CustomerModel.customer_name.ilike(pattern),
            CustomerModel.email.ilike(pattern),
        ))
    query = query.order_by(CustomerModel.created_at.desc(), CustomerModel.id.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def read_customer(db: AsyncSession, customer_id: str) -> CustomerModel:
    result = await db.execute(select(CustomerModel).where(CustomerModel.customer_id == customer_id))
    db_customer = result.scalar_one_or_none()
    if db_customer is None:
        raise NotFoundError("Клиент не найден", {"customerId": customer_id})
    return db_customer
