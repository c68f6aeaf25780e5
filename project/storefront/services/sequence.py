# storefront/services/sequence.py

"""
Выдача человекочитаемых последовательных идентификаторов (ORD-001, CUST-001).

Счётчик каждой последовательности хранится в таблице ``counters`` и
увеличивается одним оператором ``UPDATE ... SET value = value + 1 RETURNING``,
поэтому два конкурентных запроса не могут получить одно и то же значение.
По умолчанию приращение фиксируется сразу отдельным commit: выданный
номер не возвращается в пул, даже если вставка заказа потом откатится
(пропуски допустимы, повторы нет). Номер клиента берётся в транзакции
вставки клиента, поэтому проигравший гонку за email номер не тратит.
"""

from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.counter import Counter
from storefront.utils.errors import ConflictError

PREFIXES = {
    "order": "ORD",
    "customer": "CUST",
}
ID_WIDTH = 3
MAX_ATTEMPTS = 3

counters = Counter.__table__


def format_identifier(prefix: str, value: int) -> str:
    """ORD + 7 → ORD-007; ширина 3 не является пределом (ORD-1000)."""
    return f"{prefix}-{value:0{ID_WIDTH}d}"


async def ensure_counter(db: AsyncSession, name: str) -> None:
    """Создаёт строку счётчика со значением 0, если её ещё нет."""
    try:
        await db.execute(insert(counters).values(name=name, value=0))
        await db.commit()
    except IntegrityError:
        # уже есть (в том числе создана параллельно)
        await db.rollback()


async def next_value(db: AsyncSession, name: str, commit: bool = True) -> int:
    """
    Атомарно увеличивает счётчик ``name`` и возвращает новое значение.
    При первом обращении строка счётчика создаётся со значением 0.

    ``commit=False`` оставляет приращение в текущей транзакции вызывающего:
    если она откатится, номер вернётся в счётчик. Строка счётчика в этом
    режиме должна уже существовать (см. ``ensure_counter``).
    """
    for _ in range(MAX_ATTEMPTS):
        result = await db.execute(
            update(counters)
            .where(counters.c.name == name)
            .values(value=counters.c.value + 1)
            .returning(counters.c.value)
        )
        value = result.scalar_one_or_none()
        if value is not None:
            if commit:
                await db.commit()
            return value
        if not commit:
            break

        await ensure_counter(db, name)

    raise ConflictError(f"Не удалось выделить номер последовательности '{name}'")


async def next_identifier(db: AsyncSession, name: str, commit: bool = True) -> str:
    """Следующий идентификатор последовательности: ``order`` → ORD-###, ``customer`` → CUST-###."""
    prefix = PREFIXES[name]
    return format_identifier(prefix, await next_value(db, name, commit=commit))
