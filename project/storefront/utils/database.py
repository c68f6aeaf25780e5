# storefront/utils/database.py

from datetime import datetime, timezone

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.future import select
from storefront.config import settings
from storefront.utils.security import hash_password

# ────────────── Base для моделей ──────────────
Base = declarative_base()  # базовый класс для всех моделей SQLAlchemy


class UTCDateTime(TypeDecorator):
    """
    Время всегда в UTC и всегда с зоной.
    SQLite зону не хранит: пишем UTC, при чтении зона UTC восстанавливается.
    """
    impl = DateTime
    cache_ok = True

    def __init__(self):
        super().__init__(timezone=True)

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# ────────────── URL базы данных ──────────────
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLite блокирует базу целиком на запись, даём конкурентным запросам подождать
connect_args = {"timeout": 30} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

# ────────────── Асинхронный движок ──────────────
engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    echo=False,  # True можно включить для отладки SQL
    connect_args=connect_args,
)

# ────────────── Асинхронная сессия ──────────────
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # объекты читаются после commit без повторного запроса
)

# ────────────── Инициализация базы данных ──────────────
async def init_db():
    """
    Создаёт все таблицы в базе данных (если ещё не созданы)
    Проверяет наличие хотя бы одного администратора
        - Если админ отсутствует, создаёт его с логином и паролем из настроек
          (AUTH_LOGIN / AUTH_PASSWORD)
        - Пароль хранится в виде хэша
    Возвращает True, если администратор был создан.
    """
    # Регистрируем модели в metadata
    from storefront.models import counter, customer, order  # noqa: F401
    from storefront.models.user import User

    # Создаём таблицы
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Проверяем наличие админа
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.is_admin.is_(True)))
        if result.scalars().first() is not None:
            return False

        admin_user = User(
            name="Administrator",
            login=settings.AUTH_LOGIN,
            password=hash_password(settings.AUTH_PASSWORD),
            is_admin=True
        )
        session.add(admin_user)
        await session.commit()
        return True
