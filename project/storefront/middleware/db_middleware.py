# storefront/middleware/db_middleware.py

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.types import ASGIApp, Receive, Scope, Send

from storefront.utils.database import AsyncSessionLocal


class DBSessionMiddleware:
    """
    Сессия БД на время HTTP-запроса: доступна сервисам как request.state.db.

    Сервисы коммитят сами. Если обработчик упал посреди транзакции,
    незакоммиченные изменения откатываются до закрытия сессии.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        session: AsyncSession
        async with AsyncSessionLocal() as session:
            scope.setdefault("state", {})["db"] = session
            try:
                await self.app(scope, receive, send)
            except Exception:
                if session.in_transaction():
                    await session.rollback()
                raise
