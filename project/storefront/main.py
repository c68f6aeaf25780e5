# storefront/main.py

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager

from storefront.config import settings
from storefront.utils.database import AsyncSessionLocal, init_db
from storefront.utils.errors import AppError, kind_for_status
from storefront.utils.log import Log
from storefront.middleware.db_middleware import DBSessionMiddleware
from storefront.services.checkout import reconcile_ledger
from storefront.services.payment import PaymentGatewayClient

import multiprocessing

# --- загрузка переменных окружения ---
load_dotenv()

# --- sync логгер для раннего старта ---
boot_log = Log()
if multiprocessing.current_process().name == "MainProcess":
    boot_log.log_info_sync(target="startup", message="Импорты main.py выполнены")

# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup начат")

    # Инициализация БД
    admin_created = await init_db()
    boot_log.log_info_sync(target="startup", message="База инициализирована", data={"adminCreated": admin_created})

    app.state.log = Log()
    await app.state.log.log_info(target="startup", message="Async Log инициализирован")

    # Платёжный шлюз: один клиент на процесс
    app.state.payments = PaymentGatewayClient.from_settings(settings)
    if not app.state.payments.configured:
        await app.state.log.log_warning("startup", "STRIPE_SECRET_KEY не задан, оплата работать не будет")

    # Сверка заказов, не учтённых в агрегатах клиентов
    async with AsyncSessionLocal() as db:
        applied = await reconcile_ledger(db, app.state.log)
    await app.state.log.log_info("startup", "Сверка агрегатов клиентов", {"applied": applied})

    yield

    # shutdown
    await app.state.log.log_info(target="shutdown", message="Остановка приложения")
    await app.state.payments.aclose()
    await app.state.log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log корректно завершён")

# ────────────── Создаём FastAPI приложение ──────────────
app = FastAPI(title="Storefront Orders API", lifespan=lifespan, debug=settings.DEBUG)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# DB middleware для request.state.db
app.add_middleware(DBSessionMiddleware)

# ────────────── Обработка ошибок ──────────────
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # 404 без маршрута, 405, тело запроса, которое не удалось разобрать
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": kind_for_status(exc.status_code), "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "kind": "ValidationError",
            "message": "Неверные данные запроса",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log = getattr(request.app.state, "log", None)
    if log:
        await log.log_error("app", f"Необработанная ошибка: {exc!r}", {"path": request.url.path})
    body = {"kind": "InternalError", "message": "Внутренняя ошибка сервера"}
    if settings.DEBUG:
        body["details"] = repr(exc)
    return JSONResponse(status_code=500, content=body)

@app.get("/")
def read_root():
    return {"message": "Storefront Orders API"}

# ────────────── Подключение роутов ──────────────
from storefront.routes import auth, customer, order, payment

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(order.router, prefix="/orders", tags=["orders"])
app.include_router(payment.router, prefix="/payments", tags=["payments"])
app.include_router(customer.router, prefix="/customers", tags=["customers"])

# ────────────── Запуск uvicorn ──────────────
if __name__ == "__main__":
    boot_log.log_info_sync(target="startup", message="Запуск uvicorn.run")
    uvicorn.run(
        "storefront.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
        reload=settings.DEBUG
    )
