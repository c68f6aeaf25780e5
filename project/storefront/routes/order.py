# storefront/routes/order.py

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional

from storefront.routes.auth import get_current_admin
from storefront.schemas.order import Order, OrderCreate, OrderStatus, OrderStatusUpdate, ReconcileResponse
from storefront.services.checkout import create_order_service, reconcile_ledger
from storefront.services.order import read_order, read_orders
from storefront.services.status import update_status_service

router = APIRouter()

# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="Создать заказ",
    response_description="Возвращает созданный заказ",
    responses={
        201: {"description": "Заказ успешно создан"},
        400: {"description": "Неверные данные запроса"},
        409: {"description": "Не удалось выделить уникальный номер"},
    },
)
async def create_order(request: Request, order: OrderCreate):
    try:
        return await create_order_service(order, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при создании заказа: {str(e)}")
        raise


# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=List[Order],
    status_code=status.HTTP_200_OK,
    summary="Получить список заказов",
    response_description="Заказы, новые первыми",
    responses={
        200: {"description": "Список заказов успешно получен"},
        400: {"description": "Неизвестный статус в фильтре"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Доступ только для администратора"},
    },
)
async def list_orders(
    request: Request,
    status: Optional[OrderStatus] = None,
    skip: int = 0,
    limit: int = 100,
    _=Depends(get_current_admin),
):
    orders = await read_orders(request.state.db, status.value if status else None, skip, limit)
    await request.app.state.log.log_info("order", "Список заказов загружен", {"count": len(orders)})
    return orders


# ────────────── RECONCILE ──────────────
@router.post(
    "/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_200_OK,
    summary="Сверка агрегатов клиентов",
    response_description="Число заказов, учтённых при сверке",
    responses={
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Доступ только для администратора"},
    },
)
async def reconcile(request: Request, _=Depends(get_current_admin)):
    applied = await reconcile_ledger(request.state.db, request.app.state.log)
    return {"applied": applied}


# ────────────── READ ONE ──────────────
@router.get(
    "/{order_id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Получить заказ по номеру",
    response_description="Возвращает данные конкретного заказа",
    responses={
        200: {"description": "Заказ найден и возвращён"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Доступ только для администратора"},
        404: {"description": "Заказ не найден"},
    },
)
async def get_order(order_id: str, request: Request, _=Depends(get_current_admin)):
    try:
        return await read_order(request.state.db, order_id)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при получении заказа: {str(e)}", {"orderId": order_id})
        raise


# ────────────── UPDATE STATUS ──────────────
@router.put(
    "/{order_id}/status",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Изменить статус заказа",
    response_description="Заказ с новым статусом",
    responses={
        200: {"description": "Статус успешно обновлён"},
        400: {"description": "Недопустимый статус или переход"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Доступ только для администратора"},
        404: {"description": "Заказ не найден"},
    },
)
async def update_order_status(
    order_id: str,
    update: OrderStatusUpdate,
    request: Request,
    _=Depends(get_current_admin),
):
    try:
        return await update_status_service(
            order_id,
            update.status.value,
            request,
            update.payment_status.value if update.payment_status else None,
        )
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при обновлении статуса: {str(e)}", {"orderId": order_id})
        raise
