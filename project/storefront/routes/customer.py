# storefront/routes/customer.py

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional

from storefront.routes.auth import get_current_admin
from storefront.schemas.customer import Customer, CustomerStatus
from storefront.services.customer import read_customer, read_customers

router = APIRouter()

# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=List[Customer],
    status_code=status.HTTP_200_OK,
    summary="Получить список клиентов",
    responses={
        200: {"description": "Список клиентов успешно получен"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Доступ только для администратора"},
    },
)
async def list_customers(
    request: Request,
    status: Optional[CustomerStatus] = None,
    search: Optional[str] = None,
    _=Depends(get_current_admin),
):
    customers = await read_customers(request.state.db, status.value if status else None, search)
    await request.app.state.log.log_info("customer", "Список клиентов загружен", {"count": len(customers)})
    return customers


# ────────────── READ ONE ──────────────
@router.get(
    "/{customer_id}",
    response_model=Customer,
    status_code=status.HTTP_200_OK,
    summary="Получить клиента по номеру",
    responses={
        200: {"description": "Клиент найден"},
        401: {"description": "Некорректный пользователь или токен"},
        403: {"description": "Доступ только для администратора"},
        404: {"description": "Клиент не найден"},
    },
)
async def get_customer(customer_id: str, request: Request, _=Depends(get_current_admin)):
    return await read_customer(request.state.db, customer_id)
