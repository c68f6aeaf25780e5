# storefront/routes/payment.py

from fastapi import APIRouter, Request, Response, status

from storefront.schemas.order import Order
from storefront.schemas.payment import IntentCreate, IntentCreated, PaymentConfirm, PaymentConfirmed
from storefront.services.checkout import confirm_payment_service
from storefront.services.payment import PaymentGatewayClient

router = APIRouter()

# ────────────── CREATE INTENT ──────────────
@router.post(
    "/create-intent",
    response_model=IntentCreated,
    status_code=status.HTTP_200_OK,
    summary="Создать платёжный интент",
    responses={
        200: {"description": "Интент создан, возвращён clientSecret"},
        400: {"description": "Сумма меньше минимальной или валюта не поддерживается"},
        500: {"description": "Платёжный шлюз не настроен"},
        502: {"description": "Платёжный шлюз недоступен"},
    },
)
async def create_intent(request: Request, payload: IntentCreate):
    payments: PaymentGatewayClient = request.app.state.payments
    log = request.app.state.log

    try:
        intent = await payments.create_intent(payload.amount, payload.currency)
    except Exception as e:
        await log.log_error("payment", f"Ошибка при создании платёжного интента: {str(e)}", {
            "amount": payload.amount, "currency": payload.currency,
        })
        raise

    await log.log_info("payment", "Платёжный интент создан", {
        "paymentIntentId": intent.intent_id, "amount": payload.amount, "currency": payload.currency,
    })
    return IntentCreated(client_secret=intent.client_secret, payment_intent_id=intent.intent_id)


# ────────────── CONFIRM ──────────────
@router.post(
    "/confirm",
    response_model=PaymentConfirmed,
    status_code=status.HTTP_201_CREATED,
    summary="Подтвердить оплату и создать заказ",
    responses={
        200: {"description": "Оплата уже подтверждена, возвращён ранее созданный заказ"},
        201: {"description": "Оплата подтверждена, заказ создан"},
        400: {"description": "Оплата не завершена или неверные данные"},
        404: {"description": "Платёжный интент не найден"},
        500: {"description": "Платёжный шлюз не настроен"},
        502: {"description": "Платёжный шлюз недоступен"},
    },
)
async def confirm_payment(request: Request, response: Response, payload: PaymentConfirm):
    try:
        db_order, created = await confirm_payment_service(payload, request)
    except Exception as e:
        await request.app.state.log.log_error("payment", f"Ошибка подтверждения оплаты: {str(e)}", {
            "paymentIntentId": payload.payment_intent_id,
        })
        raise

    if not created:
        response.status_code = status.HTTP_200_OK
        message = "Order already confirmed"
    else:
        message = "Order confirmed successfully"

    return PaymentConfirmed(order=Order.model_validate(db_order), message=message)
