# storefront/routes/auth.py

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jwt import ExpiredSignatureError, InvalidTokenError
from sqlalchemy.future import select
from typing import Optional

from storefront.models.user import User
from storefront.schemas.user import TokenResponse, UserResponse
from storefront.utils.errors import AuthenticationError, AuthorizationError
from storefront.utils.security import create_access_token, decode_access_token, verify_password

router = APIRouter()

# auto_error=False: отсутствие токена отдаём в общем формате ошибок
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

BEARER = {"WWW-Authenticate": "Bearer"}


async def find_user(request: Request, login: str) -> Optional[User]:
    result = await request.state.db.execute(select(User).where(User.login == login))
    return result.scalar_one_or_none()


async def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> User:
    """
    protect: проверяет JWT токен и возвращает пользователя.

    **Статусы:**
    - 401 Unauthorized – токен отсутствует, истёк, неверный или пользователя нет
    """
    log = request.app.state.log
    if not token:
        raise AuthenticationError("Требуется авторизация", headers=BEARER)

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        await log.log_warning("auth", "Токен истёк")
        raise AuthenticationError("Токен истёк", headers=BEARER)
    except InvalidTokenError:
        await log.log_warning("auth", "Неверный токен")
        raise AuthenticationError("Неверный токен", headers=BEARER)

    login = payload.get("sub")
    if login is None:
        await log.log_error("auth", "Токен не содержит username")
        raise AuthenticationError("Неверный токен", headers=BEARER)

    user = await find_user(request, login)
    if user is None:
        raise AuthenticationError("Пользователь не найден", headers=BEARER)
    return user


async def get_current_admin(request: Request, user: User = Depends(get_current_user)) -> User:
    """
    admin: пропускает только администраторов.

    **Статусы:**
    - 403 Forbidden – пользователь авторизован, но не администратор
    """
    if not user.is_admin:
        await request.app.state.log.log_warning("auth", "Доступ запрещён", {"login": user.login})
        raise AuthorizationError("Доступ только для администратора")
    return user


# ────────────── TOKEN ──────────────
@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Получение JWT токена (авторизация пользователя)",
    responses={
        200: {"description": "Токен успешно получен"},
        400: {"description": "Ошибка валидации входных данных"},
        401: {"description": "Неверный логин или пароль"},
    }
)
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends()
):
    """
    Проверяет логин и пароль и возвращает JWT токен, тип токена
    и базовую информацию о пользователе.

    **Входные данные (form-data):** `username`, `password`
    """
    log = request.app.state.log

    user = await find_user(request, form_data.username)
    if user is None or not verify_password(form_data.password, user.password):
        await log.log_warning("auth", "Неудачная попытка входа", {"username": form_data.username})
        raise AuthenticationError("Неверный логин или пароль", headers=BEARER)

    access_token = create_access_token(data={"sub": user.login})
    await log.log_info("auth", "Пользователь успешно авторизован", {"login": user.login})

    return TokenResponse(access_token=access_token, user=UserResponse.model_validate(user))
