# storefront/schemas/user.py

from pydantic import BaseModel
from typing import Optional

class UserResponse(BaseModel):
    """
    Данные пользователя, возвращаемые вместе с токеном.
    """
    id: int
    name: Optional[str] = None
    login: str
    is_admin: bool = False

    model_config = {
        "from_attributes": True
    }

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
