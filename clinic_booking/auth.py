# clinic_booking/auth.py
#
# Sign-in happens at the external identity provider; this module only checks
# the bearer token it issued and reads the caller's id and role from it.

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from .config import ALGORITHM, SECRET_KEY
from .schemas import UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid token")

    try:
        role = UserRole(payload.get("role", UserRole.customer.value))
    except ValueError:
        raise _unauthorized("Unknown role")

    return {
        "id": user_id,
        "role": role.value,
        "name": payload.get("name"),
    }


def get_current_user(token: str = Depends(oauth2_scheme)) -> dict:
    return decode_token(token)
