"""
Utilidades de autenticación JWT
Valida tokens generados por MS-AUTH-PY
"""
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from ..config import settings
from ..services import Actor

# HTTP Bearer scheme para el header Authorization (más simple para Swagger)
http_bearer = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """
    Decodifica y valida un token JWT

    Args:
        token: Token JWT a decodificar

    Returns:
        dict: Datos extraídos del token

    Raises:
        HTTPException: Si el token es inválido
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        email: str = payload.get("sub")
        role: str = (payload.get("role") or "").upper()  # Normalizar a mayúsculas
        user_id = payload.get("user_id")
        name: str = payload.get("name") or email

        if email is None:
            raise credentials_exception

        return {
            "email": email,
            "role": role,
            "user_id": user_id,
            "name": name
        }

    except JWTError:
        raise credentials_exception


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(http_bearer)) -> dict:
    """
    Obtiene el usuario actual desde el token JWT

    Raises:
        HTTPException: Si el token es inválido o no está presente
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de autenticación requerido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return decode_token(credentials.credentials)


def actor_from_user(current_user: dict) -> Actor:
    """Usuario del token como actor de las operaciones auditadas"""
    user_id = current_user.get("user_id")
    try:
        user_id = int(user_id) if user_id is not None else None
    except (TypeError, ValueError):
        user_id = None
    return Actor(id=user_id, name=current_user.get("name") or current_user.get("email") or "Unknown")


async def get_current_actor(current_user: dict = Depends(get_current_user)) -> Actor:
    """Dependency: actor autenticado"""
    return actor_from_user(current_user)
