"""
Dependencias de autenticación.

Un request se autentica con:
- ``Authorization: Bearer <jwt>`` (``sub`` = id del usuario), o
- ``X-Internal-Sync: <INTERNAL_SYNC_SECRET>`` + ``X-User-Id`` para jobs
  internos que sincronizan en nombre de un usuario.
"""
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from app.core.config import settings
from app.core.security import security_service
from app.shared.exceptions.auth import UnauthorizedException


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_internal_sync: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
) -> str:
    """
    Obtiene el id del usuario autenticado.

    Raises:
        UnauthorizedException: Si no hay credenciales válidas
        TokenExpiredException: Si el token expiró
    """
    if x_internal_sync is not None:
        if security_service.secure_compare(x_internal_sync, settings.INTERNAL_SYNC_SECRET) and x_user_id:
            logger.debug(f"Sync interno en nombre de {x_user_id}")
            return x_user_id
        logger.warning("Cabecera X-Internal-Sync inválida o sin X-User-Id")

    if credentials is not None:
        payload = security_service.decode_access_token(credentials.credentials)
        user_id = payload.get("sub")
        if user_id:
            return str(user_id)

    raise UnauthorizedException()
