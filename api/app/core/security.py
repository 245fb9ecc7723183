"""
Utilidades de seguridad: tokens de acceso y firma de webhooks.
"""
import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, ExpiredSignatureError, jwt

from app.core.config import settings
from app.shared.exceptions.auth import InvalidCredentialsException, TokenExpiredException


# Prefijo que Notion antepone al digest en la cabecera X-Notion-Signature
SIGNATURE_PREFIX = "sha256="


class SecurityService:
    """Servicio para operaciones de seguridad."""

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Crea un token JWT de acceso.

        Args:
            data: Datos a incluir en el token (``sub`` = id del usuario)
            expires_delta: Tiempo de expiración personalizado

        Returns:
            str: Token JWT codificado
        """
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
            )

        to_encode.update({"exp": expire})
        return jwt.encode(
            to_encode,
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM
        )

    @staticmethod
    def decode_access_token(token: str) -> Dict[str, Any]:
        """
        Decodifica y valida un token JWT.

        Args:
            token: Token JWT a decodificar

        Returns:
            Dict[str, Any]: Datos del token decodificado

        Raises:
            InvalidCredentialsException: Si el token es inválido
            TokenExpiredException: Si el token ha expirado
        """
        try:
            return jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
        except ExpiredSignatureError:
            raise TokenExpiredException()
        except JWTError:
            raise InvalidCredentialsException()

    @staticmethod
    def compute_webhook_signature(secret: str, raw_body: bytes) -> str:
        """Calcula la firma ``sha256=<hex>`` de un cuerpo de webhook."""
        digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
        return f"{SIGNATURE_PREFIX}{digest}"

    @staticmethod
    def verify_webhook_signature(
        secret: str,
        raw_body: bytes,
        signature: Optional[str]
    ) -> bool:
        """
        Verifica la firma HMAC-SHA256 de un webhook.

        La comparación se hace en tiempo constante sobre bytes. Una cabecera
        ausente o con caracteres no ASCII nunca es válida.
        """
        if not signature:
            return False
        expected = SecurityService.compute_webhook_signature(secret, raw_body)
        return SecurityService.secure_compare(signature.strip(), expected)

    @staticmethod
    def secure_compare(provided: Optional[str], expected: Optional[str]) -> bool:
        """Compara dos secretos en tiempo constante; vacíos nunca coinciden."""
        if not provided or not expected:
            return False
        # compare_digest rechaza str con caracteres no ASCII
        return hmac.compare_digest(
            provided.encode("utf-8", "surrogateescape"),
            expected.encode("utf-8", "surrogateescape"),
        )


# Instancia global del servicio de seguridad
security_service = SecurityService()
