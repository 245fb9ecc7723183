"""
Middleware para manejo centralizado de errores no controlados.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Captura excepciones que escapan de los endpoints.

    Las AppException ya se traducen en el manejador global de la aplicación;
    aquí solo llegan errores inesperados, que se registran con traceback y se
    responden como 500 con el mismo formato {error, message, details}.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path}: {exc}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "Ha ocurrido un error interno del servidor",
                    "details": {"path": request.url.path}
                }
            )
