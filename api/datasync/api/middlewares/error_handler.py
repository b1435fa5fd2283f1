"""
Middleware para manejo centralizado de errores no controlados.

Las AppException las resuelve el exception_handler registrado en main.py;
aca solo llega lo inesperado, que se responde como 500.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Captura excepciones no manejadas y responde un JSON uniforme."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            # loguru interpreta llaves como placeholders
            error_msg = str(exc).replace("{", "{{").replace("}", "}}")
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path}: {error_msg}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "Ha ocurrido un error interno del servidor",
                    "details": {"path": request.url.path},
                },
            )
