"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y eventos.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from datasync.api.middlewares.error_handler import ErrorHandlerMiddleware
from datasync.api.v1.router import api_router
from datasync.core.config import get_cors_origins, settings
from datasync.core.events import shutdown_handler, startup_handler
from datasync.shared.exceptions.base import AppException


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Ejecuta los manejadores de inicio y cierre alrededor de la vida de la app."""
    await startup_handler(application)()
    yield
    await shutdown_handler(application)()


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Motor de sincronizacion de fuentes externas hacia el store EAV",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    cors_origins = get_cors_origins(settings.CORS_ORIGINS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_middleware(ErrorHandlerMiddleware)

    application.include_router(api_router, prefix="/api")

    # Manejador global de excepciones de la aplicacion (404, 409, 502...)
    @application.exception_handler(AppException)
    async def app_exception_handler(request, exc: AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.details
            }
        )

    @application.get("/health", tags=["Health"])
    async def health_check():
        """Endpoint para verificar el estado de la aplicación."""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT
        }

    return application


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    access_host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    base_url = f"http://{access_host}:{settings.PORT}"

    logger.info(f"Swagger UI: {base_url}/docs | Health: {base_url}/health")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
