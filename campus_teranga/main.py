# campus_teranga/main.py
# Точка входа FastAPI. Проверка конфигурации и создание таблиц выполняются
# в lifespan: без JWT_SECRET приложение не стартует.

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_teranga.api import admin as admin_router
from campus_teranga.api import auth as auth_router
from campus_teranga.core.config import settings
from campus_teranga.core.errors import AppError, ValidationError
from campus_teranga.db.base import Base
from campus_teranga.db.session import engine

# Импорт моделей, чтобы SQLAlchemy видел их определения
import campus_teranga.models.admin_action  # noqa: F401
import campus_teranga.models.user  # noqa: F401

# Настройка логирования
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def try_create_tables(retries: int = 5, delay: int = 2) -> bool:
    """
    Пытаемся создать таблицы с повторными попытками.
    Если БД недоступна, логируем ошибку и пробуем снова.

    Args:
        retries: Количество попыток подключения
        delay: Задержка между попытками в секундах

    Returns:
        True если таблицы созданы/существуют, False если все попытки исчерпаны
    """
    for attempt in range(1, retries + 1):
        try:
            logger.info(f"Creating tables ({attempt}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("✅ Database tables created (or already exist).")
            return True
        except Exception as e:
            logger.warning(f"❌ Attempt {attempt}/{retries} failed to create tables: {e}")
            if attempt < retries:
                logger.info(f"⏳ Waiting {delay}s before retry...")
                time.sleep(delay)
    logger.error(f"❌ Could not create tables after {retries} retries.")
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Управление жизненным циклом приложения.
    Запускается при старте и завершении приложения.
    """
    # Startup: ConfigurationError отсюда прерывает запуск
    logger.info("🚀 Campus Teranga API starting up...")
    settings.validate()
    if not try_create_tables(retries=5, delay=2):
        if settings.is_production:
            raise RuntimeError("Cannot start application: database tables creation failed")
        logger.error("⚠️ Failed to create database tables. Application may not work correctly.")

    yield

    # Shutdown
    logger.info("🛑 Campus Teranga API shutting down...")
    engine.dispose()


def _error_response(status_code: int, body: dict) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return _error_response(exc.status_code, exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # Значения полей не возвращаем: среди них может быть пароль
        errors = []
        for err in exc.errors():
            loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
            message = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
            errors.append({"field": ".".join(loc) or None, "message": message})
        logger.warning(f"Validation failed on {request.url.path}: {[e['field'] for e in errors]}")
        return _error_response(400, ValidationError(errors).to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, {"success": False, "message": str(exc.detail)})

    # Глобальный обработчик исключений
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=exc)
        body = {"success": False, "message": "Something went wrong!"}
        if settings.ENVIRONMENT == "development":
            body["detail"] = str(exc)
        return _error_response(500, body)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Campus Teranga API",
        description="API аккаунтов и администрирования Campus Teranga",
        version=API_VERSION,
        lifespan=lifespan,
    )

    # В development разрешаем всё, в остальных окружениях только CORS_ORIGINS
    if settings.ENVIRONMENT == "development":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
        )

    register_exception_handlers(app)

    app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
    app.include_router(admin_router.router, prefix="/api/admin", tags=["admin"])

    @app.get("/", tags=["health"])
    def root():
        """Базовый health check."""
        return {
            "status": "ok",
            "service": "Campus Teranga API",
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/health", tags=["health"])
    def health():
        """Детальный health check."""
        return {"status": "healthy", "version": API_VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "campus_teranga.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
