"""
Главный файл сервиса учёта активов IHUB
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.core.config import settings
from backend.modules.assets import api as assets_api
from backend.modules.assets.exceptions import AssetError

# Настройка логирования
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Учёт активов: склад, заявки на выдачу и возврат",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AssetError)
async def _asset_error_handler(request: Request, exc: AssetError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errors": exc.errors},
    )


# Подключаем роутеры модулей
app.include_router(assets_api.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": "ihub-assets",
        "modules": ["assets"],
    }


@app.on_event("startup")
async def on_startup():
    logger.info("Запуск %s", settings.app_name)
