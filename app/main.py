import asyncio
import contextlib

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config.settings import APP_URL, CORS_ALLOW_ALL, CORS_ORIGINS, ENABLE_DOCS
from app.core.cache import Caches
from app.core.exception_handlers import (
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.rate_limiter import MessageRateLimiter
from app.utils.logger import logger

# ───────────────────────────
# Importar modelos antes das rotas
# Garante que todos os modelos estejam registrados no SQLAlchemy
# antes de qualquer query ser executada
# ───────────────────────────
from app.api.usuarios import models as _usuarios_models  # noqa: F401
from app.api.clientes import models as _clientes_models  # noqa: F401
from app.api.whatsapp import models as _whatsapp_models  # noqa: F401

from app.api.usuarios.router.router import api_usuarios
from app.api.clientes.router.router_clientes import router as clientes_router
from app.api.whatsapp.router.router import api_whatsapp

MAINTENANCE_INTERVAL_SECONDS = 60

# ──────────────────────────
# Instância FastAPI
# ──────────────────────────
app = FastAPI(
    title="AvaliaTec API",
    version="1.0.0",
    description="Grupos, permissões, usuários, convites, clientes e atendimento via WhatsApp",
    docs_url=("/swagger" if ENABLE_DOCS else None),
    redoc_url=("/redoc" if ENABLE_DOCS else None),
    openapi_url=("/openapi.json" if ENABLE_DOCS else None),
    servers=[{"url": APP_URL, "description": "Base URL do ambiente"}],
    redirect_slashes=False  # Evita redirecionamento 307 quando URL não termina com /
)

# Caches de processo e rate limiter (injetados nas rotas via dependencies)
app.state.caches = Caches()
app.state.rate_limiter = MessageRateLimiter()

# ───────────────────────────
# Exception Handlers Globais
# ───────────────────────────
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# ───────────────────────────
# CORS
# ───────────────────────────
# Regra:
# - Se CORS_ALLOW_ALL=true => allow_origins=["*"], allow_credentials=False
# - Caso contrário => allow_origins=CORS_ORIGINS (se vazio cai para ["*"]), allow_credentials=True somente quando houver origens explícitas
if CORS_ALLOW_ALL:
    allowed_origins = ["*"]
    allow_credentials = False
else:
    allowed_origins = CORS_ORIGINS or ["*"]
    allow_credentials = bool(CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _manutencao_periodica():
    """Limpa janelas expiradas do rate limiter e ids de webhook vencidos."""
    while True:
        await asyncio.sleep(MAINTENANCE_INTERVAL_SECONDS)
        removed = app.state.rate_limiter.cleanup()
        purged = app.state.caches.webhook_events.purge_expired()
        if removed or purged:
            logger.info("[MANUTENCAO] rate limiter: %s janelas removidas; webhook: %s ids expirados", removed, purged)


# ───────────────────────────
# Startup
# ───────────────────────────
@app.on_event("startup")
async def startup():
    from app.database.init_db import inicializar_banco

    logger.info("Iniciando API e banco de dados...")
    inicializar_banco(app.state.caches)
    app.state.maintenance_task = asyncio.create_task(_manutencao_periodica())
    logger.info("API iniciada com sucesso.")


# ───────────────────────────
# Shutdown
# ───────────────────────────
@app.on_event("shutdown")
async def shutdown():
    logger.info("Encerrando API...")
    task = getattr(app.state, "maintenance_task", None)
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    logger.info("API encerrada.")


# ───────────────────────────
# Rotas
# ───────────────────────────

@app.get("/")
async def root():
    return {"status": "ok", "message": "API is running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


app.include_router(api_usuarios)
app.include_router(clientes_router)
app.include_router(api_whatsapp)


# ───────────────────────────
# OpenAPI: Segurança Bearer/JWT no Swagger
# ───────────────────────────
PUBLIC_PATHS = {"/", "/health", "/api/invites/validate", "/api/webhooks/evolution"}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        servers=app.servers,
    )

    components = openapi_schema.get("components", {})
    security_schemes = components.get("securitySchemes", {})
    security_schemes.update({
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    })
    components["securitySchemes"] = security_schemes
    openapi_schema["components"] = components

    # Define segurança global
    openapi_schema["security"] = [{"bearerAuth": []}]

    # Remover exigência de token de endpoints públicos
    paths = openapi_schema.get("paths", {})
    for path, methods in paths.items():
        if path in PUBLIC_PATHS:
            for method_obj in methods.values():
                method_obj["security"] = []

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
