import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from transy import (
    DuplicateNameError,
    InvalidConfigError,
    MalformedResponseError,
    NoActiveProviderError,
    ProviderError,
    ProviderNotFoundError,
    ProviderTimeoutError,
    TransyError,
    get_orchestrator,
    get_settings,
    reset_orchestrator,
)
from backend.app.api.routes import events as events_route
from backend.app.api.routes import languages as languages_route
from backend.app.api.routes import providers as providers_route
from backend.app.api.routes import translate as translate_route
from backend.app.api.routes import usage as usage_route
from backend.app.logging_utils import configure_logging

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)

# 错误 kind -> HTTP 状态码
ERROR_STATUS = {
    ProviderNotFoundError: 404,
    DuplicateNameError: 409,
    InvalidConfigError: 422,
    NoActiveProviderError: 409,
    ProviderError: 502,
    MalformedResponseError: 502,
    ProviderTimeoutError: 504,
}

app = FastAPI(
    title="Transy",
    description="Provider-backed translation bridge",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(providers_route.router)
app.include_router(translate_route.router)
app.include_router(languages_route.router)
app.include_router(usage_route.router)
app.include_router(events_route.router)


@app.exception_handler(TransyError)
async def transy_error_handler(request: Request, exc: TransyError):
    status = ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.warning(f"{request.method} {request.url.path} 失败: {exc.kind}: {exc.message}")
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.get("/")
async def root():
    return {
        "message": "Transy API",
        "version": "1.0.0",
        "endpoints": {
            "providers": "/api/providers",
            "translate": "/api/translate",
            "detect": "/api/detect",
            "languages": "/api/languages",
            "usage": "/api/usage",
            "events": "/api/events",
        },
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_load_config():
    """启动时加载配置文件，损坏的配置不会阻止启动"""
    orchestrator = get_orchestrator()
    logger.info(f"已加载 {len(orchestrator.get_providers())} 个 provider, 配置文件: {settings.config_path}")


@app.on_event("shutdown")
async def shutdown_close():
    reset_orchestrator()


def run() -> None:
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
