"""
FastAPI应用主入口
"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.routes import admin as admin_routes
from api.routes import donations as donation_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers, install_loop_exception_handler
from core.logging_config import get_logger, configure_logging
from infrastructure.database import create_tables, dispose_engine


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    install_loop_exception_handler(asyncio.get_running_loop())

    # 表不存在时创建（幂等），不做迁移
    if settings.database.auto_create:
        await create_tables()
        logger.info("database_initialized", url=settings.database.url.split("://", 1)[0])
    else:
        logger.info("database_auto_create_disabled")

    logger.info(
        "application_started",
        environment=settings.ENVIRONMENT,
        version=settings.VERSION,
    )
    yield
    await dispose_engine()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Donation intake and Stripe PaymentIntent reconciliation",
)

# 添加中间件（注意顺序：后添加的在外层，先执行）
# 1. 日志中间件（依赖request_id，位于 Request ID 中间件内层）
app.add_middleware(LoggingMiddleware)

# 2. Request ID中间件（先于日志中间件执行，为其提供request_id）
app.add_middleware(RequestIDMiddleware)

# 3. CORS中间件（最外层）
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(donation_routes.router)
app.include_router(admin_routes.router)


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return {"status": "healthy"}


# 前端静态资源（可选），须在所有路由之后挂载
if settings.STATIC_DIR:
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
