"""应用入口：负责创建 FastAPI 实例、注册中间件与异常处理器，并挂载业务路由。"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.middleware.request_id import RequestIdMiddleware
from app.packages import get_active_package

package = get_active_package()
package.setup_logging()
settings = package.get_settings()
logger = package.logger


@asynccontextmanager
async def lifespan(_: FastAPI):
    """初始化数据库结构，确认服务可用后输出成功日志。"""
    package.init_db()
    logger.info("SUCCESS - Application running at http://127.0.0.1:%s", settings.app_port)
    yield


app = FastAPI(title=settings.project_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(StarletteHTTPException, package.http_exception_handler)
app.add_exception_handler(RequestValidationError, package.validation_exception_handler)
app.add_exception_handler(Exception, package.generic_exception_handler)


@app.get("/health")
async def health_check() -> dict:
    """提供健康检查接口，便于编排器与监控系统探活。"""
    return package.create_response("OK", status="healthy")


app.include_router(package.api_router, prefix=settings.api_prefix)
