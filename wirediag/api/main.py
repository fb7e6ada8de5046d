"""FastAPI 主应用"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wirediag.api.session import router as session_router
from wirediag.api.teammate import router as teammate_router
from wirediag.api.wire_trace import router as wire_trace_router

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# 创建 FastAPI 应用
app = FastAPI(
    title="接线图排障助手 API",
    description="基于接线图的多轮电气故障诊断",
    version="0.1.0",
)

# 配置 CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应该限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(wire_trace_router, prefix="/api", tags=["wire-trace"])
app.include_router(teammate_router, prefix="/api", tags=["teammate"])
app.include_router(session_router, prefix="/api", tags=["session"])


@app.get("/")
async def root():
    """根路径"""
    return {
        "message": "接线图排障助手 API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "ok"}
