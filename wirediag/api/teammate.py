"""诊断对话 API 接口

POST /api/teammate
- chat: 一轮对话（带 diagramUrl 时转为图片分析）
- photo: 分析照片
- explain: 解释“为什么”
- reassess: 重新评估
- resolve: 结束会话

explain / reassess / resolve 只作用于已有会话，不会隐式创建。
"""
import logging
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from wirediag.api.deps import (
    get_diagram_dao,
    get_gateway,
    get_session_config,
    get_session_managers,
)
from wirediag.core.gateway.base import ReasoningGateway
from wirediag.core.session.controller import SessionController
from wirediag.core.session.errors import SessionError
from wirediag.dao.diagram_dao import DiagramDAO
from wirediag.models.session import VehicleInfo
from wirediag.utils.config import SessionConfig


logger = logging.getLogger(__name__)

# 创建路由
router = APIRouter()

# 必须指定已有会话的 action
SESSION_ACTIONS = ("explain", "reassess", "resolve")


class TeammateRequest(BaseModel):
    """诊断对话请求"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: Literal["chat", "photo", "explain", "reassess", "resolve"] = "chat"
    session_id: Optional[str] = None
    user_id: str = "anonymous"
    message: str = ""
    vehicle_info: Optional[VehicleInfo] = None
    diagram_url: Optional[str] = None
    diagram_id: Optional[str] = None
    image_url: Optional[str] = None
    comment: Optional[str] = None
    fixed: bool = True


def _error(status_code: int, message: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "errorType": error_type},
    )


def _get_or_create_session(
    request: TeammateRequest,
    sessions: Dict[str, SessionController],
    gateway: ReasoningGateway,
    session_config: SessionConfig,
) -> SessionController:
    controller = sessions.get(request.session_id) if request.session_id else None
    if controller is None:
        controller = SessionController(
            gateway,
            session_id=request.session_id,
            user_id=request.user_id,
            vehicle_info=request.vehicle_info,
            config=session_config,
        )
        sessions[controller.session_id] = controller
        logger.info("创建会话 %s", controller.session_id)
    return controller


@router.post("/teammate")
async def teammate(
    request: TeammateRequest,
    sessions: Dict[str, SessionController] = Depends(get_session_managers),
    gateway: ReasoningGateway = Depends(get_gateway),
    session_config: SessionConfig = Depends(get_session_config),
    dao: DiagramDAO = Depends(get_diagram_dao),
):
    """
    诊断对话

    推理服务失败不会返回 5xx：返回 degraded=true 的模板回复。

    Returns:
        TurnReply JSON（camelCase）+ sessionId、phase
    """
    if request.action == "photo" and not request.image_url:
        return _error(400, "imageUrl is required", "bad_request")

    if request.action in SESSION_ACTIONS and request.session_id not in sessions:
        return _error(400, f"{request.action} requires an existing sessionId", "bad_request")

    if request.diagram_id and not dao.exists(request.diagram_id):
        return _error(404, f"diagram not found: {request.diagram_id}", "not_found")

    controller = _get_or_create_session(request, sessions, gateway, session_config)
    # 载具信息在轮次内（持锁后）写入
    vehicle_info = request.vehicle_info

    if request.diagram_id and request.diagram_id != controller.diagram_id:
        controller.bind_diagram(request.diagram_id, dao.get_components(request.diagram_id))

    try:
        if request.action == "chat":
            reply = await controller.handle_message(
                request.message,
                diagram_url=request.diagram_url,
                vehicle_info=vehicle_info,
            )
        elif request.action == "photo":
            reply = await controller.analyze_photo(
                request.image_url, request.comment, vehicle_info=vehicle_info
            )
        elif request.action == "explain":
            reply = await controller.explain(request.message, vehicle_info=vehicle_info)
        elif request.action == "reassess":
            reply = await controller.reassess(vehicle_info=vehicle_info)
        else:
            reply = await controller.resolve(
                request.message or None, fixed=request.fixed, vehicle_info=vehicle_info
            )
    except SessionError as e:
        return _error(409, str(e), type(e).__name__)

    payload = reply.to_payload()
    payload["sessionId"] = controller.session_id
    payload["phase"] = controller.phase.value
    return payload
