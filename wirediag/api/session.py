"""会话管理 API 接口"""
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from wirediag.api.deps import get_session_managers
from wirediag.core.session.controller import SessionController

# 创建路由
router = APIRouter()


class ResolutionNoteRequest(BaseModel):
    """最终结论"""

    note: str


@router.get("/sessions")
async def list_sessions(
    limit: int = 10,
    sessions: Dict[str, SessionController] = Depends(get_session_managers),
):
    """
    列出当前活跃的会话

    会话存储在内存中，服务重启后会丢失。
    """
    items = [controller.to_dict() for controller in list(sessions.values())[:limit]]
    return {"sessions": items, "total": len(sessions)}


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    sessions: Dict[str, SessionController] = Depends(get_session_managers),
):
    """
    获取会话详情

    包括假设历史、测量记录和最近的对话。
    """
    controller = sessions.get(session_id)
    if not controller:
        raise HTTPException(status_code=404, detail="会话不存在或已过期")

    state = controller.state
    detail = controller.to_dict()
    detail["hypothesisHistory"] = [
        {
            "statement": h.statement,
            "confidence": h.confidence,
            "reasoning": h.reasoning,
            "alternatives": list(h.alternatives),
            "createdAt": h.created_at.isoformat(),
        }
        for h in state.hypothesis_history
    ]
    detail["measurements"] = [m.model_dump() for m in state.measurements]
    detail["messages"] = [
        {"role": m.role, "content": m.content, "timestamp": m.timestamp.isoformat()}
        for m in controller.memory.recent_window(controller.config.context_window)
    ]
    return detail


@router.post("/sessions/{session_id}/note")
async def store_resolution_note(
    session_id: str,
    request: ResolutionNoteRequest,
    sessions: Dict[str, SessionController] = Depends(get_session_managers),
):
    """记录最终结论（会话结束后仍允许）"""
    controller = sessions.get(session_id)
    if not controller:
        raise HTTPException(status_code=404, detail="会话不存在或已过期")
    try:
        controller.store_resolution_note(request.note)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"sessionId": session_id, "resolutionNote": controller.state.resolution_note}


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    sessions: Dict[str, SessionController] = Depends(get_session_managers),
):
    """
    删除会话

    删除指定的诊断会话，释放资源。
    """
    if session_id in sessions:
        del sessions[session_id]
        return {"message": "会话已删除", "sessionId": session_id}
    else:
        raise HTTPException(status_code=404, detail="会话不存在")
