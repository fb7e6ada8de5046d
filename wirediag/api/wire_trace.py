"""导线追踪 API 接口

POST /api/wire-trace
- trace_path: 两个元件之间的最短导线路径
- extract_components: 已保存的元件识别结果
- analyze_component: 元件及其所有连接
"""
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from wirediag.core.graph.circuit_graph import CircuitGraph
from wirediag.core.graph.errors import GraphIntegrityError
from wirediag.core.graph.tracing import trace_path
from wirediag.api.deps import get_diagram_dao
from wirediag.dao.diagram_dao import DiagramDAO


logger = logging.getLogger(__name__)

# 创建路由
router = APIRouter()


class WireTraceRequest(BaseModel):
    """导线追踪请求"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: Literal["trace_path", "extract_components", "analyze_component"]
    diagram_id: str
    start_component_id: Optional[str] = None
    end_component_id: Optional[str] = None
    component_id: Optional[str] = None


def _error(status_code: int, message: str, error_type: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "error": message}
    if error_type:
        content["errorType"] = error_type
    return JSONResponse(status_code=status_code, content=content)


@router.post("/wire-trace")
async def wire_trace(
    request: WireTraceRequest,
    dao: DiagramDAO = Depends(get_diagram_dao),
):
    """
    导线追踪

    Returns:
        trace_path: {success, path?: {from, to, path, connections, length, wireColor?, wireGauge?}, error?}
        extract_components: {success, components, count}
        analyze_component: {success, analysis}
    """
    if not dao.exists(request.diagram_id):
        return _error(404, f"diagram not found: {request.diagram_id}")

    components = dao.get_components(request.diagram_id)

    if request.action == "extract_components":
        return {
            "success": True,
            "components": [c.model_dump(mode="json", by_alias=True) for c in components],
            "count": len(components),
        }

    connections = dao.get_connections(request.diagram_id)

    try:
        if request.action == "trace_path":
            start_id = request.start_component_id
            end_id = request.end_component_id
            if not start_id or not end_id:
                return _error(400, "startComponentId and endComponentId are required")
            if start_id == end_id:
                return _error(400, "start and end components must be different")
            return trace_path(components, connections, start_id, end_id)

        # analyze_component
        if not request.component_id:
            return _error(400, "componentId is required")
        graph = CircuitGraph.build(components, connections)
        detail = graph.describe_component(request.component_id)
        if detail is None:
            return _error(404, f"component not found: {request.component_id}")
        return {"success": True, "analysis": detail.model_dump(mode="json", by_alias=True)}

    except GraphIntegrityError as e:
        logger.error("接线图 %s 数据异常: %s", request.diagram_id, e)
        return _error(422, str(e), error_type="graph_integrity")
