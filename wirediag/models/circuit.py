"""电路图领域模型

本模块定义接线图解析结果的数据结构：
- Component: 元件（图中的节点）
- Connection: 导线连接（图中的边）
- Diagram: 接线图元数据

元件和连接由上游的图像识别流程产出，进入本系统后不可变。
对外 JSON 使用 camelCase 字段名（partNumber、fromComponentId），构造时两种写法都接受。
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ComponentType(str, Enum):
    """元件类型"""
    RELAY = "relay"
    FUSE = "fuse"
    SWITCH = "switch"
    SENSOR = "sensor"
    ACTUATOR = "actuator"
    CONNECTOR = "connector"
    POWER_SOURCE = "power_source"
    OTHER = "other"


class SignalType(str, Enum):
    """导线信号类型"""
    POWER = "power"
    GROUND = "ground"
    SIGNAL = "signal"
    DATA = "data"


class Component(BaseModel):
    """元件"""

    model_config = ConfigDict(
        frozen=True,
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    name: str
    type: ComponentType = ComponentType.OTHER
    location: Optional[str] = None
    part_number: Optional[str] = None
    function: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value):
        # 识别结果里常见 "circuit_breaker"、"Relay" 之类的写法，无法识别的归为 other
        if isinstance(value, ComponentType):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace(" ", "_")
            try:
                return ComponentType(normalized)
            except ValueError:
                return ComponentType.OTHER
        return ComponentType.OTHER


class Connection(BaseModel):
    """导线连接

    显示时有方向（from → to），路径追踪时按无向边处理。
    """

    model_config = ConfigDict(
        frozen=True,
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    from_component_id: str
    to_component_id: str
    wire_color: Optional[str] = None
    wire_gauge: Optional[str] = None
    signal_type: SignalType = SignalType.SIGNAL
    expected_voltage: Optional[float] = None

    @field_validator("signal_type", mode="before")
    @classmethod
    def _coerce_signal_type(cls, value):
        if value is None:
            return SignalType.SIGNAL
        if isinstance(value, str):
            try:
                return SignalType(value.strip().lower())
            except ValueError:
                return SignalType.SIGNAL
        return value

    def other_end(self, component_id: str) -> str:
        """返回连接另一端的元件 ID"""
        if component_id == self.from_component_id:
            return self.to_component_id
        return self.from_component_id


class Diagram(BaseModel):
    """接线图元数据"""

    model_config = ConfigDict(from_attributes=True)

    diagram_id: str
    title: str = ""
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    system: Optional[str] = None
    image_url: Optional[str] = None
