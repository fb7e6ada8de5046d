"""配置加载模块"""
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel


class CallTemperatureConfig(BaseModel):
    """各调用形态的温度

    extract 需要稳定输出，respond 允许更自然的表达。
    """
    extract: float = 0.1
    hypothesize: float = 0.5
    respond: float = 0.8
    explain: float = 0.7
    vision: float = 0.2


class LLMConfig(BaseModel):
    """LLM 配置"""
    api_base: str
    api_key: str
    model: str
    vision_model: Optional[str] = None  # 不填则与 model 相同
    temperature: float = 0.2
    temperatures: CallTemperatureConfig = CallTemperatureConfig()
    max_tokens: int = 2048
    timeout: float = 30  # 秒
    max_retries: int = 1  # 1 表示不重试
    retry_delay: float = 1  # 秒
    system_prompt: str = ""


class SessionConfig(BaseModel):
    """诊断会话配置"""
    context_window: int = 10  # 构建 prompt 时使用的最近对话条数
    reassess_penalty: int = 20  # 重新评估时扣减的置信度
    initial_confidence: int = 50  # 尚无假设时的基准置信度
    max_quick_suggestions: int = 4


class WebConfig(BaseModel):
    """Web 服务配置"""
    host: str = "127.0.0.1"
    port: int = 8000


class Config(BaseModel):
    """全局配置"""
    llm: LLMConfig
    session: SessionConfig = SessionConfig()
    web: WebConfig = WebConfig()


def load_config(config_path: Optional[str] = None) -> Config:
    """
    加载配置文件

    Args:
        config_path: 配置文件路径，默认按以下顺序查找：
                     1. 环境变量 CONFIG_PATH
                     2. 项目根目录的 config.yaml

    Returns:
        Config: 配置对象
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH")

    if config_path is None:
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"配置文件不存在: {config_path}\n"
            f"请复制 config.yaml.example 并修改为 config.yaml"
        )

    with open(config_path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    return Config(**config_dict)
