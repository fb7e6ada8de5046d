"""Config 模块单元测试"""
import os
import tempfile

import pytest
import yaml

from wirediag.utils.config import Config, LLMConfig, SessionConfig, load_config


class TestConfigModels:
    """配置模型测试"""

    def test_llm_config_defaults(self):
        """测试: LLM 配置默认值"""
        config = LLMConfig(api_base="https://api.test.com", api_key="test-key", model="gpt-4")

        assert config.temperature == 0.2
        assert config.max_retries == 1
        assert config.vision_model is None
        assert config.temperatures.extract == 0.1
        assert config.temperatures.respond == 0.8

    def test_session_config_defaults(self):
        """测试: 会话配置默认值"""
        config = SessionConfig()

        assert config.context_window == 10
        assert config.reassess_penalty == 20
        assert config.max_quick_suggestions == 4

    def test_full_config(self):
        """测试: 完整配置"""
        config = Config(llm=LLMConfig(api_base="http://x", api_key="k", model="m"))

        assert config.session.initial_confidence == 50
        assert config.web.port == 8000


class TestLoadConfig:
    """load_config 测试"""

    def _write(self, tmpdir, data):
        path = os.path.join(tmpdir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)
        return path

    def test_load_from_path(self):
        """测试: 从指定路径加载"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, {
                "llm": {
                    "api_base": "https://api.test.com",
                    "api_key": "test-key",
                    "model": "gpt-4o",
                    "vision_model": "gpt-4o-vision",
                    "temperatures": {"respond": 0.6},
                },
                "session": {"context_window": 6},
            })

            config = load_config(path)

        assert config.llm.model == "gpt-4o"
        assert config.llm.vision_model == "gpt-4o-vision"
        assert config.llm.temperatures.respond == 0.6
        assert config.llm.temperatures.extract == 0.1
        assert config.session.context_window == 6

    def test_load_from_env(self, monkeypatch):
        """测试: 从环境变量 CONFIG_PATH 加载"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, {"llm": {"api_base": "http://x", "api_key": "k", "model": "env-model"}})
            monkeypatch.setenv("CONFIG_PATH", path)

            config = load_config()

        assert config.llm.model == "env-model"

    def test_missing_file(self):
        """测试: 配置文件不存在"""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_missing_llm_section(self):
        """测试: 缺少 llm 配置"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, {"session": {}})

            with pytest.raises(Exception):
                load_config(path)
