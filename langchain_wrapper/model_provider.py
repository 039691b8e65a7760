"""
模型提供者
按用途（回答生成 / 查询分类）创建 LangChain 聊天模型，支持多种模型源切换
"""

import os
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


class ModelType(Enum):
  """模型类型枚举"""
  OPENAI = "openai"
  ANTHROPIC = "anthropic"
  GEMINI = "gemini"
  LOCAL_QWEN = "local_qwen"


class ModelRole(Enum):
  """模型用途"""
  SYNTHESIS = "synthesis"    # 回答生成、记忆回溯
  CLASSIFIER = "classifier"  # 查询分类（小模型即可）


# 用途 → 各模型源的默认模型
ROLE_MODELS = {
  ModelType.OPENAI: {
    ModelRole.SYNTHESIS: "gpt-4o-mini",
    ModelRole.CLASSIFIER: "gpt-4o-mini",
  },
  ModelType.ANTHROPIC: {
    ModelRole.SYNTHESIS: "claude-sonnet-4-20250514",
    ModelRole.CLASSIFIER: "claude-haiku-4-5-20251001",
  },
  ModelType.GEMINI: {
    ModelRole.SYNTHESIS: "gemini-2.5-flash",
    ModelRole.CLASSIFIER: "gemini-2.0-flash",
  },
  ModelType.LOCAL_QWEN: {
    ModelRole.SYNTHESIS: "Qwen/Qwen3-8B",
    ModelRole.CLASSIFIER: "Qwen/Qwen3-1.7B",
  },
}

# 回答要短且稳定
ROLE_DEFAULT_KWARGS = {
  ModelRole.SYNTHESIS: {"temperature": 0.3},
  ModelRole.CLASSIFIER: {"temperature": 0.0},
}

PROVIDER_ENV_KEY = "CONCIERGE_MODEL_PROVIDER"


class ModelProvider:
  """
  模型提供者类
  根据模型类型创建相应的 LangChain 模型实例，密钥优先读环境变量
  """

  def __init__(self, secrets_path: Optional[Path] = None):
    """
    初始化模型提供者

    Args:
      secrets_path: API密钥配置文件路径，默认为项目根目录下的 secrets/api_keys.json
    """
    if secrets_path is None:
      project_root = Path(__file__).parent.parent
      secrets_path = project_root / "secrets" / "api_keys.json"

    self.secrets_path = secrets_path
    self._secrets: dict = {}

    if secrets_path.exists():
      try:
        self._secrets = json.loads(secrets_path.read_text(encoding="utf-8"))
      except (OSError, json.JSONDecodeError) as e:
        logger.error("读取密钥文件失败: %s", e)

  def _get_secret(self, key: str) -> Optional[str]:
    """获取密钥，优先从环境变量获取"""
    env_key = key.upper()
    if env_key in os.environ:
      return os.environ[env_key]
    return self._secrets.get(key)

  def default_provider(self) -> ModelType:
    """
    默认模型源

    环境变量 CONCIERGE_MODEL_PROVIDER 或密钥文件中的 model_provider，缺省为 OpenAI

    Raises:
      ValueError: 配置了未知的模型源
    """
    name = self._get_secret(PROVIDER_ENV_KEY.lower()) or self._secrets.get("model_provider")
    if not name:
      return ModelType.OPENAI
    try:
      return ModelType(name.strip().lower())
    except ValueError:
      raise ValueError(f"不支持的模型类型: {name}") from None

  def get_model(
    self,
    model_type: ModelType,
    model_name: Optional[str] = None,
    **kwargs
  ) -> BaseChatModel:
    """
    获取指定类型的模型实例

    Args:
      model_type: 模型类型
      model_name: 模型名称，不指定则使用默认值
      **kwargs: 传递给模型的额外参数

    Returns:
      BaseChatModel 实例

    Raises:
      ValueError: 不支持的模型类型或缺少必要配置时抛出
    """
    if model_type == ModelType.OPENAI:
      return self._create_openai_model(model_name, **kwargs)
    elif model_type == ModelType.ANTHROPIC:
      return self._create_anthropic_model(model_name, **kwargs)
    elif model_type == ModelType.GEMINI:
      return self._create_gemini_model(model_name, **kwargs)
    elif model_type == ModelType.LOCAL_QWEN:
      return self._create_local_qwen_model(model_name, **kwargs)
    else:
      raise ValueError(f"不支持的模型类型: {model_type}")

  def get_model_for(
    self,
    role: ModelRole,
    model_type: Optional[ModelType] = None,
    **kwargs
  ) -> BaseChatModel:
    """
    按用途获取模型

    Args:
      role: 模型用途
      model_type: 模型源，不指定则使用 default_provider()
      **kwargs: 覆盖默认参数
    """
    provider = model_type or self.default_provider()
    params = {**ROLE_DEFAULT_KWARGS[role], **kwargs}
    model_name = ROLE_MODELS[provider][role]
    logger.info("创建模型: %s / %s (%s)", provider.value, model_name, role.value)
    return self.get_model(provider, model_name=model_name, **params)

  def _create_openai_model(
    self,
    model_name: Optional[str] = None,
    **kwargs
  ) -> BaseChatModel:
    """创建 OpenAI 模型"""
    from langchain_openai import ChatOpenAI

    api_key = self._get_secret("openai_api_key")
    if not api_key:
      raise ValueError("未配置 OpenAI API Key，请设置环境变量 OPENAI_API_KEY 或在 secrets/api_keys.json 中配置")

    return ChatOpenAI(
      model=model_name or ROLE_MODELS[ModelType.OPENAI][ModelRole.SYNTHESIS],
      api_key=api_key,
      **kwargs
    )

  def _create_anthropic_model(
    self,
    model_name: Optional[str] = None,
    **kwargs
  ) -> BaseChatModel:
    """创建 Anthropic 模型"""
    from langchain_anthropic import ChatAnthropic

    api_key = self._get_secret("anthropic_api_key")
    if not api_key:
      raise ValueError("未配置 Anthropic API Key，请设置环境变量 ANTHROPIC_API_KEY 或在 secrets/api_keys.json 中配置")

    return ChatAnthropic(
      model=model_name or ROLE_MODELS[ModelType.ANTHROPIC][ModelRole.SYNTHESIS],
      api_key=api_key,
      **kwargs
    )

  def _create_gemini_model(
    self,
    model_name: Optional[str] = None,
    **kwargs
  ) -> BaseChatModel:
    """
    创建 Gemini 模型
    通过 Google AI 的 OpenAI 兼容接口调用
    """
    from langchain_openai import ChatOpenAI

    api_key = self._get_secret("gemini_api_key")
    if not api_key:
      raise ValueError(
        "未配置 Gemini API Key，请设置环境变量 GEMINI_API_KEY "
        "或在 secrets/api_keys.json 中配置 gemini_api_key"
      )

    return ChatOpenAI(
      model=model_name or ROLE_MODELS[ModelType.GEMINI][ModelRole.SYNTHESIS],
      api_key=api_key,
      base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
      **kwargs
    )

  def _create_local_qwen_model(
    self,
    model_name: Optional[str] = None,
    **kwargs
  ) -> BaseChatModel:
    """
    创建本地 Qwen 模型
    通过 vllm 提供的 OpenAI 兼容接口调用
    """
    from langchain_openai import ChatOpenAI

    base_url = self._get_secret("local_qwen_base_url") or "http://localhost:8000/v1"

    return ChatOpenAI(
      model=model_name or ROLE_MODELS[ModelType.LOCAL_QWEN][ModelRole.SYNTHESIS],
      api_key="not-needed",  # 本地部署通常不需要key
      base_url=base_url,
      **kwargs
    )

  # ============================================================
  # 预设模型工厂方法
  # ============================================================

  @classmethod
  def synthesis_model(cls, provider: Optional[ModelType] = None, **kwargs) -> BaseChatModel:
    """回答生成模型"""
    return cls().get_model_for(ModelRole.SYNTHESIS, provider, **kwargs)

  @classmethod
  def classifier_model(cls, provider: Optional[ModelType] = None, **kwargs) -> BaseChatModel:
    """查询分类模型"""
    return cls().get_model_for(ModelRole.CLASSIFIER, provider, **kwargs)
