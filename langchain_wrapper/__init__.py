"""
langchain_wrapper 模块
提供 LLM 交互层封装：模型提供者、回答生成器、统一回复结构
"""

from .model_provider import ModelType, ModelRole, ModelProvider
from .response import (
  DEFAULT_AGENT_NAME,
  FALLBACK_SOURCE,
  FALLBACK_CONFIDENCE,
  ResponseMetadata,
  UnifiedResponse,
  fallback_response,
)
from .synthesizer import (
  ResponseSynthesizer,
  Processor,
  # 内置处理器
  strip_whitespace,
  remove_empty_lines,
  collapse_adjacent_markers,
  recall_mode,
)

__all__ = [
  "ModelType",
  "ModelRole",
  "ModelProvider",
  # 统一回复
  "DEFAULT_AGENT_NAME",
  "FALLBACK_SOURCE",
  "FALLBACK_CONFIDENCE",
  "ResponseMetadata",
  "UnifiedResponse",
  "fallback_response",
  # 回答生成
  "ResponseSynthesizer",
  "recall_mode",
  # 处理器类型和内置处理器
  "Processor",
  "strip_whitespace",
  "remove_empty_lines",
  "collapse_adjacent_markers",
]
