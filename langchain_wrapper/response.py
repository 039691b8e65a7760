"""
统一回复结构
所有回答路径（检索生成、澄清、记忆回溯、兜底）最终都产出 UnifiedResponse，
下游语音合成和形象控制只依赖这一结构。
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from emotion import (
  Emotion,
  ensure_single_marker,
  fallback_emotion,
  parse_emotion_tags,
  strip_emotion_tags,
)


DEFAULT_AGENT_NAME = "QueryRouter"
FALLBACK_SOURCE = "fallback"
FALLBACK_CONFIDENCE = 0.3

_FALLBACK_TEXT = {
  "ja": (
    "申し訳ございません。お探しの情報が見つかりませんでした。"
    "質問を言い換えていただくか、スタッフにお問い合わせください。"
  ),
  "en": (
    "I'm sorry, I couldn't find the specific information you're looking for. "
    "Please try rephrasing your question or contact the staff for assistance."
  ),
}


@dataclass(frozen=True)
class ResponseMetadata:
  """
  回复元数据

  Attributes:
    agent_name: 产出回复的组件名
    confidence: 置信度 0~1
    language: 回复语言
    category: 路由分类
    request_type: 子话题
    sources: 信息来源（knowledge_base / clarification_system / fallback ...）
    processing_info: 处理过程信息（filtered / context_inherited ...）
  """
  agent_name: str
  confidence: float
  language: str
  category: Optional[str] = None
  request_type: Optional[str] = None
  sources: tuple[str, ...] = field(default_factory=tuple)
  processing_info: dict[str, Any] = field(default_factory=dict)

  def to_dict(self) -> dict[str, Any]:
    return {
      "agent_name": self.agent_name,
      "confidence": self.confidence,
      "language": self.language,
      "category": self.category,
      "request_type": self.request_type,
      "sources": list(self.sources),
      "processing_info": dict(self.processing_info),
    }


@dataclass(frozen=True)
class UnifiedResponse:
  """
  统一回复

  text 永远以恰好一个情绪标记开头，且该标记与 emotion 字段一致。
  请通过 UnifiedResponse.create 构造。
  """
  text: str
  emotion: Emotion
  metadata: ResponseMetadata

  @classmethod
  def create(
    cls,
    text: str,
    language: str,
    emotion: Optional[Emotion] = None,
    agent_name: str = DEFAULT_AGENT_NAME,
    confidence: float = 0.8,
    category: Optional[str] = None,
    request_type: Optional[str] = None,
    sources: Optional[list[str]] = None,
    processing_info: Optional[dict[str, Any]] = None,
    kind: Optional[str] = None,
  ) -> "UnifiedResponse":
    """
    构造规范化的回复

    Args:
      text: 回复文本（可带情绪标记）
      language: 回复语言
      emotion: 指定情绪；为 None 时取文本首个标记，再按 kind 兜底
      agent_name: 组件名
      confidence: 置信度（会被截断到 0~1）
      category: 路由分类
      request_type: 子话题
      sources: 信息来源
      processing_info: 处理过程信息
      kind: 回复种类（error / apology / clarification ...），用于兜底情绪

    Returns:
      UnifiedResponse
    """
    chosen = emotion or parse_emotion_tags(text).primary or fallback_emotion(kind)
    return cls(
      text=ensure_single_marker(text, chosen),
      emotion=chosen,
      metadata=ResponseMetadata(
        agent_name=agent_name,
        confidence=max(0.0, min(1.0, float(confidence))),
        language=language,
        category=category,
        request_type=request_type,
        sources=tuple(sources or ()),
        processing_info=dict(processing_info or {}),
      ),
    )

  @property
  def plain_text(self) -> str:
    """去掉情绪标记的正文"""
    return strip_emotion_tags(self.text)

  @property
  def is_fallback(self) -> bool:
    return FALLBACK_SOURCE in self.metadata.sources

  def to_dict(self) -> dict[str, Any]:
    return {
      "text": self.text,
      "emotion": self.emotion.value,
      "metadata": self.metadata.to_dict(),
    }

  def to_voice_request(self, session_id: Optional[str] = None) -> dict[str, Any]:
    """语音合成请求（文本不含标记，情绪单独传递）"""
    return {
      "text": self.plain_text,
      "language": self.metadata.language,
      "emotion": self.emotion.value,
      "session_id": session_id,
      "agent_name": self.metadata.agent_name,
    }

  def to_character_request(self) -> dict[str, Any]:
    """形象控制请求"""
    return {
      "emotion": self.emotion.value,
      "text": self.plain_text,
      "agent_name": self.metadata.agent_name,
    }


def fallback_response(
  language: str = "ja",
  category: Optional[str] = None,
  request_type: Optional[str] = None,
  agent_name: str = DEFAULT_AGENT_NAME,
  reason: str = "",
) -> UnifiedResponse:
  """
  固定的降级回复（sad 道歉，置信度 0.3，来源 fallback）

  Args:
    language: 回复语言
    category: 路由分类
    request_type: 子话题
    agent_name: 组件名
    reason: 降级原因（写入 processing_info）
  """
  text = _FALLBACK_TEXT.get(language, _FALLBACK_TEXT["ja"])
  info = {"fallback_reason": reason} if reason else {}
  return UnifiedResponse.create(
    text=text,
    language=language if language in _FALLBACK_TEXT else "ja",
    emotion=Emotion.SAD,
    agent_name=agent_name,
    confidence=FALLBACK_CONFIDENCE,
    category=category,
    request_type=request_type,
    sources=[FALLBACK_SOURCE],
    processing_info=info,
  )

