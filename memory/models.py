"""
短期记忆数据模型
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class ConversationTurn:
  """
  一轮对话（写入后不可变）

  Attributes:
    role: "user" 或 "assistant"
    content: 文本内容
    timestamp: 写入时间（epoch 秒）
    session_id: 会话 ID
    emotion: 回复情绪（assistant 轮）
    request_type: 该轮的子话题（hours / price / ...）
    entity: 该轮涉及的实体（engineer / saino / ...）
  """
  role: str
  content: str
  timestamp: float
  session_id: Optional[str] = None
  emotion: Optional[str] = None
  request_type: Optional[str] = None
  entity: Optional[str] = None

  def to_dict(self) -> dict[str, Any]:
    return {
      "role": self.role,
      "content": self.content,
      "timestamp": self.timestamp,
      "session_id": self.session_id,
      "emotion": self.emotion,
      "request_type": self.request_type,
      "entity": self.entity,
    }

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "ConversationTurn":
    return cls(
      role=data["role"],
      content=data["content"],
      timestamp=float(data["timestamp"]),
      session_id=data.get("session_id"),
      emotion=data.get("emotion"),
      request_type=data.get("request_type"),
      entity=data.get("entity"),
    )


@dataclass(frozen=True)
class MemoryContext:
  """
  由当前有效轮次即时推导的上下文（不持久化）

  Attributes:
    recent_turns: 最近轮次，旧 → 新
    inherited_request_type: 可继承的子话题
    inherited_entity: 可继承的实体
    context_string: 可嵌入 prompt 的对话摘录
  """
  recent_turns: tuple[ConversationTurn, ...] = field(default_factory=tuple)
  inherited_request_type: Optional[str] = None
  inherited_entity: Optional[str] = None
  context_string: str = ""

  @property
  def is_empty(self) -> bool:
    return not self.recent_turns
