"""
消歧数据模型
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Ambiguity:
  """
  检测到的实体歧义

  Attributes:
    type: "cafe" / "meeting-room"
    options: 候选实体（两项）
  """
  type: str
  options: tuple[str, str]


@dataclass(frozen=True)
class ClarificationRecord:
  """
  待确认的澄清记录

  随短期记忆一起过期，不需要显式的取消状态。

  Attributes:
    type: 歧义类型
    options: 候选实体
    origin_session_id: 发起澄清的会话
    created_at: 创建时间（epoch 秒）
    request_type: 原问题的子话题
  """
  type: str
  options: tuple[str, str]
  origin_session_id: str
  created_at: float
  request_type: Optional[str] = None

  def to_dict(self) -> dict[str, Any]:
    return {
      "type": self.type,
      "options": list(self.options),
      "origin_session_id": self.origin_session_id,
      "created_at": self.created_at,
      "request_type": self.request_type,
    }

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "ClarificationRecord":
    """
    从存储值还原

    Raises:
      ValueError: 记录缺字段或候选数不是 2
    """
    try:
      options = tuple(data["options"])
      record = cls(
        type=str(data["type"]),
        options=(str(options[0]), str(options[1])),
        origin_session_id=str(data["origin_session_id"]),
        created_at=float(data["created_at"]),
        request_type=data.get("request_type"),
      )
    except (KeyError, IndexError, TypeError) as e:
      raise ValueError(f"澄清记录格式错误: {e}") from e
    if len(options) != 2:
      raise ValueError(f"澄清记录候选数错误: {len(options)}")
    return record
