"""
路由数据模型
"""

from dataclasses import dataclass
from typing import Optional

from disambiguation.models import Ambiguity


class Category:
  """路由分类（封闭集合）"""
  BUSINESS_HOURS = "business-hours"
  PRICING = "pricing"
  LOCATION = "location"
  FACILITY_INFO = "facility-info"
  EVENTS = "events"
  MEMORY_RECALL = "memory-recall"
  GENERAL_KNOWLEDGE = "general-knowledge"

  ALL = (
    BUSINESS_HOURS,
    PRICING,
    LOCATION,
    FACILITY_INFO,
    EVENTS,
    MEMORY_RECALL,
    GENERAL_KNOWLEDGE,
  )


REQUEST_TYPES = ("hours", "price", "location", "access", "booking", "facility", "wifi")

# 子话题 → 路由分类
REQUEST_TYPE_CATEGORY = {
  "hours": Category.BUSINESS_HOURS,
  "price": Category.PRICING,
  "location": Category.LOCATION,
  "access": Category.LOCATION,
  "booking": Category.FACILITY_INFO,
  "facility": Category.FACILITY_INFO,
  "wifi": Category.FACILITY_INFO,
}


@dataclass(frozen=True)
class RouteResult:
  """
  分类结果

  Attributes:
    category: 路由分类
    request_type: 子话题（可为 None）
    language: 回复语言
    confidence: 置信度 0~1
    entity: 查询中明确提到的实体
    ambiguity: 需要澄清时的歧义信息
    reason: 命中原因（调试用）
  """
  category: str
  request_type: Optional[str]
  language: str
  confidence: float
  entity: Optional[str] = None
  ambiguity: Optional[Ambiguity] = None
  reason: str = ""

  @property
  def needs_clarification(self) -> bool:
    return self.ambiguity is not None


@dataclass(frozen=True)
class EnhancedQuery:
  """
  上下文改写后的查询

  Attributes:
    query: 用于检索的查询（未改写时等于 original）
    original: 原始查询
    request_type: 最终子话题（自身或继承）
    entity: 最终实体（自身优先于继承）
    inherited: 是否使用了记忆继承
    short_context: 是否判定为省略型短查询
  """
  query: str
  original: str
  request_type: Optional[str] = None
  entity: Optional[str] = None
  inherited: bool = False
  short_context: bool = False
