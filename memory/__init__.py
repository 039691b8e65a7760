"""
memory 模块
短期对话记忆：带过期时间的追加式日志 + 上下文继承推导

独立于 query_router 和 langchain_wrapper，持久化到 SQLite。
"""

from .config import MemoryConfig, TURN_KEY_PREFIX, CLARIFICATION_KEY_PREFIX
from .models import ConversationTurn, MemoryContext
from .store import MemoryPersistence
from .manager import ShortTermMemory
from .extraction import (
  ENTITY_MARKERS,
  DAY_OF_WEEK_PATTERN,
  detect_entity,
  detect_entities,
  extract_request_type,
  has_day_of_week,
  entity_display_name,
)
from .formatter import format_context

__all__ = [
  # 配置
  "MemoryConfig",
  "TURN_KEY_PREFIX",
  "CLARIFICATION_KEY_PREFIX",
  # 数据模型
  "ConversationTurn",
  "MemoryContext",
  # 存储
  "MemoryPersistence",
  # 管理器
  "ShortTermMemory",
  # 抽取
  "ENTITY_MARKERS",
  "DAY_OF_WEEK_PATTERN",
  "detect_entity",
  "detect_entities",
  "extract_request_type",
  "has_day_of_week",
  "entity_display_name",
  # 格式化
  "format_context",
]
