"""
disambiguation 模块
实体歧义检测、澄清问题和「另一个」追问的解决
"""

from .models import Ambiguity, ClarificationRecord
from .rules import (
  CAFE_AMBIGUITY,
  MEETING_ROOM_AMBIGUITY,
  AMBIGUITIES,
  OTHER_OPTION_PATTERNS,
  detect_ambiguity,
  is_other_option_query,
)
from .knowledge import CANNED_ANSWERS, canned_answer, option_description
from .manager import DisambiguationManager

__all__ = [
  # 数据模型
  "Ambiguity",
  "ClarificationRecord",
  # 规则
  "CAFE_AMBIGUITY",
  "MEETING_ROOM_AMBIGUITY",
  "AMBIGUITIES",
  "OTHER_OPTION_PATTERNS",
  "detect_ambiguity",
  "is_other_option_query",
  # 固定知识
  "CANNED_ANSWERS",
  "canned_answer",
  "option_description",
  # 管理器
  "DisambiguationManager",
]
