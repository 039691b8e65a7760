"""
短期记忆配置
所有可调常量汇总在此，方便调整和测试
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MemoryConfig:
  """短期记忆配置"""
  ttl_seconds: float = 180.0  # 对话轮次存活时间（秒）
  max_entries: int = 100      # 每个 agent 最多保留的轮次数，超出后最旧的先淘汰
  agent_name: str = "shared"  # 存储分区键，多个会话共享同一分区
  # 数据库路径：None = data/short_term_memory.db，":memory:" = 纯内存
  db_path: Optional[str] = None
  recent_limit: int = 10      # get_context 默认取回的轮次数
  content_display_max_length: int = 120  # 上下文字符串中单条内容的最大显示长度


# 存储键前缀
TURN_KEY_PREFIX = "message_"
CLARIFICATION_KEY_PREFIX = "clarification_"
