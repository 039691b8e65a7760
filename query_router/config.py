"""
路由配置
所有可调常量汇总在此，方便调整和测试
"""

from dataclasses import dataclass, field

from memory.config import MemoryConfig
from ranking.config import ScorerConfig


@dataclass(frozen=True)
class RouterConfig:
  """查询路由配置"""
  # 检索
  retrieval_limit: int = 10          # 单次检索最多取回的片段数
  retrieval_threshold: float = 0.3   # 最低相似度
  context_fragments: int = 3         # 拼接进生成上下文的片段数

  # 超时（秒），每个外部调用都必须有上限
  classification_timeout: float = 5.0
  retrieval_timeout: float = 10.0
  generation_timeout: float = 20.0
  overall_timeout: float = 30.0

  # 分类
  classification_threshold: float = 0.6

  # 回复
  agent_name: str = "QueryRouter"
  success_confidence: float = 0.85
  append_practical_advice: bool = True

  scorer: ScorerConfig = field(default_factory=ScorerConfig)
  memory: MemoryConfig = field(default_factory=MemoryConfig)

  def __post_init__(self):
    if self.retrieval_limit <= 0:
      raise ValueError(f"retrieval_limit 必须为正数: {self.retrieval_limit}")
    if not 0.0 <= self.retrieval_threshold <= 1.0:
      raise ValueError(f"retrieval_threshold 超出范围: {self.retrieval_threshold}")
    timeouts = (
      self.classification_timeout, self.retrieval_timeout,
      self.generation_timeout, self.overall_timeout,
    )
    if min(timeouts) <= 0:
      raise ValueError("超时必须为正数")
