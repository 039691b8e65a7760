"""
检索配置
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RetrievalConfig:
  """知识库检索配置"""
  collection_name: str = "facility_knowledge"
  embedding_model: str = "intfloat/multilingual-e5-small"  # 日英双语
  persist_directory: Optional[str] = "data/knowledge_store"
  overfetch_multiplier: int = 3   # 先多取，再按语言/分类过滤
  cache_ttl_seconds: float = 60.0  # 检索结果缓存时间（仅优化用）
  cache_max_entries: int = 256
