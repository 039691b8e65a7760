"""
retrieval 模块
语义检索接口、Chroma 实现与结果缓存
"""

from .adapter import KnowledgeSearch
from .cache import CachedKnowledgeSearch
from .chroma_search import ChromaKnowledgeSearch
from .config import RetrievalConfig
from .models import KnowledgeFragment, SearchResult

__all__ = [
  "KnowledgeSearch",
  "CachedKnowledgeSearch",
  "ChromaKnowledgeSearch",
  "RetrievalConfig",
  "KnowledgeFragment",
  "SearchResult",
]
