"""
语义检索接口
核心只通过 KnowledgeSearch.search 访问知识库，具体向量引擎由实现类决定
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import SearchResult


class KnowledgeSearch(ABC):
  """
  语义检索接口

  实现类不得抛出异常：任何失败都返回 SearchResult(success=False)。
  """

  @abstractmethod
  async def search(
    self,
    query: str,
    language: str,
    category: Optional[str] = None,
    limit: int = 10,
    threshold: float = 0.3,
  ) -> SearchResult:
    """
    检索知识片段

    Args:
      query: 查询文本
      language: "ja" 或 "en"
      category: 只取该分类（None 表示不限）
      limit: 最大返回数
      threshold: 最低相似度

    Returns:
      SearchResult，results 按相似度降序
    """
