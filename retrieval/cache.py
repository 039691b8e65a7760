"""
检索结果缓存
进程内短期缓存，只用于减少重复检索；未命中或过期不影响正确性
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Optional

from .adapter import KnowledgeSearch
from .models import SearchResult

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str, Optional[str], int, float]


class CachedKnowledgeSearch(KnowledgeSearch):
  """
  带 TTL 的检索缓存装饰器

  只缓存成功的结果；超过容量时按最久未使用淘汰。
  """

  def __init__(
    self,
    inner: KnowledgeSearch,
    ttl_seconds: float = 60.0,
    max_entries: int = 256,
    clock: Callable[[], float] = time.monotonic,
  ):
    self._inner = inner
    self._ttl = ttl_seconds
    self._max_entries = max_entries
    self._clock = clock
    self._entries: OrderedDict[_CacheKey, tuple[float, SearchResult]] = OrderedDict()
    self.hits = 0
    self.misses = 0

  async def search(
    self,
    query: str,
    language: str,
    category: Optional[str] = None,
    limit: int = 10,
    threshold: float = 0.3,
  ) -> SearchResult:
    key: _CacheKey = (query.strip(), language, category, limit, threshold)
    now = self._clock()

    cached = self._entries.get(key)
    if cached is not None:
      expires_at, result = cached
      if expires_at > now:
        self._entries.move_to_end(key)
        self.hits += 1
        return result
      del self._entries[key]

    self.misses += 1
    result = await self._inner.search(
      query, language, category=category, limit=limit, threshold=threshold,
    )
    if result.success:
      self._entries[key] = (now + self._ttl, result)
      while len(self._entries) > self._max_entries:
        self._entries.popitem(last=False)
    return result

  def clear(self) -> None:
    self._entries.clear()
