"""
Chroma 知识库检索
为 KnowledgeSearch 提供基于 langchain-chroma + HuggingFace 嵌入的实现
"""

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Optional

from langchain_chroma import Chroma
from langchain_core.documents import Document
from langchain_huggingface import HuggingFaceEmbeddings

from .adapter import KnowledgeSearch
from .config import RetrievalConfig
from .models import KnowledgeFragment, SearchResult

logger = logging.getLogger(__name__)


class ChromaKnowledgeSearch(KnowledgeSearch):
  """
  Chroma 知识库检索

  文档元数据约定：language / category / title。
  相似度使用 Chroma 的 relevance score（已归一化到 0~1）。
  """

  def __init__(
    self,
    config: Optional[RetrievalConfig] = None,
    embeddings: Optional[HuggingFaceEmbeddings] = None,
  ):
    """
    初始化知识库检索

    Args:
      config: 检索配置
      embeddings: 共享的嵌入模型实例（传入以复用，不传则新建）
    """
    self._config = config or RetrievalConfig()

    if embeddings is not None:
      self._embeddings = embeddings
    else:
      # 优先使用 GPU
      import torch
      device = "cuda" if torch.cuda.is_available() else "cpu"
      self._embeddings = HuggingFaceEmbeddings(
        model_name=self._config.embedding_model,
        model_kwargs={"device": device},
      )

    chroma_kwargs: dict = {
      "collection_name": self._config.collection_name,
      "embedding_function": self._embeddings,
    }
    if self._config.persist_directory is not None:
      chroma_kwargs["persist_directory"] = self._config.persist_directory

    self._store = Chroma(**chroma_kwargs)

  # ============================================================
  # 写入
  # ============================================================

  def add_fragments(self, fragments: list[KnowledgeFragment]) -> int:
    """
    批量写入知识片段（similarity 字段忽略）

    Returns:
      写入条数
    """
    if not fragments:
      return 0
    documents = [
      Document(
        page_content=f.content,
        metadata={
          "language": f.language,
          "category": f.category,
          "title": f.title or "",
        },
      )
      for f in fragments
    ]
    ids = [str(uuid.uuid4()) for _ in fragments]
    self._store.add_documents(documents=documents, ids=ids)
    return len(fragments)

  def load_directory(self, directory: Path) -> int:
    """
    从目录加载 JSON 知识文件

    JSON 文件格式：
      [
        {"content": "...", "category": "hours", "language": "ja", "title": "..."},
        ...
      ]

    Returns:
      加载的片段数量
    """
    if not directory.exists():
      logger.info("知识目录不存在: %s，跳过加载", directory)
      return 0

    total = 0
    for json_file in sorted(directory.glob("*.json")):
      total += self._load_file(json_file)
    logger.info("加载了 %d 条知识片段", total)
    return total

  def _load_file(self, path: Path) -> int:
    """加载单个 JSON 文件"""
    try:
      data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, IOError) as e:
      logger.error("读取知识文件失败 %s: %s", path, e)
      return 0

    if not isinstance(data, list):
      logger.error("知识文件格式错误（需要数组）: %s", path)
      return 0

    fragments = []
    for item in data:
      content = item.get("content", "").strip()
      if not content:
        continue
      fragments.append(KnowledgeFragment(
        content=content,
        similarity=0.0,
        category=item.get("category", "").strip(),
        language=item.get("language", "ja").strip() or "ja",
        title=item.get("title"),
      ))
    return self.add_fragments(fragments)

  def count(self) -> int:
    """获取文档总数"""
    return self._store._collection.count()

  # ============================================================
  # 检索
  # ============================================================

  @staticmethod
  def _build_filter(language: str, category: Optional[str]) -> dict:
    if category:
      return {"$and": [{"language": language}, {"category": category}]}
    return {"language": language}

  def _search_sync(
    self,
    query: str,
    language: str,
    category: Optional[str],
    limit: int,
    threshold: float,
  ) -> list[KnowledgeFragment]:
    pairs = self._store.similarity_search_with_relevance_scores(
      query,
      k=limit * self._config.overfetch_multiplier,
      filter=self._build_filter(language, category),
    )
    fragments = []
    for doc, score in pairs:
      similarity = max(0.0, min(1.0, float(score)))
      if similarity < threshold:
        continue
      meta = doc.metadata or {}
      fragments.append(KnowledgeFragment(
        content=doc.page_content,
        similarity=similarity,
        category=meta.get("category", ""),
        language=meta.get("language", language),
        title=meta.get("title") or None,
      ))
    fragments.sort(key=lambda f: f.similarity, reverse=True)
    return fragments[:limit]

  async def search(
    self,
    query: str,
    language: str,
    category: Optional[str] = None,
    limit: int = 10,
    threshold: float = 0.3,
  ) -> SearchResult:
    try:
      fragments = await asyncio.to_thread(
        self._search_sync, query, language, category, limit, threshold,
      )
    except Exception as e:
      logger.error("知识库检索失败: %s", e)
      return SearchResult.failed(str(e))

    logger.debug(
      "知识库检索: %d 条 (language=%s, category=%s)",
      len(fragments), language, category,
    )
    return SearchResult(success=True, results=tuple(fragments))
