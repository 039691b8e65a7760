"""
路由器组装
按配置创建知识库检索、检索缓存、短期记忆和模型，组装成 QueryRouter
"""

import logging
from typing import Optional

from langchain_wrapper import ModelProvider, ModelRole, ModelType
from memory import ShortTermMemory
from retrieval import CachedKnowledgeSearch, ChromaKnowledgeSearch, KnowledgeSearch, RetrievalConfig
from .config import RouterConfig
from .router import QueryRouter

logger = logging.getLogger(__name__)


def create_router(
  config: Optional[RouterConfig] = None,
  retrieval_config: Optional[RetrievalConfig] = None,
  search: Optional[KnowledgeSearch] = None,
  model_type: Optional[ModelType] = None,
  use_models: bool = True,
  provider: Optional[ModelProvider] = None,
) -> QueryRouter:
  """
  创建查询路由器

  Args:
    config: 路由配置（含短期记忆配置）
    retrieval_config: 知识库检索配置
    search: 现成的检索实现（不传则创建 Chroma 知识库）
    model_type: 模型源，不指定则由 ModelProvider 决定
    use_models: False 时不创建任何模型（规则分类 + 直接摘取上下文）
    provider: 模型提供者

  Returns:
    QueryRouter

  Raises:
    ValueError: 需要模型但缺少密钥或模型源配置错误
  """
  config = config or RouterConfig()
  retrieval_config = retrieval_config or RetrievalConfig()

  if search is None:
    search = ChromaKnowledgeSearch(retrieval_config)
  search = CachedKnowledgeSearch(
    search,
    ttl_seconds=retrieval_config.cache_ttl_seconds,
    max_entries=retrieval_config.cache_max_entries,
  )

  memory = ShortTermMemory(config.memory)

  model = None
  classifier_model = None
  if use_models:
    provider = provider or ModelProvider()
    model = provider.get_model_for(ModelRole.SYNTHESIS, model_type)
    classifier_model = provider.get_model_for(ModelRole.CLASSIFIER, model_type)

  logger.info(
    "查询路由器已创建 (models=%s, memory=%s)",
    "on" if use_models else "off",
    "on" if memory.available else "off",
  )
  return QueryRouter(
    search,
    memory=memory,
    model=model,
    classifier_model=classifier_model,
    config=config,
  )
