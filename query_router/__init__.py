"""
query_router 模块
查询分类、上下文改写和对外唯一入口 QueryRouter.resolve_query
"""

from .models import (
  Category,
  REQUEST_TYPES,
  REQUEST_TYPE_CATEGORY,
  Ambiguity,
  RouteResult,
  EnhancedQuery,
)
from .language import LanguageDetection, detect_language, determine_response_language
from .enhancer import ContextualQueryEnhancer, is_short_context_query, render_query
from .classifier import QueryClassifier, normalize_query
from .config import RouterConfig
from .router import QueryRouter, QueryState, focus_on_entity
from .factory import create_router

__all__ = [
  # 数据模型
  "Category",
  "REQUEST_TYPES",
  "REQUEST_TYPE_CATEGORY",
  "Ambiguity",
  "RouteResult",
  "EnhancedQuery",
  # 语言
  "LanguageDetection",
  "detect_language",
  "determine_response_language",
  # 改写
  "ContextualQueryEnhancer",
  "is_short_context_query",
  "render_query",
  # 分类
  "QueryClassifier",
  "normalize_query",
  # 路由
  "RouterConfig",
  "QueryRouter",
  "QueryState",
  "focus_on_entity",
  "create_router",
]
