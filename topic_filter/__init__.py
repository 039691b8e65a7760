"""
topic_filter 模块
按子话题的 include / exclude 关键词策略收窄检索文本
"""

from .filter import FilterResult, filter_by_request_type, split_sections
from .keywords import KeywordPolicy, REQUEST_TYPE_KEYWORDS, keyword_policy

__all__ = [
  "FilterResult",
  "filter_by_request_type",
  "split_sections",
  "KeywordPolicy",
  "REQUEST_TYPE_KEYWORDS",
  "keyword_policy",
]
