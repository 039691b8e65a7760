"""
检索结果优先级打分
按实体、上下文、实用性、具体性四个因子对检索片段重排
"""

import logging
import re
from typing import Optional

from memory.extraction import ENTITY_MARKERS
from retrieval.models import KnowledgeFragment

from .config import ScorerConfig, ScoringWeights
from .models import RelevanceFactors, ScoredFragment

logger = logging.getLogger(__name__)


_KEYWORD_SPLIT = re.compile(r"[\s、。,.\n]")

_WIFI_QUERY_MARKERS = ("wi-fi", "wifi", "インターネット", "ネット")
_WIFI_CONTENT_KEYWORDS = (
  "wi-fi", "wifi", "無線", "インターネット", "ネット", "接続", "wireless", "internet",
)
_FACILITY_QUERY_MARKERS = ("設備", "facility")
_FACILITY_CONTENT_KEYWORDS = (
  "設備", "施設", "スペース", "部屋", "facility", "equipment", "room", "space",
)

# 可操作性短语：怎么做、问谁、需不需要
_PRACTICAL_PHRASES = (
  "受付", "スタッフ", "方法", "手順", "お尋ねください",
  "利用できます", "必要です", "不要です", "してください",
  "reception", "staff", "how to", "method", "please ask",
  "available", "required", "not required", "please",
)

_TIME_PATTERN = re.compile(r"\d{1,2}:\d{2}")
_CURRENCY_PATTERN = re.compile(r"\d+円|¥\d+")
_HEADCOUNT_PATTERN = re.compile(r"\d+名|\d+人")
_FLOOR_PATTERN = re.compile(r"\d+階|地下")

_HOURS_CATEGORIES = ("business-hours", "hours")


def detect_fragment_entity(fragment: KnowledgeFragment) -> str:
  """
  判断片段描述的实体

  Returns:
    "saino" / "meeting-room" / "engineer-cafe" / "general"
  """
  content = f"{fragment.title or ''} {fragment.content}".lower()
  category = (fragment.category or "").lower()

  if "saino" in category or any(m in content for m in ENTITY_MARKERS["saino"]):
    return "saino"
  if "meeting-room" in category or (
    "会議室" in content and ("有料" in content or "料金" in content)
  ):
    return "meeting-room"
  if (
    "engineer-cafe" in category
    or "無料" in content
    or "コワーキング" in content
    or "9:00〜22:00" in content
  ):
    return "engineer-cafe"
  return "general"


def entity_match_score(
  content: str,
  query: str,
  category: str,
  entity: str,
) -> float:
  """按分类策略计算实体匹配度（默认 0.5）"""
  score = 0.5

  if category == "pricing" or "料金" in query or "price" in query:
    if entity == "engineer-cafe" and "無料" in content:
      score = 1.0
    elif entity == "meeting-room":
      score = 0.2
    elif entity == "saino":
      score = 0.4

  if category in _HOURS_CATEGORIES or "営業時間" in query or "hours" in query:
    if entity == "engineer-cafe" and "9:00〜22:00" in content:
      score = 0.9
    elif entity == "saino" and "ランチ" in content and "ディナー" in content:
      score = 0.8

  if category == "facility-info":
    if any(m in query for m in _WIFI_QUERY_MARKERS):
      if any(m in content for m in _WIFI_QUERY_MARKERS):
        score = 1.0
      elif "無料" in content and "利用" in content:
        score = 0.3
    elif any(m in query for m in _FACILITY_QUERY_MARKERS):
      if any(m in content for m in _FACILITY_QUERY_MARKERS):
        score = 0.9

  return score


def context_match_score(content: str, query: str, category: str) -> float:
  """
  查询关键词在片段中的覆盖率

  设施信息类的 wifi / 设备问题使用加强版计算。
  """
  if category == "facility-info":
    if "wi-fi" in query or "wifi" in query:
      hits = sum(1 for k in _WIFI_CONTENT_KEYWORDS if k in content)
      if hits > 0:
        return min(0.8 + hits * 0.05, 1.0)
    if any(m in query for m in _FACILITY_QUERY_MARKERS):
      hits = sum(1 for k in _FACILITY_CONTENT_KEYWORDS if k in content)
      if hits > 0:
        return min(0.7 + hits * 0.05, 1.0)

  keywords = [k for k in _KEYWORD_SPLIT.split(query) if len(k) > 1]
  if not keywords:
    return 0.0
  hits = sum(1 for k in keywords if k in content)
  return min(hits / len(keywords), 1.0)


def practical_value_score(content: str) -> float:
  hits = sum(1 for phrase in _PRACTICAL_PHRASES if phrase in content)
  return min(0.5 + hits * 0.1, 1.0)


def specificity_score(content: str) -> float:
  score = 0.5
  if _TIME_PATTERN.search(content):
    score += 0.2
  if _CURRENCY_PATTERN.search(content):
    score += 0.2
  if _HEADCOUNT_PATTERN.search(content):
    score += 0.1
  if _FLOOR_PATTERN.search(content):
    score += 0.1
  return min(score, 1.0)


def weighted_score(
  similarity: float,
  factors: RelevanceFactors,
  weights: ScoringWeights,
) -> float:
  return (
    similarity * weights.similarity
    + factors.entity_match * weights.entity_match
    + factors.context_match * weights.context_match
    + factors.practical_value * weights.practical_value
    + factors.specificity_score * weights.specificity_score
  )


class PriorityScorer:
  """
  检索结果打分器

  输出顺序是唯一对外契约：priority_score 降序，同分按原始相似度降序，
  再同则保持输入顺序。相同输入必然得到相同顺序。
  """

  def __init__(self, config: Optional[ScorerConfig] = None):
    self._config = config or ScorerConfig()

  def score_fragment(
    self,
    fragment: KnowledgeFragment,
    query: str,
    category: str,
  ) -> ScoredFragment:
    """为单个片段打分"""
    content = fragment.content.lower()
    normalized_query = query.lower()
    entity = detect_fragment_entity(fragment)

    factors = RelevanceFactors(
      entity_match=entity_match_score(content, normalized_query, category, entity),
      context_match=context_match_score(content, normalized_query, category),
      practical_value=practical_value_score(content),
      specificity_score=specificity_score(content),
    )
    priority = weighted_score(
      fragment.similarity, factors, self._config.weights_for(category),
    )
    return ScoredFragment(
      content=fragment.content,
      similarity=fragment.similarity,
      category=fragment.category,
      language=fragment.language,
      title=fragment.title,
      entity=entity,
      relevance_factors=factors,
      priority_score=priority,
    )

  def score(
    self,
    fragments: list[KnowledgeFragment],
    query: str,
    category: str,
    language: str = "ja",
  ) -> list[ScoredFragment]:
    """
    打分并排序

    Args:
      fragments: 检索片段
      query: 原始查询
      category: 路由分类
      language: 查询语言

    Returns:
      ScoredFragment 列表（优先级降序）
    """
    scored = [
      (self.score_fragment(f, query, category), idx)
      for idx, f in enumerate(fragments)
    ]
    scored.sort(key=lambda item: (
      -item[0].priority_score, -item[0].similarity, item[1],
    ))
    result = [s for s, _idx in scored]
    if result:
      logger.debug(
        "打分完成 (%s/%s): top=%s %.3f",
        category, language, result[0].entity, result[0].priority_score,
      )
    return result
