"""
上下文查询改写
把「土曜は？」「サイノの方で」这类省略型短查询，结合短期记忆补全为可检索的完整查询
"""

import logging
import re
from typing import Optional

from memory.extraction import (
  DAY_OF_WEEK_PATTERN,
  detect_entity,
  entity_display_name,
  extract_request_type,
  has_day_of_week,
)
from memory.manager import ShortTermMemory
from .models import EnhancedQuery


logger = logging.getLogger(__name__)


_SHORT_CONTEXT_PATTERNS = (
  re.compile(r"^(土曜|日曜|平日|週末|土日|祝日)日?[はもの]"),
  re.compile(r"^(saino|サイノ|さいの)[のは方もで]?", re.IGNORECASE),
  re.compile(r"^(エンジニア|engineer)\s?(カフェ|cafe)?(の方|にして|で|は)?[!！?？]?$", re.IGNORECASE),
  re.compile(r"^(そっち|あっち|こっち|それ|そこ|あそこ)[のはもで]?"),
  re.compile(r"^(what about|how about|and)\b", re.IGNORECASE),
)

SHORT_QUERY_MAX_LENGTH = 10

# 子话题 → 语言 → (有实体模板, 无实体模板)
_TEMPLATES: dict[str, dict[str, tuple[str, str]]] = {
  "hours": {
    "ja": ("{entity}の営業時間", "{query} 営業時間"),
    "en": ("{entity} operating hours", "{query} operating hours"),
  },
  "price": {
    "ja": ("{entity}の料金 価格", "{query} 料金 価格"),
    "en": ("{entity} price cost", "{query} price cost"),
  },
  "location": {
    "ja": ("{entity}の場所 アクセス", "{query} 場所 アクセス"),
    "en": ("{entity} location access", "{query} location access"),
  },
  "access": {
    "ja": ("{entity}へのアクセス 行き方", "{query} アクセス 行き方"),
    "en": ("{entity} access directions", "{query} access directions"),
  },
  "booking": {
    "ja": ("{entity}の予約方法", "{query} 予約方法"),
    "en": ("{entity} reservation booking", "{query} reservation booking"),
  },
  "facility": {
    "ja": ("{entity}の設備", "{query} 設備"),
    "en": ("{entity} facilities equipment", "{query} facilities equipment"),
  },
  "wifi": {
    "ja": ("{entity}のWi-Fi", "{query} Wi-Fi"),
    "en": ("{entity} wifi internet", "{query} wifi internet"),
  },
}

_ENTITY_ONLY_TEMPLATE = {"ja": "{entity} {query}", "en": "{entity} {query}"}


def is_short_context_query(query: str) -> bool:
  """
  判断是否为依赖上文的省略型短查询

  命中省略句式（星期片段、裸实体名、指示词开头），或去空白后长度不足 10 字符
  """
  text = query.strip()
  if not text:
    return False
  if any(p.search(text) for p in _SHORT_CONTEXT_PATTERNS):
    return True
  return len(text) < SHORT_QUERY_MAX_LENGTH


def own_request_type(query: str) -> Optional[str]:
  """查询自身的子话题；裸星期片段视为询问营业时间"""
  request_type = extract_request_type(query)
  if request_type is None and has_day_of_week(query):
    return "hours"
  return request_type


def render_query(
  query: str,
  request_type: Optional[str],
  entity: Optional[str],
  language: str,
) -> str:
  """按模板生成检索查询；星期片段保留在末尾"""
  lang = language if language in ("ja", "en") else "ja"
  entity_name = entity_display_name(entity, lang) if entity else None
  templates = _TEMPLATES.get(request_type or "")

  if templates is None:
    if entity_name is None:
      return query
    return _ENTITY_ONLY_TEMPLATE[lang].format(entity=entity_name, query=query.strip())

  with_entity, without_entity = templates[lang]
  if entity_name is not None:
    rendered = with_entity.format(entity=entity_name)
  else:
    rendered = without_entity.format(query=query.strip())

  day = DAY_OF_WEEK_PATTERN.search(query)
  if request_type == "hours" and day and entity_name is not None:
    rendered = f"{rendered} {day.group(0)}"
  return rendered


class ContextualQueryEnhancer:
  """
  省略型查询改写器

  只在查询为短查询、且确实从记忆继承到实体或子话题时改写；
  查询自身提到的实体永远优先于继承值，不会凭空补出实体。
  """

  def __init__(self, memory: Optional[ShortTermMemory] = None):
    self._memory = memory

  def enhance(
    self,
    query: str,
    language: str = "ja",
    session_id: Optional[str] = None,
  ) -> EnhancedQuery:
    """
    改写查询

    Args:
      query: 规范化后的用户查询
      language: 回复语言
      session_id: 会话 ID（None 时不读取记忆）

    Returns:
      EnhancedQuery；未改写时 query == original
    """
    short = is_short_context_query(query)
    entity = detect_entity(query)
    request_type = own_request_type(query)
    unchanged = EnhancedQuery(
      query=query,
      original=query,
      request_type=request_type,
      entity=entity,
      inherited=False,
      short_context=short,
    )

    if not short or self._memory is None or session_id is None:
      return unchanged

    context = self._memory.get_context(session_id=session_id, language=language)
    if context.is_empty:
      return unchanged

    final_entity = entity or context.inherited_entity
    final_request_type = request_type or context.inherited_request_type
    if final_entity == entity and final_request_type == request_type:
      return unchanged

    rewritten = render_query(query, final_request_type, final_entity, language)
    logger.info(
      "查询改写: %r → %r (entity=%s, request_type=%s)",
      query, rewritten, final_entity, final_request_type,
    )
    return EnhancedQuery(
      query=rewritten,
      original=query,
      request_type=final_request_type,
      entity=final_entity,
      inherited=True,
      short_context=True,
    )
