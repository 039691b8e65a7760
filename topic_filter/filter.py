"""
子话题内容过滤
把拼接好的检索文本收窄到只与某一子话题相关的句子
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from memory.extraction import detect_entities

from .keywords import KeywordPolicy, keyword_policy

logger = logging.getLogger(__name__)


_SECTION_SPLIT = re.compile(r"[。\n]+|(?<=[.!?])\s+")
_TIME_PATTERN = re.compile(r"\d{1,2}:\d{2}")


@dataclass(frozen=True)
class FilterResult:
  """
  过滤结果

  Attributes:
    text: 过滤后的文本（输入非空时必然非空）
    original_length: 原文长度
    filtered_length: 过滤后长度
    sections_total: 切分出的句段数
    sections_kept: 保留的句段数（走兜底时为 0）
    used_fallback: 是否走了兜底路径
  """
  text: str
  original_length: int
  filtered_length: int
  sections_total: int = 0
  sections_kept: int = 0
  used_fallback: bool = False


def split_sections(text: str) -> list[str]:
  """按句号/换行切分，去掉空白句段"""
  return [s.strip() for s in _SECTION_SPLIT.split(text) if s and s.strip()]


def _contains_any(section_lower: str, keywords: tuple[str, ...]) -> bool:
  return any(k in section_lower for k in keywords)


def _include_hits(section_lower: str, policy: KeywordPolicy) -> int:
  return sum(1 for k in policy.include if k in section_lower)


def _is_foreign_section(section: str, entity: Optional[str]) -> bool:
  """句段只提到了别的实体（没提到目标实体）"""
  if entity is None:
    return False
  mentioned = detect_entities(section)
  return bool(mentioned) and entity not in mentioned


def _join(sections: list[str], language: str) -> str:
  if language == "en":
    return " ".join(sections)
  return "。".join(sections)


def _unchanged(text: str, total: int = 0) -> FilterResult:
  return FilterResult(
    text=text,
    original_length=len(text),
    filtered_length=len(text),
    sections_total=total,
    sections_kept=total,
  )


def filter_by_request_type(
  text: str,
  request_type: Optional[str],
  language: str = "ja",
  entity: Optional[str] = None,
) -> FilterResult:
  """
  按子话题过滤文本

  句段保留条件：含至少一个 include 关键词且不含 exclude 关键词，
  或（仅 hours）含时刻格式且不含 exclude 关键词。
  指定 entity 时，只提到其他实体的句段也会被剔除。

  没有句段保留时依次兜底：include 命中最多的句段 → 第一个句段 → 原文。

  Args:
    text: 拼接后的检索文本
    request_type: 子话题（hours / price / location / access / booking / facility / wifi）
    language: "ja" 或 "en"
    entity: 目标实体（engineer / saino / ...）

  Returns:
    FilterResult
  """
  if not text or not request_type:
    return _unchanged(text)

  policy = keyword_policy(request_type, language)
  if policy is None:
    logger.debug("子话题 %s 未定义过滤关键词，原样返回", request_type)
    return _unchanged(text)

  sections = split_sections(text)
  if not sections:
    return _unchanged(text)

  kept: list[str] = []
  for section in sections:
    lower = section.lower()
    if _contains_any(lower, policy.exclude):
      continue
    if _is_foreign_section(section, entity):
      continue
    has_include = _contains_any(lower, policy.include)
    is_time = request_type == "hours" and bool(_TIME_PATTERN.search(section))
    if has_include or is_time:
      kept.append(section)

  if kept:
    filtered = _join(kept, language)
    logger.debug(
      "子话题过滤 %s: %d/%d 句段, %d → %d 字",
      request_type, len(kept), len(sections), len(text), len(filtered),
    )
    return FilterResult(
      text=filtered,
      original_length=len(text),
      filtered_length=len(filtered),
      sections_total=len(sections),
      sections_kept=len(kept),
    )

  # 兜底：绝不返回空串
  fallback = _best_include_section(sections, policy, entity) or sections[0] or text
  logger.debug("子话题过滤 %s 无句段命中，使用兜底句段", request_type)
  return FilterResult(
    text=fallback,
    original_length=len(text),
    filtered_length=len(fallback),
    sections_total=len(sections),
    sections_kept=0,
    used_fallback=True,
  )


def _best_include_section(
  sections: list[str],
  policy: KeywordPolicy,
  entity: Optional[str],
) -> Optional[str]:
  """include 命中最多的句段（同分取靠前的，优先目标实体相关的）"""
  best: Optional[str] = None
  best_key = (0, 0)
  for section in sections:
    hits = _include_hits(section.lower(), policy)
    if hits == 0:
      continue
    on_topic = 0 if _is_foreign_section(section, entity) else 1
    key = (on_topic, hits)
    if key > best_key:
      best, best_key = section, key
  return best
