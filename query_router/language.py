"""
语言检测
判断查询是日语还是英语，并决定回复语言
"""

import re
from dataclasses import dataclass
from typing import Optional


SUPPORTED_LANGUAGES = ("ja", "en")

_JAPANESE_CHARS = re.compile(r"[\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf]")
_LATIN_WORDS = re.compile(r"[a-zA-Z]+")

_ENGLISH_WORDS = frozenset({
  "what", "where", "when", "how", "why", "is", "are", "the", "a", "an",
  "engineer", "cafe", "about", "tell", "me", "please", "hours", "location",
  "do", "does", "can", "there", "open", "price", "much", "time",
})

_JAPANESE_PARTICLES = ("は", "が", "を", "に", "で", "の", "か", "です", "ます", "ください")


@dataclass(frozen=True)
class LanguageDetection:
  language: str
  confidence: float
  is_mixed: bool = False


def detect_language(text: str) -> LanguageDetection:
  """
  检测查询语言

  含日文字符且（有助词或无拉丁字母）→ ja；
  无日文字符且英文常用词 ≥ 2 → en；
  混合时比较日文字符数和拉丁字母数；其余默认 ja。
  """
  has_japanese = bool(_JAPANESE_CHARS.search(text))
  latin_words = _LATIN_WORDS.findall(text)
  has_latin = bool(latin_words)
  has_particles = any(p in text for p in _JAPANESE_PARTICLES)
  is_mixed = has_japanese and has_latin

  if has_japanese and (has_particles or not has_latin):
    return LanguageDetection("ja", 0.9 if has_particles else 0.7, is_mixed)

  english_hits = sum(1 for w in latin_words if w.lower() in _ENGLISH_WORDS)
  if not has_japanese and english_hits >= 2:
    return LanguageDetection("en", 0.9)

  if is_mixed:
    ja_count = len(_JAPANESE_CHARS.findall(text))
    latin_count = len("".join(latin_words))
    primary = "ja" if ja_count > latin_count else "en"
    return LanguageDetection(primary, 0.6, True)

  if not has_japanese and has_latin:
    return LanguageDetection("en", 0.6)

  return LanguageDetection("ja", 0.5)


def determine_response_language(
  detection: LanguageDetection,
  forced: Optional[str] = None,
) -> str:
  """强制语言优先，其次检测结果"""
  if forced in SUPPORTED_LANGUAGES:
    return forced
  return detection.language
