"""
轻量实体/子话题抽取
基于固定词表的词法扫描，供记忆上下文推导、查询改写和消歧复用
"""

import re
from typing import Optional


# 实体 → 词法标记（小写比较）
ENTITY_MARKERS: dict[str, tuple[str, ...]] = {
  "engineer": (
    "エンジニアカフェ", "エンジニア カフェ", "エンジニア",
    "engineer cafe", "engineer-cafe", "engineercafe", "engineer",
  ),
  "saino": (
    "saino", "サイノ", "さいの", "セイノ",
  ),
  "meeting-room": (
    "会議室", "ミーティングルーム", "meeting room", "meeting-room",
  ),
  "basement": (
    "地下", "basement", "b1", "underground", "under space", "アンダースペース",
    "mtgスペース", "集中スペース",
  ),
}

# 实体的完整显示名
ENTITY_DISPLAY_NAMES: dict[str, dict[str, str]] = {
  "engineer": {"ja": "エンジニアカフェ", "en": "Engineer Cafe"},
  "saino": {"ja": "sainoカフェ", "en": "Saino Cafe"},
  "meeting-room": {"ja": "2階の有料会議室", "en": "the paid meeting rooms on 2F"},
  "basement": {"ja": "地下のMTGスペース", "en": "the basement meeting spaces"},
}

# 子话题关键词，按优先级排列；英文用单词边界匹配
_REQUEST_TYPE_RULES: list[tuple[str, tuple[str, ...], tuple[str, ...]]] = [
  (
    "wifi",
    ("wi-fi", "wifi", "インターネット", "ネット", "パスワード"),
    (r"\bwi-?fi\b", r"\binternet\b", r"\bpassword\b"),
  ),
  (
    "hours",
    ("営業時間", "何時", "開いて", "開いてる", "閉まる", "開店", "閉店", "休み", "定休日", "休館日"),
    (r"\bhours?\b", r"\bopen(ing)?\b", r"\bclos(e|es|ed|ing)\b", r"\bwhat time\b"),
  ),
  (
    "price",
    ("料金", "値段", "いくら", "価格", "無料", "有料"),
    (r"\bprices?\b", r"\bcosts?\b", r"\bfees?\b", r"\bfree\b", r"\bcharge\b", r"\bhow much\b"),
  ),
  (
    "booking",
    ("予約", "申し込み", "申込"),
    (r"\breserv(e|ation)\b", r"\bbooking\b", r"\bbook\b"),
  ),
  (
    "access",
    ("アクセス", "行き方", "最寄り", "駅から", "駐車場"),
    (r"\baccess\b", r"\bdirections?\b", r"\bget there\b", r"\bparking\b", r"\bstation\b"),
  ),
  (
    "location",
    ("場所", "どこ", "住所", "何階", "フロア"),
    (r"\blocation\b", r"\bwhere\b", r"\baddress\b", r"\bfloor\b"),
  ),
  (
    "facility",
    ("設備", "電源", "コンセント", "プリンター", "モニター", "施設"),
    (r"\bfacilit(y|ies)\b", r"\bequipment\b", r"\bprinters?\b", r"\boutlets?\b", r"\bmonitors?\b"),
  ),
]

_COMPILED_REQUEST_TYPE_RULES = [
  (name, ja, tuple(re.compile(p) for p in en))
  for name, ja, en in _REQUEST_TYPE_RULES
]

# 裸的星期/日期片段（暗示营业时间）
DAY_OF_WEEK_PATTERN = re.compile(
  r"(月曜|火曜|水曜|木曜|金曜|土曜|日曜|平日|週末|土日|祝日)"
  r"|(?i:\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday|weekdays?|weekends?|holidays?)\b)"
)


def _find_positions(text: str) -> list[tuple[int, str]]:
  lower = text.lower()
  found: list[tuple[int, str]] = []
  for entity, markers in ENTITY_MARKERS.items():
    positions = [lower.find(m) for m in markers if m in lower]
    if positions:
      found.append((min(positions), entity))
  # 同位置时保持字典顺序
  found.sort(key=lambda item: item[0])
  return found


def detect_entities(text: str) -> list[str]:
  """
  按出现位置列出文本中提到的所有实体

  Args:
    text: 任意文本

  Returns:
    实体名列表（去重，先出现的在前）
  """
  if not text:
    return []
  return [entity for _pos, entity in _find_positions(text)]


def detect_entity(text: str) -> Optional[str]:
  """返回文本中最先提到的实体，未提到返回 None"""
  entities = detect_entities(text)
  return entities[0] if entities else None


def extract_request_type(text: str) -> Optional[str]:
  """
  抽取子话题（hours / price / location / access / booking / facility / wifi）

  Returns:
    子话题名，未命中返回 None
  """
  if not text:
    return None
  lower = text.lower()
  for name, ja_keywords, en_patterns in _COMPILED_REQUEST_TYPE_RULES:
    if any(k in lower for k in ja_keywords):
      return name
    if any(p.search(lower) for p in en_patterns):
      return name
  return None


def has_day_of_week(text: str) -> bool:
  return bool(DAY_OF_WEEK_PATTERN.search(text))


def entity_display_name(entity: str, language: str) -> str:
  names = ENTITY_DISPLAY_NAMES.get(entity)
  if not names:
    return entity
  return names.get(language, names["ja"])
