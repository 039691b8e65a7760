"""
歧义与指代规则
纯函数：判断查询是否在多个实体间有歧义，以及是否在指代「另一个」选项
"""

import re
from typing import Optional

from memory.extraction import detect_entities
from .models import Ambiguity


CAFE_AMBIGUITY = Ambiguity(type="cafe", options=("engineer", "saino"))
MEETING_ROOM_AMBIGUITY = Ambiguity(type="meeting-room", options=("meeting-room", "basement"))

AMBIGUITIES = {
  CAFE_AMBIGUITY.type: CAFE_AMBIGUITY,
  MEETING_ROOM_AMBIGUITY.type: MEETING_ROOM_AMBIGUITY,
}

_CAFE_TERMS = ("カフェ", "cafe", "café")
# 提到这些时默认指コワーキング的エンジニアカフェ
_CAFE_WORK_HINTS = ("コワーキング", "coworking", "作業", "無料", "利用", "併設")

_MEETING_ROOM_TERMS = ("会議室", "meeting room", "ミーティング", "mtg")
_MEETING_ROOM_FLOOR_HINTS = (
  "2階", "２階", "二階", "2f", "地下", "basement", "b1", "under",
  "有料", "paid", "スペース", "space",
)

OTHER_OPTION_PATTERNS = tuple(re.compile(p) for p in (
  r"もう(一つ|ひとつ|1つ)(?!(質問|聞|お願い|教え))",
  r"もう(一方|片方)",
  r"(他|ほか|別)の(方|ほう)(?![法向針々])",
  r"\bthe other\b(?! (way|ways|method|methods|day|days|time|times)\b)",
  r"\bother (one|option)\b",
  r"\bthe alternative\b",
))

# 查询本身点名了具体设施或主题时，是新问题而不是对澄清的追问
_OTHER_OPTION_EXCLUSIONS = (
  "会議室", "meeting room", "地下", "basement", "スペース", "space",
  "設備", "facility", "施設", "メニュー", "menu",
)


def detect_ambiguity(query: str) -> Optional[Ambiguity]:
  """
  检测查询是否有实体歧义

  - cafe: 提到カフェ/cafe，但没有エンジニア/saino 标记，也没有作业类提示
  - meeting-room: 提到会議室/meeting room，但没有楼层/收费提示

  Args:
    query: 规范化后的查询

  Returns:
    Ambiguity，无歧义返回 None
  """
  lower = query.lower()
  entities = detect_entities(lower)

  if any(t in lower for t in _CAFE_TERMS):
    if "engineer" not in entities and "saino" not in entities:
      if not any(h in lower for h in _CAFE_WORK_HINTS):
        return CAFE_AMBIGUITY

  if any(t in lower for t in _MEETING_ROOM_TERMS):
    if "basement" not in entities and not any(h in lower for h in _MEETING_ROOM_FLOOR_HINTS):
      return MEETING_ROOM_AMBIGUITY

  return None


def is_other_option_query(query: str) -> bool:
  """是否在指代「另一个」选项"""
  lower = query.lower()
  if detect_entities(lower) or any(t in lower for t in _OTHER_OPTION_EXCLUSIONS):
    return False
  return any(p.search(lower) for p in OTHER_OPTION_PATTERNS)
