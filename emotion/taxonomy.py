"""
情绪分类表
固定的情绪词汇、别名归一化，以及文本内情绪标记的解析与规范化
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Emotion(str, Enum):
  """固定情绪词汇（下游语音/形象渲染只认这些值）"""
  NEUTRAL = "neutral"
  HAPPY = "happy"
  SAD = "sad"
  ANGRY = "angry"
  RELAXED = "relaxed"
  SURPRISED = "surprised"


# 别名 → 固定词汇
EMOTION_ALIASES: dict[str, Emotion] = {
  # happy
  "joy": Emotion.HAPPY,
  "excited": Emotion.HAPPY,
  "cheerful": Emotion.HAPPY,
  "grateful": Emotion.HAPPY,
  "welcoming": Emotion.HAPPY,
  "friendly": Emotion.HAPPY,
  "smile": Emotion.HAPPY,
  # sad
  "sorrow": Emotion.SAD,
  "apologetic": Emotion.SAD,
  "sorry": Emotion.SAD,
  "disappointed": Emotion.SAD,
  "worried": Emotion.SAD,
  # angry
  "frustrated": Emotion.ANGRY,
  "annoyed": Emotion.ANGRY,
  # relaxed
  "calm": Emotion.RELAXED,
  "informative": Emotion.RELAXED,
  "guiding": Emotion.RELAXED,
  "explaining": Emotion.RELAXED,
  "thinking": Emotion.RELAXED,
  "helpful": Emotion.RELAXED,
  "confident": Emotion.RELAXED,
  # surprised
  "shocked": Emotion.SURPRISED,
  "curious": Emotion.SURPRISED,
  "confused": Emotion.SURPRISED,
  "questioning": Emotion.SURPRISED,
  "amazed": Emotion.SURPRISED,
  # neutral
  "normal": Emotion.NEUTRAL,
  "default": Emotion.NEUTRAL,
}

_EMOTION_VALUES = frozenset(e.value for e in Emotion)

# 情绪标记：[happy] 或 [happy:0.8]
EMOTION_TAG_PATTERN = re.compile(r"\[([a-zA-Z_]+)(?::(\d*\.?\d+))?\]")

# 文本开头连续的标记（允许中间夹杂空白）
_LEADING_TAGS_PATTERN = re.compile(
  r"^\s*((?:\[[a-zA-Z_]+(?::\d*\.?\d+)?\]\s*)+)"
)


def normalize_emotion(
  name: Optional[str],
  default: Emotion = Emotion.NEUTRAL,
) -> Emotion:
  """
  将任意情绪词归一化为固定词汇

  Args:
    name: 情绪名称（大小写不敏感，可为别名）
    default: 无法识别时的返回值

  Returns:
    Emotion 枚举值
  """
  if not name:
    return default
  key = name.strip().lower()
  try:
    return Emotion(key)
  except ValueError:
    return EMOTION_ALIASES.get(key, default)


def is_known_emotion(name: str) -> bool:
  """名称是否属于固定词汇或其别名"""
  key = name.strip().lower()
  return key in _EMOTION_VALUES or key in EMOTION_ALIASES


def format_marker(emotion: Emotion) -> str:
  return f"[{emotion.value}]"


@dataclass(frozen=True)
class EmotionTag:
  emotion: Emotion
  intensity: float = 1.0
  position: int = 0


@dataclass(frozen=True)
class ParsedEmotionText:
  """
  解析结果

  Attributes:
    clean_text: 去掉所有可识别标记后的文本
    tags: 按出现顺序的标记
    primary: 第一个标记的情绪（无标记时为 None）
  """
  clean_text: str
  tags: tuple[EmotionTag, ...] = field(default_factory=tuple)
  primary: Optional[Emotion] = None


def parse_emotion_tags(text: str) -> ParsedEmotionText:
  """
  解析文本中的情绪标记

  无法识别的 [xxx] 原样保留，不视为情绪标记。
  """
  tags: list[EmotionTag] = []

  def _replace(match: re.Match) -> str:
    name = match.group(1)
    if not is_known_emotion(name):
      return match.group(0)
    intensity = 1.0
    if match.group(2):
      intensity = max(0.0, min(1.0, float(match.group(2))))
    tags.append(EmotionTag(
      emotion=normalize_emotion(name),
      intensity=intensity,
      position=match.start(),
    ))
    return ""

  clean = EMOTION_TAG_PATTERN.sub(_replace, text)
  clean = re.sub(r"[ \t]{2,}", " ", clean).strip()
  primary = tags[0].emotion if tags else None
  return ParsedEmotionText(clean_text=clean, tags=tuple(tags), primary=primary)


def strip_emotion_tags(text: str) -> str:
  return parse_emotion_tags(text).clean_text


def leading_marker_count(text: str) -> int:
  """统计文本开头连续的、可识别的情绪标记数量"""
  match = _LEADING_TAGS_PATTERN.match(text)
  if not match:
    return 0
  names = EMOTION_TAG_PATTERN.findall(match.group(1))
  count = 0
  for name, _intensity in names:
    if not is_known_emotion(name):
      break
    count += 1
  return count


def ensure_single_marker(text: str, emotion: Optional[Emotion] = None) -> str:
  """
  保证文本以恰好一个情绪标记开头

  已有标记时保留第一个标记的情绪（指定 emotion 时以 emotion 为准），
  文本中其余位置的标记全部剔除；没有任何标记时注入 emotion（默认 neutral）。

  Args:
    text: 原始文本
    emotion: 强制使用的情绪

  Returns:
    规范化后的文本
  """
  parsed = parse_emotion_tags(text)
  chosen = emotion or parsed.primary or Emotion.NEUTRAL
  body = parsed.clean_text
  if not body:
    return format_marker(chosen)
  return f"{format_marker(chosen)}{body}"


def fallback_emotion(kind: Optional[str]) -> Emotion:
  """
  生成内容缺失标记时按类别兜底

  error / apology → sad，clarification → surprised，其余 → relaxed
  """
  if kind in ("error", "apology", "fallback"):
    return Emotion.SAD
  if kind == "clarification":
    return Emotion.SURPRISED
  return Emotion.RELAXED
