"""
情绪标注器
为没有携带情绪标记的回复文本推断一个合适的情绪
"""

import re
from typing import Optional

from .taxonomy import Emotion


_APOLOGY_PATTERNS = [
  re.compile(r"(申し訳|すみません|ごめんなさい|見つかりませんでした|できません)"),
  re.compile(r"(?i)\b(sorry|apolog|unfortunately|could not find|unable to)"),
]

_CLARIFY_PATTERNS = [
  re.compile(r"(どちら|どれ|ですか[？?]|でしょうか[？?])"),
  re.compile(r"(?i)\b(which one|which of|do you mean|could you clarify)\b"),
]

_GREETING_PATTERNS = [
  re.compile(r"(ようこそ|こんにちは|ありがとうございます|いらっしゃいませ)"),
  re.compile(r"(?i)\b(welcome|hello|thank you|thanks|glad)\b"),
]

_EXCITED_PATTERNS = [
  re.compile(r"(無料|おすすめ|ぜひ|楽しい|人気)"),
  re.compile(r"(?i)\b(free of charge|recommend|popular|enjoy)\b"),
]

# 优先级由高到低
_RULES: list[tuple[list[re.Pattern], Emotion, str]] = [
  (_APOLOGY_PATTERNS, Emotion.SAD, "apology"),
  (_CLARIFY_PATTERNS, Emotion.SURPRISED, "clarification"),
  (_GREETING_PATTERNS, Emotion.HAPPY, "greeting"),
  (_EXCITED_PATTERNS, Emotion.HAPPY, "positive"),
]


class EmotionTagger:
  """
  基于规则的情绪推断

  按优先级依次匹配，命中即返回；全部未命中时返回 default。
  """

  def __init__(self, default: Emotion = Emotion.RELAXED) -> None:
    self._default = default

  def detect(self, text: str) -> Emotion:
    result = self.detect_with_reason(text)
    return result[0] if result else self._default

  def detect_with_reason(self, text: str) -> Optional[tuple[Emotion, str]]:
    """
    推断情绪并返回命中规则名

    Args:
      text: 回复文本（不含情绪标记）

    Returns:
      (emotion, rule_name)，无命中返回 None
    """
    if not text.strip():
      return None
    for patterns, emotion, name in _RULES:
      if self._match_any(text, patterns):
        return emotion, name
    return None

  @staticmethod
  def _match_any(text: str, patterns: list[re.Pattern]) -> bool:
    return any(p.search(text) for p in patterns)
