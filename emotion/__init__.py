"""
emotion 模块
固定情绪词汇与文本情绪标记处理
"""

from .taxonomy import (
  Emotion,
  EmotionTag,
  ParsedEmotionText,
  EMOTION_ALIASES,
  EMOTION_TAG_PATTERN,
  normalize_emotion,
  is_known_emotion,
  format_marker,
  parse_emotion_tags,
  strip_emotion_tags,
  leading_marker_count,
  ensure_single_marker,
  fallback_emotion,
)
from .tagger import EmotionTagger

__all__ = [
  "Emotion",
  "EmotionTag",
  "ParsedEmotionText",
  "EMOTION_ALIASES",
  "EMOTION_TAG_PATTERN",
  "normalize_emotion",
  "is_known_emotion",
  "format_marker",
  "parse_emotion_tags",
  "strip_emotion_tags",
  "leading_marker_count",
  "ensure_single_marker",
  "fallback_emotion",
  "EmotionTagger",
]
