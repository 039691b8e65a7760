"""
回复校验器
返回给调用方之前的最后一道检查：统一回复结构是否满足下游约定
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from emotion import (
  Emotion,
  ensure_single_marker,
  leading_marker_count,
  parse_emotion_tags,
)
from langchain_wrapper.response import (
  FALLBACK_CONFIDENCE,
  FALLBACK_SOURCE,
  UnifiedResponse,
  fallback_response,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
  passed: bool
  violations: list[str] = field(default_factory=list)
  auto_fixed: bool = False
  fixed_response: Optional[UnifiedResponse] = None


class ResponseEnvelopeChecker:
  """
  统一回复校验器

  执行五项检查：
  1. 标记数量：正文以恰好一个情绪标记开头
  2. 标记一致：开头标记与 emotion 字段一致
  3. 正文非空：去掉标记后仍有内容
  4. 置信度范围：0~1
  5. 降级一致：来源含 fallback 时置信度不高于 0.3
  """

  def check(self, response: UnifiedResponse) -> ValidationResult:
    """
    校验回复

    Args:
      response: 待返回的统一回复

    Returns:
      ValidationResult
    """
    violations: list[str] = []

    self._check_marker_count(response, violations)
    self._check_marker_matches(response, violations)
    self._check_body(response, violations)
    self._check_confidence(response, violations)
    self._check_fallback(response, violations)

    if not violations:
      return ValidationResult(passed=True)

    fixed = self._try_auto_fix(response)
    logger.info("回复校验自动修正: %s", "; ".join(violations))
    return ValidationResult(
      passed=False,
      violations=violations,
      auto_fixed=True,
      fixed_response=fixed,
    )

  def ensure_valid(self, response: UnifiedResponse) -> UnifiedResponse:
    """校验并返回可直接交付的回复"""
    result = self.check(response)
    if result.passed:
      return response
    return result.fixed_response or response

  def _check_marker_count(self, response: UnifiedResponse, violations: list[str]) -> None:
    count = leading_marker_count(response.text)
    if count != 1 or not response.text.startswith("["):
      violations.append(f"开头情绪标记数量为 {count}")
    elif len(parse_emotion_tags(response.text).tags) > 1:
      violations.append("正文中含有多余的情绪标记")

  def _check_marker_matches(self, response: UnifiedResponse, violations: list[str]) -> None:
    if not isinstance(response.emotion, Emotion):
      violations.append(f"未知情绪: {response.emotion!r}")
      return
    primary = parse_emotion_tags(response.text).primary
    if primary is not None and primary != response.emotion:
      violations.append(f"标记 {primary.value} 与情绪字段 {response.emotion.value} 不一致")

  def _check_body(self, response: UnifiedResponse, violations: list[str]) -> None:
    if not response.plain_text:
      violations.append("正文为空")

  def _check_confidence(self, response: UnifiedResponse, violations: list[str]) -> None:
    confidence = response.metadata.confidence
    if not 0.0 <= confidence <= 1.0:
      violations.append(f"置信度超出范围: {confidence}")

  def _check_fallback(self, response: UnifiedResponse, violations: list[str]) -> None:
    if FALLBACK_SOURCE in response.metadata.sources:
      if response.metadata.confidence > FALLBACK_CONFIDENCE:
        violations.append("降级回复的置信度过高")

  def _try_auto_fix(self, response: UnifiedResponse) -> UnifiedResponse:
    """尝试自动修正；正文为空时换成降级回复"""
    metadata = response.metadata
    if not response.plain_text:
      return fallback_response(
        metadata.language,
        metadata.category,
        metadata.request_type,
        metadata.agent_name,
        "empty_text",
      )

    emotion = response.emotion if isinstance(response.emotion, Emotion) else Emotion.RELAXED
    confidence = max(0.0, min(1.0, metadata.confidence))
    if FALLBACK_SOURCE in metadata.sources:
      confidence = min(confidence, FALLBACK_CONFIDENCE)

    return UnifiedResponse(
      text=ensure_single_marker(response.text, emotion),
      emotion=emotion,
      metadata=replace(metadata, confidence=confidence),
    )
