"""
回复校验测试

核心预期：
- 规范回复直接通过；
- 标记缺失、重复、与情绪字段不一致时自动修正为单一标记；
- 置信度越界被截断，降级回复置信度不超过 0.3；
- 正文为空时换成降级回复。
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from emotion import Emotion
from langchain_wrapper import ResponseMetadata, UnifiedResponse, fallback_response
from validation import ResponseEnvelopeChecker


def _raw(text: str, emotion: Emotion = Emotion.RELAXED, confidence: float = 0.8, sources=()) -> UnifiedResponse:
  """绕过 create() 直接构造，模拟不规范的回复"""
  return UnifiedResponse(
    text=text,
    emotion=emotion,
    metadata=ResponseMetadata(
      agent_name="QueryRouter",
      confidence=confidence,
      language="ja",
      sources=tuple(sources),
    ),
  )


def test_well_formed_response_passes() -> None:
  checker = ResponseEnvelopeChecker()
  response = UnifiedResponse.create("[relaxed]営業時間は9:00〜22:00です。", "ja")
  result = checker.check(response)
  assert result.passed
  assert result.violations == []
  assert checker.ensure_valid(response) is response


def test_fallback_response_passes() -> None:
  assert ResponseEnvelopeChecker().check(fallback_response("en")).passed


def test_missing_marker_is_injected() -> None:
  fixed = ResponseEnvelopeChecker().ensure_valid(_raw("営業中です", Emotion.HAPPY))
  assert fixed.text == "[happy]営業中です"


def test_duplicate_markers_are_collapsed() -> None:
  result = ResponseEnvelopeChecker().check(_raw("[relaxed][happy]営業中です"))
  assert not result.passed
  assert result.auto_fixed
  assert result.fixed_response.text == "[relaxed]営業中です"


def test_inline_marker_is_removed() -> None:
  fixed = ResponseEnvelopeChecker().ensure_valid(_raw("[relaxed]営業中です[sad]"))
  assert fixed.text == "[relaxed]営業中です"


def test_marker_mismatch_follows_emotion_field() -> None:
  fixed = ResponseEnvelopeChecker().ensure_valid(_raw("[sad]営業中です", Emotion.HAPPY))
  assert fixed.text == "[happy]営業中です"
  assert fixed.emotion == Emotion.HAPPY


def test_confidence_is_clamped() -> None:
  fixed = ResponseEnvelopeChecker().ensure_valid(_raw("[relaxed]ok", confidence=1.4))
  assert fixed.metadata.confidence == 1.0


def test_fallback_confidence_is_capped() -> None:
  result = ResponseEnvelopeChecker().check(_raw("[sad]すみません", Emotion.SAD, 0.9, ["fallback"]))
  assert not result.passed
  assert result.fixed_response.metadata.confidence == 0.3


def test_empty_body_becomes_fallback() -> None:
  fixed = ResponseEnvelopeChecker().ensure_valid(_raw("[relaxed]   "))
  assert fixed.is_fallback
  assert fixed.emotion == Emotion.SAD
  assert fixed.metadata.processing_info["fallback_reason"] == "empty_text"
