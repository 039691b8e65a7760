"""
validation 模块
统一回复的交付前校验
"""

from .checker import ResponseEnvelopeChecker, ValidationResult

__all__ = [
  "ResponseEnvelopeChecker",
  "ValidationResult",
]
