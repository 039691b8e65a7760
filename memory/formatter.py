"""
记忆格式化
将最近的对话轮次格式化为可嵌入 prompt 的文本
"""

from .models import ConversationTurn


_HEADERS = {
  "ja": "最近の会話履歴（直近3分）:",
  "en": "Recent conversation (last 3 minutes):",
}

_ROLE_LABELS = {
  "ja": {"user": "ユーザー", "assistant": "アシスタント"},
  "en": {"user": "User", "assistant": "Assistant"},
}

_EMPTY = {
  "ja": "会話履歴がありません。",
  "en": "No conversation context.",
}


def _truncate(content: str, max_length: int) -> str:
  """截断内容，超过 max_length 时末尾加省略号"""
  if len(content) <= max_length:
    return content
  return content[:max_length] + "..."


def format_context(
  turns: list[ConversationTurn],
  language: str = "ja",
  content_max_length: int = 120,
) -> str:
  """
  格式化对话轮次

  Args:
    turns: 轮次列表（旧 → 新）
    language: "ja" 或 "en"
    content_max_length: 单条内容最大显示长度

  Returns:
    格式化后的文本；无轮次时返回本地化的"无历史"提示
  """
  lang = language if language in _HEADERS else "ja"
  if not turns:
    return _EMPTY[lang]

  labels = _ROLE_LABELS[lang]
  lines = [_HEADERS[lang]]
  for turn in turns:
    role = labels.get(turn.role, turn.role)
    emotion = f" [{turn.emotion}]" if turn.emotion else ""
    lines.append(f"{role}: {_truncate(turn.content, content_max_length)}{emotion}")
  return "\n".join(lines)
