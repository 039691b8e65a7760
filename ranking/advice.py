"""
实用补充建议
根据提问中的触发词附加一句现场建议，拼接到生成上下文末尾
"""

_ADVICE: dict[str, list[tuple[tuple[str, ...], str]]] = {
  "ja": [
    (("wifi", "wi-fi", "パスワード"), "WiFiパスワードは受付でお尋ねください。"),
    (("混雑", "空いて", "込んで"), "土日の午後は混雑しやすいため、平日や朝の時間帯がおすすめです。"),
    (("初めて", "はじめて", "初回"), "初回利用時は受付で簡単な登録（お名前とメールアドレス）があります。"),
    (("イベント", "参加", "勉強会"), "イベント情報は公式サイトやDiscordコミュニティでも確認できます。"),
  ],
  "en": [
    (("wifi", "password"), "Please ask the reception staff for the WiFi password."),
    (("crowded", "busy", "empty"), "Weekends tend to be crowded. Weekday mornings are recommended."),
    (("first time", "new"), "First-time visitors need to register at reception (name and email)."),
    (("event", "join", "meetup"), "Event information is also available on the official website and Discord."),
  ],
}

_FACILITY_DEFAULT = {
  "ja": "詳しい設備の利用方法は現地スタッフにお気軽にお尋ねください。",
  "en": "Please feel free to ask the staff for detailed facility usage.",
}


def practical_advice(query: str, category: str, language: str = "ja") -> str:
  """
  生成实用建议

  Args:
    query: 用户提问
    category: 路由分类
    language: "ja" 或 "en"

  Returns:
    建议文本（无命中时为空串；设施类无命中时给通用建议）
  """
  lang = language if language in _ADVICE else "ja"
  normalized = query.lower()
  advice = [
    text for triggers, text in _ADVICE[lang]
    if any(t in normalized for t in triggers)
  ]
  if not advice and category == "facility-info":
    advice.append(_FACILITY_DEFAULT[lang])
  return " ".join(advice)
