"""
回答生成器
使用 LCEL (LangChain Expression Language) 构建「提示词 → 模型 → 文本 → 后处理」链，
把过滤后的检索上下文生成为带情绪标记的 UnifiedResponse
"""

import asyncio
import logging
import re
from typing import Any, Callable, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import RunnableLambda

from emotion import (
  EMOTION_TAG_PATTERN,
  Emotion,
  EmotionTagger,
  fallback_emotion,
  is_known_emotion,
  parse_emotion_tags,
)
from prompts import PromptLoader
from .response import DEFAULT_AGENT_NAME, UnifiedResponse, fallback_response

logger = logging.getLogger(__name__)


# 类型别名：处理器函数签名
Processor = Callable[[str], str]

# 有专用提示词的子话题
SCOPED_REQUEST_TYPES = ("hours", "price", "location", "access", "booking", "facility", "wifi")

_QUESTION_RECALL_KEYWORDS = (
  "何を聞いた", "質問した", "どんな質問", "聞いたこと",
  "what did i ask", "what i asked", "my question", "asked about",
)
_ANSWER_RECALL_KEYWORDS = (
  "何と答え", "答えは", "回答", "教えてくれた", "言ってた",
  "what did you say", "what did you tell", "your answer", "you said", "you told",
)

_NO_HISTORY_TEXT = {
  "ja": "参照できる過去の会話履歴がありません。",
  "en": "I don't have any previous conversation history to reference.",
}

_ADJACENT_TAGS = re.compile(r"(\[[a-zA-Z_]+(?::\d*\.?\d+)?\])(\s*\[[a-zA-Z_]+(?::\d*\.?\d+)?\])+")


# ============================================================
# 后处理器
# ============================================================

def strip_whitespace(text: str) -> str:
  return text.strip()


def remove_empty_lines(text: str) -> str:
  return "\n".join(line for line in text.splitlines() if line.strip())


def collapse_adjacent_markers(text: str) -> str:
  """相邻的情绪标记只保留第一个（未知标记不动）"""
  def _collapse(match: re.Match) -> str:
    first = match.group(1)
    name = EMOTION_TAG_PATTERN.match(first).group(1)
    if not is_known_emotion(name):
      return match.group(0)
    return first
  return _ADJACENT_TAGS.sub(_collapse, text)


DEFAULT_POSTPROCESSORS: tuple[Processor, ...] = (
  strip_whitespace,
  remove_empty_lines,
  collapse_adjacent_markers,
)


def recall_mode(query: str) -> str:
  """
  记忆回溯的问法

  Returns:
    "question"（问之前问了什么）/ "answer"（问之前答了什么）/ "general"
  """
  lower = query.lower()
  if any(k in lower for k in _QUESTION_RECALL_KEYWORDS):
    return "question"
  if any(k in lower for k in _ANSWER_RECALL_KEYWORDS):
    return "answer"
  return "general"


class ResponseSynthesizer:
  """
  回答生成器

  两种提示词形态：
  - 子话题限定：只抽取指定子话题，1~2 句
  - 开放式：简洁回答
  两者都要求以情绪标记开头。生成失败或超时一律降级为固定的道歉回复。
  """

  def __init__(
    self,
    model: Optional[BaseChatModel] = None,
    prompt_loader: Optional[PromptLoader] = None,
    timeout_seconds: float = 20.0,
    agent_name: str = DEFAULT_AGENT_NAME,
  ):
    """
    初始化回答生成器

    Args:
      model: LangChain 模型实例（为 None 时直接用过滤后的上下文作答）
      prompt_loader: 提示词加载器
      timeout_seconds: 单次生成的超时
      agent_name: 写入回复元数据的组件名
    """
    self.model = model
    self.timeout_seconds = timeout_seconds
    self.agent_name = agent_name
    self._loader = prompt_loader or PromptLoader()
    self._topic_labels = self._loader.load_headers("synthesis/topic_labels.txt")
    self._postprocessors: list[Processor] = list(DEFAULT_POSTPROCESSORS)

  def add_postprocessor(self, processor: Processor) -> "ResponseSynthesizer":
    """追加后处理器，支持链式调用"""
    self._postprocessors.append(processor)
    return self

  def _apply_postprocessors(self, output: str) -> str:
    for processor in self._postprocessors:
      output = processor(output)
    return output

  # ============================================================
  # 提示词
  # ============================================================

  def topic_label(self, request_type: Optional[str], language: str) -> str:
    lang = language if language in ("ja", "en") else "ja"
    key = f"{request_type}.{lang}" if request_type else ""
    return self._topic_labels.get(key) or self._topic_labels[f"default.{lang}"]

  def _template_path(self, request_type: Optional[str], language: str) -> str:
    lang = language if language in ("ja", "en") else "ja"
    if request_type in SCOPED_REQUEST_TYPES:
      return f"synthesis/request_type_{lang}.txt"
    return f"synthesis/open_{lang}.txt"

  def build_prompt(
    self,
    query: str,
    context: str,
    request_type: Optional[str],
    language: str,
  ) -> str:
    """
    组装生成提示词

    Args:
      query: 用户原始问题
      context: 过滤后的检索上下文
      request_type: 子话题（None 时使用开放式模板）
      language: 回复语言

    Returns:
      完整提示词
    """
    return self._loader.load_template(
      self._template_path(request_type, language),
      query=query,
      context=context,
      topic=self.topic_label(request_type, language),
    )

  # ============================================================
  # 生成
  # ============================================================

  async def _run_chain(self, template_path: str, variables: dict[str, str]) -> str:
    """执行「模板 → 模型 → 文本 → 后处理」链，受超时约束"""
    chain = (
      ChatPromptTemplate.from_template(self._loader.load(template_path))
      | self.model
      | StrOutputParser()
      | RunnableLambda(self._apply_postprocessors)
    )
    return await asyncio.wait_for(chain.ainvoke(variables), timeout=self.timeout_seconds)

  def _extractive_answer(self, context: str, language: str) -> str:
    """无模型时直接截取上下文的前两句"""
    separator = "。" if language == "ja" else " "
    sections = [s.strip() for s in re.split(r"[。\n]+|(?<=[.!?])\s+", context) if s.strip()]
    body = separator.join(sections[:2])
    if language == "ja" and body and not body.endswith("。"):
      body += "。"
    return body

  async def synthesize(
    self,
    query: str,
    context: str,
    language: str,
    category: Optional[str] = None,
    request_type: Optional[str] = None,
    emotion: Optional[Emotion] = None,
    confidence: float = 0.85,
    sources: Optional[list[str]] = None,
    processing_info: Optional[dict[str, Any]] = None,
  ) -> UnifiedResponse:
    """
    生成回答

    Args:
      query: 用户原始问题
      context: 过滤后的检索上下文
      language: 回复语言
      category: 路由分类
      request_type: 子话题
      emotion: 生成文本缺少标记时使用的情绪（None 时按正文内容推断）
      confidence: 成功时的置信度
      sources: 信息来源
      processing_info: 处理过程信息

    Returns:
      UnifiedResponse；失败时为降级回复
    """
    if not context.strip():
      return fallback_response(language, category, request_type, self.agent_name, "empty_context")

    try:
      if self.model is None:
        text = self._apply_postprocessors(self._extractive_answer(context, language))
      else:
        text = await self._run_chain(
          self._template_path(request_type, language),
          {
            "query": query,
            "context": context,
            "topic": self.topic_label(request_type, language),
          },
        )
    except asyncio.TimeoutError:
      logger.warning("回答生成超时 (%.1fs)", self.timeout_seconds)
      return fallback_response(language, category, request_type, self.agent_name, "generation_timeout")
    except Exception as e:
      logger.error("回答生成失败: %s", e)
      return fallback_response(language, category, request_type, self.agent_name, "generation_error")

    return self._finalize(
      text, language, category, request_type, emotion, confidence,
      sources or ["knowledge_base"], processing_info,
    )

  async def recall(
    self,
    query: str,
    history: str,
    language: str,
    has_history: bool = True,
    category: Optional[str] = None,
  ) -> UnifiedResponse:
    """
    根据会话记录回答「刚才问了什么」类问题

    Args:
      query: 用户问题
      history: 格式化的会话记录
      language: 回复语言
      has_history: 是否存在可用的会话记录
      category: 路由分类

    Returns:
      UnifiedResponse
    """
    lang = language if language in ("ja", "en") else "ja"
    if not has_history:
      return UnifiedResponse.create(
        text=_NO_HISTORY_TEXT[lang],
        language=lang,
        emotion=Emotion.RELAXED,
        agent_name=self.agent_name,
        confidence=0.5,
        category=category,
        sources=["memory"],
      )

    if self.model is None:
      return fallback_response(lang, category, None, self.agent_name, "no_model")

    mode = recall_mode(query)
    try:
      text = await self._run_chain(
        f"memory/recall_{mode}_{lang}.txt",
        {"query": query, "history": history},
      )
    except asyncio.TimeoutError:
      logger.warning("记忆回溯超时 (%.1fs)", self.timeout_seconds)
      return fallback_response(lang, category, None, self.agent_name, "generation_timeout")
    except Exception as e:
      logger.error("记忆回溯生成失败: %s", e)
      return fallback_response(lang, category, None, self.agent_name, "generation_error")

    return self._finalize(
      text, lang, category, None, Emotion.RELAXED, 0.8, ["memory"], {"recall_mode": mode},
    )

  def _finalize(
    self,
    text: str,
    language: str,
    category: Optional[str],
    request_type: Optional[str],
    emotion: Optional[Emotion],
    confidence: float,
    sources: list[str],
    processing_info: Optional[dict[str, Any]],
  ) -> UnifiedResponse:
    # 生成文本自带的标记优先，其次调用方指定，最后按正文内容推断
    parsed = parse_emotion_tags(text)
    chosen = parsed.primary or emotion
    if chosen is None:
      chosen = EmotionTagger(default=fallback_emotion(category)).detect(parsed.clean_text)
    response = UnifiedResponse.create(
      text=text,
      language=language,
      emotion=chosen,
      agent_name=self.agent_name,
      confidence=confidence,
      category=category,
      request_type=request_type,
      sources=sources,
      processing_info=processing_info,
    )
    if not response.plain_text:
      logger.warning("生成结果为空，使用降级回复")
      return fallback_response(language, category, request_type, self.agent_name, "empty_generation")
    return response
