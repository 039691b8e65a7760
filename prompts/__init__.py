"""
prompts 模块
txt 提示词模板及其加载器
"""

from .prompt_loader import PromptLoader

__all__ = [
  "PromptLoader",
]
