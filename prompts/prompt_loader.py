"""
提示词加载器
负责加载 prompts/ 下的 txt 模板（回答生成、路由分类、记忆回溯）
"""

from pathlib import Path
from typing import Optional


class PromptLoader:
  """
  提示词加载器

  模板按用途分目录存放：
  - synthesis/  回答生成（子话题限定 / 开放式）
  - router/     查询分类
  - memory/     会话记忆回溯
  """

  def __init__(self, prompts_dir: Optional[Path] = None):
    """
    初始化提示词加载器

    Args:
      prompts_dir: 提示词文件所在目录，默认为当前模块所在目录
    """
    if prompts_dir is None:
      self.prompts_dir = Path(__file__).parent
    else:
      self.prompts_dir = Path(prompts_dir)
    self._cache: dict[str, str] = {}

  def load(self, filename: str) -> str:
    """
    加载指定的提示词文件（进程内缓存）

    Args:
      filename: 文件名或相对路径（如 "synthesis/open_ja.txt"）

    Returns:
      文件内容字符串

    Raises:
      FileNotFoundError: 文件不存在时抛出
    """
    if filename in self._cache:
      return self._cache[filename]
    file_path = self.prompts_dir / filename
    if not file_path.exists():
      raise FileNotFoundError(f"提示词文件不存在: {file_path}")
    content = file_path.read_text(encoding="utf-8").strip()
    self._cache[filename] = content
    return content

  def load_template(self, path: str, **kwargs: str) -> str:
    """
    加载 txt 模板并填充变量

    Args:
      path: 模板文件相对路径
      **kwargs: 模板变量

    Returns:
      填充后的字符串
    """
    raw = self.load(path)
    if kwargs:
      return raw.format(**kwargs)
    return raw

  def load_headers(self, path: str) -> dict[str, str]:
    """
    加载 key=value 格式的标题映射文件

    文件格式：每行一个 key=value，空行和 # 开头的行跳过

    Args:
      path: 文件相对路径

    Returns:
      dict[key, value]
    """
    raw = self.load(path)
    headers: dict[str, str] = {}
    for line in raw.splitlines():
      line = line.strip()
      if not line or line.startswith("#"):
        continue
      if "=" in line:
        key, value = line.split("=", 1)
        headers[key.strip()] = value.strip()
    return headers
