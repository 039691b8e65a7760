"""
短期记忆持久化
使用 SQLite 存储带过期时间的键值记录（对话轮次、澄清记录）
"""

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _like_prefix(prefix: str) -> str:
  """构造 LIKE 前缀匹配模式（转义 _ 和 %）"""
  escaped = prefix.replace("\\", "\\\\").replace("_", "\\_").replace("%", "\\%")
  return f"{escaped}%"


class MemoryPersistence:
  """
  短期记忆数据库

  表 agent_memory 以 (agent_name, key) 唯一，value 为 JSON。
  提供带过期时间的插入、按过期时间的范围查询，以及容量上限维护。
  """

  def __init__(self, db_path: Optional[str] = None):
    """
    初始化数据库

    Args:
      db_path: 数据库路径。
        - None: 默认文件路径 data/short_term_memory.db
        - ":memory:": 纯内存数据库（进程结束即销毁）
        - 其他字符串: 指定文件路径
    """
    self._in_memory = (db_path == ":memory:")

    if db_path is None:
      project_root = Path(__file__).parent.parent
      data_dir = project_root / "data"
      data_dir.mkdir(exist_ok=True)
      db_path = str(data_dir / "short_term_memory.db")

    self._db_path = db_path

    # 内存模式需要保持单一连接（关闭即销毁）
    if self._in_memory:
      self._shared_conn = sqlite3.connect(
        ":memory:", check_same_thread=False,
      )
    else:
      self._shared_conn = None

    self._init_database()

  def _get_connection(self) -> sqlite3.Connection:
    """获取数据库连接"""
    if self._shared_conn is not None:
      return self._shared_conn
    return sqlite3.connect(self._db_path)

  def _init_database(self) -> None:
    """初始化数据库表"""
    with self._get_connection() as conn:
      cursor = conn.cursor()
      cursor.execute("""
        CREATE TABLE IF NOT EXISTS agent_memory (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          agent_name TEXT NOT NULL,
          key TEXT NOT NULL,
          value TEXT NOT NULL,
          session_id TEXT,
          created_at REAL NOT NULL,
          expires_at REAL NOT NULL,
          UNIQUE (agent_name, key)
        )
      """)
      cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_agent_memory_expires
        ON agent_memory(agent_name, expires_at)
      """)
      conn.commit()

  def insert(
    self,
    agent_name: str,
    key: str,
    value: dict[str, Any],
    ttl_seconds: float,
    session_id: Optional[str] = None,
    now: Optional[float] = None,
    bound_prefix: Optional[str] = None,
    max_entries: Optional[int] = None,
  ) -> None:
    """
    插入（或覆盖）一条带过期时间的记录

    指定 bound_prefix 和 max_entries 时，在同一事务内用一条条件 DELETE
    把该前缀下的记录裁剪到 max_entries 条（最旧的先删）。

    Args:
      agent_name: 存储分区
      key: 记录键
      value: JSON 可序列化的值
      ttl_seconds: 存活时间
      session_id: 会话 ID
      now: 当前时间（epoch 秒），默认 time.time()
      bound_prefix: 容量上限作用的键前缀
      max_entries: 容量上限

    Raises:
      sqlite3.Error: 数据库不可用时抛出，由调用方决定是否吞掉
    """
    now = time.time() if now is None else now
    payload = json.dumps(value, ensure_ascii=False)
    bounded = bound_prefix is not None and max_entries is not None
    needs_fallback = False

    with self._get_connection() as conn:
      conn.execute(
        """
        INSERT OR REPLACE INTO agent_memory
          (agent_name, key, value, session_id, created_at, expires_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (agent_name, key, payload, session_id, now, now + ttl_seconds),
      )
      if bounded:
        try:
          self._enforce_bound_atomic(conn, agent_name, bound_prefix, max_entries)
        except sqlite3.OperationalError as e:
          logger.warning("容量裁剪原子操作失败，改用逐条删除: %s", e)
          needs_fallback = True

    # 条件删除不可用时退化为先读后删（尽力而为，可能短暂超出上限）
    if needs_fallback:
      self._enforce_bound_fallback(agent_name, bound_prefix, max_entries)

  @staticmethod
  def _enforce_bound_atomic(
    conn: sqlite3.Connection,
    agent_name: str,
    prefix: str,
    max_entries: int,
  ) -> None:
    pattern = _like_prefix(prefix)
    conn.execute(
      """
      DELETE FROM agent_memory
      WHERE agent_name = ? AND key LIKE ? ESCAPE '\\'
        AND id NOT IN (
          SELECT id FROM agent_memory
          WHERE agent_name = ? AND key LIKE ? ESCAPE '\\'
          ORDER BY created_at DESC, id DESC
          LIMIT ?
        )
      """,
      (agent_name, pattern, agent_name, pattern, max_entries),
    )

  def _enforce_bound_fallback(
    self,
    agent_name: str,
    prefix: str,
    max_entries: int,
  ) -> None:
    pattern = _like_prefix(prefix)
    try:
      with self._get_connection() as conn:
        rows = conn.execute(
          """
          SELECT id FROM agent_memory
          WHERE agent_name = ? AND key LIKE ? ESCAPE '\\'
          ORDER BY created_at DESC, id DESC
          """,
          (agent_name, pattern),
        ).fetchall()
        stale_ids = [row[0] for row in rows[max_entries:]]
        for stale_id in stale_ids:
          conn.execute("DELETE FROM agent_memory WHERE id = ?", (stale_id,))
    except sqlite3.Error as e:
      logger.error("容量裁剪失败: %s", e)

  def query_active(
    self,
    agent_name: str,
    key_prefix: str,
    session_id: Optional[str] = None,
    now: Optional[float] = None,
    limit: Optional[int] = None,
  ) -> list[dict[str, Any]]:
    """
    范围查询未过期的记录

    Args:
      agent_name: 存储分区
      key_prefix: 键前缀
      session_id: 只取该会话的记录（None 表示不过滤）
      now: 当前时间
      limit: 只取最新的 limit 条

    Returns:
      记录值列表，旧 → 新
    """
    now = time.time() if now is None else now
    sql = """
      SELECT value FROM agent_memory
      WHERE agent_name = ? AND key LIKE ? ESCAPE '\\' AND expires_at > ?
    """
    params: list[Any] = [agent_name, _like_prefix(key_prefix), now]
    if session_id is not None:
      sql += " AND session_id = ?"
      params.append(session_id)
    sql += " ORDER BY created_at DESC, id DESC"
    if limit is not None:
      sql += " LIMIT ?"
      params.append(limit)

    with self._get_connection() as conn:
      rows = conn.execute(sql, params).fetchall()

    values = [json.loads(row[0]) for row in rows]
    values.reverse()
    return values

  def delete_prefix(
    self,
    agent_name: str,
    key_prefix: str,
    session_id: Optional[str] = None,
  ) -> int:
    """删除某前缀下的记录，返回删除条数"""
    sql = "DELETE FROM agent_memory WHERE agent_name = ? AND key LIKE ? ESCAPE '\\'"
    params: list[Any] = [agent_name, _like_prefix(key_prefix)]
    if session_id is not None:
      sql += " AND session_id = ?"
      params.append(session_id)
    with self._get_connection() as conn:
      cursor = conn.execute(sql, params)
      return cursor.rowcount

  def purge_expired(self, agent_name: str, now: Optional[float] = None) -> int:
    """删除已过期的记录，返回删除条数"""
    now = time.time() if now is None else now
    with self._get_connection() as conn:
      cursor = conn.execute(
        "DELETE FROM agent_memory WHERE agent_name = ? AND expires_at <= ?",
        (agent_name, now),
      )
      return cursor.rowcount

  def count(self, agent_name: str, key_prefix: str = "") -> int:
    """统计记录数（含已过期未清理的）"""
    with self._get_connection() as conn:
      row = conn.execute(
        "SELECT COUNT(*) FROM agent_memory WHERE agent_name = ? AND key LIKE ? ESCAPE '\\'",
        (agent_name, _like_prefix(key_prefix)),
      ).fetchone()
    return int(row[0])
