"""
模型提供者测试

核心预期：
- 模型源按 环境变量 → 密钥文件 → OpenAI 的顺序确定；
- 按用途套用默认模型和温度；
- 缺少密钥或配置未知模型源时抛出 ValueError。
"""

import json
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from langchain_wrapper import ModelProvider, ModelRole, ModelType


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
  for key in ("CONCIERGE_MODEL_PROVIDER", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
    monkeypatch.delenv(key, raising=False)


def test_default_provider_is_openai(tmp_path: Path) -> None:
  provider = ModelProvider(secrets_path=tmp_path / "missing.json")
  assert provider.default_provider() == ModelType.OPENAI


def test_provider_from_environment(tmp_path: Path, monkeypatch) -> None:
  monkeypatch.setenv("CONCIERGE_MODEL_PROVIDER", "Anthropic")
  provider = ModelProvider(secrets_path=tmp_path / "missing.json")
  assert provider.default_provider() == ModelType.ANTHROPIC


def test_unknown_provider_is_rejected(tmp_path: Path, monkeypatch) -> None:
  monkeypatch.setenv("CONCIERGE_MODEL_PROVIDER", "bogus")
  with pytest.raises(ValueError):
    ModelProvider(secrets_path=tmp_path / "missing.json").default_provider()


def test_classifier_model_uses_role_defaults(tmp_path: Path, monkeypatch) -> None:
  monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
  model = ModelProvider(secrets_path=tmp_path / "missing.json").get_model_for(
    ModelRole.CLASSIFIER, ModelType.OPENAI,
  )
  assert model.model_name == "gpt-4o-mini"
  assert model.temperature == 0.0


def test_secrets_file_selects_provider_and_key(tmp_path: Path) -> None:
  secrets = tmp_path / "api_keys.json"
  secrets.write_text(
    json.dumps({"anthropic_api_key": "sk-ant-test", "model_provider": "anthropic"}),
    encoding="utf-8",
  )
  provider = ModelProvider(secrets_path=secrets)
  assert provider.default_provider() == ModelType.ANTHROPIC
  model = provider.get_model_for(ModelRole.SYNTHESIS)
  assert model.model == "claude-sonnet-4-20250514"


def test_missing_key_raises(tmp_path: Path) -> None:
  with pytest.raises(ValueError):
    ModelProvider(secrets_path=tmp_path / "missing.json").get_model(ModelType.OPENAI)


def test_broken_secrets_file_is_ignored(tmp_path: Path) -> None:
  secrets = tmp_path / "api_keys.json"
  secrets.write_text("{not json", encoding="utf-8")
  assert ModelProvider(secrets_path=secrets).default_provider() == ModelType.OPENAI
