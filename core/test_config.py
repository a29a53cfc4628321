import pytest
import yaml

from core.config import ConfigManager
from core.config_types import QueryConfig, ConcurrencyConfig, LoggingConfig
from core.exceptions import ConfigError

def test_defaults_without_file():
    config = ConfigManager(None)
    assert config.query == QueryConfig()
    assert config.concurrency == ConcurrencyConfig()
    assert config.logging == LoggingConfig()
    assert config.query.timeout == 5.0
    assert config.query.default_port == 25565

def test_creates_default_file(tmp_path):
    path = tmp_path / "config.yaml"
    ConfigManager(str(path))

    assert path.exists()
    written = yaml.safe_load(path.read_text())
    assert written['query']['protocol_version'] == 770
    assert written['concurrency']['max_concurrent'] == 100

def test_loads_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "query:\n"
        "  timeout: 2.5\n"
        "  strict_length: false\n"
        "concurrency:\n"
        "  max_concurrent: 8\n"
        "logging:\n"
        "  level: debug\n"
    )
    config = ConfigManager(str(path))

    assert config.query.timeout == 2.5
    assert config.query.strict_length is False
    assert config.query.protocol_version == 770
    assert config.concurrency.max_concurrent == 8
    assert config.logging.level == "debug"

@pytest.mark.parametrize("content", [
    "query:\n  timeout: 0\n",
    "query:\n  default_port: 70000\n",
    "query:\n  protocol_version: -1\n",
    "concurrency:\n  max_concurrent: 0\n",
    "logging:\n  level: LOUD\n",
    "query:\n  retries: 3\n",
    "query: [1, 2]\n",
    "- just\n- a list\n",
    "query: {timeout: [\n",
])
def test_invalid_config(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        ConfigManager(str(path))
