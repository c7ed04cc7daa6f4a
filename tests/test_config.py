import pytest

from minisearch.utils.config import ConfigManager, ConfigurationError, CrawlerConfig, load_config


@pytest.fixture(autouse=True)
def in_tmp_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def write_config(tmp_path, text):
    path = tmp_path / "custom.yaml"
    path.write_text(text)
    return str(path)


def test_defaults_without_config_file():
    config = load_config()

    assert config.crawler == CrawlerConfig()
    assert config.crawler.max_pages == 50
    assert config.crawler.max_depth == 3
    assert config.server.port == 3000
    assert config.index.path == "index.json"


def test_default_file_is_picked_up(tmp_path):
    (tmp_path / "config.yaml").write_text("crawler:\n  max_pages: 7\n")

    assert load_config().crawler.max_pages == 7


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"))


def test_yaml_values(tmp_path):
    path = write_config(tmp_path, """
crawler:
  max_pages: 20
  concurrency: 2
  request_timeout: 3.5
server:
  port: 8080
  default_limit: 10
logging:
  level: debug
  json: true
""")

    config = ConfigManager(path).load_config()

    assert config.crawler.max_pages == 20
    assert config.crawler.concurrency == 2
    assert config.crawler.request_timeout == 3.5
    assert config.crawler.max_depth == 3
    assert config.server.port == 8080
    assert config.server.default_limit == 10
    assert config.logging.json is True


def test_overrides_win_and_none_is_ignored(tmp_path):
    path = write_config(tmp_path, "crawler:\n  max_pages: 20\n  max_depth: 1\n")

    config = load_config(path, overrides={
        'crawler': {'max_pages': 5, 'max_depth': None},
        'index': {'path': 'other.json'},
    })

    assert config.crawler.max_pages == 5
    assert config.crawler.max_depth == 1
    assert config.index.path == 'other.json'


@pytest.mark.parametrize("text", [
    "crawler:\n  max_pages: 0\n",
    "crawler:\n  max_depth: -1\n",
    "crawler:\n  concurrency: 0\n",
    "crawler:\n  request_timeout: 0\n",
    "crawler:\n  progress_interval: 0\n",
    "crawler:\n  progress_interval: soon\n",
    "server:\n  port: 70000\n",
    "server:\n  default_limit: 0\n",
    "logging:\n  level: LOUD\n",
    "crawler:\n  max_page: 5\n",
    "storage:\n  backend: redis\n",
    "crawler: [1, 2]\n",
    "- just\n- a list\n",
    "crawler: {max_pages: 5\n",
])
def test_invalid_configuration(tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_config(write_config(tmp_path, text))


def test_empty_file_means_defaults(tmp_path):
    assert load_config(write_config(tmp_path, "")).crawler == CrawlerConfig()


def test_config_property_requires_load():
    with pytest.raises(ConfigurationError):
        ConfigManager().config
