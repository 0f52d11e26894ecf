import json
import logging
import textwrap

import pytest

from unifeed import cli
from unifeed.models import Feed
from unifeed.snapshots import save_feed

RSS_DOCUMENT = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="utf-8"?>
    <rss version="2.0">
      <channel>
        <title>CLI Channel</title>
        <link>https://example.com/</link>
        <description>For the CLI</description>
        <image>
          <url>https://example.com/logo.png</url>
          <title>Logo</title>
          <link>https://example.com/</link>
          <width>300</width>
        </image>
        <item><title>One</title><guid>urn:one</guid></item>
        <item><title>Two</title><guid>urn:two</guid></item>
      </channel>
    </rss>
    """
)


@pytest.fixture
def no_logging_setup(monkeypatch):
    captured = {}

    def fake_configure(level, log_file=None):
        captured["level"] = level
        captured["file"] = log_file

    monkeypatch.setattr(cli, "configure_logging", fake_configure)
    return captured


@pytest.fixture
def rss_file(tmp_path):
    path = tmp_path / "feed.xml"
    path.write_text(RSS_DOCUMENT, encoding="utf-8")
    return path


def test_configure_logging_defaults_to_console_only():
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)

    try:
        cli.configure_logging("INFO")

        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
        assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_with_log_file_creates_file_handler(tmp_path):
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)

    try:
        log_path = tmp_path / "logs" / "custom.log"
        cli.configure_logging("DEBUG", str(log_path))

        assert log_path.exists()
        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("CHATTY")


def test_main_prints_feed_json(no_logging_setup, rss_file, capsys):
    exit_code = cli.main([str(rss_file)])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["title"] == "CLI Channel"
    assert payload["description"] == "For the CLI"
    assert [entry["id"] for entry in payload["entries"]] == ["urn:one", "urn:two"]
    assert payload["logo"]["width"] == 300
    assert no_logging_setup["level"] == "INFO"


def test_main_clamp_images_flag(no_logging_setup, rss_file, capsys):
    exit_code = cli.main([str(rss_file), "--clamp-images"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["logo"]["width"] == 144


def test_main_cli_overrides_config(no_logging_setup, rss_file, tmp_path, capsys):
    config_file = tmp_path / "config.xml"
    config_file.write_text(
        "<config><logging><level>WARNING</level><file>app.log</file></logging>"
        "<mapping><clamp-images>true</clamp-images></mapping>"
        "<output><indent>0</indent></output></config>",
        encoding="utf-8",
    )

    exit_code = cli.main(
        [str(rss_file), "--config", str(config_file), "--log-level", "DEBUG"]
    )

    assert exit_code == 0
    assert no_logging_setup["level"] == "DEBUG"
    assert no_logging_setup["file"] == str((tmp_path / "app.log").resolve())
    payload = json.loads(capsys.readouterr().out)
    assert payload["logo"]["width"] == 144


def test_main_saves_and_loads_snapshots(no_logging_setup, rss_file, tmp_path, capsys):
    snapshot = tmp_path / "out" / "feed.json"

    assert cli.main([str(rss_file), "--save-feed", str(snapshot)]) == 0
    first = json.loads(capsys.readouterr().out)
    assert snapshot.exists()

    assert cli.main(["--load-feed", str(snapshot)]) == 0
    second = json.loads(capsys.readouterr().out)
    assert second == first


def test_main_loads_existing_snapshot(no_logging_setup, tmp_path, capsys):
    feed = Feed.new()
    path = tmp_path / "feed.json"
    save_feed(str(path), feed)

    assert cli.main(["--load-feed", str(path)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["id"] == feed.id
    assert payload["title"] == f"feed: {feed.id}"


def test_main_requires_exactly_one_source(no_logging_setup, rss_file, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2

    with pytest.raises(SystemExit):
        cli.main([str(rss_file), "--load-feed", str(tmp_path / "x.json")])


def test_main_missing_document_returns_error(no_logging_setup, tmp_path):
    assert cli.main([str(tmp_path / "missing.xml")]) == 1


def test_main_unrecognised_document_returns_error(no_logging_setup, tmp_path):
    path = tmp_path / "page.html"
    path.write_text("<html><body>nope</body></html>", encoding="utf-8")

    assert cli.main([str(path)]) == 1


def test_main_bad_config_is_usage_error(no_logging_setup, rss_file, tmp_path):
    config_file = tmp_path / "config.xml"
    config_file.write_text("<config><output><indent>x</indent></output></config>", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(rss_file), "--config", str(config_file)])
    assert excinfo.value.code == 2


def test_configure_logging_replaces_previous_handlers(tmp_path):
    original_handlers = list(logging.getLogger().handlers)
    original_level = logging.getLogger().level

    try:
        cli.configure_logging("INFO", str(tmp_path / "first.log"))
        root = cli.configure_logging("warning")

        assert root is logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)
        logging.getLogger().setLevel(original_level)
