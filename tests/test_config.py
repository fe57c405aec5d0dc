import textwrap

import pytest

from ao3_feed.config import AppConfig, parse_app_config


def test_parse_app_config_reads_all_sections(tmp_path):
    config_file = tmp_path / "config.xml"
    config_file.write_text(
        textwrap.dedent(
            """\
            <config>
              <server><host>0.0.0.0</host><port>8080</port></server>
              <source>
                <base-url>http://mirror.test/</base-url>
                <timeout>12.5</timeout>
                <user-agent>my-reader/2.0</user-agent>
              </source>
              <keepalive><enabled>false</enabled><interval>2</interval></keepalive>
              <logging><level>DEBUG</level><file>logs/feed.log</file></logging>
            </config>
            """
        ),
        encoding="utf-8",
    )

    config = parse_app_config(str(config_file))

    assert config.server.host == "0.0.0.0"
    assert config.server.port == 8080
    assert config.source.base_url == "http://mirror.test"
    assert config.source.timeout == 12.5
    assert config.source.user_agent == "my-reader/2.0"
    assert config.keepalive.enabled is False
    assert config.keepalive.interval == 2.0
    assert config.logging.level == "DEBUG"
    assert config.logging.file == str((tmp_path / "logs" / "feed.log").resolve())


def test_parse_app_config_defaults_missing_sections(tmp_path):
    config_file = tmp_path / "config.xml"
    config_file.write_text("<config/>", encoding="utf-8")

    config = parse_app_config(str(config_file))

    assert config == AppConfig()
    assert config.source.base_url == "https://archiveofourown.org"
    assert config.keepalive.enabled is True
    assert config.keepalive.interval == 1.0


def test_parse_app_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_app_config(str(tmp_path / "missing.xml"))


@pytest.mark.parametrize(
    "snippet",
    [
        "<keepalive><interval>0</interval></keepalive>",
        "<keepalive><enabled>maybe</enabled></keepalive>",
        "<source><timeout>soon</timeout></source>",
    ],
)
def test_parse_app_config_rejects_bad_values(tmp_path, snippet):
    config_file = tmp_path / "config.xml"
    config_file.write_text(f"<config>{snippet}</config>", encoding="utf-8")

    with pytest.raises(ValueError):
        parse_app_config(str(config_file))
