from __future__ import annotations

import logging

import pytest

from obs_delay.config import Config, parse_obs_url, parse_sources
from obs_delay.constants import DEFAULT_SOURCES, LOG_LEVEL, resolve_log_level
from obs_delay.main import apply_args, build_parser, cli_log_level


@pytest.mark.unit
def test_defaults_cover_eight_inputs(monkeypatch: pytest.MonkeyPatch):
    for var in ("OBS_DELAY_OBS_URL", "OBS_DELAY_SOURCES", "OBS_DELAY_FILTER_NAME"):
        monkeypatch.delenv(var, raising=False)

    cfg = Config.from_env()

    assert cfg.FILTER_NAME == "Render Delay"
    assert cfg.SOURCES == list(DEFAULT_SOURCES)
    assert len(cfg.SOURCES) == 8
    assert cfg.SERVER_PORT == 3000
    assert cfg.AUTO_CONNECT is False  # disabled for the test session


@pytest.mark.unit
def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OBS_DELAY_OBS_URL", "ws://strih.lan:4456")
    monkeypatch.setenv("OBS_DELAY_OBS_PASSWORD", "hunter2")
    monkeypatch.setenv("OBS_DELAY_SOURCES", "Cam A, Cam B,,Cam C ")
    monkeypatch.setenv("OBS_DELAY_CALL_TIMEOUT", "0.75")
    monkeypatch.setenv("OBS_DELAY_AUTO_CONNECT", "yes")

    cfg = Config.from_env()

    assert (cfg.OBS_HOST, cfg.OBS_PORT) == ("strih.lan", 4456)
    assert cfg.obs_url == "ws://strih.lan:4456"
    assert cfg.OBS_PASSWORD == "hunter2"
    assert cfg.SOURCES == ["Cam A", "Cam B", "Cam C"]
    assert cfg.CALL_TIMEOUT_S == 0.75
    assert cfg.AUTO_CONNECT is True


@pytest.mark.unit
def test_invalid_numeric_env_fails_fast(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OBS_DELAY_SERVER_PORT", "http")
    with pytest.raises(ValueError):
        Config.from_env()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("ws://192.168.0.10:4455", ("192.168.0.10", 4455)),
        ("wss://obs.example:443", ("obs.example", 443)),
        ("studio.lan:4460", ("studio.lan", 4460)),
        ("ws://studio.lan", ("studio.lan", 4455)),
    ],
)
def test_parse_obs_url(url, expected):
    assert parse_obs_url(url) == expected


@pytest.mark.unit
def test_parse_obs_url_rejects_other_schemes():
    with pytest.raises(ValueError):
        parse_obs_url("http://studio.lan:4455")


@pytest.mark.unit
def test_parse_sources_keeps_order():
    assert parse_sources("b, a ,c") == ["b", "a", "c"]
    assert parse_sources(" , ") == []


@pytest.mark.unit
def test_cli_overrides_config():
    base = Config()
    args = build_parser(base).parse_args(
        [
            "--obs-url",
            "ws://strih.lan:4456",
            "--sources",
            "01 input,02 input",
            "--port",
            "8081",
            "--no-connect",
            "--call-timeout",
            "1.5",
        ]
    )

    cfg = apply_args(base, args)

    assert (cfg.OBS_HOST, cfg.OBS_PORT) == ("strih.lan", 4456)
    assert cfg.SOURCES == ["01 input", "02 input"]
    assert cfg.SERVER_PORT == 8081
    assert cfg.AUTO_CONNECT is False
    assert cfg.CALL_TIMEOUT_S == 1.5


@pytest.mark.unit
@pytest.mark.parametrize(
    ("argv", "level"),
    [
        (["--log-level", "DEBUG"], logging.DEBUG),
        (["-vv"], logging.DEBUG),
        (["-v"], logging.INFO),
        (["-q"], logging.ERROR),
        ([], LOG_LEVEL),
    ],
)
def test_cli_log_level(argv, level):
    args = build_parser(Config()).parse_args(argv)
    assert cli_log_level(args) == level


@pytest.mark.unit
def test_resolve_log_level_unknown_name_is_warning():
    assert resolve_log_level("chatty") == logging.WARNING
    assert resolve_log_level("info") == logging.INFO
