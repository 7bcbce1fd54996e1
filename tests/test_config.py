import json
import os
import stat

import pytest

from mediagen.config import (
    ConfigError,
    ConfigFile,
    ServiceConfig,
    get_settings,
    load_config,
    load_or_create,
    mask_key,
    mask_secret,
    resolve_access_keys,
    resolve_api_key,
    save_config,
)


def test_env_wins_over_config_file():
    key = resolve_api_key("ARK_API_KEY", "from-env", ServiceConfig(api_key="from-file"))
    assert key.value == "from-env"
    assert key.source == "env ARK_API_KEY"


def test_config_file_fallback():
    key = resolve_api_key("ARK_API_KEY", "", ServiceConfig(api_key="from-file"))
    assert key.value == "from-file"
    assert key.source == "config file"


def test_nothing_configured():
    key = resolve_api_key("ARK_API_KEY", "", None)
    assert not key
    assert key.source == ""


def test_access_keys_resolve_independently():
    ak, sk = resolve_access_keys(
        "JIMENG_ACCESS_KEY_ID", "env-ak",
        "JIMENG_SECRET_ACCESS_KEY", "",
        ServiceConfig(access_key_id="file-ak", secret_access_key="file-sk"),
    )
    assert (ak.value, ak.source) == ("env-ak", "env JIMENG_ACCESS_KEY_ID")
    assert (sk.value, sk.source) == ("file-sk", "config file")


def test_save_and_load(tmp_path):
    path = tmp_path / "nested" / "config.json"
    cfg = ConfigFile(ark=ServiceConfig(api_key="k1"), topview=ServiceConfig(api_key="k2", uid="u"))
    save_config(cfg, path)

    assert json.loads(path.read_text()) == {
        "ark": {"api_key": "k1"},
        "topview": {"api_key": "k2", "uid": "u"},
    }
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert load_config(path) == cfg


def test_unknown_sections_survive_round_trip(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"ark": {"api_key": "k"}, "other_tool": {"token": "t"}}))

    cfg = load_config(path)
    cfg.gemini = ServiceConfig(api_key="g")
    save_config(cfg, path)

    data = json.loads(path.read_text())
    assert data["other_tool"] == {"token": "t"}
    assert data["gemini"] == {"api_key": "g"}


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="failed to read config"):
        load_config(tmp_path / "nope.json")
    assert load_or_create(tmp_path / "nope.json") == ConfigFile()


def test_corrupt_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError, match="failed to parse config"):
        load_config(path)


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ARK_API_KEY", "env-key")
    monkeypatch.setenv("HTTP_TIMEOUT", "30")
    get_settings.cache_clear()

    settings = get_settings()
    assert settings.ARK_API_KEY == "env-key"
    assert settings.HTTP_TIMEOUT == 30.0
    assert settings.config_path == tmp_path / "config" / "config.json"


@pytest.mark.parametrize(
    "key, masked",
    [
        ("short", "short"),
        ("12345678", "12345678"),
        ("sk-abcdefghijklmnop", "sk-a...mnop"),
    ],
)
def test_mask_key(key, masked):
    assert mask_key(key) == masked


def test_mask_secret():
    assert mask_secret("AKLTabcdefgh1234") == "AKLT********1234"
    assert mask_secret("abc") == "***"
