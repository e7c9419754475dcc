import json
import logging
import os
from logging.handlers import RotatingFileHandler

from ascii_image.config import Config, DEFAULT_CONFIG, Settings, _default_config_path
from ascii_image.logging_conf import setup_logging
from ascii_image.rendering.palette import DEFAULT_PALETTE


def test_env_override_of_path(isolated_config):
    assert _default_config_path() == str(isolated_config)


def test_load_missing_without_creating(isolated_config):
    cfg = Config.load(create_if_missing=False)
    assert not isolated_config.exists()
    assert cfg["output"] == {"width": None, "height": None}
    assert cfg["render"]["palette"] == "@default"


def test_load_missing_creates_file(isolated_config):
    Config.load()
    assert json.loads(isolated_config.read_text(encoding="utf-8"))["render"]["invert"] is False


def test_user_values_merge_over_defaults(tmp_path):
    p = tmp_path / "c.json"
    p.write_text(json.dumps({"render": {"invert": "yes", "palette": " .oO@"}, "output": {"height": "12"}}))
    cfg = Config.load(str(p))
    assert cfg["render"]["invert"] is True
    assert cfg["render"]["flip_x"] is False
    assert cfg["render"]["palette"] == " .oO@"
    assert cfg["output"]["height"] == 12
    assert cfg["network"]["retries"] == DEFAULT_CONFIG["network"]["retries"]


def test_corrupt_file_is_backed_up(tmp_path):
    p = tmp_path / "c.json"
    p.write_text("{not json")
    cfg = Config.load(str(p))
    assert cfg["render"]["palette"] == "@default"
    assert os.path.exists(str(p) + ".corrupt.bak")


def test_validation_fallbacks():
    cfg = Config()
    cfg.update({
        "output": {"width": 0, "height": "tall"},
        "render": {"palette": "x", "flip_y": "maybe"},
        "network": {"retries": 99, "read_timeout_s": "soon"},
        "logging": {"level": "chatty"},
    })
    assert cfg["output"] == {"width": 1, "height": None}
    assert cfg["render"]["palette"] == "@default"
    assert cfg["render"]["flip_y"] is False
    assert cfg["network"]["retries"] == 10
    assert cfg["network"]["read_timeout_s"] == 15.0
    assert cfg["logging"]["level"] == "WARNING"


def test_save_roundtrip(tmp_path):
    p = tmp_path / "sub" / "c.json"
    cfg = Config(path=str(p))
    cfg.update({"render": {"flip_x": True}, "output": {"width": 40}})
    cfg.save()
    again = Config.load(str(p))
    assert again["render"]["flip_x"] is True
    assert again["output"]["width"] == 40


def test_settings_from_config():
    cfg = Config()
    cfg.update({"render": {"palette": "@shades", "invert": True}, "output": {"height": 9}})
    s = Settings.from_config(cfg)
    assert s.palette.chars == " ░▒▓█"
    assert s.options.invert is True
    assert s.options.flip_x is False
    assert (s.width, s.height) == (None, 9)
    assert s.timeout == (5.0, 15.0)


def test_settings_defaults():
    s = Settings()
    assert s.palette.chars == DEFAULT_PALETTE
    assert s.width is None and s.height is None


def test_setup_logging_file_handler(tmp_path):
    log_file = tmp_path / "run.log"
    cfg = Config()
    cfg.update({"logging": {"file": str(log_file), "level": "INFO"}})
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging(cfg)
        added = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(added) == 1
        logging.getLogger("ascii_image.test").info("hello file")
        added[0].flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in root.handlers:
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)


def test_unreadable_config_falls_back_to_defaults(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="ascii_image.config"):
        cfg = Config.load(str(tmp_path))
    assert cfg["render"]["palette"] == "@default"
    assert "Cannot read config" in caplog.text
