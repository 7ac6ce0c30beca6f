import pytest
import logging
import os
from pathlib import Path
from modules.logging_config import LoggingConfigurator
from modules.logging_config.logging_config import ColoredFormatter

def test_logger_creation(tmp_path):
    # Change CWD to tmp_path to avoid creating logs in project root
    old_cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        config = {'logging': {'level': 'DEBUG', 'log_to_file': True}}
        lc = LoggingConfigurator(config)
        lc.setup()

        logger = lc.get_logger('test_mod')
        logger.info("Test message")

        assert Path("logs/pipeline.log").exists()
        with open("logs/pipeline.log", 'r') as f:
            content = f.read()
        assert "Test message" in content
        assert "[INFO] [test_mod]" in content
    finally:
        logging.shutdown()
        os.chdir(old_cwd)

def test_custom_log_location(tmp_path):
    config = {'logging': {'log_dir': str(tmp_path / "custom"), 'log_file': 'run.log', 'log_to_console': False}}
    root = LoggingConfigurator(config).setup()
    try:
        assert len(root.handlers) == 1
        assert (tmp_path / "custom").is_dir()
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

def test_console_only(tmp_path):
    config = {'logging': {'level': 'warning', 'log_to_file': False, 'log_dir': str(tmp_path / "unused")}}
    root = LoggingConfigurator(config).setup()
    try:
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, ColoredFormatter)
        assert not (tmp_path / "unused").exists()
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)

def test_colored_formatter_leaves_record_untouched():
    formatter = ColoredFormatter('%(levelname)s %(message)s')
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)
    output = formatter.format(record)
    assert "WARNING" in output
    assert output != "WARNING careful"
    assert record.levelname == "WARNING"
