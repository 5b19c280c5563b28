import logging

from nvsync import colorlog


def test_create_logger(capsys):
    """
    Test create_logger
    """
    logger = colorlog.create_logger("test_logger", "DEBUG")
    logger.info("test info message")
    logger.debug("test debug message")
    logger.warning("test warning message")
    logger.log(colorlog.SUCCESS, "test success message")
    logger.error("test error message")

    captured = capsys.readouterr()

    # Check for colorized output
    assert "\033[1;34minfo" in captured.err
    assert "\033[1;36mdebug" in captured.err
    assert "\033[1;33mwarning" in captured.err
    assert "\033[1;32msuccess" in captured.err
    assert "\033[1;31merror" in captured.err

    # Check for log messages
    assert "test info message" in captured.err
    assert "test success message" in captured.err

    # Check for debug message format
    assert "[test_colorlog:test_create_logger]" in captured.err

    logger.handlers.clear()


def test_success_level_name():
    assert logging.getLevelName(colorlog.SUCCESS) == "SUCCESS"
    assert logging.INFO < colorlog.SUCCESS < logging.WARNING
