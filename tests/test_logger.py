import logging

from llm_chat_kit.utils.logger import LOG_FORMAT, setup_logger


def test_stdout_handler_when_uvicorn_is_absent(monkeypatch):
    monkeypatch.setattr(logging.getLogger("uvicorn.error"), "handlers", [])
    logger = setup_logger("llm_chat_kit_test_stdout", level="debug")
    try:
        assert logger.level == logging.DEBUG
        assert not logger.propagate
        (handler,) = logger.handlers
        assert handler.formatter._fmt == LOG_FORMAT
    finally:
        logger.handlers.clear()


def test_reuses_uvicorn_handlers_and_is_idempotent(monkeypatch):
    uvicorn_handler = logging.NullHandler()
    monkeypatch.setattr(logging.getLogger("uvicorn.error"), "handlers", [uvicorn_handler])
    logger = setup_logger("llm_chat_kit_test_uvicorn")
    try:
        assert logger.handlers == [uvicorn_handler]
        again = setup_logger("llm_chat_kit_test_uvicorn", level=logging.WARNING)
        assert again is logger
        assert logger.handlers == [uvicorn_handler]
        assert logger.level == logging.WARNING
    finally:
        logger.handlers.clear()
