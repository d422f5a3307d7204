import pytest

from blockemu.supervisor_log import LOG_FILE_NAME, new_supervisor_logger


@pytest.fixture
def make_logger():
    made = []

    def _make(directory):
        logger = new_supervisor_logger(directory)
        made.append(logger)
        return logger

    yield _make
    for logger in made:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def _flush(logger):
    for handler in logger.handlers:
        handler.flush()


def test_message_reaches_log_file(tmp_path, make_logger):
    log_dir = tmp_path / "nested" / "log"
    logger = make_logger(log_dir)
    logger.info("hello supervisor")
    _flush(logger)
    content = (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert content.startswith("Supervisor: ")
    assert "hello supervisor" in content


def test_message_reaches_stdout(tmp_path, capsys, make_logger):
    logger = make_logger(tmp_path)
    logger.info("to the console")
    _flush(logger)
    out = capsys.readouterr().out
    assert "Supervisor: " in out
    assert "to the console" in out


def test_repeated_creation_does_not_duplicate_handlers(tmp_path, make_logger):
    first = make_logger(tmp_path)
    second = make_logger(tmp_path)
    assert first is second
    assert len(second.handlers) == 2


def test_log_file_name_is_fixed(tmp_path, make_logger):
    logger = make_logger(tmp_path)
    logger.info("x")
    _flush(logger)
    assert [p.name for p in tmp_path.iterdir()] == ["Supervisor.log"]