import json
import logging
import os
from pathlib import Path


class ContextFormatter(logging.Formatter):
    """Formatter that appends a record's structured ``context`` as JSON.

    Handlers log structured data with ``logger.info(msg, extra={"context": {...}})``;
    records without context are formatted unchanged.
    """

    def format(self, record: logging.LogRecord) -> str:
        out = super().format(record)
        context = getattr(record, "context", None)
        if context:
            out = f"{out}|| context={json.dumps(context, default=str, sort_keys=True)}\n"
        return out


PACKAGE = __name__.split(".")[0]

# set by set_package_level; wins over LOG_LEVEL for loggers created afterwards
_level_override = None


def parse_level(name, default=logging.INFO) -> int:
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


def _default_level():
    if _level_override is not None:
        return _level_override
    return parse_level(os.environ.get("LOG_LEVEL", "INFO"))


def set_package_level(level) -> int:
    """Apply ``level`` (name or number) to every logger under this package, existing or future."""
    global _level_override
    _level_override = parse_level(level)
    for name, lg in list(logging.root.manager.loggerDict.items()):
        if isinstance(lg, logging.Logger) and (name == PACKAGE or name.startswith(PACKAGE + ".")):
            lg.setLevel(_level_override)
    return _level_override


def get_logger(name: str, level=None) -> logging.Logger:
    """Get a named logger with standard formatting.

    Example:
        logger = get_logger(__name__)
        logger.info("Message published", extra={"context": {"topic": "orders"}})

    Records are written to stderr and, when ``LOG_DIR`` is set, to
    ``<LOG_DIR>/<name>.log`` as well.

    Returns:
        logging.Logger: Configured logger instance.
    """
    if level is None:
        level = _default_level()
    logger = logging.getLogger(name)

    # avoid adding duplicate handlers if called repeatedly (common in tests)
    if logger.handlers:
        logger.setLevel(level)
        return logger

    formatter = ContextFormatter(
        '%(asctime)s     || %(name)s \n%(levelname)s   || %(message)s \n',
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    log_dir = os.environ.get("LOG_DIR")
    if log_dir:
        logs_path = Path(log_dir)
        try:
            logs_path.mkdir(parents=True, exist_ok=True)
        except OSError:
            # unwritable log directory: keep streaming only
            logs_path = None
        if logs_path is not None:
            filehandler = logging.FileHandler(str(logs_path / f"{name}.log"), encoding="utf-8")
            filehandler.setFormatter(formatter)
            logger.addHandler(filehandler)

    logger.setLevel(level)
    # stop passing records to the root logger (avoid duplicated messages)
    logger.propagate = False

    logger.debug("'%s' initialized with level %s", name, logging.getLevelName(level))
    return logger
