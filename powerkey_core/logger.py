import logging, json, sys, time, os


class JsonFormatter(logging.Formatter):
    """One JSON object per line; message text is escaped, never spliced."""

    converter = time.gmtime  # UTC timestamps

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def get_logger(name="powerkey", level=None, to_file=None):
    """
    Structured logger shared by every powerkey module.

    Level and file sink default from POWERKEY_LOG_LEVEL / POWERKEY_LOG_FILE.
    Handlers are attached once per logger name.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or os.getenv("POWERKEY_LOG_LEVEL", "INFO").upper())

    if not logger.handlers:
        formatter = JsonFormatter()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        to_file = to_file or os.getenv("POWERKEY_LOG_FILE")
        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
