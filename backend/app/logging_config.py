import json
import logging
import os

# Mockup context the pipeline attaches via `extra=`
CONTEXT_FIELDS = ("garment", "side", "location", "stage", "result")


def setup_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if os.environ.get("JSON_LOGS", "0") == "1":
        logging.getLogger().handlers = [JSONLogHandler()]


class JSONLogHandler(logging.StreamHandler):
    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            msg = {
                "ts": self.formatter.formatTime(record) if self.formatter else record.created,
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            for key in CONTEXT_FIELDS:
                value = getattr(record, key, None)
                if value is not None:
                    msg[key] = value
            if record.exc_info:
                msg["exc_info"] = self.formatException(record.exc_info)
            self.stream.write(json.dumps(msg, ensure_ascii=False) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)

    def formatException(self, exc_info) -> str:
        return logging.Formatter().formatException(exc_info)
