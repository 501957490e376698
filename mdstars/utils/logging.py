import logging
from typing import Optional

_FMT = "[%(levelname)s] %(message)s"
_FILE_FMT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"


def configure(level: int = logging.WARNING, *, quiet: bool = False,
              debug: bool = False, log_file: Optional[str] = None) -> None:
    if quiet:
        level = logging.ERROR
    if debug:
        level = logging.DEBUG
    handlers = [logging.StreamHandler()]
    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FMT))
        handlers.append(fh)
    logging.basicConfig(level=level, format=_FMT, handlers=handlers, force=True)
    # httpx logs every request at INFO; keep it to our own --debug runs
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str = "mdstars"):
    return logging.getLogger(name)
