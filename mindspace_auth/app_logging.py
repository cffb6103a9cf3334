import logging
from pythonjsonlogger import jsonlogger


def setup_logger(level: str = "INFO", json: bool = True):
    """Install a single stream handler on the root logger (JSON lines by default)."""
    logHandler = logging.StreamHandler()
    if json:
        formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                                             rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    logHandler.setFormatter(formatter)
    logger = logging.getLogger()
    for handler in list(logger.handlers):
        if getattr(handler, "_mindspace", False):
            logger.removeHandler(handler)
    logHandler._mindspace = True
    logger.addHandler(logHandler)
    logger.setLevel(level)
    return logHandler
