"""
Console logging setup for the StrategyLab command line.
"""
import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
HANDLER_NAME = "strategylab-console"


def setup_logger(name: str = "strategylab", level: int = logging.INFO) -> logging.Logger:
    """
    Attaches a console handler to the named logger.

    Calling this more than once does not stack handlers.

    Args:
        name (str): The logger name. Package modules log under 'strategylab.*'.
        level (int): The logging level.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not any(h.get_name() == HANDLER_NAME for h in logger.handlers):
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        ch.set_name(HANDLER_NAME)
        logger.addHandler(ch)
    return logger
