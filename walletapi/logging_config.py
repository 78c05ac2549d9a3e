import logging.config
import sys


def build_logging_config(log_level: str = "INFO", sql_echo: bool = False) -> dict:
    """
    dictConfig for the service

    Everything under ``walletapi`` goes to stdout; warnings and above are
    repeated on stderr so failed payouts and refunds stand out. SQL statements
    are only logged when ``sql_echo`` is set.
    """
    log_level = log_level.upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "service": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            },
            "alert": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            },
        },
        "handlers": {
            "stdout": {
                "formatter": "service",
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
            },
            "stderr": {
                "formatter": "alert",
                "class": "logging.StreamHandler",
                "stream": sys.stderr,
                "level": "WARNING",
            },
        },
        "loggers": {
            "walletapi": {
                "handlers": ["stdout", "stderr"],
                "level": log_level,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "handlers": ["stdout"],
                "level": "INFO" if sql_echo else "WARNING",
                "propagate": False,
            },
        },
        "root": {"handlers": ["stdout"], "level": "WARNING"},
    }


def setup_logging(log_level: str = "INFO", sql_echo: bool = False) -> None:
    logging.config.dictConfig(build_logging_config(log_level, sql_echo))
