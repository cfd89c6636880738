import os
from logging import config, getLevelName, getLogger

LOGGER_NAME = "geo_region"
# GEOIP_LOG_LEVEL wins over the process-wide LOG_LEVEL.
LOG_LEVEL = getLevelName(os.getenv("GEOIP_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO"))  # DEBUG, WARNING, ERROR

# httpx logs every request line at INFO, and paid-tier lookup URLs carry the API key.
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")

log_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(levelprefix)s %(asctime)s - %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
            "use_colors": True,
        },
    },
    "handlers": {
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        LOGGER_NAME: {"handlers": ["default"], "level": LOG_LEVEL, "propagate": False},
        **{name: {"level": "WARNING"} for name in HTTP_CLIENT_LOGGERS},
    },
}

config.dictConfig(log_config)

logger = getLogger(LOGGER_NAME)
