"""
Environment-driven settings for phase functions and the tools around them
"""

import os
import logging
from dataclasses import dataclass

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Settings:
    log_level: str = 'INFO'
    report_unhandled: bool = True

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        """Read settings from KV_MAPREDUCE_* environment variables"""
        environ = os.environ if environ is None else environ
        report = environ.get('KV_MAPREDUCE_REPORT_UNHANDLED', 'true')
        return cls(
            log_level=environ.get('KV_MAPREDUCE_LOG_LEVEL', 'INFO').upper(),
            report_unhandled=report.strip().lower() in _TRUE_VALUES,
        )


def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(settings: Settings = None):
    """Install the root log handler used by the CLI and scripts"""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT
    )
