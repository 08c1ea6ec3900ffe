"""Core domain types and logic."""

from .config import Config, ConfigError, load_config
from .errors import ErrorCode
from .home import DataHome, HomeError, detect_home
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    # errors
    "ErrorCode",
    # home
    "DataHome",
    "HomeError",
    "detect_home",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
