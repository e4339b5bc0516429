"""Utility modules for Text2MP3.

This package provides logging setup, file helpers and the exception taxonomy shared by all
components.
"""

from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

__all__: list[str] = ["FileUtils", "LoggerUtils"]
