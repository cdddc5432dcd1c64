# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

from loguru import logger

try:
    __version__ = version("beamoverlap")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

# library messages stay silent until an application calls logger.enable("beamoverlap")
logger.disable("beamoverlap")
