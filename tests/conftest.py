import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def package_logging():
    logger.enable("beamoverlap")
    yield
    logger.disable("beamoverlap")
