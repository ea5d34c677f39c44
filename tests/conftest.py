import pytest

from condosplit.models import AppConfig
from condosplit.services.config_io import sample_config


@pytest.fixture
def config() -> AppConfig:
    return sample_config()
