"""Shared pytest fixtures"""

import pytest

from core.providers.audio.mock import MockAudioProvider
from tests.mocks.fixtures import (
    make_config,
    make_image,
    make_step_list,
)


# ============================================================
# Speech Engines
# ============================================================

@pytest.fixture
def mock_provider():
    """Fresh mock speech engine for each test"""
    return MockAudioProvider()


@pytest.fixture
def slow_provider():
    """Mock speech engine that takes a moment per utterance"""
    return MockAudioProvider(delay=0.02)


# ============================================================
# Test Data Fixtures
# ============================================================

@pytest.fixture
def render_config():
    """Small-canvas render config"""
    return make_config()


@pytest.fixture
def sample_image():
    """800x600 red image"""
    return make_image()


@pytest.fixture
def sample_steps():
    """List of 3 sample steps"""
    return make_step_list(3)


# ============================================================
# Markers Configuration
# ============================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real ffmpeg binary"
    )
