"""
Test configuration
"""
import os
import sys
from pathlib import Path

import pytest

# Add project root to path
src_path = Path(__file__).parent.parent
sys.path.insert(0, str(src_path))

# Keep tests independent of a developer's .env
os.environ.setdefault("REASONER_LLM_URL", "http://reasoner.test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


@pytest.fixture
def test_settings():
    """Settings with fast timings for loop tests"""
    from config.settings import Settings
    return Settings(
        step_delay_ms=0,
        default_wait_ms=0,
        confirmation_timeout_ms=200,
        app_ack_timeout_ms=200,
        system_ack_timeout_ms=200,
        keyboard_ack_timeout_ms=200,
        mouse_ack_timeout_ms=200,
    )
