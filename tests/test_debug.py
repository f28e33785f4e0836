# tests/test_debug.py

import pytest
from pydantic import ValidationError

from secret_missions.api.v1.debug import DebugSeedRequest


def test_seed_request_defaults_to_online():
    assert DebugSeedRequest().mode == "online"


def test_seed_request_rejects_unknown_mode():
    with pytest.raises(ValidationError):
        DebugSeedRequest(mode="arcade")
