import pytest

from folio.config import FolioSettings
from folio.reveal.scheduler import VirtualClock
from folio.symdef.models import DefinitionSource


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def aleph_source():
    return DefinitionSource(name="Aleph", usages=["aleph"])


@pytest.fixture
def fast_settings():
    return FolioSettings(unit_interval_ms=10, log_interval_ms=5, redact_length=50)
