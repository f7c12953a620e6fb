import pytest

from appiumoptions.capabilities import ComplianceRegistry


@pytest.fixture
def registry() -> ComplianceRegistry:
    """Registry isolated from the process-wide default."""
    return ComplianceRegistry()
