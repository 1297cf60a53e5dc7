"""
Pytest fixtures for the solgrind SDK tests.
"""
import pytest

from solgrind.builder import TransactionBuilder
from solgrind.config import GrindPolicy, Network, NetworkConfig
from solgrind.engine import GrindEngine
from solgrind.gateway import StubGateway
from solgrind.gateway import _rate_limited_log
from solgrind.identity import create_identity

# Well-formed address used by the original demo
TEST_RECIPIENT = "Dghnvn5Mjpgi4JyGLebQ4fubVytvjTy59xkrYCLHaFTm"


@pytest.fixture(autouse=True)
def _reset_caches():
    """Keep class-level and module-level caches from leaking between tests."""
    NetworkConfig._networks_cache = None
    _rate_limited_log._error_log_cache.clear()
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def fast_policy():
    """Grind policy without any delays."""
    return GrindPolicy(retry_delay=0, refresh_delay=0, error_delay=0)


@pytest.fixture
def stub_gateway():
    return StubGateway()


@pytest.fixture
def sender():
    return create_identity()


@pytest.fixture
def recipient():
    return TEST_RECIPIENT


@pytest.fixture
def builder(stub_gateway):
    return TransactionBuilder(stub_gateway, Network.DEVNET)


@pytest.fixture
def engine(builder, stub_gateway, fast_policy):
    return GrindEngine(builder, stub_gateway, fast_policy)
