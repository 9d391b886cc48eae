# tests/conftest.py

import pytest
from helpers import DOMAIN, TEST_NODE_NAME, FakeInstanceDirectory, FakeNodeDirectory, enabled_labels

from node_eip.core.policy import LabelPolicy
from node_eip.models.eip import ElasticIP
from node_eip.models.node import Taint, TaintEffect


@pytest.fixture
def policy():
    return LabelPolicy(DOMAIN)


@pytest.fixture
def no_eip_taint():
    return Taint(key=f"{DOMAIN}/no-eip", value="true", effect=TaintEffect.NO_SCHEDULE)


@pytest.fixture
def free_eip():
    return ElasticIP(allocation_id="eipalloc-1", public_ip="9.9.9.9")


@pytest.fixture
def node_directory():
    return FakeNodeDirectory(labels=enabled_labels())


@pytest.fixture
def instance_directory(free_eip):
    return FakeInstanceDirectory(pool=[free_eip])


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Keep the process configuration predictable and isolated from the actual environment.
    """
    monkeypatch.setenv("NODE_NAME", TEST_NODE_NAME)
    monkeypatch.delenv("DEVELOPMENT", raising=False)
