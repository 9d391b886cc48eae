# tests/directories/test_node_directory.py

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kubernetes_asyncio import client
from kubernetes_asyncio.config import ConfigException
from kubernetes_asyncio.client.rest import ApiException

from node_eip.core.exceptions import NodeUnavailable
from node_eip.directories.node_directory import KubernetesNodeDirectory
from node_eip.models.node import Taint, TaintEffect

TEST_NODE_NAME = "node-1234"
TEST_LABELS = {"node-type": "abc", "kubernetes.io/arch": "amd64"}
NO_EIP = Taint(key="aws.node.eip/no-eip", value="true", effect=TaintEffect.NO_SCHEDULE)
NO_EIP_V1 = client.V1Taint(key="aws.node.eip/no-eip", value="true", effect="NoSchedule")
RESOURCE_VERSION = "4711"


def create_node(labels=None, taints=None):
    """Helper to build a V1Node as returned by read_node."""
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=TEST_NODE_NAME, labels=labels, resource_version=RESOURCE_VERSION),
        spec=client.V1NodeSpec(taints=taints),
    )


def create_api(node=None):
    api = MagicMock()
    api.read_node = AsyncMock(return_value=node or create_node(labels=dict(TEST_LABELS)))
    api.patch_node = AsyncMock()
    api.api_client.close = AsyncMock()
    return api


@pytest.mark.asyncio
async def test_get_labels_uses_node_name():
    api = create_api()
    directory = KubernetesNodeDirectory(TEST_NODE_NAME, api=api)

    labels = await directory.get_labels()

    assert labels == TEST_LABELS
    api.read_node.assert_awaited_once_with(name=TEST_NODE_NAME)


@pytest.mark.asyncio
async def test_get_node_without_labels_or_taints():
    api = create_api(create_node())
    node = await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).get_node()

    assert node.name == TEST_NODE_NAME
    assert node.labels == {}
    assert node.taints == []


@pytest.mark.asyncio
async def test_get_node_reads_taints():
    taints = [client.V1Taint(key="aws.node.eip/no-eip", value="true", effect="NoSchedule")]
    api = create_api(create_node(labels={}, taints=taints))

    directory = KubernetesNodeDirectory(TEST_NODE_NAME, api=api)

    assert await directory.has_taint(NO_EIP) is True
    assert await directory.has_taint(NO_EIP.model_copy(update={"effect": TaintEffect.NO_EXECUTE})) is False


@pytest.mark.asyncio
async def test_node_not_found():
    api = create_api()
    api.read_node = AsyncMock(side_effect=ApiException(status=404, reason="Not Found"))
    directory = KubernetesNodeDirectory("non-existing-node-123", api=api)

    with pytest.raises(NodeUnavailable, match='node "non-existing-node-123" not found'):
        await directory.get_labels()


@patch("node_eip.directories.node_directory.k8s_config.load_kube_config", new_callable=AsyncMock)
@patch("node_eip.directories.node_directory.k8s_config.load_incluster_config")
@pytest.mark.asyncio
async def test_no_kubernetes_config(mock_incluster, mock_kubeconfig):
    mock_incluster.side_effect = ConfigException("Service host/port is not set.")
    mock_kubeconfig.side_effect = ConfigException("Invalid kube-config file. No configuration found.")
    directory = KubernetesNodeDirectory(TEST_NODE_NAME)

    with pytest.raises(NodeUnavailable, match="Kubernetes client not configured"):
        await directory.get_node()


@patch("node_eip.directories.node_directory.client.CoreV1Api")
@patch("node_eip.directories.node_directory.k8s_config.load_kube_config", new_callable=AsyncMock)
@patch("node_eip.directories.node_directory.k8s_config.load_incluster_config")
@pytest.mark.asyncio
async def test_in_cluster_config_is_preferred(mock_incluster, mock_kubeconfig, mock_core_v1):
    mock_core_v1.return_value = create_api()
    directory = KubernetesNodeDirectory(TEST_NODE_NAME)

    assert await directory.get_labels() == TEST_LABELS
    await directory.get_labels()

    mock_incluster.assert_called_once()
    mock_kubeconfig.assert_not_awaited()
    mock_core_v1.assert_called_once()


@patch("node_eip.directories.node_directory.client.CoreV1Api")
@patch("node_eip.directories.node_directory.k8s_config.load_kube_config", new_callable=AsyncMock)
@patch("node_eip.directories.node_directory.k8s_config.load_incluster_config")
@pytest.mark.asyncio
async def test_falls_back_to_kubeconfig(mock_incluster, mock_kubeconfig, mock_core_v1):
    mock_incluster.side_effect = ConfigException("Service host/port is not set.")
    mock_core_v1.return_value = create_api()

    assert await KubernetesNodeDirectory(TEST_NODE_NAME).get_labels() == TEST_LABELS
    mock_kubeconfig.assert_awaited_once()


@pytest.mark.asyncio
async def test_add_label_patches_labels():
    api = create_api()
    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).add_label("aws.node.eip/public-ip", "1.1.1.1")

    api.patch_node.assert_awaited_once_with(
        name=TEST_NODE_NAME, body={"metadata": {"labels": {"aws.node.eip/public-ip": "1.1.1.1"}}}
    )


@pytest.mark.asyncio
async def test_remove_label_present():
    api = create_api()
    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).remove_label("node-type")

    api.patch_node.assert_awaited_once_with(name=TEST_NODE_NAME, body={"metadata": {"labels": {"node-type": None}}})


@pytest.mark.asyncio
async def test_remove_label_absent_is_noop():
    api = create_api()
    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).remove_label("aws.node.eip/public-ip")

    api.patch_node.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_taint_appends_to_existing_taints():
    other = client.V1Taint(key="dedicated", value="gpu", effect="NoSchedule")
    api = create_api(create_node(labels={}, taints=[other]))

    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).add_taint(NO_EIP)

    api.patch_node.assert_awaited_once_with(
        name=TEST_NODE_NAME,
        body={
            "metadata": {"resourceVersion": RESOURCE_VERSION},
            "spec": {"taints": [other, NO_EIP_V1]},
        },
    )


@pytest.mark.asyncio
async def test_add_taint_preserves_time_added_of_other_taints():
    added = datetime(2026, 1, 1, tzinfo=timezone.utc)
    unreachable = client.V1Taint(key="node.kubernetes.io/unreachable", effect="NoExecute", time_added=added)
    api = create_api(create_node(labels={}, taints=[unreachable]))

    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).add_taint(NO_EIP)

    body = api.patch_node.await_args.kwargs["body"]
    assert body["spec"]["taints"][0] is unreachable

    api_client = client.ApiClient()
    try:
        wire = api_client.sanitize_for_serialization(body)
    finally:
        await api_client.close()
    assert wire["spec"]["taints"] == [
        {"key": "node.kubernetes.io/unreachable", "effect": "NoExecute", "timeAdded": "2026-01-01T00:00:00+00:00"},
        {"key": "aws.node.eip/no-eip", "value": "true", "effect": "NoSchedule"},
    ]
    assert wire["metadata"] == {"resourceVersion": RESOURCE_VERSION}


@pytest.mark.asyncio
async def test_add_taint_twice_is_idempotent():
    api = create_api(create_node(labels={}, taints=[NO_EIP_V1]))
    directory = KubernetesNodeDirectory(TEST_NODE_NAME, api=api)

    await directory.add_taint(NO_EIP)
    await directory.add_taint(NO_EIP)

    api.patch_node.assert_not_awaited()


@pytest.mark.asyncio
async def test_remove_taint_keeps_others():
    other = client.V1Taint(key="dedicated", value="gpu", effect="NoSchedule")
    valueless = client.V1Taint(
        key="node.kubernetes.io/not-ready", effect="NoExecute", time_added=datetime(2026, 1, 1, tzinfo=timezone.utc)
    )
    api = create_api(create_node(labels={}, taints=[other, NO_EIP_V1, valueless]))

    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).remove_taint(NO_EIP)

    api.patch_node.assert_awaited_once_with(
        name=TEST_NODE_NAME,
        body={
            "metadata": {"resourceVersion": RESOURCE_VERSION},
            "spec": {"taints": [other, valueless]},
        },
    )
    assert valueless.value is None


@pytest.mark.asyncio
async def test_remove_absent_taint_is_noop():
    api = create_api(create_node(labels={}))

    await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).remove_taint(NO_EIP)

    api.patch_node.assert_not_awaited()


@pytest.mark.asyncio
async def test_patch_failure_raises_node_unavailable():
    api = create_api()
    api.patch_node = AsyncMock(side_effect=ApiException(status=422, reason="Unprocessable Entity"))

    with pytest.raises(NodeUnavailable):
        await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).add_label("a", "b")


@pytest.mark.asyncio
async def test_concurrent_taint_update_conflict_raises_node_unavailable():
    api = create_api(create_node(labels={}))
    api.patch_node = AsyncMock(side_effect=ApiException(status=409, reason="Conflict"))

    with pytest.raises(NodeUnavailable, match='node "node-1234" could not be updated'):
        await KubernetesNodeDirectory(TEST_NODE_NAME, api=api).add_taint(NO_EIP)


@pytest.mark.asyncio
async def test_close_releases_client():
    api = create_api()
    directory = KubernetesNodeDirectory(TEST_NODE_NAME, api=api)

    await directory.close()

    api.api_client.close.assert_awaited_once()
