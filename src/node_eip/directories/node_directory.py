# src/node_eip/directories/node_directory.py

import logging
from typing import List

from kubernetes_asyncio import client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.rest import ApiException

from ..core.exceptions import NodeUnavailable
from ..models.node import NodeState, Taint
from .base import NodeDirectory

logger = logging.getLogger(__name__)


class KubernetesNodeDirectory(NodeDirectory):
    """Node Directory backed by the Kubernetes core/v1 node endpoints."""

    def __init__(self, node_name: str, api=None):
        self.node_name = node_name
        self._api = api

    async def _ensure_client(self) -> client.CoreV1Api:
        """
        Lazily build the CoreV1Api client. The agent normally runs as a
        DaemonSet pod, so in-cluster config is tried before the local kubeconfig.

        Raises:
            NodeUnavailable: If no Kubernetes configuration can be loaded.
        """
        if self._api:
            return self._api

        try:
            k8s_config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration.")
        except k8s_config.ConfigException:
            logger.debug("In-cluster config not found, trying kubeconfig.")
            try:
                await k8s_config.load_kube_config()
                logger.info("Loaded Kubernetes configuration from kubeconfig file.")
            except k8s_config.ConfigException as e:
                logger.error("Failed to load any Kubernetes configuration: %s", e)
                raise NodeUnavailable(f'node "{self.node_name}" not found: Kubernetes client not configured') from e

        self._api = client.CoreV1Api()
        return self._api

    async def _read_node(self) -> client.V1Node:
        api = await self._ensure_client()
        try:
            return await api.read_node(name=self.node_name)
        except ApiException as e:
            logger.error("Kubernetes API error while reading node '%s': %s", self.node_name, e)
            raise NodeUnavailable(f'node "{self.node_name}" not found') from e

    async def _patch_node(self, body: dict) -> None:
        api = await self._ensure_client()
        try:
            await api.patch_node(name=self.node_name, body=body)
        except ApiException as e:
            logger.error("Kubernetes API error while patching node '%s': %s", self.node_name, e)
            raise NodeUnavailable(f'node "{self.node_name}" could not be updated') from e

    @staticmethod
    def _raw_taints(node: client.V1Node) -> List[client.V1Taint]:
        return list(node.spec.taints or []) if node.spec else []

    def _to_state(self, node: client.V1Node) -> NodeState:
        labels = node.metadata.labels or {}
        taints = [Taint.from_k8s(t) for t in self._raw_taints(node)]
        return NodeState(name=self.node_name, labels=labels, taints=taints)

    async def get_node(self) -> NodeState:
        logger.debug("getting node '%s'", self.node_name)
        state = self._to_state(await self._read_node())
        logger.debug("node '%s': labels=%s taints=%s", self.node_name, state.labels, [str(t) for t in state.taints])
        return state

    async def add_label(self, key: str, value: str) -> None:
        logger.info("labelling node '%s' with '%s'='%s'", self.node_name, key, value)
        await self._patch_node({"metadata": {"labels": {key: value}}})

    async def remove_label(self, key: str) -> None:
        labels = await self.get_labels()
        if key not in labels:
            logger.debug("label '%s' not present on node '%s'", key, self.node_name)
            return
        logger.info("removing label '%s' from node '%s'", key, self.node_name)
        # A null value deletes the key under strategic merge patch
        await self._patch_node({"metadata": {"labels": {key: None}}})

    async def add_taint(self, taint: Taint) -> None:
        node = await self._read_node()
        current = self._raw_taints(node)
        if any(Taint.from_k8s(t) == taint for t in current):
            logger.debug("node '%s' already tainted with '%s'", self.node_name, taint)
            return
        logger.info("tainting node '%s' with '%s'", self.node_name, taint)
        new_taint = client.V1Taint(key=taint.key, value=taint.value or None, effect=taint.effect.value)
        await self._write_taints(node, current + [new_taint])

    async def remove_taint(self, taint: Taint) -> None:
        node = await self._read_node()
        current = self._raw_taints(node)
        kept = [t for t in current if Taint.from_k8s(t) != taint]
        if len(kept) == len(current):
            logger.debug("node '%s' is not tainted with '%s'", self.node_name, taint)
            return
        logger.info("removing taint '%s' from node '%s'", taint, self.node_name)
        await self._write_taints(node, kept)

    async def _write_taints(self, node: client.V1Node, taints: List[client.V1Taint]) -> None:
        # spec.taints is replaced wholesale. Taints of other writers go back as the
        # objects read (timeAdded and null values intact), and the resourceVersion
        # turns a concurrent update into a 409 instead of a lost write.
        await self._patch_node(
            {
                "metadata": {"resourceVersion": node.metadata.resource_version},
                "spec": {"taints": taints},
            }
        )

    async def close(self):
        """Close the Kubernetes API client if it exists."""
        if self._api:
            await self._api.api_client.close()
            logger.debug("Node directory Kubernetes client closed.")
            self._api = None
