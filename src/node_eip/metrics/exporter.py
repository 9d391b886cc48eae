# src/node_eip/metrics/exporter.py

import logging
from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from ..core.exceptions import NodeEipError
from ..directories.base import InstanceDirectory

logger = logging.getLogger(__name__)

NO_EIP = "no-eip"


class MetricsExporter:
    """
    Publishes whether the instance holds an Elastic IP.

    The gauge is recomputed from the cloud provider on every scrape; nothing
    is cached between scrapes apart from the instance id.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, instances: InstanceDirectory, registry: Optional[CollectorRegistry] = None):
        self.instances = instances
        self.registry = registry or CollectorRegistry()
        self.gauge_has_eip = Gauge(
            "node_has_eip",
            "indicates if node has assigned eip",
            labelnames=["instance_id", "eip"],
            registry=self.registry,
        )

    async def update(self) -> None:
        """
        Raises:
            MetadataUnavailable: If the instance id cannot be resolved.
        """
        instance_id = await self.instances.get_instance_id()
        try:
            eip = await self.instances.get_instance_eip()
            public_ip, value = eip.public_ip, 1
        except NodeEipError as e:
            logger.debug("metrics: no eip for instance '%s': %s", instance_id, e)
            public_ip, value = NO_EIP, 0

        # Clear and set with no await in between
        self.gauge_has_eip.clear()
        self.gauge_has_eip.labels(instance_id=instance_id, eip=public_ip).set(value)

    async def render(self) -> bytes:
        await self.update()
        output = generate_latest(self.registry)
        logger.debug("metrics: %s", output)
        return output
