from .base import InstanceDirectory, NodeDirectory
from .instance_directory import Ec2InstanceDirectory
from .metadata import InstanceMetadataClient
from .node_directory import KubernetesNodeDirectory

__all__ = [
    "InstanceDirectory",
    "NodeDirectory",
    "Ec2InstanceDirectory",
    "InstanceMetadataClient",
    "KubernetesNodeDirectory",
]
