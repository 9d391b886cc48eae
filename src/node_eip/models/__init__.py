from .eip import ElasticIP, NetworkInterface, TagFilter
from .node import NodeState, Taint, TaintEffect

__all__ = ["ElasticIP", "NetworkInterface", "TagFilter", "NodeState", "Taint", "TaintEffect"]
