# src/node_eip/models/node.py

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class TaintEffect(str, Enum):
    NO_SCHEDULE = "NoSchedule"
    PREFER_NO_SCHEDULE = "PreferNoSchedule"
    NO_EXECUTE = "NoExecute"


class Taint(BaseModel):
    """
    Admission-gating marker on a node. Two taints are the same taint when
    key, value and effect all match.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    value: str = ""
    effect: TaintEffect

    @classmethod
    def from_k8s(cls, taint) -> "Taint":
        # The API omits an empty value; it compares equal to ""
        return cls(key=taint.key, value=taint.value or "", effect=TaintEffect(taint.effect))

    def __str__(self) -> str:
        return f"{self.key}={self.value}:{self.effect.value}"


class NodeState(BaseModel):
    """
    Snapshot of the governed node as read from the cluster API.

    Attributes:
        name: Node name
        labels: Node labels
        taints: Node taints, treated as a set
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Node name")
    labels: Dict[str, str] = Field(default_factory=dict, description="Node labels")
    taints: List[Taint] = Field(default_factory=list, description="Node taints")

    def has_taint(self, taint: Taint) -> bool:
        return taint in self.taints
