# src/node_eip/models/eip.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ElasticIP(BaseModel):
    """
    An allocatable public address as reported by describe-addresses.

    Attributes:
        allocation_id: Allocation id (e.g. 'eipalloc-0abc')
        public_ip: The public IPv4 address
        association_id: Association id, absent while the address is free
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allocation_id: str = Field(..., description="Allocation id")
    public_ip: str = Field(..., description="Public IPv4 address")
    association_id: Optional[str] = Field(None, description="Association id when bound")

    @property
    def is_free(self) -> bool:
        return not self.association_id

    @classmethod
    def from_aws(cls, address: dict) -> "ElasticIP":
        return cls(
            allocation_id=address.get("AllocationId", ""),
            public_ip=address.get("PublicIp", ""),
            association_id=address.get("AssociationId"),
        )


class NetworkInterface(BaseModel):
    """A network interface attached to the instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Network interface id")
    private_ip: str = Field(..., description="Primary private IPv4 address")
    public_ip: Optional[str] = Field(None, description="Associated public IPv4 address")
    device_index: Optional[int] = Field(None, description="Attachment device index")

    @classmethod
    def from_aws(cls, interface: dict) -> "NetworkInterface":
        association = interface.get("Association") or {}
        attachment = interface.get("Attachment") or {}
        return cls(
            id=interface.get("NetworkInterfaceId", ""),
            private_ip=interface.get("PrivateIpAddress", ""),
            public_ip=association.get("PublicIp"),
            device_index=attachment.get("DeviceIndex"),
        )


class TagFilter(BaseModel):
    """Selects the address pool by a provider-level tag."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    value: str

    @field_validator("name", "value")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    def to_aws_filter(self) -> dict:
        return {"Name": f"tag:{self.name}", "Values": [self.value]}
