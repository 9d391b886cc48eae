# src/node_eip/core/policy.py
"""
Recognized label keys under the policy domain and the decisions derived
from them. The node labels are the only policy input; this module only
reads them, it never talks to the cluster.
"""

import logging
from typing import Mapping

from pydantic import ValidationError

from ..models.eip import TagFilter
from .exceptions import InvalidPolicy

logger = logging.getLogger(__name__)


class LabelPolicy:
    """Maps the fixed set of policy label keys onto a label domain."""

    def __init__(self, domain: str):
        self.domain = domain

    @property
    def enabled_key(self) -> str:
        return f"{self.domain}/enabled"

    @property
    def tag_name_key(self) -> str:
        return f"{self.domain}/tag-name"

    @property
    def tag_value_key(self) -> str:
        return f"{self.domain}/tag-value"

    @property
    def public_ip_key(self) -> str:
        return f"{self.domain}/public-ip"

    def is_enabled(self, labels: Mapping[str, str]) -> bool:
        """True only when the enablement label is exactly 'true'."""
        enabled = labels.get(self.enabled_key) == "true"
        logger.debug("policy: '%s'='%s' -> enabled=%s", self.enabled_key, labels.get(self.enabled_key), enabled)
        return enabled

    def tag_filter(self, labels: Mapping[str, str]) -> TagFilter:
        """
        Builds the pool selector from the two tag labels.

        Raises:
            InvalidPolicy: If either label is missing or blank.
        """
        name = labels.get(self.tag_name_key, "")
        value = labels.get(self.tag_value_key, "")
        try:
            return TagFilter(name=name, value=value)
        except ValidationError as e:
            raise InvalidPolicy(
                f"invalid tag: '{self.tag_name_key}'='{name}', '{self.tag_value_key}'='{value}'"
            ) from e
