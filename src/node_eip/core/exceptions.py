class NodeEipError(Exception):
    """Base exception for node-eip."""

    pass


class PolicyError(NodeEipError):
    """Base exception for problems with the policy written on the node labels."""

    pass


class InvalidPolicy(PolicyError):
    """Raised when the tag labels selecting the address pool are missing or blank."""

    pass


class NoFreeAddresses(NodeEipError):
    """Raised when the tag-filtered pool holds no unassociated addresses."""

    pass


class NoEipOnInstance(NodeEipError):
    """Raised when the instance has no associated Elastic IP."""

    pass


class NodeUnavailable(NodeEipError):
    """Raised when the node record cannot be retrieved or mutated."""

    pass


class MetadataUnavailable(NodeEipError):
    """Raised when the instance metadata service cannot be queried."""

    pass


class CloudApiError(NodeEipError):
    """Raised when a cloud networking API call fails."""

    pass
