"""Error taxonomy for load matching and cost allocation."""

from __future__ import annotations


class FreightShareError(Exception):
    """Base class for all engine errors."""


class InvalidShipment(FreightShareError, ValueError):
    """Malformed shipment input, rejected before any I/O."""


class ShipmentNotFound(FreightShareError, LookupError):
    """A shipment, cost split or load group does not exist in storage."""


class StorageUnavailable(FreightShareError):
    """The storage collaborator failed to answer a query."""


class MatchingFailed(FreightShareError):
    """A matching call was aborted; the cause is chained."""


class CacheUnavailable(FreightShareError):
    """The cache backend could not be reached."""


class PublishFailed(FreightShareError):
    """The event bus rejected or dropped a message."""
