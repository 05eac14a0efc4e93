"""Storage collaborators for shipments, load groups and cost splits."""

from .base import ShipmentStore
from .memory import InMemoryShipmentStore
from .supabase_store import SupabaseShipmentStore

__all__ = ["ShipmentStore", "InMemoryShipmentStore", "SupabaseShipmentStore"]
