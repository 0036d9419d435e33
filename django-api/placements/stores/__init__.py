from placements.stores.interfaces import PlacementStore
from placements.stores.memory_store import InMemoryPlacementStore

__all__ = ["PlacementStore", "InMemoryPlacementStore"]
