from events.stores.interfaces import ArchivePurchaseStore, EventStore, ParticipantStore

__all__ = ["EventStore", "ParticipantStore", "ArchivePurchaseStore"]
