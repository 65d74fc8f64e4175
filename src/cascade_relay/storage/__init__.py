from cascade_relay.storage.sqlite import SQLiteActivityJournal

__all__ = ["SQLiteActivityJournal"]
