"""Protocol interfaces for all cascade_relay collaborators."""

from cascade_relay.interfaces.chain import ChainClient
from cascade_relay.interfaces.signer import Signer
from cascade_relay.interfaces.registry import SignalRegistry
from cascade_relay.interfaces.journal import ActivityJournal

__all__ = ["ChainClient", "Signer", "SignalRegistry", "ActivityJournal"]
