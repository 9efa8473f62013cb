"""Self-consistent toroidal electric field (SC-E) solver."""

from torfields.sc.comm import (
    Communicator,
    MPICommunicator,
    SerialCommunicator,
    default_communicator,
)
from torfields.sc.deposition import DepositionPolicy
from torfields.sc.history import CurrentHistory
from torfields.sc.solver import (
    SelfConsistentEField,
    SelfConsistentState,
    SubcycleSchedule,
    define_subcycle,
)

__all__ = [
    "Communicator",
    "CurrentHistory",
    "DepositionPolicy",
    "MPICommunicator",
    "SelfConsistentEField",
    "SelfConsistentState",
    "SerialCommunicator",
    "SubcycleSchedule",
    "default_communicator",
    "define_subcycle",
]
