"""ABOUTME: Note record and the instrument registry that notes point into.
ABOUTME: Notes hold a stable registry index instead of a direct instrument reference."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional

if TYPE_CHECKING:
    from music.instruments import Instrument


class UnknownInstrumentError(KeyError):
    """Raised when a note or channel refers to an index the registry does not hold."""


@dataclass
class Note:
    """One sounding event.

    The note is held while on > off and released once off >= on.
    """
    id: int = 0
    on: float = 0.0
    off: float = 0.0
    active: bool = False
    channel: Optional[int] = None  # index into an InstrumentRegistry

    def is_held(self) -> bool:
        return self.on > self.off


class InstrumentRegistry:
    """Append-only arena of instruments addressed by index.

    Instruments are never removed, so an index handed out by register() stays
    valid for as long as the registry exists.
    """

    def __init__(self):
        self._instruments: List["Instrument"] = []

    def register(self, instrument: "Instrument") -> int:
        """Add an instrument and return its index."""
        self._instruments.append(instrument)
        return len(self._instruments) - 1

    def get(self, index: Optional[int]) -> "Instrument":
        if index is None or not 0 <= index < len(self._instruments):
            raise UnknownInstrumentError(index)
        return self._instruments[index]

    def index_of(self, name: str) -> int:
        """Index of the first instrument with the given display name."""
        for index, instrument in enumerate(self._instruments):
            if instrument.name == name:
                return index
        raise UnknownInstrumentError(name)

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and 0 <= index < len(self._instruments)

    def __len__(self) -> int:
        return len(self._instruments)

    def __iter__(self) -> Iterator["Instrument"]:
        return iter(self._instruments)
