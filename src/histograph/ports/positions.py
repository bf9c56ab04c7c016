# Licensed under the Apache License, Version 2.0
from abc import ABC, abstractmethod
from typing import Dict

from ..domain.models import Position


class PositionSourcePort(ABC):
    """Layout engine output: lane/time coordinates keyed by event id."""

    @abstractmethod
    def load_positions(self) -> Dict[str, Position]:
        raise NotImplementedError
