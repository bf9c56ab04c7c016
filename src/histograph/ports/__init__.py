from .event_source import EventSourcePort
from .positions import PositionSourcePort

__all__ = ["EventSourcePort", "PositionSourcePort"]
