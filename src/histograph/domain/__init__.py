from .errors import (
    AnalysisError,
    ConfigurationError,
    EventSourceError,
    HistographError,
)
from .models import (
    BranchAnalysisResult,
    ConnectionLine,
    ConnectionStyle,
    Event,
    EventType,
    MergeAnalysisResult,
    MergeComplexity,
    Position,
    Relationship,
    RelationshipMetadata,
    RelationshipType,
    VisualStyle,
    relationship_id,
)
from .paths import CubicTo, LineTo, MoveTo, PathCommand, QuadTo, is_curved, to_svg_path

__all__ = [
    "AnalysisError",
    "BranchAnalysisResult",
    "ConfigurationError",
    "ConnectionLine",
    "ConnectionStyle",
    "CubicTo",
    "Event",
    "EventSourceError",
    "EventType",
    "HistographError",
    "LineTo",
    "MergeAnalysisResult",
    "MergeComplexity",
    "MoveTo",
    "PathCommand",
    "Position",
    "QuadTo",
    "Relationship",
    "RelationshipMetadata",
    "RelationshipType",
    "VisualStyle",
    "is_curved",
    "relationship_id",
    "to_svg_path",
]
