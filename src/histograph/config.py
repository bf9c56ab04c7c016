# Licensed under the Apache License, Version 2.0
"""
Runtime options for the analyzers and the connection mapper.

Each component takes its config object in the constructor; nothing is read
from global state. Defaults mirror what the timeline view ships with.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from .domain.models import RelationshipType

ALL_RELATIONSHIP_TYPES: FrozenSet[RelationshipType] = frozenset(RelationshipType)


@dataclass(frozen=True)
class MergeAnalysisConfig:
    include_octopus_merges: bool = True
    max_parent_depth: int = 5  # default bound for find_descendants
    generate_visual_hints: bool = True


@dataclass(frozen=True)
class ConnectionMappingConfig:
    enabled_relationship_types: FrozenSet[RelationshipType] = ALL_RELATIONSHIP_TYPES
    curve_intensity: float = 0.3  # 0-1
    minimum_line_opacity: float = 0.2
    maximum_line_width: float = 3.0
    group_similar_connections: bool = True
    adaptive_opacity: bool = True


@dataclass(frozen=True)
class BranchAnalysisConfig:
    exclude_main_branches: Tuple[str, ...] = field(
        default=("main", "master", "develop")
    )
    max_branch_age_days: int = 365
    include_remote_branches: bool = False
    generate_lifespan_analysis: bool = True
