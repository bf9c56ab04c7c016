# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .paths import PathCommand


class EventType(str, Enum):
    COMMIT = "commit"
    MERGE = "merge"
    BRANCH_CREATED = "branch-created"
    BRANCH_DELETED = "branch-deleted"
    BRANCH_CHECKOUT = "branch-checkout"
    TAG = "tag"
    RELEASE = "release"


class RelationshipType(str, Enum):
    PARENT_CHILD = "parent-child"
    MERGE_SOURCE = "merge-source"
    MERGE_TARGET = "merge-target"
    BRANCH_CREATION = "branch-creation"
    TAG_REFERENCE = "tag-reference"


class VisualStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class MergeComplexity(str, Enum):
    SIMPLE = "simple"
    # Kept for consumers of the classification; nothing currently produces it.
    COMPLEX = "complex"
    OCTOPUS = "octopus"


@dataclass(frozen=True)
class Event:
    """
    One version-history action (commit, merge, branch lifecycle, tag).

    Only `id`, `type` and `parent_ids` are required by the analyzers; the rest
    feeds visual hints and lifetime estimates when present.
    """
    id: str
    type: EventType
    timestamp: Optional[datetime] = None
    title: str = ""
    branch: str = ""
    branches: Tuple[str, ...] = ()
    parent_ids: Tuple[str, ...] = ()
    author: str = ""
    files_changed: Optional[int] = None
    insertions: Optional[int] = None
    deletions: Optional[int] = None
    target_commit: Optional[str] = None  # tags/releases: the commit pointed at


@dataclass(frozen=True)
class RelationshipMetadata:
    """Advisory rendering hints attached to an inferred relationship."""
    visual_style: Optional[VisualStyle] = None
    color: Optional[str] = None
    opacity: Optional[float] = None
    description: str = ""


def relationship_id(source_id: str, target_id: str, rel_type: RelationshipType) -> str:
    """Stable identifier; identical input always yields the identical id."""
    return f"{RelationshipType(rel_type).value}:{source_id}->{target_id}"


@dataclass(frozen=True)
class Relationship:
    """Directed, typed edge (source -> target) between two events."""
    id: str
    source_id: str
    target_id: str
    type: RelationshipType
    metadata: Optional[RelationshipMetadata] = None

    @classmethod
    def create(
        cls,
        source_id: str,
        target_id: str,
        rel_type: RelationshipType,
        metadata: Optional[RelationshipMetadata] = None,
    ) -> "Relationship":
        return cls(
            id=relationship_id(source_id, target_id, rel_type),
            source_id=source_id,
            target_id=target_id,
            type=RelationshipType(rel_type),
            metadata=metadata,
        )


@dataclass(frozen=True)
class Position:
    """Layout coordinates for one event, supplied by an external layout engine."""
    event_id: str
    x: float
    y: float
    branch: str = ""
    importance: float = 1.0


@dataclass(frozen=True)
class ConnectionStyle:
    color: str
    width: float
    opacity: float
    dash_array: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class ConnectionLine:
    """A relationship with resolved geometry and style, ready for a renderer."""
    id: str
    source: Position
    target: Position
    relationship: Relationship
    path: Tuple[PathCommand, ...]
    style: ConnectionStyle


@dataclass(frozen=True)
class MergeAnalysisResult:
    merge_event: Event
    source_events: Tuple[Event, ...]
    target_branch: str
    branch_lifetime: int  # days
    complexity: MergeComplexity


@dataclass(frozen=True)
class BranchAnalysisResult:
    branch_name: str
    creation_event: Event
    creation_point: Optional[Event]
    first_commit: Optional[Event]
    merge_event: Optional[Event]
    lifespan: int  # days
    commit_count: int
    authors: Tuple[str, ...]
    is_active: bool
