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

import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from ..config import MergeAnalysisConfig
from ..domain.errors import AnalysisError
from ..domain.models import (
    Event,
    EventType,
    MergeAnalysisResult,
    MergeComplexity,
    Relationship,
    RelationshipMetadata,
    RelationshipType,
    VisualStyle,
)
from .event_index import EventIndex

logger = logging.getLogger(__name__)

ONE_DAY_SECONDS = 24 * 60 * 60

SAME_BRANCH_COLOR = "#6366f1"  # indigo
CROSS_BRANCH_COLOR = "#f59e0b"  # amber
MERGE_TARGET_COLOR = "#10b981"  # green
# Octopus merges cycle through these, one per incoming source branch.
MERGE_SOURCE_PALETTE = ("#ef4444", "#f97316", "#eab308", "#84cc16")

EventsArg = Union[EventIndex, Iterable[Event]]


def _as_index(events: EventsArg) -> EventIndex:
    return events if isinstance(events, EventIndex) else EventIndex(events)


def _short(title: str) -> str:
    return f"{title[:30]}..."


def elapsed_days(later: datetime, earlier: datetime) -> int:
    """Whole days between two instants, halves rounded up (may be negative)."""
    days = (later - earlier).total_seconds() / ONE_DAY_SECONDS
    return int(math.floor(days + 0.5))


def classify_merge(parent_count: int) -> MergeComplexity:
    if parent_count == 2:
        return MergeComplexity.SIMPLE
    if parent_count > 2:
        return MergeComplexity.OCTOPUS
    # Unreachable for analysed merges (they need two resolvable parents).
    return MergeComplexity.COMPLEX


class RelationshipAnalyzer:
    """
    Infers parent-child and merge relationships from git parent references.

    Every public call builds its own EventIndex from the events it is given;
    nothing is carried over between calls. Relationships are derived purely
    from structure (parent ids, event types), never from commit messages.
    """

    def __init__(self, config: Optional[MergeAnalysisConfig] = None) -> None:
        self._config = config or MergeAnalysisConfig()

    @property
    def config(self) -> MergeAnalysisConfig:
        return self._config

    # ------------------------------
    # Relationships
    # ------------------------------

    def analyze_relationships(self, events: EventsArg) -> List[Relationship]:
        """
        Parent-child edges for every resolvable parent id, followed by
        merge-target / merge-source edges for merge events.
        """
        index = _as_index(events)
        logger.debug("RelationshipAnalyzer: analyzing %d events", len(index))

        parent_child = self._parent_child_relationships(index)
        merges = self._merge_relationships(index)

        logger.debug(
            "RelationshipAnalyzer: %d parent-child, %d merge-specific relationships",
            len(parent_child),
            len(merges),
        )
        return parent_child + merges

    def analyze_tag_references(self, events: EventsArg) -> List[Relationship]:
        """tag-reference edges (commit -> tag) for tags/releases whose target resolves."""
        index = _as_index(events)
        relationships: List[Relationship] = []
        for event in index:
            if event.type not in (EventType.TAG, EventType.RELEASE):
                continue
            if not event.target_commit:
                continue
            target = index.get(event.target_commit)
            if target is None:
                continue
            metadata = RelationshipMetadata(description=f"Tag {event.title or event.id}")
            if self._config.generate_visual_hints:
                metadata = RelationshipMetadata(
                    visual_style=VisualStyle.DOTTED,
                    color=CROSS_BRANCH_COLOR,
                    opacity=0.5,
                    description=metadata.description,
                )
            relationships.append(
                Relationship.create(
                    target.id, event.id, RelationshipType.TAG_REFERENCE, metadata
                )
            )
        return relationships

    def _parent_child_relationships(self, index: EventIndex) -> List[Relationship]:
        relationships: List[Relationship] = []
        for event in index:
            for parent_id in event.parent_ids:
                parent = index.get(parent_id)
                if parent is None:
                    continue
                relationships.append(
                    Relationship.create(
                        parent.id,
                        event.id,
                        RelationshipType.PARENT_CHILD,
                        self._parent_child_metadata(parent, event),
                    )
                )
        return relationships

    def _merge_relationships(self, index: EventIndex) -> List[Relationship]:
        relationships: List[Relationship] = []
        for event in index:
            if event.type != EventType.MERGE or len(event.parent_ids) < 2:
                continue
            if self._skip_octopus(event):
                continue
            try:
                relationships.extend(self._merge_source_target(event, index))
            except Exception as e:
                logger.warning(
                    "RelationshipAnalyzer: skipping merge relationships for %s: %s",
                    event.id,
                    e,
                )
        return relationships

    def _merge_source_target(self, merge: Event, index: EventIndex) -> List[Relationship]:
        self._check_merge_structure(merge)
        relationships: List[Relationship] = []

        # First parent is the branch that received the merge.
        target_parent = index.get(merge.parent_ids[0])
        if target_parent is not None:
            relationships.append(
                Relationship.create(
                    target_parent.id,
                    merge.id,
                    RelationshipType.MERGE_TARGET,
                    self._merge_target_metadata(merge),
                )
            )

        for position, parent_id in enumerate(merge.parent_ids[1:], start=1):
            source_parent = index.get(parent_id)
            if source_parent is None:
                continue
            relationships.append(
                Relationship.create(
                    source_parent.id,
                    merge.id,
                    RelationshipType.MERGE_SOURCE,
                    self._merge_source_metadata(source_parent, position),
                )
            )
        return relationships

    # ------------------------------
    # Merge analysis
    # ------------------------------

    def analyze_merge_commits(self, events: EventsArg) -> List[MergeAnalysisResult]:
        """
        Detailed results for merges with at least two resolvable parents.

        A merge that fails to analyse is logged and skipped; the others are
        still returned.
        """
        index = _as_index(events)
        results: List[MergeAnalysisResult] = []
        for event in index:
            if event.type != EventType.MERGE:
                continue
            try:
                result = self._analyze_single_merge(event, index)
            except Exception as e:
                logger.warning(
                    "RelationshipAnalyzer: failed to analyze merge %s: %s", event.id, e
                )
                continue
            if result is not None:
                results.append(result)
        return results

    def _analyze_single_merge(
        self, merge: Event, index: EventIndex
    ) -> Optional[MergeAnalysisResult]:
        if len(index.resolve(merge.parent_ids)) < 2:
            return None
        if self._skip_octopus(merge):
            return None
        self._check_merge_structure(merge)

        sources = tuple(index.resolve(merge.parent_ids[1:]))
        return MergeAnalysisResult(
            merge_event=merge,
            source_events=sources,
            target_branch=merge.branch,
            branch_lifetime=self._estimate_branch_lifetime(merge, sources),
            complexity=classify_merge(len(merge.parent_ids)),
        )

    def _estimate_branch_lifetime(self, merge: Event, sources: Iterable[Event]) -> int:
        stamps = [s.timestamp for s in sources if s.timestamp is not None]
        if not stamps or merge.timestamp is None:
            return 0
        return max(0, elapsed_days(merge.timestamp, min(stamps)))

    def _skip_octopus(self, merge: Event) -> bool:
        return not self._config.include_octopus_merges and len(merge.parent_ids) > 2

    @staticmethod
    def _check_merge_structure(merge: Event) -> None:
        if merge.id in merge.parent_ids:
            raise AnalysisError(f"merge {merge.id} lists itself as a parent")

    # ------------------------------
    # Traversal and statistics
    # ------------------------------

    def find_descendants(
        self, events: EventsArg, event_id: str, depth: Optional[int] = None
    ) -> List[Event]:
        """
        Events reachable from `event_id` by following parent references
        backwards, at most `depth` generations away (default:
        `max_parent_depth`). Each event appears once, in depth-first order.
        """
        index = _as_index(events)
        remaining = self._config.max_parent_depth if depth is None else depth
        if remaining <= 0:
            return []

        children: Dict[str, List[Event]] = {}
        for event in index:
            for parent_id in dict.fromkeys(event.parent_ids):
                children.setdefault(parent_id, []).append(event)

        descendants: List[Event] = []
        # id -> generations still allowed below it on the shortest path seen so far
        best: Dict[str, int] = {event_id: remaining}
        stack = [(iter(children.get(event_id, ())), remaining)]
        while stack:
            frontier, left = stack[-1]
            child = next(frontier, None)
            if child is None:
                stack.pop()
                continue
            below = left - 1
            known = best.get(child.id)
            if known is None:
                descendants.append(child)
            elif known >= below:
                continue
            # Reached again by a shorter path: expand further than before.
            best[child.id] = below
            if below > 0:
                stack.append((iter(children.get(child.id, ())), below))
        return descendants

    def analysis_statistics(self, events: EventsArg) -> Dict[str, int]:
        index = _as_index(events)
        merge_events = simple = octopus = orphans = 0
        for event in index:
            parent_count = len(event.parent_ids)
            if event.type != EventType.MERGE:
                # Only non-merge events count as orphans.
                if parent_count == 0:
                    orphans += 1
                continue
            merge_events += 1
            if parent_count == 2:
                simple += 1
            elif parent_count > 2:
                octopus += 1
        return {
            "total_events": len(index),
            "merge_events": merge_events,
            "simple_merges": simple,
            "octopus_merges": octopus,
            "orphan_events": orphans,
        }

    # ------------------------------
    # Visual hints
    # ------------------------------

    def _parent_child_metadata(self, parent: Event, child: Event) -> RelationshipMetadata:
        description = f"{_short(parent.title)} -> {_short(child.title)}"
        if not self._config.generate_visual_hints:
            return RelationshipMetadata(description=description)
        if parent.branch == child.branch:
            return RelationshipMetadata(
                visual_style=VisualStyle.SOLID,
                color=SAME_BRANCH_COLOR,
                opacity=0.4,
                description=description,
            )
        return RelationshipMetadata(
            visual_style=VisualStyle.DASHED,
            color=CROSS_BRANCH_COLOR,
            opacity=0.6,
            description=description,
        )

    def _merge_target_metadata(self, merge: Event) -> RelationshipMetadata:
        description = f"Merge into {merge.branch}"
        if not self._config.generate_visual_hints:
            return RelationshipMetadata(description=description)
        return RelationshipMetadata(
            visual_style=VisualStyle.SOLID,
            color=MERGE_TARGET_COLOR,
            opacity=0.7,
            description=description,
        )

    def _merge_source_metadata(self, source: Event, position: int) -> RelationshipMetadata:
        description = f"Merge from {source.branch or 'unknown'}"
        if not self._config.generate_visual_hints:
            return RelationshipMetadata(description=description)
        return RelationshipMetadata(
            visual_style=VisualStyle.SOLID,
            color=MERGE_SOURCE_PALETTE[(position - 1) % len(MERGE_SOURCE_PALETTE)],
            opacity=0.6,
            description=description,
        )
