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
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ..config import BranchAnalysisConfig
from ..domain.models import (
    BranchAnalysisResult,
    Event,
    EventType,
    Relationship,
    RelationshipMetadata,
    RelationshipType,
    VisualStyle,
)
from .event_index import EventIndex
from .relationship_service import elapsed_days

logger = logging.getLogger(__name__)

CREATION_WINDOW = timedelta(hours=24)
ACTIVE_WINDOW = timedelta(days=30)

_HISTORY_TYPES = (EventType.COMMIT, EventType.MERGE)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive datetimes are read as UTC, matching the JSON adapter.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _chronological(event: Event):
    # Untimed events sort last.
    return (event.timestamp is None, _utc(event.timestamp))


@dataclass
class _BranchView:
    """Per-run grouping of events by branch."""
    index: EventIndex
    creations: Dict[str, Event] = field(default_factory=dict)
    commits: Dict[str, List[Event]] = field(default_factory=dict)

    @classmethod
    def build(cls, events: Iterable[Event]) -> "_BranchView":
        view = cls(index=EventIndex(events))
        for event in view.index:
            if event.type == EventType.BRANCH_CREATED:
                view.creations[event.branch] = event
            elif event.type in _HISTORY_TYPES:
                view.commits.setdefault(event.branch, []).append(event)
        for commits in view.commits.values():
            commits.sort(key=_chronological)
        return view


class BranchAnalyzer:
    """
    Maps branch-created events onto the commit graph.

      - creation point: nearest commit on another branch in the 24h before creation
      - first commit: first commit on the branch after creation
      - merge point: first merge that takes a branch commit as a non-first parent

    Merge points come from parent references only; titles are never parsed.
    """

    def __init__(self, config: Optional[BranchAnalysisConfig] = None) -> None:
        self._config = config or BranchAnalysisConfig()

    def analyze_branch_relationships(self, events: Iterable[Event]) -> List[Relationship]:
        view = _BranchView.build(events)
        creations: List[Relationship] = []
        merges: List[Relationship] = []
        first_commits: List[Relationship] = []

        for name, created in view.creations.items():
            point = self._creation_point(view, name, created)
            if point is not None:
                creations.append(
                    Relationship.create(
                        point.id,
                        created.id,
                        RelationshipType.BRANCH_CREATION,
                        RelationshipMetadata(
                            visual_style=VisualStyle.DASHED,
                            color="#8b5cf6",
                            opacity=0.5,
                            description=f"Branch '{name}' created from {point.title[:30]}...",
                        ),
                    )
                )

            merge = self._merge_point(view, name)
            if merge is not None:
                merges.append(
                    Relationship.create(
                        created.id,
                        merge.id,
                        RelationshipType.MERGE_SOURCE,
                        RelationshipMetadata(
                            visual_style=VisualStyle.SOLID,
                            color="#10b981",
                            opacity=0.7,
                            description=f"Branch '{name}' merged",
                        ),
                    )
                )

            first = self._first_commit(view, name)
            if first is not None:
                first_commits.append(
                    Relationship.create(
                        created.id,
                        first.id,
                        RelationshipType.BRANCH_CREATION,
                        RelationshipMetadata(
                            visual_style=VisualStyle.DOTTED,
                            color="#f59e0b",
                            opacity=0.4,
                            description=f"First commit on '{name}': {first.title[:30]}...",
                        ),
                    )
                )

        logger.debug(
            "BranchAnalyzer: %d creations, %d merges, %d first commits",
            len(creations),
            len(merges),
            len(first_commits),
        )
        return creations + merges + first_commits

    def analyze_branch_lifecycles(
        self, events: Iterable[Event], now: Optional[datetime] = None
    ) -> List[BranchAnalysisResult]:
        """One result per analysable branch; a branch that fails is logged and skipped."""
        now = _utc(now) or datetime.now(timezone.utc)
        view = _BranchView.build(events)
        results: List[BranchAnalysisResult] = []
        for name, created in view.creations.items():
            try:
                if not self._should_analyze(name, created, now):
                    continue
                results.append(self._lifecycle(view, name, created, now))
            except Exception as e:
                logger.warning("BranchAnalyzer: failed to analyze branch %s: %s", name, e)
        return results

    def branch_statistics(
        self, events: Iterable[Event], now: Optional[datetime] = None
    ) -> Dict[str, int]:
        events = list(events)
        lifecycles = self.analyze_branch_lifecycles(events, now=now)
        lifespans = [r.lifespan for r in lifecycles if r.lifespan > 0]
        return {
            "total_branches": len(_BranchView.build(events).creations),
            "active_branches": sum(1 for r in lifecycles if r.is_active),
            "merged_branches": sum(1 for r in lifecycles if r.merge_event is not None),
            "average_lifespan": round(sum(lifespans) / len(lifespans)) if lifespans else 0,
            "branches_with_creation_point": sum(
                1 for r in lifecycles if r.creation_point is not None
            ),
        }

    def _should_analyze(self, name: str, created: Event, now: datetime) -> bool:
        if name in self._config.exclude_main_branches:
            return False
        if not self._config.include_remote_branches and name.startswith("origin/"):
            return False
        if created.timestamp is not None:
            if now - _utc(created.timestamp) > timedelta(days=self._config.max_branch_age_days):
                return False
        return True

    def _lifecycle(
        self, view: _BranchView, name: str, created: Event, now: datetime
    ) -> BranchAnalysisResult:
        commits = view.commits.get(name, [])
        merge = self._merge_point(view, name)

        lifespan = 0
        if self._config.generate_lifespan_analysis and created.timestamp is not None:
            end = merge if merge is not None else (commits[-1] if commits else None)
            if end is not None and end.timestamp is not None:
                lifespan = max(0, elapsed_days(_utc(end.timestamp), _utc(created.timestamp)))

        cutoff = now - ACTIVE_WINDOW
        return BranchAnalysisResult(
            branch_name=name,
            creation_event=created,
            creation_point=self._creation_point(view, name, created),
            first_commit=self._first_commit(view, name),
            merge_event=merge,
            lifespan=lifespan,
            commit_count=len(commits),
            authors=tuple(dict.fromkeys(c.author for c in commits if c.author)),
            is_active=any(c.timestamp is not None and _utc(c.timestamp) > cutoff for c in commits),
        )

    def _creation_point(self, view: _BranchView, name: str, created: Event) -> Optional[Event]:
        created_at = _utc(created.timestamp)
        if created_at is None:
            return None
        best: Optional[Event] = None
        best_gap: Optional[timedelta] = None
        for event in view.index:
            if event.type not in _HISTORY_TYPES or event.branch == name:
                continue
            at = _utc(event.timestamp)
            if at is None or at > created_at:
                continue
            gap = created_at - at
            if gap > CREATION_WINDOW:
                continue
            if best_gap is None or gap < best_gap:
                best, best_gap = event, gap
        return best

    def _first_commit(self, view: _BranchView, name: str) -> Optional[Event]:
        commits = view.commits.get(name)
        if not commits:
            return None
        created = view.creations.get(name)
        if created is not None and created.timestamp is not None:
            for commit in commits:
                if commit.timestamp is not None and _utc(commit.timestamp) > _utc(created.timestamp):
                    return commit
        return commits[0]

    def _merge_point(self, view: _BranchView, name: str) -> Optional[Event]:
        branch_ids = {c.id for c in view.commits.get(name, ())}
        if not branch_ids:
            return None
        for event in view.index:
            if event.type != EventType.MERGE or event.branch == name:
                continue
            if branch_ids.intersection(event.parent_ids[1:]):
                return event
        return None
