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
from typing import Iterable, List, Mapping, Optional

from ..domain.models import ConnectionLine, Event, Position, Relationship
from .branch_service import BranchAnalyzer
from .connection_service import ConnectionMapper
from .event_index import EventIndex
from .relationship_service import RelationshipAnalyzer

logger = logging.getLogger(__name__)


class TimelineService:
    """
    Composition of the analyzers and the mapper for one timeline view.

    Holds only the collaborators it was constructed with; each call works on
    the events it is handed.
    """

    def __init__(
        self,
        analyzer: RelationshipAnalyzer,
        mapper: ConnectionMapper,
        branch_analyzer: Optional[BranchAnalyzer] = None,
    ) -> None:
        self._analyzer = analyzer
        self._mapper = mapper
        self._branches = branch_analyzer

    def relationships(self, events: Iterable[Event]) -> List[Relationship]:
        events = list(events)
        index = EventIndex(events)
        relationships = self._analyzer.analyze_relationships(index)
        relationships += self._analyzer.analyze_tag_references(index)
        if self._branches is not None:
            relationships += self._branches.analyze_branch_relationships(events)
        logger.info(
            "TimelineService: %d events -> %d relationships", len(index), len(relationships)
        )
        return relationships

    def connections(
        self, events: Iterable[Event], positions: Mapping[str, Position]
    ) -> List[ConnectionLine]:
        return self._mapper.map_relationships_to_connections(
            self.relationships(events), positions
        )
