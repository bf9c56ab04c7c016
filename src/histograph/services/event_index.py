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

from typing import Dict, Iterable, Iterator, Optional

from ..domain.models import Event


class EventIndex:
    """
    id -> Event lookup for a single analysis run.

    Duplicate ids overwrite earlier entries (last write wins). Iteration order
    is the order in which ids were first seen.
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: Dict[str, Event] = {}
        for event in events:
            self._events[event.id] = event

    def get(self, event_id: str) -> Optional[Event]:
        return self._events.get(event_id)

    def resolve(self, event_ids: Iterable[str]) -> list[Event]:
        """Events for the ids that exist, in the given order; unknown ids are skipped."""
        return [self._events[i] for i in event_ids if i in self._events]

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events.values())
