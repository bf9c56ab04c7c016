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
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import ConnectionMappingConfig
from ..domain.errors import ConfigurationError
from ..domain.models import (
    ConnectionLine,
    ConnectionStyle,
    Position,
    Relationship,
    RelationshipType,
    VisualStyle,
)
from ..domain.paths import CubicTo, LineTo, MoveTo, PathCommand, QuadTo, is_curved

logger = logging.getLogger(__name__)

CURVE_NONE = "none"
CURVE_GENTLE = "gentle"
CURVE_STRONG = "strong"

_CURVE_SCALE = {CURVE_GENTLE: 0.7, CURVE_STRONG: 1.5}

DASHED = (5.0, 5.0)
DOTTED = (2.0, 3.0)

# Connections at or above this count get the full opacity reduction.
DENSITY_SATURATION = 50
MAX_DENSITY_FADE = 0.5

# Higher wins when several relationships join the same pair of events.
TYPE_PRIORITY = {
    RelationshipType.MERGE_TARGET: 4,
    RelationshipType.MERGE_SOURCE: 3,
    RelationshipType.PARENT_CHILD: 2,
    RelationshipType.BRANCH_CREATION: 1,
    RelationshipType.TAG_REFERENCE: 0,
}


@dataclass(frozen=True)
class StyleTemplate:
    color: str
    width: float
    opacity: float
    curve_style: str
    dash_array: Optional[Tuple[float, ...]] = None


def default_style_templates() -> Dict[RelationshipType, StyleTemplate]:
    return {
        RelationshipType.PARENT_CHILD: StyleTemplate("#6366f1", 2.0, 0.6, CURVE_GENTLE),
        RelationshipType.MERGE_SOURCE: StyleTemplate("#ef4444", 2.5, 0.7, CURVE_STRONG),
        RelationshipType.MERGE_TARGET: StyleTemplate("#10b981", 2.5, 0.7, CURVE_STRONG),
        RelationshipType.BRANCH_CREATION: StyleTemplate(
            "#8b5cf6", 2.0, 0.5, CURVE_GENTLE, DASHED
        ),
        RelationshipType.TAG_REFERENCE: StyleTemplate("#f59e0b", 1.5, 0.4, CURVE_NONE),
    }


# Used for relationship types without a template of their own.
FALLBACK_TEMPLATE = StyleTemplate("#6b7280", 1.5, 0.5, CURVE_GENTLE)


def build_path(
    source: Position,
    target: Position,
    curve_style: str,
    relationship_type: Optional[RelationshipType],
    curve_intensity: float,
) -> Tuple[PathCommand, ...]:
    """
    Path from `source` to `target` shaped by relationship type.

    Equal x coordinates or curve style "none" give a straight segment;
    otherwise one quadratic or cubic segment whose bow scales with
    `curve_intensity` (x1.5 for "strong", x0.7 for "gentle").
    """
    x1, y1, x2, y2 = source.x, source.y, target.x, target.y
    start = MoveTo(x1, y1)

    if curve_style == CURVE_NONE or x1 == x2:
        return (start, LineTo(x2, y2))

    k = curve_intensity * _CURVE_SCALE.get(curve_style, 1.0)
    dx, dy = x2 - x1, y2 - y1
    span = abs(dx)

    if relationship_type == RelationshipType.PARENT_CHILD:
        if y1 == y2:
            return (start, QuadTo(x1 + dx * 0.5, y1 - span * k * 0.2, x2, y2))
        # Cross-lane S-curve: controls pinned to each endpoint's lane.
        return (start, CubicTo(x1 + span * k, y1, x2 - span * k, y2, x2, y2))

    if relationship_type == RelationshipType.MERGE_SOURCE:
        return (start, QuadTo(x1 + dx * 0.7, min(y1, y2) - abs(dy) * k, x2, y2))

    if relationship_type == RelationshipType.MERGE_TARGET:
        return (start, QuadTo(x1 + dx * 0.3, max(y1, y2) + abs(dy) * k, x2, y2))

    if relationship_type == RelationshipType.BRANCH_CREATION:
        return (start, QuadTo(x1 + span * k * 0.5, y1 + dy * 0.3, x2, y2))

    return (start, QuadTo(x1 + dx * 0.5, y1 + dy * 0.5 + span * k * 0.3, x2, y2))


class ConnectionMapper:
    """
    Converts relationships into styled ConnectionLines for a renderer.

    Pipeline per call: type filter -> position lookup -> style -> path ->
    adaptive opacity -> grouping of connections that join the same events.
    Style templates are fixed at construction; `update_configuration`
    replaces only the runtime options.
    """

    def __init__(self, config: Optional[ConnectionMappingConfig] = None) -> None:
        self._config = config or ConnectionMappingConfig()
        self._templates = default_style_templates()

    @property
    def config(self) -> ConnectionMappingConfig:
        return self._config

    def update_configuration(self, **changes: Any) -> None:
        known = {f.name for f in fields(self._config)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigurationError(f"Unknown connection option(s): {', '.join(unknown)}")
        self._config = replace(self._config, **changes)

    def map_relationships_to_connections(
        self,
        relationships: Iterable[Relationship],
        positions: Mapping[str, Position],
    ) -> List[ConnectionLine]:
        enabled = self._config.enabled_relationship_types
        connections: List[ConnectionLine] = []

        for relationship in relationships:
            if relationship.type not in enabled:
                continue
            try:
                connection = self._create_connection(relationship, positions)
            except Exception as e:
                logger.warning(
                    "ConnectionMapper: failed to create connection for %s: %s",
                    relationship.id,
                    e,
                )
                continue
            if connection is not None:
                connections.append(connection)

        if self._config.adaptive_opacity:
            connections = self._apply_adaptive_opacity(connections)

        if self._config.group_similar_connections:
            connections = self._group_similar(connections)

        logger.debug("ConnectionMapper: created %d connections", len(connections))
        return connections

    def _create_connection(
        self, relationship: Relationship, positions: Mapping[str, Position]
    ) -> Optional[ConnectionLine]:
        source = positions.get(relationship.source_id)
        target = positions.get(relationship.target_id)
        if source is None or target is None:
            return None

        template = self._templates.get(relationship.type, FALLBACK_TEMPLATE)
        return ConnectionLine(
            id=f"connection-{relationship.id}",
            source=source,
            target=target,
            relationship=relationship,
            path=build_path(
                source,
                target,
                template.curve_style,
                relationship.type,
                self._config.curve_intensity,
            ),
            style=self._style_for(template, relationship),
        )

    def _style_for(self, template: StyleTemplate, relationship: Relationship) -> ConnectionStyle:
        floor = self._config.minimum_line_opacity
        color = template.color
        opacity = template.opacity
        dash = template.dash_array

        meta = relationship.metadata
        if meta is not None:
            if meta.color:
                color = meta.color
            if meta.opacity is not None:
                opacity = max(meta.opacity, floor)
            if meta.visual_style == VisualStyle.DASHED:
                dash = DASHED
            elif meta.visual_style == VisualStyle.DOTTED:
                dash = DOTTED
            elif meta.visual_style == VisualStyle.SOLID:
                dash = None

        return ConnectionStyle(
            color=color,
            width=min(template.width, self._config.maximum_line_width),
            opacity=max(opacity, floor),
            dash_array=dash,
        )

    def _apply_adaptive_opacity(self, connections: List[ConnectionLine]) -> List[ConnectionLine]:
        if not connections:
            return connections
        density = min(1.0, len(connections) / DENSITY_SATURATION)
        factor = 1.0 - density * MAX_DENSITY_FADE
        floor = self._config.minimum_line_opacity
        return [
            replace(c, style=replace(c.style, opacity=max(c.style.opacity * factor, floor)))
            for c in connections
        ]

    def _group_similar(self, connections: List[ConnectionLine]) -> List[ConnectionLine]:
        groups: Dict[Tuple[str, str], List[ConnectionLine]] = {}
        for connection in connections:
            key = (connection.relationship.source_id, connection.relationship.target_id)
            groups.setdefault(key, []).append(connection)

        # max() keeps the first of equally ranked members.
        return [
            max(group, key=lambda c: TYPE_PRIORITY.get(c.relationship.type, 0))
            for group in groups.values()
        ]

    def connection_statistics(self, connections: Iterable[ConnectionLine]) -> Dict[str, Any]:
        by_type = {t.value: 0 for t in RelationshipType}
        total = 0
        opacity_sum = 0.0
        curved = 0
        for connection in connections:
            total += 1
            by_type[connection.relationship.type.value] += 1
            opacity_sum += connection.style.opacity
            if is_curved(connection.path):
                curved += 1
        return {
            "total_connections": total,
            "connections_by_type": by_type,
            "average_opacity": opacity_sum / total if total else 0.0,
            "curved_connections": curved,
        }
