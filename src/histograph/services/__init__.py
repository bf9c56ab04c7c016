from .event_index import EventIndex
from .relationship_service import RelationshipAnalyzer
from .branch_service import BranchAnalyzer
from .connection_service import ConnectionMapper, StyleTemplate, build_path
from .timeline_service import TimelineService
from .report_service import ReportService


__all__ = [
    'EventIndex',
    'RelationshipAnalyzer',
    'BranchAnalyzer',
    'ConnectionMapper',
    'StyleTemplate',
    'build_path',
    'TimelineService',
    'ReportService',
]
