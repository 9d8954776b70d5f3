from .exceptions import (
    PlannerError,
    RoadmapBuildError,
    NoRouteError,
    StaleRoadmapError,
    ConfigurationError,
)

__all__ = [
    'PlannerError',
    'RoadmapBuildError',
    'NoRouteError',
    'StaleRoadmapError',
    'ConfigurationError',
]
