from .path_planning_service import PlanningEngine, create_engine

__all__ = ['PlanningEngine', 'create_engine']
