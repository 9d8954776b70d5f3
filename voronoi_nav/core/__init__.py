from .graph_node import GraphNode
from .grid_snapshot import GridSnapshot
from .collision import CollisionChecker

__all__ = ['GraphNode', 'GridSnapshot', 'CollisionChecker']
