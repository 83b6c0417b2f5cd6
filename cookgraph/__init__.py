"""
cookgraph: dependency-graph cooking engine with a transactional undo/redo
command history, both guarded by a shared Lock.
"""

__version__ = "0.1.0"
