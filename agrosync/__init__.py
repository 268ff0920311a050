"""
AgroSync - offline-first farm data layer
Local storage, operation queue and remote synchronization
"""

__version__ = "1.0.0"
