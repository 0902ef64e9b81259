"""
Controller Module - Black Box Interface

Purpose: Replica set lifecycle (create, get, get_scale, scale, delete)
Interface: WorkloadController
Hidden: Request sequencing, drain-then-delete, scale read-modify-write

Failures surface as kargo.errors exceptions; nothing is retried here.
"""

from .controller import WorkloadController

__all__ = ["WorkloadController"]
