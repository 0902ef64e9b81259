"""
Builder Module - Black Box Interface

Purpose: Translate a deployment request into a replica set document
Interface: WorkloadSpecBuilder.build()
Hidden: Pod layout, init container wiring, annotation encoding
"""

from .builder import WorkloadSpecBuilder

__all__ = ["WorkloadSpecBuilder"]
