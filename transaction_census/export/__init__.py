"""
Export Module
"""
from .writers import ExportFormat, RelationExporter, build_modeling_frame, export_relation

__all__ = [
    "ExportFormat",
    "RelationExporter",
    "build_modeling_frame",
    "export_relation",
]
