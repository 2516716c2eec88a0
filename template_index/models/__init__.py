"""
Data models
"""
from template_index.models.template import FileRecord

__all__ = ["FileRecord"]
