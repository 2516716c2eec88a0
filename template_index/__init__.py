"""
Template Index API
In-memory index and ranked search over a directory of JSON templates
"""
__version__ = "1.0.0"
