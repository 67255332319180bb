"""
Ticket Semantic Search & Sync Engine
"""
__version__ = "1.0.0"
