"""
Repositories package for database operations

Provides read access to the source-of-record:
- tickets / comments tables
- teams / team_members tables
- profiles table (people directory)
"""
from ticket_search.repositories.ticket_repository import TicketRepository

__all__ = [
    "TicketRepository",
]
