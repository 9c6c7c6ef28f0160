"""
Repository Module.

Persistence boundary for extracted carnets:
    - CarnetAduanero entity and paging types
    - CarnetAduaneroRepository contract
    - SQLAlchemy reference implementation

Author: ML Engineering Team
"""

from .base import CarnetAduanero, CarnetAduaneroRepository, Page
from .sql_repository import SQLAlchemyCarnetRepository

__all__ = [
    'CarnetAduanero',
    'CarnetAduaneroRepository',
    'Page',
    'SQLAlchemyCarnetRepository',
]
