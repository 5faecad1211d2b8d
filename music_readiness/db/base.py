from music_readiness.db.base_class import Base
from music_readiness.models.submission import Submission


__all__ = [
    'Base',
    'Submission',
]
