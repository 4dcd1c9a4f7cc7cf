"""
Utility modules.
"""

from .sequence import (
    count_matches,
    is_dna_sequence,
    reverse_complement,
    revcom,
)

__all__ = [
    'reverse_complement',
    'revcom',
    'count_matches',
    'is_dna_sequence',
]
