"""
Sequence manipulation utilities.

Provides the DNA string operations used when matching observed guide
sequences against catalog guides.
"""

import re

# Regex to detect if string is pure DNA sequence
DNA_PATTERN = re.compile(r'^[ACGTacgtNn]+$')

_COMPLEMENT = {
    'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G', 'N': 'N',
    'a': 't', 't': 'a', 'g': 'c', 'c': 'g', 'n': 'n'
}


def reverse_complement(seq: str) -> str:
    """Return reverse complement of DNA sequence."""
    return ''.join(_COMPLEMENT.get(base, 'N') for base in reversed(seq))


# Short alias used throughout the matcher
revcom = reverse_complement


def is_dna_sequence(s: str) -> bool:
    """Check if string is a pure DNA sequence."""
    return bool(s) and bool(DNA_PATTERN.match(s))


def count_matches(seq1: str, seq2: str) -> int:
    """Count positions where two sequences carry the same base.

    This is a similarity count, not a distance: higher means more alike.
    Sequences of different lengths are compared over the shorter one,
    and comparison is case-sensitive.

    Examples:
        >>> count_matches("ACGT", "ACGA")
        3
        >>> count_matches("ACGT", "AC")
        2
    """
    return sum(a == b for a, b in zip(seq1, seq2))
