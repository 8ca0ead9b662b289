from __future__ import annotations

from typing import Iterable

from domain.ledger import Digest, SequenceRef


def dedupe_digests(refs: Iterable[SequenceRef]) -> list[Digest]:
    """Distinct digests in order of first occurrence.

    Shrinks the batched effects request; an account that sent to itself is listed
    once as sender and once as recipient.
    """
    return list(dict.fromkeys(ref.digest for ref in refs))


def first_sequence_by_digest(refs: Iterable[SequenceRef]) -> dict[Digest, int]:
    sequences: dict[Digest, int] = {}
    for ref in refs:
        sequences.setdefault(ref.digest, ref.sequence_number)
    return sequences
