"""Importers turning raw ledger node payloads into domain entries."""

from importers.sui_effects import MultiOperationUnsupported, UnclassifiableEffect, classify_effect

__all__ = ["MultiOperationUnsupported", "UnclassifiableEffect", "classify_effect"]
