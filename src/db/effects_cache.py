from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from config import EFFECTS_CACHE_DB
from domain.ledger import Digest, ObjectId, ObjectSnapshot, SequenceRef, SuiAddress
from importers.sui_effects import UnclassifiableEffect, effect_digest
from services.ledger_node import LedgerNode

logger = logging.getLogger(__name__)


class EffectsCacheBase(DeclarativeBase):
    pass


class TransactionEffectsOrm(EffectsCacheBase):
    __tablename__ = "sui_transaction_effects"

    digest: Mapped[str] = mapped_column(String, primary_key=True)
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


class EffectsCacheRepository:
    def __init__(self, session: Session):
        self.session = session

    def load(self, digests: Sequence[Digest]) -> dict[Digest, dict[str, Any]]:
        if not digests:
            return {}
        stmt = select(TransactionEffectsOrm).where(TransactionEffectsOrm.digest.in_([str(d) for d in digests]))
        rows = self.session.execute(stmt).scalars().all()
        return {Digest(row.digest): json.loads(row.payload) for row in rows}

    def upsert(self, effects: Sequence[dict[str, Any]], when: datetime | None = None) -> None:
        fetched_at = when or datetime.now(timezone.utc)
        rows: list[dict[str, object]] = []
        for effect in effects:
            try:
                digest = effect_digest(effect)
            except UnclassifiableEffect:
                continue
            rows.append({"digest": str(digest), "fetched_at": fetched_at, "payload": json.dumps(effect)})
        if not rows:
            return

        stmt = insert(TransactionEffectsOrm).values(rows)
        stmt = stmt.on_conflict_do_nothing(index_elements=["digest"])
        self.session.execute(stmt)
        self.session.commit()

    def count(self) -> int:
        return len(self.session.execute(select(TransactionEffectsOrm.digest)).all())


class CachedLedgerNode:
    """LedgerNode wrapper that remembers transaction effects.

    Effects of an executed transaction never change, so they are served from the
    cache and only missing digests go to the node, still as a single batch.
    References and objects are mutable and always fetched.
    """

    def __init__(self, node: LedgerNode, cache: EffectsCacheRepository) -> None:
        self.node = node
        self.cache = cache

    def list_references(self, address: SuiAddress) -> list[SequenceRef]:
        return self.node.list_references(address)

    def fetch_effects_batch(self, digests: Sequence[Digest]) -> list[dict[str, Any]]:
        cached = self.cache.load(digests)
        missing = [digest for digest in digests if digest not in cached]
        logger.info("Effects cache hits=%d misses=%d", len(cached), len(missing))

        fetched: list[dict[str, Any]] = []
        if missing:
            fetched = self.node.fetch_effects_batch(missing)
            self.cache.upsert(fetched)
        return [*(cached[digest] for digest in digests if digest in cached), *fetched]

    def fetch_objects_batch(self, object_ids: Sequence[ObjectId]) -> list[ObjectSnapshot]:
        return self.node.fetch_objects_batch(object_ids)


def init_effects_cache_db(echo: bool = False, *, db_file: str | Path = EFFECTS_CACHE_DB, reset: bool = False) -> Session:
    path = Path(db_file)
    if reset and path.exists():
        path.unlink()
    path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(f"sqlite:///{path}", echo=echo)
    EffectsCacheBase.metadata.create_all(engine)
    return sessionmaker(engine)()
