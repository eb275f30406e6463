"""IMAP search engine adapter.

Runs ``UID SEARCH`` in every requested mailbox. IMAP has no relevance
ranking, so every hit scores 100.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from FedSearch.core.models import Match
from FedSearch.core.query import QuerySpec
from FedSearch.engines.imap.client import ImapSession
from FedSearch.engines.imap.query import FUZZY_KIND, KIND
from FedSearch.utils.log import engine_log

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

IMAP_SCORE = 100.0


@dataclass(slots=True)
class ImapEngine:
    """`SearchEngine` backed by an IMAP server."""

    config: EngineConfig
    session: ImapSession

    @property
    def kind(self) -> str:
        return FUZZY_KIND if self.config.option("fuzzy", False) else KIND

    @property
    def raw_queries(self) -> bool:
        return self.config.raw_queries

    def search(
        self,
        query: str,
        *,
        spec: QuerySpec,
        server: str,
        collections: Sequence[str] = (),
    ) -> list[Match]:
        """Search each mailbox in ``collections`` (every mailbox when empty).

        Raises:
            EngineError: If the connection or a search fails.
        """
        del spec
        logger = engine_log(self.kind, server)
        criteria = query or "ALL"
        mailboxes = list(collections) or self.session.list_mailboxes()
        matches: list[Match] = []
        for mailbox in mailboxes:
            if not self.session.select(mailbox):
                continue
            uids = self.session.uid_search(criteria)
            logger.debug("%s: %d hits for %s", mailbox, len(uids), criteria)
            matches.extend(Match(collection=f"{server}:{mailbox}", item_id=uid, score=IMAP_SCORE) for uid in uids)
        return matches

    def close(self) -> None:
        self.session.close()
