"""Minimal IMAP session used by the IMAP search engine."""

from __future__ import annotations

import imaplib
import os
import re
from typing import TYPE_CHECKING, Optional

from FedSearch.core.errors import EngineError, SearchConfigError
from FedSearch.utils.log import log

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

DEFAULT_TIMEOUT = 30.0

_RE_LIST = re.compile(rb'^\((?P<flags>[^)]*)\)\s+(?P<delim>"[^"]*"|NIL)\s+(?P<name>.+)$')


class ImapSession:
    """Lazily-connected IMAP connection.

    The connection is opened on first use and kept until `close`.
    """

    def __init__(
        self,
        host: str,
        *,
        port: Optional[int] = None,
        use_ssl: bool = True,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port or (imaplib.IMAP4_SSL_PORT if use_ssl else imaplib.IMAP4_PORT)
        self.use_ssl = use_ssl
        self.user = user
        self._password = password
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._conn: Optional[imaplib.IMAP4] = None

    @classmethod
    def from_config(cls, config: EngineConfig) -> ImapSession:
        """Build a session from engine options.

        The password is read from the environment variable named by
        ``password_env`` (``.env`` files are loaded by the CLI).

        Raises:
            SearchConfigError: If ``host`` is missing or ``password_env`` is unset.
        """
        host = config.option("host")
        if not host:
            raise SearchConfigError("imap engine requires a host option")
        password = None
        password_env = config.option("password_env")
        if password_env:
            password = os.getenv(password_env)
            if password is None:
                raise SearchConfigError(f"IMAP password environment variable {password_env} is not set")
        return cls(
            host,
            port=config.option("port"),
            use_ssl=bool(config.option("ssl", True)),
            user=config.option("user"),
            password=password,
            timeout=config.timeout,
        )

    @property
    def connection(self) -> imaplib.IMAP4:
        if self._conn is None:
            self._conn = self._connect()
        return self._conn

    def _connect(self) -> imaplib.IMAP4:
        log.debug("IMAP connect host=%s port=%s ssl=%s", self.host, self.port, self.use_ssl)
        try:
            if self.use_ssl:
                conn = imaplib.IMAP4_SSL(self.host, self.port, timeout=self.timeout)
            else:
                conn = imaplib.IMAP4(self.host, self.port, timeout=self.timeout)
            if self.user:
                conn.login(self.user, self._password or "")
        except (OSError, imaplib.IMAP4.error) as error:
            raise EngineError("imap", f"cannot connect to {self.host}:{self.port}", detail=str(error)) from error
        return conn

    def list_mailboxes(self) -> list[str]:
        """Return selectable mailbox names."""
        status, data = self.connection.list()
        if status != "OK":
            raise EngineError("imap", "LIST failed", exit_status=status)
        names: list[str] = []
        for line in data:
            if not isinstance(line, bytes):
                continue
            match = _RE_LIST.match(line)
            if match is None or b"\\Noselect" in match.group("flags"):
                continue
            names.append(match.group("name").decode("utf-8", "replace").strip('"'))
        return names

    def select(self, mailbox: str) -> bool:
        """Select ``mailbox`` read-only; False if the server refuses it."""
        status, data = self.connection.select(_quote_mailbox(mailbox), readonly=True)
        if status != "OK":
            log.warning("IMAP select %s failed: %s", mailbox, data)
            return False
        return True

    def uid_search(self, criteria: str) -> list[int]:
        """Run ``UID SEARCH`` in the selected mailbox and return the UIDs.

        Raises:
            EngineError: If the server answers with a non-OK status.
        """
        if criteria.isascii():
            status, data = self.connection.uid("SEARCH", criteria)
        else:
            status, data = self.connection.uid("SEARCH", "CHARSET", "UTF-8", criteria.encode("utf-8"))
        if status != "OK":
            detail = b" ".join(item for item in data if isinstance(item, bytes)).decode("utf-8", "replace")
            raise EngineError("imap", "UID SEARCH failed", exit_status=status, detail=detail)
        uids: list[int] = []
        for chunk in data:
            if isinstance(chunk, bytes):
                uids.extend(int(token) for token in chunk.split() if token.isdigit())
        return uids

    def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            if conn.state == "SELECTED":
                conn.close()
            conn.logout()
        except (OSError, imaplib.IMAP4.error) as error:
            log.debug("IMAP logout failed: %s", error)


def _quote_mailbox(name: str) -> str:
    if name.startswith('"') or not any(char.isspace() or char in '"\\' for char in name):
        return name
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'
