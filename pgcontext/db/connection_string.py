"""Parsing and rendering of ``Key=Value;`` PostgreSQL connection strings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Final, Iterator, List, Optional, Tuple

from sqlalchemy.engine import URL

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DRIVER_NAME: Final[str] = "postgresql+psycopg"

HOST: Final[str] = "Host"
PORT: Final[str] = "Port"
DATABASE: Final[str] = "Database"
USERNAME: Final[str] = "Username"
PASSWORD: Final[str] = "Password"

# Lower-cased spellings accepted for the canonical keywords.
_ALIASES: Final[Dict[str, str]] = {
    "host": HOST,
    "server": HOST,
    "port": PORT,
    "database": DATABASE,
    "db": DATABASE,
    "username": USERNAME,
    "user name": USERNAME,
    "user id": USERNAME,
    "userid": USERNAME,
    "user": USERNAME,
    "uid": USERNAME,
    "password": PASSWORD,
    "pwd": PASSWORD,
    "psw": PASSWORD,
}

# Keywords that have a libpq equivalent and survive conversion to a URL.
_LIBPQ_OPTIONS: Final[Dict[str, str]] = {
    "application name": "application_name",
    "ssl mode": "sslmode",
    "sslmode": "sslmode",
    "timeout": "connect_timeout",
    "target session attributes": "target_session_attrs",
    "options": "options",
}


def canonical_key(key: str) -> str:
    """Return the canonical spelling of ``key`` (unknown keys are kept as written)."""
    return _ALIASES.get(" ".join(key.lower().split()), key.strip())


def _needs_quotes(value: str) -> bool:
    if value != value.strip():
        return True
    return any(char in value for char in (";", "'", '"'))


def _quote(value: str) -> str:
    if not _needs_quotes(value):
        return value
    return '"' + value.replace('"', '""') + '"'


def split_pairs(text: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(key, value)`` pairs from a connection string.

    Values may be wrapped in single or double quotes; a doubled quote inside
    a quoted value stands for one literal quote character.
    """
    pos = 0
    length = len(text)
    while pos < length:
        while pos < length and text[pos] in "; \t":
            pos += 1
        if pos >= length:
            return
        eq = text.find("=", pos)
        if eq == -1:
            tail = text[pos:].strip()
            if tail:
                raise ConfigurationError(f"Malformed connection string near '{tail}'")
            return
        key = text[pos:eq].strip()
        pos = eq + 1
        while pos < length and text[pos] in " \t":
            pos += 1
        if pos < length and text[pos] in "'\"":
            quote = text[pos]
            pos += 1
            chunks: List[str] = []
            while True:
                end = text.find(quote, pos)
                if end == -1:
                    raise ConfigurationError(f"Unterminated quoted value for key '{key}'")
                chunks.append(text[pos:end])
                if end + 1 < length and text[end + 1] == quote:
                    chunks.append(quote)
                    pos = end + 2
                    continue
                pos = end + 1
                break
            value = "".join(chunks)
            semi = text.find(";", pos)
            if text[pos: semi if semi != -1 else length].strip():
                raise ConfigurationError(f"Unexpected text after quoted value for key '{key}'")
            pos = length if semi == -1 else semi + 1
        else:
            semi = text.find(";", pos)
            end = length if semi == -1 else semi
            value = text[pos:end].strip()
            pos = end + 1
        if not key:
            if value:
                raise ConfigurationError("Connection string contains a value without a key")
            continue
        yield key, value


@dataclass
class ConnectionParameters:
    """Mutable view over the keywords of a connection string.

    Keywords keep the order in which they first appeared; overriding a field
    rewrites it in place and new fields are appended.
    """

    options: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> "ConnectionParameters":
        options: Dict[str, str] = {}
        lowered: Dict[str, str] = {}
        for key, value in split_pairs(text):
            name = canonical_key(key)
            previous = lowered.setdefault(name.lower(), name)
            options[previous] = value
        return cls(options)

    def _get(self, key: str) -> Optional[str]:
        value = self.options.get(key)
        return value if value else None

    def _set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self.options.pop(key, None)
        else:
            self.options[key] = value

    @property
    def host(self) -> Optional[str]:
        return self._get(HOST)

    @host.setter
    def host(self, value: Optional[str]) -> None:
        self._set(HOST, value)

    @property
    def port(self) -> Optional[int]:
        raw = self._get(PORT)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Connection string has an invalid port '{raw}'", key=PORT) from exc

    @port.setter
    def port(self, value: Optional[int]) -> None:
        self._set(PORT, None if value is None else str(value))

    @property
    def database(self) -> Optional[str]:
        return self._get(DATABASE)

    @database.setter
    def database(self, value: Optional[str]) -> None:
        self._set(DATABASE, value)

    @property
    def user(self) -> Optional[str]:
        return self._get(USERNAME)

    @user.setter
    def user(self, value: Optional[str]) -> None:
        self._set(USERNAME, value)

    @property
    def password(self) -> Optional[str]:
        return self._get(PASSWORD)

    @password.setter
    def password(self, value: Optional[str]) -> None:
        self._set(PASSWORD, value)

    def render(self) -> str:
        """Serialize back to ``Key=Value;Key=Value`` form."""
        return ";".join(f"{key}={_quote(value)}" for key, value in self.options.items())

    def to_url(self) -> URL:
        """Build a SQLAlchemy URL for the psycopg driver."""
        query: Dict[str, str] = {}
        for key, value in self.options.items():
            if key in (HOST, PORT, DATABASE, USERNAME, PASSWORD):
                continue
            option = _LIBPQ_OPTIONS.get(" ".join(key.lower().split()))
            if option is None:
                logger.debug("Connection keyword '%s' has no libpq equivalent; skipped in URL", key)
                continue
            query[option] = value
        return URL.create(
            DRIVER_NAME,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query=query,
        )

    def __str__(self) -> str:
        return self.render()


__all__ = [
    "ConnectionParameters",
    "DATABASE",
    "DRIVER_NAME",
    "HOST",
    "PASSWORD",
    "PORT",
    "USERNAME",
    "canonical_key",
    "split_pairs",
]
