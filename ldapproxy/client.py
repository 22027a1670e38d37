"""
The directory client: searches that return
:py:class:`~ldapproxy.records.DirectoryRecord` objects, and modifies that take
them.
"""

import logging
from collections.abc import Callable, Sequence
from functools import partial, wraps
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .attributes import AttributeValue
from .exceptions import DirectoryProtocolError, InvalidOperation
from .filters import filter_string
from .modlist import AttributeModificationMapper
from .paging import PagedSearchExecutor
from .records import DirectoryRecord
from .session import DirectorySession
from .typing import LDAPEntry

logger = logging.getLogger("django-ldapproxy")

#: Ask the server for no attributes at all (RFC 4511 section 4.5.1.8)
NO_ATTRIBUTES = "1.1"


def requires_open(func: Callable) -> Callable:
    """
    Decorator for :py:class:`DirectoryClient` methods that need an open
    session.

    Raises:
        InvalidOperation: the client has not been opened, or has been closed.

    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        if self.state != DirectoryClient.OPEN:
            msg = f"{func.__name__}() needs an open DirectoryClient; this one is {self.state}."
            raise InvalidOperation(msg)
        return func(self, *args, **kwargs)

    return wrapper


class DirectoryClient:
    """
    Reads and updates records in one directory.

    A client is used once: :py:meth:`open` it, do your searches and modifies,
    then :py:meth:`close` it.  It can also be used as a context manager::

        with DirectoryClient.from_settings("default") as client:
            users = client.get_records(
                "(objectclass=person)",
                [SingleValuedAttribute("mail"), MultiValuedAttribute("memberOf")],
            )

    The client is not thread-safe.  Use one client per thread.

    Keyword Args:
        config: A connection dict as described in
            :py:meth:`ldapproxy.session.DirectorySession.connect`.
        basedn: The default base DN for searches.
        page_size: Entries per search round trip.  ``0`` turns paging off.
        friendly_name_attribute: If set, records take their friendly name from
            this attribute instead of from their DN.
        session_factory: A callable returning an open
            :py:class:`~ldapproxy.session.DirectorySession`.  Overrides
            ``config``.

    """

    CLOSED = "closed"
    OPEN = "open"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        basedn: str | None = None,
        page_size: int = 0,
        friendly_name_attribute: str | None = None,
        session_factory: Callable[[], DirectorySession] | None = None,
    ) -> None:
        if session_factory is None:
            if config is None:
                msg = "DirectoryClient needs either config or session_factory"
                raise ImproperlyConfigured(msg)
            session_factory = partial(DirectorySession.connect, config)
        if page_size < 0:
            msg = f"page_size must be 0 or greater, not {page_size}"
            raise ValueError(msg)
        self.session_factory = session_factory
        self.basedn = basedn
        self.page_size = page_size
        self.friendly_name_attribute = friendly_name_attribute
        self.mapper = AttributeModificationMapper()
        self.session: DirectorySession | None = None
        self.state = self.CLOSED
        self._used = False

    @classmethod
    def from_settings(cls, server: str = "default", key: str = "read") -> "DirectoryClient":
        """
        Build a client from ``settings.LDAP_SERVERS[server]``.

        .. code-block:: python

            LDAP_SERVERS = {
                "default": {
                    "basedn": "ou=people,dc=example,dc=com",
                    "page_size": 500,
                    "friendly_name_attribute": "uid",
                    "read": {...},
                    "write": {...},
                }
            }

        ``page_size`` falls back to ``settings.LDAPPROXY_DEFAULT_PAGE_SIZE``,
        then to ``0``.

        Args:
            server: The key in ``settings.LDAP_SERVERS``.
            key: Which connection to use, usually ``"read"`` or ``"write"``.

        Raises:
            ImproperlyConfigured: the settings are missing or incomplete.

        Returns:
            A closed client.

        """
        try:
            servers = settings.LDAP_SERVERS
        except AttributeError as e:
            msg = "settings.LDAP_SERVERS does not exist!"
            raise ImproperlyConfigured(msg) from e
        try:
            server_config = servers[server]
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS has no key '{server}'"
            raise ImproperlyConfigured(msg) from e
        try:
            config = server_config[key]
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS['{server}'] has no '{key}' key"
            raise ImproperlyConfigured(msg) from e
        return cls(
            config=config,
            basedn=server_config.get("basedn"),
            page_size=server_config.get(
                "page_size", getattr(settings, "LDAPPROXY_DEFAULT_PAGE_SIZE", 0)
            ),
            friendly_name_attribute=server_config.get("friendly_name_attribute"),
        )

    # -----------------------
    # Lifecycle
    # -----------------------

    def open(self) -> None:
        """
        Connect and bind.

        Raises:
            InvalidOperation: the client was already opened once.
            DirectoryProtocolError: we could not connect.

        """
        if self._used:
            msg = f"DirectoryClient can only be opened once; this one is {self.state}."
            raise InvalidOperation(msg)
        self._used = True
        self.session = self.session_factory()
        self.state = self.OPEN

    @requires_open
    def close(self) -> None:
        """Unbind the session.  The client can't be reopened."""
        session, self.session = self.session, None
        self.state = self.CLOSED
        session.close()  # type: ignore[union-attr]

    def __enter__(self) -> "DirectoryClient":
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.state == self.OPEN:
            self.close()

    # -----------------------
    # Read
    # -----------------------

    def _attrlist(self, attributes: Sequence[AttributeValue] | None) -> list[str]:
        attrlist = [attr.name for attr in attributes or []]
        if self.friendly_name_attribute:
            attrlist.append(self.friendly_name_attribute)
        return attrlist or [NO_ATTRIBUTES]

    @requires_open
    def search(
        self,
        searchfilter: Any,
        attrlist: list[str] | None,
        basedn: str | None = None,
    ) -> list[LDAPEntry]:
        """
        Search the directory and return the raw ``(dn, attrs)`` entries,
        paging if :py:attr:`page_size` is set.

        Args:
            searchfilter: A filter string, or an ``ldap_filter`` filter.
            attrlist: The attributes to return.

        Keyword Args:
            basedn: Where to search from.  Defaults to :py:attr:`basedn`.

        Raises:
            ValueError: no base DN was given or configured.
            DirectoryProtocolError: the search failed.

        Returns:
            The entries.

        """
        basedn = basedn or self.basedn
        if not basedn:
            msg = "basedn is required either as a parameter or in the client config"
            raise ValueError(msg)
        executor = PagedSearchExecutor(self.session)  # type: ignore[arg-type]
        return executor.search(
            basedn, filter_string(searchfilter), attrlist, page_size=self.page_size
        )

    def get_records(
        self,
        searchfilter: Any,
        attributes: Sequence[AttributeValue] | None = None,
        basedn: str | None = None,
    ) -> list[DirectoryRecord] | None:
        """
        Search the directory and return the matching entries as records.

        ``attributes`` says which attributes to load and whether each is
        single- or multi-valued; pass
        :py:class:`~ldapproxy.attributes.SingleValuedAttribute` or
        :py:class:`~ldapproxy.attributes.MultiValuedAttribute` instances with
        no value.  An attribute the entry doesn't have comes back with a
        value of ``None``.

        Args:
            searchfilter: A filter string, or an ``ldap_filter`` filter.

        Keyword Args:
            attributes: The attributes to load.  If ``None``, records come
                back with a DN and friendly name only.
            basedn: Where to search from.  Defaults to :py:attr:`basedn`.

        Raises:
            InvalidOperation: the client is not open.
            DirectoryProtocolError: the search failed.

        Returns:
            The records, or ``None`` if nothing matched.

        """
        entries = self.search(searchfilter, self._attrlist(attributes), basedn=basedn)
        if not entries:
            return None
        return [
            DirectoryRecord.from_entry(
                entry,
                attributes=attributes,
                friendly_name_attribute=self.friendly_name_attribute,
            )
            for entry in entries
        ]

    def get_record(
        self,
        searchfilter: Any,
        attributes: Sequence[AttributeValue] | None = None,
        basedn: str | None = None,
    ) -> DirectoryRecord | None:
        """
        Like :py:meth:`get_records`, but return only the first record, or
        ``None`` if nothing matched.
        """
        records = self.get_records(searchfilter, attributes=attributes, basedn=basedn)
        if records is None:
            return None
        return records[0]

    # -----------------------
    # Write
    # -----------------------

    @requires_open
    def modify_record(self, record: DirectoryRecord) -> None:
        """
        Apply the attribute edits on ``record`` to its entry, in one modify
        request.  Whether a partly failing request leaves partial changes
        behind is up to the server.

        Args:
            record: The record to write.  Its attributes are the edits.

        Raises:
            InvalidOperation: the client is not open.
            DuplicateValueError: an APPEND edit added a value that exists.
            DirectoryProtocolError: the modify failed.

        """
        modlist = self.mapper.modlist(record)
        if not modlist:
            logger.debug("ldapproxy.client.modify.no-changes dn=%s", record.dn)
            return
        self.session.modify(record.dn, modlist)  # type: ignore[union-attr]
        logger.debug("ldapproxy.client.modify.success dn=%s items=%d", record.dn, len(modlist))

    def modify_records(self, records: Sequence[DirectoryRecord]) -> None:
        """
        Apply :py:meth:`modify_record` to each record in turn.

        Records are not rolled back: if the third record fails, the first two
        stay modified and the rest are not attempted.

        Args:
            records: The records to write.

        Raises:
            InvalidOperation: the client is not open.
            DirectoryProtocolError: a modify failed.  ``dn`` on the exception
                says which record.

        """
        for index, record in enumerate(records):
            try:
                self.modify_record(record)
            except DirectoryProtocolError:
                logger.error(
                    "ldapproxy.client.modify.failed dn=%s done=%d skipped=%d",
                    record.dn,
                    index,
                    len(records) - index - 1,
                )
                raise
