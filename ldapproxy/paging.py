"""
The paged search loop.

Servers usually cap how many entries one search may return.  The Simple Paged
Results control (RFC 2696) gets around that: we ask for ``page_size``
entries at a time and the server hands back an opaque cookie to send with the
next request, until the cookie comes back empty.
"""

import logging

from ldap.controls import LDAPControl, SimplePagedResultsControl

from .exceptions import DirectoryProtocolError
from .session import DirectorySession
from .typing import LDAPEntry

logger = logging.getLogger("django-ldapproxy")


def get_paged_cookie(serverctrls: list[LDAPControl]) -> bytes | None:
    """
    Find the paged results response control in ``serverctrls`` and return its
    cookie.

    Args:
        serverctrls: The response controls from one search round trip.

    Returns:
        The cookie, or ``None`` if the server sent no paged results control.

    """
    for control in serverctrls:
        if control.controlType == SimplePagedResultsControl.controlType:
            return control.cookie
    return None


class PagedSearchExecutor:
    """
    Turns a multi-round paged search into one list of entries.

    The executor keeps no control state between calls: each :py:meth:`search`
    builds its own controls and passes them to the session explicitly.

    Args:
        session: The open session to search with.

    """

    def __init__(self, session: DirectorySession) -> None:
        self.session = session
        #: Round trips made by the most recent :py:meth:`search`
        self.round_trips: int = 0

    def search(
        self,
        basedn: str,
        searchfilter: str,
        attributes: list[str] | None,
        page_size: int = 0,
    ) -> list[LDAPEntry]:
        """
        Search the directory, following paging cookies until the server has
        nothing left to send.

        Args:
            basedn: Where to search from.
            searchfilter: The LDAP filter string.
            attributes: The attributes to return.

        Keyword Args:
            page_size: Entries per round trip.  ``0`` does a single unpaged
                search.

        Raises:
            DirectoryProtocolError: any round trip failed.  Entries from
                earlier rounds are thrown away.

        Returns:
            Every entry from every page, in the order the server sent them.

        """
        if not page_size:
            self.round_trips = 1
            entries, _ = self.session.search(basedn, searchfilter, attributes)
            return self._entries(entries)

        # The first page is non-critical: a server that can't page just sends
        # everything in one go with no cookie.
        control = SimplePagedResultsControl(False, size=page_size, cookie="")  # noqa: FBT003
        results: list[LDAPEntry] = []
        self.round_trips = 0
        while True:
            self.round_trips += 1
            try:
                entries, serverctrls = self.session.search(
                    basedn, searchfilter, attributes, serverctrls=[control]
                )
            except DirectoryProtocolError as e:
                e.with_context(round=self.round_trips)
                raise
            results.extend(self._entries(entries))
            logger.debug(
                "ldapproxy.search.page basedn=%s round=%d entries=%d",
                basedn,
                self.round_trips,
                len(entries),
            )
            cookie = get_paged_cookie(serverctrls)
            if not cookie:
                break
            # Once the server has started paging it must keep honoring the
            # control or fail the search.
            control = SimplePagedResultsControl(True, size=page_size, cookie=cookie)  # noqa: FBT003
        logger.debug(
            "ldapproxy.search.done basedn=%s rounds=%d entries=%d",
            basedn,
            self.round_trips,
            len(results),
        )
        return results

    @staticmethod
    def _entries(rdata: list) -> list[LDAPEntry]:
        # AD returns search references at the end of the results that we
        # want to ignore
        return [(dn, attrs) for dn, attrs in rdata if isinstance(attrs, dict)]
