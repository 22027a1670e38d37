"""
Tests for the paged search loop, against a scripted session.
"""

import math
import unittest
from unittest.mock import Mock

from ldap.controls import LDAPControl, SimplePagedResultsControl

from ldapproxy.exceptions import DirectoryProtocolError
from ldapproxy.paging import PagedSearchExecutor, get_paged_cookie


def make_entries(n):
    return [
        (f"uid=user{i},ou=people,dc=example,dc=com", {"uid": [f"user{i}".encode()]})
        for i in range(n)
    ]


class ScriptedPagingSession:
    """
    Serves ``entries`` in pages, the way a directory server honoring the
    paged results control would.  The cookie is the offset of the next page.
    """

    def __init__(self, entries, honor_paging=True, fail_on_round=None):
        self.entries = entries
        self.honor_paging = honor_paging
        self.fail_on_round = fail_on_round
        #: (criticality, size, cookie) for each request control we were sent
        self.requests = []

    def search(self, basedn, searchfilter, attrlist, serverctrls=None):
        if serverctrls is None:
            self.requests.append(None)
            return list(self.entries), []
        control = serverctrls[0]
        self.requests.append((control.criticality, control.size, control.cookie))
        if self.fail_on_round == len(self.requests):
            msg = "Server is unavailable"
            raise DirectoryProtocolError(msg, stage="search", dn=basedn)
        if not self.honor_paging:
            return list(self.entries), []
        offset = int(control.cookie) if control.cookie else 0
        page = self.entries[offset : offset + control.size]
        next_offset = offset + control.size
        cookie = str(next_offset).encode() if next_offset < len(self.entries) else b""
        response = SimplePagedResultsControl(False, size=0, cookie=cookie)  # noqa: FBT003
        return page, [response]


class TestGetPagedCookie(unittest.TestCase):

    def test_finds_paged_control(self):
        other = LDAPControl("1.2.3.4", False, b"")  # noqa: FBT003
        paged = SimplePagedResultsControl(False, size=0, cookie=b"abc")  # noqa: FBT003
        self.assertEqual(get_paged_cookie([other, paged]), b"abc")

    def test_no_paged_control(self):
        self.assertIsNone(get_paged_cookie([]))
        self.assertIsNone(get_paged_cookie([LDAPControl("1.2.3.4", False, b"")]))  # noqa: FBT003


class TestPagedSearchExecutor(unittest.TestCase):

    def test_unpaged_search(self):
        session = ScriptedPagingSession(make_entries(7))
        executor = PagedSearchExecutor(session)
        results = executor.search("dc=example,dc=com", "(uid=*)", ["uid"], page_size=0)
        self.assertEqual(results, make_entries(7))
        self.assertEqual(session.requests, [None])
        self.assertEqual(executor.round_trips, 1)

    def test_paged_matches_unpaged_for_any_page_size(self):
        entries = make_entries(23)
        for page_size in (1, 2, 5, 10, 22, 23, 24, 100):
            with self.subTest(page_size=page_size):
                session = ScriptedPagingSession(entries)
                executor = PagedSearchExecutor(session)
                results = executor.search(
                    "dc=example,dc=com", "(uid=*)", ["uid"], page_size=page_size
                )
                self.assertEqual(sorted(results), sorted(entries))
                self.assertEqual(executor.round_trips, math.ceil(len(entries) / page_size))
                self.assertEqual(len(session.requests), executor.round_trips)

    def test_first_request_non_critical_then_critical(self):
        session = ScriptedPagingSession(make_entries(5))
        PagedSearchExecutor(session).search("dc=example,dc=com", "(uid=*)", None, page_size=2)
        self.assertEqual(
            session.requests,
            [(False, 2, ""), (True, 2, b"2"), (True, 2, b"4")],
        )

    def test_no_results(self):
        session = ScriptedPagingSession([])
        executor = PagedSearchExecutor(session)
        results = executor.search("dc=example,dc=com", "(uid=nobody)", ["uid"], page_size=10)
        self.assertEqual(results, [])
        self.assertEqual(executor.round_trips, 1)

    def test_server_without_paging_support(self):
        # No response control at all means there are no more pages
        session = ScriptedPagingSession(make_entries(12), honor_paging=False)
        executor = PagedSearchExecutor(session)
        results = executor.search("dc=example,dc=com", "(uid=*)", ["uid"], page_size=5)
        self.assertEqual(results, make_entries(12))
        self.assertEqual(executor.round_trips, 1)

    def test_none_cookie_ends_search(self):
        session = Mock()
        session.search.return_value = (
            make_entries(2),
            [SimplePagedResultsControl(False, size=0, cookie=None)],  # noqa: FBT003
        )
        executor = PagedSearchExecutor(session)
        self.assertEqual(len(executor.search("dc=example,dc=com", "(uid=*)", None, page_size=5)), 2)
        self.assertEqual(session.search.call_count, 1)

    def test_failure_mid_search_discards_partial_results(self):
        session = ScriptedPagingSession(make_entries(10), fail_on_round=3)
        executor = PagedSearchExecutor(session)
        with self.assertRaises(DirectoryProtocolError) as cm:
            executor.search("dc=example,dc=com", "(uid=*)", ["uid"], page_size=3)
        self.assertEqual(cm.exception.stage, "search")
        self.assertEqual(cm.exception.round, 3)
        self.assertEqual(cm.exception.dn, "dc=example,dc=com")
        self.assertIn("round=3", str(cm.exception))

    def test_search_references_are_skipped(self):
        session = Mock()
        session.search.return_value = (
            [*make_entries(2), (None, ["ldap://other.example.com/dc=example,dc=com"])],
            [],
        )
        results = PagedSearchExecutor(session).search(
            "dc=example,dc=com", "(uid=*)", None, page_size=0
        )
        self.assertEqual(results, make_entries(2))

    def test_controls_are_not_shared_between_searches(self):
        session = ScriptedPagingSession(make_entries(4))
        executor = PagedSearchExecutor(session)
        executor.search("dc=example,dc=com", "(uid=*)", None, page_size=3)
        executor.search("dc=example,dc=com", "(uid=*)", None, page_size=3)
        # The second search starts from scratch: non-critical, empty cookie
        self.assertEqual(session.requests[2], (False, 3, ""))


if __name__ == "__main__":
    unittest.main()
