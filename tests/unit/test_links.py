"""
Tests for resource links.
"""

import pytest

from documentdb.links import (
    DATABASES_LINK,
    collections_link,
    documents_link,
    join_url,
    parse_link,
    stored_procedures_link,
    user_defined_functions_link,
)


class TestJoinUrl:
    """Tests for joining the endpoint and a link."""

    def test_trailing_and_leading_slashes(self):
        """Test exactly one separator and the link's trailing slash preserved."""
        assert join_url("https://x/", "dbs/abc/colls/") == "https://x/dbs/abc/colls/"
        assert join_url("https://x", "/dbs/abc/colls/") == "https://x/dbs/abc/colls/"
        assert join_url("https://x//", "//dbs") == "https://x/dbs"

    def test_empty_link(self):
        assert join_url("https://x/", "") == "https://x"


class TestParseLink:
    """Tests for splitting links into resource id and type."""

    @pytest.mark.parametrize(
        "link,expected",
        [
            ("dbs", ("", "dbs")),
            ("/dbs/", ("", "dbs")),
            ("dbs/abc", ("abc", "dbs")),
            ("dbs/abc/", ("abc", "dbs")),
            ("dbs/abc/colls/", ("abc", "colls")),
            ("dbs/abc/colls/xyz/", ("xyz", "colls")),
            ("dbs/abc/colls/xyz/docs/", ("xyz", "docs")),
            ("dbs/abc/colls/xyz/docs/d1/", ("d1", "docs")),
            ("dbs/abc/colls/xyz/sprocs/sp1", ("sp1", "sprocs")),
            ("dbs/abc/colls/xyz/udfs/", ("xyz", "udfs")),
        ],
    )
    def test_parse(self, link, expected):
        assert parse_link(link) == expected

    @pytest.mark.parametrize("link", ["", "/", "dbs/abc/users/u1", "foo"])
    def test_invalid(self, link):
        """Test empty links and unknown types are rejected."""
        with pytest.raises(ValueError):
            parse_link(link)


class TestFeedLinks:
    """Tests for child feed links."""

    def test_databases_link(self):
        assert DATABASES_LINK == "dbs"

    def test_child_feeds(self):
        assert collections_link("dbs/abc/") == "dbs/abc/colls/"
        assert documents_link("dbs/abc/colls/xyz/") == "dbs/abc/colls/xyz/docs/"
        assert stored_procedures_link("dbs/abc/colls/xyz") == "dbs/abc/colls/xyz/sprocs/"
        assert user_defined_functions_link("dbs/abc/colls/xyz/") == "dbs/abc/colls/xyz/udfs/"

    def test_empty_parent(self):
        with pytest.raises(ValueError):
            collections_link("")
