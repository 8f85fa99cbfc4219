"""Tests for maintainer evidence parsers."""

import pytest

from github_org_sync.errors import InvalidEntityError
from github_org_sync.maintainers import Collaborator, parse_codeowners, parse_metadata_template
from github_org_sync.schemas import PermissionTier
from tests.factories import make_github_collaborator


class TestParseCodeowners:
    """Tests for CODEOWNERS parsing."""

    def test_individual_owners(self):
        text = "* @alice @bob\n/docs/ @carol\n"

        assert parse_codeowners(text) == ("alice", "bob", "carol")

    def test_ignores_teams_emails_and_comments(self):
        text = (
            "# Default owners\n"
            "*       @acme/core-team docs@acme.dev @alice  # lead\n"
            "\n"
            "# @commented-out\n"
            "*.py    @bob\n"
        )

        assert parse_codeowners(text) == ("alice", "bob")

    def test_deduplicates_case_insensitively(self):
        assert parse_codeowners("* @Alice\n/src/ @alice @bob\n") == ("Alice", "bob")

    def test_pattern_only_lines(self):
        """A path with no owners clears ownership; it names nobody."""
        assert parse_codeowners("/vendor/\n") == ()

    def test_empty(self):
        assert parse_codeowners("") == ()


class TestParseMetadataTemplate:
    """Tests for registry metadata template parsing."""

    def test_object_entries(self):
        text = '{"maintainers": [{"name": "Alice", "github": "alice"}, {"github": "@bob"}]}'

        assert parse_metadata_template(text) == ("alice", "bob")

    def test_string_entries_and_junk(self):
        text = '{"maintainers": ["carol", 42, {"email": "x@y.z"}, {"github": ""}]}'

        assert parse_metadata_template(text) == ("carol",)

    def test_invalid_json(self):
        assert parse_metadata_template("{not json") == ()

    def test_not_an_object(self):
        assert parse_metadata_template('["alice"]') == ()

    def test_missing_maintainers(self):
        assert parse_metadata_template('{"homepage": "https://example.com"}') == ()


class TestCollaborator:
    """Tests for collaborator payload conversion."""

    def test_from_payload(self):
        collaborator = Collaborator.from_payload(make_github_collaborator("alice", 1, "maintain"))

        assert collaborator.login == "alice"
        assert collaborator.user_id == 1
        assert collaborator.tier == PermissionTier.MAINTAIN
        assert collaborator.avatar_url is not None

    def test_from_payload_invalid(self):
        with pytest.raises(InvalidEntityError):
            Collaborator.from_payload({"login": "alice"})
