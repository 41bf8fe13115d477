"""Tests for legacy comment normalisation."""

from recordcomments.core.modules.comment.migrations import normalize_comment, normalize_upvoters


class TestNormalizeUpvoters:
    """Tests for legacy upvoter entries."""

    def test_email_strings(self):
        """Test bare e-mails become name/email objects."""
        assert normalize_upvoters(["ann@example.com", "nobody"]) == [
            {"name": "ann", "email": "ann@example.com"},
            {"name": "nobody", "email": "nobody"},
        ]

    def test_current_format_untouched(self):
        """Test objects pass through."""
        upvoter = {"name": "Ann", "email": "ann@example.com"}
        assert normalize_upvoters([upvoter]) == [upvoter]

    def test_not_a_list(self):
        """Test garbage becomes no upvoters."""
        assert normalize_upvoters(None) == []
        assert normalize_upvoters("ann@example.com") == []


class TestNormalizeComment:
    """Tests for legacy comment dicts."""

    def test_existing_id_preserved(self):
        """Test ids are never rewritten."""
        raw = {"id": "c1", "dateISO": "2024-01-01T00:00:00.000Z"}
        assert normalize_comment(raw) == raw

    def test_missing_id_uses_timestamp(self):
        """Test legacy comments are identified by their timestamp."""
        normalized = normalize_comment({"dateISO": "2023-01-01T00:00:00.000Z"})
        assert normalized["id"] == "2023-01-01T00:00:00.000Z"
        assert normalized["dateISO"] == "2023-01-01T00:00:00.000Z"

    def test_parent_iso_renamed(self):
        """Test the legacy parent reference key is renamed."""
        normalized = normalize_comment({"id": "r1", "parentCommentISO": "p"})
        assert normalized == {"id": "r1", "parentCommentId": "p"}

    def test_input_not_mutated(self):
        """Test the raw dict is copied."""
        raw = {"dateISO": "t", "usersWhoUpvoted": ["a@example.com"]}
        normalize_comment(raw)
        assert raw == {"dateISO": "t", "usersWhoUpvoted": ["a@example.com"]}

    def test_non_dict_passthrough(self):
        """Test non-dict values are left for validation to reject."""
        assert normalize_comment("junk") == "junk"
