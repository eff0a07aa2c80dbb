"""Tests for conventional commit parsing and classification."""

from __future__ import annotations

import itertools
from datetime import datetime

import pytest
from structlog.testing import capture_logs

from nextver.config.models import CommitsConfig
from nextver.core.commits import (
    BREAKING_CHANGE,
    calculate_bump,
    classify_commit,
    classify_commits,
    filter_skip_release_commits,
    parse_commit,
)
from nextver.core.version import BumpType
from nextver.exceptions import MalformedCommitError
from nextver.vcs.github import Commit


class TestParseCommit:
    """Tests for parse_commit()."""

    def test_parse_simple_feat(self):
        """Parse a simple feat commit."""
        cc = parse_commit("feat: add new feature")

        assert cc.type == "feat"
        assert cc.scope is None
        assert cc.subject == "add new feature"
        assert cc.notes == ()
        assert not cc.is_breaking

    def test_parse_with_scope(self):
        """Parse commit with scope."""
        cc = parse_commit("fix(api): handle null response")

        assert cc.type == "fix"
        assert cc.scope == "api"
        assert cc.subject == "handle null response"

    def test_parse_breaking_with_exclamation(self):
        """! adds a breaking change note carrying the subject."""
        cc = parse_commit("feat!: redesign API")

        assert cc.is_breaking
        assert cc.notes[0].title == BREAKING_CHANGE
        assert cc.notes[0].text == "redesign API"

    def test_parse_breaking_with_scope_and_exclamation(self):
        cc = parse_commit("feat(core)!: change config format")

        assert cc.is_breaking
        assert cc.type == "feat"
        assert cc.scope == "core"

    def test_parse_breaking_footer(self):
        """BREAKING CHANGE footer becomes a note."""
        cc = parse_commit("feat: new feature\n\nBREAKING CHANGE: old API removed")

        assert cc.is_breaking
        assert len(cc.notes) == 1
        assert cc.notes[0].text == "old API removed"
        assert cc.body == ""

    def test_parse_breaking_footer_hyphenated(self):
        cc = parse_commit("fix: patch\n\nBREAKING-CHANGE: behavior differs")

        assert cc.is_breaking

    def test_parse_body_and_footers(self):
        """Body paragraphs are kept; footers are split off."""
        cc = parse_commit(
            "fix(db): retry on deadlock\n\n"
            "Deadlocks showed up under load.\n"
            "Retries now back off.\n\n"
            "Second paragraph.\n\n"
            "Refs: #42\n"
            "Reviewed-by: Someone"
        )

        assert cc.body == (
            "Deadlocks showed up under load.\nRetries now back off.\n\nSecond paragraph."
        )
        assert not cc.is_breaking

    def test_breaking_text_in_body_is_not_a_note(self):
        """Only footers count, not prose mentioning breaking changes."""
        cc = parse_commit("docs: explain\n\nThis is not a BREAKING CHANGE: really.\n\nRefs: #1")

        assert not cc.is_breaking

    def test_multiline_footer_value(self):
        cc = parse_commit("feat: x\n\nBREAKING CHANGE: first line\ncontinues here")

        assert cc.notes[0].text == "first line\ncontinues here"

    @pytest.mark.parametrize(
        ("message", "subject"),
        [("fix:typo", "typo"), ("feat:  two spaces", "two spaces"), ("feat(ui):\tx", "x")],
    )
    def test_whitespace_after_colon_is_optional(self, message: str, subject: str):
        """The header separator accepts zero or more spaces."""
        cc = parse_commit(message)

        assert cc.subject == subject

    def test_crlf_line_endings(self):
        cc = parse_commit("feat: x\r\n\r\nBREAKING CHANGE: gone")

        assert cc.is_breaking

    @pytest.mark.parametrize(
        "message",
        [
            "",
            "   ",
            "\n\n",
            "Updated the readme file",
            "Merge pull request #12 from org/branch",
            "feat: ",
            "feat(scope: unbalanced",
            ": no type",
        ],
    )
    def test_malformed_raises(self, message: str):
        """Messages outside the grammar raise MalformedCommitError."""
        with pytest.raises(MalformedCommitError) as exc_info:
            parse_commit(message)
        assert exc_info.value.commit_message == message


class TestClassifyCommit:
    """Tests for classify_commit()."""

    def test_feat_is_minor(self, commits_config: CommitsConfig):
        assert classify_commit(commits_config, "feat: add x") == BumpType.MINOR

    def test_fix_is_patch(self, commits_config: CommitsConfig):
        assert classify_commit(commits_config, "fix: handle y") == BumpType.PATCH

    def test_breaking_marker_wins_over_minor_list(self, commits_config: CommitsConfig):
        """A breaking change marker forces major even for a minor type."""
        assert classify_commit(commits_config, "feat(test)!: x") == BumpType.MAJOR

    def test_breaking_footer_on_unlisted_type(self, commits_config: CommitsConfig):
        """Breaking changes bump major regardless of the type lists."""
        assert classify_commit(commits_config, "chore: x\n\nBREAKING CHANGE: y") == BumpType.MAJOR

    def test_unlisted_type_is_none(self, commits_config: CommitsConfig):
        assert classify_commit(commits_config, "chore: update deps") == BumpType.NONE

    @pytest.mark.parametrize("commit_type", ["chore", "docs", "ci", "style", "build", "wip"])
    def test_unknown_types_are_none(self, commits_config: CommitsConfig, commit_type: str):
        assert classify_commit(commits_config, f"{commit_type}: something") == BumpType.NONE

    def test_custom_major_type(self):
        """Custom commit types can trigger a major bump."""
        config = CommitsConfig(types_major=["remove"])
        assert classify_commit(config, "remove: delete deprecated API") == BumpType.MAJOR

    def test_patch_all(self, commits_config: CommitsConfig):
        """patch_all classifies every otherwise unlisted type as patch."""
        config = commits_config.model_copy(update={"patch_all": True})
        assert classify_commit(config, "chore: update deps") == BumpType.PATCH
        assert classify_commit(config, "feat: still minor") == BumpType.MINOR

    def test_overlapping_lists_follow_check_order(self):
        """A type in several lists resolves major > minor > patch."""
        config = CommitsConfig(types_major=["feat"], types_minor=["feat"], types_patch=["feat"])
        assert classify_commit(config, "feat: x") == BumpType.MAJOR

        config = CommitsConfig(types_major=[], types_minor=["fix"], types_patch=["fix"])
        assert classify_commit(config, "fix: x") == BumpType.MINOR

    def test_type_match_is_case_sensitive(self, commits_config: CommitsConfig):
        assert classify_commit(commits_config, "FEAT: shouting") == BumpType.NONE

    def test_empty_message_raises(self, commits_config: CommitsConfig):
        with pytest.raises(MalformedCommitError):
            classify_commit(commits_config, "  ")

    def test_logs_decision(self, commits_config: CommitsConfig):
        """Each classification emits a log event with the sha."""
        with capture_logs() as cap:
            classify_commit(commits_config, "feat: x", sha="abc123")

        events = [e for e in cap if e["event"] == "commit_classified"]
        assert events[0]["sha"] == "abc123"
        assert events[0]["bump"] == "minor"


class TestClassifyCommits:
    """Tests for classify_commits()."""

    def test_classify_batch(self, sample_commits: list[Commit], commits_config: CommitsConfig):
        """Every commit gets an entry; malformed ones are None."""
        bumps = classify_commits(sample_commits, commits_config)

        assert bumps == [
            BumpType.MINOR,
            BumpType.PATCH,
            BumpType.NONE,
            BumpType.NONE,
            BumpType.MAJOR,
            None,
        ]

    def test_accepts_plain_strings(self, commits_config: CommitsConfig):
        assert classify_commits(["fix: a", "nonsense"], commits_config) == [BumpType.PATCH, None]

    def test_malformed_commit_logged_as_warning(self, commits_config: CommitsConfig):
        """Skipped commits are reported with their sha and message."""
        commit = Commit("deadbee", "WIP do not merge")
        with capture_logs() as cap:
            classify_commits([commit], commits_config)

        warnings = [e for e in cap if e["log_level"] == "warning"]
        assert warnings[0]["event"] == "commit_skipped"
        assert warnings[0]["sha"] == "deadbee"
        assert warnings[0]["message"] == "WIP do not merge"


class TestCalculateBump:
    """Tests for calculate_bump()."""

    def test_empty_returns_none(self):
        """Empty input aggregates to None."""
        assert calculate_bump([]) is None

    def test_empty_with_patch_all_is_patch(self):
        assert calculate_bump([], patch_all=True) == BumpType.PATCH

    def test_only_skipped_commits(self):
        assert calculate_bump([None, None]) is None

    def test_none_bumps_only(self):
        """Commits that parsed but call for no bump give BumpType.NONE."""
        assert calculate_bump([BumpType.NONE, None]) == BumpType.NONE

    def test_major_anywhere_wins(self):
        bumps = [None, BumpType.PATCH, None, BumpType.MAJOR, BumpType.MINOR, None]
        assert calculate_bump(bumps) == BumpType.MAJOR

    def test_minor_takes_precedence_over_patch(self):
        assert calculate_bump([BumpType.PATCH, BumpType.MINOR, BumpType.PATCH]) == BumpType.MINOR

    def test_patch_all_floor(self):
        """patch_all raises a batch of non-bumping commits to patch."""
        assert calculate_bump([BumpType.NONE, None], patch_all=True) == BumpType.PATCH
        assert calculate_bump([BumpType.MINOR], patch_all=True) == BumpType.MINOR

    @pytest.mark.parametrize(
        ("a", "b"),
        list(itertools.product([*BumpType, None], repeat=2)),
    )
    def test_commutative(self, a, b):
        assert calculate_bump([a, b]) == calculate_bump([b, a])

    def test_order_independent(self):
        bumps = [BumpType.PATCH, None, BumpType.MINOR, BumpType.NONE]
        results = {calculate_bump(p) for p in itertools.permutations(bumps)}
        assert results == {BumpType.MINOR}

    def test_accepts_generator(self, commits_config: CommitsConfig):
        messages = ["fix: a", "feat: b"]
        bumps = (classify_commit(commits_config, m) for m in messages)
        assert calculate_bump(bumps) == BumpType.MINOR


class TestFilterSkipReleaseCommits:
    """Tests for filter_skip_release_commits()."""

    def test_filter_with_skip_release_marker(self):
        """Commits with [skip release] are filtered out."""
        commits = [
            Commit("a", "feat: add feature", "T", datetime.now()),
            Commit("b", "fix: bug fix [skip release]", "T", datetime.now()),
            Commit("c", "docs: update readme", "T", datetime.now()),
        ]
        filtered = filter_skip_release_commits(commits, ["[skip release]"])

        assert [c.sha for c in filtered] == ["a", "c"]

    def test_filter_case_insensitive(self):
        commits = [
            Commit("a", "feat: add feature [SKIP RELEASE]"),
            Commit("b", "fix: bug fix [Skip Release]"),
            Commit("c", "docs: update readme"),
        ]
        filtered = filter_skip_release_commits(commits, ["[skip release]"])

        assert [c.sha for c in filtered] == ["c"]

    def test_filter_marker_in_body(self):
        commits = [
            Commit("a", "feat: add feature\n\nSome details [no release]"),
            Commit("b", "fix: bug fix"),
        ]
        filtered = filter_skip_release_commits(commits, ["[no release]"])

        assert [c.sha for c in filtered] == ["b"]

    def test_filter_empty_patterns_returns_all(self):
        commits = [Commit("a", "feat: add feature [skip release]"), Commit("b", "fix: bug fix")]

        assert len(filter_skip_release_commits(commits, [])) == 2

    def test_default_config_keeps_marked_commits(self):
        """Skip markers are opt-in; by default a marked breaking change still counts."""
        config = CommitsConfig()
        commits = [
            Commit("a", "feat!: drop v1 API [skip release]"),
            Commit("b", "fix: typo"),
        ]

        filtered = filter_skip_release_commits(commits, config.skip_release_patterns)

        assert filtered == commits
        assert calculate_bump(classify_commits(filtered, config)) == BumpType.MAJOR
