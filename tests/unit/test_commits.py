"""Tests for commit classification and categorization."""

from __future__ import annotations

import pytest

from release_note.core.commits import (
    CategorizedCommits,
    Commit,
    CommitCategory,
    Contributor,
    categorize_commits,
    classify,
    classify_commit,
    co_author_emails,
    parse_conventional_header,
    strip_conventional_prefix,
)
from release_note.core.message import CoAuthoredBy, LinkedIssue, OtherTrailer, SignedOffBy
from release_note.vcs.base import RawCommit


class TestCommitFromRaw:
    """Tests for Commit.from_raw()."""

    def test_from_raw(self):
        """A raw record is parsed into a commit."""
        raw = RawCommit(
            sha="a" * 40,
            message="fix: crash\n\nGuard input.\n\nCloses #7\nSigned-off-by: Ann <ann@x.io>\n",
            author_name="Ann",
            author_email="ann@x.io",
            timestamp=1700000000,
            parents=("b" * 40,),
        )

        commit = Commit.from_raw(raw)

        assert commit.id == "a" * 40
        assert commit.short_id == "aaaaaaa"
        assert commit.first_line == "fix: crash"
        assert commit.body == "Guard input."
        assert commit.trailers == [SignedOffBy(name="Ann", email="ann@x.io")]
        assert commit.linked_issues == [LinkedIssue(number=7)]
        assert commit.author_name == "Ann"
        assert commit.timestamp == 1700000000
        assert commit.contributors == []

    def test_contributors_are_carried(self, make_commit):
        """Contributors attached after parsing are kept as is."""
        commit = make_commit("feat: x", contributors=[Contributor("octocat", is_bot=False)])

        assert commit.contributors[0].username == "octocat"
        assert classify_commit(commit) is CommitCategory.FEATURE


class TestParseConventionalHeader:
    """Tests for parse_conventional_header()."""

    def test_type_scope_breaking(self):
        """All header parts are extracted and lower-cased."""
        header = parse_conventional_header("Feat(API)!: redesign")

        assert header is not None
        assert header.commit_type == "feat"
        assert header.scope == "api"
        assert header.breaking

    @pytest.mark.parametrize(
        "first_line",
        [
            "Update README",
            "feat:missing space",
            "feat: ",
            "feat(my scope): spaces in scope",
            "feat(scope_x): underscore in scope",
            "feat2: digits in type",
            "Merge branch 'main' into feature",
        ],
    )
    def test_non_conventional(self, first_line):
        """Lines not matching the header grammar return None."""
        assert parse_conventional_header(first_line) is None


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        ("first_line", "expected"),
        [
            ("feat: add search", CommitCategory.FEATURE),
            ("feat(ui): add search", CommitCategory.FEATURE),
            ("fix: crash", CommitCategory.FIX),
            ("docs: typo", CommitCategory.DOCUMENTATION),
            ("ci: cache deps", CommitCategory.CI),
            ("test: more cases", CommitCategory.TEST),
            ("perf: faster", CommitCategory.PERFORMANCE),
            ("chore: tidy", CommitCategory.CHORE),
            ("refactor: split module", CommitCategory.REFACTOR),
            ("style: format", CommitCategory.OTHER),
            ("build: update", CommitCategory.OTHER),
            ("Update README", CommitCategory.OTHER),
            ("FIX: shouting", CommitCategory.FIX),
        ],
    )
    def test_type_mapping(self, first_line, expected):
        """Header types map onto categories."""
        assert classify(first_line) is expected

    @pytest.mark.parametrize(
        "first_line",
        ["feat!: drop python 3.10", "fix(api)!: change response", "chore(deps)!: major bump"],
    )
    def test_breaking_marker(self, first_line):
        """The ! marker wins over type and deps scope."""
        assert classify(first_line) is CommitCategory.BREAKING

    @pytest.mark.parametrize(
        "first_line",
        ["chore(deps): bump rich", "fix(deps): pin pydantic", "ci(DEPS): bump action"],
    )
    def test_deps_scope(self, first_line):
        """The deps scope wins over the type."""
        assert classify(first_line) is CommitCategory.DEPENDENCIES

    def test_breaking_trailer(self):
        """A BREAKING CHANGE trailer wins over everything."""
        trailers = [OtherTrailer(key="BREAKING CHANGE", value="config format changed")]

        assert classify("chore(deps): bump", trailers) is CommitCategory.BREAKING
        assert classify("Update things", trailers) is CommitCategory.BREAKING

    def test_other_trailers_ignored(self):
        """Non-breaking trailers do not affect the category."""
        trailers = [OtherTrailer(key="Refs", value="JIRA-1"), CoAuthoredBy(name="Jo")]

        assert classify("fix: crash", trailers) is CommitCategory.FIX

    def test_body_is_not_consulted(self, make_commit):
        """BREAKING CHANGE in the body does not count."""
        commit = make_commit("fix: crash", body="BREAKING CHANGE: mentioned in prose")

        assert classify_commit(commit) is CommitCategory.FIX


class TestCategorizeCommits:
    """Tests for categorize_commits()."""

    def test_categorize(self, sample_commits):
        """Each commit lands in exactly one category."""
        categorized = categorize_commits(sample_commits)

        assert len(categorized) == len(sample_commits)
        assert categorized.categories() == [
            CommitCategory.BREAKING,
            CommitCategory.FEATURE,
            CommitCategory.FIX,
            CommitCategory.DEPENDENCIES,
            CommitCategory.DOCUMENTATION,
            CommitCategory.CHORE,
            CommitCategory.OTHER,
        ]
        ids = [commit.id for commit in categorized.commits()]
        assert sorted(ids) == sorted(commit.id for commit in sample_commits)

    def test_order_preserved(self, make_commit):
        """Commits keep their input order within a category."""
        commits = [make_commit(f"fix: issue {n}") for n in range(5)]

        categorized = categorize_commits(commits)

        assert categorized.get(CommitCategory.FIX) == commits

    def test_only_present_categories(self, feat_commit):
        """Categories without commits are absent."""
        categorized = categorize_commits([feat_commit])

        assert CommitCategory.FEATURE in categorized
        assert CommitCategory.FIX not in categorized
        assert categorized.get(CommitCategory.FIX) == []

    def test_empty(self):
        """No commits means no categories."""
        categorized = categorize_commits([])

        assert not categorized
        assert len(categorized) == 0
        assert categorized.categories() == []

    def test_idempotent(self, sample_commits):
        """Categorizing the same commits twice gives the same result."""
        first = categorize_commits(sample_commits)
        second = categorize_commits(sample_commits)

        assert first.by_category == second.by_category

    def test_add_returns_category(self, fix_commit):
        """add() reports where the commit went."""
        categorized = CategorizedCommits()

        assert categorized.add(fix_commit) is CommitCategory.FIX
        assert bool(categorized)


class TestCoAuthorEmails:
    """Tests for co_author_emails()."""

    def test_emails_in_order_without_duplicates(self, make_commit):
        """Only co-author emails are returned."""
        commit = make_commit(
            "feat: x",
            trailers=[
                CoAuthoredBy(name="Jo", email="jo@x.io"),
                SignedOffBy(name="Ann", email="ann@x.io"),
                CoAuthoredBy(name="No Email"),
                CoAuthoredBy(name="Bo", email="bo@x.io"),
                CoAuthoredBy(name="Jo again", email="jo@x.io"),
            ],
        )

        assert co_author_emails(commit) == ["jo@x.io", "bo@x.io"]


class TestStripConventionalPrefix:
    """Tests for strip_conventional_prefix()."""

    @pytest.mark.parametrize(
        ("first_line", "expected"),
        [
            ("feat: add search", "add search"),
            ("fix(api)!: handle: colons", "handle: colons"),
            ("Update README", "Update README"),
            ("Note: unknown types are stripped too", "unknown types are stripped too"),
        ],
    )
    def test_strip(self, first_line, expected):
        """The type prefix is removed from conventional headers only."""
        assert strip_conventional_prefix(first_line) == expected
