"""
Tests for the candidate filters.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from cloudsweep.core.config import EMPTY_RULE, ResourceTypeRule
from cloudsweep.core.filters import (
    EXCLUSION_TAG_KEY,
    has_exclude_tag,
    is_created_after,
    resolve_name,
    should_include_candidate,
)


def rule(include=(), exclude=()):
    return ResourceTypeRule(
        include_names=tuple(re.compile(p) for p in include),
        exclude_names=tuple(re.compile(p) for p in exclude),
    )


@pytest.fixture
def five_days_ago():
    return datetime.now(timezone.utc) - timedelta(days=5)


class TestHasExcludeTag:
    """Tests for has_exclude_tag."""

    def test_true_value_excludes(self):
        assert has_exclude_tag({EXCLUSION_TAG_KEY: "true"}) is True

    def test_other_values_do_not_exclude(self):
        assert has_exclude_tag({EXCLUSION_TAG_KEY: "false"}) is False
        assert has_exclude_tag({EXCLUSION_TAG_KEY: "TRUE"}) is False
        assert has_exclude_tag({EXCLUSION_TAG_KEY: ""}) is False

    def test_missing_or_empty_tags(self):
        assert has_exclude_tag({}) is False
        assert has_exclude_tag(None) is False
        assert has_exclude_tag({"Name": "true"}) is False


class TestResolveName:
    """Tests for resolve_name."""

    def test_name_tag(self):
        assert resolve_name({"Name": "scratch", "env": "dev"}) == "scratch"

    def test_untagged_resource_has_empty_name(self):
        assert resolve_name({}) == ""
        assert resolve_name(None) == ""


class TestIsCreatedAfter:
    """Tests for the cutoff comparison."""

    def test_created_after_cutoff(self, five_days_ago):
        assert is_created_after(five_days_ago + timedelta(seconds=1), five_days_ago)

    def test_created_before_cutoff(self, five_days_ago):
        assert not is_created_after(five_days_ago - timedelta(days=5), five_days_ago)

    def test_created_exactly_at_cutoff_is_not_after(self, five_days_ago):
        assert not is_created_after(five_days_ago, five_days_ago)


class TestShouldIncludeCandidate:
    """Tests for should_include_candidate."""

    def test_old_untagged_candidate_is_included(self, make_candidate, five_days_ago):
        """An old, untagged available volume is eligible."""
        candidate = make_candidate("vol-1", age=timedelta(days=10))
        assert should_include_candidate(candidate, five_days_ago, EMPTY_RULE) is True

    def test_exclusion_tag_excludes(self, make_candidate, five_days_ago):
        """The exclusion tag protects a resource."""
        candidate = make_candidate("vol-2", tags={EXCLUSION_TAG_KEY: "true"})
        assert should_include_candidate(candidate, five_days_ago, EMPTY_RULE) is False

    def test_exclusion_tag_wins_over_include_rule(self, make_candidate, five_days_ago):
        candidate = make_candidate(
            "vol-2", tags={EXCLUSION_TAG_KEY: "true", "Name": "ci-build"}
        )
        assert should_include_candidate(candidate, five_days_ago, rule(include=["^ci-"])) is False

    def test_none_candidate_is_excluded(self, five_days_ago):
        assert should_include_candidate(None, five_days_ago, EMPTY_RULE) is False

    @pytest.mark.parametrize("age_hours", [0, 1, 24, 119])
    def test_created_after_cutoff_is_never_included(self, make_candidate, five_days_ago, age_hours):
        """Resources younger than the cutoff are protected whatever the rules say."""
        candidate = make_candidate(age=timedelta(hours=age_hours), tags={"Name": "ci-x"})
        assert should_include_candidate(candidate, five_days_ago, rule(include=["ci"])) is False

    def test_include_pattern_must_match(self, make_candidate, five_days_ago):
        matching = make_candidate(tags={"Name": "ci-build-42"})
        other = make_candidate(tags={"Name": "prod-db"})
        ci_only = rule(include=["^ci-"])

        assert should_include_candidate(matching, five_days_ago, ci_only) is True
        assert should_include_candidate(other, five_days_ago, ci_only) is False

    def test_exclude_pattern_must_not_match(self, make_candidate, five_days_ago):
        candidate = make_candidate(tags={"Name": "prod-db"})
        assert should_include_candidate(candidate, five_days_ago, rule(exclude=["prod"])) is False

    def test_include_and_exclude_together(self, make_candidate, five_days_ago):
        both = rule(include=["^ci-"], exclude=["keep"])

        assert should_include_candidate(make_candidate(tags={"Name": "ci-1"}), five_days_ago, both)
        assert not should_include_candidate(
            make_candidate(tags={"Name": "ci-1-keep"}), five_days_ago, both
        )

    def test_untagged_candidate_against_include_rule(self, make_candidate, five_days_ago):
        """An untagged resource has the empty name, which fails a non-empty include pattern."""
        candidate = make_candidate(tags={})
        assert should_include_candidate(candidate, five_days_ago, rule(include=["^ci-"])) is False
        assert should_include_candidate(candidate, five_days_ago, rule(exclude=["^ci-"])) is True

    def test_patterns_are_not_anchored(self, make_candidate, five_days_ago):
        candidate = make_candidate(tags={"Name": "team-scratch-01"})
        assert should_include_candidate(candidate, five_days_ago, rule(include=["scratch"])) is True
