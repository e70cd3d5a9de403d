"""Tests for LineScmMap: latest-changeset selection, lookups, immutability."""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from linescm.exceptions import LineScmError, NoChangesetForLineError
from linescm.scm.line_map import LineScmMap
from linescm.scm.models import Changeset


def make_changeset(revision: str, day: int, author: str = "dev@example.com") -> Changeset:
    """Changeset dated ``day`` days after 2020-01-01 UTC."""
    return Changeset(
        revision=revision,
        author=author,
        date=datetime(2020, 1, 1, tzinfo=timezone.utc) + timedelta(days=day),
    )


class TestLatestChangeset:
    """Test the cached latest changeset."""

    def test_empty_mapping_has_no_latest(self):
        """Empty input yields no latest changeset."""
        scm = LineScmMap({})
        assert scm.get_latest_changeset() is None
        assert len(scm) == 0

    def test_single_line(self, r1):
        """A single entry is its own latest changeset."""
        scm = LineScmMap({1: r1})
        assert scm.get_latest_changeset() is r1

    def test_latest_is_max_by_date(self):
        """The most recent date wins regardless of line order."""
        old = make_changeset("old", 0)
        mid = make_changeset("mid", 10)
        new = make_changeset("new", 20)
        scm = LineScmMap({1: mid, 2: new, 3: old, 4: mid})
        assert scm.get_latest_changeset() is new

    def test_no_value_is_strictly_later_than_latest(self):
        """Nothing in the mapping is newer than the latest changeset."""
        changesets = {i: make_changeset(f"c{i}", (i * 7) % 13) for i in range(1, 40)}
        scm = LineScmMap(changesets)
        latest = scm.get_latest_changeset()
        assert latest in changesets.values()
        assert all(cs.date <= latest.date for cs in changesets.values())

    def test_tie_picks_one_of_the_maxima(self):
        """Equal maximal dates resolve to one of the tied changesets."""
        a = make_changeset("a", 5)
        b = make_changeset("b", 5)
        scm = LineScmMap({1: a, 2: b, 3: make_changeset("c", 1)})
        assert scm.get_latest_changeset() in (a, b)
        assert scm.get_latest_changeset() is scm.get_latest_changeset()

    def test_mixed_naive_and_aware_dates(self):
        """Naive dates are UTC, so they order against aware ones."""
        naive = Changeset(revision="naive", date=datetime(2021, 6, 1))
        aware = Changeset(
            revision="aware", date=datetime(2021, 6, 1, 3, tzinfo=timezone(timedelta(hours=2)))
        )
        # 03:00+02:00 is 01:00 UTC, later than 00:00 UTC
        scm = LineScmMap({1: naive, 2: aware})
        assert scm.get_latest_changeset() is aware


class TestLookups:
    """Test per-line queries."""

    def test_every_input_pair_is_returned(self, r1, r2):
        """Each line maps back to exactly the changeset it was built with."""
        mapping = {1: r1, 2: r2, 5: r1}
        scm = LineScmMap(mapping)
        for line, changeset in mapping.items():
            assert scm.get_changeset_for_line(line) is changeset
            assert scm.has_changeset_for_line(line)

    def test_missing_line_raises(self, r1):
        """Lines without an entry raise NoChangesetForLineError."""
        scm = LineScmMap({1: r1})
        with pytest.raises(NoChangesetForLineError, match="Line 3 doesn't have a changeset") as exc_info:
            scm.get_changeset_for_line(3)
        assert exc_info.value.line == 3
        assert not scm.has_changeset_for_line(3)

    def test_missing_line_error_is_value_error(self, r1):
        """The error is catchable as a ValueError and as a LineScmError."""
        scm = LineScmMap({1: r1})
        with pytest.raises(ValueError):
            scm.get_changeset_for_line(0)
        with pytest.raises(LineScmError):
            scm.get_changeset_for_line(-1)

    def test_empty_map_lookups(self):
        """An empty map has no lines at all."""
        scm = LineScmMap({})
        assert not scm.has_changeset_for_line(1)
        with pytest.raises(NoChangesetForLineError):
            scm.get_changeset_for_line(1)

    def test_lookup_agrees_with_membership(self, r1):
        """Whatever has_changeset_for_line accepts, get_changeset_for_line returns."""
        # the date scan cannot handle a None value, so skip it here
        with patch("linescm.scm.line_map._compute_latest_changeset", return_value=r1):
            scm = LineScmMap({1: r1, 2: None})  # type: ignore[dict-item]
        for line in (1, 2, 3):
            if scm.has_changeset_for_line(line):
                assert scm.get_changeset_for_line(line) is scm.get_all_changesets()[line]
            else:
                with pytest.raises(NoChangesetForLineError):
                    scm.get_changeset_for_line(line)
        assert scm.get_changeset_for_line(2) is None

    def test_dunder_helpers(self, r1, r2):
        """len, in, and iteration (sorted) reflect the mapping."""
        scm = LineScmMap({5: r1, 1: r2, 3: r1})
        assert len(scm) == 3
        assert 3 in scm
        assert 4 not in scm
        assert list(scm) == [1, 3, 5]


class TestExampleScenario:
    """The reference scenario: three lines, two revisions."""

    def test_scenario(self):
        r1 = Changeset(revision="r1", date=datetime(2018, 1, 1, tzinfo=timezone.utc))
        r2 = Changeset(revision="r2", date=datetime(2018, 3, 5, tzinfo=timezone.utc))
        r1_again = Changeset(revision="r1", date=datetime(2018, 1, 1, tzinfo=timezone.utc))
        scm = LineScmMap({1: r1, 2: r2, 5: r1_again})

        latest = scm.get_latest_changeset()
        assert latest.revision == "r2"
        assert latest.date == datetime(2018, 3, 5, tzinfo=timezone.utc)
        assert scm.get_changeset_for_line(2) is latest
        with pytest.raises(NoChangesetForLineError):
            scm.get_changeset_for_line(3)
        assert scm.has_changeset_for_line(5)
        assert dict(scm.get_all_changesets()) == {1: r1, 2: r2, 5: r1_again}


class TestImmutability:
    """Test that nothing changes after construction."""

    def test_view_is_read_only(self, r1, r2):
        """The returned mapping rejects writes and deletes."""
        scm = LineScmMap({1: r1})
        view = scm.get_all_changesets()
        with pytest.raises(TypeError):
            view[2] = r2  # type: ignore[index]
        with pytest.raises(TypeError):
            del view[1]  # type: ignore[attr-defined]
        assert dict(scm.get_all_changesets()) == {1: r1}

    def test_input_mutation_not_visible(self, r1, r2):
        """Later changes to the caller's dict do not leak in."""
        source = {1: r1}
        scm = LineScmMap(source)
        source[2] = r2
        source[1] = r2
        assert dict(scm.get_all_changesets()) == {1: r1}
        assert scm.get_latest_changeset() is r1

    def test_attributes_cannot_be_reassigned(self, r1, r2):
        """Instance attributes are frozen."""
        scm = LineScmMap({1: r1})
        with pytest.raises(AttributeError):
            scm._latest_changeset = r2
        with pytest.raises(AttributeError):
            scm.anything = 1
        with pytest.raises(AttributeError):
            del scm._line_changesets

    def test_repeated_queries_are_stable(self, r1, r2):
        """Every query returns the same answer each time."""
        scm = LineScmMap({1: r1, 2: r2})
        first = (scm.get_latest_changeset(), dict(scm.get_all_changesets()))
        for _ in range(3):
            assert scm.get_latest_changeset() is first[0]
            assert dict(scm.get_all_changesets()) == first[1]

    def test_concurrent_reads(self):
        """Unsynchronized readers from several threads see consistent data."""
        mapping = {i: make_changeset(f"c{i % 7}", i % 7) for i in range(1, 500)}
        scm = LineScmMap(mapping)
        errors = []

        def reader():
            for line, changeset in mapping.items():
                if scm.get_changeset_for_line(line) is not changeset:
                    errors.append(line)

        threads = [threading.Thread(target=reader) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []


class TestEquality:
    """Test that equal inputs build equal maps."""

    def test_equal_inputs_equal_instances(self, r1, r2):
        a = LineScmMap({1: r1, 2: r2})
        b = LineScmMap({2: r2, 1: r1})
        assert a == b
        assert a.get_latest_changeset() == b.get_latest_changeset()

    def test_different_content_not_equal(self, r1, r2):
        assert LineScmMap({1: r1}) != LineScmMap({1: r2})
        assert LineScmMap({1: r1}) != {1: r1}

    def test_repr_mentions_latest(self, r2):
        text = repr(LineScmMap({1: r2}))
        assert text.startswith("LineScmMap(latest_changeset=Changeset(")
        assert "'r2'" in text


class TestLinesChangedAfter:
    """Test the new-code query."""

    def test_strictly_after(self):
        scm = LineScmMap(
            {1: make_changeset("a", 0), 2: make_changeset("b", 10), 3: make_changeset("c", 20)}
        )
        cutoff = datetime(2020, 1, 11, tzinfo=timezone.utc)
        assert scm.lines_changed_after(cutoff) == [3]

    def test_naive_cutoff_is_utc(self):
        scm = LineScmMap({4: make_changeset("a", 1), 2: make_changeset("b", 1)})
        assert scm.lines_changed_after(datetime(2020, 1, 1)) == [2, 4]

    def test_empty_map(self):
        assert LineScmMap({}).lines_changed_after(datetime(2000, 1, 1)) == []


class TestSerialization:
    """Test to_dict/from_dict used by the CLI and cache."""

    def test_to_dict_shape(self, r1, r2):
        data = LineScmMap({2: r2, 1: r1}).to_dict()
        assert data["latest_changeset"]["revision"] == "r2"
        assert list(data["lines"]) == ["1", "2"]
        assert data["lines"]["1"] == {
            "revision": "r1",
            "author": "alice@example.com",
            "date": "2018-01-01T00:00:00+00:00",
        }

    def test_from_dict_rebuilds_equal_map(self, r1, r2):
        original = LineScmMap({1: r1, 7: r2})
        rebuilt = LineScmMap.from_dict(original.to_dict())
        assert rebuilt == original
        assert rebuilt.get_latest_changeset() == r2

    def test_empty_to_dict(self):
        assert LineScmMap({}).to_dict() == {"latest_changeset": None, "lines": {}}
