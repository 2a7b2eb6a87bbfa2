"""Tests for batched AUR queries and warning classification"""

import threading
import time

import pytest

from yurt.core.aur import AURError, AURPackage
from yurt.core.multierror import MultiError
from yurt.core.query import AURWarnings, aur_info, chunk_names, classify_warnings


def fake_fetch(known=None, fail_on=None, delay=0.0):
    """Return a fetch function answering from `known` and recording calls.

    Chunks containing `fail_on` raise AURError.
    """
    calls = []
    lock = threading.Lock()

    def fetch(names):
        with lock:
            calls.append(list(names))
        if delay:
            time.sleep(delay)
        if fail_on is not None and fail_on in names:
            raise AURError(f"request for {fail_on} failed")
        return [AURPackage(name=n) for n in names if known is None or n in known]

    fetch.calls = calls
    return fetch


class TestChunkNames:
    """Tests for splitting name lists."""

    def test_uneven_split(self):
        assert chunk_names(['a', 'b', 'c', 'd', 'e'], 2) == [['a', 'b'], ['c', 'd'], ['e']]

    def test_exact_split(self):
        assert chunk_names(['a', 'b', 'c', 'd'], 2) == [['a', 'b'], ['c', 'd']]

    def test_single_chunk(self):
        assert chunk_names(['a', 'b'], 150) == [['a', 'b']]

    def test_empty(self):
        assert chunk_names([], 150) == []

    @pytest.mark.parametrize('max_batch', [0, -1])
    def test_invalid_batch(self, max_batch):
        with pytest.raises(ValueError):
            chunk_names(['a'], max_batch)


class TestAurInfo:
    """Tests for concurrent metadata fetching."""

    def test_empty_input_makes_no_request(self):
        fetch = fake_fetch()
        records, err = aur_info([], fetch, 150)
        assert records == []
        assert err is None
        assert fetch.calls == []

    def test_one_request_per_chunk(self):
        fetch = fake_fetch()
        records, err = aur_info(['a', 'b', 'c', 'd', 'e'], fetch, 2)
        assert err is None
        assert sorted(len(c) for c in fetch.calls) == [1, 2, 2]
        assert sorted(r.name for r in records) == ['a', 'b', 'c', 'd', 'e']

    def test_unknown_names_absent(self):
        fetch = fake_fetch(known={'a', 'c'})
        records, err = aur_info(['a', 'b', 'c'], fetch, 150)
        assert err is None
        assert sorted(r.name for r in records) == ['a', 'c']

    def test_partial_failure(self):
        # Second of three chunks fails, the others still arrive
        fetch = fake_fetch(fail_on='c')
        records, err = aur_info(['a', 'b', 'c', 'd', 'e'], fetch, 2)

        assert sorted(r.name for r in records) == ['a', 'b', 'e']
        assert isinstance(err, MultiError)
        assert len(err) == 1
        assert 'request for c failed' in str(err)
        assert len(fetch.calls) == 3

    def test_all_chunks_fail(self):
        def fetch(names):
            raise AURError("connection refused")

        records, err = aur_info(['a', 'b', 'c'], fetch, 1)
        assert records == []
        assert len(err) == 3
        assert str(err).count("connection refused") == 3

    def test_requests_run_concurrently(self):
        active = 0
        peak = 0
        lock = threading.Lock()

        def fetch(names):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.05)
            with lock:
                active -= 1
            return [AURPackage(name=n) for n in names]

        records, err = aur_info([str(i) for i in range(8)], fetch, 2)
        assert err is None
        assert len(records) == 8
        assert peak > 1

    def test_max_workers_bounds_concurrency(self):
        active = 0
        peak = 0
        lock = threading.Lock()

        def fetch(names):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return [AURPackage(name=n) for n in names]

        records, err = aur_info([str(i) for i in range(10)], fetch, 1, max_workers=2)
        assert err is None
        assert len(records) == 10
        assert peak <= 2

    def test_invalid_batch(self):
        with pytest.raises(ValueError):
            aur_info(['a'], fake_fetch(), 0)


class TestClassifyWarnings:
    """Tests for missing / orphaned / out-of-date classification."""

    def test_classification(self):
        records = [
            AURPackage(name='a', maintainer=''),
            AURPackage(name='b', maintainer='x', out_of_date=1700000000),
        ]
        warnings = classify_warnings(['a', 'b', 'c'], records)

        assert warnings.orphans == {'a'}
        assert warnings.out_of_date == {'b'}
        assert warnings.missing == {'c'}
        assert not warnings.empty

    def test_orphaned_and_out_of_date(self):
        records = [AURPackage(name='a', out_of_date=1)]
        warnings = classify_warnings(['a'], records)
        assert warnings.orphans == {'a'}
        assert warnings.out_of_date == {'a'}

    def test_healthy_package(self):
        warnings = classify_warnings(['a'], [AURPackage(name='a', maintainer='me')])
        assert warnings.empty

    def test_ignore_suppresses_all_warnings(self):
        records = [AURPackage(name='a', out_of_date=1)]
        warnings = classify_warnings(['a', 'c'], records, ignore=['a', 'c'])
        assert warnings.empty
        assert warnings.ignore == {'a', 'c'}

    def test_ignore_only_suppresses_named_packages(self):
        records = [
            AURPackage(name='a', maintainer=''),
            AURPackage(name='b', maintainer='bob', out_of_date=12345),
        ]
        warnings = classify_warnings(['a', 'b', 'c'], records, ignore={'c'})

        assert warnings.missing == set()
        assert warnings.orphans == {'a'}
        assert warnings.out_of_date == {'b'}

    def test_unrequested_records_ignored(self):
        records = [AURPackage(name='other')]
        warnings = classify_warnings(['a'], records)
        assert warnings.missing == {'a'}
        assert warnings.orphans == set()

    def test_sorted_for_keeps_request_order(self):
        warnings = AURWarnings(missing={'z', 'a', 'm'})
        assert warnings.sorted_for(['m', 'z', 'a', 'm'], warnings.missing) == ['m', 'z', 'a']


class TestMultiError:
    """Tests for error aggregation."""

    def test_empty_returns_none(self):
        assert MultiError().return_error() is None

    def test_none_not_added(self):
        err = MultiError()
        err.add(None)
        assert len(err) == 0
        assert not err

    def test_messages_joined(self):
        err = MultiError()
        err.add(AURError("first"))
        err.add(AURError("second"))
        assert err.return_error() is err
        assert str(err) == "first\nsecond"

    def test_concurrent_add(self):
        err = MultiError()

        def worker():
            for _ in range(100):
                err.add(ValueError("x"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(err) == 800
