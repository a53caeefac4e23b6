"""Tests for action batching and transaction context manager."""

from deepstore import ReactiveStore, action, autorun, transaction


class TestAction:
    def test_batches_updates(self):
        s = ReactiveStore({"a": 0, "b": 0})
        log = []
        autorun(lambda: log.append((s.get("a"), s.get("b"))))
        assert log == [(0, 0)]

        @action
        def update_both():
            s.assign("a", 1)
            s.assign("b", 2)

        update_both()
        # Should see (1, 2) not intermediate (1, 0)
        assert log == [(0, 0), (1, 2)]

    def test_nested_actions(self):
        s = ReactiveStore({"n": 0})
        log = []
        autorun(lambda: log.append(s.get("n")))

        @action
        def outer():
            s.assign("n", 1)

            @action
            def inner():
                s.assign("n", 2)

            inner()
            s.assign("n", 3)

        outer()
        # Only fires after outermost action completes
        assert log == [0, 3]

    def test_preserves_return_value(self):
        @action
        def compute():
            return 42

        assert compute() == 42


class TestTransaction:
    def test_batches_across_stores(self):
        left = ReactiveStore({"v": 0})
        right = ReactiveStore({"v": 0})
        log = []
        autorun(lambda: log.append((left.get("v"), right.get("v"))))

        with transaction():
            left.assign("v", 10)
            right.assign("v", 20)

        assert log == [(0, 0), (10, 20)]

    def test_nested_transactions(self):
        s = ReactiveStore({"n": 0})
        log = []
        autorun(lambda: log.append(s.get("n")))

        with transaction():
            s.assign("n", 1)
            with transaction():
                s.assign("n", 2)
            s.assign("n", 3)

        assert log == [0, 3]
