import gc

from booking import store
from booking.store import trainer_lock


def test_same_trainer_shares_one_lock():
    first = store._lock_for(7)
    assert store._lock_for(7) is first
    assert store._lock_for(8) is not first


def test_lock_is_held_inside_the_block():
    with trainer_lock(3):
        assert store._lock_for(3).locked()
    assert not store._lock_for(3).locked()


def test_unused_locks_are_dropped():
    for trainer_id in range(1000, 1050):
        with trainer_lock(trainer_id):
            pass
    gc.collect()
    assert not any(1000 <= key < 1050 for key in store._trainer_locks.keys())
