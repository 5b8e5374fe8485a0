# tests/test_guard.py
"""
Tests for buffer ownership: HeapBuffer, OwnershipGuard and host array lifetimes.
"""
import copy
import gc
import weakref

import pytest
import numpy as np

from vecbridge import Vector, allocation_stats, elements, to_host
from vecbridge.lowlevel import HeapBuffer, OwnershipGuard

def test_heap_buffer_layout():
    buf = HeapBuffer.allocate(np.int32, 4)
    assert len(buf) == 4
    assert buf.itemsize == 4
    assert buf.nbytes == 16
    assert buf.view().dtype == np.int32
    np.testing.assert_array_equal(buf.view(), np.zeros(4, dtype=np.int32))

    boxed = HeapBuffer.allocate(object, 2)
    assert boxed.view().dtype == object
    assert boxed.view().tolist() == [None, None]

def test_heap_buffer_rejects_bad_requests():
    with pytest.raises(ValueError, match="non-negative"):
        HeapBuffer.allocate(np.int8, -1)
    with pytest.raises(TypeError, match="No native layout"):
        HeapBuffer.allocate(np.dtype("U5"), 1)

def test_freed_buffer_refuses_access():
    buf = HeapBuffer.allocate(np.float64, 1)
    buf.free()
    assert buf.freed
    with pytest.raises(ValueError, match="freed HeapBuffer"):
        _ = buf.address

def test_release_frees_exactly_once():
    guard = OwnershipGuard(HeapBuffer.allocate(np.uint16, 8))
    buffer = guard.buffer
    before = allocation_stats()

    guard.release()
    guard.release()

    assert guard.released
    assert buffer.freed
    assert allocation_stats().freed == before.freed + 1

def test_guard_cannot_be_copied():
    guard = OwnershipGuard(HeapBuffer.allocate(np.int64, 1))
    with pytest.raises(TypeError, match="cannot be copied"):
        copy.copy(guard)
    with pytest.raises(TypeError, match="cannot be copied"):
        copy.deepcopy(guard)

def test_guard_refuses_freed_buffer():
    buf = HeapBuffer.allocate(np.int64, 1)
    buf.free()
    with pytest.raises(ValueError):
        OwnershipGuard(buf)

def test_guard_is_released_when_last_array_is_dropped():
    arr = to_host(Vector(elements.float64, [1.0, 2.0, 3.0]), transfer=True)
    guard_ref = weakref.ref(arr.base.guard)
    buffer = arr.base.guard.buffer

    view = arr[::2]
    del arr
    gc.collect()

    # A view still reaches the buffer through the same guard
    assert guard_ref() is not None
    assert not buffer.freed
    np.testing.assert_array_equal(view, [1.0, 3.0])

    del view
    gc.collect()
    assert guard_ref() is None
    assert buffer.freed

def test_by_reference_export_has_no_guard(int32_vector: Vector):
    arr = to_host(int32_vector)
    assert arr.base.guard is None
    del int32_vector
    gc.collect()
    # The array keeps the vector's buffer alive on its own
    np.testing.assert_array_equal(arr, np.array([1, 2, 3], dtype=np.int32))

LARGE = 4_000_000

def _large_int64_vector() -> Vector:
    buffer = HeapBuffer.allocate(np.int64, LARGE)
    buffer.view()[:] = np.arange(LARGE, dtype=np.int64)
    return Vector.from_buffer(elements.int64, buffer)

def test_shared_view_outlives_a_later_transfer():
    vec = _large_int64_vector()
    shared = to_host(vec)
    moved = to_host(vec, transfer=True)
    buffer = moved.base.guard.buffer

    del moved
    gc.collect()
    # Scribble over freshly allocated memory of the same size
    np.ones(LARGE, dtype=np.int64)

    assert buffer.freed
    assert shared[0] == 0
    assert shared[-1] == LARGE - 1

def test_early_release_keeps_arrays_readable():
    arr = to_host(_large_int64_vector(), transfer=True)
    guard = arr.base.guard

    guard.release()
    gc.collect()
    np.ones(LARGE, dtype=np.int64)

    assert guard.released
    assert guard.buffer.freed
    assert arr[-1] == LARGE - 1
    np.testing.assert_array_equal(arr[:3], [0, 1, 2])
