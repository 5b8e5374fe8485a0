# tests/test_export.py
"""
Tests for exporting vectors to proxies and NumPy arrays.
"""
import gc

import pytest
import numpy as np

from vecbridge import (
    DTypeTag,
    Vector,
    allocation_stats,
    elements,
    make_proxy_from_vector,
    to_host,
    vector_of,
)
from vecbridge.exceptions import ElementConversionError
from vecbridge._internal.numpy_utils import BOXED_REFERENCE_SIZE, data_address

def test_int32_proxy_shape(int32_vector: Vector):
    """A numeric vector is described as rank 1 with element-sized strides."""
    proxy = make_proxy_from_vector(int32_vector)

    assert proxy.rank == 1
    assert proxy.dtype_tag == DTypeTag.INT32
    assert proxy.extents == (3,)
    assert proxy.strides == (4,)
    assert proxy.is_const is False
    assert proxy.guard is None
    assert proxy.data == int32_vector.buffer.address

def test_export_by_reference_shares_memory(int32_vector: Vector):
    arr = to_host(int32_vector)

    assert arr.dtype == np.int32
    assert data_address(arr) == int32_vector.buffer.address
    np.testing.assert_array_equal(arr, np.array([1, 2, 3], dtype=np.int32))

    # Writes go both ways
    arr[0] = 42
    assert int32_vector[0] == 42
    int32_vector[2] = -7
    assert arr[2] == -7

def test_export_with_transfer_moves_the_buffer():
    """Transferring ownership allocates nothing and copies nothing."""
    vec = Vector(elements.float64, [1.5, 2.5, 3.5])
    address = vec.buffer.address

    before = allocation_stats()
    proxy = make_proxy_from_vector(vec, transfer=True)
    after = allocation_stats()

    assert after.allocated == before.allocated
    assert proxy.guard is not None
    assert proxy.data == proxy.guard.address == address
    assert len(vec) == 0
    assert vec.buffer is None

    arr = proxy.to_host()
    assert data_address(arr) == address
    np.testing.assert_array_equal(arr, [1.5, 2.5, 3.5])

def test_transferred_array_keeps_working_after_vector_is_gone():
    vec = Vector(elements.int16, [5, 6, 7])
    arr = to_host(vec, transfer=True)
    del vec
    np.testing.assert_array_equal(arr, np.array([5, 6, 7], dtype=np.int16))
    assert arr.base.guard is not None

def test_readonly_vector_exports_readonly_array():
    vec = Vector(elements.uint8, [1, 2], readonly=True)
    proxy = make_proxy_from_vector(vec)
    assert proxy.is_const

    arr = proxy.to_host()
    assert not arr.flags.writeable
    with pytest.raises(ValueError):
        arr[0] = 9

def test_empty_numeric_vector():
    arr = to_host(Vector(elements.float32))
    assert arr.shape == (0,)
    assert arr.dtype == np.float32

def test_moved_from_vector_exports_empty():
    vec = Vector(elements.int64, [1, 2])
    to_host(vec, transfer=True)

    arr = to_host(vec)
    assert arr.shape == (0,)
    assert arr.dtype == np.int64

def test_opaque_export_boxes_each_element(str_vector: Vector):
    proxy = make_proxy_from_vector(str_vector)

    assert proxy.dtype_tag == DTypeTag.OBJECT
    assert proxy.extents == (2,)
    assert proxy.strides == (BOXED_REFERENCE_SIZE,)
    assert proxy.guard is not None

    arr = proxy.to_host()
    assert arr.dtype == object
    assert arr.tolist() == ["a", "b"]
    # By-reference export leaves the source untouched
    assert str_vector.tolist() == ["a", "b"]

def test_opaque_export_with_transfer_empties_source(str_vector: Vector):
    arr = to_host(str_vector, transfer=True)
    assert arr.tolist() == ["a", "b"]
    assert len(str_vector) == 0

def test_opaque_export_preserves_order():
    values = [f"item-{i}" for i in range(50)]
    arr = to_host(Vector(elements.str_, values))
    assert arr.tolist() == values

def test_opaque_export_failure_is_all_or_nothing(fragile):
    vec = Vector(fragile, ["ok", "fine", "bad", "never"])
    before = allocation_stats()

    with pytest.raises(ElementConversionError) as excinfo:
        to_host(vec, transfer=True)

    assert excinfo.value.index == (2,)
    assert excinfo.value.value == "bad"
    assert "at index [2]" in str(excinfo.value)
    # The source keeps its elements and the boxed buffer was freed
    assert vec.tolist() == ["ok", "fine", "bad", "never"]
    after = allocation_stats()
    assert after.live == before.live

def test_nested_vectors_export_as_arrays_of_arrays():
    inner = vector_of(elements.int32)
    vec = Vector(inner, [Vector(elements.int32, [1, 2]), Vector(elements.int32, [3])])

    arr = to_host(vec)

    assert arr.dtype == object
    assert arr.shape == (2,)
    np.testing.assert_array_equal(arr[0], np.array([1, 2], dtype=np.int32))
    np.testing.assert_array_equal(arr[1], np.array([3], dtype=np.int32))

def test_boxed_object_vector_exports_without_boxing_again():
    payload = {"k": 1}
    vec = Vector(elements.object_, [payload, None])
    proxy = make_proxy_from_vector(vec)

    assert proxy.dtype_tag == DTypeTag.OBJECT
    assert proxy.data == vec.buffer.address
    arr = proxy.to_host()
    assert arr[0] is payload
    assert arr[1] is None

def test_nested_plain_sequences_are_handed_over():
    arr = to_host(Vector(vector_of(elements.int32), [[1, 2], [3]]))

    assert arr[0].base.guard is not None
    assert arr[1].base.guard is not None
    np.testing.assert_array_equal(arr[1], np.array([3], dtype=np.int32))

def test_nested_vectors_are_shared_and_survive_their_transfer():
    inner = Vector(elements.int32, [1, 2])
    arr = to_host(Vector(vector_of(elements.int32), [inner]))
    assert arr[0].base.guard is None

    moved = to_host(inner, transfer=True)
    del moved
    gc.collect()

    np.testing.assert_array_equal(arr[0], np.array([1, 2], dtype=np.int32))
