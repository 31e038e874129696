"""
Tests for matmul/matvec and the BLAS operand preparation.
"""

import unittest

import numpy as np
import stensor as st
from stensor.blas import prepare_matrix, prepare_vector

F64 = np.dtype(np.float64)


class TestMatmul(unittest.TestCase):

    def test_matmul_contiguous(self):
        t1 = st.tensor([[1.0, 2.0], [3.0, 4.0]])
        t2 = st.tensor([[5.0, 7.0], [6.0, 8.0]])
        expected = np.array([[1.0, 2.0], [3.0, 4.0]]) @ np.array([[5.0, 7.0], [6.0, 8.0]])
        for result in (st.matmul(t1, t2), t1.matmul(t2), t1 @ t2):
            np.testing.assert_array_almost_equal(result.numpy(), expected)
            self.assertEqual(result.dtype, np.float32)
            self.assertIs(result.contiguity(), st.Contiguity.ROW_MAJOR)
            self.assertFalse(result.shares_storage(t1))

    def test_matmul_rectangular(self):
        a = st.tensor(np.arange(6.0).reshape(2, 3))
        b = st.tensor(np.arange(12.0).reshape(3, 4))
        c = st.matmul(a, b)
        self.assertEqual(c.shape, (2, 4))
        np.testing.assert_array_almost_equal(c.numpy(), a.numpy() @ b.numpy())

    def test_matmul_transposed_operands(self):
        a = st.tensor(np.arange(6.0).reshape(3, 2)).T
        b = st.tensor(np.arange(12.0).reshape(4, 3)).T
        self.assertIs(a.contiguity(), st.Contiguity.COLUMN_MAJOR)
        c = a @ b
        np.testing.assert_array_almost_equal(c.numpy(), a.numpy() @ b.numpy())

    def test_non_contiguous_operands_match_clones(self):
        rng = np.random.default_rng(3)
        base_a = st.rand_uniform((6, 8), -1.0, 1.0, rng=rng, dtype="float64")
        base_b = st.rand_uniform((7, 9), -1.0, 1.0, rng=rng, dtype="float64")
        a = base_a.T.T[1:5, ::2]
        b = base_b.T[1:8:2, 1:4]
        self.assertIs(a.contiguity(), st.Contiguity.NONE)
        self.assertIs(b.contiguity(), st.Contiguity.NONE)

        result = st.matmul(a, b)
        expected = st.matmul(a.clone(), b.clone())
        np.testing.assert_array_almost_equal(result.numpy(), expected.numpy())
        np.testing.assert_array_almost_equal(result.numpy(), a.numpy() @ b.numpy())

    def test_mixed_precision_promotes(self):
        a = st.ones(2, 2, dtype="float32")
        b = st.ones(2, 2, dtype="float64")
        c = st.matmul(a, b)
        self.assertEqual(c.dtype, np.float64)
        np.testing.assert_array_equal(c.numpy(), np.full((2, 2), 2.0))

    def test_complex(self):
        a_np = np.array([[1 + 1j, 2], [0, 1j]])
        b_np = np.array([[1, 1j], [2 - 1j, 0]])
        c = st.matmul(st.tensor(a_np), st.tensor(b_np).T.T)
        self.assertEqual(c.dtype, np.complex128)
        np.testing.assert_array_almost_equal(c.numpy(), a_np @ b_np)

    def test_empty_inner_extent(self):
        c = st.matmul(st.zeros(2, 0), st.zeros(0, 3))
        self.assertEqual(c.shape, (2, 3))
        np.testing.assert_array_equal(c.numpy(), np.zeros((2, 3)))
        self.assertEqual(st.matmul(st.zeros(0, 2), st.zeros(2, 3)).shape, (0, 3))

    def test_shape_mismatch(self):
        with self.assertRaises(st.ShapeMismatch):
            st.matmul(st.zeros(2, 3), st.zeros(2, 3))
        with self.assertRaises(st.ShapeMismatch):
            st.matmul(st.zeros(3), st.zeros(3, 2))
        with self.assertRaises(st.ShapeMismatch):
            st.matmul(st.zeros(2, 2, 2), st.zeros(2, 2))

    def test_integer_operands_are_unsupported(self):
        a = st.arange(4).reshape(2, 2)
        with self.assertRaises(st.UnsupportedElementType):
            st.matmul(a, a)
        with self.assertRaises(st.UnsupportedElementType):
            st.matmul(a.astype("float32"), a)
        with self.assertRaises(TypeError):
            st.matvec(a, st.arange(2))
        # widening first is the supported route
        widened = a.astype("float64")
        np.testing.assert_array_equal(st.matmul(widened, widened).numpy(), [[2.0, 3.0], [6.0, 11.0]])

    def test_half_precision_is_unsupported(self):
        a = st.zeros(2, 2, dtype="float16")
        with self.assertRaises(st.UnsupportedElementType):
            st.matmul(a, a)

    def test_out_writes_into_caller_view(self):
        a = st.tensor(np.arange(4.0).reshape(2, 2))
        b = st.tensor([[1.0, 0.0], [0.0, 1.0]], dtype="float64")
        target = st.zeros(4, 4, dtype="float64")
        out = target[::2, 1:3]
        result = st.matmul(a, b, out=out)
        self.assertIs(result, out)
        self.assertTrue(result.shares_storage(target))
        np.testing.assert_array_equal(target.numpy()[::2, 1:3], [[0.0, 1.0], [2.0, 3.0]])
        self.assertEqual(target.numpy()[1].tolist(), [0.0, 0.0, 0.0, 0.0])
        with self.assertRaises(st.ShapeMismatch):
            st.matmul(a, b, out=st.zeros(3, 2))

    def test_materialization_is_logged(self):
        a = st.tensor(np.arange(12.0).reshape(3, 4))[:, ::2]
        b = st.ones(2, 2, dtype="float64")
        with self.assertLogs("stensor.blas", level="DEBUG") as logs:
            st.matmul(a, b)
        self.assertTrue(any("Materializing a" in line for line in logs.output))


class TestMatvec(unittest.TestCase):

    def test_matvec(self):
        a = st.tensor(np.arange(6.0).reshape(2, 3))
        v = st.tensor([1.0, 0.0, 2.0], dtype="float64")
        y = st.matvec(a, v)
        self.assertEqual(y.shape, (2,))
        np.testing.assert_array_almost_equal(y.numpy(), [4.0, 13.0])
        np.testing.assert_array_almost_equal((a @ v).numpy(), [4.0, 13.0])

    def test_matvec_strided_operands(self):
        a = st.tensor(np.arange(6.0).reshape(2, 3)).T
        v = st.tensor(np.arange(8.0))[1:5:2]
        np.testing.assert_array_almost_equal(st.matvec(a, v).numpy(), [9.0, 13.0, 17.0])

    def test_matvec_reversed_vector(self):
        a = st.tensor(np.arange(6.0).reshape(2, 3))
        v = st.tensor(np.arange(3.0))[::-1]
        np.testing.assert_array_almost_equal(st.matvec(a, v).numpy(), [1.0, 10.0])

    def test_matvec_shape_mismatch(self):
        with self.assertRaises(st.ShapeMismatch):
            st.matvec(st.zeros(2, 3), st.zeros(2))
        with self.assertRaises(st.ShapeMismatch):
            st.matvec(st.zeros(3), st.zeros(3))

    def test_matvec_empty(self):
        self.assertEqual(st.matvec(st.zeros(3, 0), st.zeros(0)).tolist(), [0.0, 0.0, 0.0])


class TestOperands(unittest.TestCase):

    def test_column_major_operand_is_passed_directly(self):
        a = st.tensor(np.arange(6.0).reshape(2, 3)).T
        op = prepare_matrix(a, F64)
        self.assertEqual(op.trans, 0)
        self.assertFalse(op.materialized)
        self.assertEqual(op.ld, 3)
        self.assertEqual(op.pointer, a.storage.raw_pointer())
        self.assertTrue(np.shares_memory(op.array, a.storage.data))
        np.testing.assert_array_equal(op.array, a.numpy())

    def test_row_major_operand_is_passed_transposed(self):
        a = st.tensor(np.arange(12.0).reshape(3, 4))[1:]
        op = prepare_matrix(a, F64)
        self.assertEqual(op.trans, 1)
        self.assertFalse(op.materialized)
        self.assertEqual(op.ld, 4)
        self.assertEqual(op.pointer, a.storage.raw_pointer() + 4 * a.storage.itemsize)
        self.assertEqual(op.array.shape, (4, 2))
        self.assertTrue(op.array.flags.f_contiguous)
        np.testing.assert_array_equal(op.array.T, a.numpy())

    def test_non_contiguous_operand_is_materialized(self):
        source = st.tensor(np.arange(12.0).reshape(3, 4))
        a = source[:, ::2]
        op = prepare_matrix(a, F64)
        self.assertTrue(op.materialized)
        self.assertEqual(op.trans, 1)
        self.assertFalse(np.shares_memory(op.array, source.storage.data))
        np.testing.assert_array_equal(op.array.T, a.numpy())
        np.testing.assert_array_equal(source.numpy(), np.arange(12.0).reshape(3, 4))

    def test_pointer_and_ld_describe_the_array(self):
        source = st.tensor(np.arange(20.0).reshape(4, 5))
        for a in [source[1:3], source.T, source.T[1:], source[:, ::2], source[2:3]]:
            with self.subTest(shape=a.shape, strides=a.strides):
                op = prepare_matrix(a, F64)
                self.assertEqual(op.pointer, op.array.ctypes.data)
                if op.array.shape[1] > 1:
                    self.assertEqual(op.ld * op.array.itemsize, op.array.strides[1])
        v = source.T[2]
        x = prepare_vector(v, F64)
        self.assertEqual(x.pointer, x.array.ctypes.data + x.offset * x.array.itemsize)

    def test_cast_operand_is_materialized(self):
        a = st.ones(2, 2, dtype="float32")
        op = prepare_matrix(a, F64)
        self.assertTrue(op.materialized)
        self.assertEqual(op.array.dtype, F64)

    def test_positive_stride_vector_uses_increment(self):
        v = st.tensor(np.arange(10.0))[1::3]
        x = prepare_vector(v, F64)
        self.assertEqual(x.inc, 3)
        self.assertEqual(x.offset, 1)
        self.assertFalse(x.materialized)
        self.assertIs(x.array, v.storage.data)

    def test_reversed_vector_is_materialized(self):
        v = st.tensor(np.arange(10.0))[::-1]
        x = prepare_vector(v, F64)
        self.assertTrue(x.materialized)
        self.assertEqual(x.inc, 1)
        self.assertEqual(x.array.tolist(), list(np.arange(9.0, -1.0, -1.0)))


if __name__ == '__main__':
    unittest.main()
