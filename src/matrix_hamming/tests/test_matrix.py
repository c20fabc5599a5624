import math
import unittest

import numpy as np

from matrix_hamming.errors import ConfigurationError
from matrix_hamming.matrix import (
    BlockMatrix,
    Cell,
    CellKind,
    accumulate_parity,
    classify,
    layout_for,
)

DIMENSIONS = [2, 4, 8, 16, 32, 64, 128, 256]

M = CellKind.MetaParity
P = CellKind.Parity
D = CellKind.Data


class TestClassify(unittest.TestCase):
    def test_4x4(self):
        expected = [
            [M, P, P, D],
            [P, D, D, D],
            [P, D, D, D],
            [D, D, D, D],
        ]
        actual = [[classify(i, j, 4) for j in range(4)] for i in range(4)]
        self.assertEqual(actual, expected)

    def test_2x2(self):
        self.assertEqual(classify(0, 0, 2), M)
        self.assertEqual(classify(0, 1, 2), P)
        self.assertEqual(classify(1, 0, 2), P)
        self.assertEqual(classify(1, 1, 2), D)

    def test_non_power_of_two_row(self):
        self.assertEqual(classify(0, 3, 8), D)
        self.assertEqual(classify(0, 4, 8), P)
        self.assertEqual(classify(6, 0, 8), D)
        self.assertEqual(classify(4, 0, 8), P)

    def test_out_of_range(self):
        with self.assertRaises(IndexError):
            _ = classify(4, 0, 4)
        with self.assertRaises(IndexError):
            _ = classify(0, -1, 4)


class TestLayout(unittest.TestCase):
    def test_partition(self):
        for d in DIMENSIONS:
            layout = layout_for(d)
            kinds = list(layout.kinds)
            log = int(math.log2(d))

            self.assertEqual(len(kinds), d * d)
            self.assertEqual(kinds.count(M), 1, d)
            self.assertEqual(kinds.count(P), 2 * log, d)
            self.assertEqual(kinds.count(D), d * d - 2 * log - 1, d)

    def test_payload_matches_data_cells(self):
        for d in DIMENSIONS:
            layout = layout_for(d)
            self.assertEqual(layout.payload_bits_count, layout.data_order.size, d)
            self.assertEqual(
                layout.payload_bits_count + layout.redundant_bits_count, d * d
            )

    def test_parity_at_powers_of_two(self):
        for d in DIMENSIONS:
            layout = layout_for(d)
            parity = {i for i, kind in enumerate(layout.kinds) if kind == P}
            expected = {1 << k for k in range(layout.parity_bits_count)}
            self.assertEqual(parity, expected, d)

    def test_wire_parity_order(self):
        self.assertEqual(layout_for(2).wire_parity_order.tolist(), [0, 1, 2])
        self.assertEqual(layout_for(4).wire_parity_order.tolist(), [0, 1, 2, 4, 8])
        self.assertEqual(
            layout_for(8).wire_parity_order.tolist(), [0, 1, 2, 4, 8, 16, 32]
        )

    def test_data_order(self):
        self.assertEqual(
            layout_for(4).data_order.tolist(),
            [3, 5, 6, 7, 9, 10, 11, 12, 13, 14, 15],
        )
        self.assertEqual(layout_for(2).data_order.tolist(), [3])

    def test_counts(self):
        layout = layout_for(4)
        self.assertEqual(layout.capacity, 16)
        self.assertEqual(layout.redundant_bits_count, 5)
        self.assertEqual(layout.payload_bits_count, 11)
        self.assertAlmostEqual(layout.redundancy(), 31.25)

        self.assertEqual(layout_for(8).payload_bits_count, 57)

    def test_invalid_dimension(self):
        for d in [0, 1, 3, 6, 100, 512, -4]:
            with self.assertRaises(ConfigurationError):
                _ = layout_for(d)


class TestBlockMatrix(unittest.TestCase):
    def test_positions(self):
        matrix = BlockMatrix(4)
        self.assertEqual(matrix.linear_index(2, 3), 11)
        self.assertEqual(matrix.position(11), (2, 3))

        matrix[2, 3] = Cell.One
        self.assertEqual(matrix.get(11), Cell.One)
        self.assertEqual(matrix[2, 3], Cell.One)

        with self.assertRaises(IndexError):
            _ = matrix[4, 0]
        with self.assertRaises(IndexError):
            _ = matrix.position(16)

    def test_flip(self):
        matrix = BlockMatrix(4)
        matrix.flip(5)
        self.assertEqual(matrix.get(5), Cell.One)
        matrix.flip(5)
        self.assertEqual(matrix.get(5), Cell.Zero)

        matrix.set(6, Cell.Padding)
        with self.assertRaises(ValueError):
            matrix.flip(6)

    def test_str(self):
        matrix = BlockMatrix(2)
        matrix.set(1, Cell.One)
        matrix.set(3, Cell.Padding)
        self.assertEqual(str(matrix), "0 1\n0 .")

    def test_accumulate_parity(self):
        matrix = BlockMatrix(4)
        self.assertEqual(accumulate_parity(matrix), (0, 0))

        # The meta parity cell and padding don't count.
        matrix.set(0, Cell.One)
        matrix.set(13, Cell.Padding)
        matrix.set(5, Cell.One)
        matrix.set(12, Cell.One)
        self.assertEqual(accumulate_parity(matrix), (5 ^ 12, 0))

        matrix.set(3, Cell.One)
        self.assertEqual(accumulate_parity(matrix), (5 ^ 12 ^ 3, 1))

    def test_ones(self):
        matrix = BlockMatrix(4)
        matrix.cells[:] = np.array([Cell.Padding] * 16, dtype=np.uint8)
        matrix.set(7, Cell.One)
        self.assertEqual(matrix.ones().tolist(), [7])


if __name__ == "__main__":
    unittest.main()
