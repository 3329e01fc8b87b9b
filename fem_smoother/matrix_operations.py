# -*- coding: utf-8 -*-
"""
fem_smoother/matrix_operations.py

密行列 -> CSC (Compressed Sparse Column) 変換
"""

from typing import Tuple

import numpy as np
from scipy.sparse import csc_matrix


def dense_to_csc_matrix(dense: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Convert a dense matrix to CSC arrays.

    Values are stored column-major, row indices ascend within each column and
    explicit zeros are dropped.

    Args:
        dense: 2D array of shape (rows, cols)

    Returns:
        (data, indices, indptr) with len(indptr) == cols + 1
    """
    dense = np.asarray(dense, dtype=float)
    if dense.ndim != 2:
        raise ValueError(f"Expected a 2D matrix, got shape {dense.shape}")

    sparse = csc_matrix(dense)
    sparse.eliminate_zeros()
    sparse.sort_indices()
    return sparse.data.copy(), sparse.indices.copy(), sparse.indptr.copy()


def csc_from_arrays(
    data: np.ndarray,
    indices: np.ndarray,
    indptr: np.ndarray,
    shape: Tuple[int, int]
) -> csc_matrix:
    """Rebuild a csc_matrix with an explicit shape (trailing empty rows kept)"""
    if len(indptr) != shape[1] + 1:
        raise ValueError(
            f"indptr length {len(indptr)} does not match {shape[1]} columns")
    return csc_matrix((data, indices, indptr), shape=shape)
