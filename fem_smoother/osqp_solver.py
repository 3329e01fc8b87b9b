# -*- coding: utf-8 -*-
"""
fem_smoother/osqp_solver.py

OSQPソルバーアダプタ

- OsqpSession: OSQPワークスペースのスコープ管理 (with文で確実に解放)
- solve_qp: P, q, A, l, u を受け取り QPSolveInfo と主解を返す
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import osqp
from osqp.interface import OSQPException
from scipy.sparse import csc_matrix

from .parameters import OsqpSettings

# Debug output flag
ENABLE_DEBUG_OUTPUT = False

STATUS_SOLVED = 'solved'
STATUS_SOLVED_INACCURATE = 'solved inaccurate'
STATUS_SETUP_FAILED = 'setup failed'


@dataclass
class QPSolveInfo:
    status: str
    iterations: int = 0
    solve_time: float = 0.0  # [s]
    obj_val: float = float('nan')

    def is_accepted(self, accept_inaccurate: bool = True) -> bool:
        if self.status == STATUS_SOLVED:
            return True
        return accept_inaccurate and self.status == STATUS_SOLVED_INACCURATE


class OsqpSession:
    """
    Scoped owner of one OSQP workspace.

    The workspace is created on __enter__ and the handle is dropped on
    __exit__, whether the block finished normally or raised.
    """

    def __init__(self, settings: Optional[OsqpSettings] = None):
        self.settings = settings if settings is not None else OsqpSettings()
        self._solver: Optional[osqp.OSQP] = None

    @property
    def is_open(self) -> bool:
        return self._solver is not None

    def __enter__(self) -> 'OsqpSession':
        self._solver = osqp.OSQP()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._solver = None
        return False

    def setup(self, P: csc_matrix, q: np.ndarray, A: csc_matrix,
              lower: np.ndarray, upper: np.ndarray):
        if self._solver is None:
            raise RuntimeError("OsqpSession.setup() called outside of a with block")
        self._solver.setup(P, q, A, lower, upper, **self.settings.to_solver_kwargs())

    def solve(self) -> Tuple[QPSolveInfo, Optional[np.ndarray]]:
        if self._solver is None:
            raise RuntimeError("OsqpSession.solve() called outside of a with block")
        # 非収束・実行不能はステータスで返す (例外にしない)
        result = self._solver.solve(raise_error=False)
        info = QPSolveInfo(
            status=str(result.info.status),
            iterations=int(result.info.iter),
            solve_time=float(result.info.solve_time),
            obj_val=float(result.info.obj_val),
        )
        # 非収束時の result.x は None 埋めになり得るため変換しない
        x = None
        if info.is_accepted(accept_inaccurate=True) and result.x is not None:
            x = np.array(result.x, dtype=float)
        return info, x


def solve_qp(
    P: csc_matrix,
    q: np.ndarray,
    A: csc_matrix,
    lower: np.ndarray,
    upper: np.ndarray,
    num_variable: int,
    num_constraint: int,
    settings: Optional[OsqpSettings] = None
) -> Tuple[QPSolveInfo, Optional[np.ndarray]]:
    """
    Solve  min 1/2 x'Px + q'x  s.t.  lower <= Ax <= upper  with OSQP.

    Args:
        P: (num_variable, num_variable) PSD cost matrix
        q: linear term, length num_variable
        A: (num_constraint, num_variable) constraint matrix
        lower, upper: row bounds, length num_constraint
        num_variable: expected number of variables
        num_constraint: expected number of constraint rows
        settings: OSQP settings

    Returns:
        (info, x). x is None unless info.is_accepted(); it is the primal
        solution of length num_variable otherwise.
    """
    if P.shape != (num_variable, num_variable):
        raise ValueError(f"P shape {P.shape} != ({num_variable}, {num_variable})")
    if A.shape != (num_constraint, num_variable):
        raise ValueError(f"A shape {A.shape} != ({num_constraint}, {num_variable})")
    if len(q) != num_variable:
        raise ValueError(f"q length {len(q)} != {num_variable}")
    if len(lower) != num_constraint or len(upper) != num_constraint:
        raise ValueError(
            f"bound lengths ({len(lower)}, {len(upper)}) != {num_constraint}")

    settings = settings if settings is not None else OsqpSettings()

    with OsqpSession(settings) as session:
        try:
            session.setup(P, q, A, lower, upper)
        except (ValueError, MemoryError, OSQPException) as e:
            if ENABLE_DEBUG_OUTPUT:
                print(f"[FEM-QP-SOLVE] OSQP setup failed: {e}")
            return QPSolveInfo(status=STATUS_SETUP_FAILED), None

        info, x = session.solve()

    if ENABLE_DEBUG_OUTPUT:
        print("[FEM-QP-SOLVE]")
        print(f"  Status: {info.status}")
        print(f"  Iterations: {info.iterations}")
        print(f"  Solve time: {info.solve_time * 1000:.1f}ms")
        print(f"  Objective value: {info.obj_val:.4f}")

    if not info.is_accepted(settings.accept_inaccurate):
        return info, None
    if x is None or len(x) != num_variable:
        # 解ベクトルが欠けている場合は失敗扱い
        return QPSolveInfo(status=f"{info.status} (no primal solution)",
                           iterations=info.iterations,
                           solve_time=info.solve_time,
                           obj_val=info.obj_val), None
    return info, x
