# -*- coding: utf-8 -*-
# --- fem_1d_qp_problem.py (ver.1.0 / 2026-10-19) ---
"""
================================================================================
Apolloスタイル 1次元有限要素 展開QP (Fem1dExpandedQpProblem)
================================================================================

離散化されたプロファイル (横オフセット、速度など) を、値・1階微分・2階微分が
整合した滑らかな軌道へ変換する凸QPを構築してOSQPで解く。

変数ベクトル (3n):
   [x_0 .. x_{n-1} | x'_0 .. x'_{n-1} | x''_0 .. x''_{n-1}]

制約 (行順は固定、並べ替え禁止):
1. ジャーク:      -J*ds <= x''_{i+1} - x''_i <= J*ds
2. 1階微分連続:   x'_{i+1} - x'_i - 0.5*ds*(x''_i + x''_{i+1}) = 0
3. 値の連続:      x_{i+1} - x_i - ds*x'_i - ds^2/3*x''_i - ds^2/6*x''_{i+1} = 0
4. 初期状態:      x_0, x'_0, x''_0 を固定
5. 値域:          3n 個の全座標 (x は指定境界、x'/x'' は明示境界または ±2.0)

行数 = 3n + 3(n-1) + 3

ベース: Baidu Apollo modules/planning/math/finite_element_qp/fem_1d_expanded_qp_problem.cc
================================================================================
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .matrix_operations import csc_from_arrays, dense_to_csc_matrix
from .osqp_solver import QPSolveInfo, solve_qp
from .parameters import FemQPParameters, FemQPWeights, OsqpSettings

# Debug output flag
ENABLE_DEBUG_OUTPUT = False

# x' / x'' の値域行に明示境界が無い場合の対称境界 (呼び出し側から変更不可)
LARGE_VALUE = 2.0


@dataclass(frozen=True)
class VariableLayout:
    """Offsets of the three variable blocks inside the flat 3n vector"""
    num_var: int

    @property
    def num_variable(self) -> int:
        return 3 * self.num_var

    @property
    def prime_offset(self) -> int:
        return self.num_var

    @property
    def pprime_offset(self) -> int:
        return 2 * self.num_var

    def position(self, i: int) -> int:
        return i

    def derivative(self, i: int) -> int:
        return self.prime_offset + i

    def second_derivative(self, i: int) -> int:
        return self.pprime_offset + i

    def split(self, x: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=float)
        if len(x) != self.num_variable:
            raise ValueError(f"Expected {self.num_variable} values, got {len(x)}")
        n = self.num_var
        return x[0:n].copy(), x[n:2 * n].copy(), x[2 * n:3 * n].copy()


def _validate_bound(name: str, lower: float, upper: float):
    if not (math.isfinite(lower) and math.isfinite(upper)):
        raise ValueError(f"{name} must be finite, got ({lower}, {upper})")
    if lower > upper:
        raise ValueError(f"{name}: lower {lower} > upper {upper}")


class Fem1dExpandedQpProblem:
    """
    Piecewise-jerk smoothing of a 1D profile as an OSQP problem.

    Usage:
        problem = Fem1dExpandedQpProblem(x_bounds, x_init=(0.0, 0.0, 0.0),
                                         delta_s=1.0, weights=FemQPWeights(),
                                         max_x_third_order_derivative=1.0)
        if problem.optimize():
            x, dx, ddx = problem.x, problem.x_derivative, problem.x_second_order_derivative

    Every call to optimize() builds fresh matrices. Instances are not shared
    between threads; build one per profile.
    """

    def __init__(
        self,
        x_bounds: Sequence[Tuple[float, float]],
        x_init: Sequence[float],
        delta_s: float,
        weights: Optional[FemQPWeights] = None,
        max_x_third_order_derivative: float = 1.0,
        settings: Optional[OsqpSettings] = None
    ):
        """
        Args:
            x_bounds: (lower, upper) per sample; the sample count is its length
            x_init: (x, x', x'') at sample 0
            delta_s: uniform sample spacing
            weights: cost weights
            max_x_third_order_derivative: jerk bound
            settings: OSQP settings
        """
        if x_bounds is None or x_init is None:
            raise ValueError("x_bounds and x_init are required")
        if len(x_bounds) == 0:
            raise ValueError("x_bounds must hold at least one sample")
        if len(x_init) != 3:
            raise ValueError(f"x_init must hold 3 values, got {len(x_init)}")
        if not math.isfinite(delta_s) or delta_s <= 0.0:
            raise ValueError(f"delta_s must be positive and finite, got {delta_s}")
        if (not math.isfinite(max_x_third_order_derivative)
                or max_x_third_order_derivative < 0.0):
            raise ValueError(
                f"max_x_third_order_derivative must be non-negative and finite, "
                f"got {max_x_third_order_derivative}")

        self.num_var_ = len(x_bounds)
        self.layout = VariableLayout(self.num_var_)

        self.x_bounds_: List[Tuple[float, float]] = []
        self.set_zero_order_bounds(x_bounds)

        self.x_init_ = tuple(float(v) for v in x_init)
        for v in self.x_init_:
            if not math.isfinite(v):
                raise ValueError(f"x_init must be finite, got {self.x_init_}")

        self.delta_s_ = float(delta_s)
        self.max_x_third_order_derivative_ = float(max_x_third_order_derivative)
        self.weight_ = weights if weights is not None else FemQPWeights()
        self.settings_ = settings if settings is not None else OsqpSettings()

        # x' / x'' の明示境界 (None なら LARGE_VALUE を使用)
        self.x_derivative_bound_: Optional[Tuple[float, float]] = None
        self.x_second_order_derivative_bound_: Optional[Tuple[float, float]] = None

        self.x_ = np.zeros(0)
        self.x_derivative_ = np.zeros(0)
        self.x_second_order_derivative_ = np.zeros(0)
        self.last_solve_info: Optional[QPSolveInfo] = None

    @classmethod
    def from_parameters(
        cls,
        params: FemQPParameters,
        x_bounds: Sequence[Tuple[float, float]],
        x_init: Sequence[float]
    ) -> 'Fem1dExpandedQpProblem':
        return cls(
            x_bounds,
            x_init,
            delta_s=params.delta_s,
            weights=params.to_weights(),
            max_x_third_order_derivative=params.max_x_third_order_derivative,
            settings=params.to_solver_settings(),
        )

    # ------------------------------------------------------------------
    # Sizes / results
    # ------------------------------------------------------------------
    @property
    def num_var(self) -> int:
        return self.num_var_

    @property
    def num_variable(self) -> int:
        return self.layout.num_variable

    @property
    def num_constraint(self) -> int:
        return self.num_variable + 3 * (self.num_var_ - 1) + 3

    @property
    def delta_s(self) -> float:
        return self.delta_s_

    @property
    def x(self) -> np.ndarray:
        return self.x_.copy()

    @property
    def x_derivative(self) -> np.ndarray:
        return self.x_derivative_.copy()

    @property
    def x_second_order_derivative(self) -> np.ndarray:
        return self.x_second_order_derivative_.copy()

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------
    def set_zero_order_bounds(self, x_bounds: Sequence[Tuple[float, float]]):
        if len(x_bounds) != self.num_var_:
            raise ValueError(
                f"Expected {self.num_var_} bound pairs, got {len(x_bounds)}")
        bounds = []
        for i, (lower, upper) in enumerate(x_bounds):
            _validate_bound(f"x_bounds[{i}]", float(lower), float(upper))
            bounds.append((float(lower), float(upper)))
        self.x_bounds_ = bounds

    def set_zero_order_bound(self, index: int, lower: float, upper: float):
        if not 0 <= index < self.num_var_:
            raise IndexError(f"Bound index {index} out of range [0, {self.num_var_})")
        _validate_bound(f"x_bounds[{index}]", float(lower), float(upper))
        self.x_bounds_[index] = (float(lower), float(upper))

    def set_first_order_bounds(self, lower: float, upper: float):
        _validate_bound("x' bounds", float(lower), float(upper))
        self.x_derivative_bound_ = (float(lower), float(upper))

    def set_second_order_bounds(self, lower: float, upper: float):
        _validate_bound("x'' bounds", float(lower), float(upper))
        self.x_second_order_derivative_bound_ = (float(lower), float(upper))

    # ------------------------------------------------------------------
    # QP building blocks
    # ------------------------------------------------------------------
    def calculate_kernel(self) -> np.ndarray:
        """Diagonal Hessian of 1/2 x'Px"""
        n = self.num_var_
        P_diag = np.zeros(self.num_variable)
        P_diag[0:n] = 2.0 * self.weight_.x_w + 2.0 * self.weight_.x_mid_line_w
        P_diag[n:2 * n] = 2.0 * self.weight_.x_derivative_w
        P_diag[2 * n:3 * n] = 2.0 * self.weight_.x_second_order_derivative_w
        return np.diag(P_diag)

    def calculate_offset(self) -> np.ndarray:
        q = np.zeros(self.num_variable)
        for i, (lower, upper) in enumerate(self.x_bounds_):
            q[i] = -2.0 * self.weight_.x_mid_line_w * (lower + upper)
        return q

    def calculate_affine_constraint(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Dense affine constraint matrix and its row bounds.

        Returns:
            (A, lower, upper) with A of shape (num_constraint, 3n)
        """
        n = self.num_var_
        ds = self.delta_s_
        layout = self.layout
        num_constraint = self.num_constraint

        A = np.zeros((num_constraint, self.num_variable))
        lower = np.zeros(num_constraint)
        upper = np.zeros(num_constraint)
        row = 0

        # -- Jerk: x''_{i+1} - x''_i --
        jerk_limit = self.max_x_third_order_derivative_ * ds
        for i in range(n - 1):
            A[row, layout.second_derivative(i)] = -1.0
            A[row, layout.second_derivative(i + 1)] = 1.0
            lower[row] = -jerk_limit
            upper[row] = jerk_limit
            row += 1

        # -- x'_{i+1} - x'_i - 0.5*ds*(x''_i + x''_{i+1}) = 0 --
        for i in range(n - 1):
            A[row, layout.derivative(i)] = -1.0
            A[row, layout.derivative(i + 1)] = 1.0
            A[row, layout.second_derivative(i)] = -0.5 * ds
            A[row, layout.second_derivative(i + 1)] = -0.5 * ds
            row += 1

        # -- x_{i+1} - x_i - ds*x'_i - ds^2/3*x''_i - ds^2/6*x''_{i+1} = 0 --
        for i in range(n - 1):
            A[row, layout.position(i)] = -1.0
            A[row, layout.position(i + 1)] = 1.0
            A[row, layout.derivative(i)] = -ds
            A[row, layout.second_derivative(i)] = -ds * ds / 3.0
            A[row, layout.second_derivative(i + 1)] = -ds * ds / 6.0
            row += 1

        # -- Initial state --
        for col, value in zip(
                (layout.position(0), layout.derivative(0), layout.second_derivative(0)),
                self.x_init_):
            A[row, col] = 1.0
            lower[row] = value
            upper[row] = value
            row += 1

        # -- Value range over all 3n coordinates --
        derivative_bound = self.x_derivative_bound_ or (-LARGE_VALUE, LARGE_VALUE)
        second_bound = self.x_second_order_derivative_bound_ or (-LARGE_VALUE, LARGE_VALUE)
        for i in range(self.num_variable):
            A[row, i] = 1.0
            if i < n:
                lower[row], upper[row] = self.x_bounds_[i]
            elif i < 2 * n:
                lower[row], upper[row] = derivative_bound
            else:
                lower[row], upper[row] = second_bound
            row += 1

        if row != num_constraint:
            raise RuntimeError(
                f"Constraint row count mismatch: built {row}, expected {num_constraint}")

        return A, lower, upper

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------
    def optimize(self) -> bool:
        """
        Build the QP, solve it with OSQP and publish the three profiles.

        Returns:
            True on success. On failure the previous results are cleared and
            last_solve_info.status holds the OSQP status.
        """
        self.x_ = np.zeros(0)
        self.x_derivative_ = np.zeros(0)
        self.x_second_order_derivative_ = np.zeros(0)

        num_variable = self.num_variable
        num_constraint = self.num_constraint

        P_data, P_indices, P_indptr = dense_to_csc_matrix(self.calculate_kernel())
        A_dense, lower_bounds, upper_bounds = self.calculate_affine_constraint()
        A_data, A_indices, A_indptr = dense_to_csc_matrix(A_dense)
        q = self.calculate_offset()

        P = csc_from_arrays(P_data, P_indices, P_indptr, (num_variable, num_variable))
        A = csc_from_arrays(A_data, A_indices, A_indptr, (num_constraint, num_variable))

        info, solution = solve_qp(
            P, q, A, lower_bounds, upper_bounds,
            num_variable, num_constraint, self.settings_
        )
        self.last_solve_info = info

        if solution is None:
            if ENABLE_DEBUG_OUTPUT:
                print(f"[FEM-QP] n={self.num_var_}: optimization failed ('{info.status}')")
            return False

        x, x_derivative, x_second_order_derivative = self.layout.split(solution)
        # 終端サンプルの x', x'' は解に関わらず 0 とする
        x_derivative[-1] = 0.0
        x_second_order_derivative[-1] = 0.0

        self.x_ = x
        self.x_derivative_ = x_derivative
        self.x_second_order_derivative_ = x_second_order_derivative

        if ENABLE_DEBUG_OUTPUT:
            print(f"[FEM-QP] n={self.num_var_}: solved in {info.iterations} iterations, "
                  f"x=[{x[0]:.3f}, ..., {x[-1]:.3f}]")
        return True
