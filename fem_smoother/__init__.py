"""
FEM 1D Expanded QP Smoother - v1.0
==================================

Apollo-style finite element QP for smoothing a sampled 1D profile

Modules:
    - parameters: FemQPWeights, OsqpSettings, FemQPParameters
    - fem_1d_qp_problem: kernel / offset / affine constraint builders and optimize()
    - matrix_operations: dense -> CSC conversion
    - osqp_solver: scoped OSQP session and solve_qp
    - visualization: profile plots
    - utils: Logger and script identifiers
    - main: command line entry point

Version: v1.0
Date: 2026-10-19
"""

from .parameters import FemQPWeights, OsqpSettings, FemQPParameters, load_parameters
from .fem_1d_qp_problem import Fem1dExpandedQpProblem, VariableLayout, LARGE_VALUE
from .matrix_operations import dense_to_csc_matrix, csc_from_arrays
from .osqp_solver import OsqpSession, QPSolveInfo, solve_qp
from .utils import Logger, SCRIPT_NAME, SCRIPT_VERSION

__version__ = "1.0.0"
__all__ = [
    # Parameters
    "FemQPWeights",
    "OsqpSettings",
    "FemQPParameters",
    "load_parameters",
    # Problem
    "Fem1dExpandedQpProblem",
    "VariableLayout",
    "LARGE_VALUE",
    # Sparse conversion
    "dense_to_csc_matrix",
    "csc_from_arrays",
    # Solver adapter
    "OsqpSession",
    "QPSolveInfo",
    "solve_qp",
    # Utils
    "Logger",
    "SCRIPT_NAME",
    "SCRIPT_VERSION",
]
