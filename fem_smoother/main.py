#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
有限要素QPスムーザー - メインエントリポイント
==========================================

バージョン: v1.0
日付: 2026-10-19

実行方法:
    # テストモード（基本シナリオのスモークテスト）
    python -m fem_smoother.main --mode test

    # デモモード（狭窄区間を通過する横オフセットの平滑化）
    python -m fem_smoother.main --mode demo --num-samples 60 --plot demo.png

    # パラメータオーバーライド付き
    python -m fem_smoother.main --mode demo --config params.json --log demo_log.txt
"""

import argparse
import sys
from typing import List, Optional, Tuple

import numpy as np

from .fem_1d_qp_problem import Fem1dExpandedQpProblem
from .parameters import FemQPParameters, FemQPWeights, load_parameters


def test_end_to_end() -> bool:
    """n=3, 境界±1, 初期状態0 -> 全サンプルで x≈0"""
    print("\n### Test 1: Smooth Solution Around Zero Mid Line ###")
    problem = Fem1dExpandedQpProblem(
        [(-1.0, 1.0)] * 3,
        x_init=(0.0, 0.0, 0.0),
        delta_s=1.0,
        weights=FemQPWeights(1.0, 1.0, 1.0, 1.0),
        max_x_third_order_derivative=1e3,
    )
    if not problem.optimize():
        print(f"[FAIL] Optimization failed ('{problem.last_solve_info.status}')")
        return False

    print(f"  x   = {np.round(problem.x, 4)}")
    print(f"  x'  = {np.round(problem.x_derivative, 4)}")
    print(f"  x'' = {np.round(problem.x_second_order_derivative, 4)}")
    if np.max(np.abs(problem.x)) > 1e-3:
        print("[FAIL] Solution drifted from the mid line")
        return False
    print("[PASS] Optimization successful!")
    return True


def test_infeasible() -> bool:
    """初期値が境界外 -> 失敗を報告すること"""
    print("\n### Test 2: Initial Value Outside Bounds ###")
    problem = Fem1dExpandedQpProblem(
        [(-1.0, 1.0)] * 3,
        x_init=(5.0, 0.0, 0.0),
        delta_s=1.0,
        max_x_third_order_derivative=1e3,
    )
    if problem.optimize():
        print("[FAIL] Infeasible problem reported as solved")
        return False
    print(f"[PASS] Failure reported ('{problem.last_solve_info.status}')")
    return True


def corridor_bounds(num_samples: int, half_width: float = 1.5,
                    obstacle_start: float = 0.4, obstacle_end: float = 0.6,
                    obstacle_edge: float = 0.5) -> List[Tuple[float, float]]:
    """
    Lateral corridor with an obstacle occupying the right side in the middle.

    Returns:
        (lower, upper) per sample
    """
    bounds = []
    for i in range(num_samples):
        ratio = i / max(1, num_samples - 1)
        if obstacle_start <= ratio <= obstacle_end:
            bounds.append((obstacle_edge, half_width))
        else:
            bounds.append((-half_width, half_width))
    return bounds


def demo_mode(params: FemQPParameters, num_samples: int,
              plot_path: Optional[str] = None) -> bool:
    """横オフセット平滑化のデモ"""
    print("\n### Demo: Lateral Offset Nudge ###")
    x_bounds = corridor_bounds(num_samples)
    problem = Fem1dExpandedQpProblem.from_parameters(params, x_bounds, (0.0, 0.0, 0.0))

    print(f"  Samples: {problem.num_var}, delta_s={params.delta_s}")
    print(f"  Variables: {problem.num_variable}, Constraints: {problem.num_constraint}")

    if not problem.optimize():
        print(f"[FAIL] Optimization failed ('{problem.last_solve_info.status}')")
        return False

    info = problem.last_solve_info
    x = problem.x
    print(f"  Status: {info.status}, iterations={info.iterations}, "
          f"time={info.solve_time * 1000:.1f}ms")
    print(f"  x: min={x.min():.3f}, max={x.max():.3f}, end={x[-1]:.3f}")
    print(f"  max |x''| = {np.max(np.abs(problem.x_second_order_derivative)):.3f}")

    if plot_path:
        from .visualization import plot_profile
        plot_profile(problem, x_bounds, output_path=plot_path)
    return True


def run(args: argparse.Namespace) -> int:
    print("=" * 80)
    print("FEM 1D Expanded QP Smoother")
    print("Version: v1.0")
    print("=" * 80)

    if args.mode == 'test':
        success = test_end_to_end()
        success = test_infeasible() and success
        print("\n" + "=" * 80)
        print("[SUCCESS] All tests passed!" if success else "[FAILED] Some tests failed")
        print("=" * 80)
        return 0 if success else 1

    params = load_parameters(args.config)
    if not demo_mode(params, args.num_samples, args.plot):
        return 1
    return 0


def main(argv: Optional[list] = None) -> int:
    """メインエントリポイント"""
    parser = argparse.ArgumentParser(
        description="有限要素QPスムーザー v1.0",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
実行例:
  python -m fem_smoother.main --mode test
  python -m fem_smoother.main --mode demo --num-samples 80 --plot demo.png
        """
    )
    parser.add_argument(
        '--mode',
        type=str,
        choices=['test', 'demo'],
        default='test',
        help='実行モード: test (スモークテスト), demo (横オフセット平滑化)'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='パラメータオーバーライド用JSON設定ファイルのパス'
    )
    parser.add_argument(
        '--num-samples',
        type=int,
        default=60,
        help='demoモードのサンプル数 (デフォルト: 60)'
    )
    parser.add_argument(
        '--plot',
        type=str,
        default=None,
        help='demoモードの結果プロットの保存先'
    )
    parser.add_argument(
        '--log',
        type=str,
        default=None,
        help='標準出力を複製するログファイルのパス'
    )
    args = parser.parse_args(argv)

    if args.num_samples < 1:
        parser.error("--num-samples must be at least 1")

    if args.log:
        from .utils import Logger
        with Logger(args.log):
            return run(args)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
