# -*- coding: utf-8 -*-
"""
fem_smoother/parameters.py

有限要素QPスムーザーのパラメータデータクラス

パラメータカテゴリ:
- FemQPWeights: コスト重み (値・中心線・1階微分・2階微分)
- OsqpSettings: OSQPソルバー設定
- FemQPParameters: フラットな設定 (JSONオーバーライド対応)
"""

import json
import math
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, Optional


def _check_finite(name: str, value: float):
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class FemQPWeights:
    """Cost weights of the expanded QP"""
    x_w: float = 1.0                         # closeness to zero
    x_mid_line_w: float = 1.0                # closeness to bound midpoint
    x_derivative_w: float = 1.0              # first derivative smoothness
    x_second_order_derivative_w: float = 1.0  # second derivative smoothness

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            _check_finite(f.name, value)
            if value < 0.0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")


@dataclass(frozen=True)
class OsqpSettings:
    """
    OSQP solver settings.

    time_limit: None means no limit is passed to OSQP.
    accept_inaccurate: also accept the "solved inaccurate" status.
    """
    verbose: bool = False
    eps_abs: float = 1e-5
    eps_rel: float = 1e-5
    max_iter: int = 40000
    check_termination: int = 10
    adaptive_rho: bool = True
    time_limit: Optional[float] = None
    accept_inaccurate: bool = True

    def to_solver_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            'verbose': self.verbose,
            'eps_abs': self.eps_abs,
            'eps_rel': self.eps_rel,
            'max_iter': self.max_iter,
            'check_termination': self.check_termination,
            'adaptive_rho': self.adaptive_rho,
        }
        if self.time_limit is not None:
            kwargs['time_limit'] = self.time_limit
        return kwargs


@dataclass
class FemQPParameters:
    """
    Flat configuration of one smoothing problem family.

    The sample count is not configured here: it follows from the length of
    the bound sequence handed to the problem.
    """

    # --- 離散化 ---
    delta_s: float = 1.0
    max_x_third_order_derivative: float = 1.0  # jerk bound

    # --- コスト重み ---
    x_w: float = 1.0
    x_mid_line_w: float = 1.0
    x_derivative_w: float = 1.0
    x_second_order_derivative_w: float = 1.0

    # --- OSQP ---
    verbose: bool = False
    eps_abs: float = 1e-5
    eps_rel: float = 1e-5
    max_iter: int = 40000
    check_termination: int = 10
    adaptive_rho: bool = True
    time_limit: Optional[float] = None
    accept_inaccurate: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self):
        _check_finite('delta_s', self.delta_s)
        if self.delta_s <= 0.0:
            raise ValueError(f"delta_s must be positive, got {self.delta_s}")
        _check_finite('max_x_third_order_derivative', self.max_x_third_order_derivative)
        if self.max_x_third_order_derivative < 0.0:
            raise ValueError(
                f"max_x_third_order_derivative must be non-negative, "
                f"got {self.max_x_third_order_derivative}")
        if self.max_iter <= 0:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}")
        # 重みの検証は FemQPWeights 側で行う
        self.to_weights()

    def to_weights(self) -> FemQPWeights:
        return FemQPWeights(
            x_w=self.x_w,
            x_mid_line_w=self.x_mid_line_w,
            x_derivative_w=self.x_derivative_w,
            x_second_order_derivative_w=self.x_second_order_derivative_w,
        )

    def to_solver_settings(self) -> OsqpSettings:
        return OsqpSettings(
            verbose=self.verbose,
            eps_abs=self.eps_abs,
            eps_rel=self.eps_rel,
            max_iter=self.max_iter,
            check_termination=self.check_termination,
            adaptive_rho=self.adaptive_rho,
            time_limit=self.time_limit,
            accept_inaccurate=self.accept_inaccurate,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, overrides: Dict[str, Any]) -> int:
        """
        JSONオーバーライドを適用する

        Args:
            overrides: {parameter_name: value}

        Returns:
            Number of parameters actually overridden
        """
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in overrides.items() if k in known}
        # 検証はコピーで行い、失敗時は self を変更しない
        replace(self, **changes)

        print("\n[CONFIG] Applying overrides:")
        for k, v in overrides.items():
            if k in changes:
                old_val = getattr(self, k)
                setattr(self, k, v)
                print(f"  - {k}: {old_val} -> {v}")
            else:
                print(f"  - [WARNING] Unknown parameter: {k}")
        return len(changes)


def load_parameters(config_path: Optional[str] = None) -> FemQPParameters:
    """Default parameters, optionally overridden by a JSON file"""
    params = FemQPParameters()
    if config_path:
        with open(config_path, 'r', encoding='utf-8') as f:
            overrides = json.load(f)
        if not isinstance(overrides, dict):
            raise ValueError(f"Config {config_path} must hold a JSON object")
        print(f"[CONFIG] Loaded {config_path}")
        params.apply_overrides(overrides)
    return params
