"""
Tests for the parameter dataclasses and JSON overrides.
"""

import json

import pytest

from fem_smoother.parameters import (
    FemQPParameters,
    FemQPWeights,
    OsqpSettings,
    load_parameters,
)


class TestFemQPWeights:
    """Test FemQPWeights dataclass."""

    def test_default_weights(self):
        weights = FemQPWeights()
        assert weights.x_w == 1.0
        assert weights.x_mid_line_w == 1.0
        assert weights.x_derivative_w == 1.0
        assert weights.x_second_order_derivative_w == 1.0

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            FemQPWeights(x_derivative_w=-0.1)

    def test_non_finite_weight_rejected(self):
        with pytest.raises(ValueError):
            FemQPWeights(x_w=float('inf'))


class TestOsqpSettings:
    """Test OsqpSettings conversion."""

    def test_time_limit_omitted_by_default(self):
        kwargs = OsqpSettings().to_solver_kwargs()
        assert 'time_limit' not in kwargs
        assert kwargs['verbose'] is False

    def test_time_limit_passed_when_set(self):
        kwargs = OsqpSettings(time_limit=0.05).to_solver_kwargs()
        assert kwargs['time_limit'] == 0.05


class TestFemQPParameters:
    """Test FemQPParameters dataclass."""

    def test_custom_parameters(self):
        params = FemQPParameters(delta_s=0.5, x_mid_line_w=3.0, eps_abs=1e-4)

        assert params.to_weights().x_mid_line_w == 3.0
        assert params.to_solver_settings().eps_abs == 1e-4

    @pytest.mark.parametrize("kwargs", [
        {"delta_s": 0.0},
        {"delta_s": -0.5},
        {"max_x_third_order_derivative": -1.0},
        {"x_w": -1.0},
        {"max_iter": 0},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            FemQPParameters(**kwargs)

    def test_to_dict(self):
        param_dict = FemQPParameters(delta_s=2.0).to_dict()
        assert isinstance(param_dict, dict)
        assert param_dict["delta_s"] == 2.0
        assert param_dict["time_limit"] is None

    def test_apply_overrides(self, capsys):
        params = FemQPParameters()
        applied = params.apply_overrides({"delta_s": 0.2, "unknown_key": 1, "validate": 3})

        assert applied == 1
        assert params.delta_s == 0.2
        out = capsys.readouterr().out
        assert "delta_s: 1.0 -> 0.2" in out
        assert "[WARNING] Unknown parameter: unknown_key" in out

    def test_apply_invalid_override(self):
        params = FemQPParameters()
        with pytest.raises(ValueError):
            params.apply_overrides({"x_derivative_w": -2.0})

    def test_rejected_override_leaves_parameters_unchanged(self):
        params = FemQPParameters(delta_s=0.5)
        with pytest.raises(ValueError):
            params.apply_overrides({"delta_s": 0.1, "x_derivative_w": -2.0})

        assert params.delta_s == 0.5
        assert params.x_derivative_w == 1.0
        assert params == FemQPParameters(delta_s=0.5)


class TestLoadParameters:
    """Test JSON config loading."""

    def test_defaults_without_config(self):
        assert load_parameters(None) == FemQPParameters()

    def test_load_from_json(self, tmp_path):
        config = tmp_path / "params.json"
        config.write_text(json.dumps({"delta_s": 0.25, "max_x_third_order_derivative": 4.0}))

        params = load_parameters(str(config))
        assert params.delta_s == 0.25
        assert params.max_x_third_order_derivative == 4.0

    def test_non_object_json_rejected(self, tmp_path):
        config = tmp_path / "params.json"
        config.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_parameters(str(config))
