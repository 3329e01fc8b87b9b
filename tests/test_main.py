"""
Tests for the command line entry point, Logger and plotting.
"""

import json
import sys

import pytest

from fem_smoother.fem_1d_qp_problem import Fem1dExpandedQpProblem
from fem_smoother.main import corridor_bounds, main
from fem_smoother.utils import Logger


class TestLogger:
    """Test the stdout tee."""

    def test_tee_to_file(self, tmp_path, capsys):
        log_file = tmp_path / "run.txt"
        with Logger(str(log_file), script_name="unit"):
            print("hello smoother")

        content = log_file.read_text(encoding='utf-8')
        assert "Smoothing Log - unit" in content
        assert "hello smoother" in content
        assert "hello smoother" in capsys.readouterr().out

    def test_stdout_restored(self, tmp_path):
        before = sys.stdout
        with Logger(str(tmp_path / "run.txt")) as logger:
            assert sys.stdout is logger
        assert sys.stdout is before
        assert logger.closed

    def test_write_after_close_is_ignored(self, tmp_path):
        logger = Logger(str(tmp_path / "run.txt"))
        logger.close()
        logger.write("ignored")
        assert "ignored" not in (tmp_path / "run.txt").read_text(encoding='utf-8')


class TestCorridorBounds:
    """Test the demo corridor."""

    def test_obstacle_section(self):
        bounds = corridor_bounds(11)
        assert len(bounds) == 11
        assert bounds[0] == (-1.5, 1.5)
        assert bounds[5] == (0.5, 1.5)
        assert bounds[10] == (-1.5, 1.5)

    def test_single_sample(self):
        assert corridor_bounds(1) == [(-1.5, 1.5)]


class TestMain:
    """Test CLI modes."""

    def test_test_mode(self, capsys):
        assert main(['--mode', 'test']) == 0
        assert "[SUCCESS] All tests passed!" in capsys.readouterr().out

    def test_demo_mode_with_config_and_log(self, tmp_path, capsys):
        config = tmp_path / "params.json"
        config.write_text(json.dumps({"delta_s": 0.5, "max_x_third_order_derivative": 2.0}))
        log_file = tmp_path / "demo.txt"

        code = main(['--mode', 'demo', '--num-samples', '40',
                     '--config', str(config), '--log', str(log_file)])

        assert code == 0
        content = log_file.read_text(encoding='utf-8')
        assert "delta_s: 1.0 -> 0.5" in content
        assert "Constraints: 240" in content

    def test_demo_mode_plot(self, tmp_path):
        plot_file = tmp_path / "demo.png"
        assert main(['--mode', 'demo', '--num-samples', '30', '--plot', str(plot_file)]) == 0
        assert plot_file.exists()

    def test_bad_sample_count(self):
        with pytest.raises(SystemExit):
            main(['--mode', 'demo', '--num-samples', '0'])


class TestPlotProfile:
    """Test plot_profile directly."""

    def test_unsolved_problem_is_skipped(self, tmp_path, capsys):
        from fem_smoother.visualization import plot_profile

        bounds = [(-1.0, 1.0)] * 3
        problem = Fem1dExpandedQpProblem(bounds, (0.0, 0.0, 0.0), 1.0)
        plot_profile(problem, bounds, output_path=str(tmp_path / "none.png"))

        assert not (tmp_path / "none.png").exists()
        assert "No solution to plot" in capsys.readouterr().out
