"""
Tests for region metrics and the CSV metrics logger.
"""

import numpy as np
import pytest

from cortical_learning.utils.logging import MetricsLogger, create_formatters
from cortical_learning.utils.metrics import overlap_histogram, region_metrics, sparsity


def test_sparsity():
    assert sparsity(np.array([1, 0, 1, 0])) == 0.5
    assert sparsity(np.array([])) == 0.0


def test_region_metrics(region):
    region.temporal_pooling = True
    region.tick(np.ones(64, dtype=np.uint8))

    metrics = region_metrics(region)

    assert metrics["iteration"] == 1
    assert metrics["active_columns"] == len(region.active_columns)
    assert 0.0 <= metrics["column_sparsity"] <= 1.0
    assert 0.0 <= metrics["output_density"] <= 1.0
    assert metrics["active_cells"] >= metrics["active_columns"]
    assert metrics["mean_boost"] >= 1.0
    assert 0.0 <= metrics["mean_active_duty_cycle"] <= metrics["max_active_duty_cycle"] <= 1.0
    assert metrics["desired_local_activity"] >= 1


def test_overlap_histogram(region):
    region.tick(np.ones(64, dtype=np.uint8))

    counts, edges = overlap_histogram(region, bins=4)

    assert counts.sum() == region.size
    assert len(edges) == 5


def test_metrics_logger(tmp_path):
    metrics_logger = MetricsLogger(tmp_path / "logs" / "metrics.csv")

    metrics_logger.log_metric(1, "active_columns", 3)
    metrics_logger.log_metrics_dict(2, {"active_columns": 4, "mean_boost": 1.0, "name": "x"})

    lines = (tmp_path / "logs" / "metrics.csv").read_text().splitlines()
    assert lines[0] == "timestamp,tick,metric_name,metric_value"
    assert len(lines) == 4
    assert lines[1].endswith(",1,active_columns,3")

    history = metrics_logger.get_metric_history("active_columns")
    assert [entry["metric_value"] for entry in history] == [3, 4]
    assert metrics_logger.get_metric_history("name") == []


@pytest.mark.parametrize("format_type", ["xml", "json"])
def test_unknown_format_type_is_rejected(format_type):
    with pytest.raises(ValueError):
        create_formatters(format_type)


@pytest.mark.parametrize("format_type", ["simple", "detailed"])
def test_known_format_types(format_type):
    formatters = create_formatters(format_type)

    assert set(formatters) == {"console", "file"}
