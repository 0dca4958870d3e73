"""
Logging Utilities for the Cortical Learning Algorithm.

This module provides logging setup with support for file logging, colored
console output and CSV tracking of per-tick region metrics.
"""

import datetime
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

import colorlog


def setup_logging(
    level: Union[str, int] = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
    experiment_name: Optional[str] = None,
    console_output: bool = True,
    file_output: bool = True,
    format_type: str = "detailed",
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files
        experiment_name: Name of experiment for log file naming
        console_output: Whether to output to console
        file_output: Whether to output to file
        format_type: Format type ("simple" or "detailed")
    """
    # Convert string level to logging constant
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    # Clear any existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatters = create_formatters(format_type)

    # Console handler with colors
    if console_output:
        console_handler = colorlog.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatters["console"])
        root_logger.addHandler(console_handler)

    # File handlers
    if file_output and log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        log_filename = f"{experiment_name}.log" if experiment_name else "cortical_learning.log"
        file_handler = logging.FileHandler(log_dir / log_filename)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatters["file"])
        root_logger.addHandler(file_handler)

        error_filename = (
            f"{experiment_name}_error.log" if experiment_name else "cortical_learning_error.log"
        )
        error_handler = logging.FileHandler(log_dir / error_filename)
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatters["file"])
        root_logger.addHandler(error_handler)

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured successfully")
    if log_dir and file_output:
        logger.info(f"Log files will be saved to: {log_dir}")


def create_formatters(format_type: str = "detailed") -> dict:
    """
    Create logging formatters for different output types.

    Args:
        format_type: Type of formatting ("simple" or "detailed")

    Returns:
        Dictionary of formatters
    """
    if format_type == "simple":
        console_format = "%(log_color)s%(levelname)-8s%(reset)s %(message)s"
        file_format = "%(asctime)s - %(levelname)-8s - %(message)s"

    elif format_type == "detailed":
        console_format = (
            "%(log_color)s%(asctime)s%(reset)s | "
            "%(log_color)s%(levelname)-8s%(reset)s | "
            "%(cyan)s%(name)-20s%(reset)s | "
            "%(message)s"
        )
        file_format = (
            "%(asctime)s | %(levelname)-8s | %(name)-20s | "
            "%(filename)s:%(lineno)d | %(message)s"
        )

    else:
        raise ValueError(f"Unknown format type: {format_type}")

    console_formatter = colorlog.ColoredFormatter(
        console_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'white',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )

    file_formatter = logging.Formatter(
        file_format,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    return {
        "console": console_formatter,
        "file": file_formatter,
    }


class MetricsLogger:
    """
    Tracks region metrics tick after tick in memory and in a CSV file.
    """

    def __init__(self, log_file: Union[str, Path]):
        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self.metrics_history: List[Dict] = []

        with open(self.log_file, 'w') as f:
            f.write("timestamp,tick,metric_name,metric_value\n")

    def log_metric(self, tick: int, metric_name: str, metric_value: float) -> None:
        """Log a single metric value."""
        timestamp = datetime.datetime.now().isoformat()

        self.metrics_history.append({
            "timestamp": timestamp,
            "tick": tick,
            "metric_name": metric_name,
            "metric_value": metric_value,
        })

        with open(self.log_file, 'a') as f:
            f.write(f"{timestamp},{tick},{metric_name},{metric_value}\n")

    def log_metrics_dict(self, tick: int, metrics: dict) -> None:
        """Log multiple metrics at once, skipping non-numeric values."""
        for name, value in metrics.items():
            if isinstance(value, (int, float)):
                self.log_metric(tick, name, value)

    def get_metric_history(self, metric_name: str) -> list:
        """Get history of a specific metric."""
        return [
            entry for entry in self.metrics_history
            if entry["metric_name"] == metric_name
        ]
