"""
cnnfi Configuration
===================
Centralised defaults for fault specification and campaign analysis.
"""

import json

# -----------------------------------------------------------------------------
# Model
# -----------------------------------------------------------------------------

# MNIST classifiers: labels 0-9
NUM_CLASSES = 10

# -----------------------------------------------------------------------------
# Bit widths
# -----------------------------------------------------------------------------

FLOAT32_WIDTH = 32  # IEEE-754 single precision (software values)
FILTER_WIDTH = 8    # fixed-point filter coefficient registers
BIAS_WIDTH = 16     # fixed-point bias registers

VALID_WIDTHS = (FILTER_WIDTH, BIAS_WIDTH, FLOAT32_WIDTH)

# -----------------------------------------------------------------------------
# Software fault defaults
# -----------------------------------------------------------------------------

# Rate given to a freshly added activation layer
DEFAULT_FAULT_RATE = 0.01

# Std-dev given to a layer switched to random noise without an explicit value
DEFAULT_STD_DEV = 0.1

# Bit suggested for a new weight position
DEFAULT_WEIGHT_BIT = 15

# Weight tensor shapes of the reference LeNet-5 model
LENET5_LAYERS = {
    "conv2d_1": {"kernel": (5, 5, 1, 6), "bias": (6,)},
    "conv2d_2": {"kernel": (5, 5, 6, 16), "bias": (16,)},
    "dense_1": {"kernel": (400, 120), "bias": (120,)},
    "dense_2": {"kernel": (120, 84), "bias": (84,)},
    "dense_3": {"kernel": (84, 10), "bias": (10,)},
}

# -----------------------------------------------------------------------------
# Hardware (VHDL) registers
# -----------------------------------------------------------------------------

# First convolutional layer: 6 feature maps with 5x5 filters
FILTER_ROWS = 5
FILTER_COLS = 5
NUM_FEATURE_MAPS = 6

FILTER_REGISTERS = tuple(f"FMAP_{i}" for i in range(1, NUM_FEATURE_MAPS + 1))
BIAS_REGISTERS = tuple(f"BIAS_VAL_{i}" for i in range(1, NUM_FEATURE_MAPS + 1))

# -----------------------------------------------------------------------------
# Metrics
# -----------------------------------------------------------------------------

# Sample-count fields reported next to rate metrics; not comparable as rates
COUNT_METRIC_KEYS = frozenset({
    "correct_predictions",
    "incorrect_predictions",
    "total_samples",
    "num_samples",
    "support",
})


def load_layer_catalog(path):
    """
    Load a layer catalog from JSON: {layer_id: {"kernel": [...], "bias": [...]}}.
    Shapes are returned as tuples.
    """
    with open(path, 'r') as f:
        raw = json.load(f)
    return {
        layer_id: {target: tuple(shape) for target, shape in targets.items()}
        for layer_id, targets in raw.items()
    }
