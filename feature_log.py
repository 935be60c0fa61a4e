"""Append-only feature dataset: one ``label,area,aspect_ratio,percent_filled,orientation`` row per region."""
import csv
import logging
import os

import pandas as pd

logger = logging.getLogger(__name__)

FEATURE_FIELDS = ("label", "area", "aspect_ratio", "percent_filled", "orientation")
FORBIDDEN_LABEL_CHARS = ',"\r\n'


def validate_label(label):
    """Return the label unchanged, or raise ValueError if it cannot be stored as a plain field."""
    if not label:
        raise ValueError("label may not be empty")
    bad = sorted({ch for ch in label if ch in FORBIDDEN_LABEL_CHARS})
    if bad:
        raise ValueError(f"label may not contain {bad!r}: {label!r}")
    return label


def format_feature_row(region, label):
    return [label, *region.features()]


def append_features(path, regions, label):
    """
    Append one row per region. The file is created if missing and never truncated.
    Returns the number of rows written (0 if the file could not be opened/written).
    """
    validate_label(label)
    rows = [format_feature_row(r, label) for r in regions]
    try:
        with open(path, "a", newline="") as fh:
            wr = csv.writer(fh, lineterminator="\n", quoting=csv.QUOTE_NONE)
            wr.writerows(rows)
    except OSError as e:
        logger.error("Could not open feature file %s: %s", path, e)
        return 0
    return len(rows)


def load_features(path):
    """Read the feature file into a DataFrame (empty frame if the file does not exist)."""
    if not os.path.exists(path) or os.path.getsize(path) == 0:
        return pd.DataFrame(columns=list(FEATURE_FIELDS))
    # labels such as "NA" or "None" are real labels, not missing values
    return pd.read_csv(path, header=None, names=list(FEATURE_FIELDS), dtype={"label": str},
                       keep_default_na=False)


def label_counts(path):
    """Samples per label in the feature file."""
    return load_features(path)["label"].value_counts()
