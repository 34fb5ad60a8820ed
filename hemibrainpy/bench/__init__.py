"""bench — persisted datasets for the hemibrain archive.

A Dataset is a named, typed, lazy-loading object that knows how to read
itself from (and write itself to) the archive drive. The @evaluate_datasets
decorator lets matrix functions accept either a DataFrame or a Dataset.
"""

from .dataset import (
    Dataset,
    LocalDataset,
    evaluate_datasets,
)
