class CARTError(Exception):
    """Base class for errors raised while building or using a tree."""


class DataError(CARTError, ValueError):
    """Data not in the expected format."""


class EmptyDatasetError(DataError):
    """A tree cannot be built from a dataset without rows."""


class InvalidLabelError(DataError):
    """A label is outside the binary class domain {0, 1}."""


class NoSplitFoundError(CARTError):
    """No candidate threshold separates the dataset into two non-empty parts."""


class OutOfRangeError(CARTError, IndexError):
    """A feature index is not available in a data point or dataset."""
