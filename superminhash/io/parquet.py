from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, List, Tuple

try:
    import pyarrow.parquet as pq  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover - optional dependency
    pq = None  # type: ignore[assignment]

from superminhash._config.config import DEFAULT_SEED, DEFAULT_SIGNATURE_SIZE

if TYPE_CHECKING:  # pragma: no cover
    from superminhash.core.main import SuperMinHash

DEFAULT_PARQUET_BATCH_SIZE = 10_000


def iter_parquet_elements(
    source: Path | str,
    *,
    key_column: str = "key",
    elements_column: str = "elements",
    batch_size: int = DEFAULT_PARQUET_BATCH_SIZE,
) -> Iterator[Tuple[List[Any], List[List[Any]]]]:
    """
    Stream ``(keys, element_lists)`` pairs from a Parquet file.

    The file is read incrementally using ``pyarrow`` so that large datasets can be
    processed without loading the entire table into memory at once.

    Parameters
    ----------
    source:
        Path to the Parquet file on disk.
    key_column:
        Name of the column identifying each set (document id, user id, ...).
    elements_column:
        Name of the list-typed column holding the members of each set.
    batch_size:
        Number of rows to read per iteration. Larger values trade memory for throughput.

    Yields
    ------
    Iterator[Tuple[List[Any], List[List[Any]]]]
        A list of keys and, in the same order, the list of elements for each key.
        Null element lists are yielded as empty lists.

    Raises
    ------
    ImportError
        If ``pyarrow`` is not installed.
    FileNotFoundError
        If the specified file does not exist.
    ValueError
        If ``batch_size`` is not positive or a column is missing.
    """
    if pq is None:
        raise ImportError(
            "pyarrow is required to stream elements from Parquet files. "
            "Install it via `pip install pyarrow`."
        )

    path = Path(source).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Parquet source '{path}' does not exist")

    if batch_size <= 0:
        raise ValueError("batch_size must be greater than zero")

    parquet_file = pq.ParquetFile(path)
    schema = parquet_file.schema_arrow

    for column in (key_column, elements_column):
        if schema.get_field_index(column) == -1:
            raise ValueError(
                f"Column '{column}' was not found in Parquet schema {schema.names}"
            )

    for batch in parquet_file.iter_batches(
        batch_size=batch_size, columns=[key_column, elements_column]
    ):
        if batch.num_rows == 0:
            continue

        keys = batch.column(0).to_pylist()
        element_lists = [row or [] for row in batch.column(1).to_pylist()]

        yield keys, element_lists


def signatures_from_parquet(
    source: Path | str,
    *,
    signature_size: int = DEFAULT_SIGNATURE_SIZE,
    seed: int = DEFAULT_SEED,
    **loader_kwargs: Any,
) -> Iterator[Tuple[Any, "SuperMinHash"]]:
    """Yield ``(key, SuperMinHash)`` for every row of a Parquet file."""
    from superminhash.core.main import SuperMinHash

    for keys, element_lists in iter_parquet_elements(source, **loader_kwargs):
        for key, elements in zip(keys, element_lists):
            yield key, SuperMinHash.from_iterable(
                elements, signature_size=signature_size, seed=seed
            )
