"""Schema inference over document collections.

Documents are optionally sampled, typed field by field and reduced by field
name with :func:`~mcp_doc_schema.unify.unify` into one :class:`Schema`.

Top-level schema fields keep the order in which they were first seen in the
sampled documents. Fields of nested structs are sorted by name.
"""

import logging
import random
from collections.abc import Mapping
from concurrent.futures import Executor
from typing import Any, Callable, Iterable, Iterator

from mcp_doc_schema.datatypes import DataType, Schema
from mcp_doc_schema.typer import type_of
from mcp_doc_schema.unify import unify

logger = logging.getLogger(__name__)

DEFAULT_SEED = 1
FULL_SCAN_THRESHOLD = 0.99

Decoder = Callable[[Any], Mapping]


class SchemaInferenceAnalyzer:
    """A class for inferring a schema from document samples.

    Samples are typed as they are added, only the per-field types are kept.
    Analyzers built over separate parts of a collection can be merged.

    :ivar _field_types: Unified type per field name, in first-seen order
    :type _field_types: dict[str, DataType]
    """

    def __init__(
        self,
        decoder: Decoder | None = None,
    ):
        """Initialize the SchemaInferenceAnalyzer.

        :param decoder: Optional callable turning one raw document into a
            mapping of field name to value
        :type decoder: Callable[[Any], Mapping] | None
        """
        self._decoder = decoder
        self._field_types: dict[str, DataType] = {}
        self._document_count = 0

    @property
    def document_count(self) -> int:
        return self._document_count

    def add_data_sample(self, record: Any):
        """Add a record to the data sample for schema inference.

        :param record: A raw document, decoded with the analyzer's decoder
        :type record: Any
        :raises TypeError: If the decoded record is not a mapping
        """
        fields = self._decoder(record) if self._decoder else record
        if not isinstance(fields, Mapping):
            raise TypeError(
                f"Expected a mapping of fields, got {type(fields).__name__}"
            )

        self.add_field_types({k: type_of(v) for k, v in fields.items()})
        self._document_count += 1

    def add_field_types(self, field_types: Mapping):
        """Unify already typed fields into the sample.

        :param field_types: Mapping of field name to inferred type
        :type field_types: Mapping[str, DataType]
        """
        for name, data_type in field_types.items():
            name = str(name)
            if name in self._field_types:
                self._field_types[name] = unify(self._field_types[name], data_type)
            else:
                self._field_types[name] = data_type

    def merge(self, other: "SchemaInferenceAnalyzer"):
        """Merge the sample of another analyzer into this one.

        :param other: The analyzer to merge, left unchanged
        :type other: SchemaInferenceAnalyzer
        """
        self.add_field_types(other._field_types)
        self._document_count += other._document_count

    def field_types(self) -> dict[str, DataType]:
        return dict(self._field_types)

    def infer_schema(self) -> Schema:
        """Infer the schema of the collected data samples.

        :return: The inferred schema, empty if no samples were added
        :rtype: Schema
        """
        return Schema.from_field_types(self._field_types)


def sample_documents(
    documents: Iterable[Any],
    sampling_ratio: float,
    seed: int = DEFAULT_SEED,
) -> Iterator[Any]:
    """Sample documents without replacement.

    Each document is kept independently with probability ``sampling_ratio``.
    Ratios above 0.99 keep every document.

    :param documents: The documents to sample
    :type documents: Iterable[Any]
    :param sampling_ratio: Fraction of documents to keep, 0.0 to 1.0
    :type sampling_ratio: float
    :param seed: Seed of the random generator, same seed gives same sample
    :type seed: int
    :return: Iterator over the sampled documents
    :rtype: Iterator[Any]
    :raises ValueError: If the sampling ratio is outside 0.0 to 1.0
    """
    if not 0.0 <= sampling_ratio <= 1.0:
        raise ValueError(f"Sampling ratio must be between 0 and 1: {sampling_ratio}")

    if sampling_ratio > FULL_SCAN_THRESHOLD:
        logger.debug("Sampling ratio %s, using all documents", sampling_ratio)
        return iter(documents)

    logger.debug("Sampling documents with ratio %s, seed %s", sampling_ratio, seed)
    return _bernoulli_sample(documents, sampling_ratio, random.Random(seed))


def _bernoulli_sample(documents, sampling_ratio, rng):
    for document in documents:
        if rng.random() < sampling_ratio:
            yield document


def aggregate_field_types(
    documents: Iterable[Any],
    decoder: Decoder | None = None,
) -> dict[str, DataType]:
    """Type every document and unify the types by field name.

    :param documents: The documents to aggregate
    :type documents: Iterable[Any]
    :param decoder: Optional callable turning one raw document into a mapping
    :type decoder: Callable[[Any], Mapping] | None
    :return: Unified type per field name, in first-seen order
    :rtype: dict[str, DataType]
    """
    analyzer = SchemaInferenceAnalyzer(decoder=decoder)
    for document in documents:
        analyzer.add_data_sample(document)

    logger.debug(
        "Aggregated %d documents into %d fields",
        analyzer.document_count,
        len(analyzer.field_types()),
    )
    return analyzer.field_types()


def merge_field_types(
    left: Mapping,
    right: Mapping,
) -> dict[str, DataType]:
    """Combine two partial aggregates.

    Fields of ``left`` come first, followed by fields only ``right`` has.

    :param left: Unified type per field name
    :type left: Mapping[str, DataType]
    :param right: Unified type per field name
    :type right: Mapping[str, DataType]
    :return: The combined aggregate
    :rtype: dict[str, DataType]
    """
    merged = dict(left)
    for name, data_type in right.items():
        merged[name] = unify(merged[name], data_type) if name in merged else data_type
    return merged


def infer_schema(
    documents: Iterable[Any],
    sampling_ratio: float = 1.0,
    seed: int = DEFAULT_SEED,
    decoder: Decoder | None = None,
) -> Schema:
    """Infer the schema of a document collection.

    :param documents: The documents, consumed once and never modified
    :type documents: Iterable[Any]
    :param sampling_ratio: Fraction of documents to examine, 0.0 to 1.0
    :type sampling_ratio: float
    :param seed: Seed used when sampling
    :type seed: int
    :param decoder: Optional callable turning one raw document into a mapping
    :type decoder: Callable[[Any], Mapping] | None
    :return: The inferred schema, empty for an empty collection
    :rtype: Schema
    """
    sampled = sample_documents(documents, sampling_ratio, seed)
    return Schema.from_field_types(aggregate_field_types(sampled, decoder))


def infer_schema_partitioned(
    partitions: Iterable[Iterable[Any]],
    sampling_ratio: float = 1.0,
    seed: int = DEFAULT_SEED,
    decoder: Decoder | None = None,
    executor: Executor | None = None,
) -> Schema:
    """Infer the schema of a collection split into partitions.

    Every partition is sampled and aggregated on its own, then the partial
    aggregates are merged in partition order. Partition ``i`` is sampled with
    seed ``seed + i``. With ``executor`` the partitions are aggregated
    concurrently, the executor is not shut down.

    :param partitions: The partitions of the collection
    :type partitions: Iterable[Iterable[Any]]
    :param sampling_ratio: Fraction of documents to examine, 0.0 to 1.0
    :type sampling_ratio: float
    :param seed: Base seed used when sampling
    :type seed: int
    :param decoder: Optional callable turning one raw document into a mapping
    :type decoder: Callable[[Any], Mapping] | None
    :param executor: Optional executor to aggregate partitions on
    :type executor: Executor | None
    :return: The inferred schema
    :rtype: Schema
    """
    sampled = [
        sample_documents(partition, sampling_ratio, seed + i)
        for i, partition in enumerate(partitions)
    ]

    if executor is None:
        partials = [aggregate_field_types(p, decoder) for p in sampled]
    else:
        # Generators cannot be pickled for process pools
        futures = [
            executor.submit(aggregate_field_types, list(p), decoder) for p in sampled
        ]
        partials = [future.result() for future in futures]

    logger.debug("Merging %d partition aggregates", len(partials))
    merged: dict[str, DataType] = {}
    for partial in partials:
        merged = merge_field_types(merged, partial)
    return Schema.from_field_types(merged)
