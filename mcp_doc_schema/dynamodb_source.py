import logging
from decimal import Decimal
from itertools import islice
from typing import Iterator

import boto3
from boto3.dynamodb.types import Binary, TypeDeserializer

from mcp_doc_schema.context import InferenceConfig
from mcp_doc_schema.datatypes import Schema
from mcp_doc_schema.reducer import SchemaInferenceAnalyzer, sample_documents

logger = logging.getLogger(__name__)


class DynamoDBDocumentSource:
    def __init__(
        self,
        session: boto3.Session,
        table_name: str,
    ):
        self.session = session
        self.table_name = table_name

    def analyze(
        self,
        config: InferenceConfig | None = None,
        filter_expression: str | None = None,
        expression_attribute_values: dict | None = None,
        expression_attribute_names: dict | None = None,
    ) -> Schema:
        """Scan the DynamoDB table and infer its schema.

        At most ``config.max_records`` items are read, the items read are
        sampled with ``config.sampling_ratio``.

        :param config: Inference settings, defaults when omitted
        :type config: InferenceConfig | None
        :param filter_expression: Optional filter expression to apply to the scan
        :type filter_expression: str | None
        :param expression_attribute_values: Values for the expression attributes in the filter expression
        :type expression_attribute_values: dict | None
        :param expression_attribute_names: Names for the expression attributes in the filter expression
        :type expression_attribute_names: dict | None
        :return: The inferred schema for the DynamoDB table
        :rtype: Schema
        """
        config = config or InferenceConfig()
        analyzer = SchemaInferenceAnalyzer()

        sample_iterator = self.open_sample_iterator(
            num_records=config.max_records,
            page_size=config.page_size,
            filter_expression=filter_expression,
            expression_attribute_values=expression_attribute_values,
            expression_attribute_names=expression_attribute_names,
        )

        for record in sample_documents(
            sample_iterator, config.sampling_ratio, config.seed
        ):
            analyzer.add_data_sample(record)

        logger.info(
            "Inferred schema of %s from %d items",
            self.table_name,
            analyzer.document_count,
        )
        return analyzer.infer_schema()

    def open_sample_iterator(
        self,
        num_records: int,
        page_size: int = 100,
        filter_expression: str | None = None,
        expression_attribute_values: dict | None = None,
        expression_attribute_names: dict | None = None,
    ) -> Iterator[dict]:
        """Open an iterator to scan a DynamoDB table with pagination.

        This method scans a DynamoDB table and returns an iterator that yields
        decoded records. It uses pagination to handle large tables efficiently.

        :param num_records: Maximum number of records to return
        :type num_records: int
        :param page_size: Number of records to fetch per page
        :type page_size: int
        :param filter_expression: Optional filter expression to apply to the scan
        :type filter_expression: str | None
        :param expression_attribute_values: Values for the expression attributes in the filter expression
        :type expression_attribute_values: dict | None
        :param expression_attribute_names: Names for the expression attributes in the filter expression
        :type expression_attribute_names: dict | None
        :return: Iterator that yields decoded records
        :rtype: Iterator[dict]
        """
        scan_params = {
            "TableName": self.table_name,
            "PaginationConfig": {"PageSize": page_size},
        }
        if filter_expression:
            scan_params["FilterExpression"] = filter_expression
            if expression_attribute_values:
                scan_params["ExpressionAttributeValues"] = expression_attribute_values
            if expression_attribute_names:
                scan_params["ExpressionAttributeNames"] = expression_attribute_names

        logger.info("Scanning %s for up to %d items", self.table_name, num_records)
        items = islice(self._scan_items(scan_params), num_records)
        return map(deserialize_dynamodb_item, items)

    def _scan_items(self, scan_params: dict) -> Iterator[dict]:
        paginator = self.session.client("dynamodb").get_paginator("scan")
        for page in paginator.paginate(**scan_params):
            yield from page.get("Items", [])


_deserializer = TypeDeserializer()


def deserialize_dynamodb_item(item: dict) -> dict:
    """Decode an item in DynamoDB wire format, ``{"n": {"N": "1"}}``.

    :param item: The item as returned by a scan
    :type item: dict
    :return: The decoded item
    :rtype: dict
    """
    return decode_dynamodb_item(
        {k: _deserializer.deserialize(v) for k, v in item.items()}
    )


def decode_dynamodb_item(item: dict) -> dict:
    """Decode a deserialized DynamoDB item into plain document values.

    Whole numbers become int, other numbers stay Decimal. Sets become sorted
    lists and Binary becomes bytes.

    :param item: The DynamoDB item to decode
    :type item: dict
    :return: The decoded DynamoDB item
    :rtype: dict
    """

    def _convert_value(value):
        if isinstance(value, Decimal):
            return int(value) if _is_whole(value) else value
        elif isinstance(value, Binary):
            return value.value
        elif isinstance(value, dict):
            return {k: _convert_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_convert_value(v) for v in value]
        elif isinstance(value, (set, frozenset)):
            return sorted(_convert_value(v) for v in value)
        return value

    return _convert_value(item)


def _is_whole(value: Decimal) -> bool:
    # Decimal arithmetic is limited to the context precision, DynamoDB
    # numbers have up to 38 digits
    _, digits, exponent = value.as_tuple()
    if not isinstance(exponent, int):
        return False
    return exponent >= 0 or not any(digits[exponent:])
