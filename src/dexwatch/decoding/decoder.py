"""Generic log decoder.

This module translates a `RawLog` into a typed record using an `EventSchema`.
One engine serves every schema: the schema says which topics and data words
hold which fields and which record class to assemble.

The decoder is pure. Structural problems come back as `DecodeFailure`
values; it never raises on bad input and never returns a partial record.
"""

from __future__ import annotations

import logging
from typing import Any

from dexwatch.core.models import DecodedEvent, DecodeFailure, DecodeFailureReason, RawLog

from .specs import EventSchema, FieldSpec
from .utils import WordRangeError, parse_word, topic_word, word_at

logger = logging.getLogger(__name__)


def _failure(raw: RawLog, schema: EventSchema, reason: DecodeFailureReason, detail: str) -> DecodeFailure:
    logger.debug("decode %s failed (%s): %s", schema.name, reason.value, detail)
    return DecodeFailure(reason=reason, detail=detail, log=raw, event=schema.name)


def _check_layout(raw: RawLog, schema: EventSchema) -> DecodeFailure | None:
    """Validate topic0, topic count and data length, in that order."""
    if not raw.topics or raw.topics[0].lower() != schema.topic0:
        got = raw.topics[0] if raw.topics else "<none>"
        return _failure(
            raw, schema, DecodeFailureReason.SIGNATURE_MISMATCH, f"topic0 {got} != {schema.topic0}"
        )
    if len(raw.topics) != schema.expected_topics:
        return _failure(
            raw,
            schema,
            DecodeFailureReason.TOPIC_COUNT_MISMATCH,
            f"{len(raw.topics)} topics, expected {schema.expected_topics}",
        )
    if len(raw.data) != schema.expected_data_len:
        return _failure(
            raw,
            schema,
            DecodeFailureReason.DATA_LENGTH_MISMATCH,
            f"{len(raw.data)} data bytes, expected {schema.expected_data_len}",
        )
    return None


def decode_log(raw: RawLog, schema: EventSchema) -> DecodedEvent:
    """Decode one raw log into `schema.record_type` or a `DecodeFailure`."""
    failure = _check_layout(raw, schema)
    if failure is not None:
        return failure

    values: dict[str, Any] = {}
    field_words: list[tuple[FieldSpec, str | bytes]] = [
        (tf, raw.topics[i]) for i, tf in enumerate(schema.topic_fields, start=1)
    ]
    field_words += [(df, word_at(raw.data, i)) for i, df in enumerate(schema.data_fields)]
    for spec, word in field_words:
        try:
            if isinstance(word, str):
                word = topic_word(word)
            values[spec.attr] = parse_word(word, spec.type)
        except WordRangeError as e:
            return _failure(raw, schema, DecodeFailureReason.VALUE_OUT_OF_RANGE, f"{spec.name}: {e}")

    return schema.record_type(**values)
