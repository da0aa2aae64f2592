"""Extractor output parsing: JSON contract, value coercion, reserved keys."""

from __future__ import annotations

import json

import pytest

from intake_agent.domain.extraction import (
    ExtractionFailure,
    clean_extracted_fields,
    parse_extraction,
)


def test_parse_full_payload() -> None:
    raw = json.dumps(
        {
            "extracted_information": {"name": "Jane", "email": " jane@x.com "},
            "user_confirmed": False,
            "ready_to_confirm": True,
            "current_topic": "contact",
        }
    )
    result = parse_extraction(raw)
    assert result.extracted_information == {"name": "Jane", "email": "jane@x.com"}
    assert result.ready_to_confirm is True
    assert result.user_confirmed is False
    assert result.current_topic == "contact"


def test_parse_strips_code_fence() -> None:
    raw = '```json\n{"extracted_information": {"budget": 500}}\n```'
    assert parse_extraction(raw).extracted_information == {"budget": "500"}


def test_parse_missing_keys_default() -> None:
    result = parse_extraction("{}")
    assert result.extracted_information == {}
    assert result.current_topic is None
    assert result.user_confirmed is False


@pytest.mark.parametrize("raw", ["", "   ", "not json", "[1, 2]", '"text"'])
def test_parse_rejects_unusable_output(raw: str) -> None:
    with pytest.raises(ExtractionFailure):
        parse_extraction(raw)


def test_clean_drops_empty_and_coerces() -> None:
    accepted, quarantined = clean_extracted_fields(
        {
            "name": "",
            "phone": None,
            "services": ["repair", " gutters "],
            "details": {"sqft": 1200},
            "budget": 500,
            "": "x",
        }
    )
    assert accepted == {
        "services": "repair, gutters",
        "details": '{"sqft": 1200}',
        "budget": "500",
    }
    assert quarantined == {}


def test_reserved_keys_are_quarantined() -> None:
    raw = json.dumps({"extracted_information": {"phase": "complete", "_status": "x", "name": "Jane"}})
    result = parse_extraction(raw)
    assert result.extracted_information == {"name": "Jane"}
    assert result.quarantined == {"phase": "complete", "_status": "x"}


def test_clean_ignores_non_mapping() -> None:
    assert clean_extracted_fields(["name"]) == ({}, {})
