from __future__ import annotations

from datetime import datetime, timezone

from core.parser_utils.text import looks_like_address, split_address_body
from core.text_parsing import (
    DROPOFF,
    PHONE,
    PICKUP,
    REMARKS,
    describe_flight,
    extract_embedded_datetime,
    extract_fields,
    extract_flight_ident,
    extract_phone_numbers,
    match_label,
    normalize_phone,
)

BOOKING = """行程日期：2024年8月15日
行程時間：14:30
上車地址：桃園機場第一航廈
下車地址：台北市信義區市府路45號
聯絡電話：0912-345-678
備註：行李兩件"""


def test_extract_fields_keeps_line_order_and_repeats():
    description = "上車地址：A路1號\n上車地址2：B街2號\n下車地址：C路3號"
    fields = extract_fields(description)

    assert [field.kind for field in fields] == [PICKUP, PICKUP, DROPOFF]
    assert [field.body for field in fields] == ["A路1號", "B街2號", "C路3號"]
    assert fields[1].label == "上車地址2"


def test_match_label_prefers_specific_phone_label():
    field = match_label("聯絡電話： 0912345678")
    assert field.kind == PHONE
    assert field.label == "聯絡電話"

    assert match_label("- Notes: bring sign").kind == REMARKS
    assert match_label("這是一般文字") is None


def test_embedded_datetime_requires_both_lines():
    override = extract_embedded_datetime(BOOKING)
    assert override == datetime(2024, 8, 15, 6, 30, tzinfo=timezone.utc)

    assert extract_embedded_datetime("行程日期：2024年8月15日\n上車地址：X路1號") is None
    assert extract_embedded_datetime("行程時間：14:30") is None


def test_embedded_datetime_rejects_impossible_date():
    assert extract_embedded_datetime("行程日期：2024年2月31日\n行程時間：09:00") is None


def test_markdown_label_wins_over_url():
    body = "[市府路45號](https://maps.google.com/?api=1&query=市府路45號)"
    assert split_address_body(body) == ["市府路45號"]
    assert split_address_body("search、https://maps.example.com/x") == []


def test_address_shape():
    assert looks_like_address("台北市信義區市府路45號")
    assert looks_like_address("桃園機場第二航廈")
    assert not looks_like_address("行李兩件")
    assert not looks_like_address("https://example.com/路")


def test_normalize_phone_rules():
    assert normalize_phone("0912-345-678") == "0912345678"
    assert normalize_phone("+886 912 345 678") == "+886912345678"
    assert normalize_phone("00886-912-345-678") == "+886912345678"
    assert normalize_phone("886912345678") == "+886912345678"
    assert normalize_phone("12-34") is None
    assert normalize_phone("") is None


def test_extract_phone_numbers_labeled_then_free_text():
    description = BOOKING + "\n司機會從 0987654321 聯繫您\n乘客電話：+886 912 345 678、02-2720-8889"

    assert extract_phone_numbers(description) == ["0912345678", "+886912345678", "0227208889", "0987654321"]


def test_flight_ident_first_match_uppercased():
    assert extract_flight_ident("接機 ci-123", "備註：BR 87") == "CI123"
    assert extract_flight_ident(None, "航班：br87 抵達") == "BR87"
    assert extract_flight_ident("會議", "下午三點") is None


def test_flight_ident_not_glued_to_trailing_letters():
    assert extract_flight_ident(None, "訂單 CI123A") is None
    assert extract_flight_ident(None, "訂單 CI123") == "CI123"
    assert extract_flight_ident(None, "航班CI123抵達") == "CI123"


def test_describe_flight_kind_and_terminal():
    reference = describe_flight("桃園機場接機", "航班：BR 192")
    assert reference.ident == "BR192"
    assert reference.kind == "arr"
    assert reference.terminal == "T2"

    departure = describe_flight("送機 CI 100", None)
    assert departure.kind == "dep"
    assert departure.terminal is None
