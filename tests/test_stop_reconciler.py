from __future__ import annotations

from core.stop_reconciler import (
    SOURCE_ARROW_SEQUENCE,
    SOURCE_MARKDOWN_LINK,
    augment_description,
    collect_candidates,
    reconcile,
)

ARROW_BOOKING = "上車地址：松山機場\n下車地址：台北市信義區市府路45號\n→忠孝東路一段1號"


def test_arrow_line_becomes_mid_stop_under_pickup():
    summary = reconcile(ARROW_BOOKING)

    assert summary.pickup == ["松山機場"]
    assert summary.dropoff == ["台北市信義區市府路45號"]
    assert summary.mid_stops == ["忠孝東路一段1號"]

    rendered = augment_description(ARROW_BOOKING, summary).splitlines()
    assert rendered[0] == "上車地址：松山機場"
    assert rendered[1] == "中途停靠：忠孝東路一段1號"
    assert rendered[2].startswith("下車地址：")


def test_augmented_description_is_stable_when_reparsed():
    once = augment_description(ARROW_BOOKING)
    twice = augment_description(once)

    assert twice == once
    assert reconcile(once).to_dict() == reconcile(ARROW_BOOKING).to_dict()


def test_markdown_link_label_is_the_address():
    description = "上車地址：[市府路45號](https://maps.google.com/?api=1&query=市府路45號)\n下車地址：桃園機場"
    summary = reconcile(description)

    assert summary.pickup == ["市府路45號"]
    assert collect_candidates(description)[0].source_kind == SOURCE_MARKDOWN_LINK


def test_plain_and_markdown_spelling_reported_once():
    description = "上車地址：市府路45號\n上車地址2：[市府路45號](https://maps.app/x)\n→市府路45號"
    summary = reconcile(description)

    assert summary.pickup == ["市府路45號"]
    assert summary.mid_stops == []


def test_pickup_overflow_capped_but_description_keeps_everything():
    description = "上車地址：中山路1號、民生路2號、仁愛路3號、信義路4號\n下車地址：桃園機場"
    summary = reconcile(description)

    assert summary.pickup == ["中山路1號", "民生路2號", "仁愛路3號"]
    rendered = augment_description(description, summary)
    assert "信義路4號" in rendered
    assert "上車地址2：民生路2號" in rendered
    assert "上車地址3：仁愛路3號" in rendered


def test_mid_stop_line_lists_every_stop_beyond_cap():
    stops = ["中山路1號", "民生路2號", "仁愛路3號", "信義路4號"]
    description = "上車地址：松山機場\n" + "\n".join(f"→{stop}" for stop in stops)
    summary = reconcile(description)

    assert summary.mid_stops == stops[:3]
    assert summary.all_mid_stops == stops
    assert "中途停靠：" + "、".join(stops) in augment_description(description, summary)


def test_remarks_and_sequence_keywords_yield_mid_stops():
    description = (
        "上車地址：松山機場\n"
        "下車地址：桃園機場\n"
        "備註：先到 南京東路三段10號，再到 民生社區，行李兩件\n"
        "第一站：民權東路100號"
    )
    summary = reconcile(description)

    assert summary.mid_stops == ["南京東路三段10號", "民生社區", "民權東路100號"]
    kinds = {candidate.text: candidate.source_kind for candidate in summary.candidates}
    assert kinds["民權東路100號"] == SOURCE_ARROW_SEQUENCE


def test_urls_in_remarks_are_not_addresses():
    description = "上車地址：松山機場\n備註：https://maps.google.com/?q=市府路45號 search"
    assert reconcile(description).mid_stops == []


def test_mid_stop_does_not_repeat_primary_stop():
    description = "上車地址：松山機場\n下車地址：市府路45號\n→市府路45號 -> 中山路1號"
    summary = reconcile(description)

    assert summary.mid_stops == ["中山路1號"]


def test_attach_to_dropoff_and_no_primary_lines():
    rendered = augment_description(ARROW_BOOKING, attach_to="dropoff").splitlines()
    assert rendered[2] == "中途停靠：忠孝東路一段1號"

    orphan = augment_description("接送行程\n→中山路1號")
    assert orphan.splitlines()[-1] == "中途停靠：中山路1號"


def test_existing_mid_line_rewritten_in_place():
    description = "上車地址：松山機場\n中途停靠：中山路1號\n下車地址：桃園機場\n→民生路2號"
    rendered = augment_description(description).splitlines()

    assert rendered.count("中途停靠：中山路1號、民生路2號") == 1
    assert rendered[1] == "中途停靠：中山路1號、民生路2號"


def test_no_mid_line_without_mid_stops():
    description = "上車地址：松山機場\n下車地址：桃園機場"
    assert augment_description(description) == description
    assert reconcile(None).to_dict() == {"pickup": [], "dropoff": [], "midStops": []}


def test_comma_separated_arrow_line_is_stable_when_reparsed():
    description = "上車地址：松山機場\n下車地址：桃園機場\n→中山路1號，民生路2號"

    assert reconcile(description).mid_stops == ["中山路1號", "民生路2號"]

    once = augment_description(description)
    assert "中途停靠：中山路1號、民生路2號" in once.splitlines()
    assert augment_description(once) == once
    assert reconcile(once).mid_stops == ["中山路1號", "民生路2號"]


def test_bulleted_mid_line_rewritten_not_duplicated():
    rendered = augment_description("上車地址：松山機場\n- 中途停靠：民生路2號")

    assert rendered.count("中途停靠") == 1
    assert rendered.splitlines() == ["上車地址：松山機場", "中途停靠：民生路2號"]


def test_repeated_mid_lines_fold_into_first():
    description = "上車地址：松山機場\n中途停靠：中山路1號\n下車地址：桃園機場\n• 中途停靠：民生路2號"
    rendered = augment_description(description).splitlines()

    assert rendered == ["上車地址：松山機場", "中途停靠：中山路1號、民生路2號", "下車地址：桃園機場"]
