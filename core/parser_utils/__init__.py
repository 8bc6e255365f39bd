"""Shared helper utilities for description parsing."""

from .text import (
    is_noise,
    looks_like_address,
    markdown_labels,
    split_address_body,
    split_delimited,
    strip_markdown_link,
    strip_urls,
    unique_in_order,
)

__all__ = [
    "is_noise",
    "looks_like_address",
    "markdown_labels",
    "split_address_body",
    "split_delimited",
    "strip_markdown_link",
    "strip_urls",
    "unique_in_order",
]
