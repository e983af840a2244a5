"""Handling of text returned by the schema generation model."""

from .response import (
    GeneratedSchema,
    prepare_script,
    split_generated_response,
    strip_markdown_fences,
)

__all__ = [
    "GeneratedSchema",
    "prepare_script",
    "split_generated_response",
    "strip_markdown_fences",
]
