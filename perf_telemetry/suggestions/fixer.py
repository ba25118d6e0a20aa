"""Textual fix hints for suggestions flagged ``auto_fix_available``."""

from __future__ import annotations

from typing import Optional

from .models import OptimizationSuggestion, SuggestionCategory


def generate_fix(suggestion: OptimizationSuggestion) -> Optional[str]:
    if not suggestion.auto_fix_available:
        return None
    if suggestion.category is SuggestionCategory.REBUILD:
        return _rebuild_fix(suggestion)
    if suggestion.category is SuggestionCategory.LAYOUT:
        return _layout_fix(suggestion)
    if suggestion.category is SuggestionCategory.LIST:
        return _list_fix(suggestion)
    return suggestion.code_example


def _rebuild_fix(suggestion: OptimizationSuggestion) -> str:
    name = suggestion.affected_entity or "Widget"
    return (
        "# Before: rebuilt every time the parent rebuilds\n"
        f"Column(children=[Text('Static Content'), {name}()])\n"
        "\n"
        "# After: constant siblings, isolated repaint\n"
        f"Column(children=[const Text('Static Content'), "
        f"const RepaintBoundary(child={name}())])\n"
    )


def _layout_fix(suggestion: OptimizationSuggestion) -> str:
    return (
        "# Before: one deeply nested build method\n"
        "Column(children=[...20 nested widgets...])\n"
        "\n"
        "# After: small composable pieces\n"
        "Column(children=[build_header(), build_content(), build_footer()])\n"
    )


def _list_fix(suggestion: OptimizationSuggestion) -> str:
    return (
        "# Before: every item built eagerly\n"
        "ListView(children=[Item(i) for i in items])\n"
        "\n"
        "# After: lazy builder\n"
        "ListView.builder(item_count=len(items), item_builder=lambda i: Item(items[i]))\n"
    )
