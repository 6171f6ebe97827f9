"""Human-readable result summaries."""

from __future__ import annotations

from recipe_search.i18n import I18nService

_default_i18n: I18nService | None = None


def _i18n() -> I18nService:
    global _default_i18n
    if _default_i18n is None:
        _default_i18n = I18nService()
    return _default_i18n


def describe_results(
    *,
    total_results: int,
    query: str,
    has_active_filters: bool,
    is_loading: bool = False,
    i18n: I18nService | None = None,
    locale: str | None = None,
) -> str:
    i18n = i18n or _i18n()
    has_query = bool(query)
    if is_loading:
        return i18n.gettext("summary.searching", locale=locale)
    if total_results <= 0:
        if has_query:
            return i18n.gettext("summary.none_for_query", locale=locale, query=query)
        return i18n.gettext("summary.none", locale=locale)
    if has_query and has_active_filters:
        key = "summary.found_for_query_filtered"
    elif has_query:
        key = "summary.found_for_query"
    elif has_active_filters:
        key = "summary.found_filtered"
    else:
        key = "summary.found"
    return i18n.ngettext(key, total_results, locale=locale, query=query)


__all__ = ["describe_results"]
