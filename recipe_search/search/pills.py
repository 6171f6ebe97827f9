"""Active facets rendered as removable pills."""

from __future__ import annotations

from typing import Any

from recipe_search.domain.models import ALL, FilterPill, FilterState

TAG_PREFIX = "tag-"


def _humanize(value: str) -> str:
    text = value.replace("-", " ").replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def active_filter_pills(state: FilterState) -> list[FilterPill]:
    pills: list[FilterPill] = []
    if state.category != ALL:
        pills.append(
            FilterPill(
                id="category",
                label=_humanize(state.category),
                value=state.category,
                kind="category",
            )
        )
    if state.difficulty != ALL:
        pills.append(
            FilterPill(
                id="difficulty",
                label=_humanize(state.difficulty),
                value=state.difficulty,
                kind="difficulty",
            )
        )
    if state.max_time > 0:
        pills.append(
            FilterPill(
                id="maxTime",
                label=f"Under {state.max_time} min",
                value=str(state.max_time),
                kind="time",
            )
        )
    if state.servings > 0:
        noun = "serving" if state.servings == 1 else "servings"
        pills.append(
            FilterPill(
                id="servings",
                label=f"{state.servings} {noun}",
                value=str(state.servings),
                kind="servings",
            )
        )
    for tag in sorted(state.tags, key=str.casefold):
        pills.append(FilterPill(id=f"{TAG_PREFIX}{tag}", label=tag, value=tag, kind="tag"))
    return pills


def removal_for(pill_id: str, state: FilterState) -> dict[str, Any] | None:
    """Partial update that clears ``pill_id``; None when it matches nothing."""

    if pill_id == "category":
        return {"category": ALL}
    if pill_id == "difficulty":
        return {"difficulty": ALL}
    if pill_id == "maxTime":
        return {"max_time": 0}
    if pill_id == "servings":
        return {"servings": 0}
    if pill_id.startswith(TAG_PREFIX):
        tag = pill_id[len(TAG_PREFIX):]
        if tag in state.tags:
            return {"tags": state.tags - {tag}}
    return None


__all__ = ["active_filter_pills", "removal_for"]
