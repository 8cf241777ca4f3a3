from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from webchain.core.errors import ChainError
from webchain.core.exceptions import AggregateError, SelectionError
from webchain.core.steps import Quantifier

logger = logging.getLogger(__name__)


def run_quantified(
    elements: Sequence[Any],
    quantifier: Quantifier,
    fn: Callable[[Any], Any],
    *,
    stage: str,
    selector: str,
    call_site: str,
) -> ChainError | None:
    """Runs ``fn`` over a selection and returns the resulting error, if any.

    A single element is always tested on its own, whatever the quantifier.
    ALL stops at the first failing element. ANY stops at the first passing
    element and only reports once every element has failed.
    """

    if not elements:
        return ChainError(
            stage,
            SelectionError(f"No elements exist for the selector '{selector}'"),
            call_site=call_site,
        )

    if len(elements) == 1:
        failure = _attempt(fn, elements[0])
        if failure is None:
            return None
        return ChainError(stage, failure, call_site=call_site, element=elements[0])

    if quantifier is Quantifier.SINGLE:
        return ChainError(
            stage,
            SelectionError(
                f"Selector '{selector}' returned multiple elements but .any() or .all() weren't specified"
            ),
            call_site=call_site,
        )

    failures: list[ChainError] = []
    for index, element in enumerate(elements):
        failure = _attempt(fn, element)
        if failure is None:
            if quantifier is Quantifier.ANY:
                logger.debug("%s passed on element %d of '%s'", stage, index + 1, selector)
                return None
            continue
        error = ChainError(stage, failure, call_site=call_site, element=element)
        if quantifier is Quantifier.ALL:
            return error
        failures.append(error)

    if failures:
        return ChainError(stage, AggregateError(failures), call_site=call_site)
    return None


def _attempt(fn: Callable[[Any], Any], element) -> Exception | None:
    try:
        fn(element)
    except Exception as exc:  # noqa: BLE001 - any failure of a user test is recorded, not raised.
        return exc
    return None
