"""Persona sanitizer: rewrite internal naming in assistant text to the business-facing name."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import NamedTuple

import structlog

logger = structlog.get_logger(__name__)

# Generic names the generator falls back to when it loses track of the business.
PLACEHOLDER_NAMES = (
    "Product Inquiries",
    "Product Inquiry",
)

MAX_SWEEPS = 10
MIN_CANDIDATE_LENGTH = 3


class SanitizeReport(NamedTuple):
    text: str
    iterations: int
    replacements: int
    converged: bool


def build_candidates(internal_identifiers: Iterable[str], replacement: str) -> list[str]:
    """
    Internal names to eradicate, in sweep order: placeholders, the raw
    identifiers, then phrases wrapping them. Deduplicated case-insensitively.
    """
    identifiers = [i.strip() for i in internal_identifiers if i and i.strip()]
    raw: list[str] = list(PLACEHOLDER_NAMES)
    raw.extend(identifiers)
    for ident in identifiers:
        raw.append(f"assistant for {ident}")
        raw.append(f"helping with {ident}")
    for ident in identifiers:
        raw.append(f"I'm {ident}")
        raw.append(f"I am {ident}")

    seen: set[str] = set()
    candidates = []
    for name in raw:
        folded = name.casefold()
        if len(name) < MIN_CANDIDATE_LENGTH or name == replacement or folded in seen:
            continue
        seen.add(folded)
        candidates.append(name)
    return candidates


def sanitize_with_report(
    reply: str,
    effective_business_name: str,
    internal_identifiers: Iterable[str],
    max_sweeps: int = MAX_SWEEPS,
) -> SanitizeReport:
    """
    Replace every candidate (case-insensitive, global) with the business
    name, sweeping until a sweep changes nothing or max_sweeps is reached.
    """
    if not reply or not effective_business_name:
        return SanitizeReport(reply, 0, 0, True)

    patterns = [
        re.compile(re.escape(name), re.IGNORECASE)
        for name in build_candidates(internal_identifiers, effective_business_name)
    ]
    # Lambda keeps backslashes in the business name literal.
    repl = lambda _m: effective_business_name  # noqa: E731

    text = reply
    total = 0
    sweeps = 0
    changed = True
    while changed and sweeps < max_sweeps:
        sweeps += 1
        changed = False
        for pattern in patterns:
            text, n = pattern.subn(repl, text)
            if n:
                logger.debug("identity_replaced", pattern=pattern.pattern, count=n, sweep=sweeps)
                total += n
                changed = True

    # The final sweep still replacing means we stopped on the cap, not a fixed point.
    converged = not changed
    if not converged:
        logger.warning(
            "identity_sanitizer_not_converged",
            sweeps=sweeps,
            replacements=total,
            business_name=effective_business_name,
        )
    elif total:
        logger.info("identity_fixed", sweeps=sweeps, replacements=total)
    return SanitizeReport(text, sweeps, total, converged)


def sanitize(reply: str, effective_business_name: str, internal_identifiers: Iterable[str]) -> str:
    """Best-effort cleaned reply; never raises for absent matches."""
    return sanitize_with_report(reply, effective_business_name, internal_identifiers).text
