"""Allocates human-readable artifact codes (MOD-001, API-USER-003, ...)."""
from __future__ import annotations

import logging
import random
import re
import string
import time
from typing import Any, Callable, Dict, Optional

from specgraph import config
from specgraph.domain.entities import ScopeType
from specgraph.domain.errors import AllocationError, CounterConflict
from specgraph.domain.events import CodeAllocated, event_publisher
from specgraph.domain.ports import CounterStore

logger = logging.getLogger(__name__)

# Prefixes whose codes embed a domain qualifier
DOMAIN_PREFIXES = ("API", "DTO")
DEFAULT_DOMAIN = "GEN"


def normalize_domain(domain: Optional[str]) -> str:
    """
    Uppercase, word separators become hyphens, keep [A-Z0-9-], collapse and
    trim hyphens; GEN when nothing is left.
    """
    if not domain or not domain.strip():
        return DEFAULT_DOMAIN
    normalized = re.sub(r"[\s_]+", "-", domain.strip().upper())
    normalized = re.sub(r"[^A-Z0-9-]", "", normalized)
    normalized = re.sub(r"-+", "-", normalized).strip("-")
    return normalized or DEFAULT_DOMAIN


def format_code(prefix: str, number: int, domain: Optional[str] = None, min_digits: int = 3) -> str:
    padded = str(number).zfill(min_digits)
    if domain and prefix in DOMAIN_PREFIXES:
        return f"{prefix}-{domain}-{padded}"
    return f"{prefix}-{padded}"


class CodeAllocator:
    """
    Hands out collision-free codes per (project, scope type, scope refs).

    Mutual exclusion lives in the counter store's transaction, not in this
    process, so allocations stay unique across service instances. Conflicts
    are retried a bounded number of times; numbers lost to aborted attempts
    are never handed out again.
    """

    def __init__(
        self,
        counters: CounterStore,
        max_attempts: int | None = None,
        retry_delay_ms: int | None = None,
        min_digits: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._counters = counters
        self._max_attempts = max_attempts or config.settings.ALLOCATOR_MAX_ATTEMPTS
        self._retry_delay_ms = (
            retry_delay_ms if retry_delay_ms is not None else config.settings.ALLOCATOR_RETRY_DELAY_MS
        )
        self._min_digits = min_digits or config.settings.CODE_MIN_DIGITS
        self._sleep = sleep

    def allocate(
        self,
        project_id: str,
        scope_type: ScopeType | str,
        prefix: str,
        scope_ref1: str | None = None,
        scope_ref2: str | None = None,
        domain: str | None = None,
    ) -> str:
        """
        Allocate the next code for a scope key.

        Args:
            project_id: Project that owns the sequence
            scope_type: Artifact kind
            prefix: Code prefix (MOD, UC, SD, API, DTO)
            scope_ref1: First scope reference (optional)
            scope_ref2: Second scope reference (optional)
            domain: Domain qualifier, normalized; only used for API and DTO prefixes

        Returns:
            Formatted code

        Raises:
            AllocationError: If the counter could not be advanced
        """
        scope = ScopeType(scope_type).value
        qualifier = normalize_domain(domain) if domain is not None else None
        for attempt in range(1, self._max_attempts + 1):
            try:
                number = self._counters.increment_or_create(
                    project_id, scope, scope_ref1 or "", scope_ref2 or ""
                )
            except CounterConflict as exc:
                if attempt < self._max_attempts:
                    logger.warning(
                        f"Code allocation conflict for {scope}, retrying "
                        f"(attempt {attempt}/{self._max_attempts}): {exc}"
                    )
                    self._sleep(self._retry_delay_ms * attempt / 1000.0)
                    continue
                logger.error(f"Code allocation for {scope} failed after {attempt} attempts")
                raise AllocationError(
                    f"Failed to allocate {prefix} code after {self._max_attempts} attempts"
                ) from exc
            except Exception as exc:
                logger.error(f"Code allocation for {scope} failed: {exc}")
                raise AllocationError(f"Failed to allocate {prefix} code") from exc

            code = format_code(prefix, number, qualifier, self._min_digits)
            logger.debug(f"Generated code: {code} for {scope}")
            event_publisher.publish(CodeAllocated(
                event_id="",
                timestamp=None,
                aggregate_id=project_id,
                project_id=project_id,
                scope_type=scope,
                code=code,
            ))
            return code

        raise AllocationError(f"Failed to allocate {prefix} code after {self._max_attempts} attempts")

    def allocate_module_code(self, project_id: str) -> str:
        return self.allocate(project_id, ScopeType.MODULE, "MOD")

    def allocate_use_case_code(self, project_id: str, module_id: str) -> str:
        return self.allocate(project_id, ScopeType.USE_CASE, "UC", scope_ref1=module_id)

    def allocate_sequence_code(self, project_id: str) -> str:
        # Sequence codes are project-wide, not per use case
        return self.allocate(project_id, ScopeType.SEQUENCE, "SD")

    def allocate_api_code(self, project_id: str, domain: str | None = None) -> str:
        normalized = normalize_domain(domain)
        return self.allocate(project_id, ScopeType.API, "API", scope_ref1=normalized, domain=normalized)

    def allocate_dto_code(self, project_id: str, title: str) -> str:
        # DTO codes are qualified and scoped by the normalized title
        qualifier = normalize_domain(title)
        return self.allocate(project_id, ScopeType.DTO, "DTO", scope_ref1=qualifier, domain=qualifier)

    def usage_stats(self, project_id: str) -> Dict[str, Dict[str, Any]]:
        """Per scope type: numbers handed out so far and per-scope detail."""
        stats: Dict[str, Dict[str, Any]] = {}
        for counter in self._counters.list_counters(project_id):
            entry = stats.setdefault(counter["scope_type"], {"total": 0, "details": []})
            used = counter["next_number"] - 1
            entry["total"] += used
            entry["details"].append({
                "scope": counter["scope_ref1"] or "default",
                "count": used,
                "next_number": counter["next_number"],
            })
        return stats


def _to_base36(number: int) -> str:
    digits = string.digits + string.ascii_uppercase
    if number == 0:
        return "0"
    out = []
    while number:
        number, remainder = divmod(number, 36)
        out.append(digits[remainder])
    return "".join(reversed(out))


def generate_project_code(name: str) -> str:
    """Project codes are not counter-backed: initials plus a time/random suffix."""
    prefix = "".join(word[0].upper() for word in name.split() if word)[:3] or "PRJ"
    timestamp = _to_base36(int(time.time() * 1000))[-4:]
    suffix = "".join(random.choices(string.digits + string.ascii_uppercase, k=3))
    return f"{prefix}-{timestamp}{suffix}"
