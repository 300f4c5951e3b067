"""
Page cache invalidation hook.
Fire-and-forget: failures are logged and discarded, never raised.
"""
import logging
from typing import Callable, List

import requests

from faculty_appraisal.core.config import settings
from faculty_appraisal.models.evaluation import EvaluatorRole

logger = logging.getLogger(__name__)


def review_page_path(evaluator_role: EvaluatorRole, appraisal_id: int) -> str:
    prefix = "dean" if evaluator_role == EvaluatorRole.DEAN else "hod"
    return f"/{prefix}/reviews/{appraisal_id}"


def _post_revalidate(path: str) -> None:
    if not settings.revalidate_url:
        logger.debug(f"Cache invalidation skipped (no REVALIDATE_URL): {path}")
        return
    response = requests.post(
        settings.revalidate_url,
        json={"path": path},
        timeout=settings.revalidate_timeout_seconds,
    )
    response.raise_for_status()


# Hooks are swappable so tests and embedding apps can observe invalidations
_hooks: List[Callable[[str], None]] = [_post_revalidate]


def register_hook(hook: Callable[[str], None]) -> None:
    _hooks.append(hook)


def unregister_hook(hook: Callable[[str], None]) -> None:
    if hook in _hooks:
        _hooks.remove(hook)


def invalidate_path(path: str) -> None:
    for hook in list(_hooks):
        try:
            hook(path)
        except Exception as e:
            logger.warning(f"Cache invalidation failed for {path}: {e}")
