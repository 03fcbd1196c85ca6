"""Helpers for checking the published OpSec release version."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import requests
from packaging.version import InvalidVersion, Version

from .logging_utils import get_logger

LOGGER = get_logger("Version")

LATEST_RELEASE_API = "https://api.github.com/repos/aurickk/EDMC-OpSec/releases/latest"
FALLBACK_RELEASE_URL = "https://github.com/aurickk/EDMC-OpSec/releases/latest"
_DEFAULT_USER_AGENT = "EDMC-OpSec/version-check"

try:  # Prefer EDMC's helper to inherit certifi/timeouts.
    from timeout_session import new_session as _edmc_new_session  # type: ignore
except Exception:  # pragma: no cover - running outside EDMC
    _edmc_new_session = None  # type: ignore

try:
    from config import user_agent as _edmc_user_agent  # type: ignore
except Exception:  # pragma: no cover - running outside EDMC
    _edmc_user_agent = None  # type: ignore


@dataclass(frozen=True)
class VersionStatus:
    """Outcome of an upstream release check."""

    current_version: str
    latest_version: Optional[str]
    is_outdated: bool
    checked_at: float
    release_url: str = FALLBACK_RELEASE_URL
    error: Optional[str] = None

    @property
    def update_available(self) -> bool:
        return self.is_outdated and self.latest_version is not None


def evaluate_version_status(current_version: str, timeout: float = 2.0) -> VersionStatus:
    """Fetch the latest GitHub release and compare against the running version."""

    checked_at = time.time()
    latest_version: Optional[str] = None
    release_url = FALLBACK_RELEASE_URL
    error: Optional[str] = None
    try:
        payload = _request_latest_release(timeout=timeout)
        latest_version = _normalise_tag(payload.get("tag_name") or payload.get("name"))
        release_url = str(payload.get("html_url") or FALLBACK_RELEASE_URL)
    except RuntimeError as exc:
        error = str(exc)
        LOGGER.debug("Update check failed: %s", exc)
    is_outdated = False
    if latest_version:
        is_outdated = _compare_versions(current_version, latest_version) < 0
        if is_outdated:
            LOGGER.info("Update available: %s -> %s (%s)", current_version, latest_version, release_url)
        else:
            LOGGER.debug("Plugin is up to date (%s)", current_version)
    return VersionStatus(
        current_version=current_version,
        latest_version=latest_version,
        is_outdated=is_outdated,
        checked_at=checked_at,
        release_url=release_url,
        error=error,
    )


def _normalise_tag(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    tag = raw.strip()
    if tag[:1] in ("v", "V"):
        tag = tag[1:]
    return tag or None


def _request_latest_release(*, timeout: float) -> dict[str, Any]:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": _build_user_agent(),
    }
    session = _create_http_session(max(int(timeout), 1))
    try:
        response = session.get(LATEST_RELEASE_API, headers=headers, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as exc:
        raise RuntimeError(f"GitHub request failed: {exc}") from exc
    except ValueError as exc:
        raise RuntimeError(f"Unable to parse GitHub response: {exc}") from exc
    finally:
        session.close()
    if not isinstance(payload, dict):
        raise RuntimeError("Unexpected GitHub response shape")
    return payload


def _create_http_session(timeout: int):
    if _edmc_new_session is not None:
        try:
            session = _edmc_new_session(timeout=timeout)
            session.headers.setdefault("User-Agent", _build_user_agent())
            return session
        except Exception:
            pass
    session = requests.Session()
    session.headers["User-Agent"] = _build_user_agent()
    return session


def _build_user_agent() -> str:
    base = _resolve_edmc_user_agent()
    if base:
        return f"{base} {_DEFAULT_USER_AGENT}"
    return _DEFAULT_USER_AGENT


def _resolve_edmc_user_agent() -> Optional[str]:
    if _edmc_user_agent is None:
        return None
    try:
        return _edmc_user_agent() if callable(_edmc_user_agent) else str(_edmc_user_agent)
    except Exception:
        return None


def _compare_versions(current: str, latest: str) -> int:
    try:
        current_version = Version(current)
        latest_version = Version(latest)
    except InvalidVersion:
        # Unparseable tags: any difference counts as an update.
        return 0 if current == latest else -1
    if current_version < latest_version:
        return -1
    if current_version > latest_version:
        return 1
    return 0
