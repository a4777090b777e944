"""
TLE Store

Fetches, parses and caches two-line element sets per catalogued object.

Resolution order for ``fetch_elements``:
1. Fresh cache entry (younger than the cache duration) - no I/O.
2. Network fetch from the orbital-element provider (plain-text TLE format,
   bounded timeout).
3. On fetch/parse failure: the stale cached copy if one exists, otherwise the
   bundled fallback table. Either is re-stamped so that a new network attempt
   happens once the retry grace period has elapsed.
4. Nothing found: ``None`` (the object is unavailable for now).

The cache is the only shared mutable state of the tracker. Writes are
idempotent and last-write-wins, so concurrent fetches for the same ID are
harmless.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Mapping, Optional

import requests

from config import FALLBACK_TLES, config
from orbit_tracker.exceptions import MalformedTLEError, TLEUnavailableError
from orbit_tracker.models import TwoLineElement

logger = logging.getLogger(__name__)

NO_DATA_MARKER = "No GP data found"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_tle_text(text: str, norad_id: int) -> TwoLineElement:
    """
    Parse a provider response into a two-line element set.

    Accepts either a bare 2-line record or a 3-line record with a leading
    name line. ``fetched_at`` is the parse time; callers re-stamp it.

    Args:
        text: Raw response body
        norad_id: Catalog ID the text was requested for

    Returns:
        TwoLineElement with ``fetched_at`` set to now

    Raises:
        MalformedTLEError: If the text does not contain a usable record
    """
    if text is None or NO_DATA_MARKER in text:
        raise MalformedTLEError(f"No element data in response for NORAD {norad_id}")

    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        raise MalformedTLEError(
            f"Expected at least 2 TLE lines for NORAD {norad_id}, got {len(lines)}"
        )

    if len(lines) >= 3 and not lines[0].startswith("1 "):
        name, line1, line2 = lines[0], lines[1], lines[2]
    elif lines[0].startswith("1 "):
        name, line1, line2 = f"SAT {norad_id}", lines[0], lines[1]
    else:
        raise MalformedTLEError(f"Line 1 marker missing in response for NORAD {norad_id}")

    if not line1.startswith("1 ") or not line2.startswith("2 "):
        raise MalformedTLEError(f"Line markers out of order in response for NORAD {norad_id}")

    return TwoLineElement(
        catalog_id=norad_id,
        line1=line1,
        line2=line2,
        name=name,
        fetched_at=utc_now(),
    )


class TLECache:
    """Process-wide key -> TLE map with last-write-wins semantics."""

    def __init__(self):
        self._entries: Dict[int, TwoLineElement] = {}
        self._lock = threading.Lock()

    def get(self, norad_id: int) -> Optional[TwoLineElement]:
        with self._lock:
            return self._entries.get(norad_id)

    def put(self, tle: TwoLineElement) -> None:
        with self._lock:
            self._entries[tle.catalog_id] = tle

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> Dict[int, TwoLineElement]:
        with self._lock:
            return dict(self._entries)

    def __contains__(self, norad_id: int) -> bool:
        with self._lock:
            return norad_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TLEStore:
    """
    Element-set source with caching and a static fallback.

    Args:
        cache: Shared TLE cache (a private one is created if omitted)
        session: requests session used for provider calls
        fallback: Mapping of catalog ID -> {name, line1, line2}
        base_url: Provider endpoint, queried with ``CATNR`` and ``FORMAT``
        timeout: Network timeout in seconds
        cache_duration: Age after which an entry is re-fetched
        retry_grace: Delay before a fallback/stale entry is retried
        clock: Callable returning the current aware UTC datetime
    """

    def __init__(
        self,
        cache: Optional[TLECache] = None,
        session: Optional[requests.Session] = None,
        fallback: Optional[Mapping[int, Mapping[str, str]]] = None,
        base_url: str = config.CELESTRAK_BASE,
        timeout: float = config.TLE_FETCH_TIMEOUT_S,
        cache_duration: timedelta = config.TLE_CACHE_DURATION,
        retry_grace: timedelta = config.TLE_RETRY_GRACE,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.cache = cache if cache is not None else TLECache()
        self.session = session or requests.Session()
        self.fallback = FALLBACK_TLES if fallback is None else fallback
        self.base_url = base_url
        self.timeout = timeout
        self.cache_duration = cache_duration
        self.retry_grace = retry_grace
        self.clock = clock

    def fetch_elements(self, norad_id: int) -> Optional[TwoLineElement]:
        """
        Return the element set for ``norad_id``, or None if unavailable.

        Never raises for network or data problems; those fall through to the
        stale cache entry and then the fallback table.
        """
        _validate_norad_id(norad_id)
        now = self.clock()

        cached = self.cache.get(norad_id)
        if cached is not None and not cached.is_stale(now, self.cache_duration):
            return cached

        try:
            tle = self._fetch_from_network(norad_id, now)
        except (requests.RequestException, MalformedTLEError) as e:
            logger.warning(f"Failed to fetch TLE for NORAD {norad_id}: {e}")
        else:
            self.cache.put(tle)
            logger.debug(f"Fetched TLE for NORAD {norad_id} ({tle.name})")
            return tle

        retry_stamp = now - (self.cache_duration - self.retry_grace)

        if cached is not None:
            logger.info(f"Keeping stale TLE for NORAD {norad_id}, retry in {self.retry_grace}")
            tle = cached.model_copy(update={"fetched_at": retry_stamp})
            self.cache.put(tle)
            return tle

        record = self.fallback.get(norad_id)
        if record is not None:
            logger.info(f"Using fallback TLE for NORAD {norad_id}")
            tle = TwoLineElement(
                catalog_id=norad_id,
                line1=record["line1"],
                line2=record["line2"],
                name=record.get("name") or f"SAT {norad_id}",
                fetched_at=retry_stamp,
                source="fallback",
            )
            self.cache.put(tle)
            return tle

        logger.warning(f"No TLE data available for NORAD {norad_id}")
        return None

    def require_elements(self, norad_id: int) -> TwoLineElement:
        """Like ``fetch_elements`` but raises ``TLEUnavailableError``."""
        tle = self.fetch_elements(norad_id)
        if tle is None:
            raise TLEUnavailableError(norad_id)
        return tle

    def prefetch_all(
        self, norad_ids: Iterable[int], max_workers: int = config.PREFETCH_WORKERS
    ) -> Dict[int, Optional[TwoLineElement]]:
        """
        Fetch every ID concurrently. Individual failures never fail the batch.

        Returns:
            Mapping of catalog ID to its element set (None when unavailable)
        """
        ids = list(dict.fromkeys(norad_ids))
        results: Dict[int, Optional[TwoLineElement]] = {}
        if not ids:
            return results

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ids)))) as executor:
            futures = {norad_id: executor.submit(self.fetch_elements, norad_id) for norad_id in ids}
            for norad_id, future in futures.items():
                try:
                    results[norad_id] = future.result()
                except Exception as e:
                    logger.error(f"Prefetch failed for NORAD {norad_id}: {e}")
                    results[norad_id] = None

        available = sum(1 for tle in results.values() if tle is not None)
        logger.debug(f"Prefetched TLEs: {available}/{len(ids)} available")
        return results

    def _fetch_from_network(self, norad_id: int, now: datetime) -> TwoLineElement:
        response = self.session.get(
            self.base_url,
            params={"CATNR": norad_id, "FORMAT": "TLE"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        tle = parse_tle_text(response.text, norad_id)
        return tle.model_copy(update={"fetched_at": now})


def _validate_norad_id(norad_id) -> None:
    if isinstance(norad_id, bool) or not isinstance(norad_id, int) or norad_id <= 0:
        raise ValueError(f"NORAD catalog ID must be a positive integer, got {norad_id!r}")
