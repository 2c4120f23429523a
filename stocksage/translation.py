"""Text translation with memoization and an order-preserving batch call.

The service wraps the Azure Translator v3 ``/translate`` endpoint. Results
are cached per ``(text, source, target)``; the cache is unbounded unless
``max_entries`` is set, and ``clear_cache`` is the only other eviction path.
"""

import asyncio
import logging
import threading
from collections import OrderedDict
from typing import Optional

import httpx

from stocksage.errors import (
    ProviderTranslationError,
    TranslationError,
    TranslationFailed,
    TranslationHTTPError,
)
from stocksage.usage import TranslationLedger


logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.cognitive.microsofttranslator.com"
API_VERSION = "3.0"

CacheKey = tuple[str, str, str]


class TranslationCache:
    """Thread-safe map of ``(text, source, target)`` to translated text.

    With ``max_entries`` set, the least recently used entry is evicted once
    the bound is exceeded.
    """

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, str] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[str]:
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            return value

    def put(self, key: CacheKey, value: str) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TranslationService:
    """Translator client holding its own cache and cost ledger.

    Callers receive a handle to a service instance; nothing is global.
    """

    def __init__(
        self,
        api_key: str,
        region: Optional[str] = "eastus",
        client: Optional[httpx.AsyncClient] = None,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        cache: Optional[TranslationCache] = None,
        ledger: Optional[TranslationLedger] = None,
    ):
        """Initialize the service.

        Args:
            api_key: Translator subscription key.
            region: Subscription region header; omitted when empty.
            client: Shared async HTTP client. One is created if omitted.
            endpoint: Translator root URL.
            timeout: Per-request timeout in seconds.
            cache: Translation cache. A new unbounded cache if omitted.
            ledger: Character ledger. A new one at default pricing if omitted.
        """
        self.api_key = api_key
        self.region = region
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else TranslationCache()
        self.ledger = ledger if ledger is not None else TranslationLedger()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Content-Type": "application/json",
        }
        if self.region:
            headers["Ocp-Apim-Subscription-Region"] = self.region
        return headers

    async def translate(self, text: str, source: str = "en", target: str = "en") -> str:
        """Translate one text.

        Args:
            text: Text to translate.
            source: Source language code.
            target: Target language code.

        Returns:
            Translated text; ``text`` itself when source equals target.

        Raises:
            ProviderTranslationError: If the translator returned an error envelope.
            TranslationHTTPError: On any other non-200 status.
            TranslationFailed: On transport or decoding failures.
        """
        if source == target:
            return text

        key = (text, source, target)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        url = f"{self.endpoint}/translate"
        params = {"api-version": API_VERSION, "from": source, "to": target}
        try:
            response = await self._client.post(
                url,
                params=params,
                headers=self._headers(),
                json=[{"text": text}],
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise TranslationFailed(e) from e

        if response.status_code != 200:
            envelope = _error_envelope(response)
            if envelope is not None:
                raise ProviderTranslationError(*envelope)
            raise TranslationHTTPError(response.status_code)

        try:
            translated = _first_translation(response.json())
        except ValueError as e:
            logger.debug("Raw translator response: %s", response.text)
            raise TranslationFailed(e) from e

        cost = self.ledger.record(len(text))
        logger.info(
            "Translated %d chars %s->%s ($%.6f); %s",
            len(text), source, target, cost, self.ledger.summary(),
        )
        self.cache.put(key, translated)
        return translated

    async def batch_translate(
        self,
        texts: list[str],
        source: str = "en",
        target: str = "en",
        keep_source_on_error: bool = False,
    ) -> list[str]:
        """Translate several texts concurrently.

        Output index ``i`` always holds the translation of ``texts[i]``,
        whatever order the underlying requests complete in. Repeated texts
        are requested once.

        Args:
            texts: Texts to translate.
            source: Source language code.
            target: Target language code.
            keep_source_on_error: Keep the source text for items that fail
                instead of raising.

        Returns:
            Translations in input order.

        Raises:
            TranslationError: The first failure, unless
                ``keep_source_on_error`` is set. Outstanding requests are
                cancelled.
        """
        if not texts:
            return []

        async def run(index: int, text: str) -> tuple[int, str]:
            try:
                return index, await self.translate(text, source, target)
            except TranslationError as e:
                if not keep_source_on_error:
                    raise
                logger.warning("Keeping source text for %r: %s", text, e)
                return index, text

        unique = list(dict.fromkeys(texts))
        tasks = [asyncio.ensure_future(run(i, text)) for i, text in enumerate(unique)]
        results: list[Optional[str]] = [None] * len(unique)
        try:
            for finished in asyncio.as_completed(tasks):
                index, translated = await finished
                results[index] = translated
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        translations = {
            text: r if r is not None else text for text, r in zip(unique, results)
        }
        return [translations[text] for text in texts]

    def clear_cache(self) -> None:
        self.cache.clear()

    def usage_summary(self) -> str:
        return self.ledger.summary()


def _error_envelope(response: httpx.Response) -> Optional[tuple[int, str]]:
    # {"error": {"code": 401000, "message": "..."}}
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict) or "message" not in error:
        return None
    try:
        code = int(error.get("code", response.status_code))
    except (TypeError, ValueError):
        code = response.status_code
    return code, str(error["message"])


def _first_translation(body: object) -> str:
    """Return the first translated text of a ``/translate`` response."""
    if not isinstance(body, list) or not body or not isinstance(body[0], dict):
        raise ValueError("No translation result available")
    translations = body[0].get("translations") or []
    if not translations or not isinstance(translations[0], dict) or "text" not in translations[0]:
        raise ValueError("No translation result available")
    return str(translations[0]["text"])
