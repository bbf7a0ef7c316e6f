"""Category suggestion HTTP client for imported statement descriptions"""

import logging
import httpx
from typing import Dict, List, Optional, Tuple
from finance_gateway.domain.exceptions import ClassificationError
from finance_gateway.config import settings
from finance_gateway.infrastructure.observability.metrics import classifier_batch_failures_counter


class ClassifierClient:
    """Client for the external text classification service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.classifier_api_base
        self.timeout = timeout or settings.classifier_timeout_seconds
        self.transport = transport

    async def suggest(self, descriptions: List[str], categories: List[str]) -> Dict[str, str]:
        """
        Map each description to one of `categories`.

        Descriptions the service can't place are simply absent from the result.

        Raises:
            ClassificationError: On timeout, HTTP errors, or invalid response
        """
        if not descriptions or not categories:
            return {}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/classify",
                    json={"descriptions": descriptions, "categories": categories},
                )
                response.raise_for_status()
                data = response.json()

                allowed = set(categories)
                return {
                    str(description): category
                    for description, category in data["suggestions"].items()
                    if category in allowed
                }

            except httpx.TimeoutException as e:
                raise ClassificationError(f"Classifier timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ClassificationError(f"Classifier error: {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise ClassificationError(f"Classifier unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise ClassificationError(f"Invalid classifier response: {e}") from e

    async def suggest_in_batches(
        self,
        descriptions: List[str],
        categories: List[str],
        batch_size: int | None = None,
    ) -> Tuple[Dict[str, str], int]:
        """
        Classify descriptions in fixed-size batches.

        A failed batch is logged and skipped; later batches still run.

        Returns:
            (merged suggestions, number of failed batches)
        """
        batch_size = max(batch_size or settings.classifier_batch_size, 1)
        suggestions: Dict[str, str] = {}
        failed_batches = 0

        for start in range(0, len(descriptions), batch_size):
            batch = descriptions[start:start + batch_size]
            try:
                suggestions.update(await self.suggest(batch, categories))
            except ClassificationError as e:
                failed_batches += 1
                classifier_batch_failures_counter.inc()
                logging.warning(
                    f"Category suggestion batch failed: {e}",
                    extra={"batch_start": start, "batch_size": len(batch), "total": len(descriptions)},
                )

        return suggestions, failed_batches
