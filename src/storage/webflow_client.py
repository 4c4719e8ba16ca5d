# src/storage/webflow_client.py
from typing import Any, Dict, List, Optional, Sequence

import httpx
from loguru import logger

from src.clients.base_client import BaseClient
from src.config.settings import AppSettings
from src.models.collection import CollectionField, CollectionItem
from src.models.field_map import FieldMap
from src.models.team import TeamRecord
from src.utils.misc_utils import chunked, slugify

# Webflow caps both page size and publish batch size at 100
PAGE_SIZE = 100
PUBLISH_BATCH_SIZE = 100


class WebflowClient(BaseClient):
    """Reads and writes the items of one Webflow CMS collection."""

    service_name = "Webflow"

    def __init__(
        self,
        api_token: str,
        collection_id: str,
        base_url: str = "https://api.webflow.com/v2",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(
            client=client,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_token}",
                "accept": "application/json",
            },
        )
        self.collection_id = collection_id
        self.base_url = str(base_url).rstrip("/")

    @classmethod
    def from_settings(
        cls, settings: AppSettings, client: Optional[httpx.AsyncClient] = None
    ) -> "WebflowClient":
        return cls(
            api_token=settings.webflow_api_token,
            collection_id=settings.webflow_collection_id,
            base_url=str(settings.webflow_api_base_url),
            client=client,
            timeout=settings.request_timeout_seconds,
        )

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}/collections/{self.collection_id}"

    async def get_collection_fields(self) -> List[CollectionField]:
        """Fetches the collection schema."""
        response = await self._make_request("GET", self.collection_url)
        fields = [CollectionField.model_validate(f) for f in response.json().get("fields", [])]
        logger.info(f"Collection has {len(fields)} fields")
        return fields

    async def list_items(self) -> List[CollectionItem]:
        """Fetches every item of the collection, following pagination."""
        items: List[CollectionItem] = []
        offset = 0
        while True:
            response = await self._make_request(
                "GET",
                f"{self.collection_url}/items",
                params={"offset": offset, "limit": PAGE_SIZE},
            )
            payload = response.json()
            page = payload.get("items") or []
            items.extend(CollectionItem.model_validate(item) for item in page)

            total = (payload.get("pagination") or {}).get("total")
            offset += len(page)
            if not page or total is None or offset >= total:
                break

        logger.debug(f"Listed {len(items)} collection items")
        return items

    async def create_item(self, team: TeamRecord, field_map: FieldMap) -> CollectionItem:
        field_data: Dict[str, Any] = {"name": team.name, "slug": slugify(team.name)}
        field_data.update(field_map.to_field_data(team))
        response = await self._make_request(
            "POST", f"{self.collection_url}/items", json_data={"fieldData": field_data}
        )
        return CollectionItem.model_validate(response.json())

    async def update_item(
        self, item_id: str, team: TeamRecord, field_map: FieldMap
    ) -> CollectionItem:
        response = await self._make_request(
            "PATCH",
            f"{self.collection_url}/items/{item_id}",
            json_data={"fieldData": field_map.to_field_data(team)},
        )
        return CollectionItem.model_validate(response.json())

    async def publish_items(self, item_ids: Sequence[str]) -> int:
        """Publishes the given items in batches; returns how many were sent."""
        if not item_ids:
            logger.info("No items to publish")
            return 0

        for batch in chunked(list(item_ids), PUBLISH_BATCH_SIZE):
            await self._make_request(
                "POST",
                f"{self.collection_url}/items/publish",
                json_data={"itemIds": batch},
            )
            logger.debug(f"Published batch of {len(batch)} items")
        return len(item_ids)

    async def publish_all(self) -> int:
        items = await self.list_items()
        return await self.publish_items([item.id for item in items])
