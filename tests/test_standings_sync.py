import json

import httpx
import pytest
from conftest import make_page, make_table, standings_rows

from src.clients.base_client import AuthenticationError, RateLimitError
from src.models.enums import SyncAction
from src.scrapers.standings_scraper import StandingsScraper, extract_standings
from src.storage.webflow_client import WebflowClient
from src.sync.standings_sync import StandingsNotFoundError, run_sync

SCHEMA = {
    "fields": [
        {"displayName": "Name", "slug": "name"},
        {"displayName": "Position", "slug": "position"},
        {"displayName": "Points", "slug": "points"},
    ]
}

PAGE = make_page(
    make_table(standings_rows(["Lions", "Tigers"])),
    make_table(standings_rows(["Falcons", "Hawks", "Owls"])),
    make_table(
        [[str(d), "Falcons", "3-1", "2-2", "TBC", "x", "14/2", "1-0", "0-4", "5-5"] for d in range(1, 4)],
        header=False,
    ),
)


class FakeServices:
    """Serves the standings page and a small in-memory Webflow collection."""

    def __init__(self, items, page=PAGE, fail_names=(), status_override=None, update_status=None):
        self.items = [dict(item) for item in items]
        self.page = page
        self.fail_names = set(fail_names)
        self.status_override = status_override
        self.update_status = update_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_override:
            return httpx.Response(self.status_override, json={"message": "nope"})
        if request.url.host == "example.com":
            return httpx.Response(200, text=self.page)

        path = request.url.path
        if request.method == "GET" and path.endswith("/collections/col123"):
            return httpx.Response(200, json=SCHEMA)
        if request.method == "GET" and path.endswith("/items"):
            return httpx.Response(
                200,
                json={"items": self.items, "pagination": {"offset": 0, "limit": 100, "total": len(self.items)}},
            )
        if request.method == "POST" and path.endswith("/items/publish"):
            return httpx.Response(202, json={"publishedItemIds": json.loads(request.content)["itemIds"]})

        field_data = json.loads(request.content)["fieldData"]
        if request.method == "POST" and path.endswith("/items"):
            if field_data["name"] in self.fail_names:
                return httpx.Response(400, json={"message": "Validation Error"})
            item = {"id": f"new-{len(self.items)}", "fieldData": field_data}
            self.items.append(item)
            return httpx.Response(202, json=item)
        if request.method == "PATCH":
            if self.update_status:
                return httpx.Response(self.update_status, json={"message": "busy"})
            item_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"id": item_id, "fieldData": field_data})
        return httpx.Response(404)

    def writes(self):
        return [
            r for r in self.requests
            if r.method in ("POST", "PATCH") and not r.url.path.endswith("/publish")
        ]


def build_clients(services, settings):
    http = httpx.AsyncClient(transport=httpx.MockTransport(services))
    scraper = StandingsScraper(str(settings.standings_url), client=http)
    store = WebflowClient.from_settings(settings, client=http)
    return scraper, store


async def no_sleep(seconds):
    return None


EXISTING = [
    {"id": "falcons-id", "fieldData": {"name": "Falcons"}},
    {"id": "hawks-id", "fieldData": {"name": "hawks"}},
]


@pytest.mark.asyncio
async def test_updates_existing_and_creates_missing(settings):
    services = FakeServices(EXISTING)
    scraper, store = build_clients(services, settings)

    summary = await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    assert summary.table_index == 2
    assert summary.table_score == 2
    assert [r.action for r in summary.results] == [
        SyncAction.UPDATED,
        SyncAction.UPDATED,
        SyncAction.CREATED,
    ]
    assert summary.results[1].item_id == "hawks-id"
    assert (summary.created, summary.updated, summary.failed) == (1, 2, 0)

    patch = next(r for r in services.requests if r.method == "PATCH")
    assert patch.url.path.endswith("/items/falcons-id")
    assert json.loads(patch.content) == {"fieldData": {"position": 1, "points": 5}}

    publish = [r for r in services.requests if r.url.path.endswith("/publish")]
    assert len(publish) == 1
    assert json.loads(publish[0].content)["itemIds"] == ["falcons-id", "hawks-id", "new-2"]
    assert summary.published == 3


@pytest.mark.asyncio
async def test_pauses_between_writes(settings):
    services = FakeServices(EXISTING)
    scraper, store = build_clients(services, settings)
    pauses = []

    async def record_sleep(seconds):
        pauses.append(seconds)

    await run_sync(settings, scraper=scraper, store=store, sleep=record_sleep)
    assert pauses == [settings.write_delay_seconds] * 2


@pytest.mark.asyncio
async def test_no_known_teams_raises_not_found(settings):
    services = FakeServices([{"id": "x", "fieldData": {"name": "Penguins"}}])
    scraper, store = build_clients(services, settings)

    with pytest.raises(StandingsNotFoundError):
        await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)
    assert services.writes() == []


@pytest.mark.asyncio
async def test_reference_names_from_settings_allow_first_run(settings):
    settings = settings.model_copy(update={"reference_team_names": ["Owls"]})
    services = FakeServices([])
    scraper, store = build_clients(services, settings)

    summary = await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    assert summary.created == 3
    assert summary.table_score == 1


@pytest.mark.asyncio
async def test_dry_run_writes_nothing(settings):
    settings = settings.model_copy(update={"dry_run": True})
    services = FakeServices(EXISTING)
    scraper, store = build_clients(services, settings)

    summary = await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    assert summary.dry_run
    assert all(r.action == SyncAction.SKIPPED for r in summary.results)
    assert summary.results[0].item_id == "falcons-id"
    assert [r.method for r in services.requests].count("GET") == 3
    assert all(r.method == "GET" for r in services.requests)


@pytest.mark.asyncio
async def test_failed_create_is_counted_and_sync_continues(settings):
    services = FakeServices(EXISTING, fail_names={"Owls"})
    scraper, store = build_clients(services, settings)

    summary = await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    assert summary.failed == 1
    assert summary.results[2].error
    assert summary.published == 2


@pytest.mark.asyncio
async def test_authentication_failure_is_fatal(settings):
    services = FakeServices(EXISTING, status_override=403)
    scraper, store = build_clients(services, settings)

    with pytest.raises(AuthenticationError):
        await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)


@pytest.mark.asyncio
async def test_repeated_name_updates_the_item_created_earlier(settings):
    page = make_page(make_table(standings_rows(["Falcons", "Owls", "Owls"])))
    services = FakeServices(EXISTING, page=page)
    scraper, store = build_clients(services, settings)

    summary = await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    assert [r.action for r in summary.results] == [
        SyncAction.UPDATED,
        SyncAction.CREATED,
        SyncAction.UPDATED,
    ]
    assert summary.results[2].item_id == summary.results[1].item_id


def test_extract_standings_without_tables():
    assert extract_standings("<html><p>Season starts soon</p></html>", ["Falcons"]) is None


@pytest.mark.asyncio
async def test_rate_limit_after_retries_stops_the_sync(settings, no_retry_wait):
    services = FakeServices(EXISTING, update_status=429)
    scraper, store = build_clients(services, settings)

    with pytest.raises(RateLimitError):
        await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    writes = services.writes()
    assert len(writes) == 4
    assert all(r.url.path.endswith("/items/falcons-id") for r in writes)
    assert not any(r.url.path.endswith("/publish") for r in services.requests)


@pytest.mark.asyncio
async def test_server_error_after_retries_stops_the_sync(settings, no_retry_wait):
    services = FakeServices(EXISTING, update_status=503)
    scraper, store = build_clients(services, settings)

    with pytest.raises(httpx.HTTPStatusError):
        await run_sync(settings, scraper=scraper, store=store, sleep=no_sleep)

    assert len(services.writes()) == 4
