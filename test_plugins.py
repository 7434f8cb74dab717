import pytest
from playwright.async_api import Error as PlaywrightError

from conftest import FakeElement, FakeHttpSession, FakeResponse
from plugins.devpost import DevpostAdapter
from plugins.devpost import adapter as devpost
from plugins.devpost_api import DevpostApiAdapter, DevpostApiSession
from plugins.mlh import MlhAdapter
from plugins.mlh import adapter as mlh
from scout import plugin_loader
from scout.config import Settings
from scout.errors import UnknownSourceError
from scout.extraction import TwoPhaseExtractor
from scout.infra.http import HttpClient
from scout.infra.soup import parse_html
from scout.models import EventDraft


# --------------------------------------------------------------------------- #
# Registry
def test_discovers_all_sources():
    plugin_loader.refresh_registry()
    available = plugin_loader.list_available()
    assert available["devpost"] is DevpostAdapter
    assert available["devpost_api"] is DevpostApiAdapter
    assert available["mlh"] is MlhAdapter


def test_lookup_is_case_insensitive():
    assert plugin_loader.get(" MLH ") is MlhAdapter
    with pytest.raises(UnknownSourceError):
        plugin_loader.get("eventbrite")


# --------------------------------------------------------------------------- #
# Devpost (rendered)
def test_devpost_listing_urls():
    adapter = DevpostAdapter()
    assert adapter.build_listing_url("ai ml", 2) == "https://devpost.com/hackathons?search=ai+ml&page=2"
    assert adapter.build_listing_url("", 1) == "https://devpost.com/hackathons?page=1"
    assert adapter.filters_keyword_remotely


def devpost_tile(**overrides):
    children = {
        devpost.TILE_TITLE: FakeElement(" AI Jam "),
        devpost.TILE_LINK: FakeElement(attrs={"href": "/hackathons/ai-jam"}),
        devpost.TILE_LOCATION: FakeElement("Online"),
        devpost.TILE_DATE: FakeElement("Jan 1 - Feb 1, 2026"),
        devpost.TILE_IMAGE: FakeElement(attrs={"src": "https://img.test/ai.png"}),
    }
    children.update(overrides)
    return FakeElement(children={k: v for k, v in children.items() if v is not None})


async def test_devpost_tile_fields():
    fields = await DevpostAdapter().extract_basic_fields(devpost_tile())

    assert fields == {
        "title": "AI Jam",
        "url": "https://devpost.com/hackathons/ai-jam",
        "location": "Online",
        "date": "Jan 1 - Feb 1, 2026",
        "image_url": "https://img.test/ai.png",
    }


async def test_devpost_tile_missing_title_gets_sentinel():
    fields = await DevpostAdapter().extract_basic_fields(devpost_tile(**{devpost.TILE_TITLE: None}))
    assert fields["title"] == "Unknown"
    assert fields["location"] == "Online"


async def test_devpost_retries_detached_tiles():
    detached = PlaywrightError("Element is not attached to the DOM")
    tile = devpost_tile()
    tile.failures = [detached, detached]

    fields = await DevpostAdapter().extract_basic_fields(tile)

    assert fields["title"] == "AI Jam"


async def test_devpost_gives_up_on_persistently_detached_field():
    detached = PlaywrightError("element is detached from document")
    tile = devpost_tile()
    tile.failures = [detached] * 3

    fields = await DevpostAdapter().extract_basic_fields(tile)

    assert fields["title"] == "Unknown"
    assert fields["location"] == "Online"


async def test_devpost_detail_fields():
    page = FakeElement(
        children={
            'meta[name="description"], meta[property="og:description"]': FakeElement(attrs={"content": "Build AI"}),
            devpost.DETAIL_DESCRIPTION: FakeElement("About", html="<h2>About</h2>"),
            devpost.DETAIL_JUDGES: FakeElement("Ada Lovelace"),
        }
    )

    fields = await DevpostAdapter().extract_detail_fields(page)

    assert fields == {
        "blurb": "Build AI",
        "description": "<h2>About</h2>",
        "requirements": "",
        "judging_criteria": "",
        "judges": "Ada Lovelace",
    }


# --------------------------------------------------------------------------- #
# Devpost API
API_ITEM = {
    "title": "Green Hack",
    "url": "https://green.devpost.com/",
    "thumbnail_url": "//d112y698adiu2z.cloudfront.net/green.png",
    "displayed_location": {"icon": "globe", "location": "Online"},
    "submission_period_dates": "Mar 01 - Apr 15, 2026",
    "organization_name": "Green Org",
    "prize_amount": "$<span data-currency-value>10,000</span>",
    "registrations_count": "1520",
    "featured": True,
    "open_state": "open",
    "short_description": "",
    "summary": "Climate tooling",
}


async def test_api_listing_nodes():
    adapter = DevpostApiAdapter()
    assert adapter.page_delay == 1.0
    assert adapter.build_listing_url("ignored", 3) == "https://devpost.com/api/hackathons?page=3"
    assert await adapter.list_item_nodes({"hackathons": [API_ITEM, "junk"]}) == [API_ITEM]
    assert await adapter.list_item_nodes({"meta": {}}) == []
    assert await adapter.list_item_nodes(["not", "a", "mapping"]) == []


async def test_api_item_fields():
    fields = await DevpostApiAdapter().extract_basic_fields(API_ITEM)

    assert fields["title"] == "Green Hack"
    assert fields["image_url"] == "https://d112y698adiu2z.cloudfront.net/green.png"
    assert fields["location"] == "Online"
    assert fields["date"] == "Mar 01 - Apr 15, 2026"
    assert fields["organization"] == "Green Org"
    assert fields["prize_amount"] == "$10,000"
    assert fields["registrations_count"] == 1520
    assert fields["featured"] is True
    assert fields["blurb"] == "Climate tooling"
    assert fields["judges"] == ""


async def test_api_item_fallbacks():
    item = {"start_a": "Jan 5", "end_a": "Jan 7", "location": "Paris", "judges": [{"name": "Ada"}, {"name": "Alan"}]}

    fields = await DevpostApiAdapter().extract_basic_fields(item)

    assert fields["title"] == "Unknown Title"
    assert fields["date"] == "Jan 5 - Jan 7"
    assert fields["location"] == "Paris"
    assert fields["judges"] == "Ada, Alan"


async def test_api_numeric_title_becomes_text():
    drafts = await TwoPhaseExtractor().phase_one(
        DevpostApiAdapter(),
        [{"title": 2026, "url": "https://a.test", "open_state": 1}, {"title": "Ok", "url": "https://b.test"}],
    )

    assert [d.title for d in drafts] == ["2026", "Ok"]
    assert drafts[0].open_state == "1"


def test_api_detail_only_when_something_is_missing():
    adapter = DevpostApiAdapter()
    complete = EventDraft(url="https://x.test", blurb="b", requirements="r", judges="j", judging_criteria="c")
    assert not adapter.needs_detail(complete)
    assert adapter.needs_detail(complete.model_copy(update={"judges": ""}))
    assert not adapter.needs_detail(EventDraft(blurb=""))


async def test_api_detail_page_fields():
    soup = parse_html(
        """
        <html><head><meta name="description" content="Save the planet"></head>
        <body><main>
          <div id="challenge-description"><p>Long <b>story</b></p></div>
          <div id="challenge-requirements">Ship a demo</div>
          <div class="judge-list">Ada, Alan</div>
        </main></body></html>
        """
    )

    fields = await DevpostApiAdapter().extract_detail_fields(soup)

    assert fields["blurb"] == "Save the planet"
    assert fields["description"] == "<p>Long <b>story</b></p>"
    assert fields["requirements"] == "Ship a demo"
    assert fields["judges"] == "Ada, Alan"
    assert fields["judging_criteria"] == ""


async def test_api_session_fetches_json_and_html(sleep):
    transport = FakeHttpSession(
        [
            FakeResponse(200, body={"hackathons": [API_ITEM]}),
            FakeResponse(200, text="<html><body><div id='judges'>Grace</div></body></html>"),
        ]
    )
    session = DevpostApiSession(Settings().http, client=HttpClient(session=transport, sleep=sleep))

    async with session:
        listing = await session.open_listing("https://devpost.com/api/hackathons?page=1")
        detail = await session.open_detail("https://green.devpost.com/")

    assert listing["hackathons"][0]["title"] == "Green Hack"
    assert detail.select_one("#judges").get_text() == "Grace"


# --------------------------------------------------------------------------- #
# MLH
def test_mlh_has_a_single_season_page():
    adapter = MlhAdapter()
    assert adapter.build_listing_url("", 1) == "https://mlh.io/seasons/2026/events"
    assert adapter.build_listing_url("", 2) is None
    assert MlhAdapter(season=2025).build_listing_url("", 1) == "https://mlh.io/seasons/2025/events"


def test_mlh_season_from_settings():
    settings = Settings()
    settings.crawl.mlh_season = 2027
    assert MlhAdapter(settings=settings).season == 2027


async def test_mlh_card_fields():
    card = FakeElement(
        children={
            mlh.CARD_TITLE: FakeElement("HackMIT"),
            mlh.CARD_LINK: FakeElement(attrs={"href": "https://hackmit.org"}),
            mlh.CARD_LOCATION: FakeElement("Cambridge, MA"),
            mlh.CARD_IMAGE: FakeElement(attrs={"src": "https://img.test/mit.png"}),
        }
    )

    fields = await MlhAdapter().extract_basic_fields(card)

    assert fields == {
        "title": "HackMIT",
        "url": "https://hackmit.org",
        "location": "Cambridge, MA",
        "date": "",
        "image_url": "https://img.test/mit.png",
    }


async def test_mlh_detail_prefers_metadata_and_content_block():
    text = "word " * 60
    soup = parse_html(
        f"""
        <html><head><meta property="og:description" content="The biggest hackathon"></head>
        <body><nav>menu</nav><article><p>{text}</p></article></body></html>
        """
    )

    fields = await MlhAdapter().extract_detail_fields(soup)

    assert fields["blurb"] == "The biggest hackathon"
    assert fields["description"].startswith("<p>word")


def test_mlh_description_falls_back_to_truncated_body():
    body = "<div>" + "x" * 4000 + "</div>"
    soup = parse_html(f"<html><body><main>short</main>{body}</body></html>")

    description = mlh.describe(soup)

    assert len(description) == mlh.BODY_LIMIT + 3
    assert description.endswith("...")
    assert description.startswith("<main>short</main>")


def test_mlh_description_of_short_body_is_kept_whole():
    assert mlh.describe(parse_html("<html><body><p>tiny</p></body></html>")) == "<p>tiny</p>"


def test_api_page_delay_from_settings():
    settings = Settings.model_validate({"crawl": {"api_page_delay": 0}})
    assert DevpostApiAdapter(settings=settings).page_delay == 0
    assert DevpostAdapter().page_delay == 0.0
