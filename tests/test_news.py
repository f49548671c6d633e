from datetime import datetime, timedelta, timezone

from portal.services.news_service import (
    DUBAI_LAND_LIMIT,
    GENERAL_LIMIT,
    GOVERNMENT_SOURCES,
    ITEMS_PER_FEED,
    OFFICIAL_LIMIT,
    USER_AGENT,
    NewsService,
    filter_articles,
    parse_feed,
    parse_news_page,
    remove_duplicates,
    sanitize_xml,
)

SOURCE = {"name": "Test Feed", "url": "https://example.com/feed", "category": "Property"}

RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel>
<item>
  <title>Dubai Marina rents climb & sales surge</title>
  <link>https://example.com/a</link>
  <description><![CDATA[<p>Prices in <b>Dubai</b> rose again.</p>]]></description>
  <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
</item>
<item>
  <title>Football results</title>
  <link>https://example.com/b</link>
  <description>Scores from the weekend.</description>
</item>
<item>
  <title>No link here</title>
</item>
</channel></rss>"""

ATOM = """<?xml version="1.0"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <title>DLD launches new property registration service</title>
    <link href="https://example.com/dld"/>
    <summary>Dubai Land Department update.</summary>
    <updated>2024-01-02T00:00:00Z</updated>
  </entry>
</feed>"""

DLD_PAGE = """<html><body>
<div class="news-item"><h3>Ejari rules updated</h3><a href="/en/news/1">Read</a><p>New Ejari guidance.</p></div>
<div class="news-item"><h3></h3><a href="/en/news/2">Read</a></div>
</body></html>"""


class FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise RuntimeError(f"HTTP {self.status}")


class FakeSession:
    def __init__(self, pages=None, fail=False):
        self.pages = pages or {}
        self.fail = fail
        self.requested = []
        self.sent_headers = []

    def get(self, url, headers=None, timeout=None):
        self.requested.append(url)
        self.sent_headers.append(headers or {})
        if self.fail:
            raise RuntimeError("network down")
        return FakeResponse(self.pages.get(url, ""), 200 if url in self.pages else 404)


def test_sanitize_xml_escapes_bare_ampersands():
    assert sanitize_xml("a & b &amp; c\x01") == "a &amp; b &amp; c"


def test_parse_rss_items():
    articles = parse_feed(RSS, SOURCE)
    assert [a["title"] for a in articles] == ["Dubai Marina rents climb & sales surge", "Football results"]
    assert articles[0]["description"] == "Prices in Dubai rose again."
    assert articles[0]["url"] == "https://example.com/a"
    assert articles[0]["source"] == {"name": "Test Feed"}


def test_parse_atom_entries():
    articles = parse_feed(ATOM, SOURCE)
    assert articles[0]["url"] == "https://example.com/dld"
    assert articles[0]["description"] == "Dubai Land Department update."


def test_parse_official_page():
    articles = parse_news_page(DLD_PAGE, GOVERNMENT_SOURCES[0])
    assert len(articles) == 1
    assert articles[0]["url"] == "https://dubailand.gov.ae/en/news/1"
    assert articles[0]["isOfficial"] is True


def test_filter_and_dedupe():
    articles = parse_feed(RSS, SOURCE)
    kept = filter_articles(articles, ["dubai"])
    assert [a["title"] for a in kept] == ["Dubai Marina rents climb & sales surge"]

    dupes = remove_duplicates([{"title": "Same  Title"}, {"title": "same title"}, {"title": "Other"}])
    assert [a["title"] for a in dupes] == ["Same  Title", "Other"]


def test_refresh_builds_slices():
    pages = {
        "https://feeds.khaleejtimes.com/business/real-estate": RSS,
        "https://gulfnews.com/business/property/feeds/latest": ATOM,
        GOVERNMENT_SOURCES[0]["url"]: DLD_PAGE,
    }
    service = NewsService(session=FakeSession(pages))
    cache = service.refresh()
    titles = [a["title"] for a in cache["articles"]]
    assert "Football results" not in titles
    assert "Dubai Marina rents climb & sales surge" in titles
    assert [a["title"] for a in cache["officialArticles"]] == ["Ejari rules updated"]
    assert any("DLD" in a["title"] for a in cache["dubaiLandArticles"])
    # fewer than five fetched, so the backup article is mixed in
    assert cache["hasBackupNews"] is True


def test_network_failure_falls_back_to_backup():
    service = NewsService(session=FakeSession(fail=True))
    result = service.get_articles("general")
    assert result["articles"]
    assert result["articles"][0].get("isBackup") is True


def test_staleness():
    service = NewsService(refresh_minutes=30, session=FakeSession())
    assert service.is_stale()
    service.cache["lastUpdated"] = datetime.now(timezone.utc).isoformat()
    assert not service.is_stale()
    assert service.is_stale(datetime.now(timezone.utc) + timedelta(minutes=31))


def test_get_news_endpoint(client, app):
    from portal.extensions import news

    news.session = FakeSession(fail=True)
    body = client.post("/api/getNews", json={"type": "official"}).get_json()
    assert body["success"] is True
    assert body["data"]["type"] == "official"
    assert "lastUpdated" in body["data"]


def test_requests_send_browser_user_agent():
    session = FakeSession({"https://feeds.khaleejtimes.com/business/real-estate": RSS})
    NewsService(session=session).fetch_rss()
    assert session.sent_headers
    assert all(h["User-Agent"] == USER_AGENT for h in session.sent_headers)
    assert USER_AGENT.startswith("Mozilla/5.0")


def test_feed_items_are_capped():
    items = "".join(
        f"<item><title>Dubai tower {i}</title><link>https://example.com/{i}</link></item>" for i in range(20)
    )
    feed = f'<?xml version="1.0"?><rss version="2.0"><channel>{items}</channel></rss>'
    assert len(parse_feed(feed, SOURCE)) == ITEMS_PER_FEED == 15


def test_cache_slices_are_capped():
    articles = [
        {
            "title": f"Dubai Land Department notice {i}",
            "description": "Property registration update",
            "url": f"https://example.com/{i}",
            "isOfficial": True,
        }
        for i in range(40)
    ]
    cache = NewsService(session=FakeSession()).build_cache(articles)
    assert len(cache["articles"]) == GENERAL_LIMIT == 25
    assert len(cache["dubaiLandArticles"]) == DUBAI_LAND_LIMIT == 15
    assert len(cache["officialArticles"]) == OFFICIAL_LIMIT == 20
    assert cache["hasBackupNews"] is False
