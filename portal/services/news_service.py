# portal/services/news_service.py
"""
Dubai real-estate news aggregator.

RSS feeds and the Dubai Land Department news page are fetched on a timer
(see portal.scheduler) and lazily when the cache is older than the refresh
window. Results are filtered by keyword, de-duplicated by title and cached in
three capped slices: general, official and Dubai-Land-specific.
"""
from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from portal.models import now_iso

log = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

GOVERNMENT_SOURCES = [
    {
        "name": "Dubai Land Department",
        "url": "https://dubailand.gov.ae/en/news-and-media/latest-news/",
        "selector": ".news-item, .post-item, article, .content-item",
        "titleSelector": "h1, h2, h3, .title, .post-title",
        "linkSelector": "a",
        "descriptionSelector": ".excerpt, .summary, p",
        "category": "Official Government",
    }
]

RSS_SOURCES = [
    {"name": "Khaleej Times Real Estate", "url": "https://feeds.khaleejtimes.com/business/real-estate", "category": "Real Estate"},
    {"name": "Gulf News Property", "url": "https://gulfnews.com/business/property/feeds/latest", "category": "Property"},
    {"name": "Arabian Business", "url": "https://www.arabianbusiness.com/industries/real-estate/feed", "category": "Property"},
]

DUBAI_LAND_KEYWORDS = [
    "dubai land department", "dld", "property registration", "real estate license",
    "property law", "real estate regulation", "property transaction", "property permit",
    "real estate registration", "property title deed", "oqood", "ejari",
    "property developer license", "real estate broker", "property valuation",
    "property tax", "real estate fee", "property ownership", "land registration",
    "property transfer", "real estate compliance", "property documentation",
]

DUBAI_KEYWORDS = [
    "dubai", "uae", "emirates", "property", "real estate",
    "investment", "downtown dubai", "dubai marina", "palm jumeirah",
    "jbr", "business bay", "deira", "bur dubai",
]

GENERAL_LIMIT = 25
DUBAI_LAND_LIMIT = 15
OFFICIAL_LIMIT = 20
ITEMS_PER_FEED = 15
DESCRIPTION_LIMIT = 250
MIN_ARTICLES = 5

_BARE_AMP_RE = re.compile(r"&(?!amp;|lt;|gt;|quot;|apos;|#\d+;|#x[0-9a-fA-F]+;)")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WS_RE = re.compile(r"\s+")


def sanitize_xml(raw: str) -> str:
    """Escape bare ampersands and drop control characters that break XML parsers."""
    return _CONTROL_RE.sub("", _BARE_AMP_RE.sub("&amp;", raw or "")).strip()


def strip_html(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WS_RE.sub(" ", BeautifulSoup(text, "html.parser").get_text(" ")).strip()


def _node_text(node) -> str:
    return node.get_text().strip() if node is not None else ""


def parse_feed(xml: str, source: Dict[str, str], limit: int = ITEMS_PER_FEED) -> List[Dict[str, Any]]:
    """RSS 2.0 <item> or Atom <entry> elements -> article dicts."""
    soup = BeautifulSoup(sanitize_xml(xml), "xml")
    items = soup.find_all("item") or soup.find_all("entry")
    fetched_at = now_iso()
    articles = []
    for item in items[:limit]:
        title = strip_html(_node_text(item.find("title")))
        link_node = item.find("link")
        link = ""
        if link_node is not None:
            link = (link_node.get("href") or link_node.get_text() or "").strip()
        if not title or not link:
            continue
        desc_node = item.find("description") or item.find("summary") or item.find("content") or item.find("encoded")
        description = strip_html(_node_text(desc_node))[:DESCRIPTION_LIMIT]
        published = _node_text(item.find("pubDate") or item.find("published") or item.find("updated"))
        articles.append({
            "title": title,
            "description": description or "Click to read full article",
            "url": link,
            "publishedAt": published or fetched_at,
            "source": {"name": source["name"]},
            "category": source["category"],
            "fetchedAt": fetched_at,
            "isRSS": True,
        })
    return articles


def parse_news_page(html: str, source: Dict[str, str], limit: int = ITEMS_PER_FEED) -> List[Dict[str, Any]]:
    soup = BeautifulSoup(html or "", "html.parser")
    fetched_at = now_iso()
    articles = []
    for node in soup.select(source["selector"])[:limit]:
        title = _WS_RE.sub(" ", _node_text(node.select_one(source["titleSelector"])))
        link_node = node.select_one(source["linkSelector"])
        href = link_node.get("href") if link_node is not None else None
        if not title or not href:
            continue
        description = _WS_RE.sub(" ", _node_text(node.select_one(source["descriptionSelector"])))[:DESCRIPTION_LIMIT]
        articles.append({
            "title": title,
            "description": description or "Click to read full article",
            "url": urljoin(source["url"], href),
            "publishedAt": fetched_at,
            "source": {"name": source["name"]},
            "category": source["category"],
            "fetchedAt": fetched_at,
            "isOfficial": True,
        })
    return articles


def filter_articles(articles: Iterable[Dict[str, Any]], keywords: List[str]) -> List[Dict[str, Any]]:
    lowered = [k.lower() for k in keywords]
    out = []
    for article in articles:
        text = f"{article.get('title', '')} {article.get('description', '')}".lower()
        if any(k in text for k in lowered):
            out.append(article)
    return out


def normalize_title(title: str) -> str:
    return _WS_RE.sub(" ", (title or "").lower()).strip()


def remove_duplicates(articles: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    out = []
    for article in articles:
        key = normalize_title(article.get("title", ""))
        if key in seen:
            continue
        seen.add(key)
        out.append(article)
    return out


def backup_news() -> List[Dict[str, Any]]:
    return [
        {
            "title": f"Dubai Real Estate Market Analysis - {datetime.now(timezone.utc).year}",
            "description": "Comprehensive analysis of Dubai's property market trends.",
            "url": "https://www.khaleejtimes.com/business/real-estate",
            "publishedAt": now_iso(),
            "source": {"name": "Khaleej Times Real Estate"},
            "category": "Market Analysis",
            "isBackup": True,
        }
    ]


class NewsService:
    def __init__(self, refresh_minutes: int = 30, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.max_age = timedelta(minutes=refresh_minutes)
        self.timeout = timeout
        self.session = session or requests.Session()
        self._lock = threading.Lock()
        self.cache: Dict[str, Any] = {
            "lastUpdated": None,
            "articles": [],
            "dubaiLandArticles": [],
            "officialArticles": [],
        }

    def init_app(self, app) -> None:
        self.max_age = timedelta(minutes=int(app.config.get("NEWS_REFRESH_MINUTES", 30)))
        self.timeout = float(app.config.get("NEWS_TIMEOUT_SECONDS", 30))
        if app.config.get("NEWS_SESSION") is not None:
            self.session = app.config["NEWS_SESSION"]
        app.extensions["news"] = self

    # ---------- fetching ----------
    def _get(self, url: str) -> Optional[str]:
        resp = self.session.get(url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.text

    def fetch_rss(self) -> List[Dict[str, Any]]:
        articles: List[Dict[str, Any]] = []
        for source in RSS_SOURCES:
            try:
                body = self._get(source["url"])
                if not body or len(body) < 100:
                    continue
                articles.extend(parse_feed(body, source))
            except Exception as e:
                log.warning("Failed to fetch RSS from %s: %s", source["name"], e)
        return articles

    def fetch_official(self) -> List[Dict[str, Any]]:
        articles: List[Dict[str, Any]] = []
        for source in GOVERNMENT_SOURCES:
            try:
                articles.extend(parse_news_page(self._get(source["url"]), source))
            except Exception as e:
                log.warning("Failed to scrape %s: %s", source["name"], e)
        return articles

    def build_cache(self, articles: List[Dict[str, Any]]) -> Dict[str, Any]:
        if len(articles) < MIN_ARTICLES:
            articles = articles + backup_news()
        return {
            "lastUpdated": now_iso(),
            "articles": remove_duplicates(filter_articles(articles, DUBAI_KEYWORDS))[:GENERAL_LIMIT],
            "dubaiLandArticles": remove_duplicates(filter_articles(articles, DUBAI_LAND_KEYWORDS))[:DUBAI_LAND_LIMIT],
            "officialArticles": remove_duplicates(a for a in articles if a.get("isOfficial"))[:OFFICIAL_LIMIT],
            "totalFetched": len(articles),
            "hasBackupNews": any(a.get("isBackup") for a in articles),
        }

    def refresh(self) -> Dict[str, Any]:
        try:
            cache = self.build_cache(self.fetch_rss() + self.fetch_official())
        except Exception as e:
            log.exception("Error refreshing news")
            backup = backup_news()
            cache = {
                "lastUpdated": now_iso(),
                "articles": backup,
                "dubaiLandArticles": [],
                "officialArticles": [],
                "totalFetched": len(backup),
                "hasBackupNews": True,
                "error": str(e),
            }
        with self._lock:
            self.cache = cache
        log.info("News cache refreshed: %d general, %d official, %d DLD",
                 len(cache["articles"]), len(cache["officialArticles"]), len(cache["dubaiLandArticles"]))
        return cache

    # ---------- reading ----------
    def is_stale(self, now: Optional[datetime] = None) -> bool:
        last = self.cache.get("lastUpdated")
        if not last:
            return True
        updated = datetime.fromisoformat(last.replace("Z", "+00:00"))
        return (now or datetime.now(timezone.utc)) - updated > self.max_age

    def get_articles(self, news_type: str = "general") -> Dict[str, Any]:
        if self.is_stale() or not self.cache.get("articles"):
            self.refresh()
        cache = self.cache
        key = {"official": "officialArticles", "dubailand": "dubaiLandArticles"}.get(news_type, "articles")
        return {"articles": cache.get(key) or [], "type": news_type, "lastUpdated": cache.get("lastUpdated")}
