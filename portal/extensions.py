# portal/extensions.py
from flask import Flask

from portal.services.drive_client import DriveClient
from portal.services.news_service import NewsService
from portal.services.notion_mirror import NotionMirror
from portal.services.openai_client import LLMClient
from portal.store import RecordStore

# Extensions

store = RecordStore()
drive = DriveClient()
mirror = NotionMirror()
llm = LLMClient()
news = NewsService()


def init_extensions(app: Flask):
    store.init_app(app)
    drive.init_app(app)
    mirror.init_app(app)
    llm.init_app(app)
    news.init_app(app)
